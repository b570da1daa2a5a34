from __future__ import annotations
from datetime import datetime

from sqlalchemy.orm import Session

from ebes.models.setting import Setting
from ebes.services.seed import default_score_config


def get_setting(db: Session, key: str) -> dict:
    row = db.query(Setting).filter(Setting.key == key).first()
    if row:
        return row.value
    if key == "scoring":
        return default_score_config()
    return {}


def upsert_setting(db: Session, key: str, value: dict) -> dict:
    row = db.query(Setting).filter(Setting.key == key).first()
    if row:
        row.value = value
        row.updated_at = datetime.utcnow()
    else:
        row = Setting(key=key, value=value, updated_at=datetime.utcnow())
        db.add(row)
    db.commit()
    db.refresh(row)
    return row.value
