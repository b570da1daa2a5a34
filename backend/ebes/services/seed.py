from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ebes.core.config import settings
from ebes.db.database import SessionLocal
from ebes.models.setting import Setting
from ebes.models.user import User
from ebes.services.scoring import default_thresholds, default_weights

logger = logging.getLogger(__name__)


def default_score_config() -> dict:
    return {
        "weights": default_weights(),
        "thresholds": default_thresholds(),
    }


def seed_defaults(db: Session) -> None:
    keys = {s.key for s in db.query(Setting).all()}
    if "scoring" not in keys:
        db.add(Setting(key="scoring", value=default_score_config(), updated_at=datetime.utcnow()))

    has_admin = db.query(User).filter(User.role == "admin").first() is not None
    if not has_admin:
        admin = User(
            name=settings.bootstrap_admin_name,
            email=settings.bootstrap_admin_email.strip().lower(),
            password=settings.bootstrap_admin_password,
            role="admin",
            is_active=True,
        )
        db.add(admin)
        db.flush()
        admin.user_code = f"USR-{admin.id:04d}"
        logger.info("created bootstrap admin email=%s", admin.email)

    db.commit()


def seed_defaults_if_empty() -> None:
    db = SessionLocal()
    try:
        seed_defaults(db)
    finally:
        db.close()
