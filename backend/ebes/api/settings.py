from __future__ import annotations
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ebes.api.deps import require_admin
from ebes.db.database import get_db
from ebes.schemas.score import ScoreConfig
from ebes.services.settings_service import get_setting, upsert_setting
from ebes.services.users import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/scoring")
def get_scoring(_: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return get_setting(db, "scoring")


@router.put("/scoring")
def put_scoring(body: ScoreConfig, principal: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    logger.info("scoring config updated by user_id=%s", principal.id)
    return upsert_setting(db, "scoring", body.model_dump(mode="json"))
