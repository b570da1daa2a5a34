from __future__ import annotations
from fastapi import APIRouter

from ebes.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok", "app": settings.app_name, "env": settings.env}
