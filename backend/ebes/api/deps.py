from __future__ import annotations
from datetime import date, datetime

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ebes.core.config import settings
from ebes.db.database import get_db
from ebes.models.user import User
from ebes.services.settings_service import get_setting
from ebes.services.users import Principal, principal_for
from ebes.utils.auth import verify_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/auth/login")


def require_principal(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Principal:
    subject = verify_access_token(token)
    if not subject:
        raise HTTPException(status_code=401, detail="Invalid token")
    try:
        user = db.get(User, int(subject))
    except ValueError:
        user = None
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")
    return principal_for(user)


def require_role(*roles: str):
    def checker(principal: Principal = Depends(require_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return principal

    return checker


require_admin = require_role("admin")
require_account_manager = require_role("account_manager")
require_recruiter = require_role("recruiter")
require_recruitment_manager = require_role("recruitment_manager")


def scoring_config(db: Session = Depends(get_db)) -> dict:
    return get_setting(db, "scoring")


def today() -> date:
    return datetime.utcnow().date()
