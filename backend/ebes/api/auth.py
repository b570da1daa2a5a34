from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ebes.api.deps import require_principal
from ebes.db.database import get_db
from ebes.models.user import User
from ebes.schemas.auth import LoginRequest, TokenResponse, UserOut
from ebes.services.users import Principal, authenticate
from ebes.utils.auth import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, req.email, req.password)
    if not user:
        logger.info("login rejected email=%s", req.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")
    token = create_access_token(str(user.id), user.role)
    return TokenResponse(access_token=token, user=UserOut.model_validate(user))


@router.post("/logout")
def logout(_: Principal = Depends(require_principal)):
    # Tokens are stateless; the client drops its copy.
    return {"success": True}


@router.get("/me", response_model=UserOut)
def me(principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return db.get(User, principal.id)
