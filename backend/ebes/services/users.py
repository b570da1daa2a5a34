from __future__ import annotations
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ebes.models.user import User


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, resolved once per request and passed down explicitly."""

    id: int
    role: str
    name: str
    email: str


def principal_for(user: User) -> Principal:
    return Principal(id=user.id, role=user.role, name=user.name, email=user.email)


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = find_user_by_email(db, email)
    if not user or user.password != password:
        return None
    return user


def user_payload(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "user_code": user.user_code,
        "is_active": user.is_active,
    }
