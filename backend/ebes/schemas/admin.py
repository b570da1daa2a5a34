from __future__ import annotations
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

UserRole = Literal["admin", "account_manager", "recruitment_manager", "recruiter"]


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    role: UserRole


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    email: str | None = Field(default=None, min_length=3)
    password: str | None = Field(default=None, min_length=1)
    role: UserRole | None = None
    is_active: bool | None = None


class ClientCreate(BaseModel):
    name: str = Field(min_length=1)


class ClientOut(BaseModel):
    id: int
    client_code: str | None
    name: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TeamCreate(BaseModel):
    name: str = Field(min_length=1)


class TeamOut(BaseModel):
    id: int
    team_code: str | None
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class ClientAssignmentRequest(BaseModel):
    user_id: int
    client_id: int
    team_id: int | None = None


class TeamAssignmentRequest(BaseModel):
    user_id: int
    team_id: int


class RecruiterAssignmentRequest(BaseModel):
    recruiter_id: int
    team_id: int
    client_ids: list[int] = []
