from __future__ import annotations
from typing import Literal

from pydantic import BaseModel, Field

RoleStatus = Literal["active", "deal", "lost", "on_hold", "cancelled", "no_answer"]


class RoleCreate(BaseModel):
    client_id: int
    team_id: int
    title: str = Field(min_length=1)
    description: str = ""


class RoleUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    status: RoleStatus | None = None


class InterviewCreate(BaseModel):
    interview_round: int = Field(ge=1, le=3)
    interview_count: int = Field(default=1, ge=1)


class DropoutResolve(BaseModel):
    status: RoleStatus
