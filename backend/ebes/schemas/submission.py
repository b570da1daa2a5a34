from __future__ import annotations
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field


class SubmissionCreate(BaseModel):
    client_id: int | None = None
    team_id: int | None = None
    role_id: int | None = None
    submission_type: Literal["6h", "24h", "after_24h"] | None = None
    submission_date: date
    notes: str = ""
    entry_type: Literal["submission", "interview", "deal", "dropout"] = "submission"
    interview_level: int | None = Field(default=None, ge=1, le=3)
    dropout_role_id: int | None = None
