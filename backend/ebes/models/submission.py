from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ebes.db.database import Base

ENTRY_TYPES = ("submission", "interview", "deal", "dropout")
SUBMISSION_TYPES = ("6h", "24h", "after_24h")


class Submission(Base):
    __tablename__ = "recruiter_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    recruiter_user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    client_id: Mapped[Optional[int]] = mapped_column(ForeignKey("clients.id"), nullable=True, index=True)
    team_id: Mapped[Optional[int]] = mapped_column(ForeignKey("app_teams.id"), nullable=True, index=True)
    role_id: Mapped[Optional[int]] = mapped_column(ForeignKey("am_roles.id", ondelete="SET NULL"), nullable=True)
    account_manager_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    recruitment_manager_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    submission_type: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    submission_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    entry_type: Mapped[str] = mapped_column(String(16), default="submission", nullable=False)
    interview_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    dropout_role_id: Mapped[Optional[int]] = mapped_column(ForeignKey("am_roles.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
