from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ebes.db.database import Base


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    client_code: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Team(Base):
    __tablename__ = "app_teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    team_code: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class ClientAssignment(Base):
    __tablename__ = "client_assignments"
    __table_args__ = (UniqueConstraint("user_id", "client_id", name="uq_client_assignments_user_client"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)


class TeamAssignment(Base):
    __tablename__ = "team_assignments"
    __table_args__ = (UniqueConstraint("user_id", "team_id", name="uq_team_assignments_user_team"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    team_id: Mapped[int] = mapped_column(ForeignKey("app_teams.id"), nullable=False)


class RecruiterTeamAssignment(Base):
    __tablename__ = "recruiter_team_assignments"
    __table_args__ = (UniqueConstraint("recruiter_user_id", "team_id", name="uq_recruiter_team"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recruiter_user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    team_id: Mapped[int] = mapped_column(ForeignKey("app_teams.id"), nullable=False)


class RecruiterClientAssignment(Base):
    __tablename__ = "recruiter_client_assignments"
    __table_args__ = (
        UniqueConstraint("recruiter_user_id", "client_id", "team_id", name="uq_recruiter_client_team"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recruiter_user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)
    team_id: Mapped[int] = mapped_column(ForeignKey("app_teams.id"), nullable=False)
