from __future__ import annotations
from ebes.models.org import (
    Client,
    ClientAssignment,
    RecruiterClientAssignment,
    RecruiterTeamAssignment,
    Team,
    TeamAssignment,
)
from ebes.models.reminder import MonthlyReminder
from ebes.models.role import Role, RoleInterview, RoleStatusPending
from ebes.models.setting import Setting
from ebes.models.submission import Submission
from ebes.models.user import User

__all__ = [
    "Client",
    "ClientAssignment",
    "MonthlyReminder",
    "RecruiterClientAssignment",
    "RecruiterTeamAssignment",
    "Role",
    "RoleInterview",
    "RoleStatusPending",
    "Setting",
    "Submission",
    "Team",
    "TeamAssignment",
    "User",
]
