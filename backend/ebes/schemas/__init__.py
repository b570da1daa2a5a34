from __future__ import annotations
from ebes.schemas.admin import (
    ClientAssignmentRequest,
    ClientCreate,
    ClientOut,
    RecruiterAssignmentRequest,
    TeamAssignmentRequest,
    TeamCreate,
    TeamOut,
    UserCreate,
    UserUpdate,
)
from ebes.schemas.auth import LoginRequest, TokenResponse, UserOut
from ebes.schemas.role import DropoutResolve, InterviewCreate, RoleCreate, RoleUpdate
from ebes.schemas.score import ScoreConfig
from ebes.schemas.submission import SubmissionCreate

__all__ = [
    "ClientAssignmentRequest",
    "ClientCreate",
    "ClientOut",
    "RecruiterAssignmentRequest",
    "TeamAssignmentRequest",
    "TeamCreate",
    "TeamOut",
    "UserCreate",
    "UserUpdate",
    "LoginRequest",
    "TokenResponse",
    "UserOut",
    "DropoutResolve",
    "InterviewCreate",
    "RoleCreate",
    "RoleUpdate",
    "ScoreConfig",
    "SubmissionCreate",
]
