from __future__ import annotations
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ebes.api.deps import require_admin, scoring_config
from ebes.db.database import get_db
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
from ebes.schemas.auth import UserOut
from ebes.services import admin, org
from ebes.services.activity import DateRange
from ebes.services.users import Principal

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[UserOut])
def list_users(_: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return admin.list_users(db)


@router.post("/users", response_model=UserOut)
def create_user(body: UserCreate, _: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return admin.create_user(db, body.name, body.email, body.password, body.role)


@router.patch("/users/{user_id}", response_model=UserOut)
def update_user(user_id: int, body: UserUpdate, _: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return admin.update_user(db, user_id, body.model_dump(exclude_unset=True))


@router.get("/users/{user_id}/assignments")
def user_assignments(user_id: int, _: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return org.user_assignments(db, admin.get_user(db, user_id))


@router.get("/clients", response_model=list[ClientOut])
def list_clients(_: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return org.list_clients(db)


@router.post("/clients", response_model=ClientOut)
def create_client(body: ClientCreate, _: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return org.create_client(db, body.name)


@router.get("/teams", response_model=list[TeamOut])
def list_teams(_: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return org.list_teams(db)


@router.post("/teams", response_model=TeamOut)
def create_team(body: TeamCreate, _: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return org.create_team(db, body.name)


@router.post("/assign-client")
def assign_client(body: ClientAssignmentRequest, _: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    org.assign_client(db, body.user_id, body.client_id, body.team_id)
    return {"success": True}


@router.post("/unassign-client")
def unassign_client(
    body: ClientAssignmentRequest, _: Principal = Depends(require_admin), db: Session = Depends(get_db)
):
    org.unassign_client(db, body.user_id, body.client_id)
    return {"success": True}


@router.post("/assign-team")
def assign_team(body: TeamAssignmentRequest, _: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    org.assign_team(db, body.user_id, body.team_id)
    return {"success": True}


@router.post("/unassign-team")
def unassign_team(body: TeamAssignmentRequest, _: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    org.unassign_team(db, body.user_id, body.team_id)
    return {"success": True}


@router.post("/assign-recruiter")
def assign_recruiter(
    body: RecruiterAssignmentRequest, _: Principal = Depends(require_admin), db: Session = Depends(get_db)
):
    org.assign_recruiter(db, body.recruiter_id, body.team_id, body.client_ids)
    return {"success": True}


@router.get("/performance-stats")
def performance_stats(
    role: str | None = None,
    user_name: str | None = Query(default=None, alias="userName"),
    team_id: int | None = Query(default=None, alias="teamId"),
    client_id: int | None = Query(default=None, alias="clientId"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    cfg: dict = Depends(scoring_config),
):
    window = DateRange.from_params(start_date, end_date)
    return admin.performance_stats(db, cfg, role, user_name, team_id, client_id, window)


@router.get("/leaderboards")
def leaderboards(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    cfg: dict = Depends(scoring_config),
):
    return admin.leaderboards(db, cfg, DateRange.from_params(start_date, end_date))
