from __future__ import annotations
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ebes.api.deps import require_recruitment_manager, scoring_config
from ebes.db.database import get_db
from ebes.services import recruitment_manager as rm
from ebes.services.activity import DateRange
from ebes.services.users import Principal

router = APIRouter(prefix="/rm", tags=["recruitment-manager"])


@router.get("/teams")
def teams(principal: Principal = Depends(require_recruitment_manager), db: Session = Depends(get_db)):
    return rm.list_teams(db, principal)


@router.get("/clients")
def clients(principal: Principal = Depends(require_recruitment_manager), db: Session = Depends(get_db)):
    return rm.list_clients(db, principal)


@router.get("/recruiters")
def recruiters(principal: Principal = Depends(require_recruitment_manager), db: Session = Depends(get_db)):
    return rm.list_recruiters(db, principal)


@router.get("/roles")
def roles(
    status: str | None = None,
    principal: Principal = Depends(require_recruitment_manager),
    db: Session = Depends(get_db),
):
    return rm.list_roles(db, principal, status)


@router.get("/analytics")
def analytics(
    start_date: date | None = None,
    end_date: date | None = None,
    team_id: int | None = None,
    client_id: int | None = None,
    recruiter_id: int | None = None,
    principal: Principal = Depends(require_recruitment_manager),
    db: Session = Depends(get_db),
):
    window = DateRange.from_params(start_date, end_date)
    return rm.analytics(db, principal, window, team_id, client_id, recruiter_id)


@router.get("/ebes-score")
def ebes_score(
    start_date: date | None = None,
    end_date: date | None = None,
    principal: Principal = Depends(require_recruitment_manager),
    db: Session = Depends(get_db),
    cfg: dict = Depends(scoring_config),
):
    return rm.ebes_score(db, principal, DateRange.from_params(start_date, end_date), cfg)


@router.get("/team-analytics/{team_id}")
def team_analytics(
    team_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    principal: Principal = Depends(require_recruitment_manager),
    db: Session = Depends(get_db),
):
    return rm.team_analytics(db, principal, team_id, DateRange.from_params(start_date, end_date))


@router.get("/performance-summary")
def performance_summary(
    start_date: date | None = None,
    end_date: date | None = None,
    principal: Principal = Depends(require_recruitment_manager),
    db: Session = Depends(get_db),
):
    return rm.performance_summary(db, principal, DateRange.from_params(start_date, end_date))
