from __future__ import annotations
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ebes.api.deps import require_recruiter, scoring_config, today
from ebes.db.database import get_db
from ebes.schemas.submission import SubmissionCreate
from ebes.services import recruiter as rec
from ebes.services.activity import DateRange
from ebes.services.users import Principal

router = APIRouter(prefix="/recruiter", tags=["recruiter"])


@router.get("/clients")
def clients(principal: Principal = Depends(require_recruiter), db: Session = Depends(get_db)):
    return rec.list_clients(db, principal)


@router.get("/roles/{client_id}/{team_id}")
def roles(client_id: int, team_id: int, _: Principal = Depends(require_recruiter), db: Session = Depends(get_db)):
    return rec.active_roles_for(db, client_id, team_id)


@router.get("/team-info")
def team_info(principal: Principal = Depends(require_recruiter), db: Session = Depends(get_db)):
    return rec.team_info(db, principal)


@router.get("/deal-roles")
def deal_roles(principal: Principal = Depends(require_recruiter), db: Session = Depends(get_db)):
    return rec.deal_roles(db, principal)


@router.post("/submissions")
def create_submission(
    body: SubmissionCreate, principal: Principal = Depends(require_recruiter), db: Session = Depends(get_db)
):
    rec.create_submission(db, principal, body.model_dump())
    return {"success": True}


@router.get("/submissions")
def list_submissions(
    start_date: date | None = None,
    end_date: date | None = None,
    client_id: int | None = None,
    principal: Principal = Depends(require_recruiter),
    db: Session = Depends(get_db),
):
    return rec.list_submissions(db, principal, DateRange.from_params(start_date, end_date), client_id)


@router.get("/ebes")
def ebes(
    filter: str = "combined",
    client_id: int | None = None,
    principal: Principal = Depends(require_recruiter),
    db: Session = Depends(get_db),
    cfg: dict = Depends(scoring_config),
    as_of: date = Depends(today),
):
    return rec.ebes(db, principal, filter, client_id, cfg, as_of)


@router.get("/all-roles")
def all_roles(principal: Principal = Depends(require_recruiter), db: Session = Depends(get_db)):
    return rec.all_roles(db, principal)


@router.get("/analytics")
def analytics(
    client_id: int | None = None,
    role_id: int | None = None,
    entry_type: str | None = None,
    date_range: str = "this_month",
    start_date: date | None = None,
    end_date: date | None = None,
    principal: Principal = Depends(require_recruiter),
    db: Session = Depends(get_db),
    as_of: date = Depends(today),
):
    return rec.analytics(db, principal, client_id, role_id, entry_type, date_range, start_date, end_date, as_of)


@router.get("/ebes-score")
def ebes_score(
    filter: str = "current_month",
    start_date: date | None = None,
    end_date: date | None = None,
    principal: Principal = Depends(require_recruiter),
    db: Session = Depends(get_db),
    cfg: dict = Depends(scoring_config),
    as_of: date = Depends(today),
):
    return rec.ebes_score(db, principal, filter, start_date, end_date, cfg, as_of)
