from __future__ import annotations
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ebes.api.deps import require_account_manager, scoring_config, today
from ebes.db.database import get_db
from ebes.schemas.role import DropoutResolve, InterviewCreate, RoleCreate, RoleUpdate
from ebes.services import account_manager as am
from ebes.services.activity import window_for
from ebes.services.users import Principal

router = APIRouter(prefix="/am", tags=["account-manager"])


@router.get("/assignments")
def get_assignments(principal: Principal = Depends(require_account_manager), db: Session = Depends(get_db)):
    return am.get_assignments(db, principal)


@router.get("/reminder-status")
def reminder_status(
    principal: Principal = Depends(require_account_manager),
    db: Session = Depends(get_db),
    as_of: date = Depends(today),
):
    return am.reminder_status(db, principal, as_of)


@router.post("/confirm-reminder")
def confirm_reminder(
    principal: Principal = Depends(require_account_manager),
    db: Session = Depends(get_db),
    as_of: date = Depends(today),
):
    am.confirm_reminder(db, principal, as_of)
    return {"success": True}


@router.get("/roles")
def list_roles(
    status: str | None = None,
    principal: Principal = Depends(require_account_manager),
    db: Session = Depends(get_db),
):
    return am.list_roles(db, principal, status)


@router.post("/roles")
def create_role(body: RoleCreate, principal: Principal = Depends(require_account_manager), db: Session = Depends(get_db)):
    return am.create_role(db, principal, body.client_id, body.team_id, body.title, body.description)


@router.put("/roles/{role_id}")
def update_role(
    role_id: int,
    body: RoleUpdate,
    principal: Principal = Depends(require_account_manager),
    db: Session = Depends(get_db),
):
    am.update_role(db, principal, role_id, body.model_dump(exclude_unset=True))
    return {"success": True}


@router.delete("/roles/{role_id}")
def delete_role(role_id: int, principal: Principal = Depends(require_account_manager), db: Session = Depends(get_db)):
    am.delete_role(db, principal, role_id)
    return {"success": True}


@router.post("/roles/{role_id}/interviews")
def add_interview(
    role_id: int,
    body: InterviewCreate,
    principal: Principal = Depends(require_account_manager),
    db: Session = Depends(get_db),
    as_of: date = Depends(today),
):
    am.add_interview(db, principal, role_id, body.interview_round, body.interview_count, as_of)
    return {"success": True}


@router.get("/analytics")
@router.get("/client-analytics")
def client_analytics(
    date_range: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    principal: Principal = Depends(require_account_manager),
    db: Session = Depends(get_db),
    as_of: date = Depends(today),
):
    window = window_for(date_range, start_date, end_date, as_of)
    return am.client_analytics(db, principal, window, as_of)


@router.get("/performance")
def performance(
    client_id: int | None = None,
    team_id: int | None = None,
    status: str | None = None,
    date_range: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    principal: Principal = Depends(require_account_manager),
    db: Session = Depends(get_db),
    cfg: dict = Depends(scoring_config),
    as_of: date = Depends(today),
):
    window = window_for(date_range, start_date, end_date, as_of)
    return am.performance(db, principal, client_id, team_id, status, window, cfg, as_of)


@router.get("/ebes-score")
def ebes_score(
    date_range: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    principal: Principal = Depends(require_account_manager),
    db: Session = Depends(get_db),
    cfg: dict = Depends(scoring_config),
    as_of: date = Depends(today),
):
    window = window_for(date_range, start_date, end_date, as_of)
    return am.ebes_for_account_manager(db, principal.id, window, cfg).as_dict()


@router.get("/dropout-requests")
def dropout_requests(principal: Principal = Depends(require_account_manager), db: Session = Depends(get_db)):
    return am.list_dropout_requests(db, principal)


@router.post("/dropout-requests/{request_id}/resolve")
def resolve_dropout(
    request_id: int,
    body: DropoutResolve,
    principal: Principal = Depends(require_account_manager),
    db: Session = Depends(get_db),
):
    am.resolve_dropout_request(db, principal, request_id, body.status)
    return {"success": True}
