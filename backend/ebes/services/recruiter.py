from __future__ import annotations
import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session, aliased

from ebes.models.org import Client, Team
from ebes.models.role import Role, RoleStatusPending
from ebes.models.submission import Submission
from ebes.models.user import User
from ebes.services.activity import DateRange, as_day, count_entries, window_for
from ebes.services.errors import NotFoundError, ServiceError
from ebes.services.org import client_payload, recruiter_client_pairs, recruiter_teams, team_manager, team_payload
from ebes.services.records import submission_entries
from ebes.services.scoring import RECRUITER, ScoreResult, compute_score
from ebes.services.trends import daily_trend, monthly_trend
from ebes.services.users import Principal

logger = logging.getLogger(__name__)

DROPOUT_REASON = "Dropout - Candidate refused offer"


def _today() -> date:
    return datetime.utcnow().date()


def list_clients(db: Session, principal: Principal) -> list[dict]:
    return [
        {**client_payload(client), "team_id": team.id, "team_name": team.name, "team_code": team.team_code}
        for client, team in recruiter_client_pairs(db, principal.id)
    ]


def active_roles_for(db: Session, client_id: int, team_id: int) -> list[dict]:
    rows = (
        db.query(Role, User)
        .join(User, User.id == Role.account_manager_id)
        .filter(Role.client_id == client_id, Role.team_id == team_id, Role.status == "active")
        .order_by(Role.created_at.desc())
        .all()
    )
    return [
        {
            "id": role.id,
            "role_code": role.role_code,
            "title": role.title,
            "description": role.description,
            "status": role.status,
            "client_id": role.client_id,
            "team_id": role.team_id,
            "account_manager_id": role.account_manager_id,
            "account_manager_name": manager.name,
            "created_at": role.created_at,
        }
        for role, manager in rows
    ]


def team_info(db: Session, principal: Principal) -> dict:
    teams = recruiter_teams(db, principal.id)
    if not teams:
        raise NotFoundError("No team assigned")
    team = teams[0]
    manager = team_manager(db, team.id)
    return {
        "team": team_payload(team),
        "recruitment_manager": (
            {"id": manager.id, "name": manager.name, "email": manager.email, "user_code": manager.user_code}
            if manager
            else None
        ),
    }


def deal_roles(db: Session, principal: Principal, limit: int = 10) -> list[dict]:
    """Latest roles this recruiter closed, offered as dropout targets."""
    rows = (
        db.query(Role, Client, Team, Submission.created_at)
        .join(Submission, Submission.role_id == Role.id)
        .join(Client, Client.id == Role.client_id)
        .join(Team, Team.id == Role.team_id)
        .filter(Submission.recruiter_user_id == principal.id)
        .filter((Submission.entry_type == "deal") | (Role.status == "deal"))
        .order_by(Submission.created_at.desc())
        .all()
    )
    seen: set[int] = set()
    result = []
    for role, client, team, _ in rows:
        if role.id in seen:
            continue
        seen.add(role.id)
        result.append(
            {
                "id": role.id,
                "role_code": role.role_code,
                "title": role.title,
                "status": role.status,
                "client_id": role.client_id,
                "team_id": role.team_id,
                "client_name": client.name,
                "team_name": team.name,
            }
        )
        if len(result) >= limit:
            break
    return result


def create_submission(db: Session, principal: Principal, data: dict) -> None:
    entry_type = data.get("entry_type") or "submission"
    role_id = data.get("role_id")
    client_id = data.get("client_id")
    team_id = data.get("team_id")
    account_manager_id = None
    submission_date = as_day(data.get("submission_date"))
    if submission_date is None:
        raise ServiceError("submission_date must be an ISO date")

    if entry_type == "dropout" and data.get("dropout_role_id"):
        role = db.get(Role, data["dropout_role_id"])
        if role is None:
            raise NotFoundError("Dropout role not found")
        role_id = role.id
        client_id = role.client_id
        team_id = role.team_id
        account_manager_id = role.account_manager_id
        db.add(
            RoleStatusPending(
                role_id=role.id,
                previous_status=role.status,
                reason=DROPOUT_REASON,
                created_by_user_id=principal.id,
            )
        )
        logger.info("dropout reported role_id=%s recruiter_id=%s", role.id, principal.id)
    elif role_id:
        role = db.get(Role, role_id)
        if role is None:
            raise NotFoundError("Role not found")
        account_manager_id = role.account_manager_id
        client_id = client_id or role.client_id
        team_id = team_id or role.team_id
        if entry_type == "deal":
            role.status = "deal"
            role.updated_at = datetime.utcnow()
            logger.info("role closed by deal role_id=%s recruiter_id=%s", role.id, principal.id)

    manager = team_manager(db, team_id) if team_id else None
    db.add(
        Submission(
            recruiter_user_id=principal.id,
            client_id=client_id,
            team_id=team_id,
            role_id=role_id,
            account_manager_id=account_manager_id,
            recruitment_manager_id=manager.id if manager else None,
            submission_type=data.get("submission_type"),
            submission_date=submission_date,
            notes=data.get("notes") or "",
            entry_type=entry_type,
            interview_level=data.get("interview_level"),
            dropout_role_id=data.get("dropout_role_id"),
        )
    )
    db.commit()


def _submission_query(db: Session, recruiter_id: int):
    return db.query(Submission).filter(Submission.recruiter_user_id == recruiter_id)


def list_submissions(
    db: Session, principal: Principal, window: Optional[DateRange] = None, client_id: Optional[int] = None
) -> dict:
    manager = aliased(User)
    query = (
        db.query(Submission, Client, Team, Role, manager)
        .outerjoin(Client, Client.id == Submission.client_id)
        .outerjoin(Team, Team.id == Submission.team_id)
        .outerjoin(Role, Role.id == Submission.role_id)
        .outerjoin(manager, manager.id == Submission.account_manager_id)
        .filter(Submission.recruiter_user_id == principal.id)
    )
    if client_id is not None:
        query = query.filter(Submission.client_id == client_id)
    if window is not None:
        query = query.filter(Submission.submission_date.between(window.start, window.end))
    rows = query.order_by(Submission.submission_date.desc(), Submission.created_at.desc()).all()

    submissions = [
        {
            "id": row.id,
            "client_id": row.client_id,
            "team_id": row.team_id,
            "role_id": row.role_id,
            "submission_type": row.submission_type,
            "submission_date": row.submission_date,
            "entry_type": row.entry_type,
            "interview_level": row.interview_level,
            "dropout_role_id": row.dropout_role_id,
            "notes": row.notes,
            "created_at": row.created_at,
            "client_name": client.name if client else None,
            "team_name": team.name if team else None,
            "role_title": role.title if role else None,
            "role_code": role.role_code if role else None,
            "account_manager_name": am.name if am else None,
        }
        for row, client, team, role, am in rows
    ]
    counts = count_entries(submission_entries(row for row, *_ in rows))
    stats = {
        "total": counts.total,
        "submission_6h": counts.submission_6h,
        "submission_24h": counts.submission_24h,
        "submission_after_24h": counts.submission_after_24h,
        "interviews": counts.interviews,
        "deals": counts.deals,
        "dropouts": counts.dropouts,
    }
    return {"submissions": submissions, "stats": stats}


def ebes_for_recruiter(
    db: Session,
    recruiter_id: int,
    window: Optional[DateRange] = None,
    cfg: Optional[dict] = None,
    client_id: Optional[int] = None,
) -> ScoreResult:
    query = _submission_query(db, recruiter_id)
    if client_id is not None:
        query = query.filter(Submission.client_id == client_id)
    return compute_score(RECRUITER, submission_entries(query.all()), (), window, cfg)


def ebes(
    db: Session,
    principal: Principal,
    filter_by: str = "combined",
    client_id: Optional[int] = None,
    cfg: Optional[dict] = None,
    today: Optional[date] = None,
) -> dict:
    """Score over the current month ("date"), one client ("client") or everything ("combined")."""
    window = DateRange.current_month(today or _today()) if filter_by == "date" else None
    scoped_client = client_id if filter_by == "client" else None
    result = ebes_for_recruiter(db, principal.id, window, cfg, client_id=scoped_client)
    breakdown = dict(result.breakdown)
    return {
        "score": result.score,
        "performance_label": result.performance_label.value,
        "breakdown": breakdown,
    }


def ebes_score(
    db: Session,
    principal: Principal,
    filter_by: str = "current_month",
    start=None,
    end=None,
    cfg: Optional[dict] = None,
    today: Optional[date] = None,
) -> dict:
    today = today or _today()
    if filter_by == "custom":
        window = DateRange.from_params(start, end)
    elif filter_by == "all":
        window = None
    else:
        window = window_for(filter_by, None, None, today)
    result = ebes_for_recruiter(db, principal.id, window, cfg)
    return {"score": result.score, "performance_label": result.performance_label.value}


def all_roles(db: Session, principal: Principal) -> list[dict]:
    rows = (
        db.query(Role.id, Role.title, Role.role_code)
        .join(Submission, Submission.role_id == Role.id)
        .filter(Submission.recruiter_user_id == principal.id)
        .distinct()
        .order_by(Role.title.asc())
        .all()
    )
    return [{"id": role_id, "title": title, "role_code": code} for role_id, title, code in rows]


def _breakdown(rows: list[tuple[Submission, object]], name_attr: str, key: str) -> list[dict]:
    names: dict = {}
    counts: dict = {}
    for _, owner in rows:
        if owner is None:
            continue
        names[owner.id] = getattr(owner, name_attr)
        counts[owner.id] = counts.get(owner.id, 0) + 1
    ordered = sorted(counts, key=lambda owner_id: counts[owner_id], reverse=True)
    return [{key: names[owner_id], "count": counts[owner_id]} for owner_id in ordered]


def analytics(
    db: Session,
    principal: Principal,
    client_id: Optional[int] = None,
    role_id: Optional[int] = None,
    entry_type: Optional[str] = None,
    date_range: str = "this_month",
    start=None,
    end=None,
    today: Optional[date] = None,
) -> dict:
    today = today or _today()
    if date_range == "custom":
        window = DateRange.from_params(start, end)
    else:
        window = window_for(date_range, None, None, today)

    query = _submission_query(db, principal.id)
    if role_id is not None:
        query = query.filter(Submission.role_id == role_id)
    if entry_type:
        query = query.filter(Submission.entry_type == entry_type)
    # Client breakdown ignores the client filter so the chart keeps its context.
    unscoped = query.all()
    scoped = [row for row in unscoped if client_id is None or row.client_id == client_id]
    windowed = [row for row in scoped if window is None or window.contains(row.submission_date)]
    counts = count_entries(submission_entries(windowed))

    active_roles_count = (
        db.query(Role.id)
        .join(Submission, Submission.role_id == Role.id)
        .filter(Submission.recruiter_user_id == principal.id, Role.status == "active")
        .distinct()
        .count()
    )

    clients = {c.id: c for c in db.query(Client).all()}
    teams = {t.id: t for t in db.query(Team).all()}
    unscoped_windowed = [row for row in unscoped if window is None or window.contains(row.submission_date)]
    client_rows = [(row, clients.get(row.client_id)) for row in unscoped_windowed]
    team_rows = [(row, teams.get(row.team_id)) for row in windowed]

    entries = submission_entries(scoped)
    return {
        "total_submissions": counts.submissions,
        "total_interviews": counts.interviews,
        "interview_1": counts.interview_1,
        "interview_2": counts.interview_2,
        "interview_3": counts.interview_3,
        "total_deals": counts.deals,
        "total_dropouts": counts.dropouts,
        "active_roles_count": active_roles_count,
        "client_breakdown": _breakdown(client_rows, "name", "client_name"),
        "team_breakdown": _breakdown(team_rows, "name", "team_name"),
        "daily_trend": daily_trend(entries, today),
        "monthly_trend": monthly_trend(entries, today),
    }
