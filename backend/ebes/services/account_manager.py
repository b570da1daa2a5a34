"""Account-manager workflows: requisitions, interview tallies, dropouts and analytics."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ebes.core.config import settings
from ebes.models.org import Client, Team
from ebes.models.reminder import MonthlyReminder
from ebes.models.role import ROLE_STATUSES, Role, RoleInterview, RoleStatusPending
from ebes.models.user import User
from ebes.services import health
from ebes.services.activity import (
    ActivityEntry,
    DateRange,
    RoleRecord,
    count_entries,
    count_roles,
    filter_roles,
    group_entries,
    group_roles,
    monthly_comparison,
)
from ebes.services.errors import ConflictError, NotFoundError
from ebes.services.org import assigned_clients, assigned_teams, client_payload, team_payload
from ebes.services.records import interview_entry, role_records
from ebes.services.scoring import ACCOUNT_MANAGER, EbesScorer, ScoreResult, compute_score
from ebes.services.trends import conversion_rate, dropoff_rate, growth_percentage, growth_rate, round0, round1
from ebes.services.users import Principal

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.utcnow().date()


def _month(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def get_assignments(db: Session, principal: Principal) -> dict:
    return {
        "clients": [client_payload(c) for c in assigned_clients(db, principal.id)],
        "teams": [team_payload(t) for t in assigned_teams(db, principal.id)],
    }


def reminder_status(db: Session, principal: Principal, today: Optional[date] = None) -> dict:
    current_month = _month(today or _today())
    reminder = (
        db.query(MonthlyReminder)
        .filter(MonthlyReminder.user_id == principal.id, MonthlyReminder.reminder_month == current_month)
        .first()
    )
    return {"should_show": not reminder or not reminder.is_confirmed, "current_month": current_month}


def confirm_reminder(db: Session, principal: Principal, today: Optional[date] = None) -> None:
    current_month = _month(today or _today())
    query = db.query(MonthlyReminder).filter(
        MonthlyReminder.user_id == principal.id, MonthlyReminder.reminder_month == current_month
    )
    row = query.first()
    if row:
        row.is_confirmed = True
        db.commit()
        return
    db.add(MonthlyReminder(user_id=principal.id, reminder_month=current_month, is_confirmed=True))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        query.update({MonthlyReminder.is_confirmed: True}, synchronize_session=False)
        db.commit()


def interview_rounds(db: Session, role_ids: list[int]) -> dict[int, dict[int, int]]:
    """Interview totals per role and round, over all recorded months."""
    totals: dict[int, dict[int, int]] = {role_id: {1: 0, 2: 0, 3: 0} for role_id in role_ids}
    if not role_ids:
        return totals
    for row in db.query(RoleInterview).filter(RoleInterview.role_id.in_(role_ids)).all():
        rounds = totals.setdefault(row.role_id, {1: 0, 2: 0, 3: 0})
        if row.interview_round in rounds:
            rounds[row.interview_round] += row.interview_count
    return totals


def role_payload(role: Role, client: Client | None, team: Team | None, rounds: dict | None = None) -> dict:
    rounds = rounds or {1: 0, 2: 0, 3: 0}
    return {
        "id": role.id,
        "role_code": role.role_code,
        "client_id": role.client_id,
        "team_id": role.team_id,
        "account_manager_id": role.account_manager_id,
        "title": role.title,
        "description": role.description,
        "status": role.status,
        "created_at": role.created_at,
        "updated_at": role.updated_at,
        "client_name": client.name if client else None,
        "team_name": team.name if team else None,
        "interview_1_count": rounds[1],
        "interview_2_count": rounds[2],
        "interview_3_count": rounds[3],
        "total_interviews": rounds[1] + rounds[2] + rounds[3],
    }


def list_roles(db: Session, principal: Principal, status: Optional[str] = None) -> list[dict]:
    query = (
        db.query(Role, Client, Team)
        .join(Client, Client.id == Role.client_id)
        .join(Team, Team.id == Role.team_id)
        .filter(Role.account_manager_id == principal.id)
    )
    if status == "active":
        query = query.filter(Role.status == "active")
    elif status == "non-active":
        query = query.filter(Role.status != "active")
    rows = query.order_by(Role.created_at.desc(), Role.id.desc()).all()
    rounds = interview_rounds(db, [role.id for role, _, _ in rows])
    return [role_payload(role, client, team, rounds.get(role.id)) for role, client, team in rows]


def _owned_role(db: Session, principal: Principal, role_id: int) -> Role:
    role = db.query(Role).filter(Role.id == role_id, Role.account_manager_id == principal.id).first()
    if not role:
        raise NotFoundError("Role not found")
    return role


def create_role(
    db: Session, principal: Principal, client_id: int, team_id: int, title: str, description: str = ""
) -> dict:
    active_count = (
        db.query(Role).filter(Role.account_manager_id == principal.id, Role.status == "active").count()
    )
    limit = settings.max_active_roles_per_am
    if active_count >= limit:
        logger.warning("active role limit reached account_manager_id=%s active=%s", principal.id, active_count)
        raise ConflictError(
            f"You have reached the maximum of {limit} active roles. Please update role statuses to continue."
        )
    if db.get(Client, client_id) is None:
        raise NotFoundError("Client not found")
    if db.get(Team, team_id) is None:
        raise NotFoundError("Team not found")

    now = datetime.utcnow()
    role = Role(
        client_id=client_id,
        team_id=team_id,
        account_manager_id=principal.id,
        title=title,
        description=description or "",
        status="active",
        created_at=now,
        updated_at=now,
    )
    db.add(role)
    db.flush()
    role.role_code = f"ROLE-{role.id:04d}"
    db.commit()
    logger.info("role created id=%s code=%s account_manager_id=%s", role.id, role.role_code, principal.id)
    return {"success": True, "id": role.id, "role_code": role.role_code}


def update_role(db: Session, principal: Principal, role_id: int, changes: dict) -> None:
    role = _owned_role(db, principal, role_id)
    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        raise ConflictError("No fields to update")
    if "status" in changes and changes["status"] not in ROLE_STATUSES:
        raise ConflictError(f"unknown status={changes['status']}")
    for key in ("title", "description", "status"):
        if key in changes:
            setattr(role, key, changes[key])
    role.updated_at = datetime.utcnow()
    db.commit()
    logger.info("role updated id=%s fields=%s", role.id, sorted(changes))


def delete_role(db: Session, principal: Principal, role_id: int) -> None:
    role = _owned_role(db, principal, role_id)
    db.query(RoleInterview).filter(RoleInterview.role_id == role.id).delete(synchronize_session=False)
    db.query(RoleStatusPending).filter(RoleStatusPending.role_id == role.id).delete(synchronize_session=False)
    db.delete(role)
    db.commit()
    logger.info("role deleted id=%s", role_id)


def add_interview(
    db: Session, principal: Principal, role_id: int, interview_round: int, interview_count: int,
    today: Optional[date] = None,
) -> None:
    role = _owned_role(db, principal, role_id)
    db.add(
        RoleInterview(
            role_id=role.id,
            interview_round=interview_round,
            interview_count=interview_count,
            entry_month=_month(today or _today()),
        )
    )
    db.commit()


def list_dropout_requests(db: Session, principal: Principal) -> list[dict]:
    rows = (
        db.query(RoleStatusPending, Role, Client, User)
        .join(Role, Role.id == RoleStatusPending.role_id)
        .join(Client, Client.id == Role.client_id)
        .outerjoin(User, User.id == RoleStatusPending.created_by_user_id)
        .filter(Role.account_manager_id == principal.id, RoleStatusPending.is_resolved.is_(False))
        .order_by(RoleStatusPending.created_at.desc())
        .all()
    )
    return [
        {
            "id": pending.id,
            "role_id": role.id,
            "role_code": role.role_code,
            "role_title": role.title,
            "client_name": client.name,
            "current_status": role.status,
            "previous_status": pending.previous_status,
            "reason": pending.reason,
            "recruiter_name": recruiter.name if recruiter else None,
            "created_at": pending.created_at,
        }
        for pending, role, client, recruiter in rows
    ]


def resolve_dropout_request(db: Session, principal: Principal, request_id: int, status: str) -> None:
    if status not in ROLE_STATUSES:
        raise ConflictError(f"unknown status={status}")
    row = (
        db.query(RoleStatusPending, Role)
        .join(Role, Role.id == RoleStatusPending.role_id)
        .filter(RoleStatusPending.id == request_id, Role.account_manager_id == principal.id)
        .first()
    )
    if not row:
        raise NotFoundError("Dropout request not found")
    pending, role = row
    if pending.is_resolved:
        raise ConflictError("Dropout request already resolved")
    now = datetime.utcnow()
    role.status = status
    role.updated_at = now
    pending.is_resolved = True
    pending.resolved_status = status
    pending.resolved_at = now
    db.commit()
    logger.info("dropout resolved request_id=%s role_id=%s status=%s", request_id, role.id, status)


def _load_roles(
    db: Session,
    account_manager_id: int,
    client_id: Optional[int] = None,
    team_id: Optional[int] = None,
    status: Optional[str] = None,
) -> list[Role]:
    query = db.query(Role).filter(Role.account_manager_id == account_manager_id)
    if client_id is not None:
        query = query.filter(Role.client_id == client_id)
    if team_id is not None:
        query = query.filter(Role.team_id == team_id)
    if status and status != "all":
        query = query.filter(Role.status == status)
    return query.all()


def _interview_entries(db: Session, roles: list[Role]) -> list[ActivityEntry]:
    by_id = {role.id: role for role in roles}
    if not by_id:
        return []
    rows = db.query(RoleInterview).filter(RoleInterview.role_id.in_(list(by_id))).all()
    return [interview_entry(row, by_id[row.role_id]) for row in rows]


def _entries_for(entries: list[ActivityEntry], records: list[RoleRecord]) -> list[ActivityEntry]:
    ids = {record.id for record in records}
    return [entry for entry in entries if entry.role_id in ids]


def ebes_for_account_manager(
    db: Session,
    account_manager_id: int,
    window: Optional[DateRange] = None,
    cfg: Optional[dict] = None,
    client_id: Optional[int] = None,
    team_id: Optional[int] = None,
) -> ScoreResult:
    roles = _load_roles(db, account_manager_id, client_id=client_id, team_id=team_id)
    records = filter_roles(role_records(roles), window)
    # Only interviews on roles opened inside the window count towards it.
    entries = _entries_for(_interview_entries(db, roles), records)
    return compute_score(ACCOUNT_MANAGER, entries, records, window, cfg)


def client_analytics(
    db: Session,
    principal: Principal,
    window: Optional[DateRange] = None,
    today: Optional[date] = None,
) -> dict:
    today = today or _today()
    clients = assigned_clients(db, principal.id)
    roles = _load_roles(db, principal.id)
    records = filter_roles(role_records(roles), window)
    entries = _entries_for(_interview_entries(db, roles), records)
    roles_by_client = group_roles(records, "client_id")
    entries_by_client = group_entries(entries, "client_id")

    analytics = []
    for client in clients:
        client_roles = roles_by_client.get(client.id, [])
        client_entries = entries_by_client.get(client.id, [])
        counts = count_roles(client_roles)
        interviews = count_entries(client_entries)

        if window is None:
            comparison = monthly_comparison(client_roles, client_entries, today)
        else:
            # With an explicit range the "current" interview figure covers the
            # whole range and there is no previous period.
            comparison = monthly_comparison(client_roles, [], today)
            comparison.current.interviews = count_entries(client_entries, window).interviews
        current, previous = comparison.current, comparison.previous

        score = health.client_health_score(counts, interviews.interviews, current.deals, previous.deals)
        analytics.append(
            {
                "client_id": client.id,
                "client_name": client.name,
                "client_code": client.client_code,
                "total_roles": counts.total,
                "active_roles": counts.active,
                "deal_roles": counts.deal,
                "lost_roles": counts.lost,
                "on_hold_roles": counts.on_hold,
                "cancelled_roles": counts.cancelled,
                "no_answer_roles": counts.no_answer,
                "total_interviews": interviews.interviews,
                "interview_1_count": interviews.interview_1,
                "interview_2_count": interviews.interview_2,
                "interview_3_count": interviews.interview_3,
                "roles_to_deal_conversion": round1(conversion_rate(counts.deal, counts.total)),
                "interview_to_deal_conversion": round1(conversion_rate(counts.deal, interviews.interviews)),
                "stage_1_to_2_dropoff": round1(dropoff_rate(interviews.interview_1, interviews.interview_2)),
                "stage_2_to_3_dropoff": round1(dropoff_rate(interviews.interview_2, interviews.interview_3)),
                **comparison.as_dict(),
                "roles_growth": growth_rate(current.roles_created, previous.roles_created),
                "interviews_growth": growth_rate(current.interviews, previous.interviews),
                "deals_growth": growth_rate(current.deals, previous.deals),
                "health_score": round0(score),
                "health_tag": health.client_health_tag(score),
                **health.risk_indicators(counts, interviews.interviews, current.deals),
            }
        )

    return {
        "clients": analytics,
        "summary": {
            "total_clients": len(analytics),
            "strong_accounts": sum(1 for item in analytics if item["health_tag"] == health.STRONG_ACCOUNT),
            "average_accounts": sum(1 for item in analytics if item["health_tag"] == health.AVERAGE_ACCOUNT),
            "at_risk_accounts": sum(1 for item in analytics if item["health_tag"] == health.AT_RISK_ACCOUNT),
        },
    }


def performance(
    db: Session,
    principal: Principal,
    client_id: Optional[int] = None,
    team_id: Optional[int] = None,
    status: Optional[str] = None,
    window: Optional[DateRange] = None,
    cfg: Optional[dict] = None,
    today: Optional[date] = None,
) -> dict:
    today = today or _today()
    roles = _load_roles(db, principal.id, client_id=client_id, team_id=team_id, status=status)
    records = filter_roles(role_records(roles), window)
    entries = _entries_for(_interview_entries(db, roles), records)

    counts = count_roles(records)
    interviews = count_entries(entries)
    ebes = EbesScorer(cfg).score_account_manager(counts, interviews)
    comparison = monthly_comparison(records, entries, today)
    current, previous = comparison.current, comparison.previous

    client_ids = sorted({r.client_id for r in records if r.client_id is not None})
    team_ids = sorted({r.team_id for r in records if r.team_id is not None})
    clients = {c.id: c for c in db.query(Client).filter(Client.id.in_(client_ids)).all()} if client_ids else {}
    teams = {t.id: t for t in db.query(Team).filter(Team.id.in_(team_ids)).all()} if team_ids else {}
    roles_by_client = group_roles(records, "client_id")
    roles_by_team = group_roles(records, "team_id")
    entries_by_client = group_entries(entries, "client_id")
    entries_by_team = group_entries(entries, "team_id")

    client_performance = []
    for cid in client_ids:
        client = clients.get(cid)
        if client is None:
            continue
        c_counts = count_roles(roles_by_client.get(cid, []))
        c_interviews = count_entries(entries_by_client.get(cid, []))
        client_performance.append(
            {
                "client_id": cid,
                "client_name": client.name,
                "client_code": client.client_code,
                "total_roles": c_counts.total,
                "active_roles": c_counts.active,
                "interview_1": c_interviews.interview_1,
                "interview_2": c_interviews.interview_2,
                "interview_3": c_interviews.interview_3,
                "deals": c_counts.deal,
                "lost": c_counts.lost,
                "on_hold": c_counts.on_hold,
                "no_answer": c_counts.no_answer,
                "health": health.client_deal_health(c_counts),
            }
        )

    team_performance = []
    for tid in team_ids:
        team = teams.get(tid)
        if team is None:
            continue
        t_counts = count_roles(roles_by_team.get(tid, []))
        team_performance.append(
            {
                "team_id": tid,
                "team_name": team.name,
                "team_code": team.team_code,
                "total_roles": t_counts.total,
                "active_roles": t_counts.active,
                "total_interviews": count_entries(entries_by_team.get(tid, [])).interviews,
                "total_deals": t_counts.deal,
                "total_lost": t_counts.lost,
                "performance_label": health.team_deal_label(t_counts),
            }
        )

    return {
        "overview": {
            "total_roles": counts.total,
            "active_roles": counts.active,
            "non_active_roles": counts.non_active,
            "total_interviews": interviews.interviews,
            "interview_1_count": interviews.interview_1,
            "interview_2_count": interviews.interview_2,
            "interview_3_count": interviews.interview_3,
            "total_deals": counts.deal,
            "total_lost": counts.lost,
            "total_on_hold": counts.on_hold,
            "total_no_answer": counts.no_answer,
            "total_cancelled": counts.cancelled,
            "ebes_score": ebes.score,
            "performance_label": ebes.performance_label.value,
            "current_month": {
                "roles": current.roles_created,
                "interviews": current.interviews,
                "deals": current.deals,
                "lost": current.lost,
            },
            "last_month": {
                "roles": previous.roles_created,
                "interviews": previous.interviews,
                "deals": previous.deals,
                "lost": previous.lost,
            },
            "growth": {
                "roles": growth_percentage(current.roles_created, previous.roles_created),
                "interviews": growth_percentage(current.interviews, previous.interviews),
                "deals": growth_percentage(current.deals, previous.deals),
                "lost": growth_percentage(current.lost, previous.lost),
            },
            "roles_to_interviews_conversion": round1(conversion_rate(interviews.interviews, counts.total)),
            "interviews_to_deals_conversion": round1(conversion_rate(counts.deal, interviews.interviews)),
        },
        "client_performance": client_performance,
        "team_performance": team_performance,
    }
