from __future__ import annotations
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ebes.models.org import ClientAssignment, RecruiterClientAssignment, RecruiterTeamAssignment, TeamAssignment
from ebes.models.role import Role
from ebes.models.submission import Submission
from ebes.models.user import USER_ROLES, User
from ebes.services.account_manager import ebes_for_account_manager, interview_rounds
from ebes.services.activity import DateRange, count_entries, count_roles, filter_roles
from ebes.services.errors import ConflictError, NotFoundError
from ebes.services.org import assigned_teams, recruiter_teams, team_recruiters
from ebes.services.records import role_records, submission_entries
from ebes.services.recruiter import ebes_for_recruiter
from ebes.services.recruitment_manager import ebes_for_recruitment_manager
from ebes.services.scoring import (
    ACCOUNT_MANAGER,
    RECRUITER,
    RECRUITMENT_MANAGER,
    SCORED_ROLES,
    EbesScorer,
    ScoreResult,
)
from ebes.services.users import user_payload

logger = logging.getLogger(__name__)

LEADERBOARD_SIZE = 5


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def create_user(db: Session, name: str, email: str, password: str, role: str) -> User:
    if role not in USER_ROLES:
        raise ConflictError(f"unknown role={role}")
    user = User(name=name.strip(), email=email.strip().lower(), password=password, role=role, is_active=True)
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A user with this email already exists")
    user.user_code = f"USR-{user.id:04d}"
    db.commit()
    db.refresh(user)
    logger.info("user created id=%s role=%s", user.id, user.role)
    return user


def update_user(db: Session, user_id: int, changes: dict) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        raise ConflictError("No fields to update")
    if "role" in changes and changes["role"] not in USER_ROLES:
        raise ConflictError(f"unknown role={changes['role']}")
    if "email" in changes:
        changes["email"] = changes["email"].strip().lower()
    for key in ("name", "email", "password", "role", "is_active"):
        if key in changes:
            setattr(user, key, changes[key])
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A user with this email already exists")
    db.refresh(user)
    logger.info("user updated id=%s fields=%s", user.id, sorted(k for k in changes if k != "password"))
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _team_member(db: Session, user: User, team_id: int) -> bool:
    if user.role == RECRUITER:
        model, column = RecruiterTeamAssignment, RecruiterTeamAssignment.recruiter_user_id
    else:
        model, column = TeamAssignment, TeamAssignment.user_id
    return db.query(model).filter(column == user.id, model.team_id == team_id).first() is not None


def _client_member(db: Session, user: User, client_id: int) -> bool:
    if user.role == RECRUITER:
        model, column = RecruiterClientAssignment, RecruiterClientAssignment.recruiter_user_id
    else:
        model, column = ClientAssignment, ClientAssignment.user_id
    return db.query(model).filter(column == user.id, model.client_id == client_id).first() is not None


def _recruiter_stats(
    db: Session, user: User, window: Optional[DateRange], cfg: Optional[dict], client_id: Optional[int]
) -> tuple[ScoreResult, dict]:
    result = ebes_for_recruiter(db, user.id, window, cfg, client_id=client_id)
    query = db.query(Submission).filter(Submission.recruiter_user_id == user.id)
    if client_id is not None:
        query = query.filter(Submission.client_id == client_id)
    rows = query.all()
    counts = count_entries(submission_entries(rows), window)
    role_ids = {row.role_id for row in rows if row.role_id is not None}
    roles = db.query(Role).filter(Role.id.in_(role_ids)).all() if role_ids else []
    touched = count_roles(role_records(roles))
    return result, {
        "total_submissions": counts.submissions,
        "interviews_1st": counts.interview_1,
        "interviews_2nd": counts.interview_2,
        "interviews_3rd": counts.interview_3,
        "total_interviews": counts.interviews,
        "deals": counts.deals,
        "dropouts": counts.dropouts,
        "active_roles": touched.active,
        "non_active_roles": touched.total - touched.active,
    }


def _account_manager_stats(
    db: Session,
    user: User,
    window: Optional[DateRange],
    cfg: Optional[dict],
    client_id: Optional[int],
    team_id: Optional[int],
) -> tuple[ScoreResult, dict]:
    result = ebes_for_account_manager(db, user.id, window, cfg, client_id=client_id, team_id=team_id)
    query = db.query(Role).filter(Role.account_manager_id == user.id)
    if client_id is not None:
        query = query.filter(Role.client_id == client_id)
    if team_id is not None:
        query = query.filter(Role.team_id == team_id)
    records = filter_roles(role_records(query.all()), window)
    counts = count_roles(records)
    rounds = interview_rounds(db, [record.id for record in records])
    return result, {
        "total_roles": counts.total,
        "active_roles": counts.active,
        "deals_closed_roles": counts.deal,
        "lost_roles": counts.lost,
        "on_hold_roles": counts.on_hold,
        "no_answer_roles": counts.no_answer,
        "total_interviews": sum(sum(per_round.values()) for per_round in rounds.values()),
    }


def _recruitment_manager_stats(
    db: Session, user: User, window: Optional[DateRange], cfg: Optional[dict]
) -> tuple[ScoreResult, dict]:
    result = ebes_for_recruitment_manager(db, user.id, window, cfg)
    team_ids = [team.id for team in assigned_teams(db, user.id)]
    recruiters = {recruiter.id for recruiter, _ in team_recruiters(db, team_ids)}
    breakdown = result.breakdown
    return result, {
        "managed_teams": len(team_ids),
        "total_recruiters": len(recruiters),
        "total_roles": breakdown.get("total_roles", 0),
        "active_roles": breakdown.get("active_roles", 0),
        "total_deals": breakdown.get("total_deals", 0),
        "total_interviews": breakdown.get("total_interviews", 0),
    }


def user_score(
    db: Session,
    user: User,
    window: Optional[DateRange] = None,
    cfg: Optional[dict] = None,
    client_id: Optional[int] = None,
    team_id: Optional[int] = None,
) -> tuple[ScoreResult, dict]:
    if user.role == RECRUITER:
        return _recruiter_stats(db, user, window, cfg, client_id)
    if user.role == ACCOUNT_MANAGER:
        return _account_manager_stats(db, user, window, cfg, client_id, team_id)
    if user.role == RECRUITMENT_MANAGER:
        return _recruitment_manager_stats(db, user, window, cfg)
    raise ConflictError(f"no EBES score for role={user.role}")


def _scored_users(db: Session, role: Optional[str] = None, user_name: Optional[str] = None) -> list[User]:
    query = db.query(User).filter(User.role.in_(SCORED_ROLES), User.is_active.is_(True))
    if role and role != "all":
        query = query.filter(User.role == role)
    if user_name:
        query = query.filter(User.name.ilike(f"%{user_name.strip()}%"))
    return query.order_by(User.name.asc()).all()


def _teams_for(db: Session, user: User):
    return recruiter_teams(db, user.id) if user.role == RECRUITER else assigned_teams(db, user.id)


def performance_stats(
    db: Session,
    cfg: Optional[dict] = None,
    role: Optional[str] = None,
    user_name: Optional[str] = None,
    team_id: Optional[int] = None,
    client_id: Optional[int] = None,
    window: Optional[DateRange] = None,
) -> list[dict]:
    scorer = EbesScorer(cfg)
    stats = []
    for user in _scored_users(db, role, user_name):
        if team_id is not None and not _team_member(db, user, team_id):
            continue
        if client_id is not None and not _client_member(db, user, client_id):
            continue
        result, details = user_score(db, user, window, cfg, client_id=client_id, team_id=team_id)
        stats.append(
            {
                **user_payload(user),
                "user_id": user.id,
                "teams": [{"id": t.id, "name": t.name, "code": t.team_code} for t in _teams_for(db, user)],
                "ebes_score": result.score,
                "performance_label": result.performance_label.value,
                "admin_label": scorer.admin_label(result.score).value,
                **details,
            }
        )
    stats.sort(key=lambda item: item["ebes_score"], reverse=True)
    return stats


def leaderboards(
    db: Session, cfg: Optional[dict] = None, window: Optional[DateRange] = None, size: int = LEADERBOARD_SIZE
) -> dict:
    boards: dict[str, list[dict]] = {RECRUITER: [], ACCOUNT_MANAGER: [], RECRUITMENT_MANAGER: []}
    for user in _scored_users(db):
        result, _ = user_score(db, user, window, cfg)
        teams = _teams_for(db, user)
        boards[user.role].append(
            {
                "user_id": user.id,
                "name": user.name,
                "team": teams[0].name if teams else None,
                "ebes_score": result.score,
                "performance_label": result.performance_label.value,
            }
        )
    for entries in boards.values():
        entries.sort(key=lambda item: item["ebes_score"], reverse=True)
        del entries[size:]
    return {
        "recruiters": boards[RECRUITER],
        "account_managers": boards[ACCOUNT_MANAGER],
        "recruitment_managers": boards[RECRUITMENT_MANAGER],
    }
