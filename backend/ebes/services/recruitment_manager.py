"""Recruitment-manager views over the teams a manager is assigned to."""
from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from ebes.models.org import Client, RecruiterTeamAssignment, Team, TeamAssignment
from ebes.models.role import Role, RoleInterview
from ebes.models.submission import Submission
from ebes.models.user import User
from ebes.services.account_manager import interview_rounds
from ebes.services.activity import DateRange, count_entries, count_roles, group_entries, group_roles
from ebes.services.errors import NotFoundError
from ebes.services.org import assigned_clients, assigned_teams, client_payload, team_payload, team_recruiters
from ebes.services.records import interview_entry, role_records, submission_entries
from ebes.services.scoring import RECRUITMENT_MANAGER, ScoreResult, compute_score
from ebes.services.users import Principal


def _team_ids(db: Session, manager_id: int) -> list[int]:
    return [team.id for team in assigned_teams(db, manager_id)]


def list_teams(db: Session, principal: Principal) -> list[dict]:
    return [team_payload(team) for team in assigned_teams(db, principal.id)]


def list_clients(db: Session, principal: Principal) -> list[dict]:
    return [client_payload(client) for client in assigned_clients(db, principal.id)]


def list_recruiters(db: Session, principal: Principal) -> list[dict]:
    return [
        {
            "id": user.id,
            "user_code": user.user_code,
            "name": user.name,
            "email": user.email,
            "is_active": user.is_active,
            "team_id": team.id,
            "team_name": team.name,
            "team_code": team.team_code,
        }
        for user, team in team_recruiters(db, _team_ids(db, principal.id))
    ]


def list_roles(db: Session, principal: Principal, status: Optional[str] = None) -> list[dict]:
    team_ids = _team_ids(db, principal.id)
    if not team_ids:
        return []
    query = (
        db.query(Role, Client, Team, User)
        .join(Client, Client.id == Role.client_id)
        .join(Team, Team.id == Role.team_id)
        .join(User, User.id == Role.account_manager_id)
        .filter(Role.team_id.in_(team_ids))
    )
    if status == "active":
        query = query.filter(Role.status == "active")
    elif status == "non-active":
        query = query.filter(Role.status != "active")
    rows = query.order_by(Role.created_at.desc(), Role.id.desc()).all()
    rounds = interview_rounds(db, [role.id for role, *_ in rows])
    result = []
    for role, client, team, manager in rows:
        per_round = rounds.get(role.id, {1: 0, 2: 0, 3: 0})
        result.append(
            {
                "id": role.id,
                "role_code": role.role_code,
                "title": role.title,
                "status": role.status,
                "client_id": role.client_id,
                "client_name": client.name,
                "team_id": role.team_id,
                "team_name": team.name,
                "account_manager_id": role.account_manager_id,
                "account_manager_name": manager.name,
                "total_interviews": sum(per_round.values()),
                "created_at": role.created_at,
                "updated_at": role.updated_at,
            }
        )
    return result


def _team_roles(db: Session, team_ids: list[int], client_id: Optional[int] = None, team_id: Optional[int] = None):
    query = db.query(Role).filter(Role.team_id.in_(team_ids))
    if team_id is not None:
        query = query.filter(Role.team_id == team_id)
    if client_id is not None:
        query = query.filter(Role.client_id == client_id)
    return query.all()


def _interview_entries(db: Session, roles: list[Role]):
    by_id = {role.id: role for role in roles}
    if not by_id:
        return []
    rows = db.query(RoleInterview).filter(RoleInterview.role_id.in_(list(by_id))).all()
    return [interview_entry(row, by_id[row.role_id]) for row in rows]


def analytics(
    db: Session,
    principal: Principal,
    window: Optional[DateRange] = None,
    team_id: Optional[int] = None,
    client_id: Optional[int] = None,
    recruiter_id: Optional[int] = None,
) -> dict:
    teams = assigned_teams(db, principal.id)
    team_ids = [team.id for team in teams]
    if not team_ids:
        return {
            "total_teams": 0,
            "total_recruiters": 0,
            "total_active_roles": 0,
            "total_non_active_roles": 0,
            "total_interviews": 0,
            "total_deals": 0,
            "total_lost": 0,
            "total_on_hold": 0,
            "total_no_answer": 0,
            "team_breakdown": [],
            "recruiter_breakdown": [],
        }

    roles = [
        role
        for role in _team_roles(db, team_ids, client_id=client_id, team_id=team_id)
        if window is None or window.contains(role.created_at)
    ]
    records = role_records(roles)
    # Interview tallies are attached to roles, so every month of a selected role counts.
    interviews = _interview_entries(db, roles)
    counts = count_roles(records)
    roles_by_team = group_roles(records, "team_id")
    interviews_by_team = group_entries(interviews, "team_id")

    team_breakdown = []
    for team in teams:
        t_counts = count_roles(roles_by_team.get(team.id, []))
        team_breakdown.append(
            {
                "team_id": team.id,
                "team_name": team.name,
                "team_code": team.team_code,
                "total_roles": t_counts.total,
                "active_roles": t_counts.active,
                "interviews": count_entries(interviews_by_team.get(team.id, [])).interviews,
                "deals": t_counts.deal,
                "lost": t_counts.lost,
                "on_hold": t_counts.on_hold,
                "no_answer": t_counts.no_answer,
            }
        )

    recruiters: dict[int, User] = {}
    for user, _ in team_recruiters(db, team_ids):
        if recruiter_id is None or user.id == recruiter_id:
            recruiters.setdefault(user.id, user)

    submissions = db.query(Submission).filter(Submission.team_id.in_(team_ids))
    if team_id is not None:
        submissions = submissions.filter(Submission.team_id == team_id)
    if client_id is not None:
        submissions = submissions.filter(Submission.client_id == client_id)
    if window is not None:
        submissions = submissions.filter(Submission.submission_date.between(window.start, window.end))
    by_recruiter = group_entries(submission_entries(submissions.all()), "entity_id")

    recruiter_breakdown = []
    for user in recruiters.values():
        r_counts = count_entries(by_recruiter.get(user.id, []))
        recruiter_breakdown.append(
            {
                "recruiter_id": user.id,
                "recruiter_name": user.name,
                "recruiter_code": user.user_code,
                "total_submissions": r_counts.total,
                "interviews": r_counts.interviews,
                "deals": r_counts.deals,
                "lost_roles": r_counts.dropouts,
            }
        )

    return {
        "total_teams": len(teams),
        "total_recruiters": len(recruiters),
        "total_active_roles": counts.active,
        "total_non_active_roles": counts.total - counts.active,
        "total_interviews": count_entries(interviews).interviews,
        "total_deals": counts.deal,
        "total_lost": counts.lost,
        "total_on_hold": counts.on_hold,
        "total_no_answer": counts.no_answer,
        "team_breakdown": team_breakdown,
        "recruiter_breakdown": recruiter_breakdown,
    }


def ebes_for_recruitment_manager(
    db: Session, manager_id: int, window: Optional[DateRange] = None, cfg: Optional[dict] = None
) -> ScoreResult:
    """Team output over the roles of every team the manager runs.

    A manager with no teams has an empty denominator and scores 0.
    """
    team_ids = _team_ids(db, manager_id)
    if not team_ids:
        return compute_score(RECRUITMENT_MANAGER, (), (), window, cfg)
    rows = db.query(Submission).filter(Submission.team_id.in_(team_ids)).all()
    roles = role_records(_team_roles(db, team_ids))
    return compute_score(RECRUITMENT_MANAGER, submission_entries(rows), roles, window, cfg)


def ebes_score(db: Session, principal: Principal, window: Optional[DateRange] = None, cfg: Optional[dict] = None) -> dict:
    return ebes_for_recruitment_manager(db, principal.id, window, cfg).as_dict()


def team_analytics(db: Session, principal: Principal, team_id: int, window: Optional[DateRange] = None) -> dict:
    assigned = (
        db.query(TeamAssignment)
        .filter(TeamAssignment.user_id == principal.id, TeamAssignment.team_id == team_id)
        .first()
    )
    if not assigned:
        raise NotFoundError("Team not assigned to this recruitment manager")
    team = db.get(Team, team_id)
    total_recruiters = (
        db.query(User)
        .join(RecruiterTeamAssignment, RecruiterTeamAssignment.recruiter_user_id == User.id)
        .filter(RecruiterTeamAssignment.team_id == team_id, User.role == "recruiter")
        .count()
    )

    query = db.query(Submission, User).join(User, User.id == Submission.recruiter_user_id).filter(
        Submission.team_id == team_id
    )
    if window is not None:
        query = query.filter(Submission.submission_date.between(window.start, window.end))
    rows = query.all()

    users = {user.id: user for _, user in rows}
    by_recruiter = group_entries(submission_entries(row for row, _ in rows), "entity_id")
    recruiter_stats = []
    for user_id, entries in by_recruiter.items():
        counts = count_entries(entries)
        recruiter_stats.append(
            {
                "recruiter_user_id": user_id,
                "recruiter_name": users[user_id].name,
                "recruiter_code": users[user_id].user_code,
                "total_submissions": counts.total,
                "submission_6h": counts.submission_6h,
                "submission_24h": counts.submission_24h,
                "submission_after_24h": counts.submission_after_24h,
            }
        )

    return {
        "team": team_payload(team) if team else None,
        "team_stats": {
            "total_recruiters": total_recruiters,
            "total_submissions": sum(item["total_submissions"] for item in recruiter_stats),
            "submission_6h": sum(item["submission_6h"] for item in recruiter_stats),
            "submission_24h": sum(item["submission_24h"] for item in recruiter_stats),
            "submission_after_24h": sum(item["submission_after_24h"] for item in recruiter_stats),
        },
        "recruiter_stats": recruiter_stats,
    }


def performance_summary(db: Session, principal: Principal, window: Optional[DateRange] = None) -> dict:
    teams = assigned_teams(db, principal.id)
    if not teams:
        return {"total_submissions": 0, "total_recruiters": 0, "teams": []}
    query = db.query(Submission).filter(Submission.recruitment_manager_id == principal.id)
    if window is not None:
        query = query.filter(Submission.submission_date.between(window.start, window.end))
    total_recruiters = (
        db.query(RecruiterTeamAssignment.recruiter_user_id)
        .filter(RecruiterTeamAssignment.team_id.in_([team.id for team in teams]))
        .distinct()
        .count()
    )
    return {
        "total_submissions": query.count(),
        "total_recruiters": total_recruiters,
        "teams": [team_payload(team) for team in teams],
    }
