from __future__ import annotations
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ebes.models.org import (
    Client,
    ClientAssignment,
    RecruiterClientAssignment,
    RecruiterTeamAssignment,
    Team,
    TeamAssignment,
)
from ebes.models.user import User
from ebes.services.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def client_payload(client: Client) -> dict:
    return {
        "id": client.id,
        "client_code": client.client_code,
        "name": client.name,
        "is_active": client.is_active,
        "created_at": client.created_at,
    }


def team_payload(team: Team) -> dict:
    return {"id": team.id, "team_code": team.team_code, "name": team.name, "created_at": team.created_at}


def list_clients(db: Session) -> list[Client]:
    return db.query(Client).order_by(Client.name.asc()).all()


def list_teams(db: Session) -> list[Team]:
    return db.query(Team).order_by(Team.name.asc()).all()


def create_client(db: Session, name: str) -> Client:
    client = Client(name=name.strip(), is_active=True)
    db.add(client)
    db.flush()
    client.client_code = f"CL-{client.id:04d}"
    db.commit()
    db.refresh(client)
    logger.info("client created id=%s code=%s", client.id, client.client_code)
    return client


def create_team(db: Session, name: str) -> Team:
    team = Team(name=name.strip())
    db.add(team)
    db.flush()
    team.team_code = f"TM-{team.id:04d}"
    db.commit()
    db.refresh(team)
    logger.info("team created id=%s code=%s", team.id, team.team_code)
    return team


def assigned_clients(db: Session, user_id: int) -> list[Client]:
    return (
        db.query(Client)
        .join(ClientAssignment, ClientAssignment.client_id == Client.id)
        .filter(ClientAssignment.user_id == user_id)
        .order_by(Client.name.asc())
        .all()
    )


def assigned_teams(db: Session, user_id: int) -> list[Team]:
    return (
        db.query(Team)
        .join(TeamAssignment, TeamAssignment.team_id == Team.id)
        .filter(TeamAssignment.user_id == user_id)
        .order_by(Team.name.asc())
        .all()
    )


def recruiter_teams(db: Session, recruiter_id: int) -> list[Team]:
    return (
        db.query(Team)
        .join(RecruiterTeamAssignment, RecruiterTeamAssignment.team_id == Team.id)
        .filter(RecruiterTeamAssignment.recruiter_user_id == recruiter_id)
        .order_by(Team.id.asc())
        .all()
    )


def recruiter_client_pairs(db: Session, recruiter_id: int, active_only: bool = True) -> list[tuple[Client, Team]]:
    query = (
        db.query(Client, Team)
        .join(RecruiterClientAssignment, RecruiterClientAssignment.client_id == Client.id)
        .join(Team, Team.id == RecruiterClientAssignment.team_id)
        .filter(RecruiterClientAssignment.recruiter_user_id == recruiter_id)
    )
    if active_only:
        query = query.filter(Client.is_active.is_(True))
    return query.order_by(Client.name.asc()).all()


def team_recruiters(db: Session, team_ids: list[int]) -> list[tuple[User, Team]]:
    if not team_ids:
        return []
    return (
        db.query(User, Team)
        .join(RecruiterTeamAssignment, RecruiterTeamAssignment.recruiter_user_id == User.id)
        .join(Team, Team.id == RecruiterTeamAssignment.team_id)
        .filter(RecruiterTeamAssignment.team_id.in_(team_ids), User.role == "recruiter")
        .order_by(User.name.asc())
        .all()
    )


def team_manager(db: Session, team_id: int) -> User | None:
    """First recruitment manager assigned to the team, if any."""
    return (
        db.query(User)
        .join(TeamAssignment, TeamAssignment.user_id == User.id)
        .filter(TeamAssignment.team_id == team_id, User.role == "recruitment_manager")
        .order_by(User.id.asc())
        .first()
    )


def user_assignments(db: Session, user: User) -> dict:
    if user.role == "recruiter":
        teams = recruiter_teams(db, user.id)
        clients = [
            {**client_payload(client), "team_id": team.id, "team_name": team.name}
            for client, team in recruiter_client_pairs(db, user.id, active_only=False)
        ]
        return {"teams": [team_payload(t) for t in teams], "clients": clients}
    return {
        "teams": [team_payload(t) for t in assigned_teams(db, user.id)],
        "clients": [client_payload(c) for c in assigned_clients(db, user.id)],
    }


def _require(db: Session, model, row_id: int, label: str):
    row = db.get(model, row_id)
    if row is None:
        raise NotFoundError(f"{label} not found")
    return row


def _commit_assignment(db: Session, row) -> None:
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("assignment already exists")


def assign_client(db: Session, user_id: int, client_id: int, team_id: int | None = None) -> None:
    user = _require(db, User, user_id, "user")
    _require(db, Client, client_id, "client")
    if user.role == "recruiter":
        if team_id is None:
            raise ConflictError("team_id is required when assigning a client to a recruiter")
        _require(db, Team, team_id, "team")
        _commit_assignment(
            db, RecruiterClientAssignment(recruiter_user_id=user.id, client_id=client_id, team_id=team_id)
        )
    else:
        _commit_assignment(db, ClientAssignment(user_id=user.id, client_id=client_id))
    logger.info("client assigned user_id=%s client_id=%s team_id=%s", user_id, client_id, team_id)


def unassign_client(db: Session, user_id: int, client_id: int) -> None:
    user = _require(db, User, user_id, "user")
    if user.role == "recruiter":
        db.query(RecruiterClientAssignment).filter(
            RecruiterClientAssignment.recruiter_user_id == user_id,
            RecruiterClientAssignment.client_id == client_id,
        ).delete(synchronize_session=False)
    else:
        db.query(ClientAssignment).filter(
            ClientAssignment.user_id == user_id, ClientAssignment.client_id == client_id
        ).delete(synchronize_session=False)
    db.commit()


def assign_team(db: Session, user_id: int, team_id: int) -> None:
    user = _require(db, User, user_id, "user")
    _require(db, Team, team_id, "team")
    if user.role == "recruiter":
        _commit_assignment(db, RecruiterTeamAssignment(recruiter_user_id=user.id, team_id=team_id))
    else:
        _commit_assignment(db, TeamAssignment(user_id=user.id, team_id=team_id))
    logger.info("team assigned user_id=%s team_id=%s", user_id, team_id)


def assign_recruiter(db: Session, recruiter_id: int, team_id: int, client_ids: list[int]) -> None:
    """Place a recruiter on a team and on the given clients within it. Existing links are kept."""
    user = _require(db, User, recruiter_id, "user")
    if user.role != "recruiter":
        raise ConflictError("user is not a recruiter")
    _require(db, Team, team_id, "team")
    exists = (
        db.query(RecruiterTeamAssignment)
        .filter(RecruiterTeamAssignment.recruiter_user_id == user.id, RecruiterTeamAssignment.team_id == team_id)
        .first()
    )
    if not exists:
        db.add(RecruiterTeamAssignment(recruiter_user_id=user.id, team_id=team_id))
    for client_id in client_ids:
        _require(db, Client, client_id, "client")
        linked = (
            db.query(RecruiterClientAssignment)
            .filter(
                RecruiterClientAssignment.recruiter_user_id == user.id,
                RecruiterClientAssignment.client_id == client_id,
                RecruiterClientAssignment.team_id == team_id,
            )
            .first()
        )
        if not linked:
            db.add(RecruiterClientAssignment(recruiter_user_id=user.id, client_id=client_id, team_id=team_id))
    db.commit()
    logger.info("recruiter assigned recruiter_id=%s team_id=%s clients=%s", recruiter_id, team_id, client_ids)


def unassign_team(db: Session, user_id: int, team_id: int) -> None:
    user = _require(db, User, user_id, "user")
    if user.role == "recruiter":
        db.query(RecruiterTeamAssignment).filter(
            RecruiterTeamAssignment.recruiter_user_id == user_id, RecruiterTeamAssignment.team_id == team_id
        ).delete(synchronize_session=False)
    else:
        db.query(TeamAssignment).filter(
            TeamAssignment.user_id == user_id, TeamAssignment.team_id == team_id
        ).delete(synchronize_session=False)
    db.commit()
