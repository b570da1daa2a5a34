"""Conversion of ORM rows into the plain records the scoring core consumes."""
from __future__ import annotations

from datetime import date
from typing import Iterable

from ebes.models.role import Role, RoleInterview
from ebes.models.submission import Submission
from ebes.services.activity import INTERVIEW, ActivityEntry, RoleRecord, as_day


def role_record(role: Role) -> RoleRecord:
    return RoleRecord(
        id=role.id,
        account_manager_id=role.account_manager_id,
        client_id=role.client_id,
        team_id=role.team_id,
        status=role.status,
        created_at=role.created_at,
        updated_at=role.updated_at,
    )


def submission_entry(row: Submission) -> ActivityEntry:
    return ActivityEntry(
        kind=row.entry_type,
        entry_date=as_day(row.submission_date),
        entity_id=row.recruiter_user_id,
        client_id=row.client_id,
        team_id=row.team_id,
        role_id=row.role_id,
        speed=row.submission_type if row.entry_type == "submission" else None,
        interview_round=row.interview_level,
        count=1,
    )


def _month_start(entry_month: str):
    try:
        year, month = entry_month.split("-")[:2]
        return date(int(year), int(month), 1)
    except (AttributeError, ValueError):
        return None


def interview_entry(row: RoleInterview, role: Role | None = None) -> ActivityEntry:
    return ActivityEntry(
        kind=INTERVIEW,
        entry_date=_month_start(row.entry_month),
        entity_id=role.account_manager_id if role is not None else None,
        client_id=role.client_id if role is not None else None,
        team_id=role.team_id if role is not None else None,
        role_id=row.role_id,
        interview_round=row.interview_round,
        count=row.interview_count,
        monthly=True,
    )


def role_records(roles: Iterable[Role]) -> list[RoleRecord]:
    return [role_record(role) for role in roles]


def submission_entries(rows: Iterable[Submission]) -> list[ActivityEntry]:
    return [submission_entry(row) for row in rows]
