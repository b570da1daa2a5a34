"""In-memory aggregation of recorded recruitment activity.

Everything here works on plain ``ActivityEntry`` / ``RoleRecord`` values that
the caller has already fetched and scoped. Nothing touches the database and
nothing reads the clock: month comparisons take an explicit ``as_of`` day.

Records with a missing or unparseable date, status, round or speed are never
an error. They are left out of the buckets that need the missing field and
still count towards totals where that makes sense.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

SUBMISSION = "submission"
INTERVIEW = "interview"
DEAL = "deal"
DROPOUT = "dropout"
STATUS_CHANGE = "role_status_change"

ENTRY_KINDS = (SUBMISSION, INTERVIEW, DEAL, DROPOUT, STATUS_CHANGE)
SPEED_BUCKETS = ("6h", "24h", "after_24h")
INTERVIEW_ROUNDS = (1, 2, 3)

ACTIVE = "active"
ROLE_STATUSES = ("active", "deal", "lost", "on_hold", "cancelled", "no_answer")


def as_day(value) -> Optional[date]:
    """Coerce a datetime, date or ISO string to a calendar day, or None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def month_key(day: date) -> tuple[int, int]:
    return day.year, day.month


def previous_month(day: date) -> tuple[int, int]:
    first = day.replace(day=1)
    return month_key(first - timedelta(days=1))


def month_bounds(year: int, month: int) -> tuple[date, date]:
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1) - timedelta(days=1)
    else:
        end = date(year, month + 1, 1) - timedelta(days=1)
    return start, end


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-day window."""

    start: date
    end: date

    def contains(self, value) -> bool:
        day = as_day(value)
        if day is None:
            return False
        return self.start <= day <= self.end

    def overlaps_month(self, value) -> bool:
        day = as_day(value)
        if day is None:
            return False
        month_start, month_end = month_bounds(day.year, day.month)
        return month_start <= self.end and month_end >= self.start

    @classmethod
    def current_month(cls, as_of: date) -> "DateRange":
        return cls(*month_bounds(as_of.year, as_of.month))

    @classmethod
    def last_month(cls, as_of: date) -> "DateRange":
        return cls(*month_bounds(*previous_month(as_of)))

    @classmethod
    def from_params(cls, start, end) -> Optional["DateRange"]:
        """Build a window from optional query values; both ends are required."""
        start_day = as_day(start)
        end_day = as_day(end)
        if start_day is None or end_day is None:
            return None
        return cls(start_day, end_day)


def window_for(preset: Optional[str], start, end, today: date) -> Optional[DateRange]:
    """Resolve a dashboard date filter. An explicit start/end pair always wins."""
    explicit = DateRange.from_params(start, end)
    if explicit is not None:
        return explicit
    if preset == "today":
        return DateRange(today, today)
    if preset == "this_week":
        # Weeks start on Sunday.
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)
        return DateRange(week_start, week_start + timedelta(days=6))
    if preset in ("this_month", "current_month", "date"):
        return DateRange.current_month(today)
    if preset == "last_month":
        return DateRange.last_month(today)
    return None


@dataclass(frozen=True)
class ActivityEntry:
    kind: str
    entry_date: Optional[date] = None
    entity_id: Optional[int] = None
    client_id: Optional[int] = None
    team_id: Optional[int] = None
    role_id: Optional[int] = None
    speed: Optional[str] = None
    interview_round: Optional[int] = None
    status: Optional[str] = None
    count: int = 1
    # Rows logged per calendar month (account-manager interview tallies)
    # match a window when their month overlaps it.
    monthly: bool = False

    def in_window(self, window: Optional[DateRange]) -> bool:
        if window is None:
            return True
        if self.monthly:
            return window.overlaps_month(self.entry_date)
        return window.contains(self.entry_date)


@dataclass(frozen=True)
class RoleRecord:
    id: Optional[int] = None
    account_manager_id: Optional[int] = None
    client_id: Optional[int] = None
    team_id: Optional[int] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class RoleCounts:
    total: int = 0
    active: int = 0
    non_active: int = 0
    deal: int = 0
    lost: int = 0
    on_hold: int = 0
    no_answer: int = 0
    cancelled: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class EntryCounts:
    total: int = 0
    submissions: int = 0
    submission_6h: int = 0
    submission_24h: int = 0
    submission_after_24h: int = 0
    interviews: int = 0
    interview_1: int = 0
    interview_2: int = 0
    interview_3: int = 0
    deals: int = 0
    dropouts: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class MonthCounts:
    roles_created: int = 0
    interviews: int = 0
    deals: int = 0
    lost: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class MonthlyComparison:
    current: MonthCounts = field(default_factory=MonthCounts)
    previous: MonthCounts = field(default_factory=MonthCounts)

    def as_dict(self) -> dict:
        return {"current_month": self.current.as_dict(), "last_month": self.previous.as_dict()}


def filter_roles(roles: Iterable[RoleRecord], window: Optional[DateRange] = None) -> list[RoleRecord]:
    if window is None:
        return list(roles)
    return [role for role in roles if window.contains(role.created_at)]


def filter_entries(entries: Iterable[ActivityEntry], window: Optional[DateRange] = None) -> list[ActivityEntry]:
    return [entry for entry in entries if entry.in_window(window)]


def count_roles(roles: Iterable[RoleRecord], window: Optional[DateRange] = None) -> RoleCounts:
    counts = RoleCounts()
    for role in filter_roles(roles, window):
        counts.total += 1
        status = role.status
        if status not in ROLE_STATUSES:
            continue
        if status == ACTIVE:
            counts.active += 1
            continue
        counts.non_active += 1
        setattr(counts, status, getattr(counts, status) + 1)
    return counts


def count_entries(entries: Iterable[ActivityEntry], window: Optional[DateRange] = None) -> EntryCounts:
    counts = EntryCounts()
    for entry in filter_entries(entries, window):
        n = max(0, int(entry.count or 0))
        counts.total += n
        if entry.kind == SUBMISSION:
            counts.submissions += n
            if entry.speed in SPEED_BUCKETS:
                attr = f"submission_{entry.speed}"
                setattr(counts, attr, getattr(counts, attr) + n)
        elif entry.kind == INTERVIEW:
            counts.interviews += n
            if entry.interview_round in INTERVIEW_ROUNDS:
                attr = f"interview_{entry.interview_round}"
                setattr(counts, attr, getattr(counts, attr) + n)
        elif entry.kind == DEAL:
            counts.deals += n
        elif entry.kind == DROPOUT:
            counts.dropouts += n
    return counts


def monthly_comparison(
    roles: Iterable[RoleRecord],
    entries: Iterable[ActivityEntry],
    as_of: date,
) -> MonthlyComparison:
    """Current vs previous calendar month.

    Roles created are bucketed by ``created_at``. Deals and losses are bucketed
    by ``updated_at`` of roles whose current status is deal/lost, so a role
    whose status changed twice in a period is only seen once.
    """
    current_key = month_key(as_of)
    previous_key = previous_month(as_of)
    result = MonthlyComparison()
    buckets = {current_key: result.current, previous_key: result.previous}

    for role in roles:
        created = as_day(role.created_at)
        if created is not None and month_key(created) in buckets:
            buckets[month_key(created)].roles_created += 1
        updated = as_day(role.updated_at)
        if updated is None or month_key(updated) not in buckets:
            continue
        if role.status == "deal":
            buckets[month_key(updated)].deals += 1
        elif role.status == "lost":
            buckets[month_key(updated)].lost += 1

    for entry in entries:
        if entry.kind != INTERVIEW:
            continue
        day = as_day(entry.entry_date)
        if day is not None and month_key(day) in buckets:
            buckets[month_key(day)].interviews += max(0, int(entry.count or 0))

    return result


def group_entries(entries: Iterable[ActivityEntry], key: str) -> dict:
    """Group entries by one of their id attributes (entity_id, client_id, team_id, role_id)."""
    groups: dict = {}
    for entry in entries:
        groups.setdefault(getattr(entry, key), []).append(entry)
    return groups


def group_roles(roles: Iterable[RoleRecord], key: str) -> dict:
    groups: dict = {}
    for role in roles:
        groups.setdefault(getattr(role, key), []).append(role)
    return groups
