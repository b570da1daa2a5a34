"""Stage conversion, drop-off and growth ratios.

Two zero rules live side by side: ratios and drop-offs report 0
when the base is 0, while the display growth string reports "+100%" for any
increase from 0. ``growth_rate`` (integer percent for client analytics)
follows the ratio rule.
"""
from __future__ import annotations

import math
from datetime import date, timedelta
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from typing import Iterable

from ebes.services.activity import ActivityEntry, as_day, month_key


def _round_half_ceiling(value: float, exponent: str) -> Decimal:
    # Halves round toward positive infinity, so -2.5 becomes -2.
    mode = ROUND_HALF_UP if value >= 0 else ROUND_HALF_DOWN
    return Decimal(str(value)).quantize(Decimal(exponent), rounding=mode)


def round0(value: float) -> int:
    if not math.isfinite(value):
        return 0
    return int(_round_half_ceiling(value, "1"))


def round1(value: float) -> float:
    """Round to one decimal, halves toward positive infinity."""
    if not math.isfinite(value):
        return 0.0
    return float(_round_half_ceiling(value, "0.1"))


def conversion_rate(later: float, earlier: float) -> float:
    if not earlier:
        return 0.0
    return later / earlier * 100


def dropoff_rate(earlier: float, later: float) -> float:
    if not earlier:
        return 0.0
    return (earlier - later) / earlier * 100


def growth_percentage(current: float, previous: float) -> str:
    if not previous:
        return "+100%" if current > 0 else "0%"
    change = (current - previous) / previous * 100
    sign = "+" if change > 0 else ""
    return f"{sign}{change:.1f}%"


def growth_rate(current: float, previous: float) -> int:
    if previous <= 0:
        return 0
    return round0((current - previous) / previous * 100)


def daily_trend(entries: Iterable[ActivityEntry], as_of: date, days: int = 30) -> list[dict]:
    """Entry counts per day over the trailing ``days`` window, oldest first; empty days omitted."""
    start = as_of - timedelta(days=days)
    counts: dict[date, int] = {}
    for entry in entries:
        day = as_day(entry.entry_date)
        if day is None or day < start or day > as_of:
            continue
        counts[day] = counts.get(day, 0) + entry.count
    return [{"date": day.isoformat(), "count": counts[day]} for day in sorted(counts)]


def monthly_trend(entries: Iterable[ActivityEntry], as_of: date, months: int = 12) -> list[dict]:
    """Entry counts per calendar month for the last ``months`` months, oldest first."""
    year, month = month_key(as_of)
    first_index = year * 12 + (month - 1) - (months - 1)
    counts: dict[tuple[int, int], int] = {}
    for entry in entries:
        day = as_day(entry.entry_date)
        if day is None or day > as_of:
            continue
        index = day.year * 12 + (day.month - 1)
        if index < first_index:
            continue
        key = month_key(day)
        counts[key] = counts.get(key, 0) + entry.count
    return [{"month": f"{y:04d}-{m:02d}", "count": counts[(y, m)]} for y, m in sorted(counts)]
