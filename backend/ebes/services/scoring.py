"""EBES (Employee Best Effort Score) formulas.

Each user role has its own weighted formula over primitive counts and its own
label scale; scores are not comparable across roles. ``EbesScorer`` wires the
aggregator, formula and classifier together for a given weight config.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ebes.services.activity import (
    ActivityEntry,
    DateRange,
    EntryCounts,
    RoleCounts,
    RoleRecord,
    count_entries,
    count_roles,
)
from ebes.services.labels import (
    ACCOUNT_MANAGER_TABLE,
    ADMIN_TABLE,
    RECRUITER_TABLE,
    RECRUITMENT_MANAGER_TABLE,
    PerformanceLabel,
    ThresholdTable,
)
from ebes.services.trends import round1

logger = logging.getLogger(__name__)

RECRUITER = "recruiter"
ACCOUNT_MANAGER = "account_manager"
RECRUITMENT_MANAGER = "recruitment_manager"
SCORED_ROLES = (RECRUITER, ACCOUNT_MANAGER, RECRUITMENT_MANAGER)

RECRUITER_WEIGHTS = {
    "submission_6h": 5,
    "submission_24h": 3,
    "submission_after_24h": 1,
    "interview": 2,
    "deal": 10,
    "dropout": -5,
}

# Round 3 carries no weight in the account-manager score while still being
# shown in breakdowns. Pending product confirmation; flip it here or in the
# "scoring" setting.
ACCOUNT_MANAGER_WEIGHTS = {
    "new_role": 2,
    "deal": 10,
    "lost": -4,
    "no_answer": -2,
    "on_hold": -1,
    "interview_rounds": {"1": 2, "2": 2, "3": 0},
}

RECRUITMENT_MANAGER_WEIGHTS = {
    "speed": {"6h": 2.0, "24h": 1.5, "after_24h": 1.0},
    "entry": {"interview": 3.0, "deal": 7.0},
    "assigned_role": 3.0,
    "active_role": 1.0,
}


def default_weights() -> dict:
    return {
        RECRUITER: copy.deepcopy(RECRUITER_WEIGHTS),
        ACCOUNT_MANAGER: copy.deepcopy(ACCOUNT_MANAGER_WEIGHTS),
        RECRUITMENT_MANAGER: copy.deepcopy(RECRUITMENT_MANAGER_WEIGHTS),
    }


def default_thresholds() -> dict:
    return {
        RECRUITER: RECRUITER_TABLE.to_config(),
        ACCOUNT_MANAGER: ACCOUNT_MANAGER_TABLE.to_config(),
        RECRUITMENT_MANAGER: RECRUITMENT_MANAGER_TABLE.to_config(),
        "admin": ADMIN_TABLE.to_config(),
    }


def recruiter_score(
    submission_6h: int,
    submission_24h: int,
    submission_after_24h: int,
    interviews: int,
    deals: int,
    dropouts: int,
    total_entries: int,
    weights: Optional[dict] = None,
) -> float:
    """Average points per recorded entry, never below zero."""
    w = weights or RECRUITER_WEIGHTS
    points = recruiter_points(submission_6h, submission_24h, submission_after_24h, interviews, deals, dropouts, w)
    return max(0.0, points / max(1, total_entries))


def recruiter_points(
    submission_6h: int,
    submission_24h: int,
    submission_after_24h: int,
    interviews: int,
    deals: int,
    dropouts: int,
    weights: Optional[dict] = None,
) -> float:
    w = weights or RECRUITER_WEIGHTS
    return (
        submission_6h * w["submission_6h"]
        + submission_24h * w["submission_24h"]
        + submission_after_24h * w["submission_after_24h"]
        + interviews * w["interview"]
        + deals * w["deal"]
        + dropouts * w["dropout"]
    )


def account_manager_score(
    new_roles: int,
    interview_1: int,
    interview_2: int,
    deals: int,
    lost: int,
    no_answer: int,
    on_hold: int,
    interview_3: int = 0,
    weights: Optional[dict] = None,
) -> float:
    """Absolute (not normalised) score over the manager's roles."""
    w = weights or ACCOUNT_MANAGER_WEIGHTS
    rounds = w["interview_rounds"]
    return float(
        new_roles * w["new_role"]
        + interview_1 * rounds.get("1", 0)
        + interview_2 * rounds.get("2", 0)
        + interview_3 * rounds.get("3", 0)
        + deals * w["deal"]
        + lost * w["lost"]
        + no_answer * w["no_answer"]
        + on_hold * w["on_hold"]
    )


def recruitment_manager_score(
    submission_6h: int,
    submission_24h: int,
    submission_after_24h: int,
    interviews: int,
    deals: int,
    assigned_roles: int,
    active_roles: int,
    weights: Optional[dict] = None,
) -> float:
    """Team output points as a percentage of the points the team's roles call for."""
    w = weights or RECRUITMENT_MANAGER_WEIGHTS
    speed = w["speed"]
    entry = w["entry"]
    numerator = (
        submission_6h * speed["6h"]
        + submission_24h * speed["24h"]
        + submission_after_24h * speed["after_24h"]
        + interviews * entry["interview"]
        + deals * entry["deal"]
    )
    denominator = assigned_roles * w["assigned_role"] + active_roles * w["active_role"]
    if denominator <= 0:
        return 0.0
    return 100 * numerator / denominator


@dataclass
class ScoreResult:
    score: float
    performance_label: PerformanceLabel
    breakdown: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {"score": self.score, "performance_label": self.performance_label.value, **self.breakdown}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class EbesScorer:
    def __init__(self, cfg: Optional[dict] = None):
        cfg = cfg or {}
        self.weights = _merge(default_weights(), cfg.get("weights") or {})
        thresholds = _merge(default_thresholds(), cfg.get("thresholds") or {})
        self.tables = {key: ThresholdTable.from_config(raw) for key, raw in thresholds.items()}

    def score(
        self,
        kind: str,
        entries: Iterable[ActivityEntry] = (),
        roles: Iterable[RoleRecord] = (),
        window: Optional[DateRange] = None,
    ) -> ScoreResult:
        entry_counts = count_entries(entries, window)
        role_counts = count_roles(roles, window)
        if kind == RECRUITER:
            return self.score_recruiter(entry_counts)
        if kind == ACCOUNT_MANAGER:
            return self.score_account_manager(role_counts, entry_counts)
        if kind == RECRUITMENT_MANAGER:
            return self.score_recruitment_manager(entry_counts, role_counts)
        raise ValueError(f"no EBES formula for role={kind}")

    def score_recruiter(self, counts: EntryCounts) -> ScoreResult:
        w = self.weights[RECRUITER]
        points = recruiter_points(
            counts.submission_6h,
            counts.submission_24h,
            counts.submission_after_24h,
            counts.interviews,
            counts.deals,
            counts.dropouts,
            w,
        )
        raw = recruiter_score(
            counts.submission_6h,
            counts.submission_24h,
            counts.submission_after_24h,
            counts.interviews,
            counts.deals,
            counts.dropouts,
            counts.total,
            w,
        )
        return ScoreResult(
            score=round(raw, 2),
            performance_label=self.tables[RECRUITER].classify(raw),
            breakdown={
                "submission_6h": counts.submission_6h,
                "submission_24h": counts.submission_24h,
                "submission_after_24h": counts.submission_after_24h,
                "interviews": counts.interviews,
                "deals": counts.deals,
                "dropouts": counts.dropouts,
                "total_points": points,
                "total_entries": counts.total,
            },
        )

    def score_account_manager(self, roles: RoleCounts, entries: EntryCounts) -> ScoreResult:
        raw = account_manager_score(
            new_roles=roles.total,
            interview_1=entries.interview_1,
            interview_2=entries.interview_2,
            interview_3=entries.interview_3,
            deals=roles.deal,
            lost=roles.lost,
            no_answer=roles.no_answer,
            on_hold=roles.on_hold,
            weights=self.weights[ACCOUNT_MANAGER],
        )
        score = round1(raw)
        return ScoreResult(
            score=score,
            performance_label=self.tables[ACCOUNT_MANAGER].classify(score),
            breakdown={
                "new_roles": roles.total,
                "interview_1": entries.interview_1,
                "interview_2": entries.interview_2,
                "interview_3": entries.interview_3,
                "deals": roles.deal,
                "lost": roles.lost,
                "no_answer": roles.no_answer,
                "on_hold": roles.on_hold,
            },
        )

    def score_recruitment_manager(self, entries: EntryCounts, roles: RoleCounts) -> ScoreResult:
        raw = recruitment_manager_score(
            entries.submission_6h,
            entries.submission_24h,
            entries.submission_after_24h,
            entries.interviews,
            entries.deals,
            assigned_roles=roles.total,
            active_roles=roles.active,
            weights=self.weights[RECRUITMENT_MANAGER],
        )
        return ScoreResult(
            score=round1(raw),
            performance_label=self.tables[RECRUITMENT_MANAGER].classify(raw),
            breakdown={
                "total_submissions": entries.total,
                "total_interviews": entries.interviews,
                "total_deals": entries.deals,
                "total_roles": roles.total,
                "active_roles": roles.active,
            },
        )

    def admin_label(self, score: float) -> PerformanceLabel:
        return self.tables["admin"].classify(score)


def compute_score(
    kind: str,
    entries: Iterable[ActivityEntry] = (),
    roles: Iterable[RoleRecord] = (),
    window: Optional[DateRange] = None,
    config: Optional[dict] = None,
) -> ScoreResult:
    result = EbesScorer(config).score(kind, entries, roles, window)
    logger.debug("ebes kind=%s score=%s label=%s", kind, result.score, result.performance_label.value)
    return result
