from __future__ import annotations
from datetime import date

import pytest

from ebes.services.activity import DEAL, DROPOUT, INTERVIEW, SUBMISSION, ActivityEntry, EntryCounts, RoleCounts, RoleRecord
from ebes.services.labels import PerformanceLabel
from ebes.services.scoring import (
    ACCOUNT_MANAGER,
    RECRUITER,
    RECRUITMENT_MANAGER,
    EbesScorer,
    account_manager_score,
    compute_score,
    recruiter_score,
    recruitment_manager_score,
)
from ebes.services.seed import default_score_config

DAY = date(2026, 10, 5)


def _submission(speed):
    return ActivityEntry(SUBMISSION, DAY, speed=speed)


def test_recruiter_score_mixed_entries():
    entries = [_submission("6h"), _submission("6h"), _submission("24h"), ActivityEntry(INTERVIEW, DAY), ActivityEntry(DEAL, DAY)]

    result = compute_score(RECRUITER, entries)

    assert result.score == 5.0
    assert result.performance_label is PerformanceLabel.EXCELLENT
    assert result.breakdown["total_points"] == 25
    assert result.breakdown["total_entries"] == 5


def test_recruiter_score_never_negative():
    result = compute_score(RECRUITER, [ActivityEntry(DROPOUT, DAY), ActivityEntry(DROPOUT, DAY)])

    assert result.score == 0
    assert result.performance_label is PerformanceLabel.AT_RISK
    assert recruiter_score(0, 0, 0, 0, 0, 3, 3) == 0


@pytest.mark.parametrize("kind", [RECRUITER, ACCOUNT_MANAGER, RECRUITMENT_MANAGER])
def test_empty_input_scores_zero(kind):
    result = compute_score(kind, [], [])
    assert result.score == 0
    assert result.performance_label is PerformanceLabel.AT_RISK


def test_account_manager_score_example():
    assert account_manager_score(10, 4, 2, 1, 3, 1, 2) == 26

    result = EbesScorer().score_account_manager(
        RoleCounts(total=10, deal=1, lost=3, no_answer=1, on_hold=2),
        EntryCounts(interview_1=4, interview_2=2, interview_3=5),
    )

    assert result.score == 26
    assert result.performance_label is PerformanceLabel.AVERAGE
    assert result.breakdown["interview_3"] == 5


def test_account_manager_round_three_weight_is_configurable():
    cfg = {"weights": {ACCOUNT_MANAGER: {"interview_rounds": {"3": 2}}}}
    result = EbesScorer(cfg).score_account_manager(RoleCounts(total=10), EntryCounts(interview_3=5))

    assert result.score == 30
    assert result.performance_label is PerformanceLabel.AVERAGE


def test_recruitment_manager_score_example():
    entries = [_submission("6h"), _submission("6h"), ActivityEntry(INTERVIEW, DAY), ActivityEntry(DEAL, DAY)]
    roles = [RoleRecord(id=i, status="active" if i < 2 else "lost") for i in range(5)]

    result = compute_score(RECRUITMENT_MANAGER, entries, roles)

    assert result.score == 82.4
    assert result.performance_label is PerformanceLabel.STRONG
    assert result.breakdown["total_roles"] == 5
    assert result.breakdown["active_roles"] == 2


def test_recruitment_manager_without_roles_scores_zero():
    assert recruitment_manager_score(3, 2, 1, 4, 2, 0, 0) == 0


def test_scores_monotone_in_deals_and_penalties():
    assert account_manager_score(5, 1, 1, 2, 0, 0, 0) > account_manager_score(5, 1, 1, 1, 0, 0, 0)
    assert account_manager_score(5, 1, 1, 1, 1, 0, 0) <= account_manager_score(5, 1, 1, 1, 0, 0, 0)
    assert account_manager_score(5, 1, 1, 1, 0, 1, 1) <= account_manager_score(5, 1, 1, 1, 0, 0, 0)
    assert recruitment_manager_score(1, 0, 0, 0, 2, 4, 1) > recruitment_manager_score(1, 0, 0, 0, 1, 4, 1)
    assert recruiter_score(1, 0, 0, 0, 0, 1, 2) <= recruiter_score(1, 0, 0, 0, 0, 0, 2)


def test_recruiter_label_boundaries_resolve_upwards():
    scorer = EbesScorer()
    exactly_four = scorer.score_recruiter(EntryCounts(total=2, submission_6h=1, submission_24h=1))
    exactly_three = scorer.score_recruiter(EntryCounts(total=1, submission_24h=1))
    exactly_two = scorer.score_recruiter(EntryCounts(total=2, submission_24h=1, submission_after_24h=1))
    one = scorer.score_recruiter(EntryCounts(total=2, submission_after_24h=2))

    assert exactly_four.score == 4.0
    assert exactly_four.performance_label is PerformanceLabel.EXCELLENT
    assert exactly_three.performance_label is PerformanceLabel.STRONG
    assert exactly_two.performance_label is PerformanceLabel.AVERAGE
    assert one.performance_label is PerformanceLabel.AT_RISK


def test_scorer_merges_config_over_defaults():
    cfg = default_score_config()
    cfg["weights"][RECRUITER]["deal"] = 20
    cfg["thresholds"][RECRUITER] = {"bands": [[15, "Excellent"]], "fallback": "At Risk"}

    result = compute_score(RECRUITER, [ActivityEntry(DEAL, DAY)], config=cfg)

    assert result.score == 20
    assert result.performance_label is PerformanceLabel.EXCELLENT


def test_unknown_kind_is_rejected():
    with pytest.raises(ValueError):
        EbesScorer().score("admin")


def test_admin_label_bands():
    scorer = EbesScorer()
    assert scorer.admin_label(80) is PerformanceLabel.EXCELLENT
    assert scorer.admin_label(79.9) is PerformanceLabel.GOOD
    assert scorer.admin_label(40) is PerformanceLabel.AVERAGE
    assert scorer.admin_label(5) is PerformanceLabel.NEEDS_IMPROVEMENT
