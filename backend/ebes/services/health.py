from __future__ import annotations
from ebes.services.activity import RoleCounts
from ebes.services.trends import conversion_rate

STRONG_ACCOUNT = "Strong Account"
AVERAGE_ACCOUNT = "Average Account"
AT_RISK_ACCOUNT = "At Risk Account"


def client_health_score(
    roles: RoleCounts, total_interviews: int, current_month_deals: int, last_month_deals: int
) -> float:
    score = 0.0
    if roles.total > 0:
        score += 20
    if roles.deal > 0:
        score += roles.deal / max(roles.total, 1) * 30
    if total_interviews > 0:
        score += 15
    if conversion_rate(roles.deal, roles.total) > 20:
        score += 20
    if current_month_deals > last_month_deals:
        score += 10

    if roles.lost > roles.deal:
        score -= 15
    if roles.cancelled > 3:
        score -= 10
    if roles.no_answer > 5:
        score -= 10
    if roles.active > 15 and roles.deal == 0:
        score -= 20

    return max(0.0, min(100.0, score))


def client_health_tag(score: float) -> str:
    if score >= 70:
        return STRONG_ACCOUNT
    if score < 40:
        return AT_RISK_ACCOUNT
    return AVERAGE_ACCOUNT


def risk_indicators(roles: RoleCounts, total_interviews: int, current_month_deals: int) -> dict[str, bool]:
    return {
        "high_active_low_deals": roles.active > 10 and roles.deal < 2,
        "high_interviews_no_closures": total_interviews > 20 and roles.deal == 0,
        "consistent_closures": roles.deal >= 3 and current_month_deals > 0,
        "repeated_cancellations": roles.cancelled > 3,
    }


def client_deal_health(roles: RoleCounts) -> str:
    """Per-client tier on the performance page, driven by deal rate."""
    deal_rate = conversion_rate(roles.deal, roles.total)
    if deal_rate >= 30 and roles.active > 0:
        return "Strong"
    if deal_rate < 10 and (roles.lost > roles.deal or roles.no_answer > 5):
        return "At Risk"
    return "Average"


def team_deal_label(roles: RoleCounts) -> str:
    deal_rate = conversion_rate(roles.deal, roles.total)
    if deal_rate >= 30:
        return "Strong"
    if deal_rate < 10:
        return "At Risk"
    return "Average"
