from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class PerformanceLabel(str, Enum):
    EXCELLENT = "Excellent"
    STRONG = "Strong"
    GOOD = "Good"
    AVERAGE = "Average"
    AT_RISK = "At Risk"
    NEEDS_IMPROVEMENT = "Needs Improvement"


@dataclass(frozen=True)
class ThresholdTable:
    """Score bands with inclusive lower bounds, highest first.

    Scores below every band (and NaN) fall through to ``fallback``.
    """

    bands: tuple[tuple[float, PerformanceLabel], ...]
    fallback: PerformanceLabel

    def classify(self, score: float) -> PerformanceLabel:
        for minimum, label in self.bands:
            if score >= minimum:
                return label
        return self.fallback

    def to_config(self) -> dict:
        return {
            "bands": [[minimum, label.value] for minimum, label in self.bands],
            "fallback": self.fallback.value,
        }

    @classmethod
    def from_config(cls, raw: dict) -> "ThresholdTable":
        bands = sorted(
            ((float(minimum), PerformanceLabel(label)) for minimum, label in raw.get("bands", [])),
            key=lambda band: -band[0],
        )
        return cls(bands=tuple(bands), fallback=PerformanceLabel(raw["fallback"]))


RECRUITER_TABLE = ThresholdTable(
    bands=(
        (4.0, PerformanceLabel.EXCELLENT),
        (3.0, PerformanceLabel.STRONG),
        (2.0, PerformanceLabel.AVERAGE),
    ),
    fallback=PerformanceLabel.AT_RISK,
)

ACCOUNT_MANAGER_TABLE = ThresholdTable(
    bands=(
        (100.0, PerformanceLabel.EXCELLENT),
        (50.0, PerformanceLabel.STRONG),
        (20.0, PerformanceLabel.AVERAGE),
    ),
    fallback=PerformanceLabel.AT_RISK,
)

RECRUITMENT_MANAGER_TABLE = ThresholdTable(
    bands=(
        (90.0, PerformanceLabel.EXCELLENT),
        (75.0, PerformanceLabel.STRONG),
        (60.0, PerformanceLabel.AVERAGE),
    ),
    fallback=PerformanceLabel.AT_RISK,
)

# Coarser bands for the admin overview; the live values come from the
# "scoring" setting so they can be retuned without a deploy.
ADMIN_TABLE = ThresholdTable(
    bands=(
        (80.0, PerformanceLabel.EXCELLENT),
        (60.0, PerformanceLabel.GOOD),
        (40.0, PerformanceLabel.AVERAGE),
    ),
    fallback=PerformanceLabel.NEEDS_IMPROVEMENT,
)


def classify(score: float, table: ThresholdTable) -> PerformanceLabel:
    return table.classify(score)
