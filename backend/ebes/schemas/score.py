from __future__ import annotations
from pydantic import BaseModel

from ebes.services.labels import PerformanceLabel


class ThresholdConfig(BaseModel):
    bands: list[tuple[float, PerformanceLabel]]
    fallback: PerformanceLabel


class RecruiterWeights(BaseModel):
    submission_6h: float
    submission_24h: float
    submission_after_24h: float
    interview: float
    deal: float
    dropout: float


class AccountManagerWeights(BaseModel):
    new_role: float
    deal: float
    lost: float
    no_answer: float
    on_hold: float
    interview_rounds: dict[str, float]


class RecruitmentManagerWeights(BaseModel):
    speed: dict[str, float]
    entry: dict[str, float]
    assigned_role: float
    active_role: float


class ScoreWeights(BaseModel):
    recruiter: RecruiterWeights
    account_manager: AccountManagerWeights
    recruitment_manager: RecruitmentManagerWeights


class ScoreConfig(BaseModel):
    weights: ScoreWeights
    thresholds: dict[str, ThresholdConfig]
