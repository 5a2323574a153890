"""
Leakwatch - Scoring Service
Revenue leak score, letter grade and estimated monthly loss

Every penalty is additive and independent of the others; the same inputs
always give the same score.
"""

from dataclasses import dataclass
from typing import List, Sequence

from app.core.rounding import round_half_up
from app.schemas.scan import TrackingHealthIssue, TrustGapIssue
from app.services.store_signals import is_penalized_theme


MAX_IMAGE_PENALTY = 15
MAX_DESCRIPTION_PENALTY = 10
MISSING_TRUST_PAGE_PENALTY = 8
MISSING_TRACKING_PENALTY = 10
OUTDATED_THEME_PENALTY = 10

# (abandonment rate strictly above, penalty), checked top-down
ABANDONMENT_PENALTIES = [
    (70, 20),
    (50, 15),
    (30, 10),
    (20, 5),
]

# (minimum score, grade), checked top-down
GRADE_THRESHOLDS = [
    (95, "A"),
    (90, "A-"),
    (85, "B+"),
    (80, "B"),
    (75, "B-"),
    (70, "C+"),
    (65, "C"),
    (60, "C-"),
    (50, "D+"),
]
LOWEST_GRADE = "D"


@dataclass(frozen=True)
class ScoreInputs:
    products_without_images: int
    products_without_description: int
    trust_gap_issues: Sequence[TrustGapIssue]
    abandonment_rate: float
    tracking_health_issues: Sequence[TrackingHealthIssue]
    theme_name: str


@dataclass(frozen=True)
class ScoreCard:
    score: int
    grade: str
    estimated_monthly_loss: int


def missing_high_severity(issues: Sequence) -> List:
    """Records that were not found and carry high severity, in detection order"""
    return [i for i in issues if not i.found and i.severity == "high"]


def abandonment_penalty(rate: float) -> int:
    for threshold, penalty in ABANDONMENT_PENALTIES:
        if rate > threshold:
            return penalty
    return 0


def calculate_score(inputs: ScoreInputs) -> int:
    score = 100
    score -= min(MAX_IMAGE_PENALTY, inputs.products_without_images * 2)
    score -= min(MAX_DESCRIPTION_PENALTY, inputs.products_without_description)
    score -= MISSING_TRUST_PAGE_PENALTY * len(missing_high_severity(inputs.trust_gap_issues))
    score -= abandonment_penalty(inputs.abandonment_rate)
    score -= MISSING_TRACKING_PENALTY * len(missing_high_severity(inputs.tracking_health_issues))
    if is_penalized_theme(inputs.theme_name):
        score -= OUTDATED_THEME_PENALTY
    return max(0, min(100, round_half_up(score)))


def grade_for_score(score: int) -> str:
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return LOWEST_GRADE


def estimate_monthly_loss(total_revenue: int, score: int) -> int:
    return round_half_up(total_revenue * (100 - score) / 100)


def score_store(inputs: ScoreInputs, total_revenue: int) -> ScoreCard:
    score = calculate_score(inputs)
    return ScoreCard(
        score=score,
        grade=grade_for_score(score),
        estimated_monthly_loss=estimate_monthly_loss(total_revenue, score),
    )
