"""
Deterministic risk scoring and classification.

Pure functions only: no I/O, no clock, no randomness. The same answers and
factors always produce the same assessment.

The weights and thresholds below are fixed policy. Behavioral tests pin the
exact values, so change them only together with those tests.
"""

from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Any

import structlog

from survey_risk.domain.errors import RiskAssessmentError
from survey_risk.domain.models import HealthProfile, RiskAssessment, RiskLevel, SurveyAnswers

logger = structlog.get_logger(__name__)

MAX_SCORE = 100

# (exclusive lower age bound, points, rationale tag), checked top down, first match wins
AGE_BUCKETS: tuple[tuple[int, int, str], ...] = (
    (60, 20, "age over 60"),
    (45, 10, "age over 45"),
)

SMOKING_POINTS = 30

LOW_ACTIVITY_LEVELS = frozenset({"never", "rarely"})
LOW_ACTIVITY_POINTS = 20
MODERATE_ACTIVITY_LEVEL = "sometimes"
MODERATE_ACTIVITY_POINTS = 10

UNHEALTHY_DIET_MARKERS = ("high sugar", "high fat", "processed")
UNHEALTHY_DIET_POINTS = 15
HIGH_SUGAR_MARKER = "high sugar"

# (substrings, points) applied independently to every reported factor
FACTOR_RULES: tuple[tuple[tuple[str, ...], int], ...] = (
    (("obesity", "overweight"), 15),
    (("alcohol",), 10),
    (("stress",), 10),
)

# (inclusive lower score bound, level), checked top down
RISK_LEVEL_THRESHOLDS: tuple[tuple[int, RiskLevel], ...] = (
    (70, RiskLevel.HIGH),
    (40, RiskLevel.MODERATE),
)


class RationaleBuilder:
    """Ordered set of rationale tags; re-adding a tag keeps its first position."""

    def __init__(self) -> None:
        self._tags: dict[str, None] = {}

    def add(self, tag: str) -> None:
        self._tags.setdefault(tag, None)

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags

    def __len__(self) -> int:
        return len(self._tags)

    def build(self) -> list[str]:
        return list(self._tags)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value).lower()
    return str(value).lower()


def calculate_risk_score(
    answers: SurveyAnswers | HealthProfile, factors: Iterable[str]
) -> tuple[int, list[str]]:
    """Return the capped score and the ordered, de-duplicated rationale."""
    score = 0
    rationale = RationaleBuilder()

    if answers.age:
        for lower_bound, points, tag in AGE_BUCKETS:
            if answers.age > lower_bound:
                score += points
                rationale.add(tag)
                break

    if answers.smoker is True:
        score += SMOKING_POINTS
        rationale.add("smoking")

    exercise = _text(answers.exercise)
    if exercise in LOW_ACTIVITY_LEVELS:
        score += LOW_ACTIVITY_POINTS
        rationale.add("low physical activity")
    elif exercise == MODERATE_ACTIVITY_LEVEL:
        score += MODERATE_ACTIVITY_POINTS
        rationale.add("moderate physical activity")

    diet = _text(answers.diet)
    if any(marker in diet for marker in UNHEALTHY_DIET_MARKERS):
        score += UNHEALTHY_DIET_POINTS
        rationale.add("unhealthy diet")
    if HIGH_SUGAR_MARKER in diet:
        rationale.add("high sugar intake")

    for factor in factors:
        factor_lower = factor.lower()
        for markers, points in FACTOR_RULES:
            if any(marker in factor_lower for marker in markers):
                score += points
                rationale.add(factor)

    return min(score, MAX_SCORE), rationale.build()


def classify_risk_level(score: int) -> RiskLevel:
    for lower_bound, level in RISK_LEVEL_THRESHOLDS:
        if score >= lower_bound:
            return level
    return RiskLevel.LOW


def assess_risk(
    answers: SurveyAnswers | HealthProfile, factors: Sequence[str]
) -> RiskAssessment:
    """Score and classify a profile."""
    try:
        score, rationale = calculate_risk_score(answers, factors)
        assessment = RiskAssessment(
            level=classify_risk_level(score), score=score, rationale=rationale
        )
    except Exception as e:
        logger.error("risk_assessment_failed", error=str(e))
        raise RiskAssessmentError(f"Failed to assess risk: {e}") from e

    logger.info("risk_assessed", risk_level=assessment.level.value, score=assessment.score)
    return assessment
