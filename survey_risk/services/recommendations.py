"""Recommendation synthesis via the text-generation engine."""

from collections.abc import Sequence

import structlog

from survey_risk.domain.models import RiskLevel
from survey_risk.services.generation import TextGenerator, parse_json_response

logger = structlog.get_logger(__name__)

RECOMMENDATION_PROMPT = """
Generate 3-5 actionable, non-diagnostic health recommendations based on:
- Risk Level: {risk_level}
- Risk Factors: {factors}

Return ONLY a JSON array of recommendation strings. Keep recommendations practical, specific, and encouraging.

Format: ["recommendation1", "recommendation2", "recommendation3"]

No explanation, just the JSON array.
"""


class RecommendationSynthesizer:
    """Turns a risk level and its factors into short recommendations."""

    def __init__(self, text_generator: TextGenerator) -> None:
        self.text_generator = text_generator
        self.logger = logger.bind(component="recommendation_synthesizer")

    async def synthesize(self, risk_level: RiskLevel | str, factors: Sequence[str]) -> list[str]:
        """
        Ask for recommendations and return them as strings.

        A well-formed response that is not a JSON array yields an empty list
        instead of an error. Unparseable JSON still raises.
        """
        level = risk_level.value if isinstance(risk_level, RiskLevel) else risk_level
        prompt = RECOMMENDATION_PROMPT.format(risk_level=level, factors=", ".join(factors))

        response = await self.text_generator.generate(prompt)
        data = parse_json_response(response, "recommendations")

        if not isinstance(data, list):
            self.logger.warning("recommendations_not_a_list", response_type=type(data).__name__)
            return []

        recommendations = [str(item) for item in data]
        self.logger.info("recommendations_generated", count=len(recommendations))
        return recommendations
