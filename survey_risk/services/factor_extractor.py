"""Risk-factor extraction via the text-generation engine."""

import json

import structlog
from pydantic import ValidationError

from survey_risk.domain.errors import ExtractionParseError
from survey_risk.domain.models import FactorSet, HealthProfile, SurveyAnswers
from survey_risk.services.generation import TextGenerator, parse_json_response

logger = structlog.get_logger(__name__)

COMMON_RISK_FACTORS = (
    "smoking",
    "poor diet",
    "sedentary lifestyle",
    "high sugar intake",
    "obesity",
    "alcohol",
    "stress",
)

FACTOR_PROMPT = """
Based on this health profile, identify risk factors. Return ONLY a JSON array of risk factor strings.

Profile: {profile}

Common risk factors: {common_factors}, etc.

Return ONLY a JSON object in this format:
{{"factors": ["factor1", "factor2"], "confidence": 0.88}}

No explanation, just the JSON.
"""


class FactorExtractor:
    """
    Derives risk-factor tags from a profile.

    The caller must have checked completeness first; this class trusts the
    profile it is given.
    """

    def __init__(self, text_generator: TextGenerator) -> None:
        self.text_generator = text_generator
        self.logger = logger.bind(component="factor_extractor")

    def build_prompt(self, answers: SurveyAnswers | HealthProfile) -> str:
        return FACTOR_PROMPT.format(
            profile=json.dumps(answers.model_dump(mode="json")),
            common_factors=", ".join(COMMON_RISK_FACTORS),
        )

    async def extract(self, answers: SurveyAnswers | HealthProfile) -> FactorSet:
        response = await self.text_generator.generate(self.build_prompt(answers))
        data = parse_json_response(response, "risk factor")

        if not isinstance(data, dict):
            raise ExtractionParseError("Risk factor response is not a JSON object")
        # null factors or confidence fall back to the model defaults
        present = {key: value for key, value in data.items() if value is not None}
        try:
            factor_set = FactorSet.model_validate(present)
        except ValidationError as e:
            raise ExtractionParseError(f"Risk factor response has invalid shape: {e}") from e

        self.logger.info(
            "risk_factors_extracted",
            factor_count=len(factor_set.factors),
            confidence=factor_set.confidence,
        )
        return factor_set
