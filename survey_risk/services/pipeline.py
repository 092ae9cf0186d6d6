"""
Survey pipeline orchestration.

Stages run strictly in sequence for one submission:
1. Normalize the input into answers + confidence
2. Check completeness
3. Extract risk factors
4. Score and classify risk
5. Synthesize recommendations

Each stage is also exposed on its own. Any error other than an OCR failure
(already absorbed by the normalizer) aborts the request; no partial results
are returned.
"""

import os
from collections.abc import Sequence
from datetime import UTC, datetime

import structlog

from survey_risk.config import AppConfig
from survey_risk.domain.errors import IncompleteProfile
from survey_risk.domain.models import (
    CompleteAssessment,
    FactorSet,
    HealthProfile,
    ParsedInput,
    RiskAssessment,
    RiskLevel,
    SurveyAnswers,
    SurveySubmission,
)
from survey_risk.services import profile_validator, risk_scorer
from survey_risk.services.factor_extractor import FactorExtractor
from survey_risk.services.generation import PydanticAITextGenerator
from survey_risk.services.input_normalizer import InputNormalizer
from survey_risk.services.ocr import TesseractOCREngine
from survey_risk.services.recommendations import RecommendationSynthesizer

logger = structlog.get_logger(__name__)


class HealthSurveyPipeline:
    """Composes normalization, validation, factor extraction, scoring and recommendations."""

    def __init__(
        self,
        normalizer: InputNormalizer,
        factor_extractor: FactorExtractor,
        recommendation_synthesizer: RecommendationSynthesizer,
        strict_profile_validation: bool = False,
    ) -> None:
        self.normalizer = normalizer
        self.factor_extractor = factor_extractor
        self.recommendation_synthesizer = recommendation_synthesizer
        self.strict_profile_validation = strict_profile_validation
        self.logger = logger.bind(component="health_survey_pipeline")

    async def parse_input(self, submission: SurveySubmission) -> ParsedInput:
        extraction = await self.normalizer.normalize(submission)
        validation = profile_validator.validate(extraction.answers)
        if not validation.is_valid:
            self.logger.info(
                "incomplete_profile",
                missing_fields=validation.missing_fields,
                completeness=validation.completeness,
            )
            raise IncompleteProfile(validation.missing_fields, validation.completeness)
        return ParsedInput(extraction=extraction, validation=validation)

    async def extract_factors(self, answers: SurveyAnswers | HealthProfile) -> FactorSet:
        profile_validator.require_complete(answers)
        return await self.factor_extractor.extract(self._checked(answers))

    def classify_risk(
        self, answers: SurveyAnswers | HealthProfile, factors: Sequence[str]
    ) -> RiskAssessment:
        return risk_scorer.assess_risk(answers, factors)

    async def recommend(self, risk_level: RiskLevel | str, factors: Sequence[str]) -> list[str]:
        return await self.recommendation_synthesizer.synthesize(risk_level, factors)

    async def complete_profile(self, submission: SurveySubmission) -> CompleteAssessment:
        started_at = datetime.now(UTC)
        self.logger.info("complete_profile_started", input_mode=submission.input_mode)

        parsed = await self.parse_input(submission)
        answers = self._checked(parsed.extraction.answers)

        factor_set = await self.factor_extractor.extract(answers)
        risk = risk_scorer.assess_risk(answers, factor_set.factors)
        recommendations = await self.recommendation_synthesizer.synthesize(
            risk.level, factor_set.factors
        )

        duration = (datetime.now(UTC) - started_at).total_seconds()
        self.logger.info(
            "complete_profile_finished",
            risk_level=risk.level.value,
            score=risk.score,
            factor_count=len(factor_set.factors),
            recommendation_count=len(recommendations),
            duration_seconds=round(duration, 3),
        )

        return CompleteAssessment(
            profile=parsed.extraction,
            factors=factor_set,
            risk=risk,
            recommendations=recommendations,
        )

    def _checked(self, answers: SurveyAnswers | HealthProfile) -> SurveyAnswers | HealthProfile:
        if self.strict_profile_validation and isinstance(answers, SurveyAnswers):
            return HealthProfile.from_answers(answers)
        return answers


def build_pipeline(config: AppConfig) -> HealthSurveyPipeline:
    """Wire the pipeline against the Tesseract and Pydantic AI adapters."""
    ocr_engine = TesseractOCREngine(
        language=config.pipeline.ocr_language,
        timeout_seconds=config.pipeline.ocr_timeout_seconds,
    )
    api_key = config.ai_provider.gemini_api_key
    if api_key is None:
        logger.warning("generation_api_key_missing", detail="AI-backed stages will fail")
    else:
        # Newer pydantic-ai Google providers read GOOGLE_API_KEY instead of GEMINI_API_KEY
        os.environ.setdefault("GOOGLE_API_KEY", api_key)

    return HealthSurveyPipeline(
        normalizer=InputNormalizer(
            ocr_engine,
            PydanticAITextGenerator.for_task("field_extraction", config),
            escalation_min_fields=config.pipeline.escalation_min_fields,
        ),
        factor_extractor=FactorExtractor(
            PydanticAITextGenerator.for_task("factor_extraction", config)
        ),
        recommendation_synthesizer=RecommendationSynthesizer(
            PydanticAITextGenerator.for_task("recommendations", config)
        ),
        strict_profile_validation=config.pipeline.strict_profile_validation,
    )
