"""
Input normalization: image, free text or structured fields -> ExtractionResult.

Image submissions go through a two-tier strategy. Labeled-line regexes run on
the OCR text first; if too few fields come back the raw text is escalated to
the text-generation engine, whose fixed confidence then replaces the OCR one.

Confidence sources:
- image, regex path: OCR engine's own confidence
- image, escalated path and free text: 0.85
- structured fields: 0.95
- OCR failure: 0.1 with placeholder answers
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from survey_risk.domain.errors import ExtractionParseError, InvalidInput, OCRError
from survey_risk.domain.models import (
    REQUIRED_FIELDS,
    ExtractionResult,
    SurveyAnswers,
    SurveySubmission,
)
from survey_risk.services.generation import TextGenerator, parse_json_response
from survey_risk.services.ocr import OCREngine
from survey_risk.services.uploads import scoped_upload

logger = structlog.get_logger(__name__)

AI_EXTRACTION_CONFIDENCE = 0.85
STRUCTURED_INPUT_CONFIDENCE = 0.95
DEGRADED_CONFIDENCE = 0.1

DEGRADED_ANSWERS = SurveyAnswers(
    age=0, smoker=False, exercise="unknown", diet="unable to process image"
)

_AGE_PATTERN = re.compile(r"age[:\s]+(\d+)", re.IGNORECASE)
_SMOKER_PATTERN = re.compile(r"smoker[:\s]+(yes|no|true|false)", re.IGNORECASE)
_EXERCISE_PATTERN = re.compile(r"exercise[:\s]+(\w+)", re.IGNORECASE)
_DIET_PATTERN = re.compile(r"diet[:\s]+(.+?)(?:\n|$)", re.IGNORECASE)

FIELD_EXTRACTION_PROMPT = """
Extract health survey data from the following text and return ONLY a valid JSON object with these fields:
- age (number)
- smoker (boolean)
- exercise (string: "never", "rarely", "sometimes", "regularly", "daily")
- diet (string description)

Text: "{text}"

Return ONLY the JSON object, no explanation or markdown formatting.
Example format: {{"age": 42, "smoker": true, "exercise": "rarely", "diet": "high sugar"}}
"""


@dataclass(frozen=True)
class FullyParsed:
    """Regex recovered enough fields; no AI call is needed."""

    fields: dict[str, Any]


@dataclass(frozen=True)
class NeedsEscalation:
    """Regex came up short; the raw text must go to the text-generation engine."""

    partial_fields: dict[str, Any]
    raw_text: str


RegexOutcome = FullyParsed | NeedsEscalation


def parse_labeled_fields(text: str) -> dict[str, Any]:
    """Pull ``label: value`` survey fields out of OCR text."""
    fields: dict[str, Any] = {}

    if age_match := _AGE_PATTERN.search(text):
        fields["age"] = int(age_match.group(1))

    if smoker_match := _SMOKER_PATTERN.search(text):
        fields["smoker"] = smoker_match.group(1).lower() in {"yes", "true"}

    if exercise_match := _EXERCISE_PATTERN.search(text):
        fields["exercise"] = exercise_match.group(1).lower()

    if diet_match := _DIET_PATTERN.search(text):
        fields["diet"] = diet_match.group(1).strip().lower()

    return fields


def classify_regex_parse(text: str, min_fields: int = 3) -> RegexOutcome:
    fields = parse_labeled_fields(text)
    if len(fields) >= min_fields:
        return FullyParsed(fields=fields)
    return NeedsEscalation(partial_fields=fields, raw_text=text)


class InputNormalizer:
    """Turns one survey submission into answers plus a confidence estimate."""

    def __init__(
        self,
        ocr_engine: OCREngine,
        text_generator: TextGenerator,
        escalation_min_fields: int = 3,
    ) -> None:
        self.ocr_engine = ocr_engine
        self.text_generator = text_generator
        self.escalation_min_fields = escalation_min_fields
        self.logger = logger.bind(component="input_normalizer")

    async def normalize(self, submission: SurveySubmission) -> ExtractionResult:
        mode = submission.input_mode
        self.logger.info("input_normalization_started", input_mode=mode)

        if submission.image_path is not None:
            return await self._from_image(submission.image_path)
        if mode == "text" and submission.text is not None:
            return await self._from_text(submission.text)
        if mode == "json" and submission.fields is not None:
            return self._from_fields(submission.fields)

        raise InvalidInput("No valid input provided. Send JSON data, text field, or image file.")

    async def extract_fields_from_text(self, text: str) -> SurveyAnswers:
        """Ask the text-generation engine for all four fields as JSON."""
        response = await self.text_generator.generate(FIELD_EXTRACTION_PROMPT.format(text=text))
        data = parse_json_response(response, "field extraction")
        if not isinstance(data, dict):
            raise ExtractionParseError("Field extraction response is not a JSON object")
        try:
            return SurveyAnswers.model_validate(data)
        except ValidationError as e:
            # Unusable values count as missing; completeness checking decides what happens next
            invalid = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            self.logger.warning("field_extraction_values_dropped", fields=invalid)
            return SurveyAnswers.model_validate({**data, **dict.fromkeys(invalid)})

    async def _from_image(self, image_path: Path) -> ExtractionResult:
        async with scoped_upload(image_path):
            try:
                ocr_text = await self.ocr_engine.extract_text(image_path)
            except OCRError as e:
                self.logger.error("ocr_failed_returning_degraded_result", error=str(e))
                return ExtractionResult(
                    answers=DEGRADED_ANSWERS,
                    confidence=DEGRADED_CONFIDENCE,
                    input_mode="image",
                )

            outcome = classify_regex_parse(ocr_text.text, self.escalation_min_fields)

            if isinstance(outcome, FullyParsed):
                self.logger.info("regex_parse_complete", fields=sorted(outcome.fields))
                answers = SurveyAnswers.model_validate(outcome.fields)
                confidence = ocr_text.confidence
            else:
                self.logger.info(
                    "regex_parse_incomplete_escalating",
                    recovered_fields=sorted(outcome.partial_fields),
                )
                answers = await self.extract_fields_from_text(outcome.raw_text)
                confidence = AI_EXTRACTION_CONFIDENCE

            return ExtractionResult(
                answers=answers,
                confidence=confidence,
                raw_text=ocr_text.text,
                input_mode="image",
                ocr_confidence=ocr_text.confidence,
            )

    async def _from_text(self, text: str) -> ExtractionResult:
        answers = await self.extract_fields_from_text(text)
        return ExtractionResult(
            answers=answers,
            confidence=AI_EXTRACTION_CONFIDENCE,
            raw_text=text,
            input_mode="text",
        )

    def _from_fields(self, fields: dict[str, Any]) -> ExtractionResult:
        try:
            answers = SurveyAnswers.model_validate(
                {name: fields.get(name) for name in REQUIRED_FIELDS}
            )
        except ValidationError as e:
            raise InvalidInput(f"Structured fields have unusable values: {e}") from e
        return ExtractionResult(
            answers=answers,
            confidence=STRUCTURED_INPUT_CONFIDENCE,
            input_mode="json",
        )
