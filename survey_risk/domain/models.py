"""
Domain models for health survey risk assessment.

Every model is an immutable, request-scoped value object. Nothing here
persists across requests; storing a finished assessment is a caller concern.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from survey_risk.domain.errors import InvalidProfile

InputMode = Literal["image", "text", "json"]

REQUIRED_FIELDS: tuple[str, ...] = ("age", "smoker", "exercise", "diet")


class ExerciseLevel(str, Enum):
    """Self-reported physical activity frequency."""

    NEVER = "never"
    RARELY = "rarely"
    SOMETIMES = "sometimes"
    REGULARLY = "regularly"
    DAILY = "daily"


class RiskLevel(str, Enum):
    """Risk tiers, ordered from lowest to highest."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class SurveyAnswers(BaseModel):
    """
    Survey answers as extracted from a submission.

    Any field may be missing and values are not range checked: OCR placeholders
    (age=0, exercise="unknown") and raw structured input both land here.
    """

    model_config = ConfigDict(frozen=True)

    age: int | None = None
    smoker: bool | None = None
    exercise: str | None = None
    diet: str | None = None


class HealthProfile(BaseModel):
    """Fully specified profile with domain constraints enforced."""

    model_config = ConfigDict(frozen=True)

    age: int = Field(ge=1, le=120)
    smoker: bool
    exercise: ExerciseLevel
    diet: str = Field(min_length=3, max_length=200)

    @classmethod
    def from_answers(cls, answers: SurveyAnswers) -> "HealthProfile":
        """Promote extracted answers to a checked profile or raise InvalidProfile."""
        try:
            return cls.model_validate(answers.model_dump())
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise InvalidProfile(f"Invalid profile fields: {', '.join(fields)}") from e


class ExtractionResult(BaseModel):
    """Output of input normalization."""

    model_config = ConfigDict(frozen=True)

    answers: SurveyAnswers
    confidence: float = Field(ge=0.0, le=1.0)
    raw_text: str | None = None
    input_mode: InputMode
    ocr_confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class ValidationResult(BaseModel):
    """Field-presence completeness of a profile."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    missing_fields: list[str]
    completeness: float = Field(ge=0.0, le=1.0)
    message: str


class FactorSet(BaseModel):
    """Risk factors reported by the text-generation engine."""

    model_config = ConfigDict(frozen=True)

    factors: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.85, ge=0.0, le=1.0)

    def to_response(self) -> dict[str, Any]:
        return {"list": list(self.factors), "confidence": round(self.confidence, 2)}


class RiskAssessment(BaseModel):
    """Deterministic risk score with its classification and rationale."""

    model_config = ConfigDict(frozen=True)

    level: RiskLevel
    score: int = Field(ge=0, le=100)
    rationale: list[str] = Field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        return {
            "risk_level": self.level.value,
            "score": self.score,
            "rationale": list(self.rationale),
        }


class SurveySubmission(BaseModel):
    """
    One incoming survey submission.

    Modes are checked in order image, text, structured fields; the first one
    present wins. Structured fields count only when they carry an ``age`` key.
    """

    model_config = ConfigDict(frozen=True)

    image_path: Path | None = None
    text: str | None = None
    fields: dict[str, Any] | None = None

    @property
    def input_mode(self) -> InputMode | None:
        if self.image_path is not None:
            return "image"
        if self.text:
            return "text"
        if self.fields is not None and "age" in self.fields:
            return "json"
        return None


class ParsedInput(BaseModel):
    """Normalized input that passed the completeness check."""

    model_config = ConfigDict(frozen=True)

    extraction: ExtractionResult
    validation: ValidationResult

    def to_response(self) -> dict[str, Any]:
        response: dict[str, Any] = {
            "answers": self.extraction.answers.model_dump(),
            "missing_fields": list(self.validation.missing_fields),
            "confidence": round(self.extraction.confidence, 2),
        }
        if self.extraction.raw_text:
            response["raw_text"] = self.extraction.raw_text
        return response


class CompleteAssessment(BaseModel):
    """Result of running every pipeline stage for one submission."""

    model_config = ConfigDict(frozen=True)

    profile: ExtractionResult
    factors: FactorSet
    risk: RiskAssessment
    recommendations: list[str]

    def to_response(self) -> dict[str, Any]:
        return {
            "profile": {
                "answers": self.profile.answers.model_dump(),
                "confidence": round(self.profile.confidence, 2),
            },
            "factors": self.factors.to_response(),
            "risk": self.risk.to_response(),
            "recommendations": list(self.recommendations),
            "status": "ok",
        }
