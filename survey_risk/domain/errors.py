"""
Error taxonomy for the survey pipeline.

Only OCRError is absorbed inside the pipeline (it degrades into a
low-confidence placeholder result). Every other error propagates to the caller
unchanged and aborts the remaining stages of that request.
"""

from collections.abc import Sequence


class SurveyRiskError(Exception):
    """Base class for all pipeline errors."""


class InvalidInput(SurveyRiskError):
    """No recognizable input mode was supplied."""


class IncompleteProfile(SurveyRiskError):
    """Half or more of the required profile fields are missing."""

    def __init__(self, missing_fields: Sequence[str], completeness: float) -> None:
        self.missing_fields = list(missing_fields)
        self.completeness = completeness
        super().__init__(
            f">50% fields missing (completeness={completeness:.2f}, "
            f"missing={', '.join(self.missing_fields)})"
        )


class InvalidProfile(SurveyRiskError):
    """Profile values fall outside the HealthProfile domain (strict mode only)."""


class OCRError(SurveyRiskError):
    """The OCR engine could not read the uploaded image."""


class GenerationError(SurveyRiskError):
    """The text-generation engine is unavailable or failed upstream."""


class ExtractionParseError(SurveyRiskError):
    """A text-generation response did not have the expected JSON shape."""


class RiskAssessmentError(SurveyRiskError):
    """Unexpected internal fault while scoring. Well-typed input never raises it."""


class UploadRejected(SurveyRiskError):
    """An uploaded image violates the configured content type or size policy."""
