"""Field-presence completeness check for survey profiles."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from survey_risk.domain.errors import IncompleteProfile
from survey_risk.domain.models import REQUIRED_FIELDS, ValidationResult


def _as_mapping(answers: BaseModel | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(answers, BaseModel):
        return answers.model_dump()
    return answers


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def validate(answers: BaseModel | Mapping[str, Any]) -> ValidationResult:
    """
    Check which required fields are present.

    Only presence is checked, not type or range. A profile is valid when
    strictly more than half of the fields are present, so two of four is
    still invalid.
    """
    values = _as_mapping(answers)
    missing_fields = [field for field in REQUIRED_FIELDS if not _is_present(values.get(field))]
    completeness = (len(REQUIRED_FIELDS) - len(missing_fields)) / len(REQUIRED_FIELDS)
    is_valid = completeness > 0.5

    return ValidationResult(
        is_valid=is_valid,
        missing_fields=missing_fields,
        completeness=completeness,
        message="Profile is valid" if is_valid else ">50% fields missing",
    )


def require_complete(answers: BaseModel | Mapping[str, Any]) -> ValidationResult:
    """Like validate(), but raise IncompleteProfile for an invalid profile."""
    result = validate(answers)
    if not result.is_valid:
        raise IncompleteProfile(result.missing_fields, result.completeness)
    return result
