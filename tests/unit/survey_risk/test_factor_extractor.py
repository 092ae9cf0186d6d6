"""Tests for risk-factor extraction."""

from __future__ import annotations

import json

import pytest
from conftest import FakeTextGenerator

from survey_risk.domain.errors import ExtractionParseError, GenerationError
from survey_risk.domain.models import SurveyAnswers
from survey_risk.services.factor_extractor import COMMON_RISK_FACTORS, FactorExtractor

ANSWERS = SurveyAnswers(age=52, smoker=True, exercise="rarely", diet="processed food")


@pytest.mark.asyncio
async def test_extracts_fenced_factor_object() -> None:
    generator = FakeTextGenerator(
        '```json\n{"factors": ["smoking", "sedentary lifestyle"], "confidence": 0.876}\n```'
    )

    factor_set = await FactorExtractor(generator).extract(ANSWERS)

    assert factor_set.factors == ["smoking", "sedentary lifestyle"]
    assert factor_set.confidence == pytest.approx(0.876)
    assert factor_set.to_response() == {
        "list": ["smoking", "sedentary lifestyle"],
        "confidence": 0.88,
    }


@pytest.mark.asyncio
async def test_missing_confidence_defaults_to_085() -> None:
    generator = FakeTextGenerator('{"factors": ["smoking", "smoking"]}')

    factor_set = await FactorExtractor(generator).extract(ANSWERS)

    assert factor_set.factors == ["smoking", "smoking"]
    assert factor_set.confidence == pytest.approx(0.85)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("response", "factors", "confidence"),
    [
        ('{"factors": ["smoking"], "confidence": null}', ["smoking"], 0.85),
        ('{"factors": null, "confidence": 0.9}', [], 0.9),
        ('{"factors": null, "confidence": null}', [], 0.85),
    ],
)
async def test_null_values_fall_back_to_defaults(
    response: str, factors: list[str], confidence: float
) -> None:
    factor_set = await FactorExtractor(FakeTextGenerator(response)).extract(ANSWERS)

    assert factor_set.factors == factors
    assert factor_set.confidence == pytest.approx(confidence)


@pytest.mark.asyncio
async def test_prompt_embeds_profile_and_seed_factors() -> None:
    generator = FakeTextGenerator('{"factors": []}')

    await FactorExtractor(generator).extract(ANSWERS)

    prompt = generator.prompts[0]
    assert json.dumps(ANSWERS.model_dump(mode="json")) in prompt
    for factor in COMMON_RISK_FACTORS:
        assert factor in prompt


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        "not json at all",
        '["smoking", "stress"]',
        '{"factors": "smoking"}',
        '{"factors": [1, 2]}',
        '{"factors": ["smoking"], "confidence": 1.7}',
    ],
)
async def test_malformed_response_is_parse_error(response: str) -> None:
    with pytest.raises(ExtractionParseError):
        await FactorExtractor(FakeTextGenerator(response)).extract(ANSWERS)


@pytest.mark.asyncio
async def test_generation_error_propagates_unchanged() -> None:
    error = GenerationError("quota exceeded")

    with pytest.raises(GenerationError) as exc_info:
        await FactorExtractor(FakeTextGenerator(error=error)).extract(ANSWERS)

    assert exc_info.value is error
