"""Tests for recommendation synthesis."""

from __future__ import annotations

import pytest
from conftest import FakeTextGenerator

from survey_risk.domain.errors import ExtractionParseError, GenerationError
from survey_risk.domain.models import RiskLevel
from survey_risk.services.recommendations import RecommendationSynthesizer


@pytest.mark.asyncio
async def test_returns_recommendation_list() -> None:
    generator = FakeTextGenerator(
        '```json\n["Walk 30 minutes a day", "Swap soda for water", "Talk to a quit-line"]\n```'
    )

    recommendations = await RecommendationSynthesizer(generator).synthesize(
        RiskLevel.HIGH, ["smoking", "high sugar intake"]
    )

    assert recommendations == [
        "Walk 30 minutes a day",
        "Swap soda for water",
        "Talk to a quit-line",
    ]
    assert "Risk Level: high" in generator.prompts[0]
    assert "Risk Factors: smoking, high sugar intake" in generator.prompts[0]


@pytest.mark.asyncio
async def test_accepts_plain_string_level() -> None:
    generator = FakeTextGenerator('["Keep it up"]')

    await RecommendationSynthesizer(generator).synthesize("low", [])

    assert "Risk Level: low" in generator.prompts[0]


@pytest.mark.asyncio
@pytest.mark.parametrize("response", ['{"recommendations": ["a"]}', '"eat well"', "42", "null"])
async def test_non_array_response_yields_empty_list(response: str) -> None:
    recommendations = await RecommendationSynthesizer(FakeTextGenerator(response)).synthesize(
        RiskLevel.MODERATE, ["stress"]
    )

    assert recommendations == []


@pytest.mark.asyncio
async def test_unparseable_response_raises() -> None:
    with pytest.raises(ExtractionParseError):
        await RecommendationSynthesizer(FakeTextGenerator("Here are some tips:")).synthesize(
            RiskLevel.LOW, []
        )


@pytest.mark.asyncio
async def test_generation_error_propagates() -> None:
    generator = FakeTextGenerator(error=GenerationError("unavailable"))

    with pytest.raises(GenerationError):
        await RecommendationSynthesizer(generator).synthesize(RiskLevel.LOW, [])
