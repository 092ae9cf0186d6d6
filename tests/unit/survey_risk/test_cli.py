"""Tests for the command-line entry point with the real adapters swapped out."""

from __future__ import annotations

import json

import pytest
from conftest import FakeOCREngine, FakeTextGenerator

from survey_risk import cli
from survey_risk.config import AppConfig
from survey_risk.services.factor_extractor import FactorExtractor
from survey_risk.services.input_normalizer import InputNormalizer
from survey_risk.services.pipeline import HealthSurveyPipeline
from survey_risk.services.recommendations import RecommendationSynthesizer


def _fake_build_pipeline(config: AppConfig) -> HealthSurveyPipeline:
    return HealthSurveyPipeline(
        normalizer=InputNormalizer(FakeOCREngine(), FakeTextGenerator()),
        factor_extractor=FactorExtractor(FakeTextGenerator('{"factors": ["stress"]}')),
        recommendation_synthesizer=RecommendationSynthesizer(
            FakeTextGenerator('["Take short breaks"]')
        ),
    )


@pytest.fixture(autouse=True)
def fake_pipeline(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "build_pipeline", _fake_build_pipeline)


def test_structured_fields_render_json(capsys: pytest.CaptureFixture[str]) -> None:
    fields = {"age": 50, "smoker": True, "exercise": "sometimes", "diet": "balanced"}

    exit_code = cli.main(["--fields", json.dumps(fields), "--json"])

    output = capsys.readouterr().out
    assert exit_code == 0
    response = json.loads(output)
    assert response["risk"] == {
        "risk_level": "moderate",
        "score": 60,
        "rationale": ["age over 45", "smoking", "moderate physical activity", "stress"],
    }
    assert response["recommendations"] == ["Take short breaks"]


def test_rich_rendering(capsys: pytest.CaptureFixture[str]) -> None:
    fields = {"age": 30, "smoker": False, "exercise": "daily", "diet": "balanced"}

    exit_code = cli.main(["--fields", json.dumps(fields)])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "LOW" in output
    assert "Take short breaks" in output


def test_incomplete_profile_exits_with_error(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["--fields", '{"age": 30}'])

    assert exit_code == 1
    assert "Incomplete profile" in capsys.readouterr().out


def test_no_input_exits_with_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 1
    assert "No valid input provided" in capsys.readouterr().out
