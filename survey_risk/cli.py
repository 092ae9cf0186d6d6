"""
Command-line entry point: run one survey submission through the full pipeline.

Examples:
    survey-risk --text "I'm 52, I smoke and rarely exercise. Lots of processed food."
    survey-risk --fields '{"age": 70, "smoker": true, "exercise": "never", "diet": "high sugar"}'
    survey-risk --image ./filled-form.png
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from survey_risk.config import AppConfig, get_config, print_config_summary
from survey_risk.domain.errors import IncompleteProfile, SurveyRiskError
from survey_risk.domain.models import CompleteAssessment, RiskLevel, SurveySubmission
from survey_risk.log_config import configure_logging
from survey_risk.services.pipeline import build_pipeline
from survey_risk.services.uploads import stage_upload

console = Console()

LEVEL_STYLES = {
    RiskLevel.LOW: "green",
    RiskLevel.MODERATE: "yellow",
    RiskLevel.HIGH: "red",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="survey-risk", description="Assess health risk from a survey submission."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--text", help="free-text survey answers")
    source.add_argument("--image", type=Path, help="photo of a filled survey form")
    source.add_argument("--fields", help="structured answers as a JSON object")
    parser.add_argument("--json", action="store_true", help="print the raw JSON response")
    parser.add_argument("--show-config", action="store_true", help="print configuration and exit")
    return parser


def _submission_from_args(args: argparse.Namespace, config: AppConfig) -> SurveySubmission:
    if args.image is not None:
        # The pipeline deletes the image it is given, so hand it a staged copy
        return SurveySubmission(image_path=stage_upload(args.image, config.uploads))
    if args.fields is not None:
        return SurveySubmission(fields=json.loads(args.fields))
    return SurveySubmission(text=args.text)


def render_assessment(assessment: CompleteAssessment) -> None:
    risk = assessment.risk
    style = LEVEL_STYLES[risk.level]

    console.print(
        Panel(
            f"[bold {style}]{risk.level.value.upper()}[/] (score {risk.score}/100)",
            title="Health Risk Assessment",
        )
    )

    profile_table = Table(title=f"Profile (confidence {assessment.profile.confidence:.0%})")
    profile_table.add_column("Field")
    profile_table.add_column("Value")
    for field, value in assessment.profile.answers.model_dump().items():
        profile_table.add_row(field, "-" if value is None else str(value))
    console.print(profile_table)

    console.print(f"Risk factors: {escape(', '.join(assessment.factors.factors)) or 'none'}")
    console.print(f"Rationale: {escape(', '.join(risk.rationale)) or 'none'}")

    if assessment.recommendations:
        console.print("\n[bold]Recommendations[/]")
        for i, recommendation in enumerate(assessment.recommendations, 1):
            console.print(f"  {i}. {escape(recommendation)}")


async def _run(submission: SurveySubmission, config: AppConfig) -> CompleteAssessment:
    pipeline = build_pipeline(config)
    return await pipeline.complete_profile(submission)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    config = get_config()
    configure_logging(config.logging)

    if args.show_config:
        print_config_summary()
        return 0

    try:
        submission = _submission_from_args(args, config)
        assessment = asyncio.run(_run(submission, config))
    except IncompleteProfile as e:
        console.print(f"[red]Incomplete profile:[/] missing {', '.join(e.missing_fields)}")
        return 1
    except (SurveyRiskError, ValidationError, json.JSONDecodeError, OSError) as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        return 1

    if args.json:
        console.print_json(data=assessment.to_response())
    else:
        render_assessment(assessment)
    return 0


if __name__ == "__main__":
    sys.exit(main())
