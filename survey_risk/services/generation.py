"""
Text-generation collaborator used for field extraction, risk factors and
recommendations.

The pipeline only depends on the TextGenerator protocol. The shipped adapter
runs a Pydantic AI agent with plain string output, because each stage owns its
own prompt and its own JSON response shape.
"""

import asyncio
import json
import re
from typing import Any, Protocol, cast

import structlog
from pydantic_ai import Agent

from survey_risk.config import AppConfig, ModelTask, get_model_config
from survey_risk.domain.errors import ExtractionParseError, GenerationError

logger = structlog.get_logger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


class TextGenerator(Protocol):
    """
    Protocol for anything that turns a prompt into text.

    Implementations raise GenerationError when the upstream service is
    unavailable or fails.
    """

    async def generate(self, prompt: str) -> str: ...


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences that models like to wrap JSON in."""
    return _CODE_FENCE.sub("", text.strip()).strip()


def parse_json_response(text: str, purpose: str) -> Any:
    """Decode a (possibly fenced) JSON response or raise ExtractionParseError."""
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("json_response_unparseable", purpose=purpose, error=str(e))
        raise ExtractionParseError(f"Failed to parse {purpose} response: {e}") from e


class PydanticAITextGenerator:
    """TextGenerator backed by a Pydantic AI agent."""

    def __init__(
        self,
        model_name: str,
        temperature: float = 0.1,
        timeout_seconds: float | None = None,
    ) -> None:
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        self.logger = logger.bind(component="text_generator", model=model_name)

        # Model resolution happens on first run so a missing API key
        # surfaces as a GenerationError instead of an import-time crash.
        self.agent = Agent(
            model=model_name,
            output_type=str,
            system_prompt=(
                "You extract and summarize health survey information. "
                "Always answer with exactly the JSON requested and nothing else."
            ),
            model_settings={"temperature": temperature},
            defer_model_check=True,
        )

    @classmethod
    def for_task(
        cls, task: ModelTask, config: AppConfig | None = None
    ) -> "PydanticAITextGenerator":
        model_config = get_model_config(task, config)
        return cls(
            model_name=model_config["model_name"],
            temperature=model_config["temperature"],
            timeout_seconds=model_config["timeout_seconds"],
        )

    async def generate(self, prompt: str) -> str:
        try:
            result = await asyncio.wait_for(self.agent.run(prompt), timeout=self.timeout_seconds)
        except TimeoutError as e:
            self.logger.error("generation_timeout", timeout_seconds=self.timeout_seconds)
            raise GenerationError(
                f"Text generation timed out after {self.timeout_seconds}s"
            ) from e
        except Exception as e:
            self.logger.error("generation_failed", error=str(e))
            raise GenerationError(f"Text generation call failed: {e}") from e

        text = cast(str, cast(Any, result).output)
        self.logger.debug("generation_completed", response_chars=len(text))
        return text
