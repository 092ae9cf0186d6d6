"""
Shared test doubles.

The pipeline only talks to its collaborators through the OCREngine and
TextGenerator protocols, so these in-memory fakes replace them without any
network access or Tesseract install.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from survey_risk.domain.errors import OCRError
from survey_risk.services.ocr import OCRText


class FakeTextGenerator:
    """Returns canned responses in order and records every prompt."""

    def __init__(self, *responses: str, error: Exception | None = None) -> None:
        self.responses = list(responses)
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if not self.responses:
            raise AssertionError("FakeTextGenerator ran out of responses")
        return self.responses.pop(0)


class FakeOCREngine:
    """Returns fixed OCR text, or raises OCRError when built with fail=True."""

    def __init__(self, text: str = "", confidence: float = 0.9, fail: bool = False) -> None:
        self.text = text
        self.confidence = confidence
        self.fail = fail
        self.calls: list[Path] = []

    async def extract_text(self, image_path: Path) -> OCRText:
        self.calls.append(image_path)
        if self.fail:
            raise OCRError("OCR processing failed: unreadable image")
        return OCRText(text=self.text, confidence=self.confidence)


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    """A throwaway 'uploaded' image the normalizer is expected to delete."""
    path = tmp_path / "health-survey-upload.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nnot-really-an-image")
    return path
