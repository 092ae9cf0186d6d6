"""
OCR collaborator for photographed survey forms.

Tesseract is blocking, so recognition runs in a worker thread and the event
loop stays free while a form is being read.
"""

import asyncio
from pathlib import Path
from typing import Protocol

import pytesseract
import structlog
from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from survey_risk.domain.errors import OCRError

logger = structlog.get_logger(__name__)


class OCRText(BaseModel):
    """Raw text read from an image plus the engine's self-reported confidence."""

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float = Field(ge=0.0, le=1.0)


class OCREngine(Protocol):
    """Protocol for image-to-text engines. Failures raise OCRError."""

    async def extract_text(self, image_path: Path) -> OCRText: ...


class TesseractOCREngine:
    """OCREngine backed by pytesseract."""

    def __init__(self, language: str = "eng", timeout_seconds: float | None = None) -> None:
        self.language = language
        self.timeout_seconds = timeout_seconds
        self.logger = logger.bind(component="tesseract_ocr", language=language)

    async def extract_text(self, image_path: Path) -> OCRText:
        self.logger.info("ocr_started", image_path=str(image_path))
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(self._recognize, image_path),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            self.logger.error("ocr_timeout", timeout_seconds=self.timeout_seconds)
            raise OCRError(f"OCR processing timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            self.logger.error("ocr_failed", error=str(e))
            raise OCRError(f"OCR processing failed: {e}") from e

        self.logger.info("ocr_completed", confidence=round(result.confidence, 3))
        return result

    def _recognize(self, image_path: Path) -> OCRText:
        with Image.open(image_path) as image:
            text = pytesseract.image_to_string(image, lang=self.language)
            data = pytesseract.image_to_data(
                image, lang=self.language, output_type=pytesseract.Output.DICT
            )

        # Tesseract reports -1 for layout boxes that hold no word
        word_confidences = [
            float(conf)
            for word, conf in zip(data["text"], data["conf"], strict=False)
            if str(word).strip() and float(conf) >= 0
        ]
        mean_confidence = (
            sum(word_confidences) / len(word_confidences) if word_confidences else 0.0
        )
        return OCRText(text=text.strip(), confidence=min(mean_confidence / 100, 1.0))
