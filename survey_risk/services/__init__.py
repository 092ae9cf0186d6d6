"""
Pipeline services for survey risk assessment.

This package contains the pipeline stages (normalization, validation, factor
extraction, scoring, recommendations), their orchestrator and the adapters for
the OCR and text-generation collaborators.
"""

from .factor_extractor import FactorExtractor
from .generation import PydanticAITextGenerator, TextGenerator
from .input_normalizer import InputNormalizer
from .ocr import OCREngine, OCRText, TesseractOCREngine
from .pipeline import HealthSurveyPipeline, build_pipeline
from .recommendations import RecommendationSynthesizer

__all__ = [
    "FactorExtractor",
    "HealthSurveyPipeline",
    "InputNormalizer",
    "OCREngine",
    "OCRText",
    "PydanticAITextGenerator",
    "RecommendationSynthesizer",
    "TesseractOCREngine",
    "TextGenerator",
    "build_pipeline",
]
