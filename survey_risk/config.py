"""
Configuration management with environment variable support and validation.

Design principles:
- Validation at startup (fail fast)
- Type safety with Pydantic
- Secure defaults (no API keys in code)
- Explicit collaborator timeouts (None means unbounded)
"""

import os
from functools import lru_cache
from typing import Any, Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

ModelTask = Literal["field_extraction", "factor_extraction", "recommendations"]


class AIProviderConfig(BaseModel):
    """Text-generation provider configuration."""

    gemini_api_key: str | None = Field(None, description="Gemini API key (optional)")

    # Model selection for different tasks
    field_extraction_model: str = Field(
        default="google-gla:gemini-2.5-flash",
        description="Model used to extract survey fields from raw text",
    )
    factor_model: str = Field(
        default="google-gla:gemini-2.5-flash", description="Model used to extract risk factors"
    )
    recommendation_model: str = Field(
        default="google-gla:gemini-2.5-flash", description="Model used for recommendations"
    )

    default_temperature: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Default temperature for AI models"
    )
    generation_timeout_seconds: float | None = Field(
        default=None, gt=0.0, description="Timeout for one generation call (None = unbounded)"
    )

    @field_validator("gemini_api_key")
    def validate_api_key(cls, v):
        if not v:
            return None
        if v == "your-gemini-api-key-here":
            raise ValueError("Gemini API key must be set in environment or .env file")
        return v


class PipelineConfig(BaseModel):
    """Input normalization and scoring pipeline settings."""

    escalation_min_fields: int = Field(
        default=3, ge=1, le=4, description="Regex-recovered fields needed to skip AI escalation"
    )
    ocr_language: str = Field(default="eng", description="Tesseract language code")
    ocr_timeout_seconds: float | None = Field(
        default=None, gt=0.0, description="Timeout for one OCR call (None = unbounded)"
    )
    strict_profile_validation: bool = Field(
        default=False, description="Enforce HealthProfile domain checks before scoring"
    )


class UploadConfig(BaseModel):
    """Constraints applied to uploaded survey images."""

    max_file_size_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    allowed_content_types: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/jpg", "image/png"]
    )
    upload_dir: str = Field(default="./uploads", description="Where uploads are stored")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    ai_provider: AIProviderConfig
    pipeline: PipelineConfig
    uploads: UploadConfig
    logging: LoggingConfig

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def _optional_float(val: str | None) -> float | None:
    if val is None or not val.strip() or val.strip().lower() in {"none", "unbounded"}:
        return None
    return float(val)


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _parse_bool(val: str | None, default: bool) -> bool:
        if val is None:
            return default
        return val.strip().lower() in {"1", "true", "yes", "on"}

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    default_model = os.getenv("GENERATION_MODEL", "google-gla:gemini-2.5-flash")
    ai_config = AIProviderConfig(
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        field_extraction_model=os.getenv("FIELD_EXTRACTION_MODEL", default_model),
        factor_model=os.getenv("FACTOR_MODEL", default_model),
        recommendation_model=os.getenv("RECOMMENDATION_MODEL", default_model),
        generation_timeout_seconds=_optional_float(os.getenv("GENERATION_TIMEOUT_SECONDS")),
    )

    pipeline_config = PipelineConfig(
        escalation_min_fields=int(os.getenv("ESCALATION_MIN_FIELDS", "3")),
        ocr_language=os.getenv("OCR_LANGUAGE", "eng"),
        ocr_timeout_seconds=_optional_float(os.getenv("OCR_TIMEOUT_SECONDS")),
        strict_profile_validation=_parse_bool(os.getenv("STRICT_PROFILE_VALIDATION"), False),
    )

    upload_config = UploadConfig(
        max_file_size_bytes=int(os.getenv("MAX_FILE_SIZE", str(5 * 1024 * 1024))),
        upload_dir=os.getenv("UPLOAD_DIR", "./uploads"),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        ai_provider=ai_config,
        pipeline=pipeline_config,
        uploads=upload_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def get_model_config(task: ModelTask, config: AppConfig | None = None) -> dict[str, Any]:
    """Get model configuration based on task (from the cached config by default)."""
    ai = (config or get_config()).ai_provider

    if task == "field_extraction":
        model_name = ai.field_extraction_model
    elif task == "factor_extraction":
        model_name = ai.factor_model
    elif task == "recommendations":
        model_name = ai.recommendation_model
    else:
        raise ValueError(f"Unknown task: {task}")

    return {
        "model_name": model_name,
        "temperature": ai.default_temperature,
        "timeout_seconds": ai.generation_timeout_seconds,
    }


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\nAI CONFIGURATION")
    print(f"API key configured: {config.ai_provider.gemini_api_key is not None}")
    print(f"Field Extraction Model: {config.ai_provider.field_extraction_model}")
    print(f"Factor Model: {config.ai_provider.factor_model}")
    print(f"Recommendation Model: {config.ai_provider.recommendation_model}")
    print(f"Generation Timeout: {config.ai_provider.generation_timeout_seconds or 'unbounded'}")

    print("\nPIPELINE CONFIGURATION")
    print(f"Escalation Threshold: {config.pipeline.escalation_min_fields} fields")
    print(f"OCR Language: {config.pipeline.ocr_language}")
    print(f"OCR Timeout: {config.pipeline.ocr_timeout_seconds or 'unbounded'}")
    print(f"Strict Profile Validation: {config.pipeline.strict_profile_validation}")

    print("\nUPLOAD CONFIGURATION")
    print(f"Max File Size: {config.uploads.max_file_size_bytes} bytes")
    print(f"Allowed Types: {', '.join(config.uploads.allowed_content_types)}")


if __name__ == "__main__":
    print_config_summary()
