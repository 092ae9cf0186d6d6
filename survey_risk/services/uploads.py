"""
Lifecycle of uploaded survey images.

An upload is staged into the upload directory, handed to the pipeline inside
``scoped_upload`` and deleted on every exit path. Deletion is best effort: a
failure is logged and never replaces the request's own outcome.
"""

import asyncio
import mimetypes
import random
import shutil
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog

from survey_risk.config import UploadConfig
from survey_risk.domain.errors import UploadRejected

logger = structlog.get_logger(__name__)


def check_upload(content_type: str | None, size_bytes: int, config: UploadConfig) -> None:
    """Reject uploads with a disallowed content type or an oversized body."""
    if content_type not in config.allowed_content_types:
        raise UploadRejected(
            f"Invalid file type {content_type!r}. Only JPEG, JPG, and PNG are allowed."
        )
    if size_bytes > config.max_file_size_bytes:
        raise UploadRejected(
            f"File too large: {size_bytes} bytes (limit {config.max_file_size_bytes})"
        )


def stage_upload(source: Path, config: UploadConfig) -> Path:
    """Copy an image into the upload directory under a unique temporary name."""
    content_type, _ = mimetypes.guess_type(source.name)
    check_upload(content_type, source.stat().st_size, config)

    upload_dir = Path(config.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    target = upload_dir / f"health-survey-{unique_suffix}{source.suffix.lower()}"
    shutil.copyfile(source, target)

    logger.info("upload_staged", source=str(source), path=str(target))
    return target


async def discard_upload(path: Path) -> None:
    """Delete a staged upload, logging instead of raising on failure."""
    try:
        await asyncio.to_thread(path.unlink)
    except OSError as e:
        logger.warning("temp_file_delete_failed", path=str(path), error=str(e))
    else:
        logger.debug("temp_file_deleted", path=str(path))


@asynccontextmanager
async def scoped_upload(path: Path) -> AsyncIterator[Path]:
    """Yield the upload path and always attempt deletion afterwards."""
    try:
        yield path
    finally:
        await discard_upload(path)
