"""Tests for upload policy checks and scoped cleanup."""

from __future__ import annotations

from pathlib import Path

import pytest

from survey_risk.config import UploadConfig
from survey_risk.domain.errors import UploadRejected
from survey_risk.services.uploads import check_upload, discard_upload, scoped_upload, stage_upload


@pytest.mark.parametrize("content_type", ["image/jpeg", "image/jpg", "image/png"])
def test_allowed_content_types(content_type: str) -> None:
    check_upload(content_type, 1024, UploadConfig())


@pytest.mark.parametrize("content_type", ["image/gif", "application/pdf", None])
def test_rejects_other_content_types(content_type: str | None) -> None:
    with pytest.raises(UploadRejected, match="Only JPEG, JPG, and PNG"):
        check_upload(content_type, 1024, UploadConfig())


def test_rejects_oversized_upload() -> None:
    config = UploadConfig()
    check_upload("image/png", config.max_file_size_bytes, config)

    with pytest.raises(UploadRejected, match="too large"):
        check_upload("image/png", config.max_file_size_bytes + 1, config)


def test_stage_upload_copies_into_upload_dir(tmp_path: Path) -> None:
    source = tmp_path / "Form.PNG"
    source.write_bytes(b"png-bytes")
    config = UploadConfig(upload_dir=str(tmp_path / "uploads"))

    staged = stage_upload(source, config)

    assert staged.parent == tmp_path / "uploads"
    assert staged.name.startswith("health-survey-")
    assert staged.suffix == ".png"
    assert staged.read_bytes() == b"png-bytes"
    assert source.exists()


def test_stage_upload_rejects_non_images(tmp_path: Path) -> None:
    source = tmp_path / "notes.txt"
    source.write_text("age: 40")

    with pytest.raises(UploadRejected):
        stage_upload(source, UploadConfig(upload_dir=str(tmp_path / "uploads")))


@pytest.mark.asyncio
async def test_scoped_upload_deletes_on_error(tmp_path: Path) -> None:
    path = tmp_path / "upload.png"
    path.write_bytes(b"x")

    with pytest.raises(RuntimeError):
        async with scoped_upload(path):
            raise RuntimeError("stage failed")

    assert not path.exists()


@pytest.mark.asyncio
async def test_discard_missing_upload_does_not_raise(tmp_path: Path) -> None:
    await discard_upload(tmp_path / "missing.png")
