"""
Tests for file validation service.

Covers:
- File size limits
- Empty file detection
- MIME type validation
- Filename sanitization
- Security edge cases (path traversal, null bytes, etc.)
"""

import hashlib
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException, UploadFile

from question_extractor.services.file_validator import (
    DOCX_MIME_TYPE,
    sanitize_filename,
    validate_docx,
)

DOCX_CONTENT = b"PK\x03\x04" + b"word/document.xml" + b"\x00" * 64


@pytest.fixture
def mock_upload_file():
    """Create a mock UploadFile instance."""
    def _create_file(content: bytes, filename: str = "questions.docx"):
        file = MagicMock(spec=UploadFile)
        file.filename = filename
        file.read = AsyncMock(return_value=content)
        return file
    return _create_file


@pytest.mark.asyncio
@patch('question_extractor.services.file_validator.magic.from_buffer')
async def test_validate_docx_success(mock_magic, mock_upload_file):
    mock_magic.return_value = DOCX_MIME_TYPE

    file = mock_upload_file(DOCX_CONTENT, "paper.docx")

    content, file_hash, sanitized_name = await validate_docx(file, max_size_mb=1)

    assert content == DOCX_CONTENT
    assert file_hash == hashlib.sha256(DOCX_CONTENT).hexdigest()
    assert sanitized_name == "paper.docx"
    mock_magic.assert_called_once_with(DOCX_CONTENT, mime=True)


@pytest.mark.asyncio
@patch('question_extractor.services.file_validator.magic.from_buffer')
async def test_validate_docx_accepts_zip_mime(mock_magic, mock_upload_file):
    """Some libmagic versions only see the zip container."""
    mock_magic.return_value = "application/zip"

    content, _, _ = await validate_docx(mock_upload_file(DOCX_CONTENT), max_size_mb=1)

    assert content == DOCX_CONTENT


@pytest.mark.asyncio
@patch('question_extractor.services.file_validator.magic.from_buffer')
async def test_validate_docx_empty_file(mock_magic, mock_upload_file):
    file = mock_upload_file(b"", "empty.docx")

    with pytest.raises(HTTPException) as exc_info:
        await validate_docx(file, max_size_mb=1)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "File is empty"
    mock_magic.assert_not_called()


@pytest.mark.asyncio
@patch('question_extractor.services.file_validator.magic.from_buffer')
async def test_validate_docx_too_large(mock_magic, mock_upload_file):
    file = mock_upload_file(b"x" * (1024 * 1024 + 1), "huge.docx")

    with pytest.raises(HTTPException) as exc_info:
        await validate_docx(file, max_size_mb=1)

    assert exc_info.value.status_code == 413
    assert "1MB" in exc_info.value.detail
    mock_magic.assert_not_called()


@pytest.mark.asyncio
@patch('question_extractor.services.file_validator.magic.from_buffer')
async def test_validate_docx_wrong_mime_type(mock_magic, mock_upload_file):
    mock_magic.return_value = "application/pdf"

    with pytest.raises(HTTPException) as exc_info:
        await validate_docx(mock_upload_file(b"%PDF-1.4", "paper.docx"), max_size_mb=1)

    assert exc_info.value.status_code == 400
    assert "Invalid file type" in exc_info.value.detail
    assert "application/pdf" in exc_info.value.detail


@pytest.mark.asyncio
@patch('question_extractor.services.file_validator.get_settings')
@patch('question_extractor.services.file_validator.magic.from_buffer')
async def test_validate_docx_uses_configured_limit(mock_magic, mock_get_settings, mock_upload_file):
    mock_get_settings.return_value = MagicMock(max_upload_size_mb=2)

    with pytest.raises(HTTPException) as exc_info:
        await validate_docx(mock_upload_file(b"x" * (2 * 1024 * 1024 + 1)))

    assert exc_info.value.status_code == 413
    assert "2MB" in exc_info.value.detail


@pytest.mark.asyncio
@patch('question_extractor.services.file_validator.magic.from_buffer')
async def test_validate_docx_missing_filename(mock_magic, mock_upload_file):
    mock_magic.return_value = DOCX_MIME_TYPE

    _, _, sanitized_name = await validate_docx(mock_upload_file(DOCX_CONTENT, None), max_size_mb=1)

    assert sanitized_name == "upload.docx"


# Filename sanitization


@pytest.mark.parametrize(
    "filename,expected",
    [
        ("paper.docx", "paper.docx"),
        ("my paper (final).docx", "my_paper__final_.docx"),
        ("../../etc/passwd", "passwd.docx"),
        ("..\\..\\windows\\exam.docx", "exam.docx"),
        ("exam\0.docx", "exam.docx"),
        ("notes", "notes.docx"),
        ("Paper.DOCX", "Paper.DOCX"),
        ("", "upload.docx"),
        (".docx", "upload.docx"),
    ],
)
def test_sanitize_filename(filename, expected):
    assert sanitize_filename(filename) == expected


def test_sanitize_filename_truncates_long_names():
    result = sanitize_filename("a" * 300 + ".docx")

    assert len(result) <= 255
    assert result.endswith(".docx")
