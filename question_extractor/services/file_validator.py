"""
File validation service for .docx uploads.

Provides security checks including:
- File size limits
- MIME type validation
- Filename sanitization
- Content hash calculation for log correlation
"""

import hashlib
import re
from pathlib import Path
from typing import Optional, Tuple

import magic
from fastapi import HTTPException, UploadFile

from question_extractor.config import get_settings

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
# Older libmagic builds report a .docx as a plain zip archive
ALLOWED_MIME_TYPES = {DOCX_MIME_TYPE, "application/zip"}


async def validate_docx(file: UploadFile, max_size_mb: Optional[int] = None) -> Tuple[bytes, str, str]:
    """
    Validate an uploaded Word document and return content, hash, and sanitized filename.

    Args:
        file: FastAPI UploadFile instance from multipart/form-data
        max_size_mb: Size limit in MB (defaults to settings.max_upload_size_mb)

    Returns:
        Tuple of (file_content, sha256_hash, sanitized_filename)

    Raises:
        HTTPException: 400 for validation errors, 413 for file too large
    """
    if max_size_mb is None:
        max_size_mb = get_settings().max_upload_size_mb
    max_bytes = max_size_mb * 1024 * 1024

    content = await file.read()

    if len(content) == 0:
        raise HTTPException(status_code=400, detail="File is empty")

    if len(content) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {max_size_mb}MB"
        )

    mime_type = magic.from_buffer(content, mime=True)
    if mime_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Expected {DOCX_MIME_TYPE}, got {mime_type}"
        )

    sanitized_filename = sanitize_filename(file.filename or "upload.docx")
    file_hash = hashlib.sha256(content).hexdigest()

    return content, file_hash, sanitized_filename


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent path traversal attacks.

    Keeps only alphanumerics, dash, underscore and dot, and guarantees a
    .docx extension and a length of at most 255 characters.
    """
    filename = Path(filename.replace("\\", "/")).name
    filename = filename.replace("..", "").replace("\0", "")
    filename = re.sub(r'[^a-zA-Z0-9._-]', '_', filename)

    if not filename or filename.lower() == ".docx":
        filename = "upload.docx"

    if not filename.lower().endswith('.docx'):
        filename = filename + '.docx'

    if len(filename) > 255:
        filename = filename[:-5][:250] + '.docx'

    return filename
