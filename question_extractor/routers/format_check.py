"""
Format check and review API endpoints.

Provides endpoints for checking question documents, reading back the last
extracted questions, applying bulk review metadata, and submitting the
questions to the test-authoring service.
"""

import logging
import os
import tempfile
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Tuple

import httpx
from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile, status

from question_extractor.config import Settings, get_settings
from question_extractor.middleware.logging import get_request_id
from question_extractor.models.api import (
    BulkSettingsRequest,
    BulkSettingsResponse,
    CheckParagraphsRequest,
    CheckParagraphsResponse,
    CheckResponse,
    SubmitRequest,
)
from question_extractor.models.catalog import APIResponse
from question_extractor.models.document import Paragraph
from question_extractor.models.question import CheckResult, QuestionRecord
from question_extractor.routers.catalog import get_catalog_client
from question_extractor.services.catalog_client import CatalogClient
from question_extractor.services.document_accessor import (
    DocumentAccessor,
    DocxDocumentAccessor,
    InMemoryDocumentAccessor,
)
from question_extractor.services.file_validator import validate_docx
from question_extractor.services.format_checker import (
    FormatChecker,
    load_last_extracted,
    save_questions,
)
from question_extractor.services.html_enricher import HtmlEnricher
from question_extractor.services.key_value_store import KeyValueStore, get_key_value_store
from question_extractor.services.review import (
    INCOMPLETE_METADATA_MESSAGE,
    BulkSettingsError,
    apply_bulk_settings,
    are_all_questions_complete,
    validate_questions,
)

router = APIRouter(prefix="/api", tags=["format-check"])
logger = logging.getLogger(__name__)


def get_store(settings: Settings = Depends(get_settings)) -> KeyValueStore:
    return get_key_value_store(settings)


@asynccontextmanager
async def _optional_enricher(settings: Settings) -> AsyncIterator[Optional[HtmlEnricher]]:
    if not settings.enable_image_enrichment:
        yield None
        return
    async with httpx.AsyncClient(
        timeout=settings.image_fetch_timeout_seconds, follow_redirects=True
    ) as client:
        yield HtmlEnricher(client, settings.max_inline_image_bytes)


async def _run_check(
    document: DocumentAccessor, store: KeyValueStore, settings: Settings
) -> Tuple[CheckResult, List[QuestionRecord]]:
    async with _optional_enricher(settings) as enricher:
        checker = FormatChecker(document, store, enricher)
        result = await checker.run_check_and_extract()
    return result, checker.questions


def _set_check_headers(response: Response, result: CheckResult) -> None:
    response.headers["X-Check-Success"] = "true" if result.success else "false"
    response.headers["X-Question-Count"] = str(result.question_count)


async def _require_stored_questions(store: KeyValueStore) -> List[QuestionRecord]:
    try:
        questions = await load_last_extracted(store)
    except Exception as e:
        logger.error(f"Failed to load stored questions: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to load stored questions: {str(e)}"
        )
    if questions is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No extracted questions found. Run a format check first."
        )
    return questions


@router.post("/check-format", response_model=CheckResponse)
async def check_format(
    request: Request,
    response: Response,
    file: UploadFile = File(..., description="Word document (.docx) to check"),
    settings: Settings = Depends(get_settings),
    store: KeyValueStore = Depends(get_store),
) -> CheckResponse:
    """
    Validate a question document and extract its questions.

    This endpoint:
    1. Validates the uploaded .docx file
    2. Checks the paragraph grammar and recolors a temporary copy
    3. On a clean document, extracts and stores the questions

    Returns:
        200: Check completed (``success`` tells whether the document is clean)
        400: Invalid file
        413: File too large
    """
    content, file_hash, sanitized_filename = await validate_docx(file, settings.max_upload_size_mb)
    logger.info(
        f"Checking {sanitized_filename} (sha256={file_hash[:12]}, "
        f"request_id={get_request_id(request)})"
    )

    with tempfile.TemporaryDirectory(prefix="question_check_") as tmp_dir:
        path = os.path.join(tmp_dir, sanitized_filename)
        with open(path, "wb") as fh:
            fh.write(content)

        result, questions = await _run_check(DocxDocumentAccessor(path), store, settings)

    _set_check_headers(response, result)

    return CheckResponse(**result.model_dump(), questions=questions)


@router.post("/check-paragraphs", response_model=CheckParagraphsResponse)
async def check_paragraphs(
    response: Response,
    body: CheckParagraphsRequest,
    settings: Settings = Depends(get_settings),
    store: KeyValueStore = Depends(get_store),
) -> CheckParagraphsResponse:
    """Run the check on paragraphs sent directly by an editor client.

    The response carries the color to apply to each paragraph index.
    """
    html = body.html or [None] * len(body.paragraphs)
    document = InMemoryDocumentAccessor(
        [Paragraph(index=i, text=text, html=html[i]) for i, text in enumerate(body.paragraphs)]
    )
    result, questions = await _run_check(document, store, settings)
    _set_check_headers(response, result)

    return CheckParagraphsResponse(
        **result.model_dump(),
        questions=questions,
        colors=document.colors,
    )


@router.get("/questions/last", response_model=List[QuestionRecord])
async def get_last_questions(store: KeyValueStore = Depends(get_store)) -> List[QuestionRecord]:
    """Return the question set stored by the last successful check."""
    return await _require_stored_questions(store)


@router.post("/questions/bulk-settings", response_model=BulkSettingsResponse)
async def bulk_settings(
    body: BulkSettingsRequest,
    store: KeyValueStore = Depends(get_store),
) -> BulkSettingsResponse:
    """
    Apply review metadata to a range of the stored questions and persist them.

    Returns:
        200: Updated questions and the ranges applied so far
        400: Invalid range, overlapping range, or missing mandatory field
        404: No stored questions
    """
    questions = await _require_stored_questions(store)
    try:
        updated, applied = apply_bulk_settings(
            questions, body.range_start, body.range_end, body.values, body.applied_ranges
        )
    except BulkSettingsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await save_questions(store, updated)
    return BulkSettingsResponse(questions=updated, applied_ranges=applied)


@router.post("/questions/submit", response_model=APIResponse[None])
async def submit_questions(
    body: Optional[SubmitRequest] = None,
    store: KeyValueStore = Depends(get_store),
    catalog: CatalogClient = Depends(get_catalog_client),
) -> APIResponse[None]:
    """
    Submit reviewed questions to the test-authoring service.

    Returns:
        200: Service accepted the questions
        400: Review validation failed or metadata is incomplete
        404: No questions supplied and none stored
        502: Service reported an error
        503: Catalog service is not configured
    """
    if body is not None and body.questions is not None:
        questions = body.questions
    else:
        questions = await _require_stored_questions(store)

    problem = validate_questions(questions)
    if problem:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)
    if not are_all_questions_complete(questions):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INCOMPLETE_METADATA_MESSAGE)

    result = await catalog.submit_questions(questions)
    if result.error:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.message)
    return result
