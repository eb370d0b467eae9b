"""
Catalog API endpoints.

Read-through access to the remote catalog so review clients can populate
pattern, language, difficulty and subject-tree pickers.
"""

import logging
from typing import AsyncIterator, List

from fastapi import APIRouter, Depends, HTTPException, status

from question_extractor.config import Settings, get_settings
from question_extractor.models.catalog import APIResponse, CatalogOption, Pattern
from question_extractor.services.catalog_client import CatalogAPIError, CatalogClient

router = APIRouter(prefix="/api/catalog", tags=["catalog"])
logger = logging.getLogger(__name__)


async def get_catalog_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[CatalogClient]:
    """Yield a client for the configured catalog; 503 when none is configured."""
    if not settings.catalog_api_url:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="CATALOG_API_URL is not configured"
        )
    async with CatalogClient(settings.catalog_api_url, settings.request_timeout_seconds) as client:
        yield client


def _bad_gateway(what: str, error: CatalogAPIError) -> HTTPException:
    logger.error(f"Catalog request for {what} failed: {str(error)}")
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Failed to fetch {what} from catalog: {str(error)}"
    )


@router.get("/patterns", response_model=APIResponse[List[Pattern]])
async def list_patterns(
    include_inactive: bool = False,
    client: CatalogClient = Depends(get_catalog_client),
) -> APIResponse[List[Pattern]]:
    """Question patterns; failures are reported in the envelope, not as HTTP errors."""
    return await client.fetch_patterns(include_inactive=include_inactive)


@router.get("/languages", response_model=List[CatalogOption])
async def list_languages(client: CatalogClient = Depends(get_catalog_client)) -> List[CatalogOption]:
    try:
        return await client.fetch_languages()
    except CatalogAPIError as e:
        raise _bad_gateway("languages", e)


@router.get("/difficulty-levels", response_model=List[CatalogOption])
async def list_difficulty_levels(
    client: CatalogClient = Depends(get_catalog_client),
) -> List[CatalogOption]:
    try:
        return await client.fetch_difficulty_levels()
    except CatalogAPIError as e:
        raise _bad_gateway("difficulty levels", e)


@router.get("/subjects", response_model=List[CatalogOption])
async def list_subjects(client: CatalogClient = Depends(get_catalog_client)) -> List[CatalogOption]:
    try:
        return await client.fetch_subjects()
    except CatalogAPIError as e:
        raise _bad_gateway("subjects", e)


@router.get("/subjects/{parent_id}/children", response_model=List[CatalogOption])
async def list_subject_children(
    parent_id: int,
    client: CatalogClient = Depends(get_catalog_client),
) -> List[CatalogOption]:
    """Chapters, topics or subtopics under ``parent_id``."""
    try:
        return await client.fetch_children(parent_id)
    except CatalogAPIError as e:
        raise _bad_gateway(f"children of subject {parent_id}", e)
