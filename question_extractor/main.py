"""FastAPI application for the question extraction service."""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Union

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from question_extractor.config import get_settings
from question_extractor.middleware.logging import RequestLoggingMiddleware, configure_logging
from question_extractor.middleware.request_id import RequestIDMiddleware
from question_extractor.routers import catalog, format_check
from question_extractor.services.key_value_store import LAST_EXTRACTED_KEY, get_key_value_store

# Application metadata
VERSION = "1.0.0"
COMMIT_HASH = "development"  # This can be set via environment variable or build process

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan event handler for startup and shutdown."""
    try:
        # Raises ValidationError if the environment is misconfigured
        settings = get_settings()
        configure_logging(settings.log_level)

        logger.info(f"Starting Question Extraction API v{VERSION}")
        logger.info(f"Storage backend: {settings.storage_backend}")
        logger.info(f"Catalog API: {settings.catalog_api_url or 'not configured'}")
        logger.info(f"Image enrichment: {settings.enable_image_enrichment}")
    except Exception as e:
        logger.error(f"Startup validation failed: {e}")
        raise

    yield

    logger.info("Shutting down Question Extraction API")


app = FastAPI(
    title="Question Extraction API",
    description="Validates question documents and extracts structured multiple-choice questions",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Logging middleware is added first so the request ID middleware wraps it
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this to the add-in origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=None)
async def health_check() -> Union[Dict[str, Any], Response]:
    """
    Health check endpoint that verifies the storage backend is reachable.

    Returns:
        JSON response with overall status and individual service statuses.

    Status Codes:
        200: All services healthy
        503: Storage backend unavailable
    """
    timestamp = datetime.now(timezone.utc).isoformat()
    services: Dict[str, str] = {}
    overall_healthy = True

    settings = get_settings()

    try:
        store = get_key_value_store(settings)
        await store.get_item(LAST_EXTRACTED_KEY)
        services["storage"] = f"healthy ({settings.storage_backend})"
    except Exception as e:
        services["storage"] = f"unhealthy: {str(e)}"
        overall_healthy = False

    # The catalog is optional: checks still work without it
    services["catalog_api"] = "configured" if settings.catalog_api_url else "not configured"

    response_data: Dict[str, Any] = {
        "status": "healthy" if overall_healthy else "unhealthy",
        "timestamp": timestamp,
        "services": services,
    }

    if not overall_healthy:
        return Response(
            content=json.dumps(response_data),
            status_code=503,
            media_type="application/json",
        )

    return response_data


@app.get("/version")
async def version_info() -> Dict[str, str]:
    """
    Get version information for the API.

    Returns:
        JSON with version number and commit hash.
    """
    return {
        "version": VERSION,
        "commit_hash": COMMIT_HASH,
    }


app.include_router(format_check.router)
app.include_router(catalog.router)
