"""Client for the remote catalog and test-authoring service.

Reference data (patterns, languages, difficulty levels, subject tree) is read
with GET requests that are retried on transient failures. Question
submission is a single POST and is never retried.

``fetch_patterns`` and ``submit_questions`` never raise: failures come back
as an ``APIResponse`` with ``error=True``. The reference-data helpers raise
``CatalogAPIError`` so the caller decides how to surface them.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from question_extractor.models.catalog import APIResponse, CatalogOption, Pattern
from question_extractor.models.question import QuestionRecord
from question_extractor.utils.retry import MAX_RETRIES, retry_with_backoff

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Something Went Wrong"


class CatalogAPIError(RuntimeError):
    """Raised when the catalog service returns an error or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CatalogClient:
    """Async client bound to one catalog base URL.

    Use as an async context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: int = MAX_RETRIES,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": "Question-Extractor/1.0"},
        )
        self._get_with_retry = retry_with_backoff(max_retries=max_retries)(self._get_data_once)

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_data_once(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        response = await self._client.get(path, params=params)
        if response.status_code >= 400:
            raise CatalogAPIError(
                f"GET {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError as e:
            raise CatalogAPIError(
                f"GET {path} returned invalid JSON", status_code=response.status_code
            ) from e
        if not isinstance(body, dict) or "data" not in body:
            raise CatalogAPIError(
                f"GET {path} response has no 'data' field", status_code=response.status_code
            )
        return body["data"]

    async def _get_data(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        try:
            return await self._get_with_retry(path, params)
        except httpx.HTTPError as e:
            raise CatalogAPIError(f"GET {path} failed: {str(e)}") from e

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------

    async def fetch_patterns(self, include_inactive: bool = False) -> APIResponse[List[Pattern]]:
        params = {"includeInactive": str(include_inactive).lower()}
        try:
            data = await self._get_data("/Patterns", params)
            patterns = [Pattern.model_validate(item) for item in data or []]
        except Exception as e:
            logger.error(f"Failed to fetch patterns: {str(e)}")
            return APIResponse(status=500, message=GENERIC_FAILURE_MESSAGE, error=True)

        logger.info(f"Fetched {len(patterns)} question patterns")
        return APIResponse(status=200, message="Fetched Question Patterns", data=patterns)

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    async def fetch_languages(self) -> List[CatalogOption]:
        data = await self._get_data("/Languages")
        return [CatalogOption(value=item["language"], label=item["language"]) for item in data]

    async def fetch_difficulty_levels(self) -> List[CatalogOption]:
        data = await self._get_data(
            "/QuestionDifficultyLevels", {"includeInactive": "false"}
        )
        return [
            CatalogOption(
                value=item["questionDifficultylevelId"],
                label=item["questionDifficultylevel1"],
            )
            for item in data
        ]

    async def _fetch_subject_rows(self) -> List[Dict[str, Any]]:
        return await self._get_data("/Subjects", {"includeInactive": "false"})

    async def fetch_subjects(self) -> List[CatalogOption]:
        """Top-level subjects only (``subjectType == "Subject"``)."""
        rows = await self._fetch_subject_rows()
        return [
            CatalogOption(value=row["subjectId"], label=row["subjectName"])
            for row in rows
            if row.get("subjectType") == "Subject"
        ]

    async def fetch_children(self, parent_id: int) -> List[CatalogOption]:
        """Chapters of a subject, topics of a chapter, or subtopics of a topic."""
        rows = await self._fetch_subject_rows()
        return [
            CatalogOption(value=row["subjectId"], label=row["subjectName"])
            for row in rows
            if row.get("parentId") == parent_id
        ]

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit_questions(self, questions: List[QuestionRecord]) -> APIResponse[None]:
        payload = {"questions": [q.to_wire() for q in questions]}
        try:
            response = await self._client.post("/Tests/create-questions", json=payload)
            body = response.json()
        except Exception as e:
            logger.error(f"Failed to submit {len(questions)} question(s): {str(e)}")
            return APIResponse(status=500, message=GENERIC_FAILURE_MESSAGE, error=True)

        if not isinstance(body, dict):
            body = {}
        result = APIResponse(
            status=response.status_code,
            message=body.get("message") or "Questions Submitted",
            error=bool(body.get("error", False)) or response.status_code >= 400,
        )
        logger.info(
            f"Submitted {len(questions)} question(s): status={result.status}, "
            f"error={result.error}"
        )
        return result
