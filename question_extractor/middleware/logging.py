"""Structured request logging.

One JSON line per request: request ID, method, path, status, duration and
client address, plus the check outcome when a format-check route reported
it through the ``X-Check-Success`` / ``X-Question-Count`` headers.
Uploaded documents and request bodies are never logged.
"""

import json
import logging
import sys
import time
from typing import Any, Awaitable, Callable, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from question_extractor.middleware.request_id import REQUEST_ID_HEADER, resolve_request_id

logger = logging.getLogger(__name__)

CHECK_SUCCESS_HEADER = "X-Check-Success"
QUESTION_COUNT_HEADER = "X-Question-Count"


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stdout; request logs are already JSON lines."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(message)s',
        stream=sys.stdout
    )


def _check_outcome(response: Response) -> Dict[str, Any]:
    outcome: Dict[str, Any] = {}
    if CHECK_SUCCESS_HEADER in response.headers:
        outcome["check_success"] = response.headers[CHECK_SUCCESS_HEADER] == "true"
    count = response.headers.get(QUESTION_COUNT_HEADER)
    if count is not None and count.isdigit():
        outcome["question_count"] = int(count)
    return outcome


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request as a JSON line; 5xx responses are logged as errors."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = getattr(request.state, "request_id", None) or resolve_request_id(None)
        request.state.request_id = request_id

        started = time.perf_counter()
        entry: Dict[str, Any] = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        }

        try:
            response = await call_next(request)
        except Exception as e:
            entry.update({
                "status_code": 500,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "error": str(e),
                "error_type": type(e).__name__,
            })
            logger.error(json.dumps(entry), exc_info=True)
            raise

        entry["status_code"] = response.status_code
        entry["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        entry.update(_check_outcome(response))

        if response.status_code >= 500:
            logger.error(json.dumps(entry))
        else:
            logger.info(json.dumps(entry))

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def get_request_id(request: Request) -> str:
    """Return the request ID stored on the request, or "unknown"."""
    return getattr(request.state, "request_id", "unknown")
