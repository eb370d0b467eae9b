"""Integration tests for the end-to-end check and review flow.

Uploads a real .docx through /api/check-format, reads the stored questions
back, applies review metadata and submits to a mocked catalog service.
"""

import json
from io import BytesIO
from unittest.mock import patch

import docx
import httpx
import pytest
from fastapi.testclient import TestClient

from question_extractor.config import Settings, get_settings
from question_extractor.main import app
from question_extractor.routers.catalog import get_catalog_client
from question_extractor.routers.format_check import get_store
from question_extractor.services.catalog_client import CatalogClient
from question_extractor.services.file_validator import DOCX_MIME_TYPE
from question_extractor.services.key_value_store import InMemoryKeyValueStore

CATALOG_URL = "https://catalog.test/api"

PAPER = [
    "D-1) Read the passage and answer the questions.",
    "The river rose after three days of rain.",
    "1) How many days did it rain?",
    "a) Two b) Three c) Four",
    "Ans) b",
    "2) What rose?",
    "a) The river",
    "b) The sea",
    "Ans) a",
    "Sol) Stated in the first sentence.",
    "##End Essay",
    "3) 2 + 2 = ?",
    "(a) 3",
    "(b) 4",
    "Ans) b",
]

REVIEW_VALUES = {
    "marks": "2",
    "negativeMarks": "0.5",
    "graceMarks": "0",
    "language": "English",
    "questionDifficultyId": "1",
    "subject": "5",
    "chapter": "50",
    "topic": "500",
}


def _docx_bytes(lines) -> bytes:
    document = docx.Document()
    for line in lines:
        document.add_paragraph(line)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def submitted():
    return []


@pytest.fixture
def client(submitted):
    store = InMemoryKeyValueStore()
    settings = Settings(
        _env_file=None,
        storage_backend="memory",
        enable_image_enrichment=False,
        catalog_api_url=CATALOG_URL,
    )

    def handler(request: httpx.Request) -> httpx.Response:
        submitted.append(json.loads(request.content))
        return httpx.Response(200, json={"message": "Questions created"})

    async def catalog_client():
        async with CatalogClient(CATALOG_URL, transport=httpx.MockTransport(handler), max_retries=0) as c:
            yield c

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_catalog_client] = catalog_client

    with patch("question_extractor.services.file_validator.magic.from_buffer", return_value=DOCX_MIME_TYPE):
        yield TestClient(app)

    app.dependency_overrides.clear()


def _upload(client: TestClient, lines, filename: str = "paper.docx"):
    return client.post(
        "/api/check-format",
        files={"file": (filename, _docx_bytes(lines), DOCX_MIME_TYPE)},
    )


def test_full_check_review_submit_flow(client: TestClient, submitted) -> None:
    # 1. Check and extract
    response = _upload(client, PAPER)

    assert response.status_code == 200
    assert response.headers["X-Check-Success"] == "true"
    result = response.json()
    assert result["success"] is True
    assert result["question_count"] == 3

    questions = result["questions"]
    assert questions[0]["direction"] == (
        "Read the passage and answer the questions. The river rose after three days of rain."
    )
    assert questions[0]["options"] == ["Two", "Three", "Four"]
    assert questions[1]["solution"] == "Stated in the first sentence."
    assert "direction" not in questions[2] or questions[2]["direction"] is None
    assert questions[2]["options"] == ["3", "4"]
    assert questions[2]["questionHtml"].startswith("<p")

    # 2. Read back
    stored = client.get("/api/questions/last").json()
    assert [q["questionNumber"] for q in stored] == [1, 2, 3]

    # 3. Submitting before review is refused
    response = client.post("/api/questions/submit")
    assert response.status_code == 400

    # 4. Review in two ranges
    response = client.post(
        "/api/questions/bulk-settings",
        json={"rangeStart": 1, "rangeEnd": 2, "values": REVIEW_VALUES},
    )
    assert response.status_code == 200
    applied = response.json()["appliedRanges"]

    response = client.post(
        "/api/questions/bulk-settings",
        json={"rangeStart": 3, "rangeEnd": 3, "values": REVIEW_VALUES, "appliedRanges": applied},
    )
    assert response.status_code == 200
    assert len(response.json()["appliedRanges"]) == 2

    # 5. Submit
    response = client.post("/api/questions/submit")

    assert response.status_code == 200
    assert response.json()["message"] == "Questions created"
    [payload] = submitted
    assert [q["marks"] for q in payload["questions"]] == ["2", "2", "2"]
    assert payload["questions"][0]["negativeMarks"] == "0.5"


def test_invalid_document_reports_paragraphs(client: TestClient) -> None:
    lines = ["1) Only one option?", "a) Lonely", "Ans) a"]

    response = _upload(client, lines)

    assert response.status_code == 200
    assert response.headers["X-Check-Success"] == "false"
    result = response.json()
    assert result["success"] is False
    assert result["invalid_paragraphs"]
    assert client.get("/api/questions/last").status_code == 404


def test_empty_document(client: TestClient) -> None:
    response = _upload(client, ["", ""])

    assert response.json()["message"] == "Document is empty."


def test_upload_rejects_wrong_type(client: TestClient) -> None:
    with patch("question_extractor.services.file_validator.magic.from_buffer", return_value="text/plain"):
        response = client.post(
            "/api/check-format",
            files={"file": ("notes.docx", b"plain text", DOCX_MIME_TYPE)},
        )

    assert response.status_code == 400
    assert "Invalid file type" in response.json()["detail"]


def test_upload_rejects_empty_file(client: TestClient) -> None:
    response = client.post(
        "/api/check-format",
        files={"file": ("empty.docx", b"", DOCX_MIME_TYPE)},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "File is empty"
