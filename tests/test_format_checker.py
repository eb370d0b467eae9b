"""Tests for the validate-then-extract orchestrator."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from question_extractor.models.document import Paragraph, ParagraphColor
from question_extractor.models.question import QuestionRecord
from question_extractor.services.document_accessor import DocumentAccessError, InMemoryDocumentAccessor
from question_extractor.services.format_checker import (
    EMPTY_DOCUMENT_MESSAGE,
    FORMAT_ERRORS_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    FormatChecker,
    load_last_extracted,
    save_questions,
)
from question_extractor.services.key_value_store import LAST_EXTRACTED_KEY, InMemoryKeyValueStore

VALID_LINES = ["1) What is 2+2?", "", "a) 3", "b) 4", "Ans) b"]


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.mark.asyncio
async def test_valid_document_is_extracted_and_stored(store):
    document = InMemoryDocumentAccessor(VALID_LINES)
    checker = FormatChecker(document, store)

    result = await checker.run_check_and_extract()

    assert result.success is True
    assert result.message is None
    assert result.question_count == 1
    assert checker.questions[0].options == ["3", "4"]

    stored = json.loads(await store.get_item(LAST_EXTRACTED_KEY))
    assert stored == [
        {
            "questionNumber": 1,
            "question": "What is 2+2?",
            "options": ["3", "4"],
            "answer": ["b"],
            "solution": "",
        }
    ]


@pytest.mark.asyncio
async def test_valid_document_colors_non_blank_green(store):
    document = InMemoryDocumentAccessor(VALID_LINES)

    await FormatChecker(document, store).run_check_and_extract()

    assert document.colors[0] is ParagraphColor.VALID
    assert document.colors[1] is ParagraphColor.NEUTRAL
    assert document.colors[4] is ParagraphColor.VALID
    assert document.sync_count == 1


@pytest.mark.asyncio
async def test_invalid_document_is_colored_and_not_stored(store):
    document = InMemoryDocumentAccessor(["1) Capital of France?", "a) Paris", "b) London", "Ans) c"])
    checker = FormatChecker(document, store)

    result = await checker.run_check_and_extract()

    assert result.success is False
    assert result.message == FORMAT_ERRORS_MESSAGE
    assert result.invalid_paragraphs == [3]
    assert document.colors == {
        0: ParagraphColor.VALID,
        1: ParagraphColor.VALID,
        2: ParagraphColor.VALID,
        3: ParagraphColor.INVALID,
    }
    assert await store.get_item(LAST_EXTRACTED_KEY) is None
    assert checker.questions == []


@pytest.mark.asyncio
async def test_invalid_paragraphs_are_sorted_and_unique(store):
    document = InMemoryDocumentAccessor(["1) Q", "a) x", "b) y", "Ans) c, d", "2) Q", "a) x", "Ans) a"])

    result = await FormatChecker(document, store).run_check_and_extract()

    assert result.invalid_paragraphs == [3, 5]


@pytest.mark.asyncio
async def test_blank_document_short_circuits_before_validation(store):
    document = InMemoryDocumentAccessor(["", "   "])

    with patch("question_extractor.services.format_checker.find_invalid_paragraphs") as mock_validate:
        result = await FormatChecker(document, store).run_check_and_extract()

    assert result.success is False
    assert result.message == EMPTY_DOCUMENT_MESSAGE
    mock_validate.assert_not_called()
    assert document.sync_count == 0


@pytest.mark.asyncio
async def test_document_without_paragraphs_is_empty(store):
    result = await FormatChecker(InMemoryDocumentAccessor([]), store).run_check_and_extract()

    assert result.message == EMPTY_DOCUMENT_MESSAGE


@pytest.mark.asyncio
async def test_host_read_failure_becomes_failed_result(store):
    document = MagicMock()
    document.get_paragraphs = AsyncMock(side_effect=DocumentAccessError("host unavailable"))

    result = await FormatChecker(document, store).run_check_and_extract()

    assert result.success is False
    assert result.message == "host unavailable"


@pytest.mark.asyncio
async def test_fault_without_message_uses_unknown_error(store):
    document = InMemoryDocumentAccessor(VALID_LINES)
    document.sync = AsyncMock(side_effect=RuntimeError())

    result = await FormatChecker(document, store).run_check_and_extract()

    assert result.success is False
    assert result.message == UNKNOWN_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_storage_failure_becomes_failed_result():
    store = MagicMock()
    store.set_item = AsyncMock(side_effect=RuntimeError("disk full"))

    result = await FormatChecker(InMemoryDocumentAccessor(VALID_LINES), store).run_check_and_extract()

    assert result.success is False
    assert result.message == "disk full"


@pytest.mark.asyncio
async def test_enricher_is_applied_before_storing(store):
    enriched = [QuestionRecord(question_number=1, question="enriched", options=["3", "4"], answer=["b"])]
    enricher = MagicMock()
    enricher.enrich_questions = AsyncMock(return_value=enriched)

    document = InMemoryDocumentAccessor(
        [Paragraph(index=i, text=t, html=f"<p>{t}</p>" if t else None) for i, t in enumerate(VALID_LINES)]
    )
    checker = FormatChecker(document, store, enricher)
    result = await checker.run_check_and_extract()

    assert result.success is True
    passed = enricher.enrich_questions.await_args.args[0]
    assert passed[0].question_html == "<p>1) What is 2+2?</p>"
    assert (await load_last_extracted(store))[0].question == "enriched"


@pytest.mark.asyncio
async def test_rerun_replaces_stored_questions(store):
    await FormatChecker(InMemoryDocumentAccessor(VALID_LINES), store).run_check_and_extract()
    await FormatChecker(
        InMemoryDocumentAccessor(VALID_LINES + ["2) Second", "a) x", "b) y", "Ans) a"]), store
    ).run_check_and_extract()

    stored = await load_last_extracted(store)
    assert [q.question_number for q in stored] == [1, 2]


@pytest.mark.asyncio
async def test_load_last_extracted_returns_none_when_empty(store):
    assert await load_last_extracted(store) is None


@pytest.mark.asyncio
async def test_save_and_load_questions(store):
    questions = [QuestionRecord(question_number=1, question="Q", options=["x", "y"], answer=["a"], marks="2")]

    await save_questions(store, questions)

    assert await load_last_extracted(store) == questions
