"""Validate-then-extract cycle against a host document.

One call to ``FormatChecker.run_check_and_extract()``:

1. loads every paragraph from the document host
2. fails fast when the document is blank
3. validates the paragraph grammar
4. recolors paragraphs: red = invalid, green = valid, blank = untouched
5. on a clean document, extracts the questions, optionally inlines remote
   images, and stores the JSON under ``lastExtractedJson``

Host and storage faults never escape: they come back as a failed
``CheckResult`` carrying the error message.
"""

import json
import logging
from typing import List, Optional

from question_extractor.models.document import ParagraphColor
from question_extractor.models.question import CheckResult, QuestionRecord
from question_extractor.services.document_accessor import DocumentAccessor
from question_extractor.services.extractor import extract_questions
from question_extractor.services.html_enricher import HtmlEnricher
from question_extractor.services.key_value_store import LAST_EXTRACTED_KEY, KeyValueStore
from question_extractor.services.validator import find_invalid_paragraphs

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT_MESSAGE = "Document is empty."
FORMAT_ERRORS_MESSAGE = "Document contains formatting errors. Please rectify"
UNKNOWN_ERROR_MESSAGE = "Unknown error."


async def save_questions(store: KeyValueStore, questions: List[QuestionRecord]) -> None:
    payload = json.dumps([q.to_wire() for q in questions])
    await store.set_item(LAST_EXTRACTED_KEY, payload)


async def load_last_extracted(store: KeyValueStore) -> Optional[List[QuestionRecord]]:
    """Return the stored question set, or None if nothing was extracted yet."""
    raw = await store.get_item(LAST_EXTRACTED_KEY)
    if raw is None:
        return None
    return [QuestionRecord.model_validate(item) for item in json.loads(raw)]


class FormatChecker:
    """Runs one check cycle; does not interleave cycles on the same document."""

    def __init__(
        self,
        document: DocumentAccessor,
        store: KeyValueStore,
        enricher: Optional[HtmlEnricher] = None,
    ):
        self.document = document
        self.store = store
        self.enricher = enricher
        self.questions: List[QuestionRecord] = []

    async def run_check_and_extract(self) -> CheckResult:
        try:
            return await self._run()
        except Exception as e:
            logger.exception(f"Format check failed: {str(e)}")
            return CheckResult(success=False, message=str(e) or UNKNOWN_ERROR_MESSAGE)

    async def _run(self) -> CheckResult:
        paragraphs = await self.document.get_paragraphs()
        lines = [p.trimmed for p in paragraphs]

        if not any(lines):
            logger.info("Format check skipped: document is empty")
            return CheckResult(success=False, message=EMPTY_DOCUMENT_MESSAGE)

        validation = find_invalid_paragraphs(lines)
        invalid = validation.invalid_set

        for index in range(len(paragraphs)):
            self.document.set_paragraph_color(index, ParagraphColor.NEUTRAL)
        for index, line in enumerate(lines):
            if index in invalid:
                self.document.set_paragraph_color(index, ParagraphColor.INVALID)
            elif line:
                self.document.set_paragraph_color(index, ParagraphColor.VALID)
        await self.document.sync()

        if invalid:
            logger.info(
                f"Format check found {len(invalid)} invalid paragraph(s) "
                f"out of {len(paragraphs)}: {sorted(invalid)}"
            )
            return CheckResult(
                success=False,
                message=FORMAT_ERRORS_MESSAGE,
                invalid_paragraphs=sorted(invalid),
            )

        questions = extract_questions(lines, [p.html for p in paragraphs])
        if self.enricher is not None:
            questions = await self.enricher.enrich_questions(questions)

        await save_questions(self.store, questions)
        self.questions = questions

        logger.info(f"Format check passed: extracted {len(questions)} question(s)")
        return CheckResult(success=True, question_count=len(questions))
