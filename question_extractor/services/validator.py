"""First pass: find paragraphs that break the question grammar.

The validator never raises on malformed text. Every violation is recorded
as the index of the offending paragraph and the scan always continues to
the end of the document, so all problems surface in one pass.

Recorded violations:
- a paragraph that starts with digits but is not a question header
- fewer than two options for a question
- a missing answer line, or one without any answer letters
- an answer letter beyond the available options

Direction block contents are never checked.
"""

import logging
from typing import List, Sequence

from question_extractor.models.classification import AnswerLine, OptionFragment, QuestionStart
from question_extractor.models.question import ValidationResult
from question_extractor.services.paragraph_classifier import looks_like_numeric_header
from question_extractor.services.scanner import ParagraphScanner

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2


class DocumentValidator(ParagraphScanner):
    """Collects invalid paragraph indices in scan order."""

    def __init__(self, lines: Sequence[str]):
        super().__init__(lines)
        self.invalid: List[int] = []
        self.option_count = 0

    def on_stray_paragraph(self, index: int, text: str) -> None:
        if looks_like_numeric_header(text):
            self.invalid.append(index)

    def on_question_start(self, index: int, header: QuestionStart) -> None:
        self.option_count = 0

    def on_option_paragraph(self, index: int, text: str, fragments: List[OptionFragment]) -> None:
        self.option_count += len(fragments)

    def on_options_complete(self, option_start: int) -> None:
        if self.option_count < MIN_OPTIONS:
            self.invalid.append(option_start)

    def on_missing_answer(self, index: int) -> None:
        self.invalid.append(index)

    def on_answer(self, index: int, answer: AnswerLine) -> None:
        if not answer.letters:
            self.invalid.append(index)
            return

        # Floor of one option so an answer is not double-flagged against zero options
        available = max(self.option_count, 1)
        for letter in answer.letters:
            position = ord(letter) - ord("a")
            if position < 0 or position >= available:
                self.invalid.append(index)


def find_invalid_paragraphs(lines: Sequence[str]) -> ValidationResult:
    """Validate a document given its paragraph texts.

    An empty paragraph list is reported as invalid at index 0.
    """
    if len(lines) == 0:
        return ValidationResult(invalid_indices=[0])

    validator = DocumentValidator(lines)
    validator.run()

    if validator.invalid:
        logger.debug(f"Validator flagged paragraphs: {sorted(set(validator.invalid))}")
    return ValidationResult(invalid_indices=validator.invalid)
