"""Review-stage checks on extracted questions before they are submitted.

These mirror what an author is shown in the preview: a content check on
every question, bulk assignment of metadata to question ranges, and the
completeness gate that must pass before questions are sent to the
test-authoring service.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from question_extractor.models.question import AppliedRange, BulkSettings, QuestionRecord

logger = logging.getLogger(__name__)

# Fields every question needs before submission; subtopic is optional.
MANDATORY_METADATA_FIELDS = (
    "marks",
    "negative_marks",
    "grace_marks",
    "language",
    "question_difficulty_id",
    "subject",
    "chapter",
    "topic",
)

INCOMPLETE_METADATA_MESSAGE = (
    "All questions must have marks, negative marks, grace marks, language, "
    "difficulty, subject, chapter, and topic set before you can create questions."
)


class BulkSettingsError(ValueError):
    """Raised when a bulk settings request cannot be applied."""


def validate_questions(questions: Sequence[QuestionRecord]) -> Optional[str]:
    """Return the first content problem found, or None when all questions pass."""
    if not questions:
        return "At least one question is required."

    for q in questions:
        prefix = f"Question {q.question_number}"
        if not q.question.strip():
            return f"{prefix}: Question text cannot be empty."
        if not q.options:
            return f"{prefix}: Must have at least one option."
        if any(not option.strip() for option in q.options):
            return f"{prefix}: All options must be non-empty."
        if not q.answer:
            return f"{prefix}: Please select at least one answer."
        for letter, index in zip(q.answer, q.answer_indices()):
            if not 0 <= index < len(q.options):
                return f'{prefix}: Invalid answer character "{letter}".'

    return None


def _is_filled(value) -> bool:
    if value is None:
        return False
    return bool(str(value).strip())


def missing_metadata(question: QuestionRecord) -> List[str]:
    """Names of mandatory metadata fields the question is still missing."""
    return [field for field in MANDATORY_METADATA_FIELDS if not _is_filled(getattr(question, field))]


def are_all_questions_complete(questions: Sequence[QuestionRecord]) -> bool:
    return all(not missing_metadata(q) for q in questions)


def apply_bulk_settings(
    questions: Sequence[QuestionRecord],
    start: Optional[int],
    end: Optional[int],
    values: BulkSettings,
    applied_ranges: Sequence[AppliedRange] = (),
) -> Tuple[List[QuestionRecord], List[AppliedRange]]:
    """Assign ``values`` to every question numbered ``start..end`` (inclusive).

    Returns the updated questions and the applied ranges including the new
    one. Inputs are not modified.

    Raises:
        BulkSettingsError: missing or out-of-bounds range, overlap with an
            already applied range, or an empty mandatory field
    """
    if not start or not end:
        raise BulkSettingsError("Please enter valid 'From Q#' and 'To Q#'.")
    if start < 1 or end > len(questions) or start > end:
        raise BulkSettingsError("Please enter a valid range within questions.")
    if any(applied.overlaps(start, end) for applied in applied_ranges):
        raise BulkSettingsError("The specified range overlaps with a previously set range.")
    if not all(_is_filled(getattr(values, field)) for field in MANDATORY_METADATA_FIELDS):
        raise BulkSettingsError(
            "Please fill all mandatory fields except Subtopic before applying."
        )

    update = {
        "marks": values.marks,
        "negative_marks": values.negative_marks,
        "grace_marks": values.grace_marks,
        "language": values.language,
        "question_difficulty_id": values.question_difficulty_id,
        "subject": values.subject,
        "chapter": values.chapter,
        "topic": values.topic,
        "subtopic": values.subtopic or None,
    }
    updated = [
        q.model_copy(update=update) if start <= q.question_number <= end else q
        for q in questions
    ]
    ranges = list(applied_ranges) + [
        AppliedRange(range_start=start, range_end=end, values=values.model_copy())
    ]

    logger.info(f"Applied bulk settings to questions {start}-{end}")
    return updated, ranges
