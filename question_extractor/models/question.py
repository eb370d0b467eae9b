"""Pydantic models for extracted questions and check results.

``QuestionRecord`` is the wire contract shared with the review surface and
the test-authoring service: attributes are snake_case in Python and
camelCase on the wire (``to_wire()``).
"""

from typing import Any, Dict, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QuestionRecord(BaseModel):
    """One normalized question emitted by the extractor.

    HTML fields are filled only when the host supplied paragraph markup.
    Review metadata (marks, difficulty, subject tree, ...) stays absent
    until the bulk settings step assigns it.
    """

    model_config = ConfigDict(populate_by_name=True)

    question_number: int = Field(ge=1, alias="questionNumber", description="1-based emission order")
    question: str = Field(default="", description="Question body, space-joined plain text")
    question_html: Optional[str] = Field(default=None, alias="questionHtml")
    direction: Optional[str] = Field(default=None, description="Text of the enclosing direction block")
    direction_html: Optional[str] = Field(default=None, alias="directionHtml")
    options: List[str] = Field(default_factory=list, description="Option texts in document order")
    options_html: Optional[List[str]] = Field(default=None, alias="optionsHtml")
    answer: List[str] = Field(default_factory=list, description="Answer letters, 'a' = first option")
    answer_html: Optional[str] = Field(default=None, alias="answerHtml")
    solution: str = Field(default="", description="Solution text, possibly empty")
    solution_html: Optional[str] = Field(default=None, alias="solutionHtml")

    # Review metadata
    marks: Optional[str] = None
    negative_marks: Optional[str] = Field(default=None, alias="negativeMarks")
    grace_marks: Optional[str] = Field(default=None, alias="graceMarks")
    language: Optional[str] = None
    question_difficulty_id: Optional[Union[int, str]] = Field(
        default=None, alias="questionDifficultyId"
    )
    subject: Optional[str] = None
    chapter: Optional[str] = None
    topic: Optional[str] = None
    subtopic: Optional[str] = None

    @field_validator("answer")
    @classmethod
    def validate_answer_letters(cls, v: List[str]) -> List[str]:
        """Answer entries must be single letters; they are stored lower-case."""
        letters = []
        for letter in v:
            if len(letter) != 1 or not letter.isalpha():
                raise ValueError(f"Answer entries must be single letters (got: {letter!r})")
            letters.append(letter.lower())
        return letters

    def answer_indices(self) -> List[int]:
        """Zero-based option indices referenced by the answer letters."""
        return [ord(letter) - ord("a") for letter in self.answer]

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with camelCase names, omitting absent optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ValidationResult(BaseModel):
    """Invalid paragraph positions found by the validator.

    ``invalid_indices`` keeps scan order and may repeat an index; consumers
    that only need membership use ``invalid_set``.
    """

    invalid_indices: List[int] = Field(default_factory=list)

    @property
    def invalid_set(self) -> Set[int]:
        return set(self.invalid_indices)

    @property
    def is_valid(self) -> bool:
        return not self.invalid_indices


class CheckResult(BaseModel):
    """Outcome of one validate-then-extract cycle."""

    success: bool
    message: Optional[str] = None
    invalid_paragraphs: List[int] = Field(
        default_factory=list,
        description="Sorted, de-duplicated invalid paragraph indices"
    )
    question_count: int = Field(default=0, ge=0)


class BulkSettings(BaseModel):
    """Metadata applied to a range of questions during review."""

    model_config = ConfigDict(populate_by_name=True)

    marks: str = ""
    negative_marks: str = Field(default="", alias="negativeMarks")
    grace_marks: str = Field(default="", alias="graceMarks")
    language: str = ""
    question_difficulty_id: str = Field(default="", alias="questionDifficultyId")
    subject: str = ""
    chapter: str = ""
    topic: str = ""
    subtopic: str = ""


class AppliedRange(BaseModel):
    """A question range that already received bulk settings."""

    range_start: int = Field(ge=1, alias="rangeStart")
    range_end: int = Field(ge=1, alias="rangeEnd")
    values: BulkSettings = Field(default_factory=BulkSettings)

    model_config = ConfigDict(populate_by_name=True)

    def overlaps(self, start: int, end: int) -> bool:
        return start <= self.range_end and end >= self.range_start
