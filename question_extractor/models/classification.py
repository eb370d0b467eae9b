"""Pydantic models for paragraph classification results.

Each paragraph of a question document is classified into exactly one role.
The classifier produces these as tagged variants; ``kind`` is the tag.
"""

from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Blank(_Frozen):
    """Empty or whitespace-only paragraph."""
    kind: Literal["blank"] = "blank"


class QuestionStart(_Frozen):
    """Header paragraph that opens a question, e.g. ``Q3. What is ...``."""
    kind: Literal["question_start"] = "question_start"
    number: int = Field(ge=0, description="Numeral written in the header (not used for sequencing)")
    remainder: str = Field(default="", description="Header text after the numeral and separator")


class DirectionStart(_Frozen):
    """Opening marker of a direction (essay) block, e.g. ``D-1) Read ...``."""
    kind: Literal["direction_start"] = "direction_start"
    remainder: str = Field(default="", description="Direction text on the marker line")


class DirectionEnd(_Frozen):
    """Closing marker of a direction block (``##End Essay``)."""
    kind: Literal["direction_end"] = "direction_end"


class OptionFragment(_Frozen):
    """A single lettered choice found inside a paragraph."""
    label: str = Field(description="Lower-case option letter as written")
    text: str = Field(description="Option text without its label")


class OptionParagraph(_Frozen):
    """Paragraph carrying one or more option fragments."""
    kind: Literal["options"] = "options"
    fragments: List[OptionFragment] = Field(default_factory=list)


class AnswerLine(_Frozen):
    """``Ans) b, d`` style answer paragraph."""
    kind: Literal["answer"] = "answer"
    letters: List[str] = Field(
        default_factory=list,
        description="Lower-case answer letters in order of appearance, duplicates kept"
    )
    tail: str = Field(default="", description="Text after the answer separator")


class SolutionLine(_Frozen):
    """``Sol) ...`` / ``Explanation: ...`` paragraph."""
    kind: Literal["solution"] = "solution"
    text: str = Field(default="", description="Solution text after the separator")


class Continuation(_Frozen):
    """Free text that belongs to the preceding block."""
    kind: Literal["continuation"] = "continuation"


ParagraphRole = Union[
    Blank,
    QuestionStart,
    DirectionStart,
    DirectionEnd,
    OptionParagraph,
    AnswerLine,
    SolutionLine,
    Continuation,
]
