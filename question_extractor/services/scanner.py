"""Cursor and state machine shared by the validator and the extractor.

Both passes walk the same paragraph grammar::

    SEEK_QUESTION -> ACCUMULATE_BODY -> ACCUMULATE_OPTIONS
                  -> EXPECT_ANSWER -> OPTIONAL_SOLUTION -> SEEK_QUESTION

with ``DIRECTION_BLOCK`` entered from ``SEEK_QUESTION`` whenever a ``D-n)``
marker is seen. ``ParagraphScanner`` owns the transitions; subclasses react
to what was recognized through the ``on_*`` hooks and never move the cursor
themselves.
"""

from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from question_extractor.models.classification import (
    AnswerLine,
    DirectionStart,
    OptionFragment,
    QuestionStart,
    SolutionLine,
)
from question_extractor.services.paragraph_classifier import (
    contains_any_option,
    is_answer_line,
    is_direction_end,
    is_direction_start,
    is_solution_line,
    match_question_start,
    split_options_from_paragraph,
)


class ScanState(str, Enum):
    SEEK_QUESTION = "seek_question"
    DIRECTION_BLOCK = "direction_block"
    ACCUMULATE_BODY = "accumulate_body"
    ACCUMULATE_OPTIONS = "accumulate_options"
    EXPECT_ANSWER = "expect_answer"
    OPTIONAL_SOLUTION = "optional_solution"
    DONE = "done"


class ParagraphCursor:
    """Forward-only cursor over trimmed paragraph texts."""

    def __init__(self, lines: Sequence[str]):
        self._lines: List[str] = [(line or "").strip() for line in lines]
        self._position = 0

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def position(self) -> int:
        return self._position

    @property
    def at_end(self) -> bool:
        return self._position >= len(self._lines)

    @property
    def last_index(self) -> int:
        """Index of the final paragraph (0 for an empty document)."""
        return max(len(self._lines) - 1, 0)

    def peek(self) -> Optional[str]:
        """Current paragraph text, or None past the end."""
        if self.at_end:
            return None
        return self._lines[self._position]

    def advance(self) -> str:
        """Return the current paragraph and move past it."""
        if self.at_end:
            raise IndexError("cursor is past the last paragraph")
        text = self._lines[self._position]
        self._position += 1
        return text


def ends_question_body(text: str) -> bool:
    """Body text stops at options, answer, solution or the next header."""
    return (
        contains_any_option(text)
        or is_answer_line(text) is not None
        or is_solution_line(text) is not None
        or match_question_start(text) is not None
    )


def ends_option_region(text: str) -> bool:
    """The option region stops at the answer, solution or next header."""
    return (
        is_answer_line(text) is not None
        or is_solution_line(text) is not None
        or match_question_start(text) is not None
    )


class ParagraphScanner:
    """Drives the question grammar over a paragraph list.

    Call ``run()`` for a full pass, or ``step()`` to execute one state
    handler at a time.
    """

    def __init__(self, lines: Sequence[str]):
        self.cursor = ParagraphCursor(lines)
        self.state = ScanState.SEEK_QUESTION
        self._option_start = 0
        self._direction_marker: Optional[DirectionStart] = None
        self._handlers: Dict[ScanState, Callable[[], ScanState]] = {
            ScanState.SEEK_QUESTION: self._seek_question,
            ScanState.DIRECTION_BLOCK: self._direction_block,
            ScanState.ACCUMULATE_BODY: self._accumulate_body,
            ScanState.ACCUMULATE_OPTIONS: self._accumulate_options,
            ScanState.EXPECT_ANSWER: self._expect_answer,
            ScanState.OPTIONAL_SOLUTION: self._optional_solution,
        }

    def step(self) -> ScanState:
        if self.state is not ScanState.DONE:
            self.state = self._handlers[self.state]()
        return self.state

    def run(self) -> None:
        while self.state is not ScanState.DONE:
            self.step()

    # -- state handlers ---------------------------------------------------

    def _seek_question(self) -> ScanState:
        text = self.cursor.peek()
        if text is None:
            return ScanState.DONE

        index = self.cursor.position
        if not text:
            self.cursor.advance()
            return ScanState.SEEK_QUESTION

        direction = is_direction_start(text)
        if direction is not None:
            self._direction_marker = direction
            return ScanState.DIRECTION_BLOCK

        if is_direction_end(text):
            self.on_direction_end(index)
            self.cursor.advance()
            return ScanState.SEEK_QUESTION

        question = match_question_start(text)
        if question is None:
            self.on_stray_paragraph(index, text)
            self.cursor.advance()
            return ScanState.SEEK_QUESTION

        self.on_question_start(index, question)
        self.cursor.advance()
        return ScanState.ACCUMULATE_BODY

    def _direction_block(self) -> ScanState:
        # Entered only from _seek_question, which stored the matched marker
        index = self.cursor.position
        self.cursor.advance()
        self.on_direction_start(index, self._direction_marker)

        while not self.cursor.at_end:
            text = self.cursor.peek() or ""
            if is_direction_end(text):
                self.on_direction_end(self.cursor.position)
                self.cursor.advance()
                break
            if match_question_start(text) is not None:
                break
            self.on_direction_paragraph(self.cursor.position, text)
            self.cursor.advance()
        return ScanState.SEEK_QUESTION

    def _accumulate_body(self) -> ScanState:
        while not self.cursor.at_end:
            text = self.cursor.peek() or ""
            if ends_question_body(text):
                break
            self.on_body_paragraph(self.cursor.position, text)
            self.cursor.advance()
        return ScanState.ACCUMULATE_OPTIONS

    def _accumulate_options(self) -> ScanState:
        self._option_start = self.cursor.position
        while not self.cursor.at_end:
            text = self.cursor.peek() or ""
            if ends_option_region(text):
                break
            self.on_option_paragraph(
                self.cursor.position, text, split_options_from_paragraph(text)
            )
            self.cursor.advance()
        self.on_options_complete(min(self._option_start, self.cursor.last_index))
        return ScanState.EXPECT_ANSWER

    def _expect_answer(self) -> ScanState:
        text = self.cursor.peek()
        answer = is_answer_line(text) if text is not None else None
        if answer is None:
            self.on_missing_answer(min(self.cursor.position, self.cursor.last_index))
            return ScanState.OPTIONAL_SOLUTION

        self.on_answer(self.cursor.position, answer)
        self.cursor.advance()
        return ScanState.OPTIONAL_SOLUTION

    def _optional_solution(self) -> ScanState:
        text = self.cursor.peek()
        solution = is_solution_line(text) if text is not None else None
        if solution is not None:
            self.on_solution(self.cursor.position, solution)
            self.cursor.advance()
        self.on_question_complete()
        return ScanState.SEEK_QUESTION

    # -- hooks ------------------------------------------------------------

    def on_stray_paragraph(self, index: int, text: str) -> None:
        pass

    def on_direction_start(self, index: int, marker: DirectionStart) -> None:
        pass

    def on_direction_paragraph(self, index: int, text: str) -> None:
        pass

    def on_direction_end(self, index: int) -> None:
        pass

    def on_question_start(self, index: int, header: QuestionStart) -> None:
        pass

    def on_body_paragraph(self, index: int, text: str) -> None:
        pass

    def on_option_paragraph(self, index: int, text: str, fragments: List[OptionFragment]) -> None:
        pass

    def on_options_complete(self, option_start: int) -> None:
        pass

    def on_answer(self, index: int, answer: AnswerLine) -> None:
        pass

    def on_missing_answer(self, index: int) -> None:
        pass

    def on_solution(self, index: int, solution: SolutionLine) -> None:
        pass

    def on_question_complete(self) -> None:
        pass
