"""Second pass: turn a validated document into question records.

The extractor walks the same grammar as the validator (see ``scanner``)
and builds one ``QuestionRecord`` per question header. Two channels are
kept in lockstep:

- plain text, from the trimmed paragraph text
- HTML, from the paragraph markup supplied by the host

The HTML channel is active when at least one paragraph carries markup.
A paragraph's own markup is reused whole wherever it maps to a single
field, so embedded equations and images survive. Where no markup exists,
or one paragraph holds several options, an escaped ``<p>`` fragment is
synthesized from the plain text instead.

Question numbers follow emission order; numerals written in the headers
are ignored.
"""

import html as html_lib
from typing import List, Optional, Sequence

from question_extractor.models.classification import (
    AnswerLine,
    DirectionStart,
    OptionFragment,
    QuestionStart,
    SolutionLine,
)
from question_extractor.models.question import QuestionRecord
from question_extractor.services.scanner import ParagraphScanner


def synthesize_html(text: str) -> str:
    return f"<p>{html_lib.escape(text)}</p>"


class _QuestionDraft:
    def __init__(self) -> None:
        self.body: List[str] = []
        self.body_html: List[str] = []
        self.options: List[str] = []
        self.options_html: List[str] = []
        self.answer: List[str] = []
        self.answer_html: Optional[str] = None
        self.solution = ""
        self.solution_html: Optional[str] = None


class QuestionExtractor(ParagraphScanner):
    """Builds question records; assumes the document already validated."""

    def __init__(self, lines: Sequence[str], html: Optional[Sequence[Optional[str]]] = None):
        super().__init__(lines)
        if html is not None and len(html) != len(lines):
            raise ValueError(
                f"html has {len(html)} entries but there are {len(lines)} paragraphs"
            )
        self._html: List[Optional[str]] = list(html) if html is not None else [None] * len(lines)
        self.html_enabled = any(fragment for fragment in self._html)

        self.questions: List[QuestionRecord] = []
        self._draft: Optional[_QuestionDraft] = None
        self._direction_open = False
        self._direction_text: List[str] = []
        self._direction_html: List[str] = []

    def _paragraph_html(self, index: int, fallback_text: str) -> Optional[str]:
        """True paragraph markup, else an escaped fragment of ``fallback_text``."""
        if not self.html_enabled:
            return None
        return self._html[index] or synthesize_html(fallback_text)

    # -- direction block --------------------------------------------------

    def on_direction_start(self, index: int, marker: DirectionStart) -> None:
        self._direction_open = True
        self._direction_text = []
        self._direction_html = []
        if marker.remainder or self._html[index]:
            if marker.remainder:
                self._direction_text.append(marker.remainder)
            html = self._paragraph_html(index, marker.remainder)
            if html is not None:
                self._direction_html.append(html)

    def on_direction_paragraph(self, index: int, text: str) -> None:
        if not text:
            return
        self._direction_text.append(text)
        html = self._paragraph_html(index, text)
        if html is not None:
            self._direction_html.append(html)

    def on_direction_end(self, index: int) -> None:
        self._direction_open = False
        self._direction_text = []
        self._direction_html = []

    # -- question ---------------------------------------------------------

    def on_question_start(self, index: int, header: QuestionStart) -> None:
        self._draft = _QuestionDraft()
        if header.remainder:
            self._draft.body.append(header.remainder)
        if header.remainder or self._html[index]:
            html = self._paragraph_html(index, header.remainder)
            if html is not None:
                self._draft.body_html.append(html)

    def on_body_paragraph(self, index: int, text: str) -> None:
        if self._draft is None or not text:
            return
        self._draft.body.append(text)
        html = self._paragraph_html(index, text)
        if html is not None:
            self._draft.body_html.append(html)

    def on_option_paragraph(self, index: int, text: str, fragments: List[OptionFragment]) -> None:
        if self._draft is None or not fragments:
            return
        self._draft.options.extend(fragment.text for fragment in fragments)
        if not self.html_enabled:
            return
        if len(fragments) == 1 and self._html[index]:
            self._draft.options_html.append(self._html[index] or "")
        else:
            self._draft.options_html.extend(synthesize_html(fragment.text) for fragment in fragments)

    def on_answer(self, index: int, answer: AnswerLine) -> None:
        if self._draft is None:
            return
        self._draft.answer = list(answer.letters)
        self._draft.answer_html = self._paragraph_html(index, answer.tail)

    def on_solution(self, index: int, solution: SolutionLine) -> None:
        if self._draft is None:
            return
        self._draft.solution = solution.text
        self._draft.solution_html = self._paragraph_html(index, solution.text)

    def on_question_complete(self) -> None:
        draft = self._draft
        if draft is None:
            return
        self._draft = None

        record = QuestionRecord(
            question_number=len(self.questions) + 1,
            question=" ".join(draft.body).strip(),
            options=draft.options,
            answer=draft.answer,
            solution=draft.solution,
        )
        if self._direction_open:
            record.direction = " ".join(self._direction_text)
        if self.html_enabled:
            record.question_html = "\n".join(draft.body_html)
            record.options_html = draft.options_html
            record.answer_html = draft.answer_html
            record.solution_html = draft.solution_html
            if self._direction_open:
                record.direction_html = "\n".join(self._direction_html)
        self.questions.append(record)


def extract_questions(
    lines: Sequence[str], html: Optional[Sequence[Optional[str]]] = None
) -> List[QuestionRecord]:
    """Extract question records from paragraph texts (and optional markup).

    Args:
        lines: Paragraph texts in document order
        html: Per-paragraph markup aligned with ``lines`` (None entries allowed)

    Returns:
        List of QuestionRecord in emission order

    Raises:
        ValueError: If ``html`` is not aligned with ``lines``
    """
    extractor = QuestionExtractor(lines, html)
    extractor.run()
    return extractor.questions
