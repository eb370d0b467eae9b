"""Context-free recognizers for the paragraphs of a question document.

Every function here looks at one paragraph's text and nothing else, so the
same text always yields the same result. Position-dependent decisions are
made by the validator and extractor scanners.

Recognized conventions::

    Q1. / Question 1: / 1) / 1 -        question header
    a) / (a) / a.                       option markers (several per line allowed)
    Ans) / Answer: / Adns) / Correct Answer -   answer line
    Sol) / Solution: / Explanation -    solution line
    D-1) ...  ...  ##End Essay          direction (essay) block
"""

import re
from typing import Dict, List, Optional, Tuple

from question_extractor.models.classification import (
    AnswerLine,
    Blank,
    Continuation,
    DirectionEnd,
    DirectionStart,
    OptionFragment,
    OptionParagraph,
    ParagraphRole,
    QuestionStart,
    SolutionLine,
)


# ---------------------------------------------------------------------------
# Question headers
# ---------------------------------------------------------------------------

_QUESTION_START = re.compile(
    r'^\s*(?:Q(?:uestion)?\s*[:.\-]?\s*)?(\d+)\s*[).\-:]?\s*(.*)$',
    re.IGNORECASE,
)
_NUMERIC_HEADER = re.compile(r'^\s*\d+')


def match_question_start(text: str) -> Optional[QuestionStart]:
    """Return the header numeral and remainder if ``text`` opens a question.

    The numeral is not compared with the expected sequence number: gaps and
    out-of-order numbering are accepted.
    """
    m = _QUESTION_START.match(text or "")
    if not m:
        return None
    return QuestionStart(number=int(m.group(1)), remainder=m.group(2).strip())


def looks_like_numeric_header(text: str) -> bool:
    """True when the paragraph starts with digits (a header candidate)."""
    return bool(_NUMERIC_HEADER.match(text or ""))


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

# A marker must start the line or follow whitespace, and be followed by whitespace.
_OPTION_MARKERS = [
    re.compile(r'(?<!\S)\(([a-z])\)(?=\s)', re.IGNORECASE),  # (a) text
    re.compile(r'(?<!\S)([a-z])\)(?=\s)', re.IGNORECASE),    # a) text
    re.compile(r'(?<!\S)([a-z])\.(?=\s)', re.IGNORECASE),    # a. text
]

# Single leading label, limited to a-e
_SINGLE_OPTION_FALLBACKS = [
    re.compile(r'^([a-e])\)\s+(.*)$', re.IGNORECASE),
    re.compile(r'^\(([a-e])\)\s+(.*)$', re.IGNORECASE),
    re.compile(r'^([a-e])\.\s+(.*)$', re.IGNORECASE),
]

_LEADING_OPTION = re.compile(r'^(?:\([a-z]\)|[a-z]\)|[a-z]\.)\s+', re.IGNORECASE)
_WHITESPACE = re.compile(r'\s+')


def _find_option_markers(line: str) -> List[Tuple[int, int, str]]:
    """Return (start, end, label) for every marker, unique by start offset."""
    by_offset: Dict[int, Tuple[int, int, str]] = {}
    for pattern in _OPTION_MARKERS:
        for m in pattern.finditer(line):
            by_offset[m.start()] = (m.start(), m.end(), m.group(1).lower())
    return [by_offset[offset] for offset in sorted(by_offset)]


def split_options_from_paragraph(text: str) -> List[OptionFragment]:
    """Split a paragraph into its option fragments.

    ``"a) Red b) Blue (c) Green"`` yields three fragments. Text between two
    markers belongs to the first; the last marker runs to the end of the
    line. Markers with no text after them are dropped. A paragraph without
    markers yields an empty list (it is continuation text).
    """
    line = _WHITESPACE.sub(" ", (text or "").strip())
    if not line:
        return []

    markers = _find_option_markers(line)
    if not markers:
        for pattern in _SINGLE_OPTION_FALLBACKS:
            m = pattern.match(line)
            if m:
                return [OptionFragment(label=m.group(1).lower(), text=m.group(2).strip())]
        return []

    fragments: List[OptionFragment] = []
    for i, (_, marker_end, label) in enumerate(markers):
        end = markers[i + 1][0] if i + 1 < len(markers) else len(line)
        option_text = line[marker_end:end].strip()
        if option_text:
            fragments.append(OptionFragment(label=label, text=option_text))
    return fragments


def contains_any_option(text: str) -> bool:
    """True if the paragraph begins with an option marker."""
    return bool(_LEADING_OPTION.match((text or "").strip()))


# ---------------------------------------------------------------------------
# Answer and solution lines
# ---------------------------------------------------------------------------

_ANSWER_LINE = re.compile(
    r'^\s*(?:Correct\s*Answer|Answer|Ans|Adns)\s*[.:\-)]+\s*(.*)$',
    re.IGNORECASE,
)
# Connector words are dropped before every remaining letter is read as an answer
_ANSWER_CONNECTORS = re.compile(r'\b(?:and|or|options?)\b', re.IGNORECASE)
_ANSWER_LETTER = re.compile(r'[a-z]', re.IGNORECASE)

_SOLUTION_LINE = re.compile(
    r'^\s*(?:Solution|Sol|Explanation)\s*[.:\-)]+\s*(.*)$',
    re.IGNORECASE,
)


def is_answer_line(text: str) -> Optional[AnswerLine]:
    """Parse an answer line; letters keep their order and duplicates.

    Letters may be separated or written together: ``b, d``, ``bd`` and
    ``b and d`` all give ``["b", "d"]``.
    """
    m = _ANSWER_LINE.match(text or "")
    if not m:
        return None
    tail = m.group(1).strip()
    letters = [
        letter.lower() for letter in _ANSWER_LETTER.findall(_ANSWER_CONNECTORS.sub(" ", tail))
    ]
    return AnswerLine(letters=letters, tail=tail)


def is_solution_line(text: str) -> Optional[SolutionLine]:
    m = _SOLUTION_LINE.match(text or "")
    if not m:
        return None
    return SolutionLine(text=m.group(1).strip())


# ---------------------------------------------------------------------------
# Direction (essay) blocks
# ---------------------------------------------------------------------------

_DIRECTION_START = re.compile(r'^\s*D-(\d+)\)\s*(.*)$', re.IGNORECASE)
_DIRECTION_END = re.compile(r'^\s*##\s*End\s*Essay\s*$', re.IGNORECASE)


def is_direction_start(text: str) -> Optional[DirectionStart]:
    m = _DIRECTION_START.match(text or "")
    if not m:
        return None
    return DirectionStart(remainder=m.group(2).strip())


def is_direction_end(text: str) -> bool:
    return bool(_DIRECTION_END.match(text or ""))


# ---------------------------------------------------------------------------
# Single-call classification
# ---------------------------------------------------------------------------

def classify_paragraph(text: str) -> ParagraphRole:
    """Classify one paragraph into its role.

    Precedence: blank, direction end, direction start, answer, solution,
    question header, option paragraph, continuation.
    """
    stripped = (text or "").strip()
    if not stripped:
        return Blank()
    if is_direction_end(stripped):
        return DirectionEnd()

    direction = is_direction_start(stripped)
    if direction is not None:
        return direction

    answer = is_answer_line(stripped)
    if answer is not None:
        return answer

    solution = is_solution_line(stripped)
    if solution is not None:
        return solution

    question = match_question_start(stripped)
    if question is not None:
        return question

    if contains_any_option(stripped):
        return OptionParagraph(fragments=split_options_from_paragraph(stripped))

    return Continuation()
