"""Pydantic models for host document paragraphs."""

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Soft line breaks (Word's Shift+Enter, vertical tab) inside one paragraph
_SOFT_BREAKS = re.compile(r'[\r\n\v]+')


def join_soft_breaks(text: str) -> str:
    """Replace line breaks inside a paragraph with single spaces."""
    return _SOFT_BREAKS.sub(" ", text or "")


class ParagraphColor(str, Enum):
    """Display colors applied to paragraphs after a format check."""

    NEUTRAL = "black"
    INVALID = "red"
    VALID = "green"


class Paragraph(BaseModel):
    """One host paragraph, read once per check cycle and never mutated."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="Position of the paragraph in the document")
    text: str = Field(default="", description="Raw paragraph text as supplied by the host")
    html: Optional[str] = Field(
        default=None,
        description="Formatted markup for the paragraph (equations/images preserved)"
    )

    @property
    def trimmed(self) -> str:
        """Text as classified: soft breaks become spaces, outer whitespace removed."""
        return join_soft_breaks(self.text).strip()

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()
