"""Document host access: reading paragraphs and applying display colors.

The format checker only talks to the ``DocumentAccessor`` protocol. Two
implementations are provided:

- ``DocxDocumentAccessor`` works on a .docx file through python-docx
- ``InMemoryDocumentAccessor`` holds paragraphs sent by an editor client
  and records the colors it should apply

Color commands are queued and applied together on ``sync()``.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Tuple, Union

import docx
from docx.shared import RGBColor

from question_extractor.models.document import Paragraph, ParagraphColor, join_soft_breaks
from question_extractor.services.docx_html import paragraph_to_html

logger = logging.getLogger(__name__)

COLOR_HEX: Dict[ParagraphColor, str] = {
    ParagraphColor.NEUTRAL: "000000",
    ParagraphColor.INVALID: "FF0000",
    ParagraphColor.VALID: "008000",
}


class DocumentAccessError(RuntimeError):
    """Raised when the host document cannot be read or updated."""


class DocumentAccessor(Protocol):
    async def get_paragraphs(self) -> List[Paragraph]:
        ...

    def set_paragraph_color(self, index: int, color: ParagraphColor) -> None:
        ...

    async def sync(self) -> None:
        ...


class InMemoryDocumentAccessor:
    """Paragraphs supplied directly by a client; colors are only recorded."""

    def __init__(self, paragraphs: Sequence[Union[str, Paragraph]]):
        self._paragraphs: List[Paragraph] = [
            p if isinstance(p, Paragraph) else Paragraph(index=i, text=p)
            for i, p in enumerate(paragraphs)
        ]
        self._pending: List[Tuple[int, ParagraphColor]] = []
        self.colors: Dict[int, ParagraphColor] = {}
        self.sync_count = 0

    async def get_paragraphs(self) -> List[Paragraph]:
        return list(self._paragraphs)

    def set_paragraph_color(self, index: int, color: ParagraphColor) -> None:
        self._pending.append((index, color))

    async def sync(self) -> None:
        pending, self._pending = self._pending, []
        for index, color in pending:
            if not 0 <= index < len(self._paragraphs):
                raise DocumentAccessError(f"Paragraph index out of range: {index}")
            self.colors[index] = color
        self.sync_count += 1


class DocxDocumentAccessor:
    """Reads and recolors the body paragraphs of a .docx file.

    Only top-level body paragraphs are addressed (table cell paragraphs are
    not part of the paragraph index). The recolored document is written to
    ``output_path`` (defaults to the source path) on ``sync()``.
    """

    def __init__(self, path: Union[str, Path], output_path: Optional[Union[str, Path]] = None):
        self.path = Path(path)
        self.output_path = Path(output_path) if output_path else self.path
        self._document = None
        self._pending: List[Tuple[int, ParagraphColor]] = []

    async def _load(self):
        if self._document is None:
            try:
                self._document = await asyncio.to_thread(docx.Document, str(self.path))
            except Exception as e:
                raise DocumentAccessError(
                    f"Failed to open document {self.path.name}: {str(e)}"
                ) from e
        return self._document

    async def get_paragraphs(self) -> List[Paragraph]:
        document = await self._load()
        paragraphs = [
            Paragraph(index=i, text=join_soft_breaks(p.text), html=paragraph_to_html(p))
            for i, p in enumerate(document.paragraphs)
        ]
        logger.debug(f"Loaded {len(paragraphs)} paragraphs from {self.path.name}")
        return paragraphs

    def set_paragraph_color(self, index: int, color: ParagraphColor) -> None:
        self._pending.append((index, color))

    async def sync(self) -> None:
        document = await self._load()
        pending, self._pending = self._pending, []

        def _apply() -> None:
            paragraphs = document.paragraphs
            for index, color in pending:
                if not 0 <= index < len(paragraphs):
                    raise DocumentAccessError(f"Paragraph index out of range: {index}")
                rgb = RGBColor.from_string(COLOR_HEX[color])
                for run in paragraphs[index].runs:
                    run.font.color.rgb = rgb
            document.save(str(self.output_path))

        try:
            await asyncio.to_thread(_apply)
        except DocumentAccessError:
            raise
        except Exception as e:
            raise DocumentAccessError(
                f"Failed to save document {self.output_path.name}: {str(e)}"
            ) from e
