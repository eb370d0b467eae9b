"""Convert python-docx paragraphs to HTML fragments.

Keeps run formatting (bold, italic, underline, superscript, subscript),
hyperlinks, line breaks, Office Math (OMML) equations and embedded images.
Images are inlined as base64 data URIs so the fragment is self-contained.
"""

import base64
import html as html_lib
import logging
from typing import List, Optional

from docx.text.paragraph import Paragraph as DocxParagraph
from docx.text.run import Run

logger = logging.getLogger(__name__)

_W = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
_M = "http://schemas.openxmlformats.org/officeDocument/2006/math"
_A = "http://schemas.openxmlformats.org/drawingml/2006/main"
_R = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

W_RUN = f"{{{_W}}}r"
W_HYPERLINK = f"{{{_W}}}hyperlink"
M_MATH = f"{{{_M}}}oMath"
M_MATH_PARA = f"{{{_M}}}oMathPara"
M_TEXT = f"{{{_M}}}t"
A_BLIP = f"{{{_A}}}blip"
R_EMBED = f"{{{_R}}}embed"
R_ID = f"{{{_R}}}id"


def _format_run(run: Run, text: str) -> str:
    if run.font.superscript:
        text = f"<sup>{text}</sup>"
    elif run.font.subscript:
        text = f"<sub>{text}</sub>"
    if run.underline:
        text = f"<u>{text}</u>"
    if run.italic:
        text = f"<em>{text}</em>"
    if run.bold:
        text = f"<strong>{text}</strong>"
    return text


def _images_in(element, paragraph: DocxParagraph) -> List[str]:
    """Render every embedded picture under ``element`` as an <img> tag."""
    images = []
    for blip in element.iter(A_BLIP):
        rel_id = blip.get(R_EMBED)
        if not rel_id:
            continue
        try:
            part = paragraph.part.related_parts[rel_id]
            encoded = base64.b64encode(part.blob).decode("ascii")
            images.append(f'<img src="data:{part.content_type};base64,{encoded}"/>')
        except (KeyError, AttributeError) as e:
            logger.warning(f"Skipping unresolvable image relationship {rel_id}: {e}")
    return images


def _run_to_html(run_element, paragraph: DocxParagraph) -> str:
    run = Run(run_element, paragraph)
    text = html_lib.escape(run.text).replace("\n", "<br/>").replace("\t", "&emsp;")
    pieces = [_format_run(run, text)] if text else []
    pieces.extend(_images_in(run_element, paragraph))
    return "".join(pieces)


def _math_to_html(math_element) -> str:
    text = "".join(t.text or "" for t in math_element.iter(M_TEXT))
    return f'<span class="math">{html_lib.escape(text)}</span>'


def paragraph_to_html(paragraph: DocxParagraph) -> Optional[str]:
    """Return the paragraph as a ``<p>`` fragment, or None when it has no content."""
    pieces: List[str] = []
    for child in paragraph._p.iterchildren():
        if child.tag == W_RUN:
            pieces.append(_run_to_html(child, paragraph))
        elif child.tag == W_HYPERLINK:
            inner = "".join(
                _run_to_html(run_element, paragraph) for run_element in child.iter(W_RUN)
            )
            target = None
            rel_id = child.get(R_ID)
            if rel_id and rel_id in paragraph.part.rels:
                target = paragraph.part.rels[rel_id].target_ref
            if target:
                pieces.append(f'<a href="{html_lib.escape(target, quote=True)}">{inner}</a>')
            else:
                pieces.append(inner)
        elif child.tag == M_MATH:
            pieces.append(_math_to_html(child))
        elif child.tag == M_MATH_PARA:
            pieces.extend(_math_to_html(math) for math in child.iter(M_MATH))

    inner_html = "".join(pieces)
    if not inner_html.strip():
        return None
    return f"<p>{inner_html}</p>"
