"""Best-effort inlining of remote images referenced from extracted HTML.

Extracted HTML may point at images hosted elsewhere (pasted web content).
Each ``<img src="http(s)://...">`` is fetched and replaced by a base64 data
URI so the question stays renderable after submission. A failed fetch
leaves that reference unchanged and does not affect any other image.
"""

import asyncio
import base64
import logging
from typing import Dict, List, Optional

import httpx
from bs4 import BeautifulSoup

from question_extractor.models.question import QuestionRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024

_HTML_FIELDS = ("question_html", "direction_html", "answer_html", "solution_html")


def _is_remote(src: Optional[str]) -> bool:
    return bool(src) and src.lower().startswith(("http://", "https://"))


class HtmlEnricher:
    """Inlines remote images; fetched URLs are cached for the enricher's lifetime."""

    def __init__(self, client: httpx.AsyncClient, max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES):
        self.client = client
        self.max_image_bytes = max_image_bytes
        self._cache: Dict[str, Optional[str]] = {}

    async def _fetch_data_uri(self, url: str) -> Optional[str]:
        if url in self._cache:
            return self._cache[url]

        data_uri: Optional[str] = None
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
            if not content_type.startswith("image/"):
                logger.warning(f"Not inlining {url}: content-type is '{content_type}'")
            elif len(response.content) > self.max_image_bytes:
                logger.warning(
                    f"Not inlining {url}: {len(response.content)} bytes exceeds "
                    f"{self.max_image_bytes}"
                )
            else:
                encoded = base64.b64encode(response.content).decode("ascii")
                data_uri = f"data:{content_type};base64,{encoded}"
        except Exception as e:
            logger.warning(f"Could not inline image {url}: {str(e)}")

        self._cache[url] = data_uri
        return data_uri

    async def inline_images(self, html: str) -> str:
        """Return ``html`` with every fetchable remote image inlined."""
        if "<img" not in html.lower():
            return html

        soup = BeautifulSoup(html, "html.parser")
        targets = [img for img in soup.find_all("img") if _is_remote(img.get("src"))]
        if not targets:
            return html

        data_uris = await asyncio.gather(*(self._fetch_data_uri(img["src"]) for img in targets))

        changed = False
        for img, data_uri in zip(targets, data_uris):
            if data_uri is not None:
                img["src"] = data_uri
                changed = True
        return str(soup) if changed else html

    async def enrich_questions(self, questions: List[QuestionRecord]) -> List[QuestionRecord]:
        enriched = []
        for question in questions:
            updates = {}
            for field in _HTML_FIELDS:
                value = getattr(question, field)
                if value:
                    updates[field] = await self.inline_images(value)
            if question.options_html:
                updates["options_html"] = [
                    await self.inline_images(fragment) for fragment in question.options_html
                ]
            enriched.append(question.model_copy(update=updates))
        return enriched
