"""PDF extraction with a real parser (pypdf)."""

from __future__ import annotations

import io
import logging

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from sourcebook.extractors.base import ExtractionResult

logger = logging.getLogger(__name__)

MAX_PAGES = 20


class PypdfExtractor:
    """Page-by-page text extraction for the first ``max_pages`` pages."""

    name: str = "pypdf"

    def __init__(self, max_pages: int = MAX_PAGES) -> None:
        self.max_pages = max_pages

    def extract(self, data: bytes) -> ExtractionResult:
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = reader.pages[: self.max_pages]
            parts = []
            for number, page in enumerate(pages, 1):
                page_text = page.extract_text() or ""
                if page_text.strip():
                    parts.append(f"--- Page {number} --- {page_text}")
        except (PyPdfError, ValueError, KeyError) as exc:
            logger.warning("pypdf could not read document: %s", exc)
            return ExtractionResult.from_text("")

        return ExtractionResult.from_text("\n".join(parts))
