"""Document content fetcher: turns a Source into grounding text."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sourcebook.config import settings
from sourcebook.drive.client import DriveClient
from sourcebook.errors import ExtractionEmptyError, ReconnectRequiredError
from sourcebook.extractors.base import DocumentExtractor, ExtractionStatus
from sourcebook.extractors.pdf_heuristic import HeuristicPdfExtractor
from sourcebook.extractors.pdf_pypdf import PypdfExtractor
from sourcebook.models.source import DocumentKind, ExternalUrl, Source
from sourcebook.storage.blob import BlobStorage

logger = logging.getLogger(__name__)

_GOOGLE_KINDS = {
    DocumentKind.GOOGLE_DOC: "Google Doc",
    DocumentKind.GOOGLE_SHEET: "Google Sheet, CSV",
    DocumentKind.GOOGLE_SLIDES: "Google Slides",
}


@dataclass(frozen=True)
class FetchedDocument:
    source: Source
    text: str
    label: str


@dataclass(frozen=True)
class SkippedDocument:
    """A source deliberately left out: unsupported, unlinked or too large."""

    source: Source
    reason: str


FetchOutcome = FetchedDocument | SkippedDocument


def build_pdf_extractor(name: str | None = None) -> DocumentExtractor:
    name = name or settings.pdf_extractor
    if name == "pypdf":
        return PypdfExtractor()
    if name == "heuristic":
        return HeuristicPdfExtractor()
    raise ValueError(f"Unknown PDF extractor: {name}")


class ContentFetcher:
    """Fetches and extracts text for a single source.

    Skips are returned, failures are raised: ``DocumentUnavailableError``
    when storage or Drive cannot be read, ``ExtractionEmptyError`` when the
    bytes hold no recoverable text, ``ReconnectRequiredError`` when Drive
    credentials are gone.
    """

    def __init__(
        self,
        storage: BlobStorage,
        drive: DriveClient | None = None,
        pdf_extractor: DocumentExtractor | None = None,
        max_file_bytes: int | None = None,
    ) -> None:
        self.storage = storage
        self.drive = drive
        self.pdf_extractor = pdf_extractor or build_pdf_extractor()
        self.max_file_bytes = max_file_bytes or settings.max_file_bytes

    async def fetch(self, source: Source, max_chars: int | None = None) -> FetchOutcome:
        kind = source.kind
        if kind is DocumentKind.UNSUPPORTED:
            return self._skip(source, f"unsupported type {source.mime_type or 'unknown'}")

        if isinstance(source.locator, ExternalUrl):
            outcome = await self._fetch_external(source, kind)
        else:
            outcome = await self._fetch_stored(source, kind)

        if isinstance(outcome, SkippedDocument):
            return outcome
        if not outcome.text.strip():
            raise ExtractionEmptyError("Document is empty", source_id=source.id)
        if max_chars is not None and len(outcome.text) > max_chars:
            outcome = FetchedDocument(source, outcome.text[:max_chars], outcome.label)
        return outcome

    async def _fetch_stored(self, source: Source, kind: DocumentKind) -> FetchOutcome:
        if kind in _GOOGLE_KINDS:
            return self._skip(source, "Google file without a Drive link")
        if source.size > self.max_file_bytes:
            return self._skip(
                source, f"{source.size} bytes exceeds the {self.max_file_bytes} byte limit"
            )

        data = await self.storage.download(source.locator.path)
        if kind is DocumentKind.PDF:
            return self._from_pdf(source, data)
        return FetchedDocument(source, data.decode("utf-8", errors="replace"), _text_label(source))

    async def _fetch_external(self, source: Source, kind: DocumentKind) -> FetchOutcome:
        locator = source.locator
        if not locator.is_drive:
            return self._skip(source, "external link is not a Google Drive file")
        file_id = locator.drive_file_id
        if not file_id:
            return self._skip(source, "no Drive file id in link")
        if self.drive is None:
            raise ReconnectRequiredError("Google Drive is not connected")

        export = await self.drive.export(file_id, source.mime_type)
        if kind is DocumentKind.PDF:
            return self._from_pdf(source, export.content)
        if kind in _GOOGLE_KINDS:
            return FetchedDocument(source, export.text, f"{source.name} ({_GOOGLE_KINDS[kind]})")
        return FetchedDocument(source, export.text, f"{source.name} (Google Drive file)")

    def _from_pdf(self, source: Source, data: bytes) -> FetchedDocument:
        result = self.pdf_extractor.extract(data)
        if result.status is ExtractionStatus.EMPTY:
            raise ExtractionEmptyError(
                "Could not extract text from PDF, it may need OCR",
                source_id=source.id,
                details=f"{self.pdf_extractor.name} extractor found no text",
            )
        if result.status is ExtractionStatus.PARTIAL:
            label = f"{source.name} (PDF, partially readable, ~{result.word_count} words)"
        else:
            label = f"{source.name} (PDF, ~{result.word_count} words)"
        return FetchedDocument(source, result.text, label)

    def _skip(self, source: Source, reason: str) -> SkippedDocument:
        logger.info("Skipping %s: %s", source.name, reason)
        return SkippedDocument(source, reason)


def _text_label(source: Source) -> str:
    name = source.name.lower()
    if source.mime_type == "text/markdown" or name.endswith((".md", ".markdown")):
        return f"{source.name} (Markdown)"
    if source.mime_type == "text/csv" or name.endswith(".csv"):
        return f"{source.name} (CSV)"
    return f"{source.name} (text)"
