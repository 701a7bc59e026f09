"""Source data model."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from urllib.parse import urlparse
from uuid import uuid4

GOOGLE_DOC = "application/vnd.google-apps.document"
GOOGLE_SHEET = "application/vnd.google-apps.spreadsheet"
GOOGLE_SLIDES = "application/vnd.google-apps.presentation"

DRIVE_HOSTS = ("drive.google.com", "docs.google.com")
_DRIVE_FILE_ID = re.compile(r"[-\w]{25,}")
_TEXT_SUFFIXES = (".txt", ".md", ".markdown", ".csv")


class DocumentKind(Enum):
    TEXT = "text"
    PDF = "pdf"
    GOOGLE_DOC = "google_doc"
    GOOGLE_SHEET = "google_sheet"
    GOOGLE_SLIDES = "google_slides"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class StoragePath:
    """A file held in the workspace's own blob storage."""

    path: str


@dataclass(frozen=True)
class ExternalUrl:
    """A file that lives elsewhere and is referenced by URL."""

    url: str

    @property
    def is_drive(self) -> bool:
        host = urlparse(self.url).hostname or ""
        return host in DRIVE_HOSTS

    @property
    def drive_file_id(self) -> str | None:
        match = _DRIVE_FILE_ID.search(urlparse(self.url).path) or _DRIVE_FILE_ID.search(self.url)
        return match.group(0) if match else None


Locator = StoragePath | ExternalUrl


def parse_locator(file_path: str) -> Locator:
    """Turn a stored ``file_path`` column into its locator type."""
    if file_path.startswith(("http://", "https://")):
        return ExternalUrl(file_path)
    return StoragePath(file_path)


def classify(mime_type: str, name: str) -> DocumentKind:
    """Work out which extraction strategy a document needs."""
    lowered = name.lower()
    if mime_type == GOOGLE_DOC:
        return DocumentKind.GOOGLE_DOC
    if mime_type == GOOGLE_SHEET:
        return DocumentKind.GOOGLE_SHEET
    if mime_type == GOOGLE_SLIDES:
        return DocumentKind.GOOGLE_SLIDES
    if mime_type == "application/pdf" or lowered.endswith(".pdf"):
        return DocumentKind.PDF
    if mime_type.startswith("text/") or lowered.endswith(_TEXT_SUFFIXES):
        return DocumentKind.TEXT
    return DocumentKind.UNSUPPORTED


@dataclass(frozen=True)
class Source:
    """A document uploaded to, or linked from, the workspace."""

    name: str
    mime_type: str
    size: int
    locator: Locator
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    project_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))

    @property
    def kind(self) -> DocumentKind:
        return classify(self.mime_type, self.name)

    @property
    def file_path(self) -> str:
        if isinstance(self.locator, ExternalUrl):
            return self.locator.url
        return self.locator.path

    @classmethod
    def from_record(cls, record: dict) -> Source:
        """Build a Source from a record-store row or an API payload."""
        uploaded_at = record.get("uploaded_at")
        if isinstance(uploaded_at, str):
            uploaded_at = datetime.fromisoformat(uploaded_at.replace("Z", "+00:00"))
        return cls(
            id=str(record["id"]),
            name=record["name"],
            mime_type=record.get("type") or record.get("mime_type") or "",
            size=int(record.get("size") or 0),
            locator=parse_locator(record["file_path"]),
            uploaded_at=uploaded_at or datetime.now(timezone.utc),
            project_id=record.get("project_id"),
        )
