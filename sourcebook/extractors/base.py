"""Common interface for document text extractors."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

PARTIAL_WORD_THRESHOLD = 50


class ExtractionStatus(Enum):
    EXTRACTED = "extracted"
    PARTIAL = "partial"
    EMPTY = "empty"


@dataclass(frozen=True)
class ExtractionResult:
    """Plain text recovered from a binary document."""

    text: str
    word_count: int
    status: ExtractionStatus

    @classmethod
    def from_text(cls, text: str) -> ExtractionResult:
        """Clean up ``text`` and classify how much of it was recovered."""
        cleaned = " ".join(text.split())
        words = len(cleaned.split())
        if words == 0:
            status = ExtractionStatus.EMPTY
        elif words < PARTIAL_WORD_THRESHOLD:
            status = ExtractionStatus.PARTIAL
        else:
            status = ExtractionStatus.EXTRACTED
        return cls(text=cleaned, word_count=words, status=status)


@runtime_checkable
class DocumentExtractor(Protocol):
    """Strategy turning raw document bytes into text."""

    name: str

    def extract(self, data: bytes) -> ExtractionResult:
        ...
