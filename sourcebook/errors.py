"""Sourcebook exceptions.

Every failure the API can report is one of these. The HTTP layer maps each
class to a status code and a ``{"error": message}`` payload.
"""

from __future__ import annotations


class SourcebookError(Exception):
    """Base exception for all Sourcebook errors."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message

    def to_payload(self) -> dict:
        return {"error": self.message}


class InvalidRequestError(SourcebookError):
    """The request is missing required fields or names something unsupported."""

    status_code = 400


class DocumentError(SourcebookError):
    """A single document could not contribute content."""

    status_code = 502

    def __init__(
        self, message: str, source_id: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.source_id = source_id


class DocumentUnavailableError(DocumentError):
    """Storage or network failure while reading a document."""


class ExtractionEmptyError(DocumentError):
    """The document was read but no text could be extracted from it."""

    status_code = 422


class ReconnectRequiredError(SourcebookError):
    """Drive tokens are missing or could not be refreshed."""

    status_code = 401

    def to_payload(self) -> dict:
        return {"error": self.message, "needsAuth": True}


class UpstreamModelError(SourcebookError):
    """The chat completion endpoint failed or returned something unusable."""

    status_code = 502
