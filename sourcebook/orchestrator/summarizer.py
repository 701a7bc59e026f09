"""Single-document summarizer."""

from __future__ import annotations

import logging

from sourcebook.backends.base import CompletionBackend
from sourcebook.config import settings
from sourcebook.errors import DocumentUnavailableError, ExtractionEmptyError, InvalidRequestError
from sourcebook.models.source import Source
from sourcebook.orchestrator.fetcher import ContentFetcher, SkippedDocument
from sourcebook.orchestrator.prompts import SUMMARY_PROMPT, SUMMARY_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT_MESSAGE = "Document appears to be empty or content could not be extracted"


class DocumentSummarizer:
    """Fetches one document in full and asks the model for a summary."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        backend: CompletionBackend,
        max_chars: int | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.backend = backend
        self.max_chars = max_chars or settings.max_summary_chars

    async def summarize(self, source: Source) -> str:
        logger.info("Summarizing document: %s", source.name)
        try:
            outcome = await self.fetcher.fetch(source, self.max_chars)
        except ExtractionEmptyError as exc:
            raise ExtractionEmptyError(
                EMPTY_DOCUMENT_MESSAGE, source_id=source.id, details=exc.message
            ) from exc
        except DocumentUnavailableError as exc:
            raise DocumentUnavailableError(
                f"Failed to fetch document content: {exc.message}",
                source_id=source.id,
                details=exc.details,
            ) from exc

        if isinstance(outcome, SkippedDocument):
            raise InvalidRequestError(f"Unsupported file for summarization: {outcome.reason}")
        if not outcome.text.strip():
            raise ExtractionEmptyError(EMPTY_DOCUMENT_MESSAGE, source_id=source.id)

        summary = await self.backend.complete(
            [
                {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": SUMMARY_PROMPT.format(label=outcome.label, content=outcome.text),
                },
            ]
        )
        logger.info("Summary generated for %s", source.name)
        return summary
