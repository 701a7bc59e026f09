"""Context assembler and chat orchestrator: one grounded chat turn."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from sourcebook.backends.base import CompletionBackend
from sourcebook.config import settings
from sourcebook.errors import DocumentError, InvalidRequestError, ReconnectRequiredError
from sourcebook.models.chat import (
    ChatContext,
    ChatIntent,
    ChatResult,
    CitedSource,
    ContextEntry,
    Message,
)
from sourcebook.models.source import Source
from sourcebook.models.workspace import Note, Task
from sourcebook.orchestrator.fetcher import ContentFetcher, FetchedDocument
from sourcebook.orchestrator.prompts import INSIGHT_PROMPT, QA_PROMPT

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def get_sources(self, source_ids: list[str]) -> list[Source]: ...

    async def recent_sources(self, project_id: str | None = None, limit: int = 10) -> list[Source]: ...

    async def list_tasks(self, project_id: str | None = None) -> list[Task]: ...

    async def list_notes(self, project_id: str | None = None) -> list[Note]: ...


class ChatOrchestrator:
    """Answers a chat turn from the user's tasks, notes and documents."""

    def __init__(
        self,
        store: RecordStore,
        fetcher: ContentFetcher,
        backend: CompletionBackend,
        max_documents: int | None = None,
        max_document_chars: int | None = None,
        max_note_chars: int | None = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.backend = backend
        self.max_documents = max_documents or settings.max_context_documents
        self.max_document_chars = max_document_chars or settings.max_document_chars
        self.max_note_chars = max_note_chars or settings.max_note_chars

    async def converse(
        self,
        messages: list[Message],
        project_id: str | None = None,
        source_ids: list[str] | None = None,
        intent: ChatIntent | None = None,
    ) -> ChatResult:
        """Run one turn and return the answer with the sources it was grounded on.

        The cited sources are the documents whose content actually went into
        the prompt, whatever the model itself claims to have cited.
        """
        if not messages:
            raise InvalidRequestError("At least one message is required")
        intent = intent or ChatIntent.for_request(source_ids)

        candidates = await self.resolve_candidates(project_id, source_ids)
        context, cited = await self.assemble(candidates, project_id)
        logger.info(
            "Chat turn (%s): %d/%d documents in context, %d tasks, %d notes",
            intent.value,
            len(cited),
            len(candidates),
            len(context.task_lines),
            len(context.note_lines),
        )

        completion = [{"role": "system", "content": self.build_system_prompt(intent, context)}]
        completion.extend(message.to_completion() for message in messages)
        answer = await self.backend.complete(completion)
        return ChatResult(answer=answer, cited_sources=cited)

    async def resolve_candidates(
        self, project_id: str | None, source_ids: list[str] | None
    ) -> list[Source]:
        if source_ids:
            if len(source_ids) > self.max_documents:
                logger.warning(
                    "Request names %d sources, only the first %d are used",
                    len(source_ids),
                    self.max_documents,
                )
            return await self.store.get_sources(source_ids[: self.max_documents])
        return await self.store.recent_sources(project_id, limit=self.max_documents)

    async def assemble(
        self, candidates: list[Source], project_id: str | None
    ) -> tuple[ChatContext, list[CitedSource]]:
        """Fetch every candidate and build the grounding context.

        Fetches run concurrently; entries keep candidate order.
        """
        outcomes = await asyncio.gather(
            *(self.fetcher.fetch(source, self.max_document_chars) for source in candidates),
            return_exceptions=True,
        )

        context = ChatContext()
        cited: list[CitedSource] = []
        for source, outcome in zip(candidates, outcomes):
            if isinstance(outcome, ReconnectRequiredError):
                raise outcome
            if isinstance(outcome, (DocumentError, InvalidRequestError)):
                logger.warning("Leaving %s out of context: %s", source.name, outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            if isinstance(outcome, FetchedDocument):
                context.documents.append(ContextEntry(source.name, outcome.label, outcome.text))
                cited.append(CitedSource(id=source.id, name=source.name))

        tasks = await self.store.list_tasks(project_id)
        notes = await self.store.list_notes(project_id)
        context.task_lines = [task.summary_line() for task in tasks]
        context.note_lines = [note.summary_line(self.max_note_chars) for note in notes]
        return context, cited

    def build_system_prompt(self, intent: ChatIntent, context: ChatContext) -> str:
        if intent is ChatIntent.CROSS_DOCUMENT_INSIGHT:
            names = [entry.name for entry in context.documents]
            return INSIGHT_PROMPT.format(
                count=len(context.documents),
                documents=context.render_documents(),
                tasks=context.render_tasks(),
                notes=context.render_notes(),
                names=", ".join(names) or "none",
            )
        return QA_PROMPT.format(
            tasks=context.render_tasks(),
            notes=context.render_notes(),
            documents=context.render_documents(),
        )
