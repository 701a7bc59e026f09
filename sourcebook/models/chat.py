"""Chat turn data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatIntent(Enum):
    """What kind of answer a chat turn asks for."""

    QA = "qa"
    CROSS_DOCUMENT_INSIGHT = "cross_document_insight"

    @classmethod
    def for_request(cls, source_ids: list[str] | None) -> ChatIntent:
        """Derive the intent from the shape of a chat request."""
        if source_ids and len(dict.fromkeys(source_ids)) >= 2:
            return cls.CROSS_DOCUMENT_INSIGHT
        return cls.QA


@dataclass(frozen=True)
class CitedSource:
    id: str
    name: str


@dataclass
class Message:
    """A single chat turn. Never persisted."""

    role: Role
    content: str
    sources: list[CitedSource] = field(default_factory=list)

    def to_completion(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class ContextEntry:
    name: str
    label: str
    content: str


@dataclass
class ChatContext:
    """Grounding context assembled for one chat turn."""

    documents: list[ContextEntry] = field(default_factory=list)
    task_lines: list[str] = field(default_factory=list)
    note_lines: list[str] = field(default_factory=list)

    def render_documents(self) -> str:
        if not self.documents:
            return "No documents available."
        return "\n\n".join(
            f"=== {entry.label} ===\n{entry.content}" for entry in self.documents
        )

    def render_tasks(self) -> str:
        return "\n".join(self.task_lines) or "No tasks found."

    def render_notes(self) -> str:
        return "\n".join(self.note_lines) or "No notes found."


@dataclass
class ChatResult:
    answer: str
    cited_sources: list[CitedSource] = field(default_factory=list)
