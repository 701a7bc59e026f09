"""Task, note and project data models."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from uuid import uuid4

_TAG = re.compile(r"<[^>]*>")


class Priority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NoteFormat(Enum):
    HTML = "html"
    MARKDOWN = "markdown"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Project:
    name: str
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=_now)


@dataclass
class Task:
    """A to-do item in the workspace."""

    title: str
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    category: str | None = None
    due_date: date | None = None
    completed: bool = False
    sort_order: int = 0
    project_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def summary_line(self) -> str:
        """One plain line describing the task for a grounding context."""
        line = f"Task: {self.title}"
        if self.description:
            line += f" - {self.description}"
        status = "Done" if self.completed else "Active"
        line += f" (Priority: {self.priority.value}, Status: {status}"
        if self.due_date:
            line += f", Due: {self.due_date.isoformat()}"
        if self.category:
            line += f", Category: {self.category}"
        return line + ")"


@dataclass
class Note:
    """A rich-text or Markdown note.

    ``format`` is fixed when the note is created: notes typed in the editor
    are HTML, answers saved from the assistant are Markdown and remember the
    question that produced them.
    """

    title: str
    content: str = ""
    format: NoteFormat = NoteFormat.HTML
    source_question: str | None = None
    project_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def plain_text(self) -> str:
        if self.format is NoteFormat.HTML:
            return html.unescape(_TAG.sub("", self.content))
        return self.content

    def summary_line(self, max_chars: int = 200) -> str:
        """Title plus a truncated plain-text body."""
        return f"Note: {self.title} - {self.plain_text()[:max_chars]}"
