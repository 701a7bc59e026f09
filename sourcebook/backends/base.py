"""Base protocol for chat completion backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CompletionBackend(Protocol):
    """Interface every language-model backend must implement."""

    name: str

    async def complete(self, messages: list[dict]) -> str:
        """Send a full message list and return the assistant's text."""
        ...
