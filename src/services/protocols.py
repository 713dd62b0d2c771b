"""Capabilities the search engine consumes from external collaborators."""

from typing import Any, Protocol

from src.models.dialogue import DialogueTurn


class TextGenerator(Protocol):
    """Single-shot chat-style text generation."""

    def generate_text(self, system_prompt: str, messages: list[DialogueTurn]) -> str:
        """Return the raw text reply for a system prompt plus dialogue."""
        ...


class QueryExecutor(Protocol):
    """Read-only query execution against the analytics store."""

    def execute(self, query: str) -> list[dict[str, Any]]:
        """Run a read-only query and return rows as key-value records."""
        ...
