"""Response parsing for loosely structured backend replies.

A ResponseParser tries an ordered list of strategies and returns the first
structured payload any of them extracts. New fallbacks are added by
appending a strategy; callers only ever see ``ResponseParser.parse``.
"""

import json
from typing import Any, Protocol

from src.errors import BackendResponseUnparsable


class ParseStrategy(Protocol):
    """One way of turning raw text into a JSON object."""

    name: str

    def parse(self, raw_text: str) -> dict[str, Any] | None:
        """Return the parsed object, or None if this strategy does not apply."""
        ...


class StrictJsonStrategy:
    """Parse the whole reply as a JSON object."""

    name = "strict_json"

    def parse(self, raw_text: str) -> dict[str, Any] | None:
        try:
            parsed = json.loads(raw_text.strip())
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, dict) else None


def find_balanced_brace_span(text: str) -> str | None:
    """Return the first balanced ``{...}`` span, ignoring braces inside strings."""
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


class BraceSpanStrategy:
    """Parse the first balanced brace-delimited span found in prose."""

    name = "brace_span"

    def parse(self, raw_text: str) -> dict[str, Any] | None:
        span = find_balanced_brace_span(raw_text)
        if span is None:
            return None
        try:
            parsed = json.loads(span)
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, dict) else None


class ResponseParser:
    """Apply parse strategies in order until one succeeds."""

    def __init__(self, strategies: list[ParseStrategy] | None = None):
        """Initialize parser.

        Args:
            strategies: Ordered strategies (defaults to strict JSON, then
                first balanced brace span)
        """
        self.strategies: list[ParseStrategy] = (
            strategies if strategies is not None else [StrictJsonStrategy(), BraceSpanStrategy()]
        )

    def parse(self, raw_text: str) -> dict[str, Any]:
        """Extract a structured payload from raw backend text.

        Raises:
            BackendResponseUnparsable: If no strategy yields an object
        """
        for strategy in self.strategies:
            parsed = strategy.parse(raw_text)
            if parsed is not None:
                return parsed
        raise BackendResponseUnparsable(raw_text)
