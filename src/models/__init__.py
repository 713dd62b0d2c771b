"""Pydantic data models for the conversational search engine."""

from src.models.dialogue import DialogueTurn, ProfileFeedback
from src.models.query import CriticalFilter, QueryDraft
from src.models.results import ExportRecord, SearchResult

__all__ = [
    # Dialogue models
    "DialogueTurn",
    "ProfileFeedback",
    # Query models
    "CriticalFilter",
    "QueryDraft",
    # Result models
    "ExportRecord",
    "SearchResult",
]
