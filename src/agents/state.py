"""Turn state definition using TypedDict (LangGraph requirement)."""

from operator import add
from typing import Annotated, TypedDict

from src.models.dialogue import DialogueTurn, ProfileFeedback
from src.search.relaxation import RelaxationState


class TurnState(TypedDict, total=False):
    """State for one conversational search turn.

    Pydantic models are serialized to dicts when stored here.
    """

    # Inputs
    message: str  # New recruiter message
    history: list[dict]  # Serialized DialogueTurns, oldest first
    feedback: list[dict]  # Serialized ProfileFeedback entries
    execute: bool  # False drafts without touching the data store

    # Derived context
    dialogue_window: list[dict]  # Bounded history + new message
    critical_filters: list[dict]  # Serialized CriticalFilters
    summarized_context: str  # Advisory summary, "" when short or failed

    # Drafting
    draft: dict  # Serialized QueryDraft currently in force
    original_draft: dict | None  # Initial draft, kept while relaxing

    # Relaxation
    relaxation_state: str  # "initial" | "relaxed"
    relaxation_pending: bool  # Relaxed draft awaiting enforcement/execution
    relaxed: bool  # Final rows come from the relaxed draft

    # Execution
    rows: list[dict]
    total_count: int
    execution_count: int  # Data-query executions this turn (max 2)

    # Output
    result: dict  # Serialized SearchResult

    # Message accumulation (for debugging/logging)
    messages: Annotated[list, add]


def create_initial_state(
    message: str,
    history: list[DialogueTurn] | None = None,
    feedback: list[ProfileFeedback] | None = None,
    execute: bool = True,
) -> TurnState:
    """Create initial state for a new turn.

    Args:
        message: New recruiter message
        history: Dialogue so far, oldest first
        feedback: Every feedback entry of the conversation
        execute: Whether to run the drafted query

    Returns:
        Initialized TurnState
    """
    return TurnState(
        message=message,
        history=[turn.model_dump() for turn in history or []],
        feedback=[entry.model_dump() for entry in feedback or []],
        execute=execute,
        dialogue_window=[],
        critical_filters=[],
        summarized_context="",
        draft={},
        original_draft=None,
        relaxation_state=RelaxationState.INITIAL.value,
        relaxation_pending=False,
        relaxed=False,
        rows=[],
        total_count=0,
        execution_count=0,
        result={},
        messages=[],
    )


def get_history(state: TurnState) -> list[DialogueTurn]:
    """Deserialize dialogue history from state."""
    return [DialogueTurn.model_validate(turn) for turn in state.get("history", [])]


def get_feedback(state: TurnState) -> list[ProfileFeedback]:
    """Deserialize feedback entries from state."""
    return [ProfileFeedback.model_validate(entry) for entry in state.get("feedback", [])]


def get_dialogue_window(state: TurnState) -> list[DialogueTurn]:
    """Deserialize the bounded dialogue window from state."""
    return [DialogueTurn.model_validate(turn) for turn in state.get("dialogue_window", [])]


def get_relaxation_state(state: TurnState) -> RelaxationState:
    """Get the relaxation state of the turn."""
    return RelaxationState(state.get("relaxation_state", RelaxationState.INITIAL.value))


def is_relaxed(state: TurnState) -> bool:
    """Check whether the turn already used its relaxed retry."""
    return get_relaxation_state(state) is RelaxationState.RELAXED
