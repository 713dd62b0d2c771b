"""Empty-Result Relaxation Controller.

Two states, ``initial`` and ``relaxed``. A zero-row execution in the
initial state triggers exactly one relaxed redraft; the relaxed state is
terminal whatever its outcome.
"""

import re
from enum import Enum

from src.errors import RelaxationFailed
from src.models.dialogue import DialogueTurn, ProfileFeedback
from src.models.query import CriticalFilter, QueryDraft
from src.prompts import RELAXATION_DISCLOSURE, RELAXATION_INSTRUCTION
from src.search.context import TurnContext, ensure_context
from src.search.drafting import QueryDraftingEngine

# Matches "relaxei", "relaxed", "ampliei", "broadened", "widened", "loosened", ...
_DISCLOSURE_PATTERN = re.compile(r"relax|ampli|broaden|widen|loosen", re.IGNORECASE)


class RelaxationState(str, Enum):
    """Relaxation state of a single turn."""

    INITIAL = "initial"
    RELAXED = "relaxed"


def discloses_relaxation(message: str) -> bool:
    """Check whether an assistant message already admits loosened criteria."""
    return bool(_DISCLOSURE_PATTERN.search(message or ""))


class RelaxationController:
    """Drive the single bounded retry after an empty result."""

    def __init__(self, drafting_engine: QueryDraftingEngine):
        """Initialize controller.

        Args:
            drafting_engine: Engine used for the relaxed redraft
        """
        self.drafting_engine = drafting_engine

    @staticmethod
    def should_relax(state: RelaxationState | str, row_count: int) -> bool:
        """Fire the initial -> relaxed transition only on zero rows."""
        return RelaxationState(state) is RelaxationState.INITIAL and row_count == 0

    @staticmethod
    def relaxation_turn(failed_draft: QueryDraft) -> DialogueTurn:
        """Build the synthetic instruction turn appended to the dialogue."""
        return DialogueTurn(
            role="user",
            content=f"Query: {failed_draft.data_query}\n\n{RELAXATION_INSTRUCTION}",
        )

    def relax(
        self,
        dialogue_window: list[DialogueTurn],
        failed_draft: QueryDraft,
        mandatory_constraints: list[CriticalFilter],
        summarized_context: str,
        feedback: list[ProfileFeedback],
        ctx: TurnContext | None = None,
    ) -> QueryDraft | None:
        """Ask the drafting engine for a looser query.

        Args:
            dialogue_window: Same window used for the original draft
            failed_draft: Draft whose execution returned zero rows
            mandatory_constraints: Constraints still in force
            summarized_context: Durable criteria summary, or ""
            feedback: Full feedback set
            ctx: Turn context for logging and warnings

        Returns:
            Relaxed draft, or None when redrafting failed (recorded as
            RelaxationFailed; the original empty result stands)
        """
        ctx = ensure_context(ctx)
        ctx.logger.info("Query returned no rows, requesting a relaxed draft")

        window = [*dialogue_window, self.relaxation_turn(failed_draft)]
        try:
            return self.drafting_engine.draft(
                window,
                mandatory_constraints,
                summarized_context,
                feedback,
                ctx=ctx,
            )
        except Exception as e:
            kind = getattr(e, "kind", type(e).__name__)
            ctx.record(RelaxationFailed(f"{kind}: {e}"))
            return None

    @staticmethod
    def disclose(draft: QueryDraft) -> QueryDraft:
        """Prefix the assistant message with a relaxation notice unless present."""
        if discloses_relaxation(draft.assistant_message):
            return draft
        message = f"{RELAXATION_DISCLOSURE}\n\n{draft.assistant_message}".rstrip()
        return draft.model_copy(update={"assistant_message": message})
