"""Node functions for the conversational search graph.

Nodes are methods of ``SearchNodes`` so that collaborators are injected
once per agent. Per-turn logging and warnings travel in the
``TurnContext`` passed through the graph config, never in globals.
"""

from langchain_core.runnables import RunnableConfig

from src.agents.state import (
    TurnState,
    get_dialogue_window,
    get_feedback,
    get_history,
    is_relaxed,
)
from src.config import settings
from src.errors import RelaxationFailed
from src.models.query import CriticalFilter, QueryDraft
from src.search.assembler import ResultAssembler
from src.search.context import TurnContext
from src.search.criteria import CriteriaExtractor
from src.search.drafting import QueryDraftingEngine, window_dialogue
from src.search.enforcer import ConstraintEnforcer
from src.search.relaxation import RelaxationController, RelaxationState
from src.search.summarizer import ContextSummarizer


def get_turn_context(config: RunnableConfig | None) -> TurnContext:
    """Fetch the turn context carried in the graph config."""
    configurable = (config or {}).get("configurable", {})
    ctx = configurable.get("turn_context")
    return ctx if isinstance(ctx, TurnContext) else TurnContext()


def _filters(state: TurnState) -> list[CriticalFilter]:
    return [CriticalFilter.model_validate(f) for f in state.get("critical_filters", [])]


def _draft(state: TurnState) -> QueryDraft:
    return QueryDraft.model_validate(state["draft"])


class SearchNodes:
    """Graph nodes bound to the search components of one agent."""

    def __init__(
        self,
        extractor: CriteriaExtractor,
        summarizer: ContextSummarizer,
        drafting_engine: QueryDraftingEngine,
        enforcer: ConstraintEnforcer,
        relaxation: RelaxationController,
        assembler: ResultAssembler,
        window_size: int | None = None,
        sample_limit: int | None = None,
    ):
        self.extractor = extractor
        self.summarizer = summarizer
        self.drafting_engine = drafting_engine
        self.enforcer = enforcer
        self.relaxation = relaxation
        self.assembler = assembler
        self.window_size = window_size if window_size is not None else settings.dialogue_window_size
        self.sample_limit = sample_limit or settings.sample_limit

    # --- Context ---

    def extract_criteria(self, state: TurnState, config: RunnableConfig) -> dict:
        """Recompute mandatory constraints from the full feedback set."""
        ctx = get_turn_context(config)
        filters = self.extractor.extract(get_feedback(state), ctx=ctx)
        return {
            "critical_filters": [f.model_dump() for f in filters],
            "messages": [f"Extracted {len(filters)} mandatory constraint(s)"],
        }

    def summarize_context(self, state: TurnState, config: RunnableConfig) -> dict:
        """Summarize long dialogues and build the bounded dialogue window."""
        ctx = get_turn_context(config)
        history = get_history(state)

        summary = self.summarizer.summarize(history, get_feedback(state), ctx=ctx)
        window = window_dialogue(history, state["message"], self.window_size)

        return {
            "summarized_context": summary,
            "dialogue_window": [turn.model_dump() for turn in window],
            "messages": [
                f"Dialogue window: {len(window)} turns"
                + (", summary attached" if summary else "")
            ],
        }

    # --- Drafting ---

    def draft_query(self, state: TurnState, config: RunnableConfig) -> dict:
        """Draft the turn's query; parse failures abort the turn."""
        ctx = get_turn_context(config)
        draft = self.drafting_engine.draft(
            get_dialogue_window(state),
            _filters(state),
            state.get("summarized_context", ""),
            get_feedback(state),
            ctx=ctx,
        )
        return {
            "draft": draft.model_dump(),
            "messages": ["Drafted query"],
        }

    def enforce_constraints(self, state: TurnState, config: RunnableConfig) -> dict:
        """Check the current draft against mandatory constraints."""
        ctx = get_turn_context(config)
        enforced = self.enforcer.enforce(
            _draft(state),
            _filters(state),
            ctx=ctx,
            row_limit=self.sample_limit,
        )
        return {
            "draft": enforced.model_dump(),
            "messages": ["Enforced mandatory constraints"],
        }

    # --- Execution & relaxation ---

    def execute_query(self, state: TurnState, config: RunnableConfig) -> dict:
        """Execute the enforced draft.

        In the initial state a failure propagates. In the relaxed state any
        failure or empty result falls back to the original empty result.
        """
        ctx = get_turn_context(config)
        draft = _draft(state)
        execution_count = state.get("execution_count", 0) + 1

        if not is_relaxed(state):
            rows = self.assembler.execute(draft.data_query, ctx=ctx)
            return {
                "rows": rows,
                "execution_count": execution_count,
                "messages": [f"Query returned {len(rows)} row(s)"],
            }

        original = state.get("original_draft") or state["draft"]
        try:
            rows = self.assembler.execute(draft.data_query, ctx=ctx)
        except Exception as e:
            ctx.record(RelaxationFailed(f"{getattr(e, 'kind', type(e).__name__)}: {e}"))
            rows = []
        else:
            if rows:
                return {
                    "rows": rows,
                    "draft": self.relaxation.disclose(draft).model_dump(),
                    "relaxed": True,
                    "relaxation_pending": False,
                    "execution_count": execution_count,
                    "messages": [f"Relaxed query returned {len(rows)} row(s)"],
                }
            ctx.logger.info("Relaxed query also returned no rows, keeping empty result")

        return {
            "rows": [],
            "draft": original,
            "relaxed": False,
            "relaxation_pending": False,
            "execution_count": execution_count,
            "messages": ["Relaxed retry produced no rows"],
        }

    def relax_query(self, state: TurnState, config: RunnableConfig) -> dict:
        """Transition initial -> relaxed and request one looser draft."""
        ctx = get_turn_context(config)
        relaxed = self.relaxation.relax(
            get_dialogue_window(state),
            _draft(state),
            _filters(state),
            state.get("summarized_context", ""),
            get_feedback(state),
            ctx=ctx,
        )

        update: dict = {"relaxation_state": RelaxationState.RELAXED.value}
        if relaxed is None:
            update["relaxation_pending"] = False
            update["messages"] = ["Relaxation failed, keeping empty result"]
        else:
            update["original_draft"] = state["draft"]
            update["draft"] = relaxed.model_dump()
            update["relaxation_pending"] = True
            update["messages"] = ["Drafted relaxed query"]
        return update

    # --- Assembly ---

    def count_results(self, state: TurnState, config: RunnableConfig) -> dict:
        """Resolve the total count for the final rows."""
        ctx = get_turn_context(config)
        rows = state.get("rows", [])
        if not rows:
            return {"total_count": 0}

        total = self.assembler.count(_draft(state).count_query, rows, ctx=ctx)
        return {
            "total_count": total,
            "messages": [f"Total matches: {total}"],
        }

    def assemble_result(self, state: TurnState, config: RunnableConfig) -> dict:
        """Build the SearchResult returned to the caller."""
        ctx = get_turn_context(config)
        result = self.assembler.assemble(
            _draft(state),
            state.get("rows", []),
            state.get("total_count", 0),
            relaxed=state.get("relaxed", False),
            warnings=ctx.warnings,
        )
        return {
            "result": result.model_dump(),
            "messages": ["Assembled result"],
        }
