"""LangGraph StateGraph definition for the conversational search agent."""

import logging
from typing import Literal

from langgraph.graph import END, StateGraph

from src.agents.nodes import SearchNodes
from src.agents.state import TurnState, create_initial_state, get_relaxation_state
from src.config import settings
from src.models.dialogue import DialogueTurn, ProfileFeedback
from src.models.results import ExportRecord, SearchResult
from src.search.assembler import ResultAssembler
from src.search.context import TurnContext
from src.search.criteria import CriteriaExtractor
from src.search.drafting import QueryDraftingEngine
from src.search.enforcer import ConstraintEnforcer
from src.search.export import build_export_records
from src.search.parsing import ResponseParser
from src.search.relaxation import RelaxationController
from src.search.summarizer import ContextSummarizer
from src.services.protocols import QueryExecutor, TextGenerator
from src.utils.debug_state import dump_state_markdown

logger = logging.getLogger(__name__)


def route_after_enforce(
    state: TurnState,
) -> Literal["execute_query", "assemble_result"]:
    """Route after enforcement: execute, or stop at the draft."""
    if not state.get("execute", True):
        return "assemble_result"
    return "execute_query"


def route_after_execute(
    state: TurnState,
) -> Literal["relax_query", "count_results"]:
    """Route after execution.

    Routes to:
    - relax_query: zero rows in the initial state (fires at most once)
    - count_results: otherwise
    """
    if RelaxationController.should_relax(
        get_relaxation_state(state), len(state.get("rows", []))
    ):
        return "relax_query"
    return "count_results"


def route_after_relax(
    state: TurnState,
) -> Literal["enforce_constraints", "count_results"]:
    """Route after relaxation: enforce the relaxed draft, or keep the empty result."""
    if state.get("relaxation_pending"):
        return "enforce_constraints"
    return "count_results"


def create_search_graph(nodes: SearchNodes):
    """Create the conversational search StateGraph.

    Flow: extract_criteria → summarize_context → draft_query →
          enforce_constraints → execute_query → (relax_query →
          enforce_constraints → execute_query)? → count_results →
          assemble_result

    No checkpointer: every turn is independent, so one compiled graph
    can serve concurrent turns.

    Args:
        nodes: Node methods bound to the search components

    Returns:
        Compiled StateGraph
    """
    graph = StateGraph(TurnState)

    graph.add_node("extract_criteria", nodes.extract_criteria)
    graph.add_node("summarize_context", nodes.summarize_context)
    graph.add_node("draft_query", nodes.draft_query)
    graph.add_node("enforce_constraints", nodes.enforce_constraints)
    graph.add_node("execute_query", nodes.execute_query)
    graph.add_node("relax_query", nodes.relax_query)
    graph.add_node("count_results", nodes.count_results)
    graph.add_node("assemble_result", nodes.assemble_result)

    graph.set_entry_point("extract_criteria")

    graph.add_edge("extract_criteria", "summarize_context")
    graph.add_edge("summarize_context", "draft_query")
    graph.add_edge("draft_query", "enforce_constraints")

    graph.add_conditional_edges(
        "enforce_constraints",
        route_after_enforce,
        {
            "execute_query": "execute_query",
            "assemble_result": "assemble_result",
        },
    )

    graph.add_conditional_edges(
        "execute_query",
        route_after_execute,
        {
            "relax_query": "relax_query",
            "count_results": "count_results",
        },
    )

    graph.add_conditional_edges(
        "relax_query",
        route_after_relax,
        {
            "enforce_constraints": "enforce_constraints",
            "count_results": "count_results",
        },
    )

    graph.add_edge("count_results", "assemble_result")
    graph.add_edge("assemble_result", END)

    compiled = graph.compile()
    logger.info("Search graph compiled successfully")
    return compiled


class ConversationalSearchAgent:
    """Turn a recruiter conversation into executed, constraint-safe queries."""

    def __init__(
        self,
        generator: TextGenerator,
        executor: QueryExecutor,
        parser: ResponseParser | None = None,
        table: str | None = None,
        sample_limit: int | None = None,
        export_limit: int | None = None,
        window_size: int | None = None,
        summarize_after_turns: int | None = None,
        senior_feedback_threshold: int | None = None,
    ):
        """Initialize agent.

        Args:
            generator: Text generation backend
            executor: Read-only query execution backend
            parser: Response parser (defaults to strict JSON + brace span)
            table: People table (defaults to settings)
            sample_limit: Rows per turn (defaults to settings)
            export_limit: Rows per export (defaults to settings)
            window_size: History turns sent to the backend (defaults to settings)
            summarize_after_turns: Summarization threshold (defaults to settings)
            senior_feedback_threshold: "Too senior" rejections before the
                seniority constraint applies (defaults to settings)
        """
        self.sample_limit = sample_limit or settings.sample_limit
        self.export_limit = export_limit or settings.export_limit

        self.extractor = CriteriaExtractor(senior_feedback_threshold)
        self.summarizer = ContextSummarizer(generator, summarize_after_turns)
        self.drafting_engine = QueryDraftingEngine(
            generator,
            parser=parser,
            table=table,
            sample_limit=self.sample_limit,
            export_limit=self.export_limit,
        )
        self.enforcer = ConstraintEnforcer()
        self.relaxation = RelaxationController(self.drafting_engine)
        self.assembler = ResultAssembler(executor)

        self.nodes = SearchNodes(
            extractor=self.extractor,
            summarizer=self.summarizer,
            drafting_engine=self.drafting_engine,
            enforcer=self.enforcer,
            relaxation=self.relaxation,
            assembler=self.assembler,
            window_size=window_size,
            sample_limit=self.sample_limit,
        )
        self.graph = create_search_graph(self.nodes)

    def process_turn(
        self,
        message: str,
        history: list[DialogueTurn] | None = None,
        feedback: list[ProfileFeedback] | None = None,
        execute: bool = True,
    ) -> SearchResult:
        """Run one conversational turn.

        Args:
            message: New recruiter message
            history: Dialogue so far, oldest first
            feedback: Every feedback entry of the conversation
            execute: False returns the enforced draft without running it

        Returns:
            SearchResult for the turn

        Raises:
            FatalTurnError: If drafting fails or a backend times out
            DataStoreError: If the initial query cannot be executed
        """
        ctx = TurnContext()
        ctx.logger.info(f"Processing turn: {message[:100]}")

        initial_state = create_initial_state(message, history, feedback, execute)
        final_state = self.graph.invoke(
            initial_state,
            {"configurable": {"turn_context": ctx}},
        )

        dump_state_markdown(
            final_state,
            {"warnings": ctx.warnings},
            str(settings.state_dump_path / f"turn_{ctx.turn_id}.md"),
            f"Turn {ctx.turn_id}",
        )

        result = SearchResult.model_validate(final_state["result"])
        ctx.logger.info(
            f"Turn complete: {len(result.rows)} row(s), total {result.total_count}, "
            f"relaxed={result.relaxed}, {len(result.warnings)} warning(s)"
        )
        return result

    def export_candidates(
        self,
        history: list[DialogueTurn],
        feedback: list[ProfileFeedback] | None = None,
    ) -> list[ExportRecord]:
        """Export every candidate matching the conversation so far.

        Mandatory constraints still apply. Judged profiles are kept and
        carry their feedback label.

        Args:
            history: Dialogue so far, oldest first
            feedback: Every feedback entry of the conversation

        Returns:
            Flat export records, in data store order
        """
        feedback = feedback or []
        ctx = TurnContext()
        ctx.logger.info(f"Exporting candidates for a {len(history)}-turn conversation")

        constraints = self.extractor.extract(feedback, ctx=ctx)
        draft = self.drafting_engine.draft_export(history, constraints, feedback, ctx=ctx)
        draft = self.enforcer.enforce(draft, constraints, ctx=ctx, row_limit=self.export_limit)

        rows = self.assembler.execute(draft.data_query, ctx=ctx)
        records = build_export_records(rows, feedback)
        ctx.logger.info(f"Exported {len(records)} candidate(s)")
        return records
