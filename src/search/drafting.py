"""Query Drafting Engine: dialogue + feedback + context into a query draft."""

from typing import Any

from pydantic import ValidationError

from src.config import settings
from src.errors import IncompleteDraft
from src.models.dialogue import DialogueTurn, ProfileFeedback
from src.models.query import CriticalFilter, QueryDraft
from src.prompts import (
    EXPORT_QUERY_PROMPT,
    EXPORT_REQUEST_MESSAGE,
    FEEDBACK_EXCLUSION_RULE,
    FEEDBACK_SECTION,
    MANDATORY_CONSTRAINTS_SECTION,
    QUERY_DRAFT_PROMPT,
    SCHEMA_CONTEXT,
    SUMMARIZED_CONTEXT_SECTION,
)
from src.search.context import TurnContext, ensure_context
from src.search.parsing import ResponseParser
from src.services.protocols import TextGenerator

# Accepted payload keys per QueryDraft field, in order of preference.
_FIELD_KEYS = {
    "data_query": ("dataQuery", "data_query", "sql"),
    "count_query": ("countQuery", "count_query", "countSql"),
    "explanation": ("explanation",),
    "assistant_message": ("assistantMessage", "assistant_message"),
    "search_criteria_summary": ("searchCriteriaSummary", "search_criteria_summary", "searchCriteria"),
}
_QUERY_FIELDS = ("data_query", "count_query")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(str(item) for item in value)
    return value if isinstance(value, str) else str(value)


def _normalize_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Coerce a parsed payload into QueryDraft field names and values.

    When several keys name the same field, the first non-blank value wins.
    Query fields only accept strings; a blank count query becomes None.
    """
    normalized: dict[str, Any] = {}
    for field, keys in _FIELD_KEYS.items():
        if field in _QUERY_FIELDS:
            values = [payload[key] for key in keys if isinstance(payload.get(key), str)]
        else:
            values = [_as_text(payload[key]) for key in keys if key in payload]
        normalized[field] = next((v for v in values if v.strip()), "")
    if not normalized["count_query"]:
        normalized["count_query"] = None
    return normalized


def window_dialogue(
    history: list[DialogueTurn],
    message: str,
    window_size: int | None = None,
) -> list[DialogueTurn]:
    """Keep the most recent turns plus the new user message.

    Args:
        history: Dialogue so far, oldest first
        message: The new recruiter message
        window_size: Maximum history turns kept (defaults to settings)

    Returns:
        Bounded dialogue ending with the new message
    """
    size = window_size if window_size is not None else settings.dialogue_window_size
    recent = history[-size:] if size > 0 else []
    return [*recent, DialogueTurn(role="user", content=message)]


class QueryDraftingEngine:
    """Turn dialogue, constraints and context into a QueryDraft.

    The generative backend is treated as a pure function: one prompt in,
    one raw reply out. The engine never retries; a second attempt is the
    relaxation controller's decision.
    """

    def __init__(
        self,
        generator: TextGenerator,
        parser: ResponseParser | None = None,
        table: str | None = None,
        sample_limit: int | None = None,
        export_limit: int | None = None,
    ):
        """Initialize drafting engine.

        Args:
            generator: Text generation backend
            parser: Response parser (defaults to strict JSON + brace span)
            table: People table queried by drafts (defaults to settings)
            sample_limit: Rows per turn (defaults to settings)
            export_limit: Rows per export (defaults to settings)
        """
        self.generator = generator
        self.parser = parser or ResponseParser()
        self.table = table or settings.clickhouse_table
        self.sample_limit = sample_limit or settings.sample_limit
        self.export_limit = export_limit or settings.export_limit

    # --- Prompt assembly ---

    def build_constraints_section(self, constraints: list[CriticalFilter]) -> str:
        """Render mandatory constraints as a non-negotiable prompt block."""
        if not constraints:
            return ""
        directives = "\n".join(
            f"{i}. {c.directive} (required predicate: {c.predicate})"
            for i, c in enumerate(constraints, 1)
        )
        return MANDATORY_CONSTRAINTS_SECTION.format(directives=directives)

    def build_context_section(self, summarized_context: str) -> str:
        """Render the summarized dialogue context, if any."""
        if not summarized_context.strip():
            return ""
        return SUMMARIZED_CONTEXT_SECTION.format(summary=summarized_context.strip())

    def build_feedback_section(
        self,
        feedback: list[ProfileFeedback],
        exclude_judged: bool = True,
    ) -> str:
        """Render recruiter feedback, optionally asking to exclude judged profiles."""
        if not feedback:
            return ""

        interesting = [entry.describe() for entry in feedback if entry.interesting]
        not_interesting = [entry.describe() for entry in feedback if not entry.interesting]

        exclusion_rule = ""
        if exclude_judged:
            profile_ids = list(dict.fromkeys(entry.profile_id for entry in feedback))
            quoted = ", ".join("'" + pid.replace("'", "\\'") + "'" for pid in profile_ids)
            exclusion_rule = FEEDBACK_EXCLUSION_RULE.format(profile_ids=quoted)

        return FEEDBACK_SECTION.format(
            interesting="\n".join(interesting) or "- (none)",
            not_interesting="\n".join(not_interesting) or "- (none)",
            exclusion_rule=exclusion_rule,
        )

    def build_system_prompt(
        self,
        constraints: list[CriticalFilter],
        summarized_context: str,
        feedback: list[ProfileFeedback],
    ) -> str:
        """Compose the full drafting prompt for one turn."""
        return QUERY_DRAFT_PROMPT.format(
            schema=SCHEMA_CONTEXT.format(table=self.table),
            constraints_section=self.build_constraints_section(constraints),
            context_section=self.build_context_section(summarized_context),
            feedback_section=self.build_feedback_section(feedback),
            sample_limit=self.sample_limit,
            table=self.table,
        )

    # --- Drafting ---

    def parse_draft(self, raw_text: str) -> QueryDraft:
        """Parse raw backend text into a QueryDraft.

        Raises:
            BackendResponseUnparsable: If no structured payload can be extracted
            IncompleteDraft: If the payload carries no data query
        """
        payload = _normalize_payload(self.parser.parse(raw_text))
        if not payload["data_query"].strip():
            raise IncompleteDraft("dataQuery")

        try:
            return QueryDraft.model_validate(payload)
        except ValidationError as e:
            raise IncompleteDraft(f"dataQuery ({e.error_count()} invalid field(s))") from e

    def draft(
        self,
        dialogue_window: list[DialogueTurn],
        mandatory_constraints: list[CriticalFilter],
        summarized_context: str,
        feedback: list[ProfileFeedback],
        ctx: TurnContext | None = None,
    ) -> QueryDraft:
        """Draft the query for the current turn.

        Args:
            dialogue_window: Bounded dialogue ending with the new message
            mandatory_constraints: Constraints from the Criteria Extractor
            summarized_context: Durable criteria summary, or ""
            feedback: Full feedback set
            ctx: Turn context for logging

        Returns:
            Parsed QueryDraft

        Raises:
            BackendResponseUnparsable: If the reply has no structured payload
            IncompleteDraft: If the payload misses the data query
            BackendTimeout: If the backend call times out
        """
        ctx = ensure_context(ctx)
        system_prompt = self.build_system_prompt(
            mandatory_constraints, summarized_context, feedback
        )

        ctx.logger.info(
            f"Drafting query: {len(dialogue_window)} turns, "
            f"{len(mandatory_constraints)} mandatory constraint(s), "
            f"{len(feedback)} feedback entries"
        )
        raw_text = self.generator.generate_text(system_prompt, dialogue_window)
        ctx.logger.debug(f"Backend reply: {raw_text}")

        draft = self.parse_draft(raw_text)
        ctx.logger.info(f"Drafted query: {draft.data_query}")
        return draft

    def draft_export(
        self,
        history: list[DialogueTurn],
        mandatory_constraints: list[CriticalFilter],
        feedback: list[ProfileFeedback],
        ctx: TurnContext | None = None,
    ) -> QueryDraft:
        """Draft a query exporting every candidate that matches the conversation.

        Judged profiles are kept in the export; only the sample query
        excludes them.
        """
        ctx = ensure_context(ctx)
        system_prompt = EXPORT_QUERY_PROMPT.format(
            schema=SCHEMA_CONTEXT.format(table=self.table),
            constraints_section=self.build_constraints_section(mandatory_constraints),
            feedback_section=self.build_feedback_section(feedback, exclude_judged=False),
            table=self.table,
            export_limit=self.export_limit,
        )
        messages = [*history, DialogueTurn(role="user", content=EXPORT_REQUEST_MESSAGE)]

        ctx.logger.info(f"Drafting export query over {len(history)} turns")
        raw_text = self.generator.generate_text(system_prompt, messages)
        return self.parse_draft(raw_text)
