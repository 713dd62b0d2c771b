"""Result Assembler: execute the enforced query and build the answer."""

from typing import Any

from src.errors import CountQueryFailed
from src.models.query import QueryDraft
from src.models.results import SearchResult
from src.search.context import TurnContext, ensure_context
from src.services.protocols import QueryExecutor


def extract_scalar(rows: list[dict[str, Any]]) -> int:
    """Read the total from a count query result.

    Prefers a ``total`` column and otherwise takes the first value of the
    first row. ClickHouse may quote 64-bit integers, so strings are accepted.

    Raises:
        ValueError: If the result holds no integer scalar
    """
    if not rows:
        raise ValueError("count query returned no rows")
    first = rows[0]
    if not first:
        raise ValueError("count query returned an empty row")
    value = first.get("total", next(iter(first.values())))
    return int(value)


class ResultAssembler:
    """Execute queries against the data store and assemble SearchResults."""

    def __init__(self, executor: QueryExecutor):
        """Initialize assembler.

        Args:
            executor: Read-only query execution backend
        """
        self.executor = executor

    def execute(self, query: str, ctx: TurnContext | None = None) -> list[dict[str, Any]]:
        """Execute a data query; failures propagate to the caller."""
        ctx = ensure_context(ctx)
        ctx.logger.info(f"Executing query: {query}")
        rows = self.executor.execute(query)
        ctx.logger.info(f"Query returned {len(rows)} row(s)")
        return rows

    def count(
        self,
        count_query: str | None,
        sample_rows: list[dict[str, Any]],
        ctx: TurnContext | None = None,
    ) -> int:
        """Total number of matches, falling back to the sample size.

        Args:
            count_query: Count-only query, or None
            sample_rows: Rows of the (capped) sample
            ctx: Turn context for logging and warnings

        Returns:
            Scalar from the count query, or ``len(sample_rows)``
        """
        ctx = ensure_context(ctx)
        if not count_query:
            return len(sample_rows)

        try:
            ctx.logger.info(f"Counting total: {count_query}")
            return extract_scalar(self.executor.execute(count_query))
        except Exception as e:
            ctx.record(CountQueryFailed(f"{getattr(e, 'kind', type(e).__name__)}: {e}"))
            return len(sample_rows)

    @staticmethod
    def assemble(
        draft: QueryDraft,
        rows: list[dict[str, Any]],
        total_count: int,
        relaxed: bool = False,
        warnings: list[str] | None = None,
    ) -> SearchResult:
        """Build the caller-facing result for the turn."""
        return SearchResult(
            data_query=draft.data_query,
            explanation=draft.explanation,
            rows=rows,
            total_count=total_count,
            assistant_message=draft.assistant_message,
            search_criteria_summary=draft.search_criteria_summary,
            relaxed=relaxed,
            warnings=list(warnings or []),
        )
