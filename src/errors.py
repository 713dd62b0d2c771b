"""Error taxonomy for conversational search turns.

Fatal errors abort the turn and reach the caller. Recoverable errors are
raised inside a component, caught at its boundary, logged and recorded in
the turn's warnings so the recruiter still gets a best-effort answer.
"""


class SearchEngineError(Exception):
    """Base class for all search engine errors."""

    kind = "SearchEngineError"


class FatalTurnError(SearchEngineError):
    """An error that aborts the current turn."""

    kind = "FatalTurnError"


class BackendResponseUnparsable(FatalTurnError):
    """Generative backend produced no extractable structured payload."""

    kind = "BackendResponseUnparsable"

    def __init__(self, raw_text: str):
        self.raw_text = raw_text
        preview = raw_text if len(raw_text) <= 300 else f"{raw_text[:300]}..."
        super().__init__(f"Could not parse backend response: {preview}")


class IncompleteDraft(FatalTurnError):
    """Structured payload is missing the required query field."""

    kind = "IncompleteDraft"

    def __init__(self, missing_field: str = "dataQuery"):
        self.missing_field = missing_field
        super().__init__(f"Backend response does not contain '{missing_field}'")


class BackendTimeout(FatalTurnError):
    """A backend call exceeded its configured timeout."""

    kind = "BackendTimeout"

    def __init__(self, backend: str, timeout: float):
        self.backend = backend
        self.timeout = timeout
        super().__init__(f"{backend} call timed out after {timeout:.0f}s")


class RecoverableTurnError(SearchEngineError):
    """An error the turn degrades around instead of failing."""

    kind = "RecoverableTurnError"

    def as_warning(self) -> str:
        """Render the error as a turn warning entry."""
        return f"{self.kind}: {self}"


class ConstraintInsertionSkipped(RecoverableTurnError):
    """Enforcer could not locate an insertion point in the query."""

    kind = "ConstraintInsertionSkipped"


class CountQueryFailed(RecoverableTurnError):
    """Count query failed; total falls back to the sample row count."""

    kind = "CountQueryFailed"


class SummarizationFailed(RecoverableTurnError):
    """Context summarization failed; summary falls back to empty."""

    kind = "SummarizationFailed"


class RelaxationFailed(RecoverableTurnError):
    """Relaxed retry failed; the original empty result is final."""

    kind = "RelaxationFailed"


class DataStoreError(SearchEngineError):
    """The data store rejected or failed to execute a query."""

    kind = "DataStoreError"
