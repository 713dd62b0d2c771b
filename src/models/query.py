"""Critical filter and query draft models."""

from pydantic import AliasChoices, BaseModel, Field


class CriticalFilter(BaseModel):
    """Mandatory constraint derived from repeated negative feedback."""

    name: str = Field(description="Short identifier of the constraint")
    directive: str = Field(description="Human-readable instruction for the drafting prompt")
    predicate: str = Field(description="Canonical SQL predicate inserted when missing")
    detection_keyword: str = Field(
        description="Case-insensitive keyword whose presence means the predicate is already applied",
    )

    def is_satisfied_by(self, query: str) -> bool:
        """Check whether the query text already carries this constraint."""
        normalized = " ".join(query.lower().split())
        return self.detection_keyword.lower() in normalized


class QueryDraft(BaseModel):
    """Structured draft returned by the generative backend for one turn."""

    data_query: str = Field(
        validation_alias=AliasChoices("data_query", "dataQuery", "sql"),
        serialization_alias="dataQuery",
        description="Row-returning query, capped to the sample size",
    )
    count_query: str | None = Field(
        default=None,
        validation_alias=AliasChoices("count_query", "countQuery", "countSql"),
        serialization_alias="countQuery",
        description="Optional count-only query with the same filters",
    )
    explanation: str = Field(default="", description="What the query does")
    assistant_message: str = Field(
        default="",
        validation_alias=AliasChoices("assistant_message", "assistantMessage"),
        serialization_alias="assistantMessage",
        description="Conversational reply shown to the recruiter",
    )
    search_criteria_summary: str = Field(
        default="",
        validation_alias=AliasChoices(
            "search_criteria_summary", "searchCriteriaSummary", "searchCriteria"
        ),
        serialization_alias="searchCriteriaSummary",
        description="Running summary of the active search criteria",
    )
