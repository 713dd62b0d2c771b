"""Turn result and export models."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class SearchResult(BaseModel):
    """Final answer for one conversational turn."""

    data_query: str = Field(serialization_alias="dataQuery", description="Executed query")
    explanation: str = Field(default="", description="What the query does")
    rows: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Records in the order returned by the data store",
    )
    total_count: int = Field(
        default=0,
        serialization_alias="totalCount",
        description="Total matches (count query) or sample row count",
    )
    assistant_message: str = Field(
        default="",
        serialization_alias="assistantMessage",
        description="Conversational reply shown to the recruiter",
    )
    search_criteria_summary: str = Field(
        default="",
        serialization_alias="searchCriteriaSummary",
        description="Running summary of the active search criteria",
    )
    relaxed: bool = Field(
        default=False,
        description="Whether the rows come from a relaxed retry",
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Recoverable problems encountered during the turn",
    )


class ExportRecord(BaseModel):
    """Flat candidate record handed to the ticket export path."""

    name: str = Field(default="", description="Candidate full name")
    profile_url: str = Field(default="", serialization_alias="profileUrl")
    headline: str = Field(default="", description="Headline or current job title")
    company: str = Field(default="", description="Current company")
    feedback_label: Literal["interesting", "not_interesting", ""] = Field(
        default="",
        serialization_alias="feedbackLabel",
        description="Recruiter judgement, empty when not judged",
    )
    reason: str = Field(default="", description="Recruiter reason, if any")
