"""Dialogue and recruiter feedback models."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, Field


class DialogueTurn(BaseModel):
    """A single message in the recruiter conversation."""

    role: Literal["user", "assistant"] = Field(description="Message author")
    content: str = Field(description="Message text")


class ProfileFeedback(BaseModel):
    """Recruiter judgement of one candidate profile.

    Several entries may share a profile id; later entries add signal
    rather than replacing earlier ones.
    """

    profile_id: str = Field(
        validation_alias=AliasChoices("profile_id", "profileId"),
        serialization_alias="profileId",
        description="Stable identifier of the judged profile",
    )
    profile_name: str = Field(
        validation_alias=AliasChoices("profile_name", "profileName"),
        serialization_alias="profileName",
        description="Display name of the judged profile",
    )
    interesting: bool = Field(description="Whether the recruiter liked the profile")
    reason: str | None = Field(
        default=None,
        description="Free-text justification, if given",
    )

    def describe(self) -> str:
        """Render the entry as a single prompt line."""
        line = f"- {self.profile_name} (ID: {self.profile_id})"
        if self.reason:
            line += f" - Reason: {self.reason}"
        return line
