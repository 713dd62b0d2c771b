"""Context Summarizer: compress long dialogues into durable criteria."""

from src.config import settings
from src.errors import SummarizationFailed
from src.models.dialogue import DialogueTurn, ProfileFeedback
from src.prompts import (
    CONTEXT_SUMMARY_PROMPT,
    FEEDBACK_PATTERN_ADDENDUM,
    SUMMARY_REQUEST_MESSAGE,
)
from src.search.context import TurnContext, ensure_context
from src.services.protocols import TextGenerator


def build_feedback_addendum(feedback: list[ProfileFeedback]) -> str:
    """Describe what the recruiter liked, without calling the backend.

    Args:
        feedback: Full feedback set

    Returns:
        One-line addendum, or "" when nothing was marked interesting
    """
    liked = [entry for entry in feedback if entry.interesting]
    if not liked:
        return ""
    reasons = [entry.reason.strip() for entry in liked if entry.reason and entry.reason.strip()]
    reasons_text = f" Reasons: {'; '.join(reasons)}" if reasons else ""
    return FEEDBACK_PATTERN_ADDENDUM.format(count=len(liked), reasons=reasons_text)


class ContextSummarizer:
    """Summarize durable search criteria once the dialogue grows long.

    The summary is advisory prompt context only. It never feeds the
    mandatory constraints, which come from the Criteria Extractor.
    """

    def __init__(self, generator: TextGenerator, threshold: int | None = None):
        """Initialize summarizer.

        Args:
            generator: Text generation backend
            threshold: Summarize only when history has more turns than this
                (defaults to settings)
        """
        self.generator = generator
        self.threshold = threshold if threshold is not None else settings.summarize_after_turns

    def should_summarize(self, history: list[DialogueTurn]) -> bool:
        """Check whether the dialogue is long enough to summarize."""
        return len(history) > self.threshold

    def summarize(
        self,
        history: list[DialogueTurn],
        feedback: list[ProfileFeedback],
        ctx: TurnContext | None = None,
    ) -> str:
        """Summarize the recruiter's durable criteria.

        Args:
            history: Dialogue so far, oldest first
            feedback: Full feedback set
            ctx: Turn context for logging and warnings

        Returns:
            Summary text, or "" when the dialogue is short or summarization fails
        """
        ctx = ensure_context(ctx)
        if not self.should_summarize(history):
            return ""

        user_messages = [turn.content for turn in history if turn.role == "user"]
        if not user_messages:
            return ""

        numbered = "\n".join(f"{i}. {text}" for i, text in enumerate(user_messages, 1))
        prompt = CONTEXT_SUMMARY_PROMPT.format(user_messages=numbered)

        try:
            summary = self.generator.generate_text(
                prompt,
                [DialogueTurn(role="user", content=SUMMARY_REQUEST_MESSAGE)],
            ).strip()
        except Exception as e:
            ctx.record(SummarizationFailed(str(e) or type(e).__name__))
            return ""

        if not summary:
            ctx.record(SummarizationFailed("backend returned an empty summary"))
            return ""

        addendum = build_feedback_addendum(feedback)
        if addendum:
            summary = f"{summary}\n{addendum}"

        ctx.logger.info(f"Summarized {len(user_messages)} user turns into {len(summary)} chars")
        return summary
