"""Criteria Extractor: mandatory constraints from negative feedback."""

import re
from typing import Literal

from src.config import settings
from src.models.dialogue import ProfileFeedback
from src.models.query import CriticalFilter
from src.search.context import TurnContext, ensure_context

# Portuguese and English vocabulary recruiters use when rejecting a profile.
_SENIOR_PATTERN = re.compile(
    r"\b(s[eê]nior\w*|experi[eê]n\w*|anos|years|overqualified|"
    r"sobrequalificad[oa]s?|qualificad[oa]s? demais)\b",
    re.IGNORECASE,
)
# "sem experiência", "falta de experiência", "poucos anos", "only 2 years", ...
_LACK_OF_EXPERIENCE = (
    r"(sem|falta(\s+de)?|pouc[oa]s?|menos\s+de\s+\d+|not\s+enough|lack\s+of|"
    r"little|limited|few|no|only\s+\d+|less\s+than\s+\d+)"
    r"\s+(\w+\s+)?(experi[eê]n\w*|anos|years)"
)
_JUNIOR_PATTERN = re.compile(
    r"\b(j[uú]nior\w*|inexperien\w*|estagi[aá]ri[oa]s?|trainee|iniciante|"
    rf"entry[- ]level|{_LACK_OF_EXPERIENCE})\b",
    re.IGNORECASE,
)

JUNIOR_TIERS = ("ESTAGIARIO / TRAINEE", "ANALISTA")
JUNIOR_MAX_ORDER = 2

SENIORITY_TIER_FILTER = CriticalFilter(
    name="seniority_junior_tiers",
    directive=(
        "The recruiter rejected several profiles as too senior: restrict "
        f"seniority to the two lowest tiers with seniority IN "
        f"({', '.join(repr(t) for t in JUNIOR_TIERS)})"
    ),
    predicate=f"seniority IN ({', '.join(repr(t) for t in JUNIOR_TIERS)})",
    detection_keyword="seniority in",
)

SENIORITY_RANK_FILTER = CriticalFilter(
    name="seniority_rank_cap",
    directive=(
        "The recruiter rejected several profiles as too senior: cap the "
        f"seniority rank with seniority_order <= {JUNIOR_MAX_ORDER}"
    ),
    predicate=f"seniority_order <= {JUNIOR_MAX_ORDER}",
    detection_keyword="seniority_order <=",
)

ReasonCategory = Literal["too_senior", "too_junior"]


def classify_reason(reason: str | None) -> ReasonCategory | None:
    """Classify a rejection reason by seniority complaint.

    Junior vocabulary wins over senior vocabulary, so "pouca experiência"
    counts as too junior even though it mentions experience.
    """
    if not reason:
        return None
    if _JUNIOR_PATTERN.search(reason):
        return "too_junior"
    if _SENIOR_PATTERN.search(reason):
        return "too_senior"
    return None


class CriteriaExtractor:
    """Derive mandatory constraints from the full feedback set.

    Pure function of its input: the same feedback, in any order, always
    yields the same ordered constraint list.
    """

    def __init__(self, threshold: int | None = None):
        """Initialize extractor.

        Args:
            threshold: Minimum "too senior" rejections before constraining
                (defaults to settings)
        """
        self.threshold = (
            threshold if threshold is not None else settings.senior_feedback_threshold
        )

    def count_too_senior(self, feedback: list[ProfileFeedback]) -> int:
        """Count negative entries whose reason complains about seniority."""
        return sum(
            1
            for entry in feedback
            if not entry.interesting and classify_reason(entry.reason) == "too_senior"
        )

    def extract(
        self,
        feedback: list[ProfileFeedback],
        ctx: TurnContext | None = None,
    ) -> list[CriticalFilter]:
        """Extract mandatory constraints.

        Args:
            feedback: Every feedback entry of the conversation so far
            ctx: Turn context for logging

        Returns:
            Ordered constraint list (empty below the threshold)
        """
        ctx = ensure_context(ctx)
        too_senior = self.count_too_senior(feedback)

        if too_senior < self.threshold:
            ctx.logger.debug(
                f"{too_senior} 'too senior' rejection(s), below threshold {self.threshold}"
            )
            return []

        ctx.logger.info(
            f"{too_senior} 'too senior' rejections: restricting to junior tiers"
        )
        return [SENIORITY_TIER_FILTER.model_copy(), SENIORITY_RANK_FILTER.model_copy()]


def extract_critical_filters(feedback: list[ProfileFeedback]) -> list[CriticalFilter]:
    """Extract mandatory constraints with default settings."""
    return CriteriaExtractor().extract(feedback)
