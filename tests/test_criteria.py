"""Tests for the criteria extractor."""

import pytest

from src.models.dialogue import ProfileFeedback
from src.search.criteria import (
    SENIORITY_RANK_FILTER,
    SENIORITY_TIER_FILTER,
    CriteriaExtractor,
    classify_reason,
    extract_critical_filters,
)


def _reject(profile_id: str, reason: str | None) -> ProfileFeedback:
    return ProfileFeedback(
        profile_id=profile_id,
        profile_name=f"Profile {profile_id}",
        interesting=False,
        reason=reason,
    )


class TestClassifyReason:
    """Test reason classification."""

    @pytest.mark.parametrize(
        "reason",
        [
            "muito senior",
            "Muito sênior para a vaga",
            "too senior for this role",
            "experiência demais",
            "overqualified",
            "10 anos de carreira, não serve",
        ],
    )
    def test_too_senior(self, reason):
        """Test senior vocabulary."""
        assert classify_reason(reason) == "too_senior"

    @pytest.mark.parametrize(
        "reason",
        [
            "muito júnior",
            "too junior",
            "pouca experiência",
            "inexperiente",
            "ainda é estagiário",
            "sem experiência na área",
            "falta experiência com cloud",
            "falta de experiência",
            "poucos anos de experiência",
            "not enough experience",
            "only 2 years of experience",
            "no relevant experience",
        ],
    )
    def test_too_junior(self, reason):
        """Test junior vocabulary, including phrases that mention experience."""
        assert classify_reason(reason) == "too_junior"

    @pytest.mark.parametrize("reason", [None, "", "mora longe", "wrong stack"])
    def test_unrelated(self, reason):
        """Test reasons without a seniority complaint."""
        assert classify_reason(reason) is None


class TestCriteriaExtractor:
    """Test mandatory constraint extraction."""

    @pytest.fixture
    def extractor(self):
        return CriteriaExtractor(threshold=2)

    def test_no_feedback(self, extractor):
        """Test empty feedback yields no constraints."""
        assert extractor.extract([]) == []

    def test_single_rejection_below_threshold(self, extractor):
        """Test exactly one 'too senior' rejection emits nothing."""
        feedback = [_reject("p1", "muito senior")]
        assert extractor.extract(feedback) == []

    def test_two_rejections_emit_pair(self, extractor, too_senior_feedback):
        """Test two 'too senior' rejections emit both seniority constraints."""
        constraints = extractor.extract(too_senior_feedback)

        assert [c.name for c in constraints] == [
            SENIORITY_TIER_FILTER.name,
            SENIORITY_RANK_FILTER.name,
        ]
        assert constraints[0].predicate == "seniority IN ('ESTAGIARIO / TRAINEE', 'ANALISTA')"
        assert constraints[1].predicate == "seniority_order <= 2"

    def test_more_rejections_same_pair(self, extractor):
        """Test constraints do not grow with more rejections."""
        feedback = [_reject(f"p{i}", "too senior") for i in range(5)]
        assert len(extractor.extract(feedback)) == 2

    def test_idempotent(self, extractor, too_senior_feedback):
        """Test repeated calls yield the identical ordered list."""
        assert extractor.extract(too_senior_feedback) == extractor.extract(too_senior_feedback)

    def test_order_independent(self, extractor, too_senior_feedback):
        """Test feedback order does not change the result."""
        noise = _reject("p9", "wrong city")
        forward = extractor.extract([noise, *too_senior_feedback])
        backward = extractor.extract([*reversed(too_senior_feedback), noise])
        assert forward == backward

    def test_positive_feedback_ignored(self, extractor):
        """Test interesting entries never count as rejections."""
        feedback = [
            ProfileFeedback(
                profile_id=f"p{i}", profile_name="X", interesting=True, reason="senior and great"
            )
            for i in range(3)
        ]
        assert extractor.extract(feedback) == []

    def test_junior_complaints_do_not_count(self, extractor):
        """Test 'pouca experiência' is not a too-senior complaint."""
        feedback = [_reject("p1", "pouca experiência"), _reject("p2", "muito senior")]
        assert extractor.extract(feedback) == []

    def test_duplicate_profile_entries_count(self, extractor):
        """Test repeated judgements of one profile add signal."""
        feedback = [_reject("p1", "muito senior"), _reject("p1", "senior demais")]
        assert len(extractor.extract(feedback)) == 2

    def test_custom_threshold(self):
        """Test a threshold of one."""
        extractor = CriteriaExtractor(threshold=1)
        assert len(extractor.extract([_reject("p1", "too senior")])) == 2

    def test_returns_copies(self, extractor, too_senior_feedback):
        """Test callers cannot mutate the module-level constraints."""
        constraints = extractor.extract(too_senior_feedback)
        constraints[0].predicate = "1 = 1"
        assert SENIORITY_TIER_FILTER.predicate != "1 = 1"

    def test_convenience_function(self, too_senior_feedback):
        """Test extract_critical_filters uses the default threshold."""
        assert len(extract_critical_filters(too_senior_feedback)) == 2

    def test_lack_of_experience_never_constrains(self, extractor):
        """Test complaints about missing experience do not restrict to junior tiers."""
        feedback = [
            _reject("p1", "sem experiência na área"),
            _reject("p2", "poucos anos de experiência"),
            _reject("p3", "only 2 years of experience"),
        ]
        assert extractor.extract(feedback) == []

    def test_zero_threshold_respected(self):
        """Test an explicit threshold of zero is not replaced by the default."""
        assert CriteriaExtractor(threshold=0).threshold == 0
