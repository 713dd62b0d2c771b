"""Tests for the constraint enforcer."""

import pytest

from conftest import BACKEND_COUNT_QUERY, BACKEND_QUERY
from src.models.query import QueryDraft
from src.search.criteria import SENIORITY_RANK_FILTER, SENIORITY_TIER_FILTER
from src.search.enforcer import (
    ConstraintEnforcer,
    ensure_identifier,
    ensure_limit,
    insert_predicates,
)

TIER = "seniority IN ('ESTAGIARIO / TRAINEE', 'ANALISTA')"
RANK = "seniority_order <= 2"


@pytest.fixture
def constraints():
    return [SENIORITY_TIER_FILTER.model_copy(), SENIORITY_RANK_FILTER.model_copy()]


class TestInsertPredicates:
    """Test textual predicate insertion."""

    def test_inserts_before_existing_conditions(self):
        """Test predicates lead the filter clause and trailing clauses survive."""
        query = "SELECT * FROM t WHERE city = 'SAO PAULO' ORDER BY full_name LIMIT 7"

        patched = insert_predicates(query, [TIER])

        assert patched == (
            f"SELECT * FROM t WHERE ({TIER}) AND (city = 'SAO PAULO')\n"
            "ORDER BY full_name LIMIT 7"
        )

    def test_keeps_or_conditions_grouped(self):
        """Test existing OR chains are parenthesised."""
        query = "SELECT * FROM t WHERE a = 1 OR b = 2"
        assert insert_predicates(query, [RANK]) == f"SELECT * FROM t WHERE ({RANK}) AND (a = 1 OR b = 2)"

    def test_ignores_where_in_subquery(self):
        """Test the outer WHERE is patched, not the subquery's."""
        query = (
            "SELECT * FROM t WHERE company_id IN (SELECT id FROM c WHERE size > 10) "
            "AND city = 'X'"
        )
        patched = insert_predicates(query, [RANK])
        assert patched.startswith(
            f"SELECT * FROM t WHERE ({RANK}) AND (company_id IN (SELECT id FROM c WHERE size > 10)"
        )

    def test_ignores_keywords_in_literals(self):
        """Test keywords inside string literals are not clause boundaries."""
        query = "SELECT * FROM t WHERE headline ILIKE '%order by limit%' LIMIT 7"
        patched = insert_predicates(query, [RANK])
        assert patched == f"SELECT * FROM t WHERE ({RANK}) AND (headline ILIKE '%order by limit%')\nLIMIT 7"

    def test_preserves_terminator(self):
        """Test a trailing semicolon stays at the end."""
        patched = insert_predicates("SELECT * FROM t WHERE a = 1;", [RANK])
        assert patched.endswith(";")
        assert patched.count(";") == 1

    def test_no_where_clause(self):
        """Test None when there is nowhere to insert."""
        assert insert_predicates("SELECT * FROM t LIMIT 7", [RANK]) is None

    def test_no_predicates(self):
        """Test a no-op."""
        assert insert_predicates("SELECT 1", []) == "SELECT 1"


class TestEnsureIdentifier:
    """Test identifier selection."""

    def test_adds_identifier(self):
        """Test profile_id is prepended to the select list."""
        query = "SELECT full_name, headline FROM t WHERE a = 1"
        assert ensure_identifier(query) == "SELECT profile_id, full_name, headline FROM t WHERE a = 1"

    def test_keeps_existing_identifier(self):
        """Test no duplicate column."""
        query = "SELECT full_name, profile_id FROM t"
        assert ensure_identifier(query) == query

    def test_select_star(self):
        """Test star selects are left alone."""
        assert ensure_identifier("SELECT * FROM t") == "SELECT * FROM t"

    def test_count_query(self):
        """Test aggregate-only selects are left alone."""
        query = "SELECT COUNT(*) AS total FROM t WHERE a = 1"
        assert ensure_identifier(query) == query

    def test_grouped_query(self):
        """Test grouped queries keep their select list."""
        query = (
            "SELECT city, count() AS n FROM linkedin.people "
            "WHERE area = 'DADOS' GROUP BY city LIMIT 7"
        )
        assert ensure_identifier(query) == query

    def test_aggregate_only_select(self):
        """Test aggregate select lists without GROUP BY are left alone."""
        query = "SELECT uniqExact(current_company) AS companies, max(seniority_order) FROM t"
        assert ensure_identifier(query) == query

    def test_group_by_in_subquery_does_not_count(self):
        """Test only a top-level GROUP BY marks the query as grouped."""
        query = (
            "SELECT full_name FROM t WHERE city IN "
            "(SELECT city FROM t GROUP BY city HAVING count() > 10)"
        )
        assert ensure_identifier(query).startswith("SELECT profile_id, full_name FROM t")


class TestEnsureLimit:
    """Test limit capping."""

    def test_appends_limit(self):
        """Test a missing LIMIT is appended."""
        assert ensure_limit("SELECT * FROM t", 7) == "SELECT * FROM t\nLIMIT 7"

    def test_keeps_existing_limit(self):
        """Test an existing LIMIT is preserved."""
        assert ensure_limit("SELECT * FROM t LIMIT 3", 7) == "SELECT * FROM t LIMIT 3"

    def test_limit_inside_subquery_does_not_count(self):
        """Test only a top-level LIMIT counts."""
        query = "SELECT * FROM t WHERE id IN (SELECT id FROM s LIMIT 5)"
        assert ensure_limit(query, 7).endswith("\nLIMIT 7")

    def test_limit_before_format(self):
        """Test the LIMIT precedes a trailing FORMAT clause."""
        query = "SELECT profile_id FROM linkedin.people WHERE area = 'DADOS' FORMAT JSONEachRow"
        assert ensure_limit(query, 7) == (
            "SELECT profile_id FROM linkedin.people WHERE area = 'DADOS'\n"
            "LIMIT 7\nFORMAT JSONEachRow"
        )

    def test_limit_before_settings(self):
        """Test the LIMIT precedes a trailing SETTINGS clause."""
        query = "SELECT profile_id FROM t WHERE a = 1 SETTINGS max_threads = 2;"
        assert ensure_limit(query, 7) == (
            "SELECT profile_id FROM t WHERE a = 1\nLIMIT 7\nSETTINGS max_threads = 2;"
        )

    def test_format_keyword_in_literal(self):
        """Test FORMAT inside a string literal is not a clause."""
        query = "SELECT profile_id FROM t WHERE headline ILIKE '%format%'"
        assert ensure_limit(query, 7) == f"{query}\nLIMIT 7"


class TestConstraintEnforcer:
    """Test draft enforcement."""

    @pytest.fixture
    def enforcer(self):
        return ConstraintEnforcer()

    def test_no_constraints_is_noop(self, enforcer):
        """Test drafts pass through unchanged."""
        draft = QueryDraft(data_query=BACKEND_QUERY, count_query=BACKEND_COUNT_QUERY)
        assert enforcer.enforce(draft, []) == draft

    def test_patches_data_and_count_queries(self, enforcer, constraints, turn_context):
        """Test missing constraints are inserted into both queries."""
        draft = QueryDraft(data_query=BACKEND_QUERY, count_query=BACKEND_COUNT_QUERY)

        enforced = enforcer.enforce(draft, constraints, ctx=turn_context)

        for query in (enforced.data_query, enforced.count_query):
            assert TIER in query
            assert RANK in query
        assert enforced.data_query.rstrip().endswith("LIMIT 7")
        assert "ORDER BY seniority_order DESC" in enforced.data_query
        assert turn_context.warnings == []

    def test_input_not_mutated(self, enforcer, constraints):
        """Test the enforcer returns a copy."""
        draft = QueryDraft(data_query=BACKEND_QUERY)
        enforcer.enforce(draft, constraints)
        assert draft.data_query == BACKEND_QUERY

    def test_does_not_duplicate_present_predicate(self, enforcer, constraints):
        """Test keywords already present are not inserted again."""
        query = (
            "SELECT profile_id FROM linkedin.people "
            "WHERE seniority IN ('ANALISTA') AND seniority_order <= 1 LIMIT 7"
        )
        enforced = enforcer.enforce(QueryDraft(data_query=query), constraints)

        assert enforced.data_query == query
        assert enforced.data_query.lower().count("seniority in") == 1
        assert enforced.data_query.lower().count("seniority_order <=") == 1

    def test_inserts_only_missing_predicate(self, enforcer, constraints):
        """Test partial satisfaction."""
        query = "SELECT profile_id FROM t WHERE seniority_order <= 2 LIMIT 7"
        enforced = enforcer.enforce(QueryDraft(data_query=query), constraints)

        assert TIER in enforced.data_query
        assert enforced.data_query.count("seniority_order <=") == 1

    def test_enforce_is_idempotent(self, enforcer, constraints):
        """Test enforcing twice changes nothing."""
        once = enforcer.enforce(QueryDraft(data_query=BACKEND_QUERY), constraints, row_limit=7)
        twice = enforcer.enforce(once, constraints, row_limit=7)
        assert once == twice

    def test_no_where_clause_recorded(self, enforcer, constraints, turn_context):
        """Test an unpatchable query is left as is with a warning."""
        query = "SELECT profile_id FROM linkedin.people LIMIT 7"

        enforced = enforcer.enforce(QueryDraft(data_query=query), constraints, ctx=turn_context)

        assert enforced.data_query == query
        assert len(turn_context.warnings) == 1
        assert turn_context.warnings[0].startswith("ConstraintInsertionSkipped:")

    def test_adds_identifier_and_limit(self, enforcer):
        """Test identifier and row cap are ensured."""
        draft = QueryDraft(data_query="SELECT full_name FROM t WHERE a = 1")
        enforced = enforcer.enforce(draft, [], row_limit=7)
        assert enforced.data_query == "SELECT profile_id, full_name FROM t WHERE a = 1\nLIMIT 7"

    def test_grouped_draft_keeps_select_list(self, enforcer, constraints, turn_context):
        """Test grouped drafts get constraints but no identifier column."""
        query = (
            "SELECT city, count() AS n FROM linkedin.people "
            "WHERE area = 'DADOS' GROUP BY city ORDER BY n DESC"
        )

        enforced = enforcer.enforce(QueryDraft(data_query=query), constraints, ctx=turn_context, row_limit=7)

        assert enforced.data_query.startswith("SELECT city, count() AS n FROM linkedin.people WHERE (")
        assert "profile_id" not in enforced.data_query
        assert TIER in enforced.data_query
        assert enforced.data_query.endswith("GROUP BY city ORDER BY n DESC\nLIMIT 7")
        assert turn_context.warnings == []
