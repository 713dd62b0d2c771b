"""Constraint Enforcer: patch mandatory constraints into drafted queries.

This is a best-effort textual patch, not a SQL parser. It assumes the
draft is well formed and only looks at keywords outside string literals
and parentheses.
"""

import re

from src.errors import ConstraintInsertionSkipped
from src.models.query import CriticalFilter, QueryDraft
from src.search.context import TurnContext, ensure_context

IDENTIFIER_FIELD = "profile_id"

_FILTER_KEYWORD = re.compile(r"\bWHERE\b", re.IGNORECASE)
_TRAILING_KEYWORDS = re.compile(
    r"\b(GROUP\s+BY|HAVING|ORDER\s+BY|LIMIT|SETTINGS|FORMAT)\b",
    re.IGNORECASE,
)
_LIMIT_KEYWORD = re.compile(r"\bLIMIT\b", re.IGNORECASE)
_SELECT_LIST = re.compile(r"^\s*SELECT\s+(DISTINCT\s+)?", re.IGNORECASE)
_FROM_KEYWORD = re.compile(r"\bFROM\b", re.IGNORECASE)
_GROUP_BY_KEYWORD = re.compile(r"\bGROUP\s+BY\b", re.IGNORECASE)
_OUTPUT_KEYWORDS = re.compile(r"\b(SETTINGS|FORMAT)\b", re.IGNORECASE)
_AGGREGATE_CALL = re.compile(
    r"\b(count|sum|avg|min|max|uniq\w*|any|anyLast|argMin|argMax|groupArray\w*|"
    r"quantile\w*|median\w*)\s*\(",
    re.IGNORECASE,
)


def _top_level_mask(sql: str) -> list[bool]:
    """Mark positions outside quotes and parentheses."""
    mask = [False] * len(sql)
    depth = 0
    quote: str | None = None
    i = 0
    while i < len(sql):
        char = sql[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                if i + 1 < len(sql) and sql[i + 1] == quote:
                    i += 2
                    continue
                quote = None
            i += 1
            continue
        if char in ("'", '"', "`"):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        else:
            mask[i] = depth == 0
        i += 1
    return mask


def _first_top_level(pattern: re.Pattern, sql: str, mask: list[bool], start: int = 0) -> re.Match | None:
    for match in pattern.finditer(sql, start):
        if mask[match.start()]:
            return match
    return None


def _split_terminator(sql: str) -> tuple[str, str]:
    stripped = sql.rstrip()
    if stripped.endswith(";"):
        return stripped[:-1].rstrip(), ";"
    return stripped, ""


def insert_predicates(query: str, predicates: list[str]) -> str | None:
    """Insert predicates conjunctively at the front of the filter clause.

    ``... WHERE a AND b ORDER BY x LIMIT 7`` becomes
    ``... WHERE (p1) AND (p2) AND (a AND b) ORDER BY x LIMIT 7``.

    Args:
        query: Drafted SQL text
        predicates: Canonical predicates to add

    Returns:
        Patched query, or None when the query has no top-level WHERE
    """
    if not predicates:
        return query

    body, terminator = _split_terminator(query)
    mask = _top_level_mask(body)

    where = _first_top_level(_FILTER_KEYWORD, body, mask)
    if where is None:
        return None

    trailing = _first_top_level(_TRAILING_KEYWORDS, body, mask, where.end())
    clause_end = trailing.start() if trailing else len(body)

    head = body[: where.end()]
    conditions = body[where.end() : clause_end].strip()
    tail = body[clause_end:].strip()

    group = " AND ".join(f"({predicate})" for predicate in predicates)
    patched = f"{head} {group}"
    if conditions:
        patched += f" AND ({conditions})"
    if tail:
        patched += f"\n{tail}"
    return patched + terminator


def is_aggregate_query(query: str) -> bool:
    """Check for a top-level GROUP BY or aggregate functions in the select list."""
    body, _ = _split_terminator(query)
    mask = _top_level_mask(body)
    if _first_top_level(_GROUP_BY_KEYWORD, body, mask) is not None:
        return True

    select = _SELECT_LIST.match(body)
    from_kw = _first_top_level(_FROM_KEYWORD, body, mask)
    if select is None or from_kw is None:
        return False
    return bool(_AGGREGATE_CALL.search(body[select.end() : from_kw.start()]))


def ensure_identifier(query: str, identifier: str = IDENTIFIER_FIELD) -> str:
    """Make sure the select list returns the stable identifier column.

    Grouped and aggregate queries are left unchanged: a bare column there
    would be rejected by the data store.
    """
    if is_aggregate_query(query):
        return query

    body, terminator = _split_terminator(query)
    mask = _top_level_mask(body)

    select = _SELECT_LIST.match(body)
    from_kw = _first_top_level(_FROM_KEYWORD, body, mask)
    if select is None or from_kw is None:
        return query

    select_list = body[select.end() : from_kw.start()]
    if select_list.strip() == "*" or re.search(rf"\b{identifier}\b", select_list, re.IGNORECASE):
        return query

    return f"{body[: select.end()]}{identifier}, {body[select.end():]}{terminator}"


def ensure_limit(query: str, limit: int) -> str:
    """Add a LIMIT when the query has no top-level one.

    The LIMIT goes before a trailing SETTINGS or FORMAT clause.
    """
    body, terminator = _split_terminator(query)
    mask = _top_level_mask(body)
    if _first_top_level(_LIMIT_KEYWORD, body, mask) is not None:
        return query

    output = _first_top_level(_OUTPUT_KEYWORDS, body, mask)
    if output is None:
        return f"{body}\nLIMIT {limit}{terminator}"
    head = body[: output.start()].rstrip()
    return f"{head}\nLIMIT {limit}\n{body[output.start():]}{terminator}"


class ConstraintEnforcer:
    """Check drafts against mandatory constraints and patch what is missing."""

    def _enforce_query(
        self,
        query: str,
        constraints: list[CriticalFilter],
        label: str,
        ctx: TurnContext,
    ) -> str:
        missing = [c for c in constraints if not c.is_satisfied_by(query)]
        if not missing:
            return query

        patched = insert_predicates(query, [c.predicate for c in missing])
        if patched is None:
            ctx.record(
                ConstraintInsertionSkipped(
                    f"no WHERE clause in {label}; missing "
                    f"{', '.join(c.name for c in missing)}"
                )
            )
            return query

        ctx.logger.info(
            f"Inserted {len(missing)} mandatory constraint(s) into {label}: "
            f"{', '.join(c.name for c in missing)}"
        )
        return patched

    def enforce(
        self,
        draft: QueryDraft,
        mandatory_constraints: list[CriticalFilter],
        ctx: TurnContext | None = None,
        row_limit: int | None = None,
    ) -> QueryDraft:
        """Return a draft whose queries satisfy every mandatory constraint.

        Args:
            draft: Draft from the Query Drafting Engine
            mandatory_constraints: Constraints from the Criteria Extractor
            ctx: Turn context for logging and warnings
            row_limit: Cap appended to the data query when it has no LIMIT

        Returns:
            Patched copy of the draft (the input is never mutated)
        """
        ctx = ensure_context(ctx)

        if is_aggregate_query(draft.data_query):
            ctx.logger.info(f"Aggregate data query, not adding {IDENTIFIER_FIELD} to the select list")
        data_query = ensure_identifier(draft.data_query)
        data_query = self._enforce_query(data_query, mandatory_constraints, "data query", ctx)
        if row_limit is not None:
            data_query = ensure_limit(data_query, row_limit)

        count_query = draft.count_query
        if count_query:
            count_query = self._enforce_query(
                count_query, mandatory_constraints, "count query", ctx
            )

        return draft.model_copy(update={"data_query": data_query, "count_query": count_query})
