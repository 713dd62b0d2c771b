"""ClickHouse HTTP client implementing the query execution capability."""

import json
import logging
import re
from typing import Any

import requests

from src.config import settings
from src.errors import BackendTimeout, DataStoreError

logger = logging.getLogger(__name__)

_READ_ONLY_START = re.compile(r"^\s*(\(\s*)*(SELECT|WITH)\b", re.IGNORECASE)
_FORMAT_CLAUSE = re.compile(r"\bFORMAT\s+\w+\s*$", re.IGNORECASE)


def _has_unquoted_semicolon(sql: str) -> bool:
    """Check for a statement separator outside string literals and quoted names."""
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
        elif char in ("'", '"', "`"):
            quote = char
        elif char == ";":
            return True
        i += 1
    return False


class ClickHouseClient:
    """Client for read-only queries over the ClickHouse HTTP interface."""

    def __init__(
        self,
        url: str | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        """Initialize ClickHouse client.

        Args:
            url: HTTP endpoint (defaults to settings)
            database: Default database (defaults to settings)
            user: User name (defaults to settings)
            password: Password (defaults to settings)
            timeout: Per-query timeout in seconds (defaults to settings)
            session: Optional requests session to reuse connections
        """
        self.url = url or settings.clickhouse_url
        self.database = database or settings.clickhouse_database
        self.user = user or settings.clickhouse_user
        self.password = password if password is not None else settings.clickhouse_password
        self.timeout = timeout or settings.query_timeout_seconds
        self.session = session or requests.Session()

        logger.info(f"ClickHouse endpoint: {self.url} (database={self.database})")

    @staticmethod
    def prepare_query(query: str) -> str:
        """Validate a query as a single read-only statement and force JSON rows.

        Raises:
            DataStoreError: If the statement is not a single SELECT/WITH query
        """
        sql = query.strip().rstrip(";").strip()
        if not sql:
            raise DataStoreError("Empty query")
        if _has_unquoted_semicolon(sql):
            raise DataStoreError("Multiple statements are not allowed")
        if not _READ_ONLY_START.match(sql):
            raise DataStoreError(f"Only read-only queries are allowed: {sql[:80]}")
        if not _FORMAT_CLAUSE.search(sql):
            sql = f"{sql}\nFORMAT JSONEachRow"
        return sql

    def execute(self, query: str) -> list[dict[str, Any]]:
        """Run a read-only query and return its rows.

        Args:
            query: SQL text

        Returns:
            Rows as dicts, in the order returned by ClickHouse

        Raises:
            BackendTimeout: If the query exceeds the configured timeout
            DataStoreError: If ClickHouse rejects or fails the query
        """
        sql = self.prepare_query(query)
        logger.debug(f"Executing query: {sql}")

        try:
            response = self.session.post(
                self.url,
                params={"database": self.database, "readonly": "1"},
                data=sql.encode("utf-8"),
                auth=(self.user, self.password),
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise BackendTimeout("ClickHouse", self.timeout) from e
        except requests.RequestException as e:
            raise DataStoreError(f"ClickHouse request failed: {e}") from e

        if response.status_code != 200:
            raise DataStoreError(
                f"ClickHouse error {response.status_code}: {response.text[:500]}"
            )

        try:
            return [json.loads(line) for line in response.text.splitlines() if line.strip()]
        except json.JSONDecodeError as e:
            raise DataStoreError(f"Malformed ClickHouse response: {e}") from e
