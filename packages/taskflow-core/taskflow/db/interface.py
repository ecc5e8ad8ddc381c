"""
Abstract database adapter interface.

Supports both PostgreSQL and SQLite with feature detection for graceful degradation.
"""

import json
import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Implementations must support:
    - Basic CRUD operations (execute, fetch, fetchrow, fetchval)
    - Feature detection (supports_fts, supports_jsonb)
    - Text search with graceful degradation
    - Value encoding for the backend's column types
    """

    name: str = "unknown"

    @abstractmethod
    async def connect(self) -> None:
        """Initialize connection/pool."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close connection/pool."""
        pass

    @abstractmethod
    async def execute(self, query: str, *args) -> str:
        """
        Execute a query and return status.

        Args:
            query: SQL query with $1, $2 placeholders
            *args: Query parameters

        Returns:
            Status string (e.g., "INSERT 0 1", "UPDATE 3")
        """
        pass

    @abstractmethod
    async def fetch(self, query: str, *args) -> list[dict]:
        """
        Fetch multiple rows as list of dicts.

        Args:
            query: SQL SELECT query
            *args: Query parameters

        Returns:
            List of row dicts
        """
        pass

    @abstractmethod
    async def fetchrow(self, query: str, *args) -> dict | None:
        """Fetch single row as dict, or None if no results."""
        pass

    @abstractmethod
    async def fetchval(self, query: str, *args) -> Any:
        """Fetch the first column of the first row, or None."""
        pass

    @property
    @abstractmethod
    def supports_fts(self) -> bool:
        """Does this adapter support full-text search (tsvector/tsquery)?"""
        pass

    @property
    @abstractmethod
    def supports_jsonb(self) -> bool:
        """Does this adapter support JSONB operators?"""
        pass

    @property
    @abstractmethod
    def placeholder_style(self) -> str:
        """
        Return the placeholder style for this adapter.

        Returns:
            "dollar" for PostgreSQL ($1, $2, ...)
            "qmark" for SQLite (?, ?, ...)
        """
        pass

    @abstractmethod
    async def search_text(
        self,
        table: str,
        query: str,
        columns: list[str],
        limit: int = 20,
        where_clause: str | None = None,
        params: tuple = (),
    ) -> list[dict]:
        """
        Full-text search with graceful degradation.

        On PostgreSQL: Uses tsvector/tsquery with ranking
        On SQLite: Falls back to LIKE wildcards

        Args:
            table: Table name to search
            query: Search query string
            columns: Columns to search in
            limit: Maximum results
            where_clause: Additional conditions (without WHERE keyword).
                Placeholders start at $2; $1 is the search term.
            params: Values for the where_clause placeholders

        Returns:
            List of matching rows, ordered by relevance
        """
        pass

    def format_query(self, query: str) -> str:
        """
        Convert query placeholders to the adapter's style.

        Input uses $1, $2 style (PostgreSQL).
        For SQLite, converts to ? style.
        """
        if self.placeholder_style == "dollar":
            return query
        return re.sub(r'\$\d+', '?', query)

    def encode(self, value: Any) -> Any:
        """
        Convert a Python value to what the backend driver accepts.

        Dicts and lists become JSON text on both backends. Dates and
        datetimes stay native for asyncpg and become ISO strings for SQLite.
        """
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        if self.placeholder_style == "qmark" and isinstance(value, (datetime, date)):
            return value.isoformat()
        return value

    def encode_all(self, *values: Any) -> list:
        return [self.encode(v) for v in values]


def affected_rows(status: str) -> int:
    """Row count from a status string like "UPDATE 2" or "INSERT 0 1"."""
    try:
        return int(status.split()[-1])
    except (ValueError, IndexError, AttributeError):
        return 0
