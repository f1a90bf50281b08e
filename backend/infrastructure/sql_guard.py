"""Static read-only validation for SQL text supplied through configuration.

Configured reports run inside a read-only session as well; this check rejects
bad SQL when the runner is built instead of when the report first runs.
"""
from __future__ import annotations

from typing import Iterator

import sqlparse
from sqlparse.tokens import Keyword

from domain.errors import ReadOnlyViolationError


# Top-level statement types a report may use.  sqlparse resolves
# "WITH cte AS (...) SELECT ..." to SELECT.
_ALLOWED_STATEMENTS = frozenset({"SELECT"})

# Matched against every keyword token of the statement, so a write hidden in a
# CTE or subquery is caught as well.
_BLOCKED_KEYWORDS = frozenset({
    # DML
    "INSERT",
    "UPDATE",
    "DELETE",
    "MERGE",
    "UPSERT",
    # DDL
    "DROP",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "RENAME",
    # DCL
    "GRANT",
    "REVOKE",
    # administrative
    "LOCK",
    "UNLOCK",
    "CALL",
    "LOAD",
    "SET",
    "PREPARE",
    "EXECUTE",
    # SQLite
    "ATTACH",
    "DETACH",
    "PRAGMA",
    "VACUUM",
    "REINDEX",
})


def _keywords(stmt) -> Iterator[str]:
    # literals, quoted identifiers and comments never reach this scan
    for token in stmt.flatten():
        if token.ttype in Keyword:
            yield from token.normalized.upper().split()


def validate_read_only_sql(sql: str) -> str:
    """Return the comment-stripped SQL, or raise ReadOnlyViolationError."""
    stripped = (sql or "").strip()
    if not stripped:
        raise ReadOnlyViolationError("Empty SQL query")

    cleaned = sqlparse.format(stripped, strip_comments=True, strip_whitespace=True).strip()
    if not cleaned:
        raise ReadOnlyViolationError("SQL query is empty after removing comments")

    statements = [s for s in sqlparse.parse(cleaned) if s.value.strip().strip(";").strip()]
    if not statements:
        raise ReadOnlyViolationError("Could not parse SQL query")
    if len(statements) > 1:
        raise ReadOnlyViolationError("Multi-statement queries are not allowed")

    stmt = statements[0]
    stmt_type = stmt.get_type()
    # sqlparse reports "UNKNOWN" for statements outside its DML/DDL table
    if stmt_type is None or stmt_type == "UNKNOWN":
        first_token = stmt.token_first(skip_cm=True, skip_ws=True)
        stmt_type = str(first_token).strip().upper() if first_token else ""

    if not stmt_type or stmt_type.upper() not in _ALLOWED_STATEMENTS:
        raise ReadOnlyViolationError(
            f"Statement type '{stmt_type}' is not allowed. "
            f"Only {', '.join(sorted(_ALLOWED_STATEMENTS))} queries are permitted."
        )

    for keyword in _keywords(stmt):
        if keyword in _BLOCKED_KEYWORDS:
            raise ReadOnlyViolationError(
                f"Query contains blocked keyword '{keyword}'. "
                f"Only read-only operations are permitted."
            )

    return cleaned
