"""Typed storage errors raised by the statement adapter.

The edge engine reports every failure the same way; the adapter sorts them
into conditions a caller can act on:

- connectivity / timeout — retryable
- statement syntax — a bug in generated SQL, never retryable
- result too large — the per-query row cap was hit; paginate instead
- constraint violation — the statement (or its whole batch) was rejected
"""

from __future__ import annotations

from edgecrm.domain.errors import EdgeCrmError


class StorageError(EdgeCrmError):
    """Base class for failures reported by the storage engine."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str, *, sql: str | None = None) -> None:
        super().__init__(message)
        self.sql = sql


class StorageConnectionError(StorageError):
    """The engine could not be reached or refused the connection."""

    code = "STORAGE_UNAVAILABLE"
    retryable = True


class StatementTimeoutError(StorageConnectionError):
    """A statement ran past the engine's time budget and was interrupted."""

    code = "STORAGE_TIMEOUT"


class StatementSyntaxError(StorageError):
    """Generated SQL was rejected by the engine's parser or planner."""

    code = "STATEMENT_SYNTAX"


class ResultTooLargeError(StorageError):
    """A query would return more rows than the engine allows."""

    code = "RESULT_TOO_LARGE"

    def __init__(self, max_rows: int, *, sql: str | None = None) -> None:
        super().__init__(f"Query returned more than {max_rows} rows", sql=sql)
        self.max_rows = max_rows


class ConstraintViolationError(StorageError):
    """A uniqueness, NOT NULL or foreign-key constraint rejected the write."""

    code = "CONSTRAINT_VIOLATION"
