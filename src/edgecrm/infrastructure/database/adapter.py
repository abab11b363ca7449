"""Statement execution adapter — the only code that talks to the engine.

Four primitives mirror what the edge engine offers:

- :meth:`StatementAdapter.query` — prepared statement returning rows
- :meth:`StatementAdapter.query_one` — first row or ``None``
- :meth:`StatementAdapter.execute` — write returning changed count and rowid
- :meth:`StatementAdapter.batch` — several statements applied atomically

There are no general transactions. :meth:`StatementAdapter.transaction`
returns a :class:`BatchBuilder` that collects statements and submits them
as one batch: all of them apply or none do. A builder can be discarded
before commit; there is no way to roll back part of a committed batch.

Every failure surfaces as a typed
:class:`~edgecrm.infrastructure.database.errors.StorageError`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    OperationalError,
    StatementError,
)

from edgecrm.infrastructure.database.errors import (
    ConstraintViolationError,
    ResultTooLargeError,
    StatementSyntaxError,
    StatementTimeoutError,
    StorageConnectionError,
    StorageError,
)

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 1000
DEFAULT_STATEMENT_TIMEOUT_MS = 30_000

# Progress handler granularity, in SQLite virtual machine instructions.
_PROGRESS_STEPS = 1000

_SYNTAX_MARKERS = (
    "syntax error",
    "no such table",
    "no such column",
    "no such function",
    "unrecognized token",
    "ambiguous column",
    "incomplete input",
    "wrong number of arguments",
    "malformed json",
    "bad json path",
)
_CONNECTION_MARKERS = (
    "unable to open",
    "database is locked",
    "disk i/o",
    "not a database",
    "readonly database",
)


@dataclass(frozen=True)
class Statement:
    """A SQL string with named bind parameters (``:name``)."""

    sql: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ExecuteResult:
    changed_count: int
    inserted_id: int | None = None


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one statement inside a committed batch."""

    changed_count: int
    inserted_id: int | None = None
    rows: list[dict[str, Any]] = field(default_factory=list)


class StatementAdapter:
    """Thin wrapper over an SQLAlchemy engine enforcing edge-engine limits.

    Args:
        engine: Engine for the SQLite-dialect database.
        max_rows: Hard cap on rows one query may return.
        statement_timeout_ms: Time budget per statement (per batch for
            :meth:`batch`). Exceeding it interrupts the statement.
        log_statements: Log every statement at DEBUG level.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        max_rows: int = DEFAULT_MAX_ROWS,
        statement_timeout_ms: int = DEFAULT_STATEMENT_TIMEOUT_MS,
        log_statements: bool = False,
    ) -> None:
        self._engine = engine
        self._max_rows = max_rows
        self._timeout_ms = statement_timeout_ms
        self._log_statements = log_statements

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def max_rows(self) -> int:
        return self._max_rows

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run a SELECT and return every row as a dict.

        Raises:
            ResultTooLargeError: More than ``max_rows`` rows matched.
        """
        started = time.perf_counter()
        with self._guard(sql), self._engine.connect() as conn, self._deadline(conn):
            rows = self._fetch(conn, sql, params)
        self._log("query", sql, params, started, rows=len(rows))
        return rows

    def query_one(self, sql: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """Run a SELECT and return the first row, or ``None``."""
        started = time.perf_counter()
        with self._guard(sql), self._engine.connect() as conn, self._deadline(conn):
            row = conn.execute(text(sql), params or {}).mappings().first()
        self._log("query_one", sql, params, started, rows=0 if row is None else 1)
        return dict(row) if row is not None else None

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> ExecuteResult:
        """Run a single write statement in its own implicit transaction."""
        started = time.perf_counter()
        with self._guard(sql), self._engine.begin() as conn, self._deadline(conn):
            result = conn.execute(text(sql), params or {})
            outcome = ExecuteResult(
                changed_count=max(result.rowcount, 0),
                inserted_id=result.lastrowid,
            )
        self._log("execute", sql, params, started, changes=outcome.changed_count)
        return outcome

    def batch(self, statements: Sequence[Statement]) -> list[BatchResult]:
        """Apply *statements* atomically. Any failure rejects the whole batch."""
        if not statements:
            return []
        started = time.perf_counter()
        results: list[BatchResult] = []
        current = statements[0].sql
        with self._guard_batch(lambda: current), self._engine.begin() as conn:
            with self._deadline(conn):
                for stmt in statements:
                    current = stmt.sql
                    result = conn.execute(text(stmt.sql), stmt.params)
                    if result.returns_rows:
                        rows = self._take(result.mappings(), stmt.sql)
                        results.append(BatchResult(changed_count=0, rows=rows))
                    else:
                        results.append(
                            BatchResult(
                                changed_count=max(result.rowcount, 0),
                                inserted_id=result.lastrowid,
                            )
                        )
        if self._log_statements:
            logger.debug(
                "batch statements=%d duration_ms=%.1f",
                len(statements),
                (time.perf_counter() - started) * 1000,
            )
        return results

    def transaction(self) -> BatchBuilder:
        """Start collecting statements for one atomic batch."""
        return BatchBuilder(self)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch(
        self, conn: Connection, sql: str, params: dict[str, Any] | None
    ) -> list[dict[str, Any]]:
        return self._take(conn.execute(text(sql), params or {}).mappings(), sql)

    def _take(self, mappings: Any, sql: str) -> list[dict[str, Any]]:
        rows = mappings.fetchmany(self._max_rows + 1)
        if len(rows) > self._max_rows:
            raise ResultTooLargeError(self._max_rows, sql=sql)
        return [dict(row) for row in rows]

    @contextmanager
    def _deadline(self, conn: Connection) -> Iterator[None]:
        """Interrupt the running statement once the time budget is spent."""
        raw = conn.connection.driver_connection
        set_handler = getattr(raw, "set_progress_handler", None)
        if set_handler is None or self._timeout_ms <= 0:
            yield
            return

        deadline = time.monotonic() + self._timeout_ms / 1000

        def _check() -> int:
            return 1 if time.monotonic() > deadline else 0

        set_handler(_check, _PROGRESS_STEPS)
        try:
            yield
        finally:
            set_handler(None, 0)

    @contextmanager
    def _guard(self, sql: str) -> Iterator[None]:
        with self._guard_batch(lambda: sql):
            yield

    @contextmanager
    def _guard_batch(self, current_sql: Any) -> Iterator[None]:
        try:
            yield
        except StorageError:
            raise
        except DBAPIError as exc:
            raise translate_error(exc, current_sql()) from exc
        except StatementError as exc:
            raise StatementSyntaxError(str(exc), sql=current_sql()) from exc

    def _log(
        self,
        op: str,
        sql: str,
        params: dict[str, Any] | None,
        started: float,
        **counts: int,
    ) -> None:
        if not self._log_statements:
            return
        duration_ms = (time.perf_counter() - started) * 1000
        detail = " ".join(f"{k}={v}" for k, v in counts.items())
        logger.debug(
            "%s %s duration_ms=%.1f sql=%s params=%s",
            op,
            detail,
            duration_ms,
            " ".join(sql.split()),
            sorted(params or {}),
        )


def translate_error(exc: DBAPIError, sql: str | None) -> StorageError:
    """Map a driver error onto the storage error taxonomy."""
    message = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = message.lower()
    if isinstance(exc, IntegrityError):
        return ConstraintViolationError(message, sql=sql)
    if isinstance(exc, OperationalError):
        if "interrupted" in lowered:
            return StatementTimeoutError("Statement exceeded its time budget", sql=sql)
        if any(marker in lowered for marker in _SYNTAX_MARKERS):
            return StatementSyntaxError(message, sql=sql)
        if any(marker in lowered for marker in _CONNECTION_MARKERS):
            return StorageConnectionError(message, sql=sql)
        return StorageError(message, sql=sql)
    return StatementSyntaxError(message, sql=sql)


class BatchBuilder:
    """Transaction-like API over an atomic batch.

    Statements are only collected until :meth:`commit`, which submits them
    as one batch. :meth:`discard` drops them without touching the engine.
    Either call closes the builder.

    Usage::

        with adapter.transaction() as txn:
            txn.add("INSERT INTO ...", {...})
            txn.add("UPDATE ...", {...})
        # committed here; an exception inside the block discards instead
    """

    def __init__(self, adapter: StatementAdapter) -> None:
        self._adapter = adapter
        self._statements: list[Statement] = []
        self._closed = False
        self.results: list[BatchResult] = []

    def add(self, sql: str, params: dict[str, Any] | None = None) -> Self:
        return self.add_statement(Statement(sql, dict(params or {})))

    def add_statement(self, statement: Statement) -> Self:
        self._ensure_open()
        self._statements.append(statement)
        return self

    @property
    def statements(self) -> tuple[Statement, ...]:
        return tuple(self._statements)

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._statements)

    def commit(self) -> list[BatchResult]:
        """Submit every collected statement as one atomic batch."""
        self._ensure_open()
        self._closed = True
        self.results = self._adapter.batch(self._statements)
        return self.results

    def discard(self) -> None:
        """Drop collected statements; nothing is sent to the engine."""
        self._statements.clear()
        self._closed = True

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._closed:
            return
        if exc_type is None:
            self.commit()
        else:
            self.discard()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Batch already committed or discarded")
