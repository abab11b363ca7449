"""ServiceResult and ServiceError: what every record operation hands back.

The CLI and any embedding caller read operation outcomes only through these
two models; nothing below the service layer (repositories, the statement
adapter, search) leaks an exception past :class:`BaseService`. A failed
result carries the ``code`` of the :class:`~edgecrm.domain.errors.EdgeCrmError`
that stopped it, so callers branch on ``error.code`` rather than on message
text.

INVARIANT: All service-layer methods return ServiceResult. Typed errors
raised below the service layer are converted here, with one exception:
statement syntax errors outside production propagate so generated-SQL bugs
fail loudly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from edgecrm.domain.errors import EdgeCrmError


class ServiceError(BaseModel):
    """Why an operation failed.

    Attributes:
        code: Stable machine-readable code, e.g. ``INVALID_CURSOR``,
            ``INVALID_FILTER``, ``NOT_FOUND``, ``CONSTRAINT_VIOLATION`` or
            ``STORAGE_TIMEOUT``.
        message: Human-readable explanation, safe to print.
        retryable: True only for storage that was unavailable or timed out;
            repeating a rejected request unchanged fails the same way.
        detail: Extra context such as the entity and record id of a
            ``NOT_FOUND``.
    """

    model_config = {"frozen": True}

    code: str
    message: str
    retryable: bool = False
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: EdgeCrmError, **detail: Any) -> ServiceError:
        """Carry the code and retry hint of a typed error."""
        return cls(code=exc.code, message=str(exc), retryable=exc.retryable, detail=detail)


class ServiceResult(BaseModel):
    """Return type for all service operations.

    Payload shapes by operation:

    - ``find_many``: the entity plus a connection (``edges``, ``page_info``,
      ``total_count``), with ``meta["count"]`` the number of edges on this page.
    - ``find_one``: ``{"entity": ..., "record": ...}``.
    - ``count``: ``{"entity": ..., "count": n}``.
    - mutations: the affected record(s) and ids, with ``meta["count"]`` the
      number of rows written. A failing mutation listener adds a warning,
      never an error, since the write has already committed.
    - ``search``: ranked hits; an entity that could not be searched becomes
      a warning while the others still return.

    ``ok`` alone decides the process exit status in the CLI: the payload goes
    to stdout on success and to stderr with exit code 1 on failure.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"find_many"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (counts).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, error: ServiceError) -> ServiceResult:
        return cls(ok=False, op=op, error=error)
