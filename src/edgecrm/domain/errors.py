"""Exception hierarchy for caller-facing request errors.

Storage-level failures live in
:mod:`edgecrm.infrastructure.database.errors` and share the
:class:`EdgeCrmError` root so callers can catch everything raised by the
data layer with a single ``except``.
"""

from __future__ import annotations


class EdgeCrmError(Exception):
    """Root of every exception raised by edgecrm."""

    code: str = "EDGECRM_ERROR"
    retryable: bool = False


class RequestError(EdgeCrmError):
    """The caller sent something the data layer cannot act on. Never retried."""

    code = "INVALID_REQUEST"


class TenantRequiredError(RequestError):
    """Raised when a tenant id is missing or blank."""

    code = "TENANT_REQUIRED"


class UnknownEntityError(RequestError):
    """Raised when an entity name is not in the registry."""

    code = "UNKNOWN_ENTITY"

    def __init__(self, entity: str) -> None:
        super().__init__(f"Unknown entity: {entity}")
        self.entity = entity


class InvalidFilterError(RequestError):
    """Raised for unknown fields, unknown operators, or malformed operands."""

    code = "INVALID_FILTER"


class InvalidCursorError(RequestError):
    """Raised when a cursor cannot be decoded or was issued for another ordering."""

    code = "INVALID_CURSOR"


class InvalidPaginationError(RequestError):
    """Raised for contradictory or out-of-range pagination arguments."""

    code = "INVALID_PAGINATION"


class InvalidRecordError(RequestError):
    """Raised when write data names unknown or protected columns."""

    code = "INVALID_RECORD"
