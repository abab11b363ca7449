"""Storage engine access: engine setup, schema, fragments, statement adapter."""

from edgecrm.infrastructure.database.adapter import (
    BatchBuilder,
    BatchResult,
    ExecuteResult,
    Statement,
    StatementAdapter,
)
from edgecrm.infrastructure.database.engine import create_db_engine, init_database
from edgecrm.infrastructure.database.errors import (
    ConstraintViolationError,
    ResultTooLargeError,
    StatementSyntaxError,
    StatementTimeoutError,
    StorageConnectionError,
    StorageError,
)
from edgecrm.infrastructure.database.schema import build_metadata, metadata

__all__ = [
    "BatchBuilder",
    "BatchResult",
    "ConstraintViolationError",
    "ExecuteResult",
    "ResultTooLargeError",
    "Statement",
    "StatementAdapter",
    "StatementSyntaxError",
    "StatementTimeoutError",
    "StorageConnectionError",
    "StorageError",
    "build_metadata",
    "create_db_engine",
    "init_database",
    "metadata",
]
