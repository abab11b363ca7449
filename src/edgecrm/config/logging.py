"""structlog configuration for edgecrm.

All records go to stderr, either as colored console lines or, with
``--log-json``, as one JSON object per line. Library modules log through
``logging.getLogger(__name__)`` and structlog's ``ProcessorFormatter``
renders the stdlib records, so every line carries the bound request
context (operation, tenant, entity).

Statement logging (``[storage] log_statements``) is a separate switch from
``--verbose``: it opens the adapter logger alone at DEBUG.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager

import structlog

STATEMENT_LOGGER = "edgecrm.infrastructure.database.adapter"


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    log_statements: bool = False,
) -> None:
    """Route stdlib and structlog output through one stderr handler.

    Args:
        verbose: ``edgecrm`` loggers at DEBUG instead of WARNING.
        log_json: JSON lines instead of console lines.
        log_statements: Emit the adapter's per-statement DEBUG records even
            when not verbose.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("edgecrm").setLevel(logging.DEBUG if verbose else logging.WARNING)
    logging.getLogger(STATEMENT_LOGGER).setLevel(
        logging.DEBUG if verbose or log_statements else logging.NOTSET
    )
    # SQLAlchemy's own echo would duplicate the adapter's statement lines.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def request_context(**values: str | None) -> AbstractContextManager[None]:
    """Bind *values* to every log line emitted inside the block.

    ``None`` values are left out, so an operation without an entity does not
    log ``entity=None``. The binding lives in context variables and is
    therefore per thread and per asyncio task.
    """
    bound = {key: value for key, value in values.items() if value is not None}
    return structlog.contextvars.bound_contextvars(**bound)
