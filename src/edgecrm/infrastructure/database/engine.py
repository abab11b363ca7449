"""Database engine setup for the local SQLite stand-in of the edge engine.

The edge engine speaks SQLite's dialect, so a file-backed SQLite database
reached through SQLAlchemy serves both local development and tests. The
limits of the edge engine (row cap, statement time budget, batches instead
of transactions) are enforced by
:class:`~edgecrm.infrastructure.database.adapter.StatementAdapter`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import Engine

from edgecrm.infrastructure.database.schema import metadata as default_metadata


def create_db_engine(db_path: Path | str) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(db_path: Path, metadata: MetaData | None = None) -> Engine:
    """Create the database file and every entity table if missing.

    Idempotent — safe to call on an existing database.

    Returns the engine ready for use.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    (metadata if metadata is not None else default_metadata).create_all(engine)
    return engine
