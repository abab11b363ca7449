"""DataStore — the single dependency injected into every service.

Owns the engine, the statement adapter, the record repository and keyword
search, all built from :class:`~edgecrm.config.settings.EdgeSettings`.
It also holds the mutation listeners the service layer notifies after each
successful write (for example a real-time broadcaster).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from edgecrm.domain.entities import STANDARD_REGISTRY, EntityRegistry
from edgecrm.infrastructure.database.adapter import StatementAdapter
from edgecrm.infrastructure.database.engine import create_db_engine, init_database
from edgecrm.infrastructure.database.schema import build_metadata
from edgecrm.infrastructure.repositories.records import RecordRepository
from edgecrm.infrastructure.repositories.search import KeywordSearch

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from edgecrm.config.settings import EdgeSettings
    from edgecrm.domain.types import MutationResult

logger = logging.getLogger(__name__)

MutationListener = Callable[["MutationResult"], None]


class DataStore:
    """Storage access for one configured database.

    Args:
        settings: Resolved settings.
        engine: Use this engine instead of opening ``settings.database_path``.
        registry: Entity registry; defaults to the standard CRM entities.
        create_tables: Create missing entity tables when opening the
            database from settings.
    """

    def __init__(
        self,
        settings: EdgeSettings,
        *,
        engine: Engine | None = None,
        registry: EntityRegistry = STANDARD_REGISTRY,
        create_tables: bool = True,
    ) -> None:
        self._settings = settings
        self._registry = registry
        if engine is None:
            path = settings.database_path
            if create_tables:
                engine = init_database(path, build_metadata(registry))
            else:
                engine = create_db_engine(path)
        self._engine = engine

        storage = settings.storage
        self._adapter = StatementAdapter(
            engine,
            max_rows=storage.max_rows,
            statement_timeout_ms=storage.statement_timeout_ms,
            log_statements=storage.log_statements,
        )
        self._records = RecordRepository(
            self._adapter,
            registry,
            default_page_size=settings.pagination.default_page_size,
            max_page_size=settings.pagination.max_page_size,
        )
        self._search = KeywordSearch(
            self._adapter,
            registry,
            default_limit=settings.search.default_limit,
            max_limit=settings.search.max_limit,
        )
        self._listeners: list[MutationListener] = []

    @property
    def settings(self) -> EdgeSettings:
        return self._settings

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def adapter(self) -> StatementAdapter:
        return self._adapter

    @property
    def records(self) -> RecordRepository:
        return self._records

    @property
    def search(self) -> KeywordSearch:
        return self._search

    @property
    def listeners(self) -> tuple[MutationListener, ...]:
        return tuple(self._listeners)

    def subscribe(self, listener: MutationListener) -> None:
        """Call *listener* with every successful :class:`MutationResult`."""
        self._listeners.append(listener)

    def close(self) -> None:
        self._engine.dispose()
