"""SchemaService — create the entity tables for the configured database."""

from __future__ import annotations

from sqlalchemy import inspect

from edgecrm.infrastructure.database.schema import build_metadata
from edgecrm.services.base import BaseService
from edgecrm.services.result import ServiceResult


class SchemaService(BaseService):
    """Creates missing entity tables. Existing tables are left untouched."""

    def init_database(self) -> ServiceResult:
        op = "init_database"

        def _do() -> ServiceResult:
            engine = self._store.engine
            build_metadata(self._store.registry).create_all(engine)
            existing = set(inspect(engine).get_table_names())
            tables = [e.table for e in self._store.registry if e.table in existing]
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "database_path": str(self._store.settings.database_path),
                    "tables": tables,
                },
            )

        return self._run(op, _do)
