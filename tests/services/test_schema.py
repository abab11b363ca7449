"""Tests for SchemaService."""

from __future__ import annotations

from pathlib import Path

from edgecrm.config.settings import EdgeSettings
from edgecrm.domain.entities import STANDARD_REGISTRY
from edgecrm.infrastructure.store import DataStore
from edgecrm.services.schema import SchemaService


class TestInitDatabase:
    def test_reports_tables(self, store: DataStore) -> None:
        result = SchemaService(store).init_database()
        assert result.ok
        assert result.op == "init_database"
        assert result.data["tables"] == [e.table for e in STANDARD_REGISTRY]
        assert result.data["database_path"] == str(store.settings.database_path)

    def test_creates_missing_tables(self, tmp_path: Path) -> None:
        settings = EdgeSettings.from_cli(project_root=tmp_path, storage={"database_path": "x.db"})
        store = DataStore(settings, create_tables=False)
        try:
            assert SchemaService(store).init_database().data["tables"] == [
                e.table for e in STANDARD_REGISTRY
            ]
        finally:
            store.close()

    def test_idempotent(self, store: DataStore) -> None:
        svc = SchemaService(store)
        assert svc.init_database().ok
        assert svc.init_database().ok
