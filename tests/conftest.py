"""Shared pytest fixtures for edgecrm tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from edgecrm.config.logging import STATEMENT_LOGGER
from edgecrm.config.settings import EdgeSettings
from edgecrm.infrastructure.database.adapter import StatementAdapter
from edgecrm.infrastructure.database.engine import init_database
from edgecrm.infrastructure.repositories.records import RecordRepository
from edgecrm.infrastructure.repositories.search import KeywordSearch
from edgecrm.infrastructure.store import DataStore

TENANT_A = "ws_alpha"
TENANT_B = "ws_beta"


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's EDGECRM_* environment out of the tests."""
    for name in ("EDGECRM_CONFIG", "EDGECRM_TENANT", "EDGECRM_ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo configure_logging() so CLI runs do not leak handlers into later tests."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    for name in ("edgecrm", STATEMENT_LOGGER):
        logging.getLogger(name).setLevel(logging.NOTSET)
    structlog.reset_defaults()


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def tenant_a() -> str:
    return TENANT_A


@pytest.fixture
def tenant_b() -> str:
    return TENANT_B


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with every entity table created."""
    engine = init_database(tmp_path / "crm.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def adapter(db_engine: Engine) -> StatementAdapter:
    return StatementAdapter(db_engine, max_rows=1000, statement_timeout_ms=30_000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repo(adapter: StatementAdapter, clock: FakeClock) -> RecordRepository:
    return RecordRepository(adapter, clock=clock)


@pytest.fixture
def search(adapter: StatementAdapter) -> KeywordSearch:
    return KeywordSearch(adapter)


@pytest.fixture
def settings(tmp_path: Path) -> EdgeSettings:
    return EdgeSettings.from_cli(project_root=tmp_path)


@pytest.fixture
def store(settings: EdgeSettings) -> Iterator[DataStore]:
    """DataStore over a fresh database under the temp project root."""
    s = DataStore(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run CLI tests from an empty temp directory so they get their own database.

    Use via ``@pytest.mark.usefixtures("_isolated_project")``.
    """
    monkeypatch.chdir(tmp_path)
