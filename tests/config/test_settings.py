"""Tests for EdgeSettings — unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from edgecrm.config.models import Environment
from edgecrm.config.settings import EdgeSettings


class TestEdgeSettingsDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        settings = EdgeSettings.from_cli(project_root=tmp_path)
        assert settings.project_root == tmp_path
        assert settings.config_path is None
        assert settings.environment is Environment.DEVELOPMENT
        assert settings.json_output is False
        assert settings.storage.max_rows == 1000
        assert settings.storage.statement_timeout_ms == 30_000
        assert settings.pagination.default_page_size == 50
        assert settings.search.max_limit == 100

    def test_database_path_relative_to_root(self, tmp_path: Path) -> None:
        settings = EdgeSettings.from_cli(project_root=tmp_path)
        assert settings.database_path == tmp_path / ".edgecrm" / "edgecrm.db"

    def test_absolute_database_path(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere" / "crm.db"
        settings = EdgeSettings.from_cli(
            project_root=tmp_path, storage={"database_path": str(target)}
        )
        assert settings.database_path == target

    def test_frozen(self, tmp_path: Path) -> None:
        settings = EdgeSettings.from_cli(project_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]

    def test_none_flags_ignored(self, tmp_path: Path) -> None:
        settings = EdgeSettings.from_cli(project_root=tmp_path, verbose=None, quiet=True)
        assert settings.verbose is False
        assert settings.quiet is True


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        toml = tmp_path / "edgecrm.toml"
        toml.write_text('environment = "production"\n[storage]\nmax_rows = 200\n')
        settings = EdgeSettings.from_cli(project_root=tmp_path)
        assert settings.config_path == toml
        assert settings.is_production
        assert settings.storage.max_rows == 200
        assert settings.storage.database_path == ".edgecrm/edgecrm.db"  # default preserved

    def test_empty_toml_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "edgecrm.toml").write_text("")
        settings = EdgeSettings.from_cli(project_root=tmp_path)
        assert settings.pagination.max_page_size == 500

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "crm.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text("[search]\ndefault_limit = 5\n")
        settings = EdgeSettings.from_cli(config_path=str(custom))
        assert settings.search.default_limit == 5
        assert settings.config_path == custom
        assert settings.project_root == custom.parent

    def test_missing_explicit_config(self, tmp_path: Path) -> None:
        with pytest.raises(click.ClickException, match="Config file not found"):
            EdgeSettings.from_cli(config_path=str(tmp_path / "nope.toml"))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "edgecrm.toml").write_text("[storage\nmax_rows = ")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            EdgeSettings.from_cli(project_root=tmp_path)

    def test_invalid_value_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "edgecrm.toml").write_text("[storage]\nmax_rows = 1\n")
        with pytest.raises(Exception):
            EdgeSettings.from_cli(project_root=tmp_path)

    def test_found_by_walk_up(self, tmp_path: Path) -> None:
        (tmp_path / "edgecrm.toml").write_text("[pagination]\ndefault_page_size = 7\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        settings = EdgeSettings.from_cli(project_root=nested)
        assert settings.pagination.default_page_size == 7


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "edgecrm.toml").write_text("[storage]\nmax_rows = 200\n")
        monkeypatch.setenv("EDGECRM_STORAGE__MAX_ROWS", "300")
        settings = EdgeSettings.from_cli(project_root=tmp_path)
        assert settings.storage.max_rows == 300

    def test_env_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EDGECRM_ENVIRONMENT", "production")
        assert EdgeSettings.from_cli(project_root=tmp_path).is_production

    def test_cli_overrides_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EDGECRM_VERBOSE", "false")
        settings = EdgeSettings.from_cli(project_root=tmp_path, verbose=True)
        assert settings.verbose is True

    def test_env_config_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "conf.toml"
        custom.write_text("[search]\nmax_limit = 9\n")
        monkeypatch.setenv("EDGECRM_CONFIG", str(custom))
        settings = EdgeSettings.from_cli(project_root=tmp_path)
        assert settings.search.max_limit == 9
