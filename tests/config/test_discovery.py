"""Tests for edgecrm.toml discovery."""

import tomllib
from pathlib import Path

import pytest

from edgecrm.config.discovery import CONFIG_FILENAME, find_config, write_config


class TestFindConfig:
    def test_in_start_directory(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert find_config(tmp_path) == (tmp_path / CONFIG_FILENAME).resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        deep = tmp_path / "x" / "y" / "z"
        deep.mkdir(parents=True)
        assert find_config(deep) == (tmp_path / CONFIG_FILENAME).resolve()

    def test_not_found(self, tmp_path: Path) -> None:
        assert find_config(tmp_path) is None

    def test_env_var_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        other = tmp_path / "other.toml"
        other.write_text("")
        monkeypatch.setenv("EDGECRM_CONFIG", str(other))
        assert find_config(tmp_path) == other

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv("EDGECRM_CONFIG", str(tmp_path / "missing.toml"))
        assert find_config(tmp_path) is None

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.chdir(tmp_path)
        assert find_config() == (tmp_path / CONFIG_FILENAME).resolve()


class TestWriteConfig:
    def test_round_trip(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, database_path="data/crm.db")
        assert path == tmp_path / CONFIG_FILENAME
        assert tomllib.loads(path.read_text())["storage"] == {"database_path": "data/crm.db"}

    def test_backslashes_and_quotes(self, tmp_path: Path) -> None:
        odd = 'C:\\crm\\"main".db'
        path = write_config(tmp_path, database_path=odd)
        assert tomllib.loads(path.read_text())["storage"]["database_path"] == odd

    def test_found_after_write(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, database_path="x.db")
        assert find_config(tmp_path) == path.resolve()
