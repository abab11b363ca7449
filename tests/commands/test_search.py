"""Tests for the search command."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from edgecrm.cli import cli

WS = "ws_alpha"


@pytest.fixture
def seeded(cli_runner: CliRunner, _isolated_project: None) -> CliRunner:
    for entity, data in [
        ("company", {"name": "Acme Corp"}),
        ("company", {"name": "Globex"}),
        (
            "person",
            {
                "name": {"firstName": "Jane", "lastName": "Doe"},
                "emails": {"primaryEmail": "jane@acme.test"},
            },
        ),
    ]:
        result = cli_runner.invoke(
            cli, ["records", "create", entity, "--tenant", WS, "--data", json.dumps(data)]
        )
        assert result.exit_code == 0, result.output
    return cli_runner


class TestSearchCommand:
    def test_json(self, seeded: CliRunner) -> None:
        result = seeded.invoke(cli, ["--json", "search", "acme", "--tenant", WS])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["op"] == "search"
        assert [i["label"] for i in payload["data"]["items"]] == ["Acme Corp", "Jane Doe"]

    def test_human(self, seeded: CliRunner) -> None:
        result = seeded.invoke(cli, ["search", "acme", "--tenant", WS])
        assert result.exit_code == 0
        assert "Acme Corp" in result.output
        assert "2 results for 'acme'" in result.output

    def test_entity_filter_and_limit(self, seeded: CliRunner) -> None:
        result = seeded.invoke(
            cli,
            ["--json", "search", "acme", "--tenant", WS, "--entity", "person", "--limit", "5"],
        )
        items = json.loads(result.output)["data"]["items"]
        assert [i["entity"] for i in items] == ["person"]

    def test_warning_on_stderr(self, seeded: CliRunner) -> None:
        result = seeded.invoke(cli, ["search", "acme", "--tenant", WS, "--entity", "favorite"])
        assert result.exit_code == 0
        assert "WARNING: favorite has no searchable fields" in result.output

    def test_unknown_entity(self, seeded: CliRunner) -> None:
        result = seeded.invoke(cli, ["search", "acme", "--tenant", WS, "--entity", "invoice"])
        assert result.exit_code == 1
        assert "UNKNOWN_ENTITY" in result.output

    def test_quiet(self, seeded: CliRunner) -> None:
        result = seeded.invoke(cli, ["-q", "search", "globex", "--tenant", WS])
        assert result.exit_code == 0
        assert len(result.output.strip().splitlines()) == 1
