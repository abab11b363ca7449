"""Tests for the format_result dispatcher and OutputSettings."""

import json

import pytest
from pydantic import ValidationError

from edgecrm.output.formatters import OutputSettings, format_result
from edgecrm.services.result import ServiceError, ServiceResult


def _ok(op: str = "count", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False

    def test_frozen(self) -> None:
        s = OutputSettings(json_output=True)
        with pytest.raises(ValidationError):
            s.quiet = True  # type: ignore[misc]


class TestFormatResult:
    def test_json_mode(self) -> None:
        result = ServiceResult(
            ok=True, op="search", data={"items": []}, warnings=["company: no such table"]
        )
        data = json.loads(format_result(result, settings=OutputSettings(json_output=True)))
        assert data["ok"] is True
        assert data["op"] == "search"
        assert data["warnings"] == ["company: no such table"]

    def test_json_error(self) -> None:
        result = ServiceResult(
            ok=False,
            op="count",
            error=ServiceError(code="STORAGE_TIMEOUT", message="slow", retryable=True),
        )
        data = json.loads(format_result(result, settings=OutputSettings(json_output=True)))
        assert data["error"]["code"] == "STORAGE_TIMEOUT"
        assert data["error"]["retryable"] is True

    def test_json_wins_over_quiet(self) -> None:
        output = format_result(_ok(), settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["op"] == "count"

    def test_quiet_mode(self) -> None:
        result = _ok("create_one", record_ids=["c1"])
        assert format_result(result, settings=OutputSettings(quiet=True)) == "c1"

    def test_default_is_human(self) -> None:
        output = format_result(_ok(entity="company", count=2))
        assert output.startswith("OK")
        assert "count: 2" in output
