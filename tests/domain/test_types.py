"""Tests for request and result models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from edgecrm.domain.types import (
    Connection,
    Edge,
    MutationOperation,
    MutationResult,
    NullsPlacement,
    OrderSpec,
    SortDirection,
)


class TestOrderSpec:
    def test_defaults(self) -> None:
        spec = OrderSpec(field="name")
        assert spec.direction is SortDirection.ASC
        assert spec.effective_nulls is NullsPlacement.FIRST

    def test_desc_puts_nulls_last(self) -> None:
        spec = OrderSpec(field="name", direction="desc")
        assert spec.direction is SortDirection.DESC
        assert spec.effective_nulls is NullsPlacement.LAST

    def test_explicit_nulls(self) -> None:
        spec = OrderSpec(field="dueAt", nulls="last")
        assert spec.effective_nulls is NullsPlacement.LAST

    def test_reversed_flips_direction_and_nulls(self) -> None:
        spec = OrderSpec(field="dueAt", direction=SortDirection.ASC, nulls=NullsPlacement.LAST)
        back = spec.reversed()
        assert back.direction is SortDirection.DESC
        assert back.effective_nulls is NullsPlacement.FIRST
        assert back.reversed().signature() == spec.signature()

    def test_reversed_of_default_nulls(self) -> None:
        back = OrderSpec(field="name").reversed()
        assert back.signature() == ["name", "DESC", "LAST"]

    def test_parse(self) -> None:
        assert OrderSpec.parse("name").signature() == ["name", "ASC", "FIRST"]
        assert OrderSpec.parse("createdAt:desc").signature() == ["createdAt", "DESC", "LAST"]
        assert OrderSpec.parse("dueAt:asc:last").signature() == ["dueAt", "ASC", "LAST"]

    def test_parse_rejects_bad_direction(self) -> None:
        with pytest.raises(ValidationError):
            OrderSpec.parse("name:sideways")

    def test_frozen(self) -> None:
        spec = OrderSpec(field="name")
        with pytest.raises(ValidationError):
            spec.field = "other"  # type: ignore[misc]


class TestConnection:
    def test_nodes(self) -> None:
        conn = Connection(edges=[Edge(node={"id": "a"}, cursor="c1")])
        assert conn.nodes == [{"id": "a"}]
        assert conn.page_info.has_next_page is False
        assert conn.total_count is None


class TestMutationResult:
    def test_record_property(self) -> None:
        result = MutationResult(
            entity="company",
            operation=MutationOperation.CREATED,
            tenant_id="ws",
            record_ids=["a"],
            records=[{"id": "a"}],
        )
        assert result.record == {"id": "a"}

    def test_record_absent(self) -> None:
        result = MutationResult(
            entity="company", operation=MutationOperation.DESTROYED, tenant_id="ws"
        )
        assert result.record is None
