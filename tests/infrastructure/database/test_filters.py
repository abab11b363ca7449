"""Tests for filter and ordering compilation."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from edgecrm.domain.entities import STANDARD_REGISTRY
from edgecrm.domain.errors import InvalidFilterError
from edgecrm.domain.types import OrderSpec
from edgecrm.infrastructure.database.filters import (
    compile_filter,
    compile_order_by,
    field_expression,
)
from edgecrm.infrastructure.database.fragments import ParamBinder

COMPANY = STANDARD_REGISTRY.get("company")
TASK = STANDARD_REGISTRY.get("task")


def _compile(condition: dict, entity=COMPANY) -> tuple[list[str], dict]:
    binder = ParamBinder()
    return compile_filter(entity, condition, binder), binder.params


class TestFieldExpression:
    def test_plain_column(self) -> None:
        assert field_expression(COMPANY, "name") == ('"name"', False)

    def test_json_path(self) -> None:
        assert field_expression(COMPANY, "address.city") == (
            "json_extract(\"address\", '$.city')",
            True,
        )

    def test_path_into_plain_column(self) -> None:
        with pytest.raises(InvalidFilterError, match="not a document"):
            field_expression(COMPANY, "name.first")

    def test_unknown_field(self) -> None:
        with pytest.raises(InvalidFilterError, match="Unknown field"):
            field_expression(COMPANY, "revenue")

    def test_unsafe_path_segment(self) -> None:
        with pytest.raises(InvalidFilterError):
            field_expression(COMPANY, "address.ci'ty")


class TestCompileFilter:
    def test_empty(self) -> None:
        assert _compile({}) == ([], {})

    def test_equality(self) -> None:
        assert _compile({"name": "Acme"}) == (['"name" = :p0'], {"p0": "Acme"})

    def test_null(self) -> None:
        assert _compile({"accountOwnerId": None}) == (['"accountOwnerId" IS NULL'], {})

    def test_neq_null(self) -> None:
        clauses, _ = _compile({"accountOwnerId": {"neq": None}})
        assert clauses == ['"accountOwnerId" IS NOT NULL']

    def test_comparisons(self) -> None:
        clauses, params = _compile({"employees": {"gte": 10, "lt": 100}})
        assert clauses == ['"employees" >= :p0', '"employees" < :p1']
        assert params == {"p0": 10, "p1": 100}

    def test_comparison_needs_value(self) -> None:
        with pytest.raises(InvalidFilterError, match="needs a value"):
            _compile({"employees": {"gt": None}})

    def test_in(self) -> None:
        clauses, params = _compile({"status": {"in": ["TODO", "DONE"]}}, TASK)
        assert clauses == ['"status" IN (:p0, :p1)']
        assert params == {"p0": "TODO", "p1": "DONE"}

    def test_empty_in_matches_nothing(self) -> None:
        assert _compile({"name": {"in": []}}) == (["0"], {})

    def test_in_needs_list(self) -> None:
        with pytest.raises(InvalidFilterError, match="needs a list"):
            _compile({"name": {"in": "Acme"}})

    def test_like_escapes_operand(self) -> None:
        clauses, params = _compile({"name": {"like": "50%"}})
        assert clauses == ["LOWER(\"name\") LIKE LOWER(:p0) ESCAPE '\\'"]
        assert params == {"p0": "%50\\%%"}

    def test_like_needs_string(self) -> None:
        with pytest.raises(InvalidFilterError):
            _compile({"name": {"like": 5}})

    def test_prefix_and_suffix_patterns(self) -> None:
        clauses, params = _compile({"name": {"starts_with": "a_", "ends_with": "co"}})
        assert clauses == [
            "LOWER(\"name\") LIKE LOWER(:p0) ESCAPE '\\'",
            "LOWER(\"name\") LIKE LOWER(:p1) ESCAPE '\\'",
        ]
        assert params == {"p0": "a\\_%", "p1": "%co"}

    def test_ieq(self) -> None:
        assert _compile({"name": {"ieq": "ACME"}}) == (
            ['LOWER("name") = LOWER(:p0)'],
            {"p0": "ACME"},
        )

    @pytest.mark.parametrize("operator", ["ieq", "starts_with", "ends_with"])
    def test_text_operators_need_string(self, operator: str) -> None:
        with pytest.raises(InvalidFilterError, match="needs a string"):
            _compile({"name": {operator: 5}})

    def test_length(self) -> None:
        assert _compile({"workPolicy": {"length": 2}}) == (
            ['json_array_length("workPolicy") = :p0'],
            {"p0": 2},
        )

    @pytest.mark.parametrize("operand", [-1, True, "2", 1.5, None])
    def test_length_needs_non_negative_integer(self, operand: object) -> None:
        with pytest.raises(InvalidFilterError, match="non-negative integer"):
            _compile({"workPolicy": {"length": operand}})

    def test_length_on_plain_column(self) -> None:
        with pytest.raises(InvalidFilterError, match="needs a list column"):
            _compile({"name": {"length": 1}})

    @pytest.mark.parametrize(
        "condition",
        [
            {"name": {"eq": ["Acme"]}},
            {"name": ["Acme"]},
            {"name": {"neq": {"a": 1}}},
            {"address.city": {"in": [{}]}},
            {"address.city": {"gt": {"a": 1}}},
            {"workPolicy": {"contains": ["REMOTE"]}},
            {"workPolicy": {"contains_any": [{"a": 1}]}},
        ],
    )
    def test_non_scalar_operand_rejected(self, condition: dict) -> None:
        with pytest.raises(InvalidFilterError, match="must be a scalar"):
            _compile(condition)

    def test_false_also_matches_unset_boolean(self) -> None:
        expected = (
            ['("idealCustomerProfile" = :p0 OR "idealCustomerProfile" IS NULL)'],
            {"p0": 0},
        )
        assert _compile({"idealCustomerProfile": False}) == expected
        assert _compile({"idealCustomerProfile": {"eq": False}}) == expected

    def test_true_does_not_match_unset_boolean(self) -> None:
        assert _compile({"idealCustomerProfile": True}) == (
            ['"idealCustomerProfile" = :p0'],
            {"p0": 1},
        )

    def test_literals_go_through_transformer(self) -> None:
        _, params = _compile({"idealCustomerProfile": True})
        assert params == {"p0": 1}
        _, params = _compile({"dueAt": {"lt": datetime(2024, 1, 1, tzinfo=UTC)}}, TASK)
        assert params == {"p0": "2024-01-01T00:00:00.000Z"}

    def test_json_path_operand_not_transformed(self) -> None:
        clauses, params = _compile({"address.city": "Paris"})
        assert clauses == ["json_extract(\"address\", '$.city') = :p0"]
        assert params == {"p0": "Paris"}

    def test_list_operators(self) -> None:
        clauses, params = _compile({"workPolicy": {"contains": "REMOTE"}})
        assert clauses[0].startswith("EXISTS (SELECT 1 FROM json_each(\"workPolicy\")")
        assert params == {"p0": "REMOTE"}
        clauses, _ = _compile({"workPolicy": {"is_empty": True}})
        assert clauses == ['("workPolicy" IS NULL OR json_array_length("workPolicy") = 0)']

    def test_list_operator_on_plain_column(self) -> None:
        with pytest.raises(InvalidFilterError, match="needs a list column"):
            _compile({"name": {"contains": "A"}})

    def test_unknown_operator(self) -> None:
        with pytest.raises(InvalidFilterError, match="Unknown operator"):
            _compile({"name": {"regex": "A.*"}})

    def test_empty_operator_set(self) -> None:
        with pytest.raises(InvalidFilterError, match="Empty operator set"):
            _compile({"name": {}})

    @pytest.mark.parametrize("key", ["tenantId", "tenantId.x"])
    def test_tenant_column_rejected(self, key: str) -> None:
        with pytest.raises(InvalidFilterError, match="Tenant scoping"):
            _compile({key: "other"})


class TestCompileOrderBy:
    def test_explicit_nulls(self) -> None:
        sql = compile_order_by(
            TASK,
            [OrderSpec(field="dueAt"), OrderSpec(field="title", direction="desc")],
        )
        assert sql == '"dueAt" ASC NULLS FIRST, "title" DESC NULLS LAST'

    def test_json_path_order(self) -> None:
        sql = compile_order_by(
            STANDARD_REGISTRY.get("person"), [OrderSpec(field="name.lastName", nulls="last")]
        )
        assert sql == "json_extract(\"name\", '$.lastName') ASC NULLS LAST"

    def test_unknown_field(self) -> None:
        with pytest.raises(InvalidFilterError):
            compile_order_by(TASK, [OrderSpec(field="priority")])
