"""Compile caller filter conditions and orderings into SQL.

A filter maps a field to a literal (equality), ``None`` (``IS NULL``) or an
operator dict::

    {"name": "Acme"}
    {"deletedBy": None}
    {"employees": {"gte": 10}}
    {"stage": {"in": ["NEW", "MEETING"]}}
    {"name": {"like": "acm"}}                 # case-insensitive contains
    {"name": {"ieq": "acme"}}                 # case-insensitive equality
    {"name": {"starts_with": "ac"}}           # also ends_with; case-insensitive
    {"workPolicy": {"contains": "REMOTE"}}    # list columns only
    {"workPolicy": {"length": 2}}             # list columns only
    {"address.city": "Paris"}                 # field inside a JSON document

Literal operands for plain columns go through the column's transformer, so
``True`` compares as ``1`` and a ``datetime`` as the stored timestamp text.
Every bound operand must end up a scalar (text, number or NULL); anything
else is rejected as an invalid filter before it reaches the driver.

Filters never carry tenant scoping; see :mod:`edgecrm.infrastructure.tenancy`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from edgecrm.domain.entities import TENANT_COLUMN, ColumnKind, EntityDefinition, split_field
from edgecrm.domain.errors import InvalidFilterError
from edgecrm.domain.types import NullsPlacement, OrderSpec
from edgecrm.infrastructure.database.fragments import (
    ParamBinder,
    array_contains,
    array_contains_all,
    array_contains_any,
    array_is_empty,
    array_is_not_empty,
    array_length,
    case_insensitive_equals,
    case_insensitive_like,
    extract_path,
    like_contains,
    like_prefix,
    like_suffix,
    quote_identifier,
)

_COMPARISONS = {"gt": ">", "gte": ">=", "lt": "<", "lte": "<="}
_LIST_OPERATORS = frozenset({"contains", "contains_any", "contains_all", "is_empty", "length"})
_TEXT_PATTERNS = {"like": like_contains, "starts_with": like_prefix, "ends_with": like_suffix}
OPERATORS = frozenset({"eq", "neq", "in", "ieq", *_TEXT_PATTERNS, *_COMPARISONS, *_LIST_OPERATORS})


def field_expression(entity: EntityDefinition, name: str) -> tuple[str, bool]:
    """SQL expression for *name* and whether it addresses a JSON sub-field.

    Raises:
        InvalidFilterError: Unknown column, or a path into a non-JSON column.
    """
    column, path = split_field(name)
    if not entity.has_column(column):
        raise InvalidFilterError(f"Unknown field for {entity.name}: {name}")
    try:
        if path:
            if entity.column(column).kind is not ColumnKind.JSON:
                raise InvalidFilterError(f"Field {column} of {entity.name} is not a document")
            return extract_path(column, path), True
        return quote_identifier(column), False
    except ValueError as exc:
        raise InvalidFilterError(str(exc)) from exc


def compile_filter(
    entity: EntityDefinition,
    condition: Mapping[str, Any] | None,
    binder: ParamBinder,
) -> list[str]:
    """Translate *condition* into AND-ed SQL predicates, binding values on *binder*."""
    if not condition:
        return []
    clauses: list[str] = []
    for name, value in condition.items():
        if split_field(name)[0] == TENANT_COLUMN:
            raise InvalidFilterError("Tenant scoping is applied by the data layer, not by filters")
        expr, is_path = field_expression(entity, name)
        column = split_field(name)[0]

        def encode(
            operand: Any, *, _name: str = name, _column: str = column, _is_path: bool = is_path
        ) -> Any:
            encoded = operand if _is_path else entity.serialize_value(_column, operand)
            return _scalar(_name, encoded)

        if isinstance(value, Mapping):
            if not value:
                raise InvalidFilterError(f"Empty operator set for {name}")
            for op, operand in value.items():
                clauses.append(_compile_operator(entity, name, expr, op, operand, encode, binder))
        elif value is None:
            clauses.append(f"{expr} IS NULL")
        else:
            clauses.append(_equals(entity, name, expr, encode(value), binder))
    return clauses


def _compile_operator(
    entity: EntityDefinition,
    name: str,
    expr: str,
    op: str,
    operand: Any,
    encode: Any,
    binder: ParamBinder,
) -> str:
    if op not in OPERATORS:
        raise InvalidFilterError(f"Unknown operator {op!r} for {name}")

    if op == "eq":
        if operand is None:
            return f"{expr} IS NULL"
        return _equals(entity, name, expr, encode(operand), binder)
    if op == "neq":
        if operand is None:
            return f"{expr} IS NOT NULL"
        return f"{expr} != {binder.bind(encode(operand))}"
    if op in _COMPARISONS:
        if operand is None:
            raise InvalidFilterError(f"Operator {op} on {name} needs a value")
        return f"{expr} {_COMPARISONS[op]} {binder.bind(encode(operand))}"
    if op == "in":
        values = _as_list(name, op, operand)
        if not values:
            return "0"
        placeholders = binder.bind_many([encode(v) for v in values])
        return f"{expr} IN ({', '.join(placeholders)})"
    if op in _TEXT_PATTERNS or op == "ieq":
        if not isinstance(operand, str):
            raise InvalidFilterError(f"Operator {op} on {name} needs a string")
        if op == "ieq":
            return case_insensitive_equals(expr, binder.bind(operand))
        return case_insensitive_like(expr, binder.bind(_TEXT_PATTERNS[op](operand)))

    # List operators work on the whole JSON array column.
    column, path = split_field(name)
    if path or entity.column(column).kind is not ColumnKind.LIST:
        raise InvalidFilterError(f"Operator {op} needs a list column, got {name}")
    if op == "contains":
        return array_contains(column, binder.bind(_scalar(name, operand)))
    if op == "contains_any":
        elements = [_scalar(name, v) for v in _as_list(name, op, operand)]
        return array_contains_any(column, binder.bind_many(elements))
    if op == "contains_all":
        elements = [_scalar(name, v) for v in _as_list(name, op, operand)]
        return array_contains_all(column, binder.bind_many(elements))
    if op == "length":
        if isinstance(operand, bool) or not isinstance(operand, int) or operand < 0:
            raise InvalidFilterError(f"Operator length on {name} needs a non-negative integer")
        return f"{array_length(column)} = {binder.bind(operand)}"
    # is_empty
    return array_is_empty(column) if operand else array_is_not_empty(column)


def _equals(
    entity: EntityDefinition, name: str, expr: str, encoded: Any, binder: ParamBinder
) -> str:
    """Equality that also matches NULL where NULL reads back as *encoded*."""
    clause = f"{expr} = {binder.bind(encoded)}"
    column, path = split_field(name)
    if not path and encoded is not None:
        transformer = entity.column(column).transformer
        reads_null_as = transformer.serialize(transformer.deserialize(None))
        if reads_null_as == encoded:
            return f"({clause} OR {expr} IS NULL)"
    return clause


def _scalar(name: str, value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float)):
        return value
    kind = type(value).__name__
    raise InvalidFilterError(f"Filter value for {name} must be a scalar, got {kind}")


def _as_list(name: str, op: str, operand: Any) -> list[Any]:
    if not isinstance(operand, (list, tuple, set, frozenset)):
        raise InvalidFilterError(f"Operator {op} on {name} needs a list")
    return list(operand)


def compile_order_by(entity: EntityDefinition, specs: list[OrderSpec]) -> str:
    """Render an ``ORDER BY`` body with explicit null placement for every term."""
    terms = []
    for spec in specs:
        expr, _ = field_expression(entity, spec.field)
        nulls = "NULLS FIRST" if spec.effective_nulls is NullsPlacement.FIRST else "NULLS LAST"
        terms.append(f"{expr} {spec.direction.value} {nulls}")
    return ", ".join(terms)
