"""Keyset pagination over an arbitrary ordering.

A cursor is URL-safe base64 of a small JSON document::

    {"o": [["name", "ASC", "FIRST"], ["id", "ASC", "FIRST"]],
     "v": ["Acme", "5b1f..."]}

``o`` is the ordering signature the cursor was produced under and ``v``
holds the row's value for every ordering term, in order. Decoding under a
different ordering is rejected, so a cursor can never silently resume a
page under a different sort.

Every ordering ends with ``id ASC`` so the tuple is unique per row and the
keyset predicate is strictly monotonic.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from edgecrm.domain.entities import CREATED_AT, ID_COLUMN, EntityDefinition
from edgecrm.domain.errors import InvalidCursorError
from edgecrm.domain.types import NullsPlacement, OrderSpec, SortDirection
from edgecrm.infrastructure.database.filters import field_expression
from edgecrm.infrastructure.database.fragments import ParamBinder

DEFAULT_ORDER = (OrderSpec(field=CREATED_AT, direction=SortDirection.DESC),)

# Row keys carrying ordering values; stripped before rows leave the repository.
ORDER_KEY_PREFIX = "__order_"


def resolve_order(order_by: list[OrderSpec] | None) -> list[OrderSpec]:
    """Apply the default ordering and append the ``id`` tiebreak."""
    specs = list(order_by) if order_by else list(DEFAULT_ORDER)
    if all(spec.field != ID_COLUMN for spec in specs):
        specs.append(OrderSpec(field=ID_COLUMN, direction=SortDirection.ASC))
    return specs


def order_signature(specs: list[OrderSpec]) -> list[list[str]]:
    return [spec.signature() for spec in specs]


def order_key(index: int) -> str:
    return f"{ORDER_KEY_PREFIX}{index}"


# ---------------------------------------------------------------------------
# Cursor codec
# ---------------------------------------------------------------------------


def encode_cursor(values: list[Any], specs: list[OrderSpec]) -> str:
    payload = {"o": order_signature(specs), "v": values}
    raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str, specs: list[OrderSpec]) -> list[Any]:
    """Return the ordering values stored in *cursor*.

    Raises:
        InvalidCursorError: Undecodable cursor, or one produced under a
            different ordering.
    """
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise InvalidCursorError("Cursor is malformed") from exc

    if not isinstance(payload, dict):
        raise InvalidCursorError("Cursor is malformed")
    values = payload.get("v")
    if payload.get("o") != order_signature(specs):
        raise InvalidCursorError("Cursor was produced under a different ordering")
    if not isinstance(values, list) or len(values) != len(specs):
        raise InvalidCursorError("Cursor does not match the ordering")
    if not all(value is None or isinstance(value, (str, int, float)) for value in values):
        raise InvalidCursorError("Cursor holds a non-scalar ordering value")
    return values


def cursor_for_row(row: dict[str, Any], specs: list[OrderSpec]) -> str:
    return encode_cursor([row.get(order_key(i)) for i in range(len(specs))], specs)


# ---------------------------------------------------------------------------
# Keyset predicate
# ---------------------------------------------------------------------------


def _after(expr: str, spec: OrderSpec, value: Any, binder: ParamBinder) -> str:
    """Predicate for "sorts strictly after *value*" on one term."""
    nulls_first = spec.effective_nulls is NullsPlacement.FIRST
    if value is None:
        return f"{expr} IS NOT NULL" if nulls_first else "0"
    op = ">" if spec.direction is SortDirection.ASC else "<"
    clause = f"{expr} {op} {binder.bind(value)}"
    if not nulls_first:
        clause = f"({clause} OR {expr} IS NULL)"
    return clause


def _equal(expr: str, value: Any, binder: ParamBinder) -> str:
    return f"{expr} IS NULL" if value is None else f"{expr} = {binder.bind(value)}"


def keyset_predicate(
    entity: EntityDefinition,
    specs: list[OrderSpec],
    values: list[Any],
    binder: ParamBinder,
) -> str:
    """Rows strictly after the tuple *values* under *specs*.

    Expands to the lexicographic chain
    ``a > va OR (a = va AND b > vb) OR (a = va AND b = vb AND c > vc) ...``
    with null placement honoured on every term.
    """
    exprs = [field_expression(entity, spec.field)[0] for spec in specs]
    branches = []
    for i, spec in enumerate(specs):
        parts = [_equal(exprs[j], values[j], binder) for j in range(i)]
        parts.append(_after(exprs[i], spec, values[i], binder))
        branches.append("(" + " AND ".join(parts) + ")")
    return " OR ".join(branches)
