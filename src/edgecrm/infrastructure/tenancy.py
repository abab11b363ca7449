"""Tenant scoping for every entity statement.

:class:`ScopedQuery` is the only way the data layer builds entity SQL. Its
constructor requires a :class:`TenantScope` and emits the tenant predicate
as the first condition of the ``WHERE`` clause. Caller conditions are added
afterwards, each wrapped in parentheses and AND-ed, so they can narrow the
result but never widen it past the tenant.

Soft-deleted rows (``deletedAt IS NOT NULL``) are excluded unless the query
is built with ``include_deleted=True``, which only the explicit
``*_with_deleted`` operations do.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Self

from edgecrm.domain.entities import (
    DELETED_AT,
    ID_COLUMN,
    TENANT_COLUMN,
    EntityDefinition,
)
from edgecrm.domain.errors import TenantRequiredError
from edgecrm.domain.types import OrderSpec
from edgecrm.infrastructure.database.adapter import Statement
from edgecrm.infrastructure.database.filters import compile_filter, compile_order_by
from edgecrm.infrastructure.database.fragments import ParamBinder, quote_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantScope:
    """The tenant every statement of a request is bound to."""

    tenant_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.tenant_id, str) or not self.tenant_id.strip():
            raise TenantRequiredError("A tenant id is required for every data operation")

    def scope_filter(self, condition: Mapping[str, Any] | None) -> dict[str, Any]:
        """Return *condition* with the tenant predicate added.

        The result is meant for inspection and logging; statements are
        built by :class:`ScopedQuery`, which adds the predicate itself.
        """
        return {TENANT_COLUMN: self.tenant_id, **dict(condition or {})}

    def scope_write(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Return *row* with ``tenantId`` forced to this tenant."""
        supplied = row.get(TENANT_COLUMN)
        if supplied is not None and supplied != self.tenant_id:
            logger.warning("Overriding tenantId on write for tenant %s", self.tenant_id)
        return {**dict(row), TENANT_COLUMN: self.tenant_id}


def insert_statement(
    scope: TenantScope, entity: EntityDefinition, row: Mapping[str, Any]
) -> Statement:
    """Build an ``INSERT`` for one row, with ``tenantId`` taken from *scope*."""
    scoped = scope.scope_write(row)
    binder = ParamBinder()
    columns = ", ".join(quote_identifier(name) for name in scoped)
    values = ", ".join(binder.bind(value) for value in scoped.values())
    sql = f"INSERT INTO {quote_identifier(entity.table)} ({columns}) VALUES ({values})"
    return Statement(sql, binder.params)


class ScopedQuery:
    """WHERE-clause builder that always starts with the tenant predicate.

    Usage::

        q = ScopedQuery(scope, entity).filter({"name": {"like": "acme"}})
        stmt = q.select(order_by=[OrderSpec(field="name")], limit=51)
    """

    def __init__(
        self,
        scope: TenantScope,
        entity: EntityDefinition,
        *,
        include_deleted: bool = False,
    ) -> None:
        self.scope = scope
        self.entity = entity
        self.include_deleted = include_deleted
        self.binder = ParamBinder()
        self._conditions: list[str] = [
            f"{quote_identifier(TENANT_COLUMN)} = {self.binder.bind(scope.tenant_id)}"
        ]
        if not include_deleted:
            self._conditions.append(f"{quote_identifier(DELETED_AT)} IS NULL")
        self._extra_columns: list[str] = []

    @property
    def table(self) -> str:
        return quote_identifier(self.entity.table)

    @property
    def conditions(self) -> tuple[str, ...]:
        return tuple(self._conditions)

    # -- narrowing ---------------------------------------------------------

    def filter(self, condition: Mapping[str, Any] | None) -> Self:
        """AND a caller filter onto the query."""
        for clause in compile_filter(self.entity, condition, self.binder):
            self._conditions.append(f"({clause})")
        return self

    def where(self, clause: str) -> Self:
        """AND a pre-built predicate whose placeholders came from :attr:`binder`."""
        self._conditions.append(f"({clause})")
        return self

    def where_id(self, record_id: str) -> Self:
        return self.where(f"{quote_identifier(ID_COLUMN)} = {self.binder.bind(record_id)}")

    def where_ids(self, record_ids: list[str]) -> Self:
        if not record_ids:
            return self.where("0")
        placeholders = ", ".join(self.binder.bind_many(list(record_ids)))
        return self.where(f"{quote_identifier(ID_COLUMN)} IN ({placeholders})")

    def where_active(self) -> Self:
        """Restrict to rows that are not soft-deleted, even in an include-deleted query."""
        if self.include_deleted:
            self._conditions.append(f"{quote_identifier(DELETED_AT)} IS NULL")
        return self

    def where_deleted(self) -> Self:
        self._conditions.append(f"{quote_identifier(DELETED_AT)} IS NOT NULL")
        return self

    def add_column(self, expression: str, alias: str) -> Self:
        """Select *expression* as *alias* next to the row columns."""
        self._extra_columns.append(f"{expression} AS {quote_identifier(alias)}")
        return self

    # -- statements --------------------------------------------------------

    @property
    def where_sql(self) -> str:
        return " AND ".join(self._conditions)

    def select(
        self,
        *,
        order_by: list[OrderSpec] | None = None,
        limit: int | None = None,
        columns: str = "*",
    ) -> Statement:
        selected = ", ".join([columns, *self._extra_columns])
        sql = f"SELECT {selected} FROM {self.table} WHERE {self.where_sql}"
        if order_by:
            sql += f" ORDER BY {compile_order_by(self.entity, order_by)}"
        if limit is not None:
            sql += f" LIMIT {self.binder.bind(int(limit))}"
        return Statement(sql, dict(self.binder.params))

    def count(self) -> Statement:
        sql = f"SELECT COUNT(*) AS total FROM {self.table} WHERE {self.where_sql}"
        return Statement(sql, dict(self.binder.params))

    def update(self, values: Mapping[str, Any]) -> Statement:
        if not values:
            raise ValueError("update needs at least one column")
        if TENANT_COLUMN in values:
            raise ValueError("tenantId cannot be reassigned")
        assignments = ", ".join(
            f"{quote_identifier(name)} = {self.binder.bind(value)}"
            for name, value in values.items()
        )
        sql = f"UPDATE {self.table} SET {assignments} WHERE {self.where_sql}"
        return Statement(sql, dict(self.binder.params))

    def delete(self) -> Statement:
        sql = f"DELETE FROM {self.table} WHERE {self.where_sql}"
        return Statement(sql, dict(self.binder.params))
