"""Tenant-scoped CRUD and cursor pagination over the entity tables."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from edgecrm.domain.entities import (
    CREATED_AT,
    DELETED_AT,
    ID_COLUMN,
    STANDARD_REGISTRY,
    UPDATED_AT,
    EntityDefinition,
    EntityRegistry,
)
from edgecrm.domain.errors import InvalidPaginationError, InvalidRecordError
from edgecrm.domain.ids import generate_record_id, validate_record_id
from edgecrm.domain.transformers import format_timestamp
from edgecrm.domain.types import (
    Connection,
    Edge,
    FilterCondition,
    MutationOperation,
    MutationResult,
    OrderSpec,
    PageInfo,
)
from edgecrm.infrastructure.database.adapter import StatementAdapter
from edgecrm.infrastructure.database.filters import field_expression
from edgecrm.infrastructure.repositories.pagination import (
    ORDER_KEY_PREFIX,
    cursor_for_row,
    decode_cursor,
    keyset_predicate,
    order_key,
    resolve_order,
)
from edgecrm.infrastructure.tenancy import ScopedQuery, TenantScope, insert_statement

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RecordRepository:
    """Encapsulates SQL for reading and writing entity rows.

    Every method takes the tenant id first. Statements are built through
    :class:`~edgecrm.infrastructure.tenancy.ScopedQuery`, so no method can
    read or write another tenant's rows.
    """

    def __init__(
        self,
        adapter: StatementAdapter,
        registry: EntityRegistry = STANDARD_REGISTRY,
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._adapter = adapter
        self._registry = registry
        self._default_page_size = default_page_size
        # limit + 1 rows are fetched per page; stay under the adapter row cap.
        self._max_page_size = max(1, min(max_page_size, adapter.max_rows - 1))
        self._clock = clock

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_many(
        self,
        tenant_id: str,
        entity: str,
        *,
        filter: FilterCondition | None = None,
        order_by: list[OrderSpec] | None = None,
        first: int | None = None,
        last: int | None = None,
        after: str | None = None,
        before: str | None = None,
        with_total_count: bool = False,
    ) -> Connection:
        """Return one page of active rows matching *filter*.

        Forward pages use ``first``/``after``; backward pages use
        ``last``/``before``. Without either size the default page size
        applies, walking forward.
        """
        return self._find_many(
            tenant_id,
            entity,
            filter=filter,
            order_by=order_by,
            first=first,
            last=last,
            after=after,
            before=before,
            with_total_count=with_total_count,
            include_deleted=False,
        )

    def find_many_with_deleted(
        self,
        tenant_id: str,
        entity: str,
        *,
        filter: FilterCondition | None = None,
        order_by: list[OrderSpec] | None = None,
        first: int | None = None,
        last: int | None = None,
        after: str | None = None,
        before: str | None = None,
        with_total_count: bool = False,
    ) -> Connection:
        """Like :meth:`find_many`, including soft-deleted rows."""
        return self._find_many(
            tenant_id,
            entity,
            filter=filter,
            order_by=order_by,
            first=first,
            last=last,
            after=after,
            before=before,
            with_total_count=with_total_count,
            include_deleted=True,
        )

    def find_one(
        self, tenant_id: str, entity: str, filter: FilterCondition | None = None
    ) -> dict[str, Any] | None:
        """First active row matching *filter* under the default ordering."""
        return self._find_one(tenant_id, entity, filter, include_deleted=False)

    def find_one_with_deleted(
        self, tenant_id: str, entity: str, filter: FilterCondition | None = None
    ) -> dict[str, Any] | None:
        return self._find_one(tenant_id, entity, filter, include_deleted=True)

    def find_by_id(
        self, tenant_id: str, entity: str, record_id: str, *, include_deleted: bool = False
    ) -> dict[str, Any] | None:
        definition = self._registry.get(entity)
        query = ScopedQuery(TenantScope(tenant_id), definition, include_deleted=include_deleted)
        stmt = query.where_id(record_id).select(limit=1)
        row = self._adapter.query_one(stmt.sql, stmt.params)
        return definition.deserialize_row(row) if row is not None else None

    def count(self, tenant_id: str, entity: str, filter: FilterCondition | None = None) -> int:
        """Count active rows matching *filter*."""
        definition = self._registry.get(entity)
        stmt = ScopedQuery(TenantScope(tenant_id), definition).filter(filter).count()
        row = self._adapter.query_one(stmt.sql, stmt.params)
        return int(row["total"]) if row else 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_one(self, tenant_id: str, entity: str, data: Mapping[str, Any]) -> MutationResult:
        """Insert one row. The id is generated unless *data* supplies a valid one."""
        scope = TenantScope(tenant_id)
        definition = self._registry.get(entity)
        row = self._new_row(definition, data, self._now())
        stmt = insert_statement(scope, definition, row)
        self._adapter.execute(stmt.sql, stmt.params)
        record = self._materialize(definition, scope.scope_write(row))
        logger.debug("Created %s %s for tenant %s", entity, record[ID_COLUMN], tenant_id)
        return MutationResult(
            entity=entity,
            operation=MutationOperation.CREATED,
            tenant_id=tenant_id,
            record_ids=[record[ID_COLUMN]],
            records=[record],
        )

    def create_many(
        self, tenant_id: str, entity: str, rows: list[Mapping[str, Any]]
    ) -> MutationResult:
        """Insert *rows* in one atomic batch: all are created or none are."""
        scope = TenantScope(tenant_id)
        definition = self._registry.get(entity)
        now = self._now()
        new_rows = [scope.scope_write(self._new_row(definition, data, now)) for data in rows]
        if new_rows:
            with self._adapter.transaction() as txn:
                for row in new_rows:
                    txn.add_statement(insert_statement(scope, definition, row))
        records = [self._materialize(definition, row) for row in new_rows]
        logger.debug("Created %d %s rows for tenant %s", len(records), entity, tenant_id)
        return MutationResult(
            entity=entity,
            operation=MutationOperation.CREATED,
            tenant_id=tenant_id,
            record_ids=[r[ID_COLUMN] for r in records],
            records=records,
        )

    def update_one(
        self, tenant_id: str, entity: str, record_id: str, data: Mapping[str, Any]
    ) -> MutationResult | None:
        """Apply *data* to one active row and return it re-read.

        Returns ``None`` when no active row with *record_id* exists for the
        tenant.
        """
        scope = TenantScope(tenant_id)
        definition = self._registry.get(entity)
        values = {**definition.serialize_data(data), UPDATED_AT: self._now()}
        stmt = ScopedQuery(scope, definition).where_id(record_id).update(values)
        if self._adapter.execute(stmt.sql, stmt.params).changed_count == 0:
            return None
        record = self.find_by_id(tenant_id, entity, record_id)
        if record is None:
            return None
        return MutationResult(
            entity=entity,
            operation=MutationOperation.UPDATED,
            tenant_id=tenant_id,
            record_ids=[record_id],
            records=[record],
        )

    def update_many(
        self,
        tenant_id: str,
        entity: str,
        filter: FilterCondition | None,
        data: Mapping[str, Any],
    ) -> MutationResult:
        """Apply *data* to every active row matching *filter*."""
        scope = TenantScope(tenant_id)
        definition = self._registry.get(entity)
        values = {**definition.serialize_data(data), UPDATED_AT: self._now()}

        ids_stmt = ScopedQuery(scope, definition).filter(filter).select(columns='"id"')
        ids = [row[ID_COLUMN] for row in self._adapter.query(ids_stmt.sql, ids_stmt.params)]
        records: list[dict[str, Any]] = []
        if ids:
            stmt = ScopedQuery(scope, definition).filter(filter).where_ids(ids).update(values)
            self._adapter.execute(stmt.sql, stmt.params)
            read = ScopedQuery(scope, definition).where_ids(ids).select()
            rows = self._adapter.query(read.sql, read.params)
            records = [definition.deserialize_row(row) for row in rows]
        return MutationResult(
            entity=entity,
            operation=MutationOperation.UPDATED,
            tenant_id=tenant_id,
            record_ids=[r[ID_COLUMN] for r in records],
            records=records,
        )

    def soft_delete_one(
        self, tenant_id: str, entity: str, record_id: str
    ) -> MutationResult | None:
        """Mark one row deleted. Deleting an already deleted row changes nothing.

        Returns the row as currently stored, or ``None`` when the tenant has
        no row with *record_id*.
        """
        scope = TenantScope(tenant_id)
        definition = self._registry.get(entity)
        now = self._now()
        stmt = (
            ScopedQuery(scope, definition)
            .where_id(record_id)
            .update({DELETED_AT: now, UPDATED_AT: now})
        )
        changed = self._adapter.execute(stmt.sql, stmt.params).changed_count
        record = self.find_by_id(tenant_id, entity, record_id, include_deleted=True)
        if record is None:
            return None
        if changed:
            logger.debug("Soft-deleted %s %s for tenant %s", entity, record_id, tenant_id)
        return MutationResult(
            entity=entity,
            operation=MutationOperation.DELETED,
            tenant_id=tenant_id,
            record_ids=[record_id],
            records=[record],
        )

    def restore_one(self, tenant_id: str, entity: str, record_id: str) -> MutationResult | None:
        """Clear ``deletedAt`` on a soft-deleted row. ``None`` if there is no such row."""
        scope = TenantScope(tenant_id)
        definition = self._registry.get(entity)
        stmt = (
            ScopedQuery(scope, definition, include_deleted=True)
            .where_id(record_id)
            .where_deleted()
            .update({DELETED_AT: None, UPDATED_AT: self._now()})
        )
        if self._adapter.execute(stmt.sql, stmt.params).changed_count == 0:
            return None
        record = self.find_by_id(tenant_id, entity, record_id)
        if record is None:
            return None
        return MutationResult(
            entity=entity,
            operation=MutationOperation.RESTORED,
            tenant_id=tenant_id,
            record_ids=[record_id],
            records=[record],
        )

    def hard_delete_one(self, tenant_id: str, entity: str, record_id: str) -> bool:
        """Remove one row, soft-deleted or not. True when a row was removed."""
        definition = self._registry.get(entity)
        stmt = (
            ScopedQuery(TenantScope(tenant_id), definition, include_deleted=True)
            .where_id(record_id)
            .delete()
        )
        removed = self._adapter.execute(stmt.sql, stmt.params).changed_count > 0
        if removed:
            logger.debug("Destroyed %s %s for tenant %s", entity, record_id, tenant_id)
        return removed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find_many(
        self,
        tenant_id: str,
        entity: str,
        *,
        filter: FilterCondition | None,
        order_by: list[OrderSpec] | None,
        first: int | None,
        last: int | None,
        after: str | None,
        before: str | None,
        with_total_count: bool,
        include_deleted: bool,
    ) -> Connection:
        if first is not None and last is not None:
            raise InvalidPaginationError("Pass either first or last, not both")
        backward = last is not None
        limit = self._page_size(last if backward else first)

        scope = TenantScope(tenant_id)
        definition = self._registry.get(entity)
        specs = resolve_order(order_by)
        query = ScopedQuery(scope, definition, include_deleted=include_deleted).filter(filter)

        total_count: int | None = None
        if with_total_count:
            count_stmt = query.count()
            row = self._adapter.query_one(count_stmt.sql, count_stmt.params)
            total_count = int(row["total"]) if row else 0

        if after is not None:
            values = decode_cursor(after, specs)
            query.where(keyset_predicate(definition, specs, values, query.binder))
        if before is not None:
            values = decode_cursor(before, specs)
            reverse = [spec.reversed() for spec in specs]
            query.where(keyset_predicate(definition, reverse, values, query.binder))

        for i, spec in enumerate(specs):
            query.add_column(field_expression(definition, spec.field)[0], order_key(i))
        walk = [spec.reversed() for spec in specs] if backward else specs
        stmt = query.select(order_by=walk, limit=limit + 1)
        rows = self._adapter.query(stmt.sql, stmt.params)

        has_extra = len(rows) > limit
        rows = rows[:limit]
        if backward:
            rows.reverse()

        edges = [
            Edge(node=self._node(definition, row), cursor=cursor_for_row(row, specs))
            for row in rows
        ]
        if backward:
            page_info = PageInfo(has_next_page=before is not None, has_previous_page=has_extra)
        else:
            page_info = PageInfo(has_next_page=has_extra, has_previous_page=after is not None)
        page_info = page_info.model_copy(
            update={
                "start_cursor": edges[0].cursor if edges else None,
                "end_cursor": edges[-1].cursor if edges else None,
            }
        )
        return Connection(edges=edges, page_info=page_info, total_count=total_count)

    def _find_one(
        self,
        tenant_id: str,
        entity: str,
        filter: FilterCondition | None,
        *,
        include_deleted: bool,
    ) -> dict[str, Any] | None:
        definition = self._registry.get(entity)
        query = ScopedQuery(TenantScope(tenant_id), definition, include_deleted=include_deleted)
        stmt = query.filter(filter).select(order_by=resolve_order(None), limit=1)
        row = self._adapter.query_one(stmt.sql, stmt.params)
        return definition.deserialize_row(row) if row is not None else None

    def _page_size(self, requested: int | None) -> int:
        if requested is None:
            return min(self._default_page_size, self._max_page_size)
        if requested <= 0:
            raise InvalidPaginationError(f"Page size must be positive, got {requested}")
        return min(requested, self._max_page_size)

    def _now(self) -> str:
        return format_timestamp(self._clock())

    def _new_row(
        self, definition: EntityDefinition, data: Mapping[str, Any], now: str
    ) -> dict[str, Any]:
        payload = dict(data)
        record_id = payload.pop(ID_COLUMN, None) or generate_record_id()
        if not isinstance(record_id, str) or not validate_record_id(record_id):
            raise InvalidRecordError(f"Invalid record id: {record_id!r}")
        return {
            ID_COLUMN: record_id,
            **definition.column_defaults(),
            **definition.serialize_data(payload),
            CREATED_AT: now,
            UPDATED_AT: now,
        }

    @staticmethod
    def _materialize(definition: EntityDefinition, row: Mapping[str, Any]) -> dict[str, Any]:
        """Deserialize a row just written; columns it does not name read as NULL."""
        full = dict.fromkeys(definition.all_columns)
        full.update(row)
        return definition.deserialize_row(full)

    @staticmethod
    def _node(definition: EntityDefinition, row: Mapping[str, Any]) -> dict[str, Any]:
        stored = {k: v for k, v in row.items() if not k.startswith(ORDER_KEY_PREFIX)}
        return definition.deserialize_row(stored)
