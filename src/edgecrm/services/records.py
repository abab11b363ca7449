"""RecordService — tenant-scoped record operations and keyword search.

Thin layer over :class:`~edgecrm.infrastructure.repositories.RecordRepository`
and :class:`~edgecrm.infrastructure.repositories.KeywordSearch`:

- converts typed errors into failed :class:`ServiceResult` values
- turns "no such row" into a ``NOT_FOUND`` error
- notifies mutation listeners after every successful write
- renders rows JSON-ready (timestamps as ISO text, enums as values)
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import TypeAdapter, ValidationError

from edgecrm.domain.errors import InvalidFilterError
from edgecrm.domain.types import (
    FilterCondition,
    MutationOperation,
    MutationResult,
    OrderSpec,
)
from edgecrm.services.base import BaseService
from edgecrm.services.result import ServiceResult


def parse_order(order_by: Sequence[OrderSpec | str] | None) -> list[OrderSpec] | None:
    """Accept ``OrderSpec`` objects or ``"field[:asc|desc[:first|last]]"`` strings.

    Raises:
        InvalidFilterError: A term does not parse.
    """
    if not order_by:
        return None
    specs: list[OrderSpec] = []
    for term in order_by:
        if isinstance(term, OrderSpec):
            specs.append(term)
            continue
        try:
            specs.append(OrderSpec.parse(term))
        except ValidationError as exc:
            raise InvalidFilterError(f"Invalid order term: {term!r}") from exc
    return specs


_ROW = TypeAdapter(dict[str, Any])


def _mutation_data(mutation: MutationResult) -> dict[str, Any]:
    data = mutation.model_dump(mode="json")
    if len(mutation.records) == 1:
        data["record"] = data["records"][0]
    return data


class RecordService(BaseService):
    """Record operations for every registered entity."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_many(
        self,
        tenant_id: str,
        entity: str,
        *,
        filter: FilterCondition | None = None,
        order_by: Sequence[OrderSpec | str] | None = None,
        first: int | None = None,
        last: int | None = None,
        after: str | None = None,
        before: str | None = None,
        with_total_count: bool = False,
        include_deleted: bool = False,
    ) -> ServiceResult:
        """One page of rows as a connection (edges, page_info, total_count)."""
        op = "find_many"

        def _do() -> ServiceResult:
            repo = self._store.records
            find = repo.find_many_with_deleted if include_deleted else repo.find_many
            connection = find(
                tenant_id,
                entity,
                filter=filter,
                order_by=parse_order(order_by),
                first=first,
                last=last,
                after=after,
                before=before,
                with_total_count=with_total_count,
            )
            data = {"entity": entity, **connection.model_dump(mode="json")}
            return ServiceResult(
                ok=True, op=op, data=data, meta={"count": len(connection.edges)}
            )

        return self._run(op, _do, tenant_id=tenant_id, entity=entity)

    def find_one(
        self,
        tenant_id: str,
        entity: str,
        *,
        record_id: str | None = None,
        filter: FilterCondition | None = None,
        include_deleted: bool = False,
    ) -> ServiceResult:
        """One row by id or by filter. ``NOT_FOUND`` when nothing matches."""
        op = "find_one"

        def _do() -> ServiceResult:
            condition = dict(filter or {})
            if record_id is not None:
                condition["id"] = record_id
            repo = self._store.records
            find = repo.find_one_with_deleted if include_deleted else repo.find_one
            record = find(tenant_id, entity, condition)
            if record is None:
                return self._not_found(op, entity, record_id or "<filter>")
            data = {"entity": entity, "record": _ROW.dump_python(record, mode="json")}
            return ServiceResult(ok=True, op=op, data=data)

        return self._run(op, _do, tenant_id=tenant_id, entity=entity)

    def count(
        self, tenant_id: str, entity: str, *, filter: FilterCondition | None = None
    ) -> ServiceResult:
        op = "count"

        def _do() -> ServiceResult:
            total = self._store.records.count(tenant_id, entity, filter)
            return ServiceResult(ok=True, op=op, data={"entity": entity, "count": total})

        return self._run(op, _do, tenant_id=tenant_id, entity=entity)

    def search(
        self,
        tenant_id: str,
        query: str,
        *,
        entities: list[str] | None = None,
        limit: int | None = None,
    ) -> ServiceResult:
        """Keyword search across entities. Per-entity failures become warnings."""
        op = "search"

        def _do() -> ServiceResult:
            result = self._store.search.search(tenant_id, query, entities=entities, limit=limit)
            data = result.model_dump(mode="json", exclude={"warnings"})
            return ServiceResult(
                ok=True,
                op=op,
                data=data,
                warnings=list(result.warnings),
                meta={"count": len(result.items)},
            )

        return self._run(op, _do, tenant_id=tenant_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_one(
        self, tenant_id: str, entity: str, data: Mapping[str, Any]
    ) -> ServiceResult:
        op = "create_one"

        def _do() -> ServiceResult:
            mutation = self._store.records.create_one(tenant_id, entity, data)
            return self._mutated(op, mutation)

        return self._run(op, _do, tenant_id=tenant_id, entity=entity)

    def create_many(
        self, tenant_id: str, entity: str, rows: Sequence[Mapping[str, Any]]
    ) -> ServiceResult:
        """Create every row or none of them."""
        op = "create_many"

        def _do() -> ServiceResult:
            mutation = self._store.records.create_many(tenant_id, entity, list(rows))
            return self._mutated(op, mutation)

        return self._run(op, _do, tenant_id=tenant_id, entity=entity)

    def update_one(
        self, tenant_id: str, entity: str, record_id: str, data: Mapping[str, Any]
    ) -> ServiceResult:
        op = "update_one"

        def _do() -> ServiceResult:
            mutation = self._store.records.update_one(tenant_id, entity, record_id, data)
            if mutation is None:
                return self._not_found(op, entity, record_id)
            return self._mutated(op, mutation)

        return self._run(op, _do, tenant_id=tenant_id, entity=entity)

    def update_many(
        self,
        tenant_id: str,
        entity: str,
        data: Mapping[str, Any],
        *,
        filter: FilterCondition | None = None,
    ) -> ServiceResult:
        op = "update_many"

        def _do() -> ServiceResult:
            mutation = self._store.records.update_many(tenant_id, entity, filter, data)
            return self._mutated(op, mutation)

        return self._run(op, _do, tenant_id=tenant_id, entity=entity)

    def delete_one(self, tenant_id: str, entity: str, record_id: str) -> ServiceResult:
        """Soft delete. Deleting twice succeeds and returns the same row."""
        op = "delete_one"

        def _do() -> ServiceResult:
            mutation = self._store.records.soft_delete_one(tenant_id, entity, record_id)
            if mutation is None:
                return self._not_found(op, entity, record_id)
            return self._mutated(op, mutation)

        return self._run(op, _do, tenant_id=tenant_id, entity=entity)

    def restore_one(self, tenant_id: str, entity: str, record_id: str) -> ServiceResult:
        op = "restore_one"

        def _do() -> ServiceResult:
            mutation = self._store.records.restore_one(tenant_id, entity, record_id)
            if mutation is None:
                return self._not_found(op, entity, record_id)
            return self._mutated(op, mutation)

        return self._run(op, _do, tenant_id=tenant_id, entity=entity)

    def destroy_one(self, tenant_id: str, entity: str, record_id: str) -> ServiceResult:
        """Hard delete, soft-deleted rows included."""
        op = "destroy_one"

        def _do() -> ServiceResult:
            if not self._store.records.hard_delete_one(tenant_id, entity, record_id):
                return self._not_found(op, entity, record_id)
            mutation = MutationResult(
                entity=entity,
                operation=MutationOperation.DESTROYED,
                tenant_id=tenant_id,
                record_ids=[record_id],
            )
            return self._mutated(op, mutation)

        return self._run(op, _do, tenant_id=tenant_id, entity=entity)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _mutated(self, op: str, mutation: MutationResult) -> ServiceResult:
        warnings: list[str] = []
        self._notify(mutation, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data=_mutation_data(mutation),
            warnings=warnings,
            meta={"count": len(mutation.record_ids)},
        )
