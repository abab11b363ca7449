"""Keyword search fanned out over every searchable entity."""

from __future__ import annotations

import logging
from typing import Any

from edgecrm.domain.entities import ID_COLUMN, STANDARD_REGISTRY, EntityDefinition, EntityRegistry
from edgecrm.domain.errors import InvalidFilterError, InvalidPaginationError
from edgecrm.domain.types import SearchResult, SearchResultItem
from edgecrm.infrastructure.database.adapter import StatementAdapter
from edgecrm.infrastructure.database.errors import StorageError
from edgecrm.infrastructure.database.filters import field_expression
from edgecrm.infrastructure.database.fragments import case_insensitive_like, like_contains
from edgecrm.infrastructure.repositories.pagination import resolve_order
from edgecrm.infrastructure.tenancy import ScopedQuery, TenantScope

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 20
MAX_SEARCH_LIMIT = 100
SNIPPET_LENGTH = 120

_MATCH_PREFIX = "__match_"
_LABEL_PREFIX = "__label_"


class KeywordSearch:
    """Case-insensitive substring search across entities.

    Each entity is queried separately and the results are merged in memory.
    A failure in one entity is logged and reported as a warning; the other
    entities still contribute results.
    """

    def __init__(
        self,
        adapter: StatementAdapter,
        registry: EntityRegistry = STANDARD_REGISTRY,
        *,
        default_limit: int = DEFAULT_SEARCH_LIMIT,
        max_limit: int = MAX_SEARCH_LIMIT,
    ) -> None:
        self._adapter = adapter
        self._registry = registry
        self._default_limit = default_limit
        self._max_limit = max_limit

    def search(
        self,
        tenant_id: str,
        query: str,
        *,
        entities: list[str] | None = None,
        limit: int | None = None,
    ) -> SearchResult:
        scope = TenantScope(tenant_id)
        text = query.strip()
        if limit is not None and limit <= 0:
            raise InvalidPaginationError(f"Search limit must be positive, got {limit}")
        size = min(limit if limit is not None else self._default_limit, self._max_limit)
        if not text:
            return SearchResult(query=text)

        warnings: list[str] = []
        if entities is None:
            targets = self._registry.searchable()
        else:
            targets = []
            for name in entities:
                definition = self._registry.get(name)
                if definition.searchable_fields:
                    targets.append(definition)
                else:
                    warnings.append(f"{name} has no searchable fields")

        items: list[SearchResultItem] = []
        for definition in targets:
            try:
                items.extend(self._search_entity(scope, definition, text, size))
            except (StorageError, InvalidFilterError) as exc:
                logger.warning("Search over %s failed: %s", definition.name, exc)
                warnings.append(f"{definition.name}: {exc}")

        items.sort(key=lambda item: (-item.score, item.label.lower()))
        return SearchResult(query=text, items=items[:size], warnings=warnings)

    def _search_entity(
        self, scope: TenantScope, definition: EntityDefinition, text: str, limit: int
    ) -> list[SearchResultItem]:
        query = ScopedQuery(scope, definition)
        pattern = query.binder.bind(like_contains(text))

        matches = [field_expression(definition, f)[0] for f in definition.searchable_fields]
        query.where(" OR ".join(case_insensitive_like(expr, pattern) for expr in matches))
        for i, expr in enumerate(matches):
            query.add_column(expr, f"{_MATCH_PREFIX}{i}")
        for i, name in enumerate(definition.label_fields):
            query.add_column(field_expression(definition, name)[0], f"{_LABEL_PREFIX}{i}")

        stmt = query.select(
            columns=f'"{ID_COLUMN}"', order_by=resolve_order(None), limit=limit
        )
        rows = self._adapter.query(stmt.sql, stmt.params)
        return [
            SearchResultItem(
                entity=definition.name,
                record_id=str(row[ID_COLUMN]),
                label=_label(row, len(definition.label_fields)) or str(row[ID_COLUMN]),
                snippet=_snippet(row, len(matches), text),
            )
            for row in rows
        ]


def _label(row: dict[str, Any], count: int) -> str:
    parts = [row.get(f"{_LABEL_PREFIX}{i}") for i in range(count)]
    return " ".join(str(p) for p in parts if p not in (None, ""))


def _snippet(row: dict[str, Any], count: int, text: str) -> str:
    """The first matching field value, trimmed around the match."""
    needle = text.lower()
    for i in range(count):
        value = row.get(f"{_MATCH_PREFIX}{i}")
        if value is None:
            continue
        value = str(value)
        pos = value.lower().find(needle)
        if pos < 0:
            continue
        start = max(0, pos - SNIPPET_LENGTH // 4)
        snippet = value[start : start + SNIPPET_LENGTH]
        return ("…" if start else "") + snippet
    return ""
