"""Resolver tables generated from the entity registry.

Per-entity handlers are produced by a factory instead of being written by
hand. For ``company`` the tables hold::

    Query:    company, companies, search
    Mutation: createCompany, createCompanies, updateCompany,
              deleteCompany, restoreCompany, destroyCompany

Every handler takes the tenant id first and keyword arguments after, and
returns a :class:`ServiceResult`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from edgecrm.domain.entities import STANDARD_REGISTRY, EntityDefinition, EntityRegistry
from edgecrm.services.records import RecordService
from edgecrm.services.result import ServiceResult

Resolver = Callable[..., ServiceResult]
ResolverTable = dict[str, dict[str, Resolver]]


def resolver_names(entity: EntityDefinition) -> dict[str, str]:
    """Operation → handler name for *entity*."""
    singular = entity.name[0].upper() + entity.name[1:]
    plural = entity.label_plural.replace(" ", "")
    return {
        "find_one": entity.name,
        "find_many": plural[0].lower() + plural[1:],
        "create_one": f"create{singular}",
        "create_many": f"create{plural}",
        "update_one": f"update{singular}",
        "delete_one": f"delete{singular}",
        "restore_one": f"restore{singular}",
        "destroy_one": f"destroy{singular}",
    }


def build_entity_resolvers(service: RecordService, entity: EntityDefinition) -> ResolverTable:
    name = entity.name
    names = resolver_names(entity)

    def find_one(tenant_id: str, *, id: str | None = None, **kwargs: Any) -> ServiceResult:
        return service.find_one(tenant_id, name, record_id=id, **kwargs)

    def find_many(tenant_id: str, **kwargs: Any) -> ServiceResult:
        return service.find_many(tenant_id, name, **kwargs)

    def create_one(tenant_id: str, *, data: dict[str, Any]) -> ServiceResult:
        return service.create_one(tenant_id, name, data)

    def create_many(tenant_id: str, *, data: list[dict[str, Any]]) -> ServiceResult:
        return service.create_many(tenant_id, name, data)

    def update_one(tenant_id: str, *, id: str, data: dict[str, Any]) -> ServiceResult:
        return service.update_one(tenant_id, name, id, data)

    def delete_one(tenant_id: str, *, id: str) -> ServiceResult:
        return service.delete_one(tenant_id, name, id)

    def restore_one(tenant_id: str, *, id: str) -> ServiceResult:
        return service.restore_one(tenant_id, name, id)

    def destroy_one(tenant_id: str, *, id: str) -> ServiceResult:
        return service.destroy_one(tenant_id, name, id)

    return {
        "Query": {
            names["find_one"]: find_one,
            names["find_many"]: find_many,
        },
        "Mutation": {
            names["create_one"]: create_one,
            names["create_many"]: create_many,
            names["update_one"]: update_one,
            names["delete_one"]: delete_one,
            names["restore_one"]: restore_one,
            names["destroy_one"]: destroy_one,
        },
    }


def build_resolvers(
    service: RecordService, registry: EntityRegistry = STANDARD_REGISTRY
) -> ResolverTable:
    """Merge the handlers of every registered entity plus ``search``."""
    table: ResolverTable = {"Query": {}, "Mutation": {}}
    for entity in registry:
        resolvers = build_entity_resolvers(service, entity)
        for kind, handlers in resolvers.items():
            clashes = set(handlers) & set(table[kind])
            if clashes:
                raise ValueError(f"Duplicate resolver names for {entity.name}: {sorted(clashes)}")
            table[kind].update(handlers)

    def search(
        tenant_id: str,
        *,
        query: str,
        entities: list[str] | None = None,
        limit: int | None = None,
    ) -> ServiceResult:
        return service.search(tenant_id, query, entities=entities, limit=limit)

    table["Query"]["search"] = search
    return table
