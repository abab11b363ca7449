"""SQLAlchemy Core table definitions for the entity tables.

Tables are derived from :data:`edgecrm.domain.entities.STANDARD_REGISTRY`
so the physical column contract and the transformer contract cannot drift.
Only primitive column types are used: TEXT, INTEGER, REAL.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import REAL, Column, Index, Integer, MetaData, Table, Text, text
from sqlalchemy.types import TypeEngine

from edgecrm.domain.entities import (
    CREATED_AT,
    DELETED_AT,
    ID_COLUMN,
    STANDARD_REGISTRY,
    TENANT_COLUMN,
    UPDATED_AT,
    ColumnKind,
    ColumnSpec,
    EntityDefinition,
    EntityRegistry,
)

_PHYSICAL_TYPES: dict[ColumnKind, type[TypeEngine]] = {
    ColumnKind.TEXT: Text,
    ColumnKind.INTEGER: Integer,
    ColumnKind.REAL: REAL,
    ColumnKind.JSON: Text,
    ColumnKind.LIST: Text,
    ColumnKind.TIMESTAMP: Text,
    ColumnKind.BOOLEAN: Integer,
    ColumnKind.ENUM: Text,
}


def build_table(entity: EntityDefinition, metadata: MetaData) -> Table:
    """Create the Core ``Table`` for *entity* on *metadata*, with its indexes."""
    columns = [
        Column(ID_COLUMN, Text, primary_key=True),
        Column(TENANT_COLUMN, Text, nullable=False),
    ]
    for name, spec in entity.columns.items():
        columns.append(
            Column(
                name,
                _PHYSICAL_TYPES[spec.kind],
                nullable=not spec.required,
                server_default=_server_default(spec),
            )
        )
    columns += [
        Column(CREATED_AT, Text, nullable=False),
        Column(UPDATED_AT, Text, nullable=False),
        Column(DELETED_AT, Text),
    ]
    table = Table(entity.table, metadata, *columns)

    prefix = f"ix_{entity.table.lower()}"
    Index(f"{prefix}_tenant", table.c[TENANT_COLUMN])
    Index(f"{prefix}_tenant_deleted", table.c[TENANT_COLUMN], table.c[DELETED_AT])
    Index(f"{prefix}_tenant_created", table.c[TENANT_COLUMN], table.c[CREATED_AT])
    return table


def _server_default(spec: ColumnSpec) -> Any:
    if spec.default is None:
        return None
    if isinstance(spec.default, str):
        return spec.default
    return text(repr(spec.default))


def build_metadata(registry: EntityRegistry) -> MetaData:
    """A fresh ``MetaData`` holding one table per registered entity."""
    md = MetaData()
    for entity in registry:
        build_table(entity, md)
    return md


metadata = build_metadata(STANDARD_REGISTRY)
