"""Static registry of CRM entity tables and their physical column contract.

Every entity table shares the audit shape ``id``, ``tenantId``,
``createdAt``, ``updatedAt``, ``deletedAt`` and layers entity-specific
columns on top. Each column declares a :class:`ColumnKind`; the kind picks
the transformer used on every read and write path.

Per-entity CRUD operations are produced from this registry by a factory
(see :mod:`edgecrm.services.resolvers`) rather than hand-written.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from edgecrm.domain.errors import InvalidRecordError, UnknownEntityError
from edgecrm.domain.transformers import (
    EnumTransformer,
    Primitive,
    Transformer,
    boolean_with_default_transformer,
    identity_transformer,
    json_transformer,
    string_list_transformer,
    timestamp_transformer,
)

ID_COLUMN = "id"
TENANT_COLUMN = "tenantId"
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"
DELETED_AT = "deletedAt"

# Columns the engine owns; callers can never write them directly.
SYSTEM_COLUMNS = frozenset({ID_COLUMN, TENANT_COLUMN, CREATED_AT, UPDATED_AT, DELETED_AT})


class ColumnKind(StrEnum):
    """Logical column types and their physical storage."""

    TEXT = "text"  # TEXT
    INTEGER = "integer"  # INTEGER
    REAL = "real"  # REAL
    JSON = "json"  # TEXT (canonical JSON document)
    LIST = "list"  # TEXT (canonical JSON array)
    TIMESTAMP = "timestamp"  # TEXT (fixed-width ISO 8601, UTC)
    BOOLEAN = "boolean"  # INTEGER 0/1
    ENUM = "enum"  # TEXT


class TaskStatus(StrEnum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class OpportunityStage(StrEnum):
    NEW = "NEW"
    SCREENING = "SCREENING"
    MEETING = "MEETING"
    PROPOSAL = "PROPOSAL"
    CUSTOMER = "CUSTOMER"


@dataclass(frozen=True)
class ColumnSpec:
    """One physical column of an entity table."""

    kind: ColumnKind
    enum: type[StrEnum] | None = None
    required: bool = False
    # Stored value for a column the caller leaves unset on create.
    default: Primitive = None

    @property
    def transformer(self) -> Transformer:
        if self.kind is ColumnKind.JSON:
            return json_transformer
        if self.kind is ColumnKind.LIST:
            return string_list_transformer
        if self.kind is ColumnKind.TIMESTAMP:
            return timestamp_transformer
        if self.kind is ColumnKind.BOOLEAN:
            return boolean_with_default_transformer
        if self.kind is ColumnKind.ENUM and self.enum is not None:
            return EnumTransformer(self.enum)
        return identity_transformer


def _text(*, required: bool = False) -> ColumnSpec:
    return ColumnSpec(ColumnKind.TEXT, required=required)


def _json() -> ColumnSpec:
    return ColumnSpec(ColumnKind.JSON)


def _ts() -> ColumnSpec:
    return ColumnSpec(ColumnKind.TIMESTAMP)


def _position() -> ColumnSpec:
    return ColumnSpec(ColumnKind.REAL, default=0.0)


AUDIT_COLUMNS: dict[str, ColumnSpec] = {
    ID_COLUMN: _text(),
    TENANT_COLUMN: _text(),
    CREATED_AT: _ts(),
    UPDATED_AT: _ts(),
    DELETED_AT: _ts(),
}


def split_field(name: str) -> tuple[str, tuple[str, ...]]:
    """Split ``"address.city"`` into ``("address", ("city",))``."""
    column, *path = name.split(".")
    return column, tuple(path)


@dataclass(frozen=True)
class EntityDefinition:
    """A registered entity table.

    Attributes:
        name: Entity name used by callers (``"company"``).
        table: Physical table name.
        columns: Entity-specific columns; audit columns are added implicitly.
        searchable_fields: Fields matched by keyword search. Dotted names
            address a field inside a JSON document column.
        label_fields: Fields coalesced into a search result label.
    """

    name: str
    table: str
    label_singular: str
    label_plural: str
    columns: Mapping[str, ColumnSpec] = field(default_factory=dict)
    searchable_fields: tuple[str, ...] = ()
    label_fields: tuple[str, ...] = ()

    @property
    def all_columns(self) -> dict[str, ColumnSpec]:
        return {**AUDIT_COLUMNS, **self.columns}

    def has_column(self, name: str) -> bool:
        return name in AUDIT_COLUMNS or name in self.columns

    def column(self, name: str) -> ColumnSpec:
        spec = AUDIT_COLUMNS.get(name) or self.columns.get(name)
        if spec is None:
            raise KeyError(name)
        return spec

    def column_defaults(self) -> dict[str, Primitive]:
        """Stored values for columns left unset on create."""
        return {k: spec.default for k, spec in self.columns.items() if spec.default is not None}

    def serialize_value(self, column: str, value: Any) -> Primitive:
        """Run *value* through the transformer of *column*."""
        return self.column(column).transformer.serialize(value)

    def serialize_data(self, data: Mapping[str, Any]) -> dict[str, Primitive]:
        """Serialize caller-supplied write data.

        Raises:
            InvalidRecordError: *data* names an unknown or system column.
        """
        protected = sorted(set(data) & SYSTEM_COLUMNS)
        if protected:
            raise InvalidRecordError(
                f"Columns {protected} of {self.name} are managed by the data layer"
            )
        unknown = sorted(k for k in data if k not in self.columns)
        if unknown:
            raise InvalidRecordError(f"Unknown columns for {self.name}: {unknown}")
        return {key: self.serialize_value(key, value) for key, value in data.items()}

    def deserialize_row(self, row: Mapping[str, Primitive]) -> dict[str, Any]:
        """Turn a stored row into rich values. Unknown columns pass through."""
        columns = self.all_columns
        result: dict[str, Any] = {}
        for key, value in row.items():
            spec = columns.get(key)
            result[key] = spec.transformer.deserialize(value) if spec else value
        return result


class EntityRegistry:
    """Lookup table keyed by entity name."""

    def __init__(self, entities: list[EntityDefinition]) -> None:
        self._entities: dict[str, EntityDefinition] = {e.name: e for e in entities}

    def get(self, name: str) -> EntityDefinition:
        entity = self._entities.get(name)
        if entity is None:
            raise UnknownEntityError(name)
        return entity

    def names(self) -> list[str]:
        return list(self._entities)

    def searchable(self) -> list[EntityDefinition]:
        return [e for e in self._entities.values() if e.searchable_fields]

    def __contains__(self, name: object) -> bool:
        return name in self._entities

    def __iter__(self) -> Iterator[EntityDefinition]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)


_ACTOR = {"createdBy": _json(), "updatedBy": _json()}
_MORPH_TARGET = {
    "personId": _text(),
    "companyId": _text(),
    "opportunityId": _text(),
    "targetObjectName": _text(),
    "targetRecordId": _text(),
}

STANDARD_ENTITIES: list[EntityDefinition] = [
    EntityDefinition(
        name="company",
        table="company",
        label_singular="Company",
        label_plural="Companies",
        columns={
            "name": _text(),
            "employees": ColumnSpec(ColumnKind.INTEGER),
            "idealCustomerProfile": ColumnSpec(ColumnKind.BOOLEAN, default=0),
            "position": _position(),
            "domainName": _json(),
            "linkedinLink": _json(),
            "xLink": _json(),
            "annualRecurringRevenue": _json(),
            "address": _json(),
            "workPolicy": ColumnSpec(ColumnKind.LIST),
            "accountOwnerId": _text(),
            **_ACTOR,
        },
        searchable_fields=("name", "domainName.primaryLinkUrl"),
        label_fields=("name",),
    ),
    EntityDefinition(
        name="person",
        table="person",
        label_singular="Person",
        label_plural="People",
        columns={
            "name": _json(),
            "emails": _json(),
            "phones": _json(),
            "jobTitle": _text(),
            "city": _text(),
            "avatarUrl": _text(),
            "position": _position(),
            "linkedinLink": _json(),
            "xLink": _json(),
            "workPreference": ColumnSpec(ColumnKind.LIST),
            "performanceRating": _json(),
            "companyId": _text(),
            **_ACTOR,
        },
        searchable_fields=("name.firstName", "name.lastName", "emails.primaryEmail"),
        label_fields=("name.firstName", "name.lastName"),
    ),
    EntityDefinition(
        name="opportunity",
        table="opportunity",
        label_singular="Opportunity",
        label_plural="Opportunities",
        columns={
            "name": _text(),
            "stage": ColumnSpec(
                ColumnKind.ENUM, enum=OpportunityStage, default=OpportunityStage.NEW.value
            ),
            "closeDate": _ts(),
            "position": _position(),
            "amount": _json(),
            "companyId": _text(),
            "pointOfContactId": _text(),
            **_ACTOR,
        },
        searchable_fields=("name",),
        label_fields=("name",),
    ),
    EntityDefinition(
        name="note",
        table="note",
        label_singular="Note",
        label_plural="Notes",
        columns={
            "title": _text(),
            "position": _position(),
            "body": _text(),
            **_ACTOR,
        },
        searchable_fields=("title", "body"),
        label_fields=("title",),
    ),
    EntityDefinition(
        name="noteTarget",
        table="noteTarget",
        label_singular="Note Target",
        label_plural="Note Targets",
        columns={"noteId": _text(required=True), **_MORPH_TARGET, **_ACTOR},
    ),
    EntityDefinition(
        name="task",
        table="task",
        label_singular="Task",
        label_plural="Tasks",
        columns={
            "title": _text(),
            "status": ColumnSpec(ColumnKind.ENUM, enum=TaskStatus, default=TaskStatus.TODO.value),
            "dueAt": _ts(),
            "position": _position(),
            "body": _text(),
            "assigneeId": _text(),
            **_ACTOR,
        },
        searchable_fields=("title", "body"),
        label_fields=("title",),
    ),
    EntityDefinition(
        name="taskTarget",
        table="taskTarget",
        label_singular="Task Target",
        label_plural="Task Targets",
        columns={"taskId": _text(required=True), **_MORPH_TARGET, **_ACTOR},
    ),
    EntityDefinition(
        name="attachment",
        table="attachment",
        label_singular="Attachment",
        label_plural="Attachments",
        columns={
            "name": _text(required=True),
            "fullPath": _text(required=True),
            "type": _text(required=True),
            "authorId": _text(),
            "targetObjectName": _text(),
            "targetRecordId": _text(),
            **_ACTOR,
        },
    ),
    EntityDefinition(
        name="favorite",
        table="favorite",
        label_singular="Favorite",
        label_plural="Favorites",
        columns={
            "position": _position(),
            "workspaceMemberId": _text(required=True),
            "favoriteFolderId": _text(),
            "targetObjectName": _text(),
            "targetRecordId": _text(),
        },
    ),
]

STANDARD_REGISTRY = EntityRegistry(STANDARD_ENTITIES)
