"""Request and result shapes shared by the engine and its callers.

All models are frozen pydantic models; rows travel as plain dicts.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

FilterCondition = dict[str, Any]


class SortDirection(StrEnum):
    ASC = "ASC"
    DESC = "DESC"


class NullsPlacement(StrEnum):
    FIRST = "FIRST"
    LAST = "LAST"


class OrderSpec(BaseModel):
    """One ``ORDER BY`` term.

    When *nulls* is omitted, ascending orders put nulls first and descending
    orders put them last.
    """

    model_config = {"frozen": True}

    field: str
    direction: SortDirection = SortDirection.ASC
    nulls: NullsPlacement | None = None

    @field_validator("direction", mode="before")
    @classmethod
    def _upper_direction(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("nulls", mode="before")
    @classmethod
    def _upper_nulls(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def effective_nulls(self) -> NullsPlacement:
        if self.nulls is not None:
            return self.nulls
        return NullsPlacement.FIRST if self.direction is SortDirection.ASC else NullsPlacement.LAST

    def reversed(self) -> OrderSpec:
        """The same term walked backwards (direction and null placement flipped)."""
        direction = SortDirection.DESC if self.direction is SortDirection.ASC else SortDirection.ASC
        nulls = (
            NullsPlacement.LAST
            if self.effective_nulls is NullsPlacement.FIRST
            else NullsPlacement.FIRST
        )
        return OrderSpec(field=self.field, direction=direction, nulls=nulls)

    def signature(self) -> list[str]:
        return [self.field, self.direction.value, self.effective_nulls.value]

    @classmethod
    def parse(cls, raw: str) -> OrderSpec:
        """Parse ``"field"``, ``"field:desc"`` or ``"field:desc:first"``."""
        parts = raw.split(":")
        kwargs: dict[str, Any] = {"field": parts[0]}
        if len(parts) > 1 and parts[1]:
            kwargs["direction"] = parts[1]
        if len(parts) > 2 and parts[2]:
            kwargs["nulls"] = parts[2]
        return cls(**kwargs)


class PageInfo(BaseModel):
    model_config = {"frozen": True}

    has_next_page: bool = False
    has_previous_page: bool = False
    start_cursor: str | None = None
    end_cursor: str | None = None


class Edge(BaseModel):
    model_config = {"frozen": True}

    node: dict[str, Any]
    cursor: str


class Connection(BaseModel):
    """A page of rows with per-row cursors and page metadata."""

    model_config = {"frozen": True}

    edges: list[Edge] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo)
    total_count: int | None = None

    @property
    def nodes(self) -> list[dict[str, Any]]:
        return [edge.node for edge in self.edges]


class MutationOperation(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    RESTORED = "restored"
    DESTROYED = "destroyed"


class MutationResult(BaseModel):
    """What a write did, with enough detail for the caller to broadcast it."""

    model_config = {"frozen": True}

    entity: str
    operation: MutationOperation
    tenant_id: str
    record_ids: list[str] = Field(default_factory=list)
    records: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def record(self) -> dict[str, Any] | None:
        return self.records[0] if self.records else None


class SearchResultItem(BaseModel):
    model_config = {"frozen": True}

    entity: str
    record_id: str
    label: str
    snippet: str = ""
    score: float = 1.0


class SearchResult(BaseModel):
    model_config = {"frozen": True}

    query: str
    items: list[SearchResultItem] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
