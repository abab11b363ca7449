"""Value transformers between rich Python values and primitive storage.

The edge engine only stores TEXT, INTEGER, REAL and NULL. Columns that hold
documents, lists, instants, booleans or enumerations go through one of the
transformers below on every read and write path.

Contract for every transformer:

- ``serialize(value)`` returns ``str | int | float | None``.
- ``deserialize(primitive)`` returns the rich value.
- ``serialize(deserialize(x)) == x`` for any primitive ``x`` this transformer
  produced.

INVARIANT: ``deserialize`` never raises. A malformed stored value is logged
and replaced by a safe default so one corrupt cell cannot fail a read.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence, Set
from datetime import UTC, date, datetime, time
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

Primitive = str | int | float | None

_TRUTHY = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSY = frozenset({"0", "false", "f", "no", "n", "off"})


class Transformer:
    """Identity transformer for columns that are already primitive."""

    name = "identity"

    def serialize(self, value: Any) -> Primitive:
        return value

    def deserialize(self, value: Primitive) -> Any:
        return value


class JsonTransformer(Transformer):
    """Structured documents stored as canonical JSON text."""

    name = "json"

    def serialize(self, value: Any) -> str | None:
        if value is None:
            return None
        try:
            return dump_canonical(value)
        except (TypeError, ValueError):
            logger.error("Failed to serialize JSON value of type %s", type(value).__name__)
            return None

    def deserialize(self, value: Primitive) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            logger.warning("Expected JSON text, got %s", type(value).__name__)
            return None
        try:
            return json.loads(value)
        except ValueError:
            logger.warning("Malformed JSON in stored value: %.80r", value)
            return None


class ListTransformer(Transformer):
    """Lists stored as canonical JSON array text.

    Non-sequence inputs are wrapped into a single-element list instead of
    being rejected; older rows were written with looser shapes.
    """

    name = "list"

    def serialize(self, value: Any) -> str | None:
        if value is None:
            return None
        items = self._coerce(value)
        try:
            return dump_canonical(items)
        except (TypeError, ValueError):
            logger.error("Failed to serialize list value")
            return None

    def deserialize(self, value: Primitive) -> list[Any]:
        if value is None:
            return []
        if not isinstance(value, str):
            logger.warning("Expected JSON array text, got %s", type(value).__name__)
            return [value]
        try:
            parsed = json.loads(value)
        except ValueError:
            logger.warning("Malformed JSON array in stored value: %.80r", value)
            return []
        if not isinstance(parsed, list):
            logger.warning("Stored value is not a JSON array: %.80r", value)
            return [parsed]
        return self._filter(parsed)

    def _coerce(self, value: Any) -> list[Any]:
        if isinstance(value, Set):
            try:
                return self._filter(sorted(value))
            except TypeError:
                return self._filter(list(value))
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            return self._filter(list(value))
        logger.warning("Expected a sequence, got %s; wrapping it", type(value).__name__)
        return self._filter([value])

    def _filter(self, items: list[Any]) -> list[Any]:
        return items


class StringListTransformer(ListTransformer):
    """List transformer that drops non-string elements on both paths."""

    name = "string_list"

    def _filter(self, items: list[Any]) -> list[Any]:
        return [item for item in items if isinstance(item, str)]


class TimestampTransformer(Transformer):
    """Instants stored as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    Writes accept a ``datetime`` (naive values are taken as UTC), a ``date``,
    or an ISO 8601 string. Reads return an aware ``datetime``.
    """

    name = "timestamp"

    def serialize(self, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, datetime):
            return format_timestamp(value)
        if isinstance(value, date):
            return format_timestamp(datetime.combine(value, time.min, tzinfo=UTC))
        if isinstance(value, str):
            parsed = parse_timestamp(value)
            if parsed is None:
                logger.warning("Invalid timestamp string written as-is: %.80r", value)
                return value
            return format_timestamp(parsed)
        logger.warning("Unexpected timestamp type: %s", type(value).__name__)
        return None

    def deserialize(self, value: Primitive) -> datetime | None:
        if value is None:
            return None
        if not isinstance(value, str):
            logger.warning("Expected timestamp text, got %s", type(value).__name__)
            return None
        parsed = parse_timestamp(value)
        if parsed is None:
            logger.warning("Unparseable stored timestamp: %.80r", value)
        return parsed


class BooleanTransformer(Transformer):
    """Booleans stored as INTEGER 0/1.

    Reads also accept legacy textual encodings (``"true"``, ``"1"``, ...).
    """

    name = "boolean"

    def __init__(self, *, default: bool | None = None) -> None:
        self.default = default

    def serialize(self, value: Any) -> int | None:
        if value is None:
            if self.default is None:
                return None
            value = self.default
        return 1 if value else 0

    def deserialize(self, value: Primitive) -> bool | None:
        if value is None:
            return self.default
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        text = str(value).strip().lower()
        if text in _TRUTHY:
            return True
        if text in _FALSY:
            return False
        logger.warning("Unrecognized stored boolean: %.80r", value)
        return self.default


class EnumTransformer(Transformer):
    """``StrEnum`` members stored as their text value."""

    name = "enum"

    def __init__(self, enum_cls: type[StrEnum]) -> None:
        self.enum_cls = enum_cls

    def serialize(self, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, self.enum_cls):
            return value.value
        try:
            return self.enum_cls(str(value)).value
        except ValueError:
            logger.warning("Value %r is not a member of %s", value, self.enum_cls.__name__)
            return str(value)

    def deserialize(self, value: Primitive) -> StrEnum | None:
        if value is None:
            return None
        try:
            return self.enum_cls(str(value))
        except ValueError:
            logger.warning("Unknown stored %s value: %.80r", self.enum_cls.__name__, value)
            return None


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def dump_canonical(value: Any) -> str:
    """Canonical JSON text: sorted keys, no insignificant whitespace."""
    if isinstance(value, Mapping) and not isinstance(value, dict):
        value = dict(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def format_timestamp(value: datetime) -> str:
    """Render *value* in the fixed storage format."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    millis = value.microsecond // 1000
    # Fixed width keeps the text sortable; strftime does not pad years below 1000.
    return f"{value.year:04d}-{value:%m-%dT%H:%M:%S}.{millis:03d}Z"


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO 8601 string (or SQLite ``datetime('now')`` output) to aware UTC."""
    text = value.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def now_timestamp() -> str:
    """Current UTC time in the storage format."""
    return format_timestamp(datetime.now(UTC))


json_transformer = JsonTransformer()
list_transformer = ListTransformer()
string_list_transformer = StringListTransformer()
timestamp_transformer = TimestampTransformer()
boolean_transformer = BooleanTransformer()
boolean_with_default_transformer = BooleanTransformer(default=False)
identity_transformer = Transformer()
