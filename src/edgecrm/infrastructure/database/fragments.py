"""SQL fragment helpers for JSON documents, JSON arrays and text matching.

The edge engine has no JSON, array or case-insensitive operators. These
helpers emit SQLite expressions (``json_extract``, ``json_each``,
``json_array_length``, ``LOWER``) that emulate them.

Rules every helper follows:

- Column names are validated and quoted; they are never user input.
- Values are never interpolated. Helpers take placeholder names (``:p0``)
  and the caller binds the values.
- LIKE patterns are built with :func:`escape_like` and matched with an
  explicit ``ESCAPE`` clause, so ``%``, ``_`` and ``\\`` typed by a user
  match themselves.
"""

from __future__ import annotations

import re
from typing import Any

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_INDEX = re.compile(r"^\d+$")

LIKE_ESCAPE = "\\"


def quote_identifier(name: str) -> str:
    """Return *name* as a double-quoted SQL identifier.

    Raises:
        ValueError: *name* is not a plain identifier.
    """
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Unsafe identifier: {name!r}")
    return f'"{name}"'


def json_path(path: tuple[str, ...] | list[str] | str) -> str:
    """Build a JSON path literal such as ``$.address.city`` or ``$.tags[0]``."""
    segments = path.split(".") if isinstance(path, str) else list(path)
    if not segments or segments == [""]:
        raise ValueError("JSON path must have at least one segment")
    out = "$"
    for segment in segments:
        if segment.startswith("$"):
            raise ValueError(f"Unsafe JSON path segment: {segment!r}")
        if _INDEX.match(segment):
            out += f"[{segment}]"
        elif _IDENTIFIER.match(segment):
            out += f".{segment}"
        else:
            raise ValueError(f"Unsafe JSON path segment: {segment!r}")
    return out


# ---------------------------------------------------------------------------
# JSON documents
# ---------------------------------------------------------------------------


def extract_path(column: str, path: tuple[str, ...] | list[str] | str) -> str:
    """Expression reading one field out of a JSON document column."""
    return f"json_extract({quote_identifier(column)}, '{json_path(path)}')"


# ---------------------------------------------------------------------------
# JSON arrays
# ---------------------------------------------------------------------------


def array_contains(column: str, placeholder: str) -> str:
    """True when the JSON array in *column* has an element equal to *placeholder*."""
    col = quote_identifier(column)
    return f"EXISTS (SELECT 1 FROM json_each({col}) WHERE json_each.value = {placeholder})"


def array_contains_any(column: str, placeholders: list[str]) -> str:
    """True when the array shares at least one element with the bound values."""
    if not placeholders:
        return "0"
    col = quote_identifier(column)
    in_list = ", ".join(placeholders)
    return f"EXISTS (SELECT 1 FROM json_each({col}) WHERE json_each.value IN ({in_list}))"


def array_contains_all(column: str, placeholders: list[str]) -> str:
    """True when every bound value is an element of the array."""
    if not placeholders:
        return "1"
    return "(" + " AND ".join(array_contains(column, p) for p in placeholders) + ")"


def array_length(column: str) -> str:
    """Element count of the JSON array in *column* (NULL for a NULL column)."""
    return f"json_array_length({quote_identifier(column)})"


def array_is_empty(column: str) -> str:
    col = quote_identifier(column)
    return f"({col} IS NULL OR json_array_length({col}) = 0)"


def array_is_not_empty(column: str) -> str:
    col = quote_identifier(column)
    return f"({col} IS NOT NULL AND json_array_length({col}) > 0)"


# ---------------------------------------------------------------------------
# Case-insensitive text
# ---------------------------------------------------------------------------


def case_insensitive_like(expression: str, placeholder: str) -> str:
    """Case-insensitive LIKE against an escaped pattern.

    *expression* is a quoted column or the output of :func:`extract_path`.
    """
    return f"LOWER({expression}) LIKE LOWER({placeholder}) ESCAPE '{LIKE_ESCAPE}'"


def case_insensitive_equals(expression: str, placeholder: str) -> str:
    """Equality ignoring case. ``LOWER`` folds ASCII letters only."""
    return f"LOWER({expression}) = LOWER({placeholder})"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so *value* only matches itself."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def like_contains(value: str) -> str:
    return f"%{escape_like(value)}%"


def like_prefix(value: str) -> str:
    return f"{escape_like(value)}%"


def like_suffix(value: str) -> str:
    return f"%{escape_like(value)}"


# ---------------------------------------------------------------------------
# Parameter binding
# ---------------------------------------------------------------------------


class ParamBinder:
    """Allocates unique named placeholders and collects their values."""

    def __init__(self, prefix: str = "p") -> None:
        self._prefix = prefix
        self._counter = 0
        self.params: dict[str, Any] = {}

    def bind(self, value: Any) -> str:
        """Register *value* and return its placeholder (``:p0``)."""
        name = f"{self._prefix}{self._counter}"
        self._counter += 1
        self.params[name] = value
        return f":{name}"

    def bind_many(self, values: list[Any]) -> list[str]:
        return [self.bind(v) for v in values]
