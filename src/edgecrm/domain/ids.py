"""Record identifier generation and validation.

Every entity row gets an opaque UUID4 string at creation time.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re
import uuid

ID_PATTERN: re.Pattern[str] = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def generate_record_id() -> str:
    """Return a fresh random record id."""
    return str(uuid.uuid4())


def validate_record_id(record_id: str) -> bool:
    """Check whether *record_id* looks like an id produced by :func:`generate_record_id`."""
    return ID_PATTERN.match(record_id) is not None
