"""
Document ids and timestamp utilities (stdlib-only).

Ids are 24-character lowercase hex strings, the same shape as the ObjectIds
handed out by the original document store, so exported documents keep
their identity.  The first eight characters encode the creation second,
which keeps ids roughly time-sortable.

Tags:
    timestamps, ids, utc, datetime, labrules-core
"""

from __future__ import annotations

import os
import re
import time
from datetime import UTC, date, datetime

_ID_RE = re.compile(r"^[0-9a-f]{24}$")


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def generate_id() -> str:
    """Generate an ObjectId-shaped identifier (4-byte time + 8 random bytes)."""
    return f"{int(time.time()):08x}{os.urandom(8).hex()}"


def is_valid_id(value: object) -> bool:
    """True when *value* is a 24-char lowercase hex document id."""
    return isinstance(value, str) and bool(_ID_RE.match(value))


def to_iso8601(dt: datetime | None) -> str | None:
    """Convert datetime to ISO 8601 string."""
    if dt is None:
        return None
    return dt.isoformat()


def from_iso8601(value: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 string (``Z`` suffix accepted) to an aware datetime.

    Naive values are assumed to be UTC, matching what JavaScript clients
    send from ``Date.toJSON()``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def parse_date(value: object) -> date | None:
    """Parse a date or datetime value into a :class:`date`; ``None`` if unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return from_iso8601(value).date()  # type: ignore[union-attr]
    except ValueError:
        pass
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None
