"""aurafi.core.time

The only time helper surface in the codebase.

Grace periods are measured against an injectable clock, never against the wall.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return an aware UTC datetime."""

    return datetime.now(tz=UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones."""

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_dt(value: str) -> datetime:
    """Parse an ISO-8601 datetime string into an aware UTC datetime.

    Accepts:
    - `Z` suffix
    - explicit offsets
    - naive timestamps (assumed UTC)

    Raises:
        ValueError: if parsing fails.
    """

    v = value.strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(v))


def dt_to_iso(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()
