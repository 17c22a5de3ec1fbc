"""Server-side clock authority.

Every horizon and window boundary in the service is derived from
``ClockAuthority.now()``. The underlying time source is injectable so tests
can pin the clock to a fixed instant.
"""

from __future__ import annotations

import contextlib
import math
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

TimeSource = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current wall-clock time in UTC."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def floor_to_hour(value: datetime) -> datetime:
    """Truncate an instant down to the top of its UTC hour."""
    return ensure_utc(value).replace(minute=0, second=0, microsecond=0)


def to_iso(value: datetime, *, exact: bool = False) -> str:
    """Format an instant as ``YYYY-MM-DDTHH:MM:SS.mmmZ``.

    This is the same shape browsers produce with ``Date.toISOString()``,
    which lets clients echo server-issued windows back unchanged. With
    ``exact=True`` a sub-millisecond component is kept (microseconds), so
    distinct instants never format to the same string.
    """
    value = ensure_utc(value)
    timespec = "microseconds" if exact and value.microsecond % 1000 else "milliseconds"
    return value.isoformat(timespec=timespec).replace("+00:00", "Z")


def parse_instant(value: Any) -> datetime | None:
    """Parse a client- or provider-supplied instant.

    Accepts ISO-8601 strings (``Z`` suffix, explicit offset or naive UTC),
    numbers as epoch milliseconds and ``datetime`` objects.

    Returns:
        A UTC datetime, or None if the value is not a valid instant.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        with contextlib.suppress(OverflowError, OSError, ValueError):
            return datetime.fromtimestamp(value / 1000.0, tz=UTC)
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        with contextlib.suppress(ValueError):
            return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    return None


class ClockAuthority:
    """The single source of "now" for horizon and window computations.

    Example:
        ```python
        clock = ClockAuthority()
        clock.now()  # e.g. 2026-10-17 12:00:00+00:00
        ```
    """

    def __init__(self, time_source: TimeSource = utc_now) -> None:
        self._time_source = time_source

    def now(self) -> datetime:
        """Return the current instant truncated to the top of the UTC hour."""
        return floor_to_hour(self._time_source())

    def wall_time(self) -> datetime:
        """Return the unrounded current instant (diagnostics only)."""
        return ensure_utc(self._time_source())
