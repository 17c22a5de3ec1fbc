"""Partition of the lookback horizon into fixed-size retrieval windows.

The partition is the canonical set of windows clients are expected to
request; they never compute windows on their own.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from starship_realtime.window.clock import ClockAuthority
from starship_realtime.window.models import Horizon, Window

DEFAULT_LOOKBACK_HOURS = 68
DEFAULT_WINDOW_HOURS = 4


def horizon_bounds(now: datetime, lookback_hours: int) -> tuple[datetime, datetime]:
    """Return ``(min_since, max_till)`` for a horizon ending at ``now``."""
    return now - timedelta(hours=lookback_hours), now


def partition_windows(now: datetime, lookback_hours: int, window_hours: int) -> list[Window]:
    """Split ``[now - lookback_hours, now]`` into contiguous windows.

    ``lookback_hours`` must be a multiple of ``window_hours``; settings
    enforce this at load time.

    Returns:
        Windows ordered newest first.
    """
    step = timedelta(hours=window_hours)
    count = lookback_hours // window_hours
    return [Window(since=now - (i + 1) * step, till=now - i * step) for i in range(count)]


class WindowPartitioner:
    """Derives the horizon and its windows from the clock authority.

    Each public method reads the clock exactly once, so the values it
    returns are consistent with each other even across an hour boundary.
    """

    def __init__(
        self,
        clock: ClockAuthority,
        *,
        lookback_hours: int = DEFAULT_LOOKBACK_HOURS,
        window_hours: int = DEFAULT_WINDOW_HOURS,
    ) -> None:
        self._clock = clock
        self._lookback_hours = lookback_hours
        self._window_hours = window_hours

    @property
    def lookback_hours(self) -> int:
        return self._lookback_hours

    @property
    def window_hours(self) -> int:
        return self._window_hours

    def horizon(self) -> Horizon:
        """Take a horizon snapshot from the current clock hour."""
        now = self._clock.now()
        min_since, _ = horizon_bounds(now, self._lookback_hours)
        return Horizon(
            now=now,
            min_since=min_since,
            window_hours=self._window_hours,
            lookback_hours=self._lookback_hours,
        )

    def partition(self, horizon: Horizon | None = None) -> list[Window]:
        """Return the canonical windows, newest first.

        Args:
            horizon: Snapshot to partition. A fresh one is taken if omitted.
        """
        if horizon is None:
            horizon = self.horizon()
        return partition_windows(horizon.now, horizon.lookback_hours, horizon.window_hours)

    def bounds(self) -> tuple[datetime, datetime]:
        """Return ``(min_since, max_till)`` for the current hour."""
        return horizon_bounds(self._clock.now(), self._lookback_hours)
