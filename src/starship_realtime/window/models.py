"""Data models for horizon and window computations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from starship_realtime.window.clock import to_iso


@dataclass(frozen=True)
class Window:
    """A half-open retrieval interval ``[since, till)``."""

    since: datetime
    till: datetime

    @property
    def duration(self) -> timedelta:
        return self.till - self.since

    @property
    def duration_hours(self) -> float:
        return self.duration.total_seconds() / 3600.0

    def to_dict(self) -> dict[str, str]:
        """Serialize the way ``/horizon-info`` publishes windows."""
        return {"sinceISO": to_iso(self.since), "tillISO": to_iso(self.till)}


@dataclass(frozen=True)
class Horizon:
    """Snapshot of the rolling lookback interval ``[min_since, now]``.

    Built from a single clock read; never reused across requests.
    """

    now: datetime
    min_since: datetime
    window_hours: int
    lookback_hours: int

    @property
    def max_till(self) -> datetime:
        return self.now

    @property
    def window_count(self) -> int:
        return self.lookback_hours // self.window_hours

    def bounds_dict(self) -> dict[str, str]:
        return {"minSince": to_iso(self.min_since), "maxTill": to_iso(self.max_till)}
