"""Validation of caller-supplied windows against the horizon.

Windows are normally issued by ``/horizon-info`` and echoed back by the
client after a network round trip, so both horizon edges tolerate a small
drift. The tolerance is far below one window, so it cannot be used to
widen a request materially.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from starship_realtime.window.clock import parse_instant
from starship_realtime.window.models import Horizon, Window

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = timedelta(milliseconds=1500)
DURATION_EPSILON_HOURS = 1e-6

REASON_INVALID_DATE = "invalid date"
REASON_NOT_ORDERED = "since >= till"
REASON_OUTSIDE_HORIZON = "outside horizon"
REASON_TOO_LONG = "duration exceeds max"


@dataclass(frozen=True)
class WindowVerdict:
    """Outcome of validating one window.

    ``window`` is set only when the window was accepted.
    """

    window: Window | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def accepted(cls, window: Window) -> WindowVerdict:
        return cls(window=window)

    @classmethod
    def rejected(cls, reason: str) -> WindowVerdict:
        return cls(reason=reason)


class WindowValidator:
    """Checks windows against a horizon snapshot.

    Checks run in a fixed order and stop at the first failure:
    parseable endpoints, ``since < till``, inside the horizon (with
    tolerance), and duration no longer than the maximum window.
    """

    def __init__(
        self,
        *,
        max_window_hours: int,
        tolerance: timedelta = DEFAULT_TOLERANCE,
    ) -> None:
        self._max_window_hours = max_window_hours
        self._tolerance = tolerance

    @property
    def tolerance(self) -> timedelta:
        return self._tolerance

    def validate(self, raw: Mapping[str, Any], horizon: Horizon) -> WindowVerdict:
        """Validate a raw ``{"since": ..., "till": ...}`` window.

        Args:
            raw: Window as submitted by the client.
            horizon: Horizon snapshot for the current request.

        Returns:
            WindowVerdict carrying the parsed window or the rejection reason.
        """
        since = parse_instant(raw.get("since"))
        till = parse_instant(raw.get("till"))
        if since is None or till is None:
            return WindowVerdict.rejected(REASON_INVALID_DATE)

        if since >= till:
            return WindowVerdict.rejected(REASON_NOT_ORDERED)

        if since < horizon.min_since - self._tolerance or till > horizon.max_till + self._tolerance:
            logger.debug(
                "Window %s..%s outside horizon %s..%s",
                since,
                till,
                horizon.min_since,
                horizon.max_till,
            )
            return WindowVerdict.rejected(REASON_OUTSIDE_HORIZON)

        window = Window(since=since, till=till)
        if window.duration_hours > self._max_window_hours + DURATION_EPSILON_HOURS:
            return WindowVerdict.rejected(REASON_TOO_LONG)

        return WindowVerdict.accepted(window)
