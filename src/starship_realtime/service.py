"""Trade feed service.

This module provides the TradeFeedService class that wires the horizon
components, the provider client and the merge engine together and
implements the request-level policy:

- one horizon snapshot per request,
- every window validated before any provider call,
- any fetch failure fails the whole request (no partial results).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Protocol

from starship_realtime.config import Settings
from starship_realtime.errors import InternalError, TradeFeedError, ValidationError
from starship_realtime.ingestor.models import REALTIME_DATASET, TradeRow
from starship_realtime.merge import merge_rows
from starship_realtime.window.clock import ClockAuthority, to_iso
from starship_realtime.window.models import Horizon, Window
from starship_realtime.window.partitioner import WindowPartitioner
from starship_realtime.window.validator import WindowValidator

logger = logging.getLogger(__name__)

MISSING_FIELDS = "Missing fields"


class WindowFetcher(Protocol):
    """Anything that can fetch trade rows for one window."""

    async def fetch_window(self, token_address: str, window: Window, limit: int) -> list[TradeRow]: ...


@dataclass(frozen=True)
class TradesRequest:
    """Parsed ``POST /trades`` body; windows are still unvalidated."""

    token: str
    windows: tuple[Mapping[str, Any], ...]
    limit_per_window: int

    @classmethod
    def from_dict(cls, body: Any, *, default_limit: int) -> TradesRequest:
        """Parse a request body.

        Raises:
            ValidationError: If required fields are missing or malformed.
        """
        if not isinstance(body, Mapping):
            raise ValidationError(MISSING_FIELDS, "Provide: token")

        token = body.get("token")
        if not isinstance(token, str) or not token.strip():
            raise ValidationError(MISSING_FIELDS, "Provide: token")

        windows = body.get("windows")
        if not isinstance(windows, list) or not windows:
            raise ValidationError(MISSING_FIELDS, "Provide: windows[]")
        if not all(isinstance(w, Mapping) for w in windows):
            raise ValidationError(
                "Malformed windows",
                "Each window must be an object with since and till",
            )

        limit = body.get("limitPerWindow")
        if limit is None:
            limit = default_limit
        elif (
            isinstance(limit, bool)
            or not isinstance(limit, (int, float))
            or not float(limit).is_integer()
            or limit < 1
        ):
            raise ValidationError("Invalid fields", "limitPerWindow must be a positive integer")

        return cls(token=token.strip(), windows=tuple(windows), limit_per_window=int(limit))


class TradeFeedService:
    """Serves horizon information and merged trade rows.

    Example:
        ```python
        service = TradeFeedService.from_settings(settings, bitquery_client)
        info = service.horizon_info()
        result = await service.fetch_trades({"token": mint, "windows": [...]})
        ```
    """

    def __init__(
        self,
        *,
        clock: ClockAuthority,
        partitioner: WindowPartitioner,
        validator: WindowValidator,
        fetcher: WindowFetcher,
        default_limit: int = 100,
        max_concurrency: int = 1,
    ) -> None:
        """Initialize the service.

        Args:
            clock: Clock authority shared with the partitioner.
            partitioner: Horizon and window source.
            validator: Window validator.
            fetcher: Provider client.
            default_limit: Per-window limit when the client sends none.
            max_concurrency: Window fetches in flight (1 = sequential).
        """
        self._clock = clock
        self._partitioner = partitioner
        self._validator = validator
        self._fetcher = fetcher
        self._default_limit = default_limit
        self._max_concurrency = max(1, max_concurrency)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        fetcher: WindowFetcher,
        *,
        clock: ClockAuthority | None = None,
    ) -> TradeFeedService:
        clock = clock or ClockAuthority()
        return cls(
            clock=clock,
            partitioner=WindowPartitioner(
                clock,
                lookback_hours=settings.window.realtime_hours,
                window_hours=settings.window.max_hours,
            ),
            validator=WindowValidator(
                max_window_hours=settings.window.max_hours,
                tolerance=timedelta(milliseconds=settings.window.tolerance_ms),
            ),
            fetcher=fetcher,
            default_limit=settings.window.default_limit,
            max_concurrency=settings.fetch_max_concurrency,
        )

    @property
    def lookback_hours(self) -> int:
        return self._partitioner.lookback_hours

    def horizon_info(self) -> dict[str, Any]:
        """Publish the canonical horizon and its windows (newest first)."""
        horizon = self._partitioner.horizon()
        return {
            "nowISO": to_iso(horizon.now),
            "bounds": horizon.bounds_dict(),
            "hours": {"realtime": horizon.lookback_hours, "perWindow": horizon.window_hours},
            "windows": [w.to_dict() for w in self._partitioner.partition(horizon)],
        }

    def time_ping(self) -> dict[str, str]:
        return {
            "nowISO": to_iso(self._clock.wall_time()),
            "roundedHourISO": to_iso(self._clock.now()),
        }

    def validate_windows(
        self, raw_windows: Sequence[Mapping[str, Any]], horizon: Horizon
    ) -> list[Window]:
        """Validate every window against one horizon snapshot.

        Raises:
            ValidationError: On the first rejected window, with bounds.
        """
        accepted: list[Window] = []
        for raw in raw_windows:
            verdict = self._validator.validate(raw, horizon)
            if verdict.window is None:
                logger.info(
                    "Rejected window since=%r till=%r: %s",
                    raw.get("since"),
                    raw.get("till"),
                    verdict.reason,
                )
                raise ValidationError(
                    f"Each {horizon.window_hours}h window must be within the last "
                    f"{horizon.lookback_hours} hours and have since < till.",
                    verdict.reason or "",
                    bounds=horizon.bounds_dict(),
                )
            accepted.append(verdict.window)
        return accepted

    async def fetch_trades(self, body: Any) -> dict[str, Any]:
        """Handle one trades request end to end.

        Args:
            body: Decoded JSON request body.

        Returns:
            ``{"rows": [...], "dataset": "realtime", "maxLookbackHours": N}``

        Raises:
            ValidationError: Malformed request or rejected window.
            ProviderError: Provider failure for any window.
            InternalError: Any other failure during fetch or merge.
        """
        horizon = self._partitioner.horizon()
        request = TradesRequest.from_dict(body, default_limit=self._default_limit)
        windows = self.validate_windows(request.windows, horizon)

        try:
            batches = await self._fetch_all(request.token, windows, request.limit_per_window)
            rows = merge_rows(batches)
        except TradeFeedError:
            raise
        except Exception as e:
            raise InternalError(e) from e

        logger.info(
            "Served %d rows for %s across %d windows",
            len(rows),
            request.token,
            len(windows),
        )
        return {
            "rows": [row.to_dict() for row in rows],
            "dataset": REALTIME_DATASET,
            "maxLookbackHours": horizon.lookback_hours,
        }

    async def _fetch_all(
        self, token: str, windows: Sequence[Window], limit: int
    ) -> list[list[TradeRow]]:
        if self._max_concurrency == 1 or len(windows) == 1:
            return [await self._fetcher.fetch_window(token, w, limit) for w in windows]

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def fetch_one(window: Window) -> list[TradeRow]:
            async with semaphore:
                return await self._fetcher.fetch_window(token, window, limit)

        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(fetch_one(w)) for w in windows]
        except BaseExceptionGroup as eg:
            # TaskGroup cancels the siblings; surface the first real failure.
            raise eg.exceptions[0] from None
        return [task.result() for task in tasks]
