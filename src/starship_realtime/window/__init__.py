"""Horizon governance - clock authority, window partition and validation."""

from starship_realtime.window.clock import ClockAuthority, floor_to_hour, parse_instant, to_iso
from starship_realtime.window.models import Horizon, Window
from starship_realtime.window.partitioner import (
    WindowPartitioner,
    horizon_bounds,
    partition_windows,
)
from starship_realtime.window.validator import WindowValidator, WindowVerdict

__all__ = [
    "ClockAuthority",
    "Horizon",
    "Window",
    "WindowPartitioner",
    "WindowValidator",
    "WindowVerdict",
    "floor_to_hour",
    "horizon_bounds",
    "parse_instant",
    "partition_windows",
    "to_iso",
]
