"""Tests for the clock authority and instant helpers."""

from datetime import UTC, datetime, timedelta, timezone

from starship_realtime.window.clock import ClockAuthority, floor_to_hour, parse_instant, to_iso
from tests.factories import FIXED_HOUR, FIXED_NOW


class TestClockAuthority:
    """Tests for ClockAuthority."""

    def test_now_is_truncated_to_hour(self, fixed_clock: ClockAuthority) -> None:
        assert fixed_clock.now() == FIXED_HOUR

    def test_wall_time_is_unrounded(self, fixed_clock: ClockAuthority) -> None:
        assert fixed_clock.wall_time() == FIXED_NOW

    def test_now_is_stable_within_hour(self) -> None:
        """Different instants in the same hour give the same now."""
        ticks = iter([FIXED_HOUR, FIXED_HOUR + timedelta(minutes=59, seconds=59)])
        clock = ClockAuthority(lambda: next(ticks))
        assert clock.now() == clock.now()

    def test_default_source_is_utc(self) -> None:
        now = ClockAuthority().now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)
        assert (now.minute, now.second, now.microsecond) == (0, 0, 0)


class TestInstantHelpers:
    """Tests for floor_to_hour, to_iso and parse_instant."""

    def test_floor_converts_offsets_to_utc(self) -> None:
        local = datetime(2026, 10, 17, 14, 30, tzinfo=timezone(timedelta(hours=2)))
        assert floor_to_hour(local) == FIXED_HOUR

    def test_floor_treats_naive_as_utc(self) -> None:
        assert floor_to_hour(datetime(2026, 10, 17, 12, 59)) == FIXED_HOUR

    def test_to_iso_matches_browser_format(self) -> None:
        assert to_iso(FIXED_HOUR) == "2026-10-17T12:00:00.000Z"
        assert to_iso(FIXED_NOW) == "2026-10-17T12:34:56.789Z"

    def test_to_iso_exact_keeps_sub_millisecond_component(self) -> None:
        instant = FIXED_HOUR + timedelta(microseconds=250)
        assert to_iso(instant) == "2026-10-17T12:00:00.000Z"
        assert to_iso(instant, exact=True) == "2026-10-17T12:00:00.000250Z"
        assert to_iso(FIXED_NOW, exact=True) == "2026-10-17T12:34:56.789Z"

    def test_parse_iso_with_z(self) -> None:
        assert parse_instant("2026-10-17T12:00:00.000Z") == FIXED_HOUR

    def test_parse_iso_with_offset(self) -> None:
        assert parse_instant("2026-10-17T13:00:00+01:00") == FIXED_HOUR

    def test_parse_naive_iso_as_utc(self) -> None:
        assert parse_instant("2026-10-17T12:00:00") == FIXED_HOUR

    def test_parse_epoch_millis(self) -> None:
        millis = int(FIXED_HOUR.timestamp() * 1000)
        assert parse_instant(millis) == FIXED_HOUR

    def test_parse_datetime_passthrough(self) -> None:
        assert parse_instant(FIXED_HOUR) == FIXED_HOUR
        assert parse_instant(FIXED_HOUR).tzinfo == UTC

    def test_parse_rejects_garbage(self) -> None:
        for value in (None, "", "   ", "yesterday", True, [], {}, float("nan"), float("inf")):
            assert parse_instant(value) is None, value
