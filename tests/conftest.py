"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from starship_realtime.config import BitquerySettings, Settings, WindowSettings
from starship_realtime.window.clock import ClockAuthority
from tests.factories import FIXED_NOW


@pytest.fixture
def fixed_clock() -> ClockAuthority:
    """Clock pinned to FIXED_NOW (rounds to 12:00 UTC)."""
    return ClockAuthority(lambda: FIXED_NOW)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with a provider token and no static directory."""
    return Settings(
        bitquery=BitquerySettings(
            BITQUERY_TOKEN="test-token",
            BITQUERY_URL="https://bitquery.test/eap",
        ),
        window=WindowSettings(),
        STATIC_DIR=str(tmp_path / "missing"),
    )
