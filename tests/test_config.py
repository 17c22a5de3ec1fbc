"""Tests for configuration management."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from starship_realtime.config import (
    BitquerySettings,
    Settings,
    WindowSettings,
    clear_settings_cache,
    get_settings,
)


class TestWindowSettings:
    """Tests for WindowSettings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("WINDOW_REALTIME_HOURS", "WINDOW_MAX_HOURS", "WINDOW_DEFAULT_LIMIT", "WINDOW_TOLERANCE_MS"):
            monkeypatch.delenv(name, raising=False)
        window = WindowSettings()

        assert window.realtime_hours == 68
        assert window.max_hours == 4
        assert window.default_limit == 100
        assert window.tolerance_ms == 1500

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WINDOW_REALTIME_HOURS", "24")
        monkeypatch.setenv("WINDOW_MAX_HOURS", "6")
        window = WindowSettings()

        assert window.realtime_hours == 24
        assert window.max_hours == 6

    def test_horizon_must_divide_into_windows(self) -> None:
        with pytest.raises(ValidationError):
            WindowSettings(WINDOW_REALTIME_HOURS=10, WINDOW_MAX_HOURS=4)


class TestBitquerySettings:
    """Tests for BitquerySettings."""

    def test_url_must_be_http(self) -> None:
        with pytest.raises(ValidationError):
            BitquerySettings(BITQUERY_URL="ftp://example.com")

    def test_url_trailing_slash_stripped(self) -> None:
        assert BitquerySettings(BITQUERY_URL="https://example.com/eap/").url == "https://example.com/eap"


class TestSettings:
    """Tests for root Settings."""

    def test_missing_token_fails_requirements(self) -> None:
        settings = Settings(bitquery=BitquerySettings(BITQUERY_TOKEN=""))
        with pytest.raises(ValueError, match="BITQUERY_TOKEN"):
            settings.validate_requirements()

    def test_token_passes_requirements(self, settings: Settings) -> None:
        assert settings.validate_requirements() == "test-token"

    def test_redacted_summary_hides_token(self, settings: Settings) -> None:
        summary = settings.redacted_summary()
        assert summary["bitquery"]["token"] == "(set)"
        assert "test-token" not in str(summary)

    def test_logging_level(self, settings: Settings) -> None:
        assert settings.get_logging_level() == logging.INFO

    def test_get_settings_is_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BITQUERY_TOKEN", "env-token")
        clear_settings_cache()
        try:
            first = get_settings()
            assert first is get_settings()
            assert first.bitquery.token is not None
            assert first.bitquery.token.get_secret_value() == "env-token"
        finally:
            clear_settings_cache()
