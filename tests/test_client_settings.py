"""Tests for environment-derived client settings."""

import pydantic
import pytest

from FleetHTTP.settings import ClientSettings, get_settings, reset_settings


class TestClientSettings:
    def test_defaults(self):
        settings = ClientSettings()

        assert settings.location_trusted is False
        assert settings.certificate_expire_warning == 60 * 24 * 3600
        assert settings.keepalive_timeout == 4.0
        assert settings.retry_backoff_seconds == 3.0
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FLEETHTTP_LOCATION_TRUSTED", "true")
        monkeypatch.setenv("FLEETHTTP_KEEPALIVE_TIMEOUT", "15")
        monkeypatch.setenv("fleethttp_log_level", "debug")

        settings = ClientSettings()

        assert settings.location_trusted is True
        assert settings.keepalive_timeout == 15.0
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(pydantic.ValidationError, match="log_level"):
            ClientSettings(log_level="chatty")

    def test_timeouts_must_be_positive(self):
        with pytest.raises(pydantic.ValidationError):
            ClientSettings(read_timeout=0)


class TestSettingsSingleton:
    def test_cached_until_reset(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("FLEETHTTP_LOCATION_TRUSTED", "1")

        assert get_settings() is first
        reset_settings()
        assert get_settings().location_trusted is True

    def test_location_trusted_reaches_redirects(self, monkeypatch, scripted_pool, sleep_recorder):
        from FleetHTTP.network.connection import Connection
        from tests.fixtures.http_mocking import FakeVerifier, redirect, response

        monkeypatch.setenv("FLEETHTTP_LOCATION_TRUSTED", "yes")
        scripted_pool.queue("https://a.example", redirect("https://b.example/"))
        scripted_pool.queue("https://b.example", response(200))
        conn = Connection(
            "a.example", 443, {"verify": FakeVerifier()}, pool=scripted_pool, retry_sleep=sleep_recorder
        )

        conn.get("/", {"Cookie": "session=1"})

        assert scripted_pool.sent[1][1].headers["cookie"] == "session=1"
