"""
Tests for SyncSettings.from_env().
"""

from __future__ import annotations

from pathlib import Path

from webmirror import __version__
from webmirror.mirror.config import SyncSettings

ENV_VARS = [
    "WEBMIRROR_MIN_INTERVAL",
    "WEBMIRROR_TIMEOUT",
    "WEBMIRROR_USER_AGENT",
    "WEBMIRROR_TOUCH_UNCHANGED",
    "WEBMIRROR_JOURNAL",
    "WEBMIRROR_SOURCES_FILE",
    "WEBMIRROR_PROFILES_FILE",
]


def clear_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSyncSettings:

    def test_defaults(self, monkeypatch):
        clear_env(monkeypatch)

        settings = SyncSettings.from_env()

        assert settings.min_interval == 1.0
        assert settings.timeout == 30.0
        assert settings.user_agent == f"webmirror/{__version__}"
        assert settings.touch_unchanged is True
        assert settings.journal is True
        assert settings.sources_file is None
        assert settings.profiles_file is None

    def test_from_env(self, monkeypatch):
        clear_env(monkeypatch)
        monkeypatch.setenv("WEBMIRROR_MIN_INTERVAL", "0.25")
        monkeypatch.setenv("WEBMIRROR_TIMEOUT", "5")
        monkeypatch.setenv("WEBMIRROR_USER_AGENT", "mirror-bot/2")
        monkeypatch.setenv("WEBMIRROR_TOUCH_UNCHANGED", "no")
        monkeypatch.setenv("WEBMIRROR_JOURNAL", "false")
        monkeypatch.setenv("WEBMIRROR_SOURCES_FILE", "/etc/webmirror/sources.yaml")

        settings = SyncSettings.from_env()

        assert settings.min_interval == 0.25
        assert settings.timeout == 5.0
        assert settings.user_agent == "mirror-bot/2"
        assert settings.touch_unchanged is False
        assert settings.journal is False
        assert settings.sources_file == Path("/etc/webmirror/sources.yaml")

    def test_invalid_number_falls_back(self, monkeypatch):
        clear_env(monkeypatch)
        monkeypatch.setenv("WEBMIRROR_MIN_INTERVAL", "soon")
        monkeypatch.setenv("WEBMIRROR_TIMEOUT", "-3")

        settings = SyncSettings.from_env()

        assert settings.min_interval == 1.0
        assert settings.timeout == 30.0

    def test_zero_interval_disables_pacing(self, monkeypatch):
        clear_env(monkeypatch)
        monkeypatch.setenv("WEBMIRROR_MIN_INTERVAL", "0")
        assert SyncSettings.from_env().min_interval == 0.0
