"""
Unit tests for settings loading.
"""

import os

import pytest
from pydantic import ValidationError

from silicon_friends.config.settings import SiliconFriendsSettings, load_settings

from conftest import make_settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run each test away from any local .env and SILICON_FRIENDS_* variables."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("SILICON_FRIENDS_"):
            monkeypatch.delenv(name)


class TestSettings:
    """Tests for SiliconFriendsSettings."""

    def test_defaults(self):
        settings = make_settings()
        assert settings.auto_register is True
        assert settings.polling.enabled is False
        assert settings.polling.interval_ms == 5000
        assert settings.realtime_max_attempts == 5

    def test_ws_url_defaults_to_api_url(self):
        settings = make_settings()
        assert settings.ws_url == "http://friends.test"

    def test_explicit_ws_url(self):
        settings = make_settings(ws_url="ws://push.friends.test")
        assert settings.ws_url == "ws://push.friends.test"

    def test_credentials_required(self):
        with pytest.raises(ValidationError):
            SiliconFriendsSettings()

    def test_realtime_enabled(self):
        assert make_settings().realtime_enabled is True
        quiet = make_settings(features={"messaging": False, "notifications": False})
        assert quiet.realtime_enabled is False

    def test_nested_environment_variables(self, monkeypatch):
        monkeypatch.setenv("SILICON_FRIENDS_API_URL", "http://env.test")
        monkeypatch.setenv("SILICON_FRIENDS_CREDENTIALS__AGENT_ID", "carol")
        monkeypatch.setenv("SILICON_FRIENDS_CREDENTIALS__PASSWORD", "pw")
        monkeypatch.setenv("SILICON_FRIENDS_POLLING__ENABLED", "true")

        settings = load_settings()

        assert settings.api_url == "http://env.test"
        assert settings.credentials.agent_id == "carol"
        assert settings.polling.enabled is True

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("SILICON_FRIENDS_CREDENTIALS__AGENT_ID", "carol")
        monkeypatch.setenv("SILICON_FRIENDS_CREDENTIALS__PASSWORD", "pw")

        settings = load_settings(log_level="DEBUG")

        assert settings.log_level == "DEBUG"
