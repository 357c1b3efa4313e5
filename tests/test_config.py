"""
Tests for configuration handling.
"""

import logging

import pytest

from smokefree import config


class TestValidatePushConfig:
    """Tests for validate_push_config function."""

    def test_all_present(self, monkeypatch):
        monkeypatch.setattr(config, "PUSH_API_BASE", "https://push.example.org/api")
        monkeypatch.setattr(config, "PUSH_API_TOKEN", "secret")

        config.validate_push_config()
        assert config.is_push_configured() is True

    def test_missing_both(self, monkeypatch):
        monkeypatch.setattr(config, "PUSH_API_BASE", None)
        monkeypatch.setattr(config, "PUSH_API_TOKEN", None)

        with pytest.raises(ValueError, match="PUSH_API_BASE, PUSH_API_TOKEN"):
            config.validate_push_config()
        assert config.is_push_configured() is False

    def test_placeholder_token_counts_as_missing(self, monkeypatch):
        monkeypatch.setattr(config, "PUSH_API_BASE", "https://push.example.org/api")
        monkeypatch.setattr(config, "PUSH_API_TOKEN", "your_token_here")

        with pytest.raises(ValueError, match="PUSH_API_TOKEN"):
            config.validate_push_config()


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_level_argument(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        config.configure_logging("debug")

        assert calls[0]["level"] == "DEBUG"

    def test_defaults_to_env_level(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        monkeypatch.setattr(config, "LOG_LEVEL", "warning")

        config.configure_logging()

        assert calls[0]["level"] == "WARNING"
