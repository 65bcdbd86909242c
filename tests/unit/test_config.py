"""
Unit tests for application configuration.
"""

import pytest

from httpmessage.config import AppConfig


class TestFromEnv:
    """Tests for AppConfig.from_env."""

    def test_defaults(self, monkeypatch):
        """Test defaults when nothing is set."""
        for name in (
            "HTTPMESSAGE_LOG_LEVEL",
            "HTTPMESSAGE_LOG_FORMAT",
            "HTTPMESSAGE_TRUST_FORWARDED_PROTO",
            "HTTPMESSAGE_SERVER_NAME",
            "HTTPMESSAGE_CHUNK_SIZE",
        ):
            monkeypatch.delenv(name, raising=False)

        config = AppConfig.from_env()

        assert config == AppConfig()

    def test_overrides(self, monkeypatch):
        """Test reading every variable."""
        monkeypatch.setenv("HTTPMESSAGE_LOG_LEVEL", "warning")
        monkeypatch.setenv("HTTPMESSAGE_LOG_FORMAT", "JSON")
        monkeypatch.setenv("HTTPMESSAGE_TRUST_FORWARDED_PROTO", "no")
        monkeypatch.setenv("HTTPMESSAGE_SERVER_NAME", "edge")
        monkeypatch.setenv("HTTPMESSAGE_CHUNK_SIZE", "512")

        config = AppConfig.from_env()

        assert config.log_level == "WARNING"
        assert config.log_format == "json"
        assert config.trust_forwarded_proto is False
        assert config.server_name == "edge"
        assert config.chunk_size == 512

    @pytest.mark.parametrize("name, value", [
        ("HTTPMESSAGE_TRUST_FORWARDED_PROTO", "maybe"),
        ("HTTPMESSAGE_CHUNK_SIZE", "big"),
    ])
    def test_unparseable(self, monkeypatch, name, value):
        """Test that bad values raise ValueError."""
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError):
            AppConfig.from_env()


class TestValidate:
    """Tests for AppConfig.validate."""

    def test_valid(self):
        AppConfig(log_level="debug", log_format="json").validate()

    @pytest.mark.parametrize("kwargs", [
        {"log_level": "LOUD"},
        {"log_format": "xml"},
        {"chunk_size": 0},
    ])
    def test_invalid(self, kwargs):
        """Test that invalid settings are rejected."""
        with pytest.raises(ValueError):
            AppConfig(**kwargs).validate()
