"""
Unit tests for ClientConfig.
"""

import pytest

from httpclient import ClientConfig


class TestClientConfig:
    """Tests for defaults, environment loading and validation."""

    def test_defaults(self):
        config = ClientConfig()

        assert config.buffer_size == 8192
        assert config.entry_size == 2048
        assert config.timeout == 30.0
        assert config.verify_tls is True
        config.validate()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("HTTP_CLIENT_BUFFER_SIZE", "4096")
        monkeypatch.setenv("HTTP_CLIENT_ENTRY_SIZE", "512")
        monkeypatch.setenv("HTTP_CLIENT_TIMEOUT", "2.5")
        monkeypatch.setenv("HTTP_CLIENT_VERIFY_TLS", "no")
        monkeypatch.setenv("HTTP_CLIENT_LOG_LEVEL", "DEBUG")

        config = ClientConfig.from_env()

        assert config.buffer_size == 4096
        assert config.entry_size == 512
        assert config.timeout == 2.5
        assert config.verify_tls is False
        assert config.log_level == "DEBUG"

    def test_from_env_blocking_timeout(self, monkeypatch):
        monkeypatch.setenv("HTTP_CLIENT_TIMEOUT", "none")

        assert ClientConfig.from_env().timeout is None

    @pytest.mark.parametrize("kwargs", [
        {"buffer_size": 10},
        {"entry_size": 4},
        {"timeout": 0},
        {"timeout": -1.0},
    ])
    def test_validate_rejects(self, kwargs):
        with pytest.raises(ValueError):
            ClientConfig(**kwargs).validate()

    def test_invalid_config_fails_before_sending(self, make_context):
        """Test that send() validates the config before writing."""
        with pytest.raises(ValueError):
            make_context([], config=ClientConfig(buffer_size=1))
