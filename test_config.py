#!/usr/bin/env python3
"""Tests for YAML/environment configuration."""

from unittest.mock import patch

import pytest

from gz_stream.config import Configuration
from gz_stream.rate_limiting import RateLimitConfig


def make_configuration(mock_config: dict) -> Configuration:
    with patch.object(Configuration, '_load_yaml_config', return_value=mock_config):
        with patch.object(Configuration, 'load_env'):
            return Configuration()


def test_bundled_config_loads(monkeypatch):
    monkeypatch.delenv("GZ_STREAM_CONFIG", raising=False)
    monkeypatch.delenv("GZ_CHAT_BASE_URL", raising=False)
    with patch.object(Configuration, 'load_env'):
        config = Configuration()

    assert config.get_sweep_interval() == 60.0
    assert config.get_rate_limit_configs() == {
        "chat": RateLimitConfig(max_requests=10, window_ms=60000),
        "workshop": RateLimitConfig(max_requests=30, window_ms=60000),
        "api": RateLimitConfig(max_requests=60, window_ms=60000),
    }
    assert config.get_chat_client_config()["base_url"] == "http://localhost:3000/api/chat"
    assert config.get_logging_config()["level"] == "INFO"


def test_config_path_from_environment(monkeypatch, tmp_path):
    config_file = tmp_path / "gz.yaml"
    config_file.write_text(
        "rate_limits:\n"
        "  sweep_interval: 1\n"
        "  limiters:\n"
        "    chat: {max_requests: 3, window_ms: 1000}\n"
    )
    monkeypatch.setenv("GZ_STREAM_CONFIG", str(config_file))

    with patch.object(Configuration, 'load_env'):
        config = Configuration()

    assert config.get_rate_limit_config("chat") == RateLimitConfig(max_requests=3, window_ms=1000)


def test_non_dict_yaml_is_rejected(monkeypatch, tmp_path):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("- just\n- a list\n")
    monkeypatch.setenv("GZ_STREAM_CONFIG", str(config_file))

    with patch.object(Configuration, 'load_env'):
        with pytest.raises(ValueError, match="YAML dict"):
            Configuration()


def test_chat_client_config_env_override(monkeypatch):
    monkeypatch.setenv("GZ_CHAT_BASE_URL", "https://staging.example/api/chat")
    config = make_configuration({
        "chat": {"client": {"base_url": "http://localhost", "timeout": 60, "connect_timeout": 5}}
    })

    assert config.get_chat_client_config() == {
        "base_url": "https://staging.example/api/chat",
        "timeout": 60,
        "connect_timeout": 5,
    }


@pytest.mark.parametrize("client_config,message", [
    ({"timeout": 60, "connect_timeout": 5}, "base_url must be explicitly configured"),
    ({"base_url": "http://x", "timeout": 0, "connect_timeout": 5}, "timeout must be positive"),
    ({"base_url": "http://x", "timeout": 60, "connect_timeout": -1}, "connect_timeout must be positive"),
])
def test_chat_client_config_validation(monkeypatch, client_config, message):
    monkeypatch.delenv("GZ_CHAT_BASE_URL", raising=False)
    config = make_configuration({"chat": {"client": client_config}})

    with pytest.raises(ValueError, match=message):
        config.get_chat_client_config()


def test_rate_limit_validation():
    config = make_configuration({
        "rate_limits": {
            "limiters": {
                "chat": {"max_requests": 0, "window_ms": 1000},
                "workshop": {"max_requests": 5},
            }
        }
    })

    with pytest.raises(ValueError, match="rate_limits.limiters.chat: max_requests"):
        config.get_rate_limit_config("chat")
    with pytest.raises(ValueError, match="workshop.window_ms must be explicitly configured"):
        config.get_rate_limit_config("workshop")
    with pytest.raises(ValueError, match="'export' not found"):
        config.get_rate_limit_config("export")
    with pytest.raises(ValueError, match="sweep_interval must be explicitly configured"):
        config.get_sweep_interval()


def test_missing_rate_limits_section():
    config = make_configuration({})

    with pytest.raises(ValueError, match="rate_limits must be configured"):
        config.get_rate_limit_configs()
    assert config.get_logging_config() == {}


def test_empty_limiters_rejected():
    config = make_configuration({"rate_limits": {"sweep_interval": 10, "limiters": {}}})

    with pytest.raises(ValueError, match="At least one limiter"):
        config.get_rate_limit_configs()


def test_invalid_sweep_interval():
    config = make_configuration({"rate_limits": {"sweep_interval": -5}})

    with pytest.raises(ValueError, match="sweep_interval must be positive"):
        config.get_sweep_interval()


def test_chat_api_token(monkeypatch):
    config = make_configuration({})

    monkeypatch.delenv("GZ_CHAT_API_TOKEN", raising=False)
    assert config.chat_api_token is None

    monkeypatch.setenv("GZ_CHAT_API_TOKEN", "abc")
    assert config.chat_api_token == "abc"
