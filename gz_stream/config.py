"""Configuration management for gz-stream."""

import os
from typing import Any

import yaml
from dotenv import load_dotenv

from .rate_limiting.models import RateLimitConfig

CONFIG_PATH_ENV = "GZ_STREAM_CONFIG"


class Configuration:
    """Manages configuration and environment variables for gz-stream."""

    def __init__(self) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for tokens and overrides
        self._config = self._load_yaml_config()  # Load YAML config

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        config_path = os.getenv(CONFIG_PATH_ENV) or os.path.join(
            os.path.dirname(__file__), "config.yaml"
        )
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @property
    def chat_api_token(self) -> str | None:
        """Bearer token for the chat endpoint, if one is configured."""
        return os.getenv("GZ_CHAT_API_TOKEN") or None

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary.

        Returns:
            The complete configuration dictionary.
        """
        return self._config

    def get_chat_client_config(self) -> dict[str, Any]:
        """Get chat client configuration from YAML.

        Returns:
            Dictionary with base_url, timeout and connect_timeout.

        Raises:
            ValueError: If required client parameters are missing or invalid.
        """
        client_config = self._config.get("chat", {}).get("client", {})

        required_keys = ["base_url", "timeout", "connect_timeout"]
        for key in required_keys:
            if key not in client_config:
                raise ValueError(
                    f"{key} must be explicitly configured in config.yaml "
                    "under chat.client"
                )

        base_url = os.getenv("GZ_CHAT_BASE_URL") or client_config["base_url"]
        timeout = client_config["timeout"]
        connect_timeout = client_config["connect_timeout"]

        if not isinstance(base_url, str) or not base_url:
            raise ValueError("chat.client.base_url must be a non-empty string")
        if timeout <= 0:
            raise ValueError("chat.client.timeout must be positive")
        if connect_timeout <= 0:
            raise ValueError("chat.client.connect_timeout must be positive")

        return {
            "base_url": base_url,
            "timeout": timeout,
            "connect_timeout": connect_timeout,
        }

    def _get_rate_limits_section(self) -> dict[str, Any]:
        rate_limits = self._config.get("rate_limits")
        if not isinstance(rate_limits, dict):
            raise ValueError("rate_limits must be configured in config.yaml")
        return rate_limits

    def get_sweep_interval(self) -> float:
        """Get the interval between sweeps of expired rate limit entries.

        Returns:
            Sweep interval in seconds.

        Raises:
            ValueError: If sweep_interval is not configured or invalid.
        """
        rate_limits = self._get_rate_limits_section()

        if "sweep_interval" not in rate_limits:
            raise ValueError(
                "sweep_interval must be explicitly configured in config.yaml "
                "under rate_limits"
            )

        interval = rate_limits["sweep_interval"]
        if not isinstance(interval, int | float) or interval <= 0:
            raise ValueError("rate_limits.sweep_interval must be positive")

        return float(interval)

    def get_rate_limit_config(self, name: str) -> RateLimitConfig:
        """Get the quota for one named limiter.

        Args:
            name: Limiter name, e.g. "chat".

        Returns:
            Validated RateLimitConfig.

        Raises:
            ValueError: If the limiter is missing or its values are invalid.
        """
        limiters = self._get_rate_limits_section().get("limiters", {})
        if name not in limiters:
            raise ValueError(
                f"Rate limiter '{name}' not found under rate_limits.limiters"
            )

        limiter_config = limiters[name]
        for key in ("max_requests", "window_ms"):
            if key not in limiter_config:
                raise ValueError(
                    f"rate_limits.limiters.{name}.{key} must be explicitly "
                    "configured in config.yaml"
                )

        try:
            return RateLimitConfig(
                max_requests=limiter_config["max_requests"],
                window_ms=limiter_config["window_ms"],
            )
        except ValueError as e:
            raise ValueError(f"rate_limits.limiters.{name}: {e}") from e

    def get_rate_limit_configs(self) -> dict[str, RateLimitConfig]:
        """Get quotas for every configured limiter."""
        limiters = self._get_rate_limits_section().get("limiters", {})
        if not limiters:
            raise ValueError(
                "At least one limiter must be configured under rate_limits.limiters"
            )
        return {name: self.get_rate_limit_config(name) for name in limiters}

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML.

        Returns:
            Logging configuration dictionary.
        """
        return self._config.get("logging", {})
