"""Configuration management for the streaming chat client."""

import os
from typing import Any

import yaml
from dotenv import load_dotenv

API_TOKEN_ENV = "SHAMELA_API_TOKEN"
BASE_URL_ENV = "SHAMELA_API_BASE_URL"


class Configuration:
    """Manages configuration and environment variables for the client."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for the API token
        self._config = self._load_yaml_config(config_path)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self, config_path: str | None) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if config_path is None:
            config_path = os.path.join(os.path.dirname(__file__), "config.yaml")
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @property
    def api_token(self) -> str | None:
        """Get the bearer token for authenticated endpoints.

        Returns:
            The token, or None when only guest endpoints will be used.
        """
        token = os.getenv(API_TOKEN_ENV)
        return token or None

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary."""
        return self._config

    def get_api_config(self) -> dict[str, Any]:
        """Get API connection configuration from YAML.

        Returns:
            API configuration dictionary with validated values.

        Raises:
            ValueError: If required API parameters are missing or invalid.
        """
        api_config = self._config.get("api", {})

        required_keys = ["base_url", "request_timeout", "connect_timeout", "endpoints"]
        for key in required_keys:
            if key not in api_config:
                raise ValueError(
                    f"api.{key} must be explicitly configured in config.yaml"
                )

        endpoints = api_config["endpoints"]
        endpoint_keys = ["chat", "guest_chat", "confirm_fact_check"]
        for key in endpoint_keys:
            if key not in endpoints:
                raise ValueError(
                    f"api.endpoints.{key} must be explicitly configured "
                    "in config.yaml"
                )

        request_timeout = api_config["request_timeout"]
        connect_timeout = api_config["connect_timeout"]

        if request_timeout <= 0:
            raise ValueError("api.request_timeout must be positive")
        if connect_timeout <= 0:
            raise ValueError("api.connect_timeout must be positive")

        # Create new dictionary without mutating the original
        return {
            "base_url": os.getenv(BASE_URL_ENV) or api_config["base_url"],
            "request_timeout": request_timeout,
            "connect_timeout": connect_timeout,
            "endpoints": {key: endpoints[key] for key in endpoint_keys},
        }

    def get_streaming_config(self) -> dict[str, Any]:
        """Get streaming configuration from YAML.

        Raises:
            ValueError: If log_preview_chars is missing or not a positive integer.
        """
        streaming_config = self._config.get("streaming", {})

        if "log_preview_chars" not in streaming_config:
            raise ValueError(
                "streaming.log_preview_chars must be explicitly configured "
                "in config.yaml"
            )

        preview = streaming_config["log_preview_chars"]
        if not isinstance(preview, int) or preview < 1:
            raise ValueError("log_preview_chars must be a positive integer")

        return {**streaming_config}

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML."""
        return self._config.get("logging", {"level": "INFO"})
