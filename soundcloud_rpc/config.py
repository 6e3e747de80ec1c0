from __future__ import annotations

import logging
import os
from typing import Any, Dict

from dotenv import load_dotenv

ENV_PREFIX = "SCRPC_"

DEFAULT_CONFIG: Dict[str, Any] = {
    "soundcloud_client_id": "",
    "soundcloud_auth_token": "",
    # Don't change this unless you registered your own Discord application.
    "discord_app_id": "1270073214063743036",
    # Increase this if SoundCloud starts rate limiting the play-history endpoint.
    "update_interval_seconds": 5,
    "pipe_candidates": 10,
    "connect_timeout": 1.0,
    "request_timeout": 10,
    "log_level": "INFO",
    "debug_mode": False,
}

CLIENT_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()

MIN_CLIENT_ID_LENGTH = 16
MIN_AUTH_TOKEN_LENGTH = 32


class ConfigError(Exception):
    """Raised when configuration values are invalid."""

    pass


def load_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load client configuration from env file/environment variables."""
    if os.path.exists(env_path):
        load_dotenv(env_path)

    for key, default_value in DEFAULT_CONFIG.items():
        env_key = f"{ENV_PREFIX}{key.upper()}"
        value = os.getenv(env_key, default_value)
        CLIENT_CONFIG[key] = _coerce_type(value, type(default_value))

    _validate_config()
    logging.getLogger().setLevel(CLIENT_CONFIG["log_level"])
    return CLIENT_CONFIG


def _coerce_type(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    try:
        if target_type is bool:
            return str(value).lower() in ("1", "true", "yes", "on")
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value} to {target_type}") from exc


def _validate_config() -> None:
    if CLIENT_CONFIG["update_interval_seconds"] <= 0:
        raise ConfigError("update_interval_seconds must be positive")
    if CLIENT_CONFIG["pipe_candidates"] <= 0:
        raise ConfigError("pipe_candidates must be positive")
    if CLIENT_CONFIG["connect_timeout"] <= 0:
        raise ConfigError("connect_timeout must be positive")
    if CLIENT_CONFIG["request_timeout"] <= 0:
        raise ConfigError("request_timeout must be positive")
    if not CLIENT_CONFIG["discord_app_id"]:
        raise ConfigError("discord_app_id must not be empty")
    if len(CLIENT_CONFIG["soundcloud_client_id"]) < MIN_CLIENT_ID_LENGTH:
        raise ConfigError(f"soundcloud_client_id must be at least {MIN_CLIENT_ID_LENGTH} characters")
    if len(CLIENT_CONFIG["soundcloud_auth_token"]) < MIN_AUTH_TOKEN_LENGTH:
        raise ConfigError(f"soundcloud_auth_token must be at least {MIN_AUTH_TOKEN_LENGTH} characters")
    level = str(CLIENT_CONFIG["log_level"]).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown log_level {CLIENT_CONFIG['log_level']}")
    CLIENT_CONFIG["log_level"] = level


__all__ = ["CLIENT_CONFIG", "DEFAULT_CONFIG", "ConfigError", "load_config"]
