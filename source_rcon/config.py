from __future__ import annotations

import logging
import os
from typing import Any, Dict

from dotenv import load_dotenv

from source_rcon.protocol.constants import (
    DEFAULT_ENCODING,
    DEFAULT_HOST,
    DEFAULT_MAXIMUM_PACKET_SIZE,
    DEFAULT_PORT,
    DEFAULT_QUEUE_TIMEOUT_MS,
    DEFAULT_TIMEOUT_MS,
    SUPPORTED_ENCODINGS,
)

DEFAULT_CONFIG: Dict[str, Any] = {
    "host": DEFAULT_HOST,
    "port": DEFAULT_PORT,
    "password": "",
    "maximum_packet_size": DEFAULT_MAXIMUM_PACKET_SIZE,
    "encoding": DEFAULT_ENCODING,
    "timeout": DEFAULT_TIMEOUT_MS,
    "queue_timeout": DEFAULT_QUEUE_TIMEOUT_MS,
    "skip_auth_preamble": False,
    "reassemble_frames": True,
    "log_level": "INFO",
}

RCON_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()


class ConfigError(Exception):
    """Raised when configuration values are invalid."""

    pass


def load_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load client configuration from env file/environment variables (RCON_<KEY>)."""
    if os.path.exists(env_path):
        load_dotenv(env_path)

    for key, default_value in DEFAULT_CONFIG.items():
        env_key = f"RCON_{key.upper()}"
        value = os.getenv(env_key, default_value)
        RCON_CONFIG[key] = _coerce_type(value, type(default_value))

    validate_config(RCON_CONFIG)
    logging.getLogger().setLevel(RCON_CONFIG["log_level"])
    return RCON_CONFIG


def _coerce_type(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    try:
        if target_type is bool:
            return str(value).lower() in ("1", "true", "yes", "on")
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value} to {target_type}") from exc


def validate_config(config: Dict[str, Any]) -> None:
    if not (1 <= int(config["port"]) <= 65535):
        raise ConfigError("port must be between 1 and 65535")
    if int(config["maximum_packet_size"]) < 0:
        raise ConfigError("maximum_packet_size must be zero (unlimited) or positive")
    if config["encoding"] not in SUPPORTED_ENCODINGS:
        raise ConfigError(f"encoding must be one of {', '.join(SUPPORTED_ENCODINGS)}")
    if config["timeout"] <= 0:
        raise ConfigError("timeout must be positive")
    if config["queue_timeout"] <= 0:
        raise ConfigError("queue_timeout must be positive")


__all__ = ["RCON_CONFIG", "DEFAULT_CONFIG", "ConfigError", "load_config", "validate_config"]
