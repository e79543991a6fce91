from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from debugproto.protocol.constants import DEFAULT_CHUNK_SIZE

VERBOSITY_LEVELS = ("quiet", "normal", "verbose")

DEFAULT_CONFIG: Dict[str, Any] = {
    "device_host": "localhost",
    "device_port": 6000,
    "app_path": ".",
    "launch": False,
    "verbosity": "normal",
    "log_level": "WARNING",
    "chunk_size": DEFAULT_CHUNK_SIZE,
    "request_timeout": 0.0,
    "connect_timeout": 10.0,
    "strict_frame_length": False,
}

CLIENT_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()


class ConfigError(Exception):
    """Raised when configuration values are invalid."""

    pass


def load_config(env_path: str = ".env", overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Load deploy configuration from env file/environment variables.

    ``overrides`` (typically parsed command line flags) win over the
    environment; ``None`` values in it are ignored.
    """
    if os.path.exists(env_path):
        load_dotenv(env_path)

    for key, default_value in DEFAULT_CONFIG.items():
        env_key = f"KAIDEPLOY_{key.upper()}"
        value = os.getenv(env_key, default_value)
        CLIENT_CONFIG[key] = _coerce_type(value, type(default_value))

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key not in DEFAULT_CONFIG:
            raise ConfigError(f"Unknown config key {key!r}")
        CLIENT_CONFIG[key] = _coerce_type(value, type(DEFAULT_CONFIG[key]))

    _validate_config()
    logging.getLogger().setLevel(CLIENT_CONFIG["log_level"])
    return CLIENT_CONFIG


def parse_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts; the port is mandatory."""
    host, sep, port = address.rpartition(":")
    if not sep or not host:
        raise ConfigError(f"Address must look like host:port, got {address!r}")
    try:
        return host.strip("[]"), int(port)
    except ValueError as exc:
        raise ConfigError(f"Invalid port in address {address!r}") from exc


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
    if not (1 <= int(CLIENT_CONFIG["device_port"]) <= 65535):
        raise ConfigError("device_port must be between 1 and 65535")
    if CLIENT_CONFIG["chunk_size"] <= 0:
        raise ConfigError("chunk_size must be positive")
    if CLIENT_CONFIG["request_timeout"] < 0:
        raise ConfigError("request_timeout must not be negative")
    if CLIENT_CONFIG["connect_timeout"] < 0:
        raise ConfigError("connect_timeout must not be negative")
    if CLIENT_CONFIG["verbosity"] not in VERBOSITY_LEVELS:
        raise ConfigError(f"verbosity must be one of {', '.join(VERBOSITY_LEVELS)}")
    if not isinstance(logging.getLevelName(str(CLIENT_CONFIG["log_level"]).upper()), int):
        raise ConfigError(f"Unknown log_level {CLIENT_CONFIG['log_level']!r}")
    CLIENT_CONFIG["log_level"] = str(CLIENT_CONFIG["log_level"]).upper()


__all__ = ["CLIENT_CONFIG", "DEFAULT_CONFIG", "VERBOSITY_LEVELS", "ConfigError", "load_config", "parse_address"]
