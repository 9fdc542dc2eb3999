"""
Request Context and Configuration State for Logging.

The request ID lives in a ContextVar so that concurrent requests handled
by the same worker never see each other's IDs. Logging configuration is
module-level state shared by the whole process.

Environment Variables:
    - MEDIA_PROXY_SETTINGS: Settings file to read the logging section from
    - MEDIA_PROXY_LOG_LEVEL: Override log level (1-4 or name)
    - MEDIA_PROXY_LOG_DIR: Directory for the JSONL log file
    - MEDIA_PROXY_JSONL_FILE: JSONL filename
    - MEDIA_PROXY_LOG_ROTATE_BYTES: Max file size before rotation
    - MEDIA_PROXY_LOG_ROTATE_BACKUP: Number of rotated files to keep
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LEVEL_NAMES, LogLevel

# "-" marks log lines emitted outside a request
_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Get current request ID from context ("-" if not set)."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """
    Set request ID in context for log correlation.

    Args:
        rid: Request identifier string (12-char UUID prefix).
    """
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    """Get current log level as a name ("MINIMAL" ... "DEBUG")."""
    return LEVEL_NAMES.get(_current_level, "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def get_log_config() -> Dict[str, Any]:
    return _log_config


def set_log_config(config: Dict[str, Any]) -> None:
    global _log_config
    _log_config = config


def _read_settings_section() -> Dict[str, Any]:
    """Read the logging section of the settings file, if there is one."""
    settings_path = os.getenv("MEDIA_PROXY_SETTINGS", "config/settings.yaml")
    if not os.path.exists(settings_path):
        return {}
    with open(settings_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return dict(raw.get("logging", {}) or {})


def read_logging_config() -> Dict[str, Any]:
    """
    Read logging configuration from settings file and environment.

    Priority (highest to lowest):
        1. MEDIA_PROXY_* environment variables
        2. settings.yaml logging section
        3. Defaults applied by configure_logging()

    Returns:
        Dictionary with resolved logging configuration.
    """
    cfg: Dict[str, Any] = {}
    try:
        cfg.update(_read_settings_section())
    except (OSError, yaml.YAMLError):
        # Broken settings file is reported by load_settings(), not here
        pass

    if os.getenv("MEDIA_PROXY_LOG_LEVEL"):
        cfg["level"] = os.environ["MEDIA_PROXY_LOG_LEVEL"]
    if os.getenv("MEDIA_PROXY_LOG_DIR"):
        cfg["log_dir"] = os.environ["MEDIA_PROXY_LOG_DIR"]
    if os.getenv("MEDIA_PROXY_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["MEDIA_PROXY_JSONL_FILE"]
    for env_key, cfg_key in (
        ("MEDIA_PROXY_LOG_ROTATE_BYTES", "rotate_max_bytes"),
        ("MEDIA_PROXY_LOG_ROTATE_BACKUP", "rotate_backup_count"),
    ):
        value = os.getenv(env_key)
        if value:
            try:
                cfg[cfg_key] = int(value)
            except ValueError:
                pass  # Invalid value, ignore

    return cfg
