"""
Configuration Management for media-proxy.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration sections
    - YAML file loading with environment variable overrides
    - Credential lookup from a key-value environment mapping

Configuration Hierarchy (highest priority first):
    1. Environment variables (MEDIA_PROXY_MAX_BODY_BYTES, etc.)
    2. YAML config file (config/settings.yaml)
    3. Defaults class values

Credentials never live in the YAML file. They are read from the process
environment (or any mapping handed to Credentials.from_env).

Example settings.yaml:
    upstreams:
      elevenlabs:
        base_url: https://api.elevenlabs.io
        timeout_s: 60

    limits:
      max_body_bytes: 10485760

    cors:
      allow_origins: ["*"]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import os
import yaml


class ConfigValidationError(Exception):
    """Raised when a configuration value is outside acceptable bounds."""
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Upstreams: Base URLs, timeouts and model identifiers per provider
        - Limits: Inbound body ceiling enforced before decoding
        - CORS: Allowed origins for browser callers
        - Logging: Log level
    """

    # ─────────────────────────────────────────────────────────────────────────
    # ElevenLabs (speech-to-speech, text-to-speech, voices)
    # ─────────────────────────────────────────────────────────────────────────
    ELEVENLABS_BASE_URL = "https://api.elevenlabs.io"
    ELEVENLABS_TIMEOUT_S = 60.0
    STS_MODEL_ID = "eleven_multilingual_sts_v2"
    TTS_MODEL_ID = "eleven_multilingual_v2"
    STS_FALLBACK_FILENAME = "recording.webm"
    STS_FALLBACK_CONTENT_TYPE = "audio/webm"

    # ─────────────────────────────────────────────────────────────────────────
    # Pixian (background removal)
    # ─────────────────────────────────────────────────────────────────────────
    PIXIAN_BASE_URL = "https://api.pixian.ai"
    PIXIAN_TIMEOUT_S = 60.0
    PIXIAN_TEST_MODE = True         # Watermarked results, no credits used

    # ─────────────────────────────────────────────────────────────────────────
    # Anthropic (text generation)
    # ─────────────────────────────────────────────────────────────────────────
    ANTHROPIC_BASE_URL = "https://api.anthropic.com"
    ANTHROPIC_TIMEOUT_S = 120.0
    ANTHROPIC_VERSION = "2023-06-01"
    ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
    ANTHROPIC_MAX_TOKENS = 1024

    # ─────────────────────────────────────────────────────────────────────────
    # Gemini (image generation)
    # ─────────────────────────────────────────────────────────────────────────
    GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"
    GEMINI_TIMEOUT_S = 120.0
    GEMINI_MODEL = "gemini-2.5-flash-image"

    # ─────────────────────────────────────────────────────────────────────────
    # Limits
    # ─────────────────────────────────────────────────────────────────────────
    MAX_BODY_BYTES = 10 * 1024 * 1024   # 10MB inbound ceiling

    # ─────────────────────────────────────────────────────────────────────────
    # CORS
    # ─────────────────────────────────────────────────────────────────────────
    CORS_ALLOW_ORIGINS = ("*",)
    CORS_ALLOW_METHODS = ("GET", "POST", "OPTIONS")
    CORS_ALLOW_HEADERS = ("Content-Type",)

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG


@dataclass
class UpstreamConfig:
    """Connection settings for one third-party API."""
    base_url: str
    timeout_s: float
    model: str = ""


@dataclass
class SpeechConfig:
    """ElevenLabs request defaults."""
    sts_model_id: str = Defaults.STS_MODEL_ID
    tts_model_id: str = Defaults.TTS_MODEL_ID
    fallback_filename: str = Defaults.STS_FALLBACK_FILENAME
    fallback_content_type: str = Defaults.STS_FALLBACK_CONTENT_TYPE


@dataclass
class LimitsConfig:
    """
    Inbound request limits.

    The multipart decoder itself never enforces a size; this ceiling is
    checked by the transport layer before the body is decoded.
    """
    max_body_bytes: int = Defaults.MAX_BODY_BYTES


@dataclass
class CorsConfig:
    """Cross-origin policy applied to every endpoint."""
    allow_origins: List[str] = field(default_factory=lambda: list(Defaults.CORS_ALLOW_ORIGINS))
    allow_methods: List[str] = field(default_factory=lambda: list(Defaults.CORS_ALLOW_METHODS))
    allow_headers: List[str] = field(default_factory=lambda: list(Defaults.CORS_ALLOW_HEADERS))


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, critical errors only
        2 = NORMAL: Request lifecycle, upstream status (default)
        3 = VERBOSE: Per-stage timing, decoded field summaries
        4 = DEBUG: Internal state, full tracing
    """
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class ProxyServiceConfig:
    """
    Validated configuration for ProxyService.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = ProxyServiceConfig.from_settings(settings)
        print(config.elevenlabs.base_url)
    """
    elevenlabs: UpstreamConfig = field(default_factory=lambda: UpstreamConfig(
        Defaults.ELEVENLABS_BASE_URL, Defaults.ELEVENLABS_TIMEOUT_S))
    pixian: UpstreamConfig = field(default_factory=lambda: UpstreamConfig(
        Defaults.PIXIAN_BASE_URL, Defaults.PIXIAN_TIMEOUT_S))
    anthropic: UpstreamConfig = field(default_factory=lambda: UpstreamConfig(
        Defaults.ANTHROPIC_BASE_URL, Defaults.ANTHROPIC_TIMEOUT_S, Defaults.ANTHROPIC_MODEL))
    gemini: UpstreamConfig = field(default_factory=lambda: UpstreamConfig(
        Defaults.GEMINI_BASE_URL, Defaults.GEMINI_TIMEOUT_S, Defaults.GEMINI_MODEL))
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    pixian_test_mode: bool = Defaults.PIXIAN_TEST_MODE
    anthropic_version: str = Defaults.ANTHROPIC_VERSION
    anthropic_max_tokens: int = Defaults.ANTHROPIC_MAX_TOKENS
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ProxyServiceConfig":
        """
        Create ProxyServiceConfig from Settings with validation.

        Args:
            settings: Raw Settings object loaded from YAML.

        Returns:
            Validated ProxyServiceConfig instance.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw
        upstreams_raw = raw.get("upstreams", {}) or {}

        # ─────────────────────────────────────────────────────────────────────
        # Upstream providers
        # ─────────────────────────────────────────────────────────────────────
        eleven_raw = upstreams_raw.get("elevenlabs", {}) or {}
        elevenlabs = cls._upstream("elevenlabs", eleven_raw,
                                   Defaults.ELEVENLABS_BASE_URL, Defaults.ELEVENLABS_TIMEOUT_S)

        pixian_raw = upstreams_raw.get("pixian", {}) or {}
        pixian = cls._upstream("pixian", pixian_raw,
                               Defaults.PIXIAN_BASE_URL, Defaults.PIXIAN_TIMEOUT_S)

        anthropic_raw = upstreams_raw.get("anthropic", {}) or {}
        anthropic = cls._upstream("anthropic", anthropic_raw,
                                  Defaults.ANTHROPIC_BASE_URL, Defaults.ANTHROPIC_TIMEOUT_S,
                                  Defaults.ANTHROPIC_MODEL)

        gemini_raw = upstreams_raw.get("gemini", {}) or {}
        gemini = cls._upstream("gemini", gemini_raw,
                               Defaults.GEMINI_BASE_URL, Defaults.GEMINI_TIMEOUT_S,
                               Defaults.GEMINI_MODEL)

        speech = SpeechConfig(
            sts_model_id=str(eleven_raw.get("sts_model_id", Defaults.STS_MODEL_ID)),
            tts_model_id=str(eleven_raw.get("tts_model_id", Defaults.TTS_MODEL_ID)),
            fallback_filename=str(eleven_raw.get("fallback_filename", Defaults.STS_FALLBACK_FILENAME)),
            fallback_content_type=str(eleven_raw.get("fallback_content_type",
                                                     Defaults.STS_FALLBACK_CONTENT_TYPE)),
        )

        max_tokens = int(anthropic_raw.get("max_tokens", Defaults.ANTHROPIC_MAX_TOKENS))
        cls._validate_positive("upstreams.anthropic.max_tokens", max_tokens)

        # ─────────────────────────────────────────────────────────────────────
        # Limits (environment override wins)
        # ─────────────────────────────────────────────────────────────────────
        limits_raw = raw.get("limits", {}) or {}
        max_body_env = os.getenv("MEDIA_PROXY_MAX_BODY_BYTES")
        limits = LimitsConfig(
            max_body_bytes=int(max_body_env) if max_body_env
                else int(limits_raw.get("max_body_bytes", Defaults.MAX_BODY_BYTES)),
        )
        cls._validate_positive("limits.max_body_bytes", limits.max_body_bytes)

        # ─────────────────────────────────────────────────────────────────────
        # CORS (comma-separated environment override)
        # ─────────────────────────────────────────────────────────────────────
        cors_raw = raw.get("cors", {}) or {}
        origins_env = os.getenv("MEDIA_PROXY_CORS_ORIGINS")
        if origins_env:
            origins = [o.strip() for o in origins_env.split(",") if o.strip()]
        else:
            origins = list(cors_raw.get("allow_origins", Defaults.CORS_ALLOW_ORIGINS))
        cors = CorsConfig(
            allow_origins=origins,
            allow_methods=list(cors_raw.get("allow_methods", Defaults.CORS_ALLOW_METHODS)),
            allow_headers=list(cors_raw.get("allow_headers", Defaults.CORS_ALLOW_HEADERS)),
        )
        if not cors.allow_origins:
            raise ConfigValidationError("cors.allow_origins must not be empty")

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = os.getenv("MEDIA_PROXY_LOG_LEVEL") or logging_raw.get("level", Defaults.LOGGING_LEVEL)
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)
        logging_cfg = LoggingConfig(level=log_level)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(
            elevenlabs=elevenlabs,
            pixian=pixian,
            anthropic=anthropic,
            gemini=gemini,
            speech=speech,
            pixian_test_mode=bool(pixian_raw.get("test_mode", Defaults.PIXIAN_TEST_MODE)),
            anthropic_version=str(anthropic_raw.get("version", Defaults.ANTHROPIC_VERSION)),
            anthropic_max_tokens=max_tokens,
            limits=limits,
            cors=cors,
            logging=logging_cfg,
        )

    @classmethod
    def _upstream(
        cls,
        name: str,
        raw: Dict[str, Any],
        base_url: str,
        timeout_s: float,
        model: str = "",
    ) -> UpstreamConfig:
        """Build and validate one upstream section."""
        cfg = UpstreamConfig(
            base_url=str(raw.get("base_url", base_url)).rstrip("/"),
            timeout_s=float(raw.get("timeout_s", timeout_s)),
            model=str(raw.get("model", model)),
        )
        if not cfg.base_url.startswith(("http://", "https://")):
            raise ConfigValidationError(
                f"upstreams.{name}.base_url must be an http(s) URL, got {cfg.base_url!r}"
            )
        cls._validate_positive(f"upstreams.{name}.timeout_s", cfg.timeout_s)
        return cfg

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Credentials:
    """
    Server-held API credentials.

    Loaded from a key-value environment lookup so the service and its
    tests never depend on the real process environment.

    Attributes:
        elevenlabs_api_key: Sent as xi-api-key.
        pixian_api_id: Basic auth username.
        pixian_api_secret: Basic auth password.
        anthropic_api_key: Sent as x-api-key.
        gemini_api_key: Sent as x-goog-api-key.
    """
    elevenlabs_api_key: Optional[str] = None
    pixian_api_id: Optional[str] = None
    pixian_api_secret: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Credentials":
        """
        Read credentials from an environment mapping.

        Empty strings are treated as unset.

        Args:
            environ: Mapping to read from (defaults to os.environ).
        """
        env = os.environ if environ is None else environ

        def _get(key: str) -> Optional[str]:
            value = env.get(key)
            return value or None

        return cls(
            elevenlabs_api_key=_get("ELEVENLABS_API_KEY"),
            pixian_api_id=_get("PIXIAN_API_ID"),
            pixian_api_secret=_get("PIXIAN_API_SECRET"),
            anthropic_api_key=_get("ANTHROPIC_API_KEY"),
            gemini_api_key=_get("GEMINI_API_KEY"),
        )

    def configured(self) -> Dict[str, bool]:
        """Report which providers have credentials (for /health)."""
        return {
            "elevenlabs": bool(self.elevenlabs_api_key),
            "pixian": bool(self.pixian_api_id and self.pixian_api_secret),
            "anthropic": bool(self.anthropic_api_key),
            "gemini": bool(self.gemini_api_key),
        }


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_service_config() to get a validated ProxyServiceConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    @property
    def sts_model_id(self) -> str:
        """Get the default speech-to-speech model."""
        eleven = (self.raw.get("upstreams") or {}).get("elevenlabs") or {}
        return str(eleven.get("sts_model_id", Defaults.STS_MODEL_ID))

    def get_service_config(self) -> ProxyServiceConfig:
        """
        Get validated ProxyServiceConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return ProxyServiceConfig.from_settings(self)


def load_settings(path: str = "config/settings.yaml") -> Settings:
    """
    Load settings from a YAML configuration file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Settings object with loaded configuration.

    Raises:
        FileNotFoundError: If the settings file doesn't exist.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    with p.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    return Settings(raw=raw)
