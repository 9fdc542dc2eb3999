"""
FastAPI Dependency Injection Providers.

This module provides shared resources for API endpoints using FastAPI's
dependency injection system.

Architecture:
    The dependency system follows this hierarchy:
        1. get_settings() - Loads and caches the YAML configuration
        2. get_service_config() - Validated ProxyServiceConfig (cached)
        3. get_credentials() - Provider keys read from the environment
        4. get_upstream_client() - Shared UpstreamClient singleton
        5. get_proxy_service() - ProxyService bound to the three above
        6. read_body() - Raw request body with the size ceiling applied

    Credentials are read per request so that rotating a key in the
    environment does not need a restart. Everything else is a singleton.

Usage in Route Handlers:
    from fastapi import Depends
    from media_proxy.api.dependencies import get_proxy_service, read_body

    @router.post("/api/sts")
    def speech_to_speech(
        body: bytes = Depends(read_body),
        service: ProxyService = Depends(get_proxy_service),
    ):
        ...

Testing:
    Override get_credentials and get_upstream_client through
    app.dependency_overrides to run routes against fake keys and an
    httpx.MockTransport.

See Also:
    - core/config.py: Settings, Credentials and load_settings()
    - services/upstream.py: UpstreamClient and get_client()
"""
from __future__ import annotations

import os
from functools import lru_cache

from fastapi import Depends, Request

from media_proxy.core.config import Credentials, ProxyServiceConfig, Settings, load_settings
from media_proxy.core.logging import get_logger, warn
from media_proxy.services.errors import PayloadTooLargeError
from media_proxy.services.proxy_service import ProxyService
from media_proxy.services.upstream import UpstreamClient, get_client

_LOG = get_logger("media-proxy.deps")

SETTINGS_ENV = "MEDIA_PROXY_SETTINGS"
DEFAULT_SETTINGS_PATH = "config/settings.yaml"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    The path comes from MEDIA_PROXY_SETTINGS, else config/settings.yaml.
    If the file doesn't exist, default values are used.
    """
    path = os.getenv(SETTINGS_ENV, DEFAULT_SETTINGS_PATH)
    try:
        return load_settings(path)
    except FileNotFoundError:
        warn(_LOG, "settings_missing", path=path, using="defaults")
        return Settings(raw={})


@lru_cache(maxsize=1)
def get_service_config() -> ProxyServiceConfig:
    """Validated service configuration, built once from get_settings()."""
    return get_settings().get_service_config()


def get_credentials() -> Credentials:
    return Credentials.from_env()


def get_upstream_client(
    config: ProxyServiceConfig = Depends(get_service_config),
) -> UpstreamClient:
    return get_client(config)


def get_proxy_service(
    config: ProxyServiceConfig = Depends(get_service_config),
    credentials: Credentials = Depends(get_credentials),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> ProxyService:
    """ProxyService for one request."""
    return ProxyService(config, credentials, upstream)


async def read_body(
    request: Request,
    config: ProxyServiceConfig = Depends(get_service_config),
) -> bytes:
    """
    Read the whole request body, stopping as soon as it passes the ceiling.

    BodySizeLimitMiddleware normally rejects oversized bodies first; the
    count here keeps the ceiling when the dependency is used without it.

    Raises:
        PayloadTooLargeError: Body above limits.max_body_bytes.
    """
    limit = config.limits.max_body_bytes

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLargeError(len(body), limit)
    return bytes(body)
