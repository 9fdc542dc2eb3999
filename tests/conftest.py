"""Shared fixtures: an app wired to fake credentials and a mock upstream."""
from __future__ import annotations

from typing import Callable, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from media_proxy.api.dependencies import get_credentials, get_upstream_client
from media_proxy.core.config import Credentials, ProxyServiceConfig
from media_proxy.main import create_app
from media_proxy.services.upstream import UpstreamClient

FULL_CREDENTIALS = Credentials(
    elevenlabs_api_key="el-test-key",
    pixian_api_id="px-id",
    pixian_api_secret="px-secret",
    anthropic_api_key="ant-test-key",
    gemini_api_key="gem-test-key",
)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served (bodies read)."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            request.read()
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


def build_client(
    handler: Callable[[httpx.Request], httpx.Response],
    credentials: Optional[Credentials] = None,
    config: Optional[ProxyServiceConfig] = None,
):
    """Return (TestClient, RecordingTransport) for an app with overridden collaborators."""
    config = config or ProxyServiceConfig()
    transport = RecordingTransport(handler)
    upstream = UpstreamClient(config, client=httpx.Client(transport=transport))

    app = create_app(config)
    app.dependency_overrides[get_credentials] = lambda: credentials or FULL_CREDENTIALS
    app.dependency_overrides[get_upstream_client] = lambda: upstream
    return TestClient(app), transport


@pytest.fixture
def make_client():
    return build_client


@pytest.fixture
def no_upstream():
    """Handler that fails the test if any upstream call is made."""
    def _handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected upstream call to {request.url}")
    return _handler
