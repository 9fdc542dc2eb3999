"""
Upstream HTTP Client.

Thin wrapper around httpx.Client shared by every proxy operation. It adds
per-provider timeouts, latency/size metrics and logging, and turns
transport failures into UpstreamError so routes only deal with one
exception family.

The wrapped httpx.Client is injectable. Tests pass a client built on
httpx.MockTransport so no request ever leaves the process:

    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"ok"))
    upstream = UpstreamClient(config, client=httpx.Client(transport=transport))
"""
from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from media_proxy.core.config import ProxyServiceConfig, UpstreamConfig
from media_proxy.core.logging import error, get_logger, verbose, warn
from media_proxy.core.metrics import metrics
from media_proxy.services.errors import ErrorCode, UpstreamError
from media_proxy.utils.timeit import timeit

_LOG = get_logger("media-proxy.upstream")


@dataclass
class UpstreamResponse:
    """
    A fully read upstream response.

    Attributes:
        provider: Provider label ("elevenlabs", "pixian", ...).
        status_code: Upstream HTTP status.
        content: Raw response body.
        seconds: Wall-clock duration of the call.
    """
    provider: str
    status_code: int
    content: bytes
    seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.content)

    def json_or_text(self) -> Any:
        """Parsed JSON body, or the raw text when it is not JSON."""
        try:
            return self.json()
        except ValueError:
            return self.text


class UpstreamClient:
    """
    Synchronous HTTP client for the third-party APIs.

    One instance is shared by all requests (see get_upstream_client()) so
    that connections are pooled. httpx.Client is thread-safe, which
    matters because FastAPI runs sync routes in a thread pool.
    """

    def __init__(self, config: ProxyServiceConfig, client: Optional[httpx.Client] = None):
        self._config = config
        self._client = client or httpx.Client(follow_redirects=False)
        self._owns_client = client is None

    @property
    def config(self) -> ProxyServiceConfig:
        return self._config

    def _provider_config(self, provider: str) -> UpstreamConfig:
        return getattr(self._config, provider)

    def request(
        self,
        provider: str,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> UpstreamResponse:
        """
        Send one request to a provider and read the whole body.

        Args:
            provider: Provider name, also the ProxyServiceConfig attribute.
            method: HTTP method.
            path: Path appended to the provider's base_url.
            headers: Request headers (credentials included by the caller).
            **kwargs: Passed to httpx (json=, data=, files=, content=).

        Returns:
            UpstreamResponse, whatever its status code.

        Raises:
            UpstreamError: On timeouts and connection failures.
        """
        cfg = self._provider_config(provider)
        url = f"{cfg.base_url}{path}"

        with timeit(f"upstream_{provider}") as t:
            try:
                resp = self._client.request(
                    method, url, headers=headers, timeout=cfg.timeout_s, **kwargs,
                )
            except httpx.TimeoutException as e:
                error(_LOG, "upstream_timeout", provider=provider, timeout_s=cfg.timeout_s)
                raise UpstreamError(
                    f"{provider} request timed out",
                    code=ErrorCode.UPSTREAM_TIMEOUT,
                    status_code=504,
                    provider=provider,
                ) from e
            except httpx.TransportError as e:
                error(_LOG, "upstream_unreachable", provider=provider, error=str(e))
                raise UpstreamError(
                    f"{provider} is unreachable: {e}",
                    code=ErrorCode.UPSTREAM_UNREACHABLE,
                    status_code=502,
                    provider=provider,
                ) from e

        seconds = t.timing.seconds if t.timing else 0.0
        result = UpstreamResponse(
            provider=provider,
            status_code=resp.status_code,
            content=resp.content,
            seconds=seconds,
        )
        metrics.record_upstream(provider, resp.status_code, seconds, len(resp.content))

        if result.ok:
            verbose(_LOG, "upstream_ok", provider=provider, status=resp.status_code,
                    bytes=len(resp.content), seconds=seconds)
        else:
            warn(_LOG, "upstream_error", provider=provider, status=resp.status_code,
                 seconds=seconds)
        return result

    def get(self, provider: str, path: str, **kwargs: Any) -> UpstreamResponse:
        return self.request(provider, "GET", path, **kwargs)

    def post(self, provider: str, path: str, **kwargs: Any) -> UpstreamResponse:
        return self.request(provider, "POST", path, **kwargs)

    def close(self) -> None:
        """Close the pooled connections if this instance created the client."""
        if self._owns_client:
            self._client.close()


# =============================================================================
# Global Client Singleton
# =============================================================================

_client: Optional[UpstreamClient] = None
_client_lock = threading.Lock()


def get_client(config: ProxyServiceConfig) -> UpstreamClient:
    """
    Get or create the global UpstreamClient instance.

    Thread-safe lazy singleton, created on first call.
    """
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = UpstreamClient(config)
    return _client


def reset_client() -> None:
    """Close and drop the global client (application shutdown and tests)."""
    global _client
    with _client_lock:
        if _client is not None:
            _client.close()
        _client = None
