"""
Prometheus Metrics for the Proxy Service.

Metrics Exposed:
    proxy_requests_total                - Counter of inbound requests by endpoint and status
    proxy_upstream_duration_seconds     - Histogram of upstream call latency by provider
    proxy_upstream_errors_total         - Counter of failed upstream calls by provider and status
    proxy_upstream_bytes_total          - Counter of payload bytes received from upstreams
    proxy_multipart_fields_total        - Counter of decoded multipart fields by kind (text/file)

Usage:
    from media_proxy.core.metrics import metrics

    metrics.record_request(endpoint="sts", status=200)
    metrics.record_upstream("elevenlabs", status=200, duration=0.8, payload_bytes=48213)
    content, content_type = metrics.get_metrics_response()

Prometheus Scrape Config Example:
    scrape_configs:
      - job_name: 'media-proxy'
        static_configs:
          - targets: ['localhost:8000']
        metrics_path: '/metrics'
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class ProxyMetrics:
    """
    Metrics collection for the proxy endpoints.

    Uses a private CollectorRegistry so that several instances (the global
    one and the ones tests create) never clash on metric names.
    """

    def __init__(self):
        self._registry = CollectorRegistry()

        self._requests_total = Counter(
            "proxy_requests_total",
            "Total inbound proxy requests",
            ["endpoint", "status"],
            registry=self._registry,
        )
        self._upstream_duration = Histogram(
            "proxy_upstream_duration_seconds",
            "Upstream API call duration in seconds",
            ["provider"],
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )
        self._upstream_errors = Counter(
            "proxy_upstream_errors_total",
            "Upstream API calls that returned a non-2xx status",
            ["provider", "status"],
            registry=self._registry,
        )
        self._upstream_bytes = Counter(
            "proxy_upstream_bytes_total",
            "Total payload bytes received from upstream APIs",
            ["provider"],
            registry=self._registry,
        )
        self._multipart_fields = Counter(
            "proxy_multipart_fields_total",
            "Decoded multipart fields",
            ["kind"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_request(self, endpoint: str, status: int) -> None:
        """
        Record a completed inbound request.

        Args:
            endpoint: Endpoint label ("sts", "tts", "pixian", ...)
            status: HTTP status code returned to the caller
        """
        self._requests_total.labels(endpoint=endpoint, status=str(status)).inc()

    def record_upstream(
        self,
        provider: str,
        status: int,
        duration: float,
        payload_bytes: int = 0,
    ) -> None:
        """
        Record an upstream API call.

        Args:
            provider: Provider label ("elevenlabs", "pixian", "anthropic", "gemini")
            status: Upstream HTTP status code
            duration: Call duration in seconds
            payload_bytes: Size of the upstream response body
        """
        self._upstream_duration.labels(provider=provider).observe(duration)
        if status >= 400:
            self._upstream_errors.labels(provider=provider, status=str(status)).inc()
        if payload_bytes > 0:
            self._upstream_bytes.labels(provider=provider).inc(payload_bytes)

    def record_multipart(self, text_fields: int, file_fields: int) -> None:
        """Record the field kinds produced by one multipart decode."""
        if text_fields:
            self._multipart_fields.labels(kind="text").inc(text_fields)
        if file_fields:
            self._multipart_fields.labels(kind="file").inc(file_fields)

    def get_metrics_response(self) -> tuple[bytes, str]:
        """
        Get metrics in Prometheus format.

        Returns:
            Tuple of (content_bytes, content_type)
        """
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global singleton: from media_proxy.core.metrics import metrics
metrics = ProxyMetrics()
