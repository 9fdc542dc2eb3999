"""
Service Routes.

Endpoints:
    GET /health   - Health check for load balancers and probes
    GET /metrics  - Prometheus metrics

The proxy endpoints live in speech.py, images.py and generation.py.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from media_proxy.api.dependencies import get_proxy_service
from media_proxy.core.metrics import metrics
from media_proxy.services.proxy_service import ProxyService

router = APIRouter()


@router.get("/health")
def health(service: ProxyService = Depends(get_proxy_service)):
    """
    Health check endpoint.

    Returns:
        dict: ok flag, version, per-provider credential presence and the
        inbound body ceiling. Key values are never included.
    """
    return service.get_health_info()


@router.get("/metrics")
def prometheus_metrics():
    """
    Prometheus metrics endpoint.

    Exposes:
        - proxy_requests_total: Inbound requests by endpoint and status
        - proxy_upstream_duration_seconds: Upstream latency histogram
        - proxy_upstream_errors_total: Non-2xx upstream answers
        - proxy_upstream_bytes_total: Bytes received from providers
        - proxy_multipart_fields_total: Decoded multipart fields by kind
    """
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
