"""
Shared response helpers for the API routers.

Every route starts with start_request() and answers through
json_response(), so each response carries X-Request-Id and is counted
in proxy_requests_total.
"""
from __future__ import annotations

import uuid
from typing import Any

from fastapi.responses import JSONResponse

from media_proxy.core.logging import set_request_id
from media_proxy.core.metrics import metrics


def start_request() -> str:
    """Generate a request ID and bind it to this request's log lines."""
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)
    return rid


def json_response(endpoint: str, rid: str, status_code: int, content: Any) -> JSONResponse:
    metrics.record_request(endpoint, status_code)
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={"X-Request-Id": rid},
    )
