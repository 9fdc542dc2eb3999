"""
Request Body Size Limit.

ASGI middleware that answers 413 before any route runs when the inbound
body is over limits.max_body_bytes. It covers every endpoint, including
the JSON ones whose bodies FastAPI reads itself.

    - Content-Length above the ceiling: rejected without reading the body
    - Content-Length within the ceiling: passed through untouched
    - No Content-Length (chunked): buffered up to the ceiling, then replayed

The 413 body is PayloadTooLargeError.to_dict():
    {"error": "Request body too large (...)", "code": "PAYLOAD_TOO_LARGE",
     "details": {"max_body_bytes": 10485760}}
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List

from fastapi.responses import JSONResponse

from media_proxy.core.logging import get_logger, warn
from media_proxy.core.metrics import metrics
from media_proxy.services.errors import PayloadTooLargeError

_LOG = get_logger("media-proxy.limits")

Message = Dict[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than max_body_bytes with 413.

    Usage:
        app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=10 * 1024 * 1024)
    """

    def __init__(self, app: Callable[..., Awaitable[None]], max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Dict[str, Any], receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        declared = headers.get(b"content-length", b"").decode("latin-1")
        if declared.isdigit():
            if int(declared) > self.max_body_bytes:
                await self._reject(scope, receive, send, int(declared))
                return
            await self.app(scope, receive, send)
            return

        chunks: List[bytes] = []
        size = 0
        while True:
            message = await receive()
            if message["type"] != "http.request":
                # Client went away before the body was complete
                return
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self.max_body_bytes:
                await self._reject(scope, receive, send, size)
                return
            chunks.append(chunk)
            if not message.get("more_body", False):
                break

        body = b"".join(chunks)
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope: Dict[str, Any], receive: Receive, send: Send, size: int) -> None:
        exc = PayloadTooLargeError(size, self.max_body_bytes)
        path = scope.get("path", "")
        warn(_LOG, "request_rejected", path=path, code=exc.code, status=exc.status_code,
             body_bytes=size)
        metrics.record_request(path.rsplit("/", 1)[-1] or "root", exc.status_code)
        response = JSONResponse(status_code=exc.status_code, content=exc.to_dict())
        await response(scope, receive, send)
