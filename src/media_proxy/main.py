"""
FastAPI Application Entry Point.

This module creates and configures the FastAPI application instance for
media-proxy. It sets up logging, CORS, routing, error handling and the
shutdown of the shared upstream client.

Routers:
    - Speech: /api/sts, /api/tts
    - Images: /api/pixian
    - Generation: /api/claude, /api/generate
    - Service: /health, /metrics

Usage:
    # Run with uvicorn
    uvicorn media_proxy.main:app --host 0.0.0.0 --port 8000

    # Or use the module directly
    python -m uvicorn media_proxy.main:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from media_proxy import __version__
from media_proxy.api.dependencies import get_service_config, get_upstream_client
from media_proxy.api.generation import router as generation_router
from media_proxy.api.images import router as images_router
from media_proxy.api.middleware import BodySizeLimitMiddleware
from media_proxy.api.routes import router
from media_proxy.api.speech import router as speech_router
from media_proxy.core.config import ProxyServiceConfig
from media_proxy.core.logging import configure_logging, get_logger, info, warn
from media_proxy.core.metrics import metrics
from media_proxy.services.errors import InvalidInputError, ProxyError
from media_proxy.services.upstream import UpstreamClient, reset_client

_LOG = get_logger("media-proxy.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    info(_LOG, "startup", version=__version__)
    yield
    upstream = getattr(app.state, "upstream", None)
    if upstream is not None:
        upstream.close()
    reset_client()
    info(_LOG, "shutdown")


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    """Answer errors raised outside a route body (e.g. the body size check)."""
    warn(_LOG, "request_rejected", path=request.url.path, code=exc.code, status=exc.status_code)
    metrics.record_request(request.url.path.rsplit("/", 1)[-1] or "root", exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report unparseable JSON bodies as 400 instead of 422."""
    details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    return await proxy_error_handler(request, InvalidInputError("Invalid request body", details))


def create_app(config: Optional[ProxyServiceConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory function:
        1. Configures structured logging at config.logging.level
        2. Caps request bodies at config.limits.max_body_bytes
        3. Adds CORS for the configured browser origins
        4. Registers the proxy and service routers
        5. Installs the ProxyError and request validation handlers

    Args:
        config: Service configuration; loaded from settings when None.
            When given, every route resolves this config and an upstream
            client built from it instead of the settings-file singletons.

    Returns:
        FastAPI: Configured application instance ready to serve requests.
    """
    explicit = config is not None
    config = config or get_service_config()
    configure_logging(level=config.logging.level, force=True)

    app = FastAPI(title="media-proxy", version=__version__, lifespan=lifespan)

    if explicit:
        upstream = UpstreamClient(config)
        app.state.upstream = upstream
        app.dependency_overrides[get_service_config] = lambda: config
        app.dependency_overrides[get_upstream_client] = lambda: upstream

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=config.limits.max_body_bytes)

    # Added last so it wraps the size limit; preflight OPTIONS requests get 200
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allow_origins,
        allow_methods=config.cors.allow_methods,
        allow_headers=config.cors.allow_headers,
    )

    app.include_router(speech_router)       # /api/sts, /api/tts
    app.include_router(images_router)       # /api/pixian
    app.include_router(generation_router)   # /api/claude, /api/generate
    app.include_router(router)              # /health, /metrics

    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
