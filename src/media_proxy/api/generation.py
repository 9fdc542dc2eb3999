"""
Generation API Routes.

Endpoints:
    POST /api/claude    - Text generation from a prompt and optional images
    POST /api/generate  - Gemini generateContent pass-through

Image Ordering (/api/claude):
    firstImage, then lastImage; image only when neither is present.
    data: URL prefixes are stripped before the images are sent.

Error Responses:
    /api/claude     400 {"error": "Prompt is required"}
                    500 {"success": false, "error": "<message>"}
    /api/generate   400 {"error": "Invalid request body"}
                    <upstream status> {"error": "Gemini API error", "details": ...}

See Also:
    - services/proxy_service.py: generate_text(), generate_content()
"""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from media_proxy.api.dependencies import get_proxy_service
from media_proxy.api.responses import json_response, start_request
from media_proxy.api.schemas import ClaudeRequest, ClaudeResponse, GenerateRequest
from media_proxy.core.logging import fail, get_logger
from media_proxy.services.errors import CredentialsError, ProxyError, UpstreamError
from media_proxy.services.proxy_service import ProxyService
from media_proxy.services.requests import TextGenerationRequest
from media_proxy.services.validators import (
    ValidationError,
    strip_data_url,
    validate_contents,
    validate_prompt,
)

router = APIRouter()

_LOG = get_logger("media-proxy.generation")


def select_images(req: ClaudeRequest) -> List[str]:
    """Images to send, in order, with data-URL prefixes removed."""
    if req.first_image or req.last_image:
        images = [req.first_image, req.last_image]
    else:
        images = [req.image]
    return [strip_data_url(image) for image in images if image]


@router.post("/api/claude", response_model=ClaudeResponse)
def generate_text(
    req: ClaudeRequest,
    service: ProxyService = Depends(get_proxy_service),
):
    rid = start_request()
    try:
        prompt = validate_prompt(req.prompt)
        result = service.generate_text(
            TextGenerationRequest(prompt=prompt, images=select_images(req))
        )
    except ValidationError as e:
        return json_response("claude", rid, 400, {"error": e.message})
    except CredentialsError as e:
        return json_response("claude", rid, e.status_code, {"error": e.message})
    except ProxyError as e:
        # Upstream failures always answer 500 on this endpoint
        return json_response("claude", rid, 500, {"success": False, "error": e.message})
    except Exception as e:
        fail(_LOG, "claude_failed", error=str(e), error_type=type(e).__name__)
        return json_response("claude", rid, 500, {
            "success": False,
            "error": str(e) or "Internal server error",
        })

    return json_response("claude", rid, 200, {"success": True, "result": result})


@router.post("/api/generate")
def generate_content(
    req: GenerateRequest,
    service: ProxyService = Depends(get_proxy_service),
):
    """Forward contents and generationConfig to Gemini and return its JSON."""
    rid = start_request()
    try:
        contents = validate_contents(req.contents)
        result = service.generate_content(contents, req.generation_config)
    except ValidationError as e:
        return json_response("generate", rid, 400, {"error": e.message})
    except UpstreamError as e:
        body = {"error": e.message}
        if e.details is not None:
            body["details"] = e.details
        return json_response("generate", rid, e.status_code, body)
    except ProxyError as e:
        return json_response("generate", rid, e.status_code, {"error": e.message})
    except Exception as e:
        fail(_LOG, "generate_failed", error=str(e), error_type=type(e).__name__)
        return json_response("generate", rid, 500, {
            "error": "Internal server error",
            "message": str(e),
        })

    return json_response("generate", rid, 200, result)
