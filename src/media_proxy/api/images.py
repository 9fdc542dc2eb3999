"""
Image API Routes.

Endpoints:
    POST /api/pixian  - Background removal

Request:
    {"image": "data:image/png;base64,iVBORw0KGgo..."}

Responses:
    200 {"success": true, "image": "<base64 png>"}
    400 {"error": "Image data required"}
    <upstream status> {"success": false, "error": "Pixian API Error: <status> - <text>"}

Test mode (upstreams.pixian.test_mode, on by default) returns watermarked
results without spending credits.
"""
from __future__ import annotations

import base64

from fastapi import APIRouter, Depends

from media_proxy.api.dependencies import get_proxy_service
from media_proxy.api.responses import json_response, start_request
from media_proxy.api.schemas import PixianRequest, PixianResponse
from media_proxy.core.logging import fail, get_logger, success
from media_proxy.services.errors import CredentialsError, ProxyError
from media_proxy.services.proxy_service import ProxyService
from media_proxy.services.validators import ValidationError, validate_image

router = APIRouter()

_LOG = get_logger("media-proxy.images")


@router.post("/api/pixian", response_model=PixianResponse)
def remove_background(
    req: PixianRequest,
    service: ProxyService = Depends(get_proxy_service),
):
    """Remove the background from a base64 image."""
    rid = start_request()
    try:
        image = validate_image(req.image)
        result = service.remove_background(image)
    except ValidationError as e:
        return json_response("pixian", rid, 400, {"error": e.message})
    except CredentialsError as e:
        return json_response("pixian", rid, e.status_code, {"error": e.message})
    except ProxyError as e:
        return json_response("pixian", rid, e.status_code, {"success": False, "error": e.message})
    except Exception as e:
        fail(_LOG, "pixian_failed", error=str(e), error_type=type(e).__name__)
        return json_response("pixian", rid, 500, {
            "success": False,
            "error": str(e) or "Internal server error",
        })

    success(_LOG, "pixian_done", image_bytes=len(result))
    return json_response("pixian", rid, 200, {
        "success": True,
        "image": base64.b64encode(result).decode("ascii"),
    })
