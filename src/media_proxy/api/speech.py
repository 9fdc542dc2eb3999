"""
Speech API Routes.

ElevenLabs voice endpoints. Credentials stay on the server; the browser
only ever sees base64 audio.

Endpoints:
    POST /api/sts   - Speech-to-speech (multipart/form-data upload)
    GET  /api/tts   - Voice catalogue
    POST /api/tts   - Text-to-speech

Request Flow (/api/sts):
    1. Generate request ID for tracing
    2. Read the raw body (size ceiling enforced by read_body)
    3. Extract the boundary from Content-Type
    4. Decode the multipart body into text and file fields
    5. Validate audio / voice_id, fill model_id default
    6. Forward to ElevenLabs as a fresh multipart request
    7. Return {"audio_base64": ...}

Error Responses:
    400 {"error": "audio file and voice_id are required"}
    <upstream status> {"error": "ElevenLabs API error: <status>", "details": "<text>"}
    500 {"error": "Internal server error", "details": "<message>"}

Example:
    curl -X POST http://localhost:8000/api/sts \\
        -F voice_id=21m00Tcm4TlvDq8ikWAM \\
        -F audio=@recording.webm;type=audio/webm

See Also:
    - multipart/decoder.py: decode()
    - services/proxy_service.py: ProxyService.speech_to_speech()
"""
from __future__ import annotations

import base64

from fastapi import APIRouter, Depends, Request

from media_proxy.api.dependencies import get_proxy_service, read_body
from media_proxy.api.responses import json_response, start_request
from media_proxy.api.schemas import STSResponse, TTSRequest, TTSResponse
from media_proxy.core.logging import fail, get_logger, verbose, warn
from media_proxy.core.metrics import metrics
from media_proxy.multipart import MultipartBoundaryError, decode, describe_fields, extract_boundary
from media_proxy.services.errors import ProxyError
from media_proxy.services.proxy_service import ProxyService
from media_proxy.services.requests import TextToSpeechRequest
from media_proxy.services.validators import ValidationError, validate_sts_fields, validate_tts_fields

router = APIRouter()

_LOG = get_logger("media-proxy.speech")


@router.post("/api/sts", response_model=STSResponse)
def speech_to_speech(
    request: Request,
    body: bytes = Depends(read_body),
    service: ProxyService = Depends(get_proxy_service),
):
    """
    Convert an uploaded recording to another voice.

    Form fields:
        audio: Recording (file part, required)
        voice_id: Target voice (required)
        model_id: Defaults to eleven_multilingual_sts_v2
        remove_background_noise: Forwarded only when "true"
    """
    rid = start_request()

    boundary = extract_boundary(request.headers.get("content-type"))
    if boundary is None:
        warn(_LOG, "sts_not_multipart", content_type=request.headers.get("content-type"))
        return json_response("sts", rid, 400, {"error": "Invalid content type"})

    try:
        fields = decode(body, boundary)
        summary = describe_fields(fields)
        file_count = sum(1 for f in fields.values() if f.is_file)
        metrics.record_multipart(len(fields) - file_count, file_count)
        verbose(_LOG, "multipart_decoded", body_bytes=len(body), fields=summary)

        sts_request = validate_sts_fields(fields, service.config.speech.sts_model_id)
        audio = service.speech_to_speech(sts_request)

    except MultipartBoundaryError as e:
        warn(_LOG, "sts_bad_boundary", error=str(e))
        return json_response("sts", rid, 400, {"error": "Invalid content type"})

    except ValidationError as e:
        return json_response("sts", rid, 400, {"error": e.message})

    except ProxyError as e:
        return json_response("sts", rid, e.status_code, e.to_dict())

    except Exception as e:
        fail(_LOG, "sts_failed", error=str(e), error_type=type(e).__name__)
        return json_response("sts", rid, 500, {"error": "Internal server error", "details": str(e)})

    return json_response("sts", rid, 200, {
        "audio_base64": base64.b64encode(audio).decode("ascii"),
    })


@router.get("/api/tts")
def list_voices(service: ProxyService = Depends(get_proxy_service)):
    """Return the ElevenLabs voice catalogue unchanged."""
    rid = start_request()
    try:
        voices = service.list_voices()
    except ProxyError as e:
        return json_response("tts", rid, e.status_code, e.to_dict())
    except Exception as e:
        fail(_LOG, "voices_failed", error=str(e), error_type=type(e).__name__)
        return json_response("tts", rid, 500, {"error": "Internal server error", "message": str(e)})
    return json_response("tts", rid, 200, voices)


@router.post("/api/tts", response_model=TTSResponse)
def text_to_speech(
    req: TTSRequest,
    service: ProxyService = Depends(get_proxy_service),
):
    """
    Synthesize text with an ElevenLabs voice.

    Returns:
        {"audio": "<base64 mpeg>", "content_type": "audio/mpeg"}
    """
    rid = start_request()
    try:
        text, voice_id = validate_tts_fields(req.text, req.voice_id)
        audio = service.text_to_speech(TextToSpeechRequest(
            text=text,
            voice_id=voice_id,
            model_id=req.model_id,
            voice_settings=req.voice_settings,
        ))
    except ValidationError as e:
        return json_response("tts", rid, 400, {"error": e.message})
    except ProxyError as e:
        return json_response("tts", rid, e.status_code, e.to_dict())
    except Exception as e:
        fail(_LOG, "tts_failed", error=str(e), error_type=type(e).__name__)
        return json_response("tts", rid, 500, {"error": "Internal server error", "message": str(e)})

    return json_response("tts", rid, 200, {
        "audio": base64.b64encode(audio).decode("ascii"),
        "content_type": "audio/mpeg",
    })
