"""
API Request/Response Schemas.

This module defines Pydantic models for the JSON proxy endpoints.
Speech-to-speech takes multipart/form-data and is decoded by
media_proxy.multipart instead, so only its response has a model here.

Request fields are optional at the schema level. Missing values are
reported by services/validators.py with the endpoint's own 400 message,
not with FastAPI's generic 422.

Models:
    TTSRequest / TTSResponse: /api/tts
    PixianRequest / PixianResponse: /api/pixian
    ClaudeRequest / ClaudeResponse: /api/claude
    GenerateRequest: /api/generate
    STSResponse: /api/sts

Example Request (/api/claude):
    {
        "prompt": "Describe what changed between these frames",
        "firstImage": "data:image/png;base64,iVBORw0KGgo...",
        "lastImage": "iVBORw0KGgo..."
    }

See Also:
    - services/requests.py: validated dataclasses handed to ProxyService
"""
from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class STSResponse(BaseModel):
    """Converted audio, base64-encoded."""
    audio_base64: str = Field(..., description="Base64-encoded converted audio")


class TTSRequest(BaseModel):
    """
    Text-to-speech request.

    Attributes:
        text: Text to synthesize.
        voice_id: ElevenLabs voice.
        model_id: Synthesis model (server default when None).
        voice_settings: Passed through to ElevenLabs (server default when None).
    """
    text: str | None = Field(default=None, description="Text to synthesize")
    voice_id: str | None = Field(default=None, description="ElevenLabs voice ID")
    model_id: str | None = Field(default=None, description="ElevenLabs model ID")
    voice_settings: Dict[str, Any] | None = Field(
        default=None,
        description="stability, similarity_boost, style, use_speaker_boost",
    )


class TTSResponse(BaseModel):
    audio: str = Field(..., description="Base64-encoded audio")
    content_type: str = Field(default="audio/mpeg")


class PixianRequest(BaseModel):
    image: str | None = Field(
        default=None,
        description="Base64 image, optionally with a data: URL prefix",
    )


class PixianResponse(BaseModel):
    success: bool = True
    image: str = Field(..., description="Base64-encoded PNG with the background removed")


class ClaudeRequest(BaseModel):
    """
    Prompt with up to two images.

    firstImage and lastImage are sent in that order. image is used only
    when neither is given.
    """
    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = Field(default=None, description="User prompt")
    image: str | None = Field(default=None, description="Single base64 image")
    first_image: str | None = Field(default=None, alias="firstImage")
    last_image: str | None = Field(default=None, alias="lastImage")


class ClaudeResponse(BaseModel):
    success: bool = True
    result: str = Field(..., description="Text of the first content block")


class GenerateRequest(BaseModel):
    """
    Gemini generateContent body.

    contents is typed Any so that a non-list value reaches the validator
    and gets the 400 "Invalid request body" answer.
    """
    model_config = ConfigDict(populate_by_name=True)

    contents: Any = Field(default=None, description="Gemini contents list")
    generation_config: Dict[str, Any] | None = Field(default=None, alias="generationConfig")
