"""
Input Validation for the Proxy Endpoints.

Validation runs before any upstream call so that a bad request never
costs an API credit. Each function returns the cleaned value or raises
ValidationError with:
    - message: the exact error text the browser receives
    - code: machine-readable code (e.g., "STS_FIELDS_REQUIRED")

Usage:
    from media_proxy.services.validators import validate_sts_fields, ValidationError

    try:
        request = validate_sts_fields(fields, default_model_id="eleven_multilingual_sts_v2")
    except ValidationError as e:
        return error_response(400, e.message)
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from media_proxy.core.logging import debug, get_logger
from media_proxy.multipart import DecodedField, FileField, TextField
from media_proxy.services.requests import SpeechToSpeechRequest

_LOG = get_logger("media-proxy.validators")


class ValidationError(Exception):
    """
    Exception raised when input validation fails.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code for programmatic handling.
    """

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


def _text(fields: Dict[str, DecodedField], name: str) -> Optional[str]:
    field = fields.get(name)
    if isinstance(field, TextField) and field.value:
        return field.value
    return None


def validate_sts_fields(
    fields: Dict[str, DecodedField],
    default_model_id: str,
) -> SpeechToSpeechRequest:
    """
    Select and check the speech-to-speech form fields.

    "audio" must be a file part and "voice_id" a non-empty text part; a
    field of the wrong kind counts as absent.

    Args:
        fields: Output of multipart.decode().
        default_model_id: Used when "model_id" is absent or empty.

    Returns:
        SpeechToSpeechRequest ready to forward.

    Raises:
        ValidationError: If audio or voice_id is missing.
    """
    audio = fields.get("audio")
    voice_id = _text(fields, "voice_id")

    if not isinstance(audio, FileField) or not voice_id:
        debug(_LOG, "sts_fields_missing", present=sorted(fields))
        raise ValidationError("audio file and voice_id are required", "STS_FIELDS_REQUIRED")

    return SpeechToSpeechRequest(
        audio=audio,
        voice_id=voice_id,
        model_id=_text(fields, "model_id") or default_model_id,
        remove_background_noise=_text(fields, "remove_background_noise") == "true",
    )


def validate_tts_fields(text: Optional[str], voice_id: Optional[str]) -> tuple[str, str]:
    """
    Check the text-to-speech JSON fields.

    Raises:
        ValidationError: If text or voice_id is missing or empty.
    """
    if not text or not voice_id:
        raise ValidationError("text and voice_id are required", "TTS_FIELDS_REQUIRED")
    return text, voice_id


def strip_data_url(image: str) -> str:
    """
    Drop a data-URL prefix ("data:image/png;base64,") from a base64 image.

    Plain base64 strings are returned unchanged.
    """
    if image.startswith("data:"):
        return image.split(",", 1)[1] if "," in image else ""
    return image


def validate_image(image: Optional[str]) -> str:
    """
    Check the background-removal image field.

    Returns:
        The base64 payload without any data-URL prefix.

    Raises:
        ValidationError: If the image is missing or empty.
    """
    if not image:
        raise ValidationError("Image data required", "IMAGE_REQUIRED")
    payload = strip_data_url(image)
    if not payload:
        raise ValidationError("Image data required", "IMAGE_REQUIRED")
    return payload


def validate_prompt(prompt: Optional[str]) -> str:
    """
    Check the text-generation prompt.

    Raises:
        ValidationError: If the prompt is missing or empty.
    """
    if not prompt:
        raise ValidationError("Prompt is required", "PROMPT_REQUIRED")
    return prompt


def validate_contents(contents: Any) -> List[Any]:
    """
    Check the image-generation "contents" field.

    Raises:
        ValidationError: If contents is missing or not a list.
    """
    if not isinstance(contents, list):
        raise ValidationError("Invalid request body", "CONTENTS_INVALID")
    return contents
