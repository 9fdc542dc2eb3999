"""
ProxyService - Credentialed Calls to Third-Party AI/Media APIs.

This module provides the ProxyService class, the single place where
server-held credentials are attached to outbound requests. Every API
route goes through it.

Architecture:
    Route → validate → ProxyService.<operation> → UpstreamClient → provider

Operations:
    speech_to_speech   ElevenLabs voice changer (multipart upload)
    list_voices        ElevenLabs voice catalogue
    text_to_speech     ElevenLabs synthesis
    remove_background  Pixian background removal
    generate_text      Anthropic Messages API (prompt plus images)
    generate_content   Gemini generateContent pass-through

Error Handling:
    - CredentialsError: provider key missing from the environment
    - UpstreamError: provider answered non-2xx (status and body preserved)
      or could not be reached

Example:
    >>> from media_proxy.core.config import Credentials, Settings
    >>> config = Settings(raw={}).get_service_config()
    >>> service = ProxyService(config, Credentials.from_env(), get_client(config))
    >>> voices = service.list_voices()
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from media_proxy import __version__
from media_proxy.core.config import Credentials, ProxyServiceConfig
from media_proxy.core.logging import get_logger, info, success, verbose
from media_proxy.services.errors import CredentialsError, UpstreamError
from media_proxy.services.requests import (
    SpeechToSpeechRequest,
    TextGenerationRequest,
    TextToSpeechRequest,
)
from media_proxy.services.upstream import UpstreamClient

_LOG = get_logger("media-proxy.service")

# Sent when a text-to-speech request carries no voice_settings
DEFAULT_VOICE_SETTINGS: Dict[str, Any] = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0,
    "use_speaker_boost": True,
}

# Images reach the Messages API as base64 PNG blocks
IMAGE_MEDIA_TYPE = "image/png"


def _require(value: Optional[str], message: str) -> str:
    if not value:
        raise CredentialsError(message)
    return value


class ProxyService:
    """
    Attach credentials, shape provider requests, and unwrap responses.

    The instance is cheap: it only holds references to the validated
    config, the credentials for this request and the shared upstream
    client. api/dependencies.py builds one per request.

    Usage:
        service = ProxyService(config, credentials, upstream)
        audio = service.speech_to_speech(request)
    """

    def __init__(
        self,
        config: ProxyServiceConfig,
        credentials: Credentials,
        upstream: UpstreamClient,
    ):
        self._config = config
        self._credentials = credentials
        self._upstream = upstream

    @property
    def config(self) -> ProxyServiceConfig:
        return self._config

    # =========================================================================
    # ElevenLabs
    # =========================================================================

    def _elevenlabs_key(self) -> str:
        return _require(self._credentials.elevenlabs_api_key, "ElevenLabs API key not configured")

    def speech_to_speech(self, req: SpeechToSpeechRequest) -> bytes:
        """
        Convert a recording to the target voice.

        The audio is re-sent as a multipart upload, keeping its filename
        and content type (configured fallbacks when the browser sent none).

        Returns:
            Converted audio bytes.

        Raises:
            CredentialsError: ELEVENLABS_API_KEY not set.
            UpstreamError: ElevenLabs rejected the request.
        """
        key = self._elevenlabs_key()
        speech = self._config.speech
        audio = req.audio

        info(_LOG, "sts_request", voice_id=req.voice_id, model_id=req.model_id,
             audio_bytes=audio.size)

        files = {
            "audio": (
                audio.filename or speech.fallback_filename,
                audio.data,
                audio.content_type or speech.fallback_content_type,
            ),
        }
        data = {"model_id": req.model_id}
        if req.remove_background_noise:
            data["remove_background_noise"] = "true"

        resp = self._upstream.post(
            "elevenlabs",
            f"/v1/speech-to-speech/{quote(req.voice_id, safe='')}",
            headers={"xi-api-key": key},
            data=data,
            files=files,
        )
        if not resp.ok:
            raise UpstreamError(
                f"ElevenLabs API error: {resp.status_code}",
                status_code=resp.status_code,
                details=resp.text,
                provider="elevenlabs",
            )

        success(_LOG, "sts_done", audio_bytes=len(resp.content), seconds=resp.seconds)
        return resp.content

    def list_voices(self) -> Any:
        """
        Fetch the voice catalogue.

        Returns:
            Upstream JSON, unchanged.
        """
        resp = self._upstream.get(
            "elevenlabs", "/v1/voices", headers={"xi-api-key": self._elevenlabs_key()},
        )
        if not resp.ok:
            raise UpstreamError(
                "ElevenLabs API error",
                status_code=resp.status_code,
                details=resp.text,
                provider="elevenlabs",
            )
        return resp.json()

    def text_to_speech(self, req: TextToSpeechRequest) -> bytes:
        """
        Synthesize speech.

        Returns:
            MPEG audio bytes.
        """
        key = self._elevenlabs_key()
        body = {
            "text": req.text,
            "model_id": req.model_id or self._config.speech.tts_model_id,
            "voice_settings": req.voice_settings or DEFAULT_VOICE_SETTINGS,
        }
        info(_LOG, "tts_request", voice_id=req.voice_id, model_id=body["model_id"],
             chars=len(req.text))

        resp = self._upstream.post(
            "elevenlabs",
            f"/v1/text-to-speech/{quote(req.voice_id, safe='')}",
            headers={"xi-api-key": key, "Accept": "audio/mpeg"},
            json=body,
        )
        if not resp.ok:
            raise UpstreamError(
                "ElevenLabs API error",
                status_code=resp.status_code,
                details=resp.text,
                provider="elevenlabs",
            )
        return resp.content

    # =========================================================================
    # Pixian
    # =========================================================================

    def remove_background(self, image_b64: str) -> bytes:
        """
        Remove the background of a base64 image.

        Returns:
            PNG bytes.
        """
        api_id = _require(self._credentials.pixian_api_id,
                          "PIXIAN_API_ID or PIXIAN_API_SECRET not configured")
        api_secret = _require(self._credentials.pixian_api_secret,
                              "PIXIAN_API_ID or PIXIAN_API_SECRET not configured")

        form = {"image.base64": image_b64}
        if self._config.pixian_test_mode:
            form["test"] = "true"
        verbose(_LOG, "pixian_request", image_chars=len(image_b64),
                test_mode=self._config.pixian_test_mode)

        resp = self._upstream.post(
            "pixian",
            "/api/v2/remove-background",
            auth=(api_id, api_secret),
            data=form,
        )
        if not resp.ok:
            raise UpstreamError(
                f"Pixian API Error: {resp.status_code} - {resp.text}",
                status_code=resp.status_code,
                details=resp.text,
                provider="pixian",
            )
        return resp.content

    # =========================================================================
    # Anthropic
    # =========================================================================

    def generate_text(self, req: TextGenerationRequest) -> str:
        """
        Ask the Messages API for a completion.

        Returns:
            Text of the first content block.
        """
        key = _require(self._credentials.anthropic_api_key, "API key not configured")

        content: List[Dict[str, Any]] = [
            {
                "type": "image",
                "source": {"type": "base64", "media_type": IMAGE_MEDIA_TYPE, "data": image},
            }
            for image in req.images
        ]
        content.append({"type": "text", "text": req.prompt})

        info(_LOG, "claude_request", model=self._config.anthropic.model,
             images=len(req.images), chars=len(req.prompt))

        resp = self._upstream.post(
            "anthropic",
            "/v1/messages",
            headers={
                "x-api-key": key,
                "anthropic-version": self._config.anthropic_version,
            },
            json={
                "model": self._config.anthropic.model,
                "max_tokens": self._config.anthropic_max_tokens,
                "messages": [{"role": "user", "content": content}],
            },
        )
        data = resp.json_or_text()
        if not resp.ok:
            message = "Claude API error"
            if isinstance(data, dict) and isinstance(data.get("error"), dict):
                message = data["error"].get("message") or message
            raise UpstreamError(message, status_code=resp.status_code, details=data,
                                provider="anthropic")

        try:
            return data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError("Unexpected Claude API response", details=data,
                                provider="anthropic") from e

    # =========================================================================
    # Gemini
    # =========================================================================

    def generate_content(
        self,
        contents: List[Any],
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Forward a generateContent call.

        Returns:
            Upstream JSON, unchanged.
        """
        key = _require(self._credentials.gemini_api_key, "Server configuration error")

        body: Dict[str, Any] = {"contents": contents}
        if generation_config is not None:
            body["generationConfig"] = generation_config

        resp = self._upstream.post(
            "gemini",
            f"/v1beta/models/{self._config.gemini.model}:generateContent",
            headers={"x-goog-api-key": key},
            json=body,
        )
        if not resp.ok:
            raise UpstreamError(
                "Gemini API error",
                status_code=resp.status_code,
                details=resp.json_or_text(),
                provider="gemini",
            )
        return resp.json()

    # =========================================================================
    # Health
    # =========================================================================

    def get_health_info(self) -> Dict[str, Any]:
        """
        Health payload for /health.

        Reports which providers have credentials without revealing them.
        """
        return {
            "ok": True,
            "service": "media-proxy",
            "version": __version__,
            "providers": self._credentials.configured(),
            "max_body_bytes": self._config.limits.max_body_bytes,
        }
