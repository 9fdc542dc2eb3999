"""
Request Dataclasses for the Proxy Service.

These are the validated, provider-ready forms of the inbound requests.
The API layer builds them (through services/validators.py) and
ProxyService consumes them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from media_proxy.multipart import FileField


@dataclass
class SpeechToSpeechRequest:
    """
    Voice conversion request.

    Attributes:
        audio: Uploaded recording (raw bytes plus filename/content type).
        voice_id: Target ElevenLabs voice.
        model_id: Conversion model.
        remove_background_noise: Forwarded only when True.
    """
    audio: FileField
    voice_id: str
    model_id: str
    remove_background_noise: bool = False


@dataclass
class TextToSpeechRequest:
    """
    Speech synthesis request.

    voice_settings of None means the service defaults are sent.
    """
    text: str
    voice_id: str
    model_id: Optional[str] = None
    voice_settings: Optional[Dict[str, Any]] = None


@dataclass
class TextGenerationRequest:
    """
    Prompt plus optional base64 images (data-URL prefixes already stripped).

    images are sent in list order, before the prompt.
    """
    prompt: str
    images: List[str] = field(default_factory=list)
