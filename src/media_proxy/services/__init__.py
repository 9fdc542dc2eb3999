"""
media-proxy Services Layer.

Business logic between the API layer and the third-party providers.

Components:
    - proxy_service.py: ProxyService (credentialed provider calls)
    - upstream.py: UpstreamClient (shared httpx client, metrics, logging)
    - requests.py: validated request dataclasses
    - validators.py: request field validation
    - errors.py: ErrorCode and the ProxyError hierarchy
"""
from .errors import (
    CredentialsError,
    ErrorCode,
    InvalidInputError,
    PayloadTooLargeError,
    ProxyError,
    UpstreamError,
)
from .proxy_service import ProxyService
from .requests import SpeechToSpeechRequest, TextGenerationRequest, TextToSpeechRequest

__all__ = [
    "ProxyService",
    "SpeechToSpeechRequest",
    "TextToSpeechRequest",
    "TextGenerationRequest",
    "ProxyError",
    "InvalidInputError",
    "PayloadTooLargeError",
    "CredentialsError",
    "UpstreamError",
    "ErrorCode",
]
