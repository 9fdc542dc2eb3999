"""
media-proxy: Server-Side Proxy for Browser AI/Media Calls.

Keeps third-party API credentials on the server while a browser app uses
speech, image and text-generation providers.

Endpoints:
    - /api/sts: ElevenLabs speech-to-speech (multipart upload)
    - /api/tts: ElevenLabs voices and text-to-speech
    - /api/pixian: Pixian background removal
    - /api/claude: Anthropic text generation
    - /api/generate: Gemini image generation
    - /health, /metrics

Key Features:
    - Dependency-free multipart/form-data decoder (media_proxy.multipart)
    - YAML configuration with environment overrides
    - Structured console and JSONL logging with request IDs
    - Prometheus metrics

Example Usage:
    >>> from media_proxy.multipart import decode, extract_boundary
    >>> boundary = extract_boundary("multipart/form-data; boundary=xyz")
    >>> fields = decode(body, boundary)
    >>> fields["voice_id"].value
    'abc123'
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
