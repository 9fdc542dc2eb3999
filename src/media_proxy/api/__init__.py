"""
FastAPI REST API Layer for media-proxy.

This package defines all HTTP endpoints:
    - speech.py: ElevenLabs endpoints (/api/sts, /api/tts)
    - images.py: Background removal (/api/pixian)
    - generation.py: Text and image generation (/api/claude, /api/generate)
    - routes.py: Service endpoints (/health, /metrics)
    - schemas.py: Request/response Pydantic models
    - dependencies.py: FastAPI dependency injection
    - responses.py: Request ID and JSON response helpers
"""
