"""
Tests for POST /api/sts (speech-to-speech proxy).

Tests cover:
- Successful conversion returns base64 audio
- Missing audio / voice_id -> 400 before any upstream call
- Non-multipart and empty-boundary requests -> 400
- Upstream status and body mirrored
- Body size ceiling -> 413
- Missing credentials -> 500
- X-Request-Id header, CORS preflight
"""
from __future__ import annotations

import base64

import httpx

from media_proxy.core.config import Credentials, LimitsConfig, ProxyServiceConfig
from media_proxy.multipart import decode, extract_boundary

BOUNDARY = "----WebKitFormBoundaryTest"


def multipart(fields, boundary: str = BOUNDARY) -> bytes:
    """Encode [(name, value)] or [(name, (filename, data, content_type))]."""
    out = b""
    for name, value in fields:
        if isinstance(value, tuple):
            filename, data, content_type = value
            head = (f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
                    f"Content-Type: {content_type}\r\n")
        else:
            head = f'Content-Disposition: form-data; name="{name}"\r\n'
            data = value.encode("utf-8")
        out += f"--{boundary}\r\n{head}\r\n".encode() + data + b"\r\n"
    return out + f"--{boundary}--\r\n".encode()


def post_sts(client, body: bytes, boundary: str = BOUNDARY):
    return client.post(
        "/api/sts",
        content=body,
        headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
    )


VALID_FIELDS = [
    ("voice_id", "abc123"),
    ("audio", ("rec.webm", b"\x00\x01\x02", "audio/webm")),
]


class TestSpeechToSpeechSuccess:
    """Tests for the happy path."""

    def test_returns_base64_audio(self, make_client):
        client, transport = make_client(lambda r: httpx.Response(200, content=b"CONVERTED"))

        r = post_sts(client, multipart(VALID_FIELDS))

        assert r.status_code == 200
        assert r.json() == {"audio_base64": base64.b64encode(b"CONVERTED").decode()}
        assert len(r.headers["X-Request-Id"]) == 12
        assert len(transport.requests) == 1

    def test_forwarded_request(self, make_client):
        client, transport = make_client(lambda r: httpx.Response(200, content=b"x"))

        post_sts(client, multipart(VALID_FIELDS + [
            ("model_id", "eleven_english_sts_v2"),
            ("remove_background_noise", "true"),
        ]))

        sent = transport.requests[0]
        assert str(sent.url) == "https://api.elevenlabs.io/v1/speech-to-speech/abc123"
        assert sent.headers["xi-api-key"] == "el-test-key"
        fields = decode(sent.content, extract_boundary(sent.headers["content-type"]))
        assert fields["audio"].data == b"\x00\x01\x02"
        assert fields["audio"].filename == "rec.webm"
        assert fields["model_id"].value == "eleven_english_sts_v2"
        assert fields["remove_background_noise"].value == "true"

    def test_default_model(self, make_client):
        client, transport = make_client(lambda r: httpx.Response(200, content=b"x"))
        post_sts(client, multipart(VALID_FIELDS))

        sent = transport.requests[0]
        fields = decode(sent.content, extract_boundary(sent.headers["content-type"]))
        assert fields["model_id"].value == "eleven_multilingual_sts_v2"
        assert "remove_background_noise" not in fields

    def test_quoted_boundary(self, make_client):
        client, _ = make_client(lambda r: httpx.Response(200, content=b"x"))
        r = client.post(
            "/api/sts",
            content=multipart(VALID_FIELDS),
            headers={"Content-Type": f'multipart/form-data; boundary="{BOUNDARY}"'},
        )
        assert r.status_code == 200

    def test_encoded_by_http_client(self, make_client):
        """A body produced by a real multipart encoder decodes the same way."""
        client, transport = make_client(lambda r: httpx.Response(200, content=b"x"))

        r = client.post(
            "/api/sts",
            data={"voice_id": "abc123"},
            files={"audio": ("clip.ogg", b"OggS\x00", "audio/ogg")},
        )

        assert r.status_code == 200
        sent = transport.requests[0]
        fields = decode(sent.content, extract_boundary(sent.headers["content-type"]))
        assert fields["audio"].filename == "clip.ogg"
        assert fields["audio"].content_type == "audio/ogg"
        assert fields["audio"].data == b"OggS\x00"


class TestSpeechToSpeechValidation:
    """Tests for 400 answers; none of them reach the upstream."""

    def test_missing_voice_id(self, make_client, no_upstream):
        client, _ = make_client(no_upstream)
        r = post_sts(client, multipart([("audio", ("rec.webm", b"\x00", "audio/webm"))]))
        assert r.status_code == 400
        assert r.json() == {"error": "audio file and voice_id are required"}

    def test_missing_audio(self, make_client, no_upstream):
        client, _ = make_client(no_upstream)
        r = post_sts(client, multipart([("voice_id", "abc123")]))
        assert r.status_code == 400
        assert r.json()["error"] == "audio file and voice_id are required"

    def test_audio_sent_as_text(self, make_client, no_upstream):
        client, _ = make_client(no_upstream)
        r = post_sts(client, multipart([("voice_id", "abc123"), ("audio", "not a file")]))
        assert r.status_code == 400

    def test_empty_body(self, make_client, no_upstream):
        client, _ = make_client(no_upstream)
        r = post_sts(client, b"")
        assert r.status_code == 400
        assert r.json()["error"] == "audio file and voice_id are required"

    def test_not_multipart(self, make_client, no_upstream):
        client, _ = make_client(no_upstream)
        r = client.post("/api/sts", json={"voice_id": "abc123"})
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid content type"}

    def test_empty_boundary(self, make_client, no_upstream):
        client, _ = make_client(no_upstream)
        r = client.post("/api/sts", content=b"--\r\n",
                        headers={"Content-Type": "multipart/form-data; boundary="})
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid content type"}

    def test_validation_before_credentials(self, make_client, no_upstream):
        client, _ = make_client(no_upstream, credentials=Credentials())
        r = post_sts(client, multipart([("voice_id", "abc123")]))
        assert r.status_code == 400


class TestSpeechToSpeechErrors:
    """Tests for upstream, credential and size failures."""

    def test_upstream_error_mirrored(self, make_client):
        client, _ = make_client(lambda r: httpx.Response(
            401, text='{"detail":{"status":"invalid_api_key"}}'))

        r = post_sts(client, multipart(VALID_FIELDS))

        assert r.status_code == 401
        body = r.json()
        assert body["error"] == "ElevenLabs API error: 401"
        assert body["details"] == '{"detail":{"status":"invalid_api_key"}}'

    def test_upstream_unreachable(self, make_client):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client, _ = make_client(handler)
        r = post_sts(client, multipart(VALID_FIELDS))
        assert r.status_code == 502
        assert r.json()["code"] == "UPSTREAM_UNREACHABLE"

    def test_missing_credentials(self, make_client, no_upstream):
        client, _ = make_client(no_upstream, credentials=Credentials(gemini_api_key="g"))
        r = post_sts(client, multipart(VALID_FIELDS))
        assert r.status_code == 500
        assert r.json()["error"] == "ElevenLabs API key not configured"

    def test_unexpected_error(self, make_client):
        def handler(request):
            raise RuntimeError("socket exploded")

        client, _ = make_client(handler)
        r = post_sts(client, multipart(VALID_FIELDS))
        assert r.status_code == 500
        assert r.json() == {"error": "Internal server error", "details": "socket exploded"}

    def test_body_too_large(self, make_client, no_upstream):
        config = ProxyServiceConfig(limits=LimitsConfig(max_body_bytes=64))
        client, _ = make_client(no_upstream, config=config)

        r = post_sts(client, multipart(VALID_FIELDS + [("padding", "x" * 200)]))

        assert r.status_code == 413
        assert r.json()["code"] == "PAYLOAD_TOO_LARGE"
        assert r.json()["details"] == {"max_body_bytes": 64}

    def test_get_not_allowed(self, make_client, no_upstream):
        client, _ = make_client(no_upstream)
        assert client.get("/api/sts").status_code == 405


class TestCors:
    """Tests for the CORS middleware."""

    def test_preflight(self, make_client, no_upstream):
        client, _ = make_client(no_upstream)
        r = client.options("/api/sts", headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        })
        assert r.status_code == 200
        assert r.headers["access-control-allow-origin"] == "*"

    def test_restricted_origins(self, make_client, no_upstream):
        from media_proxy.core.config import CorsConfig
        config = ProxyServiceConfig(cors=CorsConfig(allow_origins=["https://app.example.com"]))
        client, _ = make_client(no_upstream, config=config)

        r = client.options("/api/sts", headers={
            "Origin": "https://evil.example.com",
            "Access-Control-Request-Method": "POST",
        })

        assert r.status_code == 400
