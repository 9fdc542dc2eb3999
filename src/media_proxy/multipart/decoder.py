"""
Multipart/form-data Decoder.

Decodes a fully buffered multipart/form-data body into a mapping of field
name to decoded field, without any third-party or stdlib MIME parser.

Message Layout:
    --BOUNDARY\\r\\n
    Content-Disposition: form-data; name="voice_id"\\r\\n
    \\r\\n
    abc123\\r\\n
    --BOUNDARY\\r\\n
    Content-Disposition: form-data; name="audio"; filename="rec.webm"\\r\\n
    Content-Type: audio/webm\\r\\n
    \\r\\n
    <binary payload>\\r\\n
    --BOUNDARY--\\r\\n

Algorithm:
    1. Delimiter = "--" + boundary
    2. One linear pass of literal delimiter searches over the body
    3. Bytes between consecutive delimiters form a part; the CRLF after the
       previous delimiter and the CRLF before the next one are dropped
    4. The first blank line splits the part into headers and payload
    5. Parts with a filename become FileField (raw bytes); all others become
       TextField (UTF-8, whitespace-trimmed); parts without a name are dropped
    6. A delimiter followed by "--" closes the message

Policies:
    - Later parts overwrite earlier parts with the same name
    - Malformed input never raises; unparseable parts are simply absent
    - An empty boundary is a caller error and raises MultipartBoundaryError
    - Boundary bytes appearing inside a payload will mis-split the message

decode() is a pure function: no I/O, no logging, no shared state. It is
safe to call concurrently from any number of request handlers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from media_proxy.multipart.headers import parse_part_headers

CRLF = b"\r\n"
HEADER_SEPARATOR = b"\r\n\r\n"
CLOSE_MARKER = b"--"


class MultipartBoundaryError(ValueError):
    """Raised when decode() is called without a usable boundary token."""
    pass


@dataclass(frozen=True)
class TextField:
    """A form value without a filename, decoded as UTF-8 and trimmed."""
    value: str

    @property
    def is_file(self) -> bool:
        return False


@dataclass(frozen=True)
class FileField:
    """
    An uploaded file.

    Attributes:
        data: Raw payload bytes, never text-decoded.
        filename: Filename from Content-Disposition (may be "").
        content_type: Declared Content-Type, None when the part had none.
    """
    data: bytes
    filename: str
    content_type: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return True

    @property
    def size(self) -> int:
        return len(self.data)


DecodedField = Union[TextField, FileField]


def _strip_crlf(part: bytes) -> bytes:
    if part.startswith(CRLF):
        part = part[len(CRLF):]
    if part.endswith(CRLF):
        part = part[:-len(CRLF)]
    return part


def _decode_part(part: bytes) -> Optional[tuple[str, DecodedField]]:
    """Turn one part's bytes into (name, field), or None to skip it."""
    sep = part.find(HEADER_SEPARATOR)
    if sep == -1:
        return None

    headers = parse_part_headers(part[:sep].decode("utf-8", errors="replace"))
    if headers.name is None:
        return None

    payload = part[sep + len(HEADER_SEPARATOR):]
    if headers.filename is not None:
        return headers.name, FileField(
            data=payload,
            filename=headers.filename,
            content_type=headers.content_type,
        )
    return headers.name, TextField(value=payload.decode("utf-8", errors="replace").strip())


def decode(body: bytes, boundary: str) -> Dict[str, DecodedField]:
    """
    Decode a multipart/form-data body.

    Args:
        body: Complete request body. bytearray and memoryview are accepted
            and copied to bytes first.
        boundary: Boundary token from the Content-Type header, without the
            leading "--".

    Returns:
        Mapping of field name to TextField or FileField, in body order.
        Empty when the body is empty or contains no delimiter.

    Raises:
        MultipartBoundaryError: If boundary is empty or None.

    Example:
        >>> body = (b'--xyz\\r\\nContent-Disposition: form-data; name="voice_id"\\r\\n'
        ...         b'\\r\\nabc123\\r\\n--xyz--\\r\\n')
        >>> decode(body, "xyz")
        {'voice_id': TextField(value='abc123')}
    """
    if not boundary:
        raise MultipartBoundaryError("multipart boundary must be a non-empty string")

    data = bytes(body)
    delimiter = CLOSE_MARKER + boundary.encode("utf-8")
    fields: Dict[str, DecodedField] = {}

    pos = data.find(delimiter)
    while pos != -1:
        start = pos + len(delimiter)
        if data.startswith(CLOSE_MARKER, start):
            break

        nxt = data.find(delimiter, start)
        if nxt == -1:
            # Unterminated trailing part
            break

        decoded = _decode_part(_strip_crlf(data[start:nxt]))
        if decoded is not None:
            name, field = decoded
            fields[name] = field
        pos = nxt

    return fields


def describe_fields(fields: Dict[str, DecodedField]) -> Dict[str, Dict[str, Any]]:
    """
    Summarize decoded fields for logs and the CLI, without payload bytes.

    Returns:
        {"audio": {"type": "file", "filename": "rec.webm", "content_type": "audio/webm", "bytes": 3},
         "voice_id": {"type": "text", "chars": 6}}
    """
    summary: Dict[str, Dict[str, Any]] = {}
    for name, field in fields.items():
        if isinstance(field, FileField):
            summary[name] = {
                "type": "file",
                "filename": field.filename,
                "content_type": field.content_type,
                "bytes": field.size,
            }
        else:
            summary[name] = {"type": "text", "chars": len(field.value)}
    return summary
