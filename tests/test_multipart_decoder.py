"""
Tests for the multipart/form-data decoder.

Tests cover:
- decode() - text and file parts, body order, CRLF handling
- Last-write-wins on duplicate names
- Unnamed and malformed parts dropped without raising
- Empty body, missing delimiter, empty boundary
- Closing delimiter ends the scan
- describe_fields() summaries
"""
from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from media_proxy.multipart import (
    FileField,
    MultipartBoundaryError,
    TextField,
    decode,
    describe_fields,
)

BOUNDARY = "----WebKitFormBoundary7MA4YWxkTrZu0gW"

# (name, filename, content_type, payload); name None omits name=
Part = Tuple[Optional[str], Optional[str], Optional[str], bytes]


def build_body(parts: List[Part], boundary: str = BOUNDARY, close: bool = True) -> bytes:
    """Assemble a multipart body the way a browser FormData upload does."""
    out = b""
    for name, filename, content_type, payload in parts:
        disposition = "Content-Disposition: form-data"
        if name is not None:
            disposition += f'; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        headers = disposition + "\r\n"
        if content_type is not None:
            headers += f"Content-Type: {content_type}\r\n"
        out += f"--{boundary}\r\n{headers}\r\n".encode("utf-8") + payload + b"\r\n"
    if close:
        out += f"--{boundary}--\r\n".encode("utf-8")
    return out


class TestDecodeScenario:
    """The voice_id + audio upload a speech-to-speech request carries."""

    def test_text_and_file_fields(self):
        body = build_body([
            ("voice_id", None, None, b"abc123"),
            ("audio", "rec.webm", "audio/webm", bytes([0x00, 0x01, 0x02])),
        ])

        fields = decode(body, BOUNDARY)

        assert fields == {
            "voice_id": TextField(value="abc123"),
            "audio": FileField(data=b"\x00\x01\x02", filename="rec.webm",
                               content_type="audio/webm"),
        }

    def test_field_kinds(self):
        body = build_body([
            ("voice_id", None, None, b"abc123"),
            ("audio", "rec.webm", "audio/webm", b"\x00\x01\x02"),
        ])

        fields = decode(body, BOUNDARY)

        assert fields["voice_id"].is_file is False
        assert fields["audio"].is_file is True
        assert fields["audio"].size == 3

    def test_fields_in_body_order(self):
        body = build_body([
            ("b", None, None, b"2"),
            ("a", None, None, b"1"),
            ("c", None, None, b"3"),
        ])

        assert list(decode(body, BOUNDARY)) == ["b", "a", "c"]


class TestDecodeFields:
    """Tests for per-part decoding."""

    def test_n_distinct_parts_give_n_entries(self):
        parts = [(f"field{i}", None, None, f"value{i}".encode()) for i in range(7)]
        fields = decode(build_body(parts), BOUNDARY)
        assert len(fields) == 7
        assert fields["field4"] == TextField("value4")

    def test_file_payload_is_exact_bytes(self):
        """Binary payload keeps embedded CRLFs and high bytes; only the delimiter CRLF goes."""
        payload = b"\r\nRIFF\x00\xff\xfe\r\n\r\nend\r\n"
        body = build_body([("audio", "x.webm", "audio/webm", payload)])

        field = decode(body, BOUNDARY)["audio"]

        assert isinstance(field, FileField)
        assert field.data == payload
        assert field.filename == "x.webm"
        assert field.content_type == "audio/webm"

    def test_text_is_trimmed(self):
        body = build_body([("voice_id", None, None, b"  \r\n abc123 \t\r\n")])
        assert decode(body, BOUNDARY)["voice_id"].value == "abc123"

    def test_text_is_utf8(self):
        body = build_body([("prompt", None, None, "Merhaba dünya 안녕".encode("utf-8"))])
        assert decode(body, BOUNDARY)["prompt"].value == "Merhaba dünya 안녕"

    def test_invalid_utf8_text_does_not_raise(self):
        body = build_body([("voice_id", None, None, b"ab\xffcd")])
        assert decode(body, BOUNDARY)["voice_id"].value == "ab\ufffdcd"

    def test_file_without_content_type(self):
        body = build_body([("audio", "rec.webm", None, b"\x01")])
        field = decode(body, BOUNDARY)["audio"]
        assert isinstance(field, FileField)
        assert field.content_type is None

    def test_empty_filename_is_still_a_file(self):
        body = build_body([("audio", "", "application/octet-stream", b"")])
        field = decode(body, BOUNDARY)["audio"]
        assert isinstance(field, FileField)
        assert field.filename == ""
        assert field.data == b""

    def test_content_type_ignored_for_text_parts(self):
        body = build_body([("meta", None, "application/json", b'{"a": 1}')])
        assert decode(body, BOUNDARY)["meta"] == TextField('{"a": 1}')

    def test_header_names_case_insensitive(self):
        body = (
            f"--{BOUNDARY}\r\n"
            'content-disposition: form-data; name="audio"; filename="a.wav"\r\n'
            "CONTENT-TYPE: audio/wav\r\n"
            "\r\n"
        ).encode() + b"RIFF" + f"\r\n--{BOUNDARY}--\r\n".encode()

        field = decode(body, BOUNDARY)["audio"]

        assert field.content_type == "audio/wav"
        assert field.data == b"RIFF"

    def test_filename_does_not_count_as_name(self):
        body = (
            f"--{BOUNDARY}\r\n"
            'Content-Disposition: form-data; filename="rec.webm"\r\n'
            "\r\n"
        ).encode() + b"data" + f"\r\n--{BOUNDARY}--\r\n".encode()

        assert decode(body, BOUNDARY) == {}

    def test_copies_are_independent_of_input(self):
        raw = bytearray(build_body([("audio", "a.bin", None, b"\x01\x02")]))
        fields = decode(raw, BOUNDARY)
        raw[:] = b"\x00" * len(raw)
        assert fields["audio"].data == b"\x01\x02"

    def test_memoryview_input(self):
        body = build_body([("voice_id", None, None, b"abc")])
        assert decode(memoryview(body), BOUNDARY)["voice_id"].value == "abc"


class TestDecodePolicies:
    """Tests for duplicate, unnamed and malformed parts."""

    def test_duplicate_name_last_write_wins(self):
        body = build_body([
            ("voice_id", None, None, b"first"),
            ("voice_id", None, None, b"second"),
        ])
        fields = decode(body, BOUNDARY)
        assert len(fields) == 1
        assert fields["voice_id"].value == "second"

    def test_duplicate_name_can_change_kind(self):
        body = build_body([
            ("audio", "rec.webm", "audio/webm", b"\x00"),
            ("audio", None, None, b"not a file"),
        ])
        assert decode(body, BOUNDARY)["audio"] == TextField("not a file")

    def test_unnamed_part_dropped(self):
        body = build_body([
            ("voice_id", None, None, b"abc"),
            (None, None, None, b"orphan"),
            ("model_id", None, None, b"m1"),
        ])
        fields = decode(body, BOUNDARY)
        assert set(fields) == {"voice_id", "model_id"}

    def test_empty_name_dropped(self):
        body = build_body([("", None, None, b"x"), ("ok", None, None, b"y")])
        assert list(decode(body, BOUNDARY)) == ["ok"]

    def test_part_without_header_separator_dropped(self):
        body = (
            f"--{BOUNDARY}\r\n"
            'Content-Disposition: form-data; name="broken"\r\n'
            "no blank line here"
            f"\r\n--{BOUNDARY}\r\n"
            'Content-Disposition: form-data; name="ok"\r\n'
            "\r\n"
            "fine"
            f"\r\n--{BOUNDARY}--\r\n"
        ).encode()

        assert decode(body, BOUNDARY) == {"ok": TextField("fine")}

    def test_content_after_closing_delimiter_ignored(self):
        body = build_body([("a", None, None, b"1")]) + (
            f"--{BOUNDARY}\r\n"
            'Content-Disposition: form-data; name="late"\r\n'
            "\r\n"
            "ignored"
            f"\r\n--{BOUNDARY}--\r\n"
        ).encode()

        assert list(decode(body, BOUNDARY)) == ["a"]

    def test_preamble_ignored(self):
        body = b"This is a preamble.\r\n" + build_body([("a", None, None, b"1")])
        assert decode(body, BOUNDARY) == {"a": TextField("1")}

    def test_unterminated_trailing_part_ignored(self):
        body = build_body([("a", None, None, b"1")], close=False)
        body += f"--{BOUNDARY}\r\nContent-Disposition: form-data; name=\"b\"\r\n\r\n2".encode()
        assert decode(body, BOUNDARY) == {"a": TextField("1")}

    def test_closing_delimiter_only(self):
        assert decode(f"--{BOUNDARY}--\r\n".encode(), BOUNDARY) == {}

    def test_boundary_inside_payload_mis_splits(self):
        """Delimiter bytes in a payload end the part early; the decoder does not guard against it."""
        payload = f"abc\r\n--{BOUNDARY}\r\nxyz".encode()
        body = build_body([("audio", "a.bin", None, payload)])

        fields = decode(body, BOUNDARY)

        assert fields["audio"].data == b"abc"


class TestDecodeEdgeInputs:
    """Tests for empty and unusable input."""

    def test_empty_body(self):
        assert decode(b"", BOUNDARY) == {}

    def test_body_without_delimiter(self):
        assert decode(b"just some bytes\r\n\r\nmore", BOUNDARY) == {}

    def test_wrong_boundary(self):
        body = build_body([("a", None, None, b"1")])
        assert decode(body, "other-boundary") == {}

    @pytest.mark.parametrize("boundary", ["", None])
    def test_empty_boundary_raises(self, boundary):
        with pytest.raises(MultipartBoundaryError):
            decode(build_body([("a", None, None, b"1")]), boundary)

    def test_boundary_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode(b"", "")


class TestDescribeFields:
    """Tests for describe_fields() summaries."""

    def test_summary_has_no_payload(self):
        fields = decode(build_body([
            ("voice_id", None, None, b"abc123"),
            ("audio", "rec.webm", "audio/webm", b"\x00\x01\x02"),
        ]), BOUNDARY)

        summary = describe_fields(fields)

        assert summary == {
            "voice_id": {"type": "text", "chars": 6},
            "audio": {"type": "file", "filename": "rec.webm",
                      "content_type": "audio/webm", "bytes": 3},
        }

    def test_empty(self):
        assert describe_fields({}) == {}
