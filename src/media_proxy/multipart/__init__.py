"""
Multipart/form-data Decoding.

    - decoder.py: decode() and the TextField/FileField result types
    - headers.py: part header parsing and boundary extraction
"""
from .decoder import (
    DecodedField,
    FileField,
    MultipartBoundaryError,
    TextField,
    decode,
    describe_fields,
)
from .headers import PartHeaders, extract_boundary, parse_part_headers

__all__ = [
    "decode",
    "describe_fields",
    "extract_boundary",
    "parse_part_headers",
    "DecodedField",
    "FileField",
    "TextField",
    "PartHeaders",
    "MultipartBoundaryError",
]
