"""
Part Header Parsing for multipart/form-data.

Header lines are matched with loose patterns rather than a full RFC 2045
parameter grammar:
    - name="..." and filename="..." are read from the first
      Content-Disposition line only
    - the first Content-Type line wins, matched case-insensitively
    - quoted values end at the next double quote; escaped quotes and
      semicolons inside values are not supported

This mirrors what browsers actually send for form uploads:

    Content-Disposition: form-data; name="audio"; filename="rec.webm"
    Content-Type: audio/webm
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_DISPOSITION_LINE = re.compile(r"^content-disposition[ \t]*:(.*)$", re.IGNORECASE | re.MULTILINE)
_CONTENT_TYPE_LINE = re.compile(r"^content-type[ \t]*:[ \t]*(.*?)\s*$", re.IGNORECASE | re.MULTILINE)

# \b keeps "name=" from matching inside "filename="
_NAME_PARAM = re.compile(r'\bname="([^"]*)"')
_FILENAME_PARAM = re.compile(r'\bfilename="([^"]*)"')

_BOUNDARY_PARAM = re.compile(r'boundary=(?:"([^"]*)"|([^;\s]*))', re.IGNORECASE)


@dataclass(frozen=True)
class PartHeaders:
    """
    Fields extracted from one part's header block.

    Attributes:
        name: Form field name. None when the part carries no usable name.
        filename: Present (possibly empty) only for file uploads.
        content_type: Declared type of a file upload, None when undeclared
            or when the part is not a file.
    """
    name: Optional[str] = None
    filename: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.filename is not None


def parse_part_headers(header_block: str) -> PartHeaders:
    """
    Extract name, filename and content type from a part's header block.

    Args:
        header_block: Header lines of one part, already decoded to text.

    Returns:
        PartHeaders. An empty name="" is reported as no name.

    Example:
        >>> parse_part_headers(
        ...     'Content-Disposition: form-data; name="audio"; filename="rec.webm"\\r\\n'
        ...     'Content-Type: audio/webm'
        ... )
        PartHeaders(name='audio', filename='rec.webm', content_type='audio/webm')
    """
    disposition = _DISPOSITION_LINE.search(header_block)
    if disposition is None:
        return PartHeaders()

    params = disposition.group(1)
    name_match = _NAME_PARAM.search(params)
    filename_match = _FILENAME_PARAM.search(params)

    name = name_match.group(1) if name_match else None
    filename = filename_match.group(1) if filename_match else None

    content_type = None
    if filename is not None:
        ct_match = _CONTENT_TYPE_LINE.search(header_block)
        if ct_match and ct_match.group(1):
            content_type = ct_match.group(1)

    return PartHeaders(name=name or None, filename=filename, content_type=content_type)


def extract_boundary(content_type: Optional[str]) -> Optional[str]:
    """
    Pull the boundary token out of a multipart Content-Type header.

    Args:
        content_type: Raw Content-Type header value.

    Returns:
        The token without surrounding quotes, "" when the parameter is
        present but empty, or None when the header is missing, is not
        multipart/form-data, or has no boundary parameter.

    Example:
        >>> extract_boundary("multipart/form-data; boundary=----WebKitFormBoundaryX")
        '----WebKitFormBoundaryX'
    """
    if not content_type or "multipart/form-data" not in content_type.lower():
        return None

    match = _BOUNDARY_PARAM.search(content_type)
    if match is None:
        return None
    return match.group(1) if match.group(1) is not None else match.group(2)
