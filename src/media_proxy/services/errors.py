"""
Error Codes and Exceptions for the Proxy Service.

Every failure a route can report is a ProxyError carrying the HTTP status
the caller should see. Upstream failures keep the upstream's status and
body so that the browser gets the provider's own diagnostics.

Hierarchy:
    ProxyError
    ├── InvalidInputError     400  bad or missing request fields
    ├── PayloadTooLargeError  413  body over the configured ceiling
    ├── CredentialsError      500  server-side API key not configured
    └── UpstreamError         *    provider returned an error or was unreachable
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """Standardized error codes returned in the "code" field of error bodies."""
    INVALID_INPUT = "INVALID_INPUT"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    CREDENTIALS_MISSING = "CREDENTIALS_MISSING"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_UNREACHABLE = "UPSTREAM_UNREACHABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ProxyError(Exception):
    """
    Base exception for proxy errors.

    Attributes:
        message: Human-readable error message.
        code: Error code from ErrorCode.
        status_code: HTTP status to answer with.
        details: Optional extra context (upstream body, limits, ...).
    """
    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Any = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON error body sent to the browser."""
        result: Dict[str, Any] = {
            "error": self.message,
            "code": self.code,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


class InvalidInputError(ProxyError):
    """Raised when the request is missing required fields or is malformed."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message, ErrorCode.INVALID_INPUT, 400, details)


class PayloadTooLargeError(ProxyError):
    """Raised when the inbound body exceeds the configured ceiling."""
    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Request body too large ({size} > {limit} bytes)",
            ErrorCode.PAYLOAD_TOO_LARGE,
            413,
            {"max_body_bytes": limit},
        )


class CredentialsError(ProxyError):
    """Raised when the provider's API key is not configured on the server."""
    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CREDENTIALS_MISSING, 500)


class UpstreamError(ProxyError):
    """
    Raised when a provider answers with a non-2xx status or cannot be reached.

    status_code mirrors the upstream status; details holds the upstream
    body (parsed JSON when possible, text otherwise).
    """
    def __init__(
        self,
        message: str,
        code: str = ErrorCode.UPSTREAM_ERROR,
        status_code: int = 502,
        details: Any = None,
        provider: Optional[str] = None,
    ):
        super().__init__(message, code, status_code, details)
        self.provider = provider
