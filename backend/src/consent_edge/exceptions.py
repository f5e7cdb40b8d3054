"""Custom exception classes for the edge router.

Each exception carries the HTTP status code the edge platform would
surface and optional structured detail for logging.
"""

from __future__ import annotations

from typing import Any
from typing import Optional


class EdgeError(Exception):
    """Base exception for edge router errors.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code (default 500).
        detail: Optional additional context.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a loggable dictionary."""
        result: dict[str, Any] = {"error": self.message}
        if self.detail:
            result["detail"] = self.detail
        return result


class NotFoundError(EdgeError):
    """Raised when a path falls outside the supported prefix."""

    def __init__(self, path: str):
        super().__init__("Not Found", status_code=404, detail=f"Path: {path}")
        self.path = path


class InvalidEventError(EdgeError):
    """Raised when the invocation event is not a CloudFront request event."""

    def __init__(self, message: str = "Invalid CloudFront event"):
        super().__init__(message, status_code=400)


class RequestTimeout(EdgeError):
    """Raised when the upstream does not respond in time.

    The in-flight connection has already been aborted when this is raised.
    """

    def __init__(self, timeout_seconds: float, url: Optional[str] = None):
        super().__init__(
            f"Request timeout after {timeout_seconds:g} seconds",
            status_code=504,
            detail=url,
        )
        self.timeout_seconds = timeout_seconds
        self.url = url


class UpstreamError(EdgeError):
    """Raised when the transport fails to reach or talk to the upstream."""

    def __init__(self, code: str, message: str):
        super().__init__(
            f"{code}: {message}",
            status_code=502,
            detail=code,
        )
        self.code = code
        self.upstream_message = message


class ConfigurationError(EdgeError):
    """Raised when configuration is invalid.

    Use when a base URL override is malformed or not HTTPS.
    """

    def __init__(self, config_name: str, reason: Optional[str] = None):
        message = f"Invalid configuration: {config_name}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, status_code=500)
        self.config_name = config_name
