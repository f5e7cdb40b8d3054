"""Process-wide settings for the consent edge router.

Lambda@Edge does not support environment variables, so every value has a
built-in default. The two base URLs may still be overridden through the
environment when the code runs somewhere that has one (local runs, tests,
a regional Lambda).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from dataclasses import field
from typing import Optional
from urllib.parse import urlparse

from consent_edge.exceptions import ConfigurationError

SDK_BASE_URL = "https://sdk.privacy-center.org"
API_BASE_URL = "https://api.privacy-center.org"

PATH_PREFIX = "/consent/"
API_SUBPREFIX = "api/"

UPSTREAM_TIMEOUT_SECONDS = 10.0

CORS_HEADERS: tuple[tuple[str, str], ...] = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "GET, POST, PUT, DELETE, OPTIONS"),
    ("Access-Control-Allow-Headers", "Content-Type, Authorization, X-Requested-With"),
)

ALLOWED_RESPONSE_HEADERS = frozenset(
    {
        "cache-control",
        "content-language",
        "content-type",
        "content-length",
        "expires",
        "last-modified",
        "pragma",
        "set-cookie",
        "vary",
        # CORS
        "access-control-allow-origin",
        "access-control-allow-methods",
        "access-control-allow-headers",
    }
)


@dataclass(frozen=True)
class EdgeSettings:
    """Immutable routing and proxy settings."""

    sdk_base_url: str = SDK_BASE_URL
    api_base_url: str = API_BASE_URL
    path_prefix: str = PATH_PREFIX
    api_subprefix: str = API_SUBPREFIX
    timeout_seconds: float = UPSTREAM_TIMEOUT_SECONDS
    allowed_response_headers: frozenset[str] = ALLOWED_RESPONSE_HEADERS
    cors_headers: tuple[tuple[str, str], ...] = field(default=CORS_HEADERS)


def _base_url_from_env(name: str, default: str) -> str:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    parsed = urlparse(raw)
    if parsed.scheme != "https" or not parsed.hostname:
        raise ConfigurationError(name, "must be an https URL")
    return raw.rstrip("/")


def load_settings() -> EdgeSettings:
    """Build settings from defaults and optional base URL overrides.

    Raises:
        ConfigurationError: If an override is not an ``https`` URL.
    """
    return EdgeSettings(
        sdk_base_url=_base_url_from_env("CONSENT_SDK_BASE_URL", SDK_BASE_URL),
        api_base_url=_base_url_from_env("CONSENT_API_BASE_URL", API_BASE_URL),
    )


_SETTINGS: Optional[EdgeSettings] = None


def get_settings() -> EdgeSettings:
    """Return the settings loaded once per process."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = load_settings()
    return _SETTINGS


def reset_settings() -> None:
    """Drop cached settings (useful in tests)."""
    global _SETTINGS
    _SETTINGS = None
