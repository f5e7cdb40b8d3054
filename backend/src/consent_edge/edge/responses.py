"""Responses synthesized at the edge without contacting the upstream."""

from __future__ import annotations

from typing import Optional

from consent_edge.config import EdgeSettings
from consent_edge.config import get_settings
from consent_edge.edge.models import HeaderRecord
from consent_edge.edge.models import OutgoingResponse


def cors_headers(
    settings: Optional[EdgeSettings] = None,
) -> dict[str, list[HeaderRecord]]:
    """Return the permissive CORS headers in edge header format."""
    settings = settings or get_settings()
    return {
        name.lower(): [HeaderRecord(key=name, value=value)]
        for name, value in settings.cors_headers
    }


def preflight_response(settings: Optional[EdgeSettings] = None) -> OutgoingResponse:
    """Answer a CORS preflight.

    Requested methods and headers are not mirrored back; the same static
    CORS headers are returned for every path.
    """
    return OutgoingResponse(
        status=200,
        status_description="OK",
        headers=cors_headers(settings),
        body="",
    )


def not_found_response() -> OutgoingResponse:
    """Static response for paths outside the supported prefix."""
    return OutgoingResponse(
        status=404,
        status_description="Not Found",
        body="Not Found",
    )
