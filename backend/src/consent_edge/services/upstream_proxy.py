"""Direct HTTPS proxy to the consent SDK / API hosts.

Used only when the edge function has to fetch the upstream itself
instead of handing the rewritten request back to CloudFront. The
upstream response is buffered in full before headers are finalized
because ``content-length`` may have to be computed from the body.

Failures are terminal: there are no retries, and a timeout or transport
error is raised to the caller with nothing partially returned.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

import httpx

from consent_edge.config import EdgeSettings, get_settings
from consent_edge.edge.models import (
    HeaderRecord,
    IncomingRequest,
    OutgoingResponse,
    Rewritten,
    Upstream,
)
from consent_edge.edge.responses import cors_headers
from consent_edge.exceptions import InvalidEventError, RequestTimeout, UpstreamError
from consent_edge.utils.logging import get_logger

logger = get_logger(__name__)

# Headers set by the proxy itself; copied values with these names are dropped
_FORCED_HEADERS = frozenset({"host", "accept-encoding", "x-forwarded-for"})

_GEO_HEADERS = (
    ("cloudfront-viewer-country", "X-CloudFront-Country"),
    ("cloudfront-viewer-region", "X-CloudFront-Region"),
)


def build_target_url(
    decision: Rewritten,
    querystring: str = "",
    settings: Optional[EdgeSettings] = None,
) -> str:
    """Full upstream URL for a rewritten request."""
    settings = settings or get_settings()
    base = (
        settings.api_base_url
        if decision.upstream is Upstream.API
        else settings.sdk_base_url
    )
    url = base.rstrip("/") + decision.path
    if querystring:
        url = f"{url}?{querystring}"
    return url


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    # httpx encodes header names and values as ASCII
    if not (name.isascii() and value.isascii()):
        logger.warning(f"Dropping header with non-ASCII content: {name!r}")
        return
    headers[name] = value


def build_upstream_headers(request: IncomingRequest, hostname: str) -> dict[str, str]:
    """Headers for the outbound request.

    Cookies are never forwarded and only the first value of each header
    is kept.
    """
    headers: dict[str, str] = {}
    for name, records in request.headers.items():
        lowered = name.lower()
        if not records or lowered == "cookie" or lowered in _FORCED_HEADERS:
            continue
        _set_header(headers, records[0].key or name, records[0].value)

    if request.client_ip:
        headers["X-Forwarded-For"] = request.client_ip
    headers["Host"] = hostname
    headers["accept-encoding"] = "identity"

    # Geo headers let the upstream vary its cached responses by viewer location
    for source, target in _GEO_HEADERS:
        value = request.first_header(source)
        if value:
            _set_header(headers, target, value)

    return headers


def serialize_body(body: Any) -> str:
    """Turn a CloudFront request body into the text sent upstream.

    Raises:
        InvalidEventError: If a base64 body cannot be decoded.
    """
    if body is None or body == "":
        return ""
    if isinstance(body, Mapping) and "data" in body:
        data = body.get("data") or ""
        encoding = body.get("encoding") or "base64"
        if encoding != "base64":
            return str(data)
        try:
            return base64.b64decode(data).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as exc:
            raise InvalidEventError("Request body is not valid base64") from exc
    if isinstance(body, str):
        return body
    return json.dumps(body)


def build_response_headers(
    response: httpx.Response,
    body: str,
    settings: EdgeSettings,
) -> dict[str, list[HeaderRecord]]:
    """Allow-listed upstream headers plus the CORS headers."""
    headers: dict[str, list[HeaderRecord]] = {}
    encoding = response.headers.encoding
    for raw_name, raw_value in response.headers.raw:
        name = raw_name.decode(encoding)
        lowered = name.lower()
        if lowered not in settings.allowed_response_headers:
            continue
        headers.setdefault(lowered, []).append(
            HeaderRecord(key=name, value=raw_value.decode(encoding))
        )

    headers.update(cors_headers(settings))

    if "content-length" not in headers and body:
        headers["content-length"] = [
            HeaderRecord(key="Content-Length", value=str(len(body.encode("utf-8"))))
        ]
    return headers


async def _fetch(
    url: str,
    method: str,
    headers: Mapping[str, str],
    content: str,
    timeout_seconds: float,
    transport: Optional[httpx.AsyncBaseTransport],
) -> httpx.Response:
    # Leaving the client context closes the connection, also on cancellation
    async with httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(timeout_seconds),
        follow_redirects=False,
    ) as client:
        return await client.request(
            method,
            url,
            headers=dict(headers),
            content=content.encode("utf-8") if content else None,
        )


async def proxy_request(
    target_url: str,
    method: str,
    request: IncomingRequest,
    *,
    settings: Optional[EdgeSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> OutgoingResponse:
    """Forward ``request`` to ``target_url`` and translate the response.

    Args:
        target_url: Absolute HTTPS URL of the upstream resource.
        method: HTTP method to use upstream.
        request: The original edge request.
        settings: Optional settings; defaults to the process settings.
        transport: Optional httpx transport (tests inject a mock).

    Returns:
        The edge response with allow-listed and CORS headers.

    Raises:
        RequestTimeout: If no complete response arrives within the timeout.
        UpstreamError: On connection or protocol failures.
    """
    settings = settings or get_settings()
    hostname = urlparse(target_url).hostname or ""
    headers = build_upstream_headers(request, hostname)
    content = serialize_body(request.body)

    logger.info(
        f"Proxying {method} {target_url}",
        extra={"upstream": {"host": hostname, "body_length": len(content)}},
    )

    try:
        response = await asyncio.wait_for(
            _fetch(
                target_url,
                method,
                headers,
                content,
                settings.timeout_seconds,
                transport,
            ),
            timeout=settings.timeout_seconds,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        logger.warning(
            f"Upstream request timed out after {settings.timeout_seconds:g} seconds",
            extra={"upstream": {"url": target_url}},
        )
        raise RequestTimeout(settings.timeout_seconds, target_url) from exc
    except (httpx.HTTPError, UnicodeEncodeError) as exc:
        code = type(exc).__name__
        logger.error(
            f"Upstream request failed: {code}: {exc}",
            extra={"error": {"code": code, "message": str(exc)}},
        )
        raise UpstreamError(code, str(exc)) from exc

    body = response.content.decode("utf-8", errors="replace")
    logger.info(
        f"Received upstream response: {response.status_code} {response.reason_phrase}",
        extra={"upstream": {"url": target_url, "body_length": len(body)}},
    )

    return OutgoingResponse(
        status=response.status_code,
        status_description=response.reason_phrase,
        headers=build_response_headers(response, body, settings),
        body=body,
    )
