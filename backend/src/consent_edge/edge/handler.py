"""Lambda@Edge handlers for the consent routes.

``origin_request_handler`` rewrites the path and hands the request back
to CloudFront, which fetches the origin itself. ``proxy_handler`` is for
deployments where the function has to fetch the upstream directly.
Both answer CORS preflights and paths outside the consent prefix
without contacting the upstream.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any
from typing import Mapping
from typing import Optional

from consent_edge.edge.models import IncomingRequest
from consent_edge.edge.models import NotFound
from consent_edge.edge.models import OutgoingResponse
from consent_edge.edge.models import Preflight
from consent_edge.edge.models import RoutingDecision
from consent_edge.edge.models import cf_request
from consent_edge.edge.responses import not_found_response
from consent_edge.edge.responses import preflight_response
from consent_edge.exceptions import EdgeError
from consent_edge.routing.rewriter import apply_decision
from consent_edge.routing.rewriter import route
from consent_edge.services.upstream_proxy import build_target_url
from consent_edge.services.upstream_proxy import proxy_request
from consent_edge.utils.logging import clear_request_context
from consent_edge.utils.logging import configure_logging
from consent_edge.utils.logging import get_logger
from consent_edge.utils.logging import log_edge_event
from consent_edge.utils.logging import log_response
from consent_edge.utils.logging import set_request_context

configure_logging()
logger = get_logger(__name__)


def _set_context(event: Mapping[str, Any], context: Any) -> None:
    try:
        config = event["Records"][0]["cf"].get("config") or {}
    except (KeyError, IndexError, TypeError, AttributeError):
        config = {}
    set_request_context(
        req_id=config.get("requestId") or getattr(context, "aws_request_id", None),
        dist_id=config.get("distributionId"),
    )


def _short_circuit(decision: RoutingDecision) -> Optional[OutgoingResponse]:
    if isinstance(decision, Preflight):
        return preflight_response()
    if isinstance(decision, NotFound):
        logger.info(f"Path outside consent prefix: {decision.path}")
        return not_found_response()
    return None


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def origin_request_handler(
    event: Mapping[str, Any],
    context: Any,
) -> dict[str, Any]:
    """Rewrite the request URI, or answer preflight / 404 at the edge."""
    start = time.perf_counter()
    _set_context(event, context)
    try:
        raw_request = cf_request(event)
        log_edge_event(logger, raw_request)
        request = IncomingRequest.from_cf_request(raw_request)

        decision = route(request.method, request.uri)
        response = _short_circuit(decision)
        if response is not None:
            log_response(logger, response.status, _elapsed_ms(start))
            return response.to_edge()

        logger.info(
            f"Rewrote {request.uri} to {decision.path} "
            f"({decision.upstream.value} upstream)"
        )
        return apply_decision(raw_request, decision)
    finally:
        clear_request_context()


def proxy_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Rewrite the request and fetch the upstream directly.

    Raises:
        RequestTimeout: If the upstream does not answer in time.
        UpstreamError: If the upstream cannot be reached.
    """
    start = time.perf_counter()
    _set_context(event, context)
    try:
        raw_request = cf_request(event)
        log_edge_event(logger, raw_request)
        request = IncomingRequest.from_cf_request(raw_request)

        decision = route(request.method, request.uri)
        response = _short_circuit(decision)
        if response is None:
            target_url = build_target_url(decision, request.querystring)
            try:
                response = asyncio.run(
                    proxy_request(target_url, request.method, request)
                )
            except EdgeError as exc:
                logger.warning(
                    f"Proxy failed for {request.uri}",
                    extra={"error": exc.to_dict()},
                )
                log_response(logger, exc.status_code, _elapsed_ms(start))
                raise

        log_response(logger, response.status, _elapsed_ms(start))
        return response.to_edge()
    finally:
        clear_request_context()
