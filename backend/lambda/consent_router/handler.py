"""Lambda@Edge origin-request entrypoint for the consent routes."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from consent_edge.edge.handler import origin_request_handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the origin-request handler."""
    return origin_request_handler(dict(event), context)
