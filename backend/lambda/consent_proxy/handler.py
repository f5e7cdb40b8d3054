"""Lambda entrypoint for the consent proxy.

Fetches the SDK / API hosts directly instead of relying on CloudFront's
origin fetch.
"""

from __future__ import annotations

from typing import Any, Mapping

from consent_edge.edge.handler import proxy_handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    return proxy_handler(event, context)
