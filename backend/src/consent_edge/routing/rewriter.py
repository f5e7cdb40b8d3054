"""Path rewriting for requests under the consent prefix.

``/consent/api/<rest>`` goes to the API host as ``/<rest>``; every other
``/consent/<rest>`` goes to the SDK host as ``/<rest>``.
"""

from __future__ import annotations

from typing import Any
from typing import Mapping
from typing import Optional
from typing import Sequence

from consent_edge.config import EdgeSettings
from consent_edge.config import get_settings
from consent_edge.edge.models import NotFound
from consent_edge.edge.models import Preflight
from consent_edge.edge.models import Rewritten
from consent_edge.edge.models import RoutingDecision
from consent_edge.edge.models import Upstream
from consent_edge.routing.rules import DEFAULT_RULES
from consent_edge.routing.rules import MatchRule
from consent_edge.routing.rules import is_accepted


def route(
    method: str,
    path: str,
    rules: Sequence[MatchRule] = DEFAULT_RULES,
    settings: Optional[EdgeSettings] = None,
) -> RoutingDecision:
    """Decide how to handle a request from its method and path alone."""
    settings = settings or get_settings()

    if method == "OPTIONS":
        return Preflight()

    if not path.startswith(settings.path_prefix):
        return NotFound(path)

    remainder = path[len(settings.path_prefix):]
    if not is_accepted("/" + remainder, rules):
        return NotFound(path)

    if remainder.startswith(settings.api_subprefix):
        rest = remainder[len(settings.api_subprefix):]
        return Rewritten(path="/" + rest, upstream=Upstream.API)

    return Rewritten(path="/" + remainder, upstream=Upstream.SDK)


def apply_decision(
    request: Mapping[str, Any],
    decision: Rewritten,
) -> dict[str, Any]:
    """Return a copy of the CloudFront request with the rewritten ``uri``.

    Method, headers and querystring are left as they are.
    """
    rewritten = dict(request)
    rewritten["uri"] = decision.path
    return rewritten
