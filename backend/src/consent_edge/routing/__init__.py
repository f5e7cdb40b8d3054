"""Request routing: prefix validation, match rules and path rewriting."""

from consent_edge.routing.rewriter import apply_decision, route
from consent_edge.routing.rules import DEFAULT_RULES, MatchRule, match_rule

__all__ = [
    "DEFAULT_RULES",
    "MatchRule",
    "apply_decision",
    "match_rule",
    "route",
]
