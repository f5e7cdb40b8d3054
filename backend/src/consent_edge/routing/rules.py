"""Ordered match rules applied to paths under the consent prefix.

The shipped table accepts every SDK path so that changes to the SDK's
file layout never break the integration. Narrowing the accepted paths
is a change to ``DEFAULT_RULES`` only.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from typing import Sequence

from consent_edge.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MatchRule:
    """A labelled path pattern."""

    pattern: re.Pattern[str]
    label: str

    @classmethod
    def compile(cls, pattern: str, label: str) -> "MatchRule":
        return cls(pattern=re.compile(pattern), label=label)

    def matches(self, path: str) -> bool:
        return self.pattern.search(path) is not None


DEFAULT_RULES: tuple[MatchRule, ...] = (
    # Accept ALL requests to the SDK host
    MatchRule.compile(r"^/.*$", "sdk-all"),
    MatchRule.compile(r"^/api/.*$", "api"),
)


def match_rule(
    path: str,
    rules: Sequence[MatchRule] = DEFAULT_RULES,
) -> Optional[MatchRule]:
    """Return the first rule matching ``path``, logging every evaluation.

    Args:
        path: Path after the consent prefix, with a leading slash.
        rules: Rules evaluated in order.

    Returns:
        The first matching rule, or None when no rule matches.
    """
    logger.debug(f"Checking path against match rules: {path}")
    for index, rule in enumerate(rules):
        matched = rule.matches(path)
        logger.debug(
            f"Rule {index} ({rule.label}): {rule.pattern.pattern} - matches: {matched}",
            extra={
                "rule": {
                    "index": index,
                    "label": rule.label,
                    "pattern": rule.pattern.pattern,
                    "matched": matched,
                }
            },
        )
        if matched:
            return rule
    return None


def is_accepted(path: str, rules: Sequence[MatchRule] = DEFAULT_RULES) -> bool:
    """Whether any rule accepts ``path``."""
    return match_rule(path, rules) is not None
