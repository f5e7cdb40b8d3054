"""Utility modules for the edge router."""

from consent_edge.utils.logging import (
    configure_logging,
    get_logger,
    hash_for_correlation,
    mask_pii,
    set_request_context,
    clear_request_context,
)

__all__ = [
    "clear_request_context",
    "configure_logging",
    "get_logger",
    "hash_for_correlation",
    "mask_pii",
    "set_request_context",
]
