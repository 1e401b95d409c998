"""Utility functions for memory consolidation."""

from journal_memory.utils.temporal import (
    calculate_expiry,
    normalize_candidate_dates,
    parse_temporal_marker,
)

__all__ = [
    "calculate_expiry",
    "normalize_candidate_dates",
    "parse_temporal_marker",
]
