"""
Scoring helpers for memory records.

Provides EMA sentiment smoothing and mention-based confidence scoring.
"""

from journal_memory.intelligence.confidence import (
    calculate_confidence,
    days_between,
    reinforced_confidence,
)
from journal_memory.intelligence.sentiment import (
    clamp_sentiment,
    seed_sentiment,
    update_sentiment_ema,
)

__all__ = [
    # Sentiment
    "clamp_sentiment",
    "seed_sentiment",
    "update_sentiment_ema",
    # Confidence
    "calculate_confidence",
    "days_between",
    "reinforced_confidence",
]
