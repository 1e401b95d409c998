"""
Sentiment smoothing for memory records.

A record's sentiment_average is seeded once from the first observed
sentiment and afterwards only ever moves through an exponential moving
average, so a single emotional note cannot flip a long-standing signal.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

SENTIMENT_OLD_WEIGHT = 0.7
SENTIMENT_NEW_WEIGHT = 0.3
SENTIMENT_MIN = -1.0
SENTIMENT_MAX = 1.0


def clamp_sentiment(value: float) -> float:
    return max(SENTIMENT_MIN, min(SENTIMENT_MAX, value))


def seed_sentiment(observed: Optional[float]) -> float:
    """Initial sentiment for a freshly created record."""
    if observed is None:
        return 0.0
    return clamp_sentiment(observed)


def update_sentiment_ema(current: float, observed: Optional[float]) -> float:
    """
    Fold a new sentiment observation into a running average.

    Args:
        current: Existing sentiment_average (-1.0 to 1.0)
        observed: New sentiment evidence, or None when the note carried none

    Returns:
        0.7 * current + 0.3 * observed, clamped to [-1.0, 1.0].
        Returns current unchanged when there is no new evidence.
    """
    if observed is None:
        return clamp_sentiment(current)

    updated = SENTIMENT_OLD_WEIGHT * current + SENTIMENT_NEW_WEIGHT * clamp_sentiment(observed)

    logger.debug(f"Sentiment EMA: current={current:.3f}, observed={observed:.3f}, updated={updated:.3f}")

    return clamp_sentiment(updated)
