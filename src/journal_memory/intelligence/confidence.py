"""
Confidence scoring for reinforced memory records.

Every UPDATE of a record counts as another mention of the same fact.
Confidence grows with mention frequency (diminishing returns) and with the
time span the mentions cover, and never drops below what the extractor
reported for the latest candidate.
"""

import logging
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)

MEMORY_MIN_CONFIDENCE = 0.5
MEMORY_MAX_CONFIDENCE = 0.95
MEMORY_HIGH_CONFIDENCE_MENTIONS = 5


def calculate_confidence(mention_count: int, days_span: int = 0, days_since_last: int = 0) -> float:
    """
    Calculate confidence based on how often a record has been mentioned.

    Args:
        mention_count: Number of times the fact has been mentioned
        days_span: Days between first and last mention
        days_since_last: Days since the previous mention

    Returns:
        Confidence score between 0.0 and MEMORY_MAX_CONFIDENCE
    """
    if mention_count <= 1:
        base = MEMORY_MIN_CONFIDENCE
    elif mention_count == 2:
        base = 0.7
    elif mention_count == 3:
        base = 0.8
    elif mention_count >= MEMORY_HIGH_CONFIDENCE_MENTIONS:
        base = MEMORY_MAX_CONFIDENCE
    else:
        base = min(MEMORY_MAX_CONFIDENCE, 0.5 + (mention_count * 0.1))

    # Stale facts that resurface are slightly less certain
    recency_factor = 0.95 if days_since_last > 30 else 1.0

    # Mentions spread over time are worth more than a burst; max 10% over 90 days
    spread_factor = 1.0
    if mention_count > 1 and days_span > 0:
        spread_factor = min(1.1, 1.0 + (days_span / 900))

    return min(MEMORY_MAX_CONFIDENCE, base * recency_factor * spread_factor)


def days_between(start: Optional[datetime], end: Optional[datetime]) -> int:
    """Whole days from start to end, 0 when either is missing or end is earlier."""
    if start is None or end is None:
        return 0
    return max(0, (end - start).days)


def reinforced_confidence(
    mention_count: int,
    first_mentioned_at: Optional[datetime],
    last_mentioned_at: Optional[datetime],
    candidate_confidence: float,
    now: Optional[datetime] = None,
) -> float:
    """
    Confidence for a record that has just been mentioned again.

    Args:
        mention_count: Mention count after this mention
        first_mentioned_at: When the fact was first seen
        last_mentioned_at: Previous mention, before this one
        candidate_confidence: Extractor's confidence for the new candidate
        now: Reference time (defaults to now)

    Returns:
        The larger of the frequency-based score and the candidate's own confidence
    """
    now = now or datetime.now()
    score = calculate_confidence(
        mention_count,
        days_span=days_between(first_mentioned_at, now),
        days_since_last=days_between(last_mentioned_at, now),
    )

    logger.debug(
        f"Reinforced confidence: mentions={mention_count}, frequency_score={score:.2f}, "
        f"candidate={candidate_confidence:.2f}"
    )

    return max(score, min(1.0, candidate_confidence))
