"""
Temporal marker normalization for extracted candidates.

The extractor may return ISO timestamps or relative phrases ("next Friday",
"in 2 weeks", "until Sunday"). These are resolved against the note's
reference time so records carry absolute effective_from / expires_at values.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import dateparser

logger = logging.getLogger(__name__)

# Only time-bound memories expire on their own
EXPIRING_MEMORY_TYPES = ("event", "goal")

WEEKDAY_MAP = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


def get_next_weekday(current_date: datetime, target_weekday: int, min_days_ahead: int = 1) -> datetime:
    """
    Get the next occurrence of a target weekday.

    Args:
        current_date: The reference date
        target_weekday: Target day (0=Monday, 6=Sunday)
        min_days_ahead: Minimum days in the future (1 = at least tomorrow)
    """
    days_ahead = (target_weekday - current_date.weekday()) % 7
    if days_ahead < min_days_ahead:
        days_ahead += 7
    return current_date + timedelta(days=days_ahead)


def _to_naive_local(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_temporal_marker(value: Any, reference_date: datetime) -> Optional[datetime]:
    """
    Resolve a temporal marker to an absolute datetime.

    Args:
        value: datetime, ISO string, or relative phrase
        reference_date: The note's reference time

    Returns:
        Naive local datetime, or None when the marker is empty or unparseable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_naive_local(value)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return _to_naive_local(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    # dateparser only understands "next friday" relative to "today"; bare weekdays go forward
    weekday = WEEKDAY_MAP.get(text.lower().removeprefix("next ").removeprefix("on ").strip())
    if weekday is not None:
        return get_next_weekday(reference_date, weekday)

    parsed = dateparser.parse(
        text,
        settings={
            "RELATIVE_BASE": reference_date,
            "PREFER_DATES_FROM": "future",
        },
    )
    if parsed is None:
        logger.debug(f"Could not parse temporal marker: '{text}'")
        return None

    logger.debug(f"Parsed temporal marker '{text}' -> {parsed.isoformat()}")
    return _to_naive_local(parsed)


def end_of_day(value: datetime) -> datetime:
    return value.replace(hour=23, minute=59, second=59, microsecond=0)


def calculate_expiry(
    memory_type: str,
    event_date: Optional[datetime],
    reference_date: datetime,
) -> Optional[datetime]:
    """
    Expiry for a time-bound memory.

    Events and goals with a future date expire at the end of that day;
    everything else (and anything dated today or earlier) is permanent.
    """
    if memory_type not in EXPIRING_MEMORY_TYPES or event_date is None:
        return None
    if event_date.date() <= reference_date.date():
        return None
    return end_of_day(event_date)


def normalize_candidate_dates(item: dict, reference_date: datetime) -> dict:
    """
    Normalize the temporal markers on one raw extraction item.

    Resolves effective_from / expires_at and, when the extractor only gave
    an event date ("when"), derives expires_at from it.
    """
    item = dict(item)
    item["effective_from"] = parse_temporal_marker(item.get("effective_from"), reference_date)
    item["expires_at"] = parse_temporal_marker(item.get("expires_at"), reference_date)

    when = item.pop("when", None)
    if item["expires_at"] is None and when:
        event_date = parse_temporal_marker(when, reference_date)
        item["expires_at"] = calculate_expiry(
            str(item.get("memory_type") or item.get("type") or "fact").lower(),
            event_date,
            reference_date,
        )

    return item
