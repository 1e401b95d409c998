"""Tests for temporal marker normalization."""

from datetime import datetime, timedelta, timezone

from journal_memory.utils.temporal import (
    calculate_expiry,
    get_next_weekday,
    normalize_candidate_dates,
    parse_temporal_marker,
)

# Wednesday
REFERENCE = datetime(2024, 5, 15, 10, 30)


def test_next_weekday_is_always_in_the_future():
    assert get_next_weekday(REFERENCE, 4) == REFERENCE + timedelta(days=2)  # Friday
    assert get_next_weekday(REFERENCE, 2) == REFERENCE + timedelta(days=7)  # Wednesday


def test_parse_iso_string():
    assert parse_temporal_marker("2024-06-01T09:00:00", REFERENCE) == datetime(2024, 6, 1, 9, 0)


def test_parse_aware_values_become_naive():
    parsed = parse_temporal_marker("2024-06-01T09:00:00Z", REFERENCE)
    assert parsed.tzinfo is None

    aware = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)
    assert parse_temporal_marker(aware, REFERENCE).tzinfo is None


def test_parse_bare_weekday():
    assert parse_temporal_marker("Friday", REFERENCE).date() == datetime(2024, 5, 17).date()
    assert parse_temporal_marker("next friday", REFERENCE).date() == datetime(2024, 5, 17).date()


def test_parse_relative_phrase():
    parsed = parse_temporal_marker("tomorrow", REFERENCE)
    assert parsed.date() == (REFERENCE + timedelta(days=1)).date()


def test_parse_empty_or_garbage():
    assert parse_temporal_marker(None, REFERENCE) is None
    assert parse_temporal_marker("   ", REFERENCE) is None
    assert parse_temporal_marker(42, REFERENCE) is None
    assert parse_temporal_marker("blorptastic", REFERENCE) is None


def test_expiry_only_for_future_events_and_goals():
    future = REFERENCE + timedelta(days=3)

    assert calculate_expiry("event", future, REFERENCE) == future.replace(
        hour=23, minute=59, second=59, microsecond=0
    )
    assert calculate_expiry("goal", future, REFERENCE) is not None
    assert calculate_expiry("fact", future, REFERENCE) is None
    assert calculate_expiry("event", REFERENCE, REFERENCE) is None
    assert calculate_expiry("event", None, REFERENCE) is None


def test_normalize_candidate_dates_derives_expiry_from_when():
    item = normalize_candidate_dates(
        {"content": "Dentist appointment", "memory_type": "event", "when": "Friday"}, REFERENCE
    )

    assert "when" not in item
    assert item["expires_at"] == datetime(2024, 5, 17, 23, 59, 59)
    assert item["effective_from"] is None


def test_normalize_candidate_dates_keeps_explicit_expiry():
    item = normalize_candidate_dates(
        {
            "content": "On vacation",
            "memory_type": "event",
            "expires_at": "2024-05-20T00:00:00",
            "when": "Friday",
        },
        REFERENCE,
    )

    assert item["expires_at"] == datetime(2024, 5, 20)
