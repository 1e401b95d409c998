"""Tests for EMA sentiment smoothing."""

import random

import pytest

from journal_memory.intelligence.sentiment import (
    clamp_sentiment,
    seed_sentiment,
    update_sentiment_ema,
)


def test_seed_sentiment():
    assert seed_sentiment(None) == 0.0
    assert seed_sentiment(0.4) == 0.4
    assert seed_sentiment(-7.0) == -1.0


def test_ema_weights():
    """New evidence counts 30%, history 70%."""
    assert update_sentiment_ema(0.0, 1.0) == pytest.approx(0.3)
    assert update_sentiment_ema(1.0, -1.0) == pytest.approx(0.4)
    assert update_sentiment_ema(0.5, 0.5) == pytest.approx(0.5)


def test_ema_without_new_evidence_is_unchanged():
    assert update_sentiment_ema(0.42, None) == 0.42


def test_clamp_sentiment():
    assert clamp_sentiment(1.5) == 1.0
    assert clamp_sentiment(-1.5) == -1.0
    assert clamp_sentiment(0.2) == 0.2


def test_ema_stays_bounded_for_any_sequence():
    """sentiment_average never leaves [-1, 1] whatever the inputs."""
    rng = random.Random(1234)
    for _ in range(50):
        value = seed_sentiment(rng.uniform(-1.0, 1.0))
        for _ in range(100):
            value = update_sentiment_ema(value, rng.choice([-1.0, 1.0, rng.uniform(-1.0, 1.0)]))
            assert -1.0 <= value <= 1.0


def test_ema_converges_towards_repeated_evidence():
    value = -1.0
    for _ in range(30):
        value = update_sentiment_ema(value, 1.0)
    assert value > 0.99
