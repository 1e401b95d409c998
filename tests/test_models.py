"""Tests for core data models."""

import pytest

from journal_memory.errors import MalformedCandidate
from journal_memory.models import (
    CandidateFact,
    MemoryRecord,
    coerce_entity_type,
    identity_key,
    importance_score,
)


def test_importance_scores():
    """Importance labels map to fixed ranking scores."""
    assert importance_score("critical") == 1.0
    assert importance_score("high") == 0.8
    assert importance_score("medium") == 0.5
    assert importance_score("low") == 0.3
    assert importance_score("trivial") == 0.1
    assert importance_score(None) == 0.5


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("person", "person"),
        ("Company", "organization"),
        ("city", "place"),
        ("topic", "concept"),
        ("spaceship", "concept"),
        (None, "concept"),
    ],
)
def test_coerce_entity_type(raw, expected):
    assert coerce_entity_type(raw) == expected


def test_identity_key_is_case_insensitive():
    assert identity_key("u1", "  Sarah ", "entity") == identity_key("u1", "SARAH", "entity")
    assert identity_key("u1", "Sarah", "entity") != identity_key("u1", "Sarah", "fact")


def test_memory_record_defaults():
    """New records start active at version 1."""
    record = MemoryRecord(owner_id="u1", name="Sarah", content="co-founder", entity_type="company")

    assert record.status == "active"
    assert record.version == 1
    assert record.is_active
    assert record.supersedes_id is None
    assert record.entity_type == "organization"
    assert record.id


def test_memory_record_snapshot_excludes_embedding():
    record = MemoryRecord(owner_id="u1", name="Sarah", content="co-founder", embedding=[0.1, 0.2])

    snapshot = record.snapshot()

    assert "embedding" not in snapshot
    assert snapshot["content"] == "co-founder"
    assert isinstance(snapshot["created_at"], str)


def test_memory_record_rejects_version_zero():
    with pytest.raises(ValueError):
        MemoryRecord(owner_id="u1", name="Sarah", content="co-founder", version=0)


def test_candidate_from_raw_maps_upstream_drift():
    """Sentiment labels, summary/type aliases and unknown enums are normalized."""
    candidate = CandidateFact.from_raw(
        {
            "summary": "Sarah works at Notion",
            "type": "Entity",
            "entity_type": "company",
            "importance": "HIGH",
            "sentiment": "negative",
            "sensitivity_level": "top-secret",
        }
    )

    assert candidate.content == "Sarah works at Notion"
    assert candidate.name == "Sarah works at Notion"
    assert candidate.memory_type == "entity"
    assert candidate.entity_type == "organization"
    assert candidate.importance == "high"
    assert candidate.sentiment == -1.0
    assert candidate.sensitivity_level == "normal"
    assert candidate.is_deletion_request is False


def test_candidate_from_raw_clamps_numeric_sentiment():
    candidate = CandidateFact.from_raw({"name": "Max", "content": "my dog", "sentiment": 3.5})
    assert candidate.sentiment == 1.0


def test_candidate_from_raw_unknown_importance_defaults_to_medium():
    candidate = CandidateFact.from_raw({"name": "Max", "content": "my dog", "importance": "huge"})
    assert candidate.importance == "medium"


@pytest.mark.parametrize(
    "raw",
    [
        {"name": "Sarah"},
        {"name": "Sarah", "content": "   "},
        {"name": "Sarah", "content": "co-founder", "memory_type": "gossip"},
        "Sarah is my co-founder",
        None,
    ],
)
def test_candidate_from_raw_rejects_malformed(raw):
    with pytest.raises(MalformedCandidate):
        CandidateFact.from_raw(raw)
