"""Shared fixtures for journal-memory tests."""

from typing import Dict, List, Optional

import pytest

from journal_memory.models import CandidateFact, MemoryRecord
from journal_memory.storage import InMemoryAuditLog, InMemoryRecordStore


class KeyedEmbedding:
    """Deterministic test embedder: returns the vector registered for each text."""

    def __init__(self, vectors: Dict[str, List[float]], fallback: Optional[List[float]] = None):
        self.vectors = dict(vectors)
        self.fallback = fallback
        self.calls: List[str] = []

    @property
    def dimension(self) -> int:
        return len(next(iter(self.vectors.values())))

    @property
    def model_name(self) -> str:
        return "keyed-test-embedding"

    async def embed_document(self, text: str) -> List[float]:
        self.calls.append(text)
        if text in self.vectors:
            return list(self.vectors[text])
        if self.fallback is not None:
            return list(self.fallback)
        raise RuntimeError(f"no vector registered for {text!r}")

    async def embed_query(self, text: str) -> List[float]:
        return await self.embed_document(text)


@pytest.fixture
def keyed_embedding():
    """Factory for KeyedEmbedding."""
    return KeyedEmbedding


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def audit_log():
    return InMemoryAuditLog()


@pytest.fixture
def make_record():
    """Factory for MemoryRecord with sensible defaults."""

    def _make(content: str = "Sarah is my co-founder", **overrides) -> MemoryRecord:
        fields = {
            "owner_id": "user_1",
            "name": "Sarah",
            "memory_type": "entity",
            "entity_type": "person",
            "content": content,
            "embedding": [1.0, 0.0, 0.0],
        }
        fields.update(overrides)
        return MemoryRecord(**fields)

    return _make


@pytest.fixture
def make_candidate():
    """Factory for CandidateFact with sensible defaults."""

    def _make(content: str = "Sarah is my co-founder", **overrides) -> CandidateFact:
        fields = {
            "name": "Sarah",
            "content": content,
            "memory_type": "entity",
            "entity_type": "person",
        }
        fields.update(overrides)
        return CandidateFact(**fields)

    return _make


@pytest.fixture
def make_similar(make_record):
    """Factory for SimilarRecord wrapping a fresh record."""
    from journal_memory.decisions import SimilarRecord

    def _make(content: str = "Sarah is my co-founder", score: float = 0.8, **overrides):
        return SimilarRecord(record=make_record(content, **overrides), similarity_score=score)

    return _make
