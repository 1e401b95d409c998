"""Vector similarity helpers shared by the record stores and the duplicate sweep."""

from typing import Iterable, List, Optional, Sequence

from journal_memory.models import MemoryRecord


def cosine_similarity(vec1: Optional[Sequence[float]], vec2: Optional[Sequence[float]]) -> float:
    """
    Cosine similarity between two vectors.

    Missing vectors, mismatched dimensions and zero vectors score 0.0
    instead of raising, so one bad embedding never breaks a search.
    """
    if not vec1 or not vec2 or len(vec1) != len(vec2):
        return 0.0

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    magnitude1 = sum(a * a for a in vec1) ** 0.5
    magnitude2 = sum(b * b for b in vec2) ** 0.5

    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0

    return dot_product / (magnitude1 * magnitude2)


def rank_by_similarity(
    records: Iterable[MemoryRecord],
    embedding: Sequence[float],
    threshold: float,
    limit: int,
) -> List[tuple[MemoryRecord, float]]:
    """Score records against a query vector; keep those >= threshold, best first."""
    results = []
    for record in records:
        if not record.embedding:
            continue
        score = cosine_similarity(embedding, record.embedding)
        if score >= threshold:
            results.append((record, score))

    results.sort(key=lambda x: x[1], reverse=True)
    return results[:limit]
