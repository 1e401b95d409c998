"""
Text embedding protocol for journal-memory.

Similarity search over memory records compares candidate and record
vectors, so every vector in one store must come from the same embedder.
"""

from typing import List, Protocol

from typing_extensions import runtime_checkable


@runtime_checkable
class TextEmbedding(Protocol):
    """
    Protocol for text embedding providers.

    Implementations must return vectors of a fixed dimension and raise on
    failure; the consolidation pipeline treats any exception (or timeout)
    as the embedder being unavailable and carries on without a vector.

    Example:
        >>> embedder = OpenAIEmbedding()
        >>> vector = await embedder.embed_document("Sarah moved to Portland")
        >>> len(vector) == embedder.dimension
        True
    """

    @property
    def dimension(self) -> int:
        """Number of elements in each embedding vector."""
        ...

    @property
    def model_name(self) -> str:
        """Identifier of the embedding model."""
        ...

    async def embed_document(self, text: str) -> List[float]:
        """
        Generate embedding for content that will be stored or compared.

        Raises:
            ValueError: If text is empty
        """
        ...

    async def embed_query(self, text: str) -> List[float]:
        """
        Generate embedding for a search query.

        Raises:
            ValueError: If text is empty
        """
        ...
