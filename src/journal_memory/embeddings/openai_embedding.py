"""OpenAI embedding adapter for journal-memory."""

import logging
import os
from typing import List, Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

# Default output dimension of each known model
MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbedding:
    """
    Embedding adapter using OpenAI's embedding API.

    Also compatible with OpenAI-compatible APIs (Azure, OpenRouter, etc.)
    through ``base_url``.

    Example:
        >>> embedder = OpenAIEmbedding(model="text-embedding-3-small", dimensions=768)
        >>> vector = await embedder.embed_document("I adopted a cat named Miso")
        >>> len(vector)
        768
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize OpenAI embedder.

        Args:
            model: OpenAI model name (default: text-embedding-3-small)
            api_key: OpenAI API key (None = use OPENAI_API_KEY env var)
            base_url: Custom endpoint (None = official OpenAI)
            dimensions: Output dimension (text-embedding-3-* only)
            timeout: Request timeout in seconds
            max_retries: Number of retry attempts for failed requests
            client: Pre-built async client (overrides the connection arguments)
        """
        self._model = model
        self._dimensions = dimensions

        if dimensions is not None:
            self._dimension = dimensions
        elif model in MODEL_DIMENSIONS:
            self._dimension = MODEL_DIMENSIONS[model]
        else:
            raise ValueError(f"Unknown embedding model {model!r}: pass dimensions explicitly")

        self._client = client or AsyncOpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

        logger.info(f"OpenAI embedder initialized: {model} ({self._dimension} dimensions)")

    @property
    def dimension(self) -> int:
        """Vector dimension produced by this model."""
        return self._dimension

    @property
    def model_name(self) -> str:
        """Identifier of the OpenAI model."""
        return self._model

    async def _embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        kwargs = {"model": self._model, "input": text}
        if self._dimensions is not None:
            kwargs["dimensions"] = self._dimensions

        response = await self._client.embeddings.create(**kwargs)
        return list(response.data[0].embedding)

    async def embed_document(self, text: str) -> List[float]:
        """
        Generate embedding for a document to be stored.

        OpenAI models don't distinguish documents from queries, so this is
        identical to embed_query().

        Raises:
            ValueError: If text is empty
            openai.OpenAIError: If API request fails
        """
        return await self._embed(text)

    async def embed_query(self, text: str) -> List[float]:
        """
        Generate embedding for a search query.

        Raises:
            ValueError: If text is empty
            openai.OpenAIError: If API request fails
        """
        return await self._embed(text)
