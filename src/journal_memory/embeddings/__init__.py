"""
Text embedding abstractions for journal-memory.

Provides the TextEmbedding protocol and an OpenAI API adapter.
"""

from journal_memory.embeddings.openai_embedding import OpenAIEmbedding
from journal_memory.embeddings.protocol import TextEmbedding

__all__ = [
    "TextEmbedding",
    "OpenAIEmbedding",
]
