"""Embedding provider adapters.

    - OpenAIEmbeddingProvider - OpenAI embeddings API (text-embedding-3-small,
      1536 dimensions), with bounded retry on transient failures.
"""

from ragdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
