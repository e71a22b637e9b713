"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.
Implementations may wrap OpenAI ``text-embedding-3-small``, an
OpenAI-compatible gateway, or any other embedding backend.  Ingestion and
the local ChromaDB index depend only on this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation:
#   OpenAIEmbeddingProvider - text-embedding-3-small (1536 dims)
# Located in: ragdesk/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the ingestion pipeline."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Parameters
        ----------
        text:
            The text string to embed.

        Returns
        -------
        list[float]
            The embedding vector with length equal to :meth:`get_dimension`.

        Raises
        ------
        ragdesk.utils.errors.ProviderTransientError
            If the provider kept failing transiently after all retries.
        ragdesk.utils.errors.ProviderFatalError
            On misconfiguration or a vector of the wrong dimension.
        """

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            One vector per input, in input order.  Implementations must
            order results by the provider's explicit index field rather
            than trusting response order.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the expected dimensionality of every vector."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai_embedding"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
