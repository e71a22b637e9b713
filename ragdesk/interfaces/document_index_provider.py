"""Abstract base class for the searchable document index.

The index stores :class:`~ragdesk.models.ingestion.ChunkRecord` objects
(upsert by id) and answers classification-filtered keyword, vector, or
hybrid queries.  An :class:`IndexQuery` cannot be built without a
:class:`~ragdesk.services.policy.ClassificationFilter`, so no query can
run unfiltered.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ragdesk.models.ingestion import ChunkRecord
from ragdesk.services.policy import ClassificationFilter

QUERY_MODES = frozenset({"keyword", "vector", "hybrid"})


@dataclass(frozen=True)
class IndexQuery:
    """A single classification-filtered search request.

    Attributes
    ----------
    text:
        The user's question.
    classification_filter:
        Mandatory set of classification values the hits may carry.
    top_k:
        Maximum hits to return.
    query_mode:
        ``keyword``, ``vector`` or ``hybrid``.
    boundary, user_role, user_group:
        Caller context available to provider-side filter templates.
    """

    text: str
    classification_filter: ClassificationFilter
    top_k: int = 3
    query_mode: str = "hybrid"
    boundary: str = "Public"
    user_role: str = ""
    user_group: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.classification_filter, ClassificationFilter):
            raise TypeError("IndexQuery requires a ClassificationFilter")
        if self.query_mode not in QUERY_MODES:
            raise ValueError(f"Unknown query mode: {self.query_mode!r}")


@dataclass(frozen=True)
class IndexHit:
    """One search hit as returned by the index."""

    id: str
    content: str
    score: float = 0.0
    source: str = ""
    path: str = ""
    chunk_id: int | None = None
    page: int | str | None = None
    created_utc: str | None = None


class IDocumentIndexProvider(ABC):
    """Contract for the chunk index used by retrieval and ingestion."""

    @abstractmethod
    async def search(self, query: IndexQuery) -> list[IndexHit]:
        """Run a filtered search and return hits in relevance order.

        Raises
        ------
        ragdesk.utils.errors.ProviderError
            If the index call fails or returns an unexpected shape.
        """

    @abstractmethod
    async def upload(self, records: list[ChunkRecord]) -> int:
        """Upsert *records* by id and return the number written.

        Raises
        ------
        ragdesk.utils.errors.IndexUploadError
            If the batch (or any record in it) is rejected.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"azure_search"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the index is configured."""
