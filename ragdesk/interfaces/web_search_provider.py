"""Abstract base class for web-search service providers.

Defines the contract for the optional external search used when internal
evidence is insufficient.  Implementations wrap Tavily or DuckDuckGo; the
:class:`~ragdesk.services.web_search_service.WebSearchService` turns their
results into an evidence bundle.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SearchResult:
    """A single web-search result.

    Attributes
    ----------
    title:
        The page title as returned by the search engine.
    url:
        The canonical URL of the result page.
    snippet:
        An optional text excerpt from the result.
    """

    title: str
    url: str
    snippet: str | None = None


class IWebSearchProvider(ABC):
    """Contract for web-search services.

    Implementations return up to ``num_results`` :class:`SearchResult`
    items for a query string.
    """

    @abstractmethod
    async def search(self, query: str, num_results: int = 5) -> list[SearchResult]:
        """Execute a web search and return the top results.

        Raises
        ------
        ragdesk.utils.errors.RateLimitError
            When the provider reports HTTP 429.
        ragdesk.utils.errors.ProviderError
            For any other failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"tavily"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""
