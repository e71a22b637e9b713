"""DuckDuckGo web-search provider implementing IWebSearchProvider.

Uses the duckduckgo_search library for keyless web searches.  The
synchronous ``DDGS`` client is wrapped in ``asyncio.to_thread`` so the
event loop is never blocked.  Library exceptions are translated into
provider errors; the web-search service decides how to degrade.
"""

from __future__ import annotations

import asyncio

import structlog
from duckduckgo_search import DDGS
from duckduckgo_search.exceptions import RatelimitException

from ragdesk.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from ragdesk.utils.errors import ProviderTransientError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class DuckDuckGoSearchProvider(IWebSearchProvider):
    """DuckDuckGo web-search provider.  No API key, always configured."""

    def __init__(self) -> None:
        logger.info("duckduckgo_provider_initialized")

    async def search(self, query: str, num_results: int = 5) -> list[SearchResult]:
        try:
            raw_results = await asyncio.to_thread(self._sync_search, query, num_results)
        except RatelimitException as exc:
            raise RateLimitError(
                message="DuckDuckGo rate limit hit",
                provider_name=self.get_provider_name(),
            ) from exc
        except Exception as exc:  # noqa: BLE001
            raise ProviderTransientError(
                message=f"DuckDuckGo search failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        results = [
            SearchResult(
                title=item.get("title", ""),
                url=item.get("href", item.get("url", "")),
                snippet=item.get("body"),
            )
            for item in raw_results or []
        ]
        logger.debug("duckduckgo_search_complete", result_count=len(results))
        return results

    @staticmethod
    def _sync_search(query: str, max_results: int) -> list[dict]:
        """Run the synchronous DDGS search (called via to_thread)."""
        with DDGS() as ddgs:
            return list(ddgs.text(query, max_results=max_results))

    def get_provider_name(self) -> str:
        return "duckduckgo"

    def is_available(self) -> bool:
        return True
