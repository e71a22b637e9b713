"""Tavily web-search provider implementing IWebSearchProvider.

Calls Tavily's JSON search API over the shared ``httpx.AsyncClient``.
Only the basic search depth is used and neither Tavily's generated answer
nor raw page content is requested: snippets are enough for grounding and
keep the prompt small.
"""

from __future__ import annotations

import httpx
import structlog

from ragdesk.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from ragdesk.utils.errors import ProviderTransientError, error_for_status

logger = structlog.get_logger(logger_name=__name__)


class TavilySearchProvider(IWebSearchProvider):
    """Web search backed by ``POST {base_url}/search``."""

    def __init__(
        self,
        api_key: str,
        http_client: httpx.AsyncClient,
        base_url: str = "https://api.tavily.com",
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._client = http_client
        self._url = f"{base_url.rstrip('/')}/search"

    async def search(self, query: str, num_results: int = 5) -> list[SearchResult]:
        payload = {
            "api_key": self._api_key,
            "query": query,
            "max_results": num_results,
            "search_depth": "basic",
            "include_answer": False,
            "include_raw_content": False,
        }
        try:
            response = await self._client.post(self._url, json=payload)
        except httpx.HTTPError as exc:
            raise ProviderTransientError(
                message=f"Tavily request failed: {type(exc).__name__}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code >= 400:
            logger.warning(
                "tavily_search_failed",
                status=response.status_code,
                body=response.text[:500],
            )
            raise error_for_status(
                response.status_code,
                f"Tavily search returned {response.status_code}",
                self.get_provider_name(),
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderTransientError(
                message="Tavily returned a non-JSON body",
                provider_name=self.get_provider_name(),
            ) from exc

        results: list[SearchResult] = []
        for item in data.get("results") or []:
            if not isinstance(item, dict):
                continue
            results.append(
                SearchResult(
                    title=item.get("title") or "Web result",
                    url=item.get("url") or "",
                    snippet=item.get("content") or "",
                )
            )
            if len(results) >= num_results:
                break

        logger.debug("tavily_search_complete", result_count=len(results))
        return results

    def get_provider_name(self) -> str:
        return "tavily"

    def is_available(self) -> bool:
        """Configured when the key is non-blank and not a ``<placeholder>``."""
        return bool(self._api_key) and "<" not in self._api_key
