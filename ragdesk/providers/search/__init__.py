"""Web-search provider adapters, selected by WEBSEARCH_MODE.

    - TavilySearchProvider     - Tavily search API (requires TAVILY_API_KEY)
    - DuckDuckGoSearchProvider - keyless DuckDuckGo text search
"""

from ragdesk.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider
from ragdesk.providers.search.tavily_provider import TavilySearchProvider

__all__ = ["DuckDuckGoSearchProvider", "TavilySearchProvider"]
