"""Optional web evidence for Public-boundary questions.

Wraps an :class:`IWebSearchProvider` and renders its results into the
same :class:`EvidenceBundle` shape as internal retrieval.  The context
block looks like::

    [web-evidence]
    [Web 1] Title
    Source: https://example.com/page
    snippet text...

    [Web 2] ...

Provider failures never raise: they become a short bracketed marker in
the context (``[web-search rate-limited]``, ``[web-search failed]``) and
no citations.
"""

from __future__ import annotations

import structlog

from ragdesk.interfaces.web_search_provider import IWebSearchProvider
from ragdesk.models.evidence import Citation, EvidenceBundle
from ragdesk.utils.errors import ProviderError, RateLimitError
from ragdesk.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

WEB_SEARCH_MODES = frozenset({"tavily", "duckduckgo"})
_DISPLAY_NAMES = {"tavily": "Tavily", "duckduckgo": "DuckDuckGo"}

_MAX_PROVIDER_RESULTS = 5
_SNIPPET_CHARS = 800
_HEADER = "[web-evidence]\n"
_NO_RESULTS = "[no web evidence found]"


def truncate(text: str | None, max_chars: int) -> str:
    if not text:
        return ""
    return text if len(text) <= max_chars else text[:max_chars] + "…"


class WebSearchService:
    """Runs a web search and renders the results as evidence.

    Parameters
    ----------
    provider:
        The configured web-search provider, or ``None``.
    mode:
        ``WEBSEARCH_MODE`` value: ``off``, ``tavily`` or ``duckduckgo``.
    """

    def __init__(self, provider: IWebSearchProvider | None, mode: str = "off") -> None:
        self._provider = provider
        self._mode = (mode or "off").strip().lower()

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def display_name(self) -> str:
        """Provider name shown to users, e.g. ``DuckDuckGo``."""
        return _DISPLAY_NAMES.get(self._mode, self._mode)

    def is_enabled(self) -> bool:
        """True when a web-search mode is selected and its provider is configured."""
        return (
            self._mode in WEB_SEARCH_MODES
            and self._provider is not None
            and self._provider.is_available()
        )

    async def search(self, query: str, top_k: int) -> EvidenceBundle:
        if self._mode not in WEB_SEARCH_MODES:
            return EvidenceBundle(context="[web-search disabled]")
        if self._provider is None or not self._provider.is_available():
            return EvidenceBundle(context="[web-search not configured]")

        max_results = max(1, min(top_k, _MAX_PROVIDER_RESULTS))
        try:
            results = await self._provider.search(query, num_results=max_results)
        except RateLimitError as exc:
            logger.warning("web_search_rate_limited", provider=self._provider.get_provider_name(), error=str(exc))
            return EvidenceBundle(context="[web-search rate-limited]", debug="web_rate_limited")
        except ProviderError as exc:
            logger.warning(
                "web_search_failed",
                provider=self._provider.get_provider_name(),
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return EvidenceBundle(context="[web-search failed]", debug=f"web_failed:{type(exc).__name__}")

        citations = [
            Citation(
                title=result.title or "Web result",
                url_or_id=result.url,
                snippet=truncate(result.snippet, _SNIPPET_CHARS),
            )
            for result in results[:max_results]
        ]

        if citations:
            body = "\n\n".join(
                f"[Web {i}] {c.title}\nSource: {c.url_or_id}\n{c.snippet}"
                for i, c in enumerate(citations, start=1)
            )
        else:
            body = _NO_RESULTS

        logger.info("web_search_complete", provider=self._provider.get_provider_name(), results=len(citations))
        return EvidenceBundle(context=_HEADER + body, citations=citations)
