"""Azure AI Search document-index provider (REST over httpx).

Query path::

    POST {endpoint}/indexes/{index}/docs/search?api-version={version}
    api-key: <query key>
    {"search": ..., "top": k, "select": ..., "filter": <OData>,
     "vectorQueries": [{"kind": "text", "text": ..., "k": k, "fields": ...}]}

``keyword`` mode omits ``vectorQueries``; ``vector`` mode sends an empty
``search`` string so ranking comes from the integrated vectorizer only;
``hybrid`` sends both.

Upload path::

    POST {endpoint}/indexes/{index}/docs/index?api-version={version}
    api-key: <admin key>
    {"value": [{"@search.action": "upload", "id": ..., ...}]}

``upload`` is an upsert: documents sharing an id are replaced.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ragdesk.config.settings import Settings
from ragdesk.interfaces.document_index_provider import IDocumentIndexProvider, IndexHit, IndexQuery
from ragdesk.models.ingestion import ChunkRecord
from ragdesk.utils.errors import (
    ConfigurationError,
    IndexUploadError,
    ProviderFatalError,
    ProviderTransientError,
    error_for_status,
)

logger = structlog.get_logger(logger_name=__name__)

_BOUNDARY_PLACEHOLDER = "{boundaryFilter}"


def _escape_odata(value: str) -> str:
    return value.replace("'", "''")


def render_filter(template: str, boundary_filter: str, query: IndexQuery) -> str:
    """Apply the optional filter template around the mandatory boundary filter.

    Example template: ``({boundaryFilter}) and (tenant eq '{userGroup}')``.
    Placeholders match case-insensitively.
    """
    if not template.strip():
        return boundary_filter

    replacements = {
        "{boundaryfilter}": boundary_filter,
        "{requesttype}": _escape_odata(query.boundary),
        "{userrole}": _escape_odata(query.user_role or ""),
        "{usergroup}": _escape_odata(query.user_group or ""),
    }
    rendered = template
    for placeholder, value in replacements.items():
        rendered = _replace_case_insensitive(rendered, placeholder, value)
    return rendered


def _replace_case_insensitive(text: str, placeholder: str, value: str) -> str:
    lowered = text.lower()
    parts: list[str] = []
    cursor = 0
    while True:
        found = lowered.find(placeholder, cursor)
        if found < 0:
            parts.append(text[cursor:])
            return "".join(parts)
        parts.append(text[cursor:found])
        parts.append(value)
        cursor = found + len(placeholder)


class AzureSearchIndexProvider(IDocumentIndexProvider):
    """Document index backed by an Azure AI Search index."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._client = http_client
        self._endpoint = settings.search_endpoint.strip().rstrip("/")
        self._index = settings.search_index.strip()
        self._api_key = settings.search_api_key.strip()
        self._admin_key = settings.search_admin_key.strip() or self._api_key
        self._api_version = settings.search_api_version
        self._select = settings.search_select
        self._vector_field = settings.search_vector_field
        self._filter_template = settings.search_filter_template.strip()

        if self._filter_template and _BOUNDARY_PLACEHOLDER.lower() not in self._filter_template.lower():
            raise ConfigurationError(
                message="SEARCH_FILTER_TEMPLATE must contain {boundaryFilter}",
                provider_name=self.get_provider_name(),
            )

    # ------------------------------------------------------------------
    # IDocumentIndexProvider implementation
    # ------------------------------------------------------------------

    async def search(self, query: IndexQuery) -> list[IndexHit]:
        if not self.is_available():
            raise ProviderFatalError(
                message="SEARCH_ENDPOINT / SEARCH_INDEX / SEARCH_API_KEY are not configured",
                provider_name=self.get_provider_name(),
            )

        payload = self.build_search_payload(query)
        url = f"{self._endpoint}/indexes/{self._index}/docs/search"
        data = await self._post(url, payload, self._api_key)

        values = data.get("value")
        if not isinstance(values, list):
            raise ProviderFatalError(
                message="Search response has no 'value' array",
                provider_name=self.get_provider_name(),
            )

        hits = [self._to_hit(item) for item in values if isinstance(item, dict)]
        logger.debug(
            "azure_search_query",
            mode=query.query_mode,
            top_k=query.top_k,
            hits=len(hits),
        )
        return hits

    async def upload(self, records: list[ChunkRecord]) -> int:
        if not records:
            return 0
        if not (self._endpoint and self._index and self._admin_key):
            raise IndexUploadError(
                message="SEARCH_ENDPOINT / SEARCH_INDEX / SEARCH_ADMIN_KEY are not configured",
                provider_name=self.get_provider_name(),
            )

        actions = [
            {"@search.action": "upload", **record.to_index_document(self._vector_field)}
            for record in records
        ]
        url = f"{self._endpoint}/indexes/{self._index}/docs/index"
        try:
            data = await self._post(url, {"value": actions}, self._admin_key)
        except (ProviderTransientError, ProviderFatalError) as exc:
            raise IndexUploadError(
                message=f"Index upload of {len(records)} documents failed: {exc.message}",
                provider_name=self.get_provider_name(),
                status_code=exc.status_code,
            ) from exc

        rejected = [
            item.get("key")
            for item in data.get("value") or []
            if isinstance(item, dict) and item.get("status") is False
        ]
        if rejected:
            raise IndexUploadError(
                message=f"Index rejected {len(rejected)} of {len(records)} documents: {rejected[:5]}",
                provider_name=self.get_provider_name(),
            )

        logger.info("azure_search_upload", documents=len(records))
        return len(records)

    def get_provider_name(self) -> str:
        return "azure_search"

    def is_available(self) -> bool:
        return bool(self._endpoint and self._index and self._api_key)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def build_search_payload(self, query: IndexQuery) -> dict[str, Any]:
        """Return the JSON body for *query*; exposed for inspection in tests."""
        boundary_filter = query.classification_filter.to_odata()
        payload: dict[str, Any] = {
            "search": "" if query.query_mode == "vector" else query.text,
            "top": query.top_k,
            "select": self._select,
            "filter": render_filter(self._filter_template, boundary_filter, query),
        }
        if query.query_mode in ("vector", "hybrid"):
            payload["vectorQueries"] = [
                {
                    "kind": "text",
                    "text": query.text,
                    "k": query.top_k,
                    "fields": self._vector_field,
                }
            ]
        return payload

    async def _post(self, url: str, payload: dict[str, Any], api_key: str) -> dict[str, Any]:
        try:
            response = await self._client.post(
                url,
                params={"api-version": self._api_version},
                headers={"api-key": api_key, "Accept": "application/json"},
                json=payload,
            )
        except httpx.HTTPError as exc:
            raise ProviderTransientError(
                message=f"Azure AI Search request failed: {type(exc).__name__}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code >= 400:
            logger.warning(
                "azure_search_error",
                status=response.status_code,
                body=response.text[:500],
            )
            raise error_for_status(
                response.status_code,
                f"Azure AI Search returned {response.status_code}",
                self.get_provider_name(),
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderFatalError(
                message="Azure AI Search returned a non-JSON body",
                provider_name=self.get_provider_name(),
            ) from exc
        if not isinstance(data, dict):
            raise ProviderFatalError(
                message="Azure AI Search returned an unexpected body",
                provider_name=self.get_provider_name(),
            )
        return data

    @staticmethod
    def _to_hit(item: dict[str, Any]) -> IndexHit:
        score = item.get("@search.score")
        chunk_id = item.get("chunkid")
        return IndexHit(
            id=str(item.get("id") or ""),
            content=str(item.get("content") or ""),
            score=float(score) if isinstance(score, (int, float)) else 0.0,
            source=str(item.get("source") or ""),
            path=str(item.get("path") or ""),
            chunk_id=chunk_id if isinstance(chunk_id, int) else None,
            page=item.get("page"),
            created_utc=item.get("createdUtc"),
        )
