"""Document source backed by an Azure Blob Storage container (REST over httpx).

The container is addressed by a SAS URL
(``https://<account>.blob.core.windows.net/<container>?sv=...&sig=...``)
that grants at least list and read permissions.  Listing follows the
``NextMarker`` continuation until enough matching blobs are collected.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Collection
from pathlib import PurePosixPath
from urllib.parse import quote

import httpx
import structlog

from ragdesk.interfaces.document_source import IDocumentSource
from ragdesk.utils.errors import ConfigurationError, ProviderFatalError, ProviderTransientError, error_for_status

logger = structlog.get_logger(logger_name=__name__)

_LIST_PAGE_SIZE = 500


class AzureBlobDocumentSource(IDocumentSource):
    """Lists and downloads blobs from one container."""

    def __init__(self, container_url: str, http_client: httpx.AsyncClient) -> None:
        if not container_url.strip():
            raise ConfigurationError(
                message="BLOB_CONTAINER_URL is not configured",
                provider_name=self.get_provider_name(),
            )
        url = httpx.URL(container_url.strip())
        self._client = http_client
        self._base_url = str(url.copy_with(query=None)).rstrip("/")
        self._sas_params = dict(url.params)

    async def list_documents(
        self,
        prefix: str,
        max_files: int,
        extensions: Collection[str] | None = None,
    ) -> list[str]:
        selected: list[str] = []
        marker = ""
        while len(selected) < max_files:
            params = {
                **self._sas_params,
                "restype": "container",
                "comp": "list",
                "maxresults": str(_LIST_PAGE_SIZE),
            }
            if prefix:
                params["prefix"] = prefix
            if marker:
                params["marker"] = marker

            names, marker = self._parse_listing(await self._get(self._base_url, params))
            for name in names:
                if extensions is not None and PurePosixPath(name).suffix.lower() not in extensions:
                    continue
                selected.append(name)
                if len(selected) >= max_files:
                    break
            if not marker:
                break

        logger.debug("blob_source_listed", prefix=prefix, selected=len(selected))
        return selected

    async def download(self, name: str) -> bytes:
        url = f"{self._base_url}/{quote(name, safe='/')}"
        response = await self._send(url, self._sas_params)
        return response.content

    def get_provider_name(self) -> str:
        return "azure_blob"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get(self, url: str, params: dict[str, str]) -> str:
        response = await self._send(url, params)
        return response.text

    async def _send(self, url: str, params: dict[str, str]) -> httpx.Response:
        try:
            response = await self._client.get(url, params=params, headers={"x-ms-version": "2021-08-06"})
        except httpx.HTTPError as exc:
            raise ProviderTransientError(
                message=f"Blob storage request failed: {type(exc).__name__}",
                provider_name=self.get_provider_name(),
            ) from exc
        if response.status_code >= 400:
            raise error_for_status(
                response.status_code,
                f"Blob storage returned {response.status_code}",
                self.get_provider_name(),
            )
        return response

    def _parse_listing(self, body: str) -> tuple[list[str], str]:
        try:
            root = ET.fromstring(body.lstrip("\ufeff"))
        except ET.ParseError as exc:
            raise ProviderFatalError(
                message="Blob listing is not valid XML",
                provider_name=self.get_provider_name(),
            ) from exc

        names = [
            element.text
            for element in root.iterfind("./Blobs/Blob/Name")
            if element.text
        ]
        marker = (root.findtext("NextMarker") or "").strip()
        return names, marker
