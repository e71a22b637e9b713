"""Azure AI Document Intelligence provider for PDF text extraction.

Analysis is asynchronous on the service side::

    POST {endpoint}/formrecognizer/documentModels/{model}:analyze?api-version=...
         Ocp-Apim-Subscription-Key: <key>      (body: raw PDF bytes)
    <- 202 Accepted, header operation-location: <poll url>

    GET <poll url>   (repeat until status is succeeded / failed)
    <- {"status": "succeeded", "analyzeResult": {"content": "...", "pages": [...]}}

Polling is bounded by ``docintel_poll_attempts`` x ``docintel_poll_interval_seconds``.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from ragdesk.config.settings import Settings
from ragdesk.interfaces.document_analysis_provider import IDocumentAnalysisProvider
from ragdesk.utils.errors import (
    ConfigurationError,
    ProviderFatalError,
    ProviderTransientError,
    error_for_status,
)

logger = structlog.get_logger(logger_name=__name__)


class AzureDocumentIntelligenceProvider(IDocumentAnalysisProvider):
    """Extracts PDF text with the ``prebuilt-read`` model."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        endpoint = settings.docintel_endpoint.strip().rstrip("/")
        if not endpoint.lower().startswith("http"):
            raise ConfigurationError(
                message="DOCINTEL_ENDPOINT must be an http(s) URL",
                provider_name=self.get_provider_name(),
            )
        if not settings.docintel_api_key.strip():
            raise ConfigurationError(
                message="DOCINTEL_API_KEY is not configured",
                provider_name=self.get_provider_name(),
            )

        self._client = http_client
        self._api_key = settings.docintel_api_key.strip()
        self._analyze_url = (
            f"{endpoint}/formrecognizer/documentModels/{settings.docintel_model}:analyze"
        )
        self._api_version = settings.docintel_api_version
        self._poll_attempts = settings.docintel_poll_attempts
        self._poll_interval = settings.docintel_poll_interval_seconds

    async def analyze(self, content: bytes, file_name: str = "") -> str:
        operation_url = await self._submit(content)

        for attempt in range(1, self._poll_attempts + 1):
            await asyncio.sleep(self._poll_interval)
            data = await self._poll(operation_url)
            status = str(data.get("status", "")).lower()

            if status == "succeeded":
                text = self._result_text(data.get("analyzeResult") or {})
                logger.info(
                    "docintel_analyze_complete",
                    file_name=file_name,
                    attempts=attempt,
                    chars=len(text),
                )
                return text
            if status == "failed":
                raise ProviderFatalError(
                    message=f"Document analysis failed for {file_name or 'document'}",
                    provider_name=self.get_provider_name(),
                )

        raise ProviderTransientError(
            message=f"Document analysis did not finish after {self._poll_attempts} polls",
            provider_name=self.get_provider_name(),
        )

    def get_provider_name(self) -> str:
        return "azure_document_intelligence"

    # ------------------------------------------------------------------
    # HTTP steps
    # ------------------------------------------------------------------

    async def _submit(self, content: bytes) -> str:
        try:
            response = await self._client.post(
                self._analyze_url,
                params={"api-version": self._api_version},
                headers={
                    "Ocp-Apim-Subscription-Key": self._api_key,
                    "Content-Type": "application/pdf",
                },
                content=content,
            )
        except httpx.HTTPError as exc:
            raise ProviderTransientError(
                message=f"Document analysis submit failed: {type(exc).__name__}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code >= 400:
            raise error_for_status(
                response.status_code,
                f"Document analysis submit returned {response.status_code}: {response.text[:300]}",
                self.get_provider_name(),
            )

        operation_url = response.headers.get("operation-location")
        if not operation_url:
            raise ProviderFatalError(
                message="Analyze response is missing the operation-location header",
                provider_name=self.get_provider_name(),
            )
        return operation_url

    async def _poll(self, operation_url: str) -> dict[str, Any]:
        try:
            response = await self._client.get(
                operation_url,
                headers={"Ocp-Apim-Subscription-Key": self._api_key},
            )
        except httpx.HTTPError as exc:
            raise ProviderTransientError(
                message=f"Document analysis poll failed: {type(exc).__name__}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code >= 400:
            raise error_for_status(
                response.status_code,
                f"Document analysis poll returned {response.status_code}",
                self.get_provider_name(),
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderFatalError(
                message="Document analysis poll returned a non-JSON body",
                provider_name=self.get_provider_name(),
            ) from exc
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _result_text(result: dict[str, Any]) -> str:
        content = result.get("content")
        if isinstance(content, str):
            return content.strip()

        lines: list[str] = []
        for page in result.get("pages") or []:
            for line in page.get("lines") or []:
                text = line.get("content")
                if text:
                    lines.append(text)
        return "\n".join(lines).strip()
