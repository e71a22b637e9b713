"""ragdesk FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and stores the assembled components on ``app.state``
where the route dependencies pick them up.

Provider selection is driven by the ``*_MODE`` settings:

- ``RETRIEVAL_MODE``  azureaisearch | chromadb | off
- ``WEBSEARCH_MODE``  tavily | duckduckgo | off
- ``INGEST_SOURCE``   local | azureblob
- PDF analysis uses Azure Document Intelligence when ``DOCINTEL_ENDPOINT``
  is set, otherwise PyMuPDF.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from ragdesk.api.middleware import configure_middleware
from ragdesk.api.routes import router as api_router
from ragdesk.config.settings import Settings
from ragdesk.interfaces.document_analysis_provider import IDocumentAnalysisProvider
from ragdesk.interfaces.document_index_provider import IDocumentIndexProvider
from ragdesk.interfaces.document_source import IDocumentSource
from ragdesk.interfaces.embedding_provider import IEmbeddingProvider
from ragdesk.interfaces.web_search_provider import IWebSearchProvider
from ragdesk.pipeline.chat_orchestrator import ChatOrchestrator
from ragdesk.pipeline.confirmation_token import SignedTokenService
from ragdesk.providers.analysis.azure_document_intelligence_provider import (
    AzureDocumentIntelligenceProvider,
)
from ragdesk.providers.analysis.pymupdf_provider import PyMuPDFAnalysisProvider
from ragdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from ragdesk.providers.index.azure_search_provider import AzureSearchIndexProvider
from ragdesk.providers.llm.openai_compatible_provider import OpenAICompatibleLLMProvider
from ragdesk.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider
from ragdesk.providers.search.tavily_provider import TavilySearchProvider
from ragdesk.providers.source.azure_blob_source import AzureBlobDocumentSource
from ragdesk.providers.source.local_directory_source import LocalDirectoryDocumentSource
from ragdesk.services.ingestion.chunker import TextChunker
from ragdesk.services.ingestion.document_extractor import DocumentExtractor
from ragdesk.services.ingestion.ingestion_service import IngestionService
from ragdesk.services.ingestion.upload_trigger import UploadTrigger
from ragdesk.services.prompt_builder import PromptBuilder
from ragdesk.services.retrieval_service import RetrievalService
from ragdesk.services.web_search_service import WebSearchService
from ragdesk.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_index_provider(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
    embedding_provider: IEmbeddingProvider,
) -> IDocumentIndexProvider | None:
    """Select the document index from ``RETRIEVAL_MODE``.

    Returns ``None`` when retrieval is off or the selected index is not
    configured; chat then answers without internal evidence.
    """
    mode = app_settings.retrieval_mode.strip().lower()
    if mode == "chromadb":
        from ragdesk.providers.index.chromadb_provider import ChromaDBIndexProvider

        return ChromaDBIndexProvider(
            embedding_provider=embedding_provider,
            persist_directory=app_settings.chromadb_persist_dir,
            collection_name=app_settings.chromadb_collection,
            classification_field=app_settings.search_field_classification,
        )
    if mode == "azureaisearch":
        provider = AzureSearchIndexProvider(settings=app_settings, http_client=http_client)
        if provider.is_available():
            return provider
        _logger.warning("index_not_configured", mode=mode)
        return None
    return None


def _build_web_search_provider(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
) -> IWebSearchProvider | None:
    mode = app_settings.websearch_mode.strip().lower()
    if mode == "tavily":
        return TavilySearchProvider(
            api_key=app_settings.tavily_api_key,
            http_client=http_client,
            base_url=app_settings.tavily_base_url,
        )
    if mode == "duckduckgo":
        return DuckDuckGoSearchProvider()
    return None


def _build_pdf_analyzer(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
) -> IDocumentAnalysisProvider:
    if app_settings.docintel_endpoint.strip():
        return AzureDocumentIntelligenceProvider(settings=app_settings, http_client=http_client)
    return PyMuPDFAnalysisProvider()


def _build_document_source(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
) -> IDocumentSource | None:
    source = app_settings.ingest_source.strip().lower()
    if source == "azureblob":
        if not app_settings.blob_container_url.strip():
            _logger.warning("document_source_not_configured", source=source)
            return None
        return AzureBlobDocumentSource(app_settings.blob_container_url, http_client=http_client)
    return LocalDirectoryDocumentSource(app_settings.ingest_local_root)


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.http_timeout_seconds)

    # -- Providers --
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    index = _build_index_provider(app_settings, http_client, embedding_provider)
    web_provider = _build_web_search_provider(app_settings, http_client)
    llm = OpenAICompatibleLLMProvider(settings=app_settings)
    pdf_analyzer = _build_pdf_analyzer(app_settings, http_client)
    source = _build_document_source(app_settings, http_client)

    # -- Chat --
    retrieval_service = RetrievalService(
        index=index,
        query_mode=app_settings.retrieval_query_mode,
        classification_field=app_settings.search_field_classification,
        hit_min_score=app_settings.search_hit_min_score,
    )
    web_search_service = WebSearchService(web_provider, mode=app_settings.websearch_mode)
    token_service = SignedTokenService(
        secret=app_settings.websearch_confirm_secret,
        ttl_seconds=app_settings.websearch_confirm_ttl_seconds,
    )
    chat_orchestrator = ChatOrchestrator(
        settings=app_settings,
        retrieval_service=retrieval_service,
        web_search_service=web_search_service,
        token_service=token_service,
        prompt_builder=PromptBuilder(assistant_name=app_settings.assistant_name),
        llm=llm,
    )

    # -- Ingestion --
    ingestion_service: IngestionService | None = None
    upload_trigger: UploadTrigger | None = None
    if index is not None:
        ingestion_service = IngestionService(
            extractor=DocumentExtractor(pdf_analyzer),
            chunker=TextChunker(app_settings.chunk_size, app_settings.chunk_overlap),
            embedding_provider=embedding_provider,
            index=index,
            source=source,
            batch_size=app_settings.ingest_batch_size,
        )
        upload_trigger = UploadTrigger(ingestion_service)

    provider_status = {
        "retrieval": index.get_provider_name() if index is not None else "off",
        "websearch": web_provider.get_provider_name() if web_search_service.is_enabled() else "off",
        "llm": app_settings.llm_mode(),
        "embedding": (
            embedding_provider.get_provider_name() if embedding_provider.is_available() else "off"
        ),
        "pdf": pdf_analyzer.get_provider_name(),
        "source": source.get_provider_name() if source is not None else "off",
    }

    return {
        "settings": app_settings,
        "http_client": http_client,
        "chat_orchestrator": chat_orchestrator,
        "ingestion_service": ingestion_service,
        "upload_trigger": upload_trigger,
        "provider_status": provider_status,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=settings.app_version,
        environment=settings.app_env,
        **components["provider_status"],
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="ragdesk API",
        version=settings.app_version,
        description=(
            "Support-desk assistant that answers questions from a classification-"
            "filtered internal knowledge base, with optional user-confirmed web "
            "search, plus document ingestion into the search index."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    configure_middleware(application, allowed_origins=settings.cors_allowed_origins)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "ragdesk.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
