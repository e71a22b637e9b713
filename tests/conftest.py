"""Shared pytest fixtures for the ragdesk test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from ragdesk.config.settings import Settings
from ragdesk.interfaces.document_index_provider import IDocumentIndexProvider, IndexHit, IndexQuery
from ragdesk.interfaces.embedding_provider import IEmbeddingProvider
from ragdesk.interfaces.llm_provider import ILLMProvider
from ragdesk.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from ragdesk.models.ingestion import ChunkRecord

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def _settings(**overrides: Any) -> Settings:
    """Settings with every external service switched off unless overridden."""
    defaults: dict[str, Any] = {
        "retrieval_mode": "off",
        "websearch_mode": "off",
        "tavily_api_key": "",
        "websearch_confirm_secret": "",
        "groq_api_key": "",
        "openai_api_key": "",
        "search_endpoint": "",
        "search_index": "",
        "search_api_key": "",
        "search_filter_template": "",
        "docintel_endpoint": "",
        "docintel_api_key": "",
        "internal_topk": 2,
        "web_topk": 3,
        "search_min_score": 0.01,
        "search_hit_min_score": 0.0,
        "data_boundary_default": "Public",
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory for Settings with test-safe defaults."""
    return _settings


@pytest.fixture
def settings() -> Settings:
    return _settings()


# ---------------------------------------------------------------------------
# In-memory providers
# ---------------------------------------------------------------------------


class InMemoryIndex(IDocumentIndexProvider):
    """Index double: stored hits are filtered by the query's classification filter."""

    def __init__(self, hits: list[tuple[str, IndexHit]] | None = None) -> None:
        self.hits: list[tuple[str, IndexHit]] = list(hits or [])
        self.queries: list[IndexQuery] = []
        self.records: dict[str, ChunkRecord] = {}
        self.upload_calls = 0

    async def search(self, query: IndexQuery) -> list[IndexHit]:
        self.queries.append(query)
        allowed = set(query.classification_filter.values)
        matching = [hit for classification, hit in self.hits if classification in allowed]
        return matching[: query.top_k]

    async def upload(self, records: list[ChunkRecord]) -> int:
        self.upload_calls += 1
        for record in records:
            self.records[record.chunk_id] = record
        return len(records)

    def get_provider_name(self) -> str:
        return "in_memory"

    def is_available(self) -> bool:
        return True


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic three-dimensional vectors derived from the text length."""

    def __init__(self) -> None:
        self.batches: list[list[str]] = []

    async def embed(self, text: str) -> list[float]:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batches.append(list(texts))
        return [[float(len(text)), 1.0, 0.0] for text in texts]

    def get_dimension(self) -> int:
        return 3

    def get_provider_name(self) -> str:
        return "fake_embedding"

    def is_available(self) -> bool:
        return True


class FakeLLMProvider(ILLMProvider):
    """Returns a canned answer and records every prompt it was given."""

    def __init__(self, answer: str = "Open the client and choose Reset.", error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.prompts: list[str] = []

    async def complete(
        self,
        prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 500,
        correlation_id: str | None = None,
    ) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer

    def get_provider_name(self) -> str:
        return "Groq"

    def is_available(self) -> bool:
        return True


class FakeWebSearchProvider(IWebSearchProvider):
    def __init__(self, results: list[SearchResult] | None = None, error: Exception | None = None) -> None:
        self.results = list(results or [])
        self.error = error
        self.queries: list[tuple[str, int]] = []

    async def search(self, query: str, num_results: int = 5) -> list[SearchResult]:
        self.queries.append((query, num_results))
        if self.error is not None:
            raise self.error
        return self.results[:num_results]

    def get_provider_name(self) -> str:
        return "fake_web"

    def is_available(self) -> bool:
        return True


@pytest.fixture
def in_memory_index() -> InMemoryIndex:
    return InMemoryIndex()


@pytest.fixture
def fake_embedding() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def fake_llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def fake_web_provider() -> FakeWebSearchProvider:
    return FakeWebSearchProvider(
        results=[
            SearchResult(
                title="VPN client reset guide",
                url="https://vendor.example.com/vpn/reset",
                snippet="To reset the VPN client, remove the saved profile and reconnect.",
            )
        ]
    )


@pytest.fixture
def vpn_hit() -> IndexHit:
    return IndexHit(
        id="b_vpn1",
        content="To reset your VPN client, open Settings > Profiles and choose Reset.",
        score=0.5,
        source="public/faq-vpn.docx",
        path="public/faq-vpn.docx",
        chunk_id=1,
    )


@pytest.fixture
def make_web_provider() -> type[FakeWebSearchProvider]:
    return FakeWebSearchProvider


@pytest.fixture
def make_llm() -> type[FakeLLMProvider]:
    return FakeLLMProvider


@pytest.fixture
def make_index() -> type[InMemoryIndex]:
    return InMemoryIndex
