"""Unit tests for classification-filtered internal retrieval."""

from __future__ import annotations

import pytest

from ragdesk.interfaces.document_index_provider import IndexHit
from ragdesk.models.classification import Classification
from ragdesk.services.retrieval_service import RetrievalService
from ragdesk.utils.errors import ProviderTransientError


def _hit(hit_id: str, score: float, content: str = "reset client steps") -> IndexHit:
    return IndexHit(id=hit_id, content=content, score=score, source=f"{hit_id}.docx", path=f"public/{hit_id}.docx")


class TestRetrievalService:
    @pytest.mark.asyncio
    async def test_disabled_without_index(self) -> None:
        service = RetrievalService(None)

        bundle = await service.retrieve("q", Classification.PUBLIC, 3)

        assert service.enabled is False
        assert bundle.context == ""
        assert bundle.citations == []
        assert bundle.debug == "retrieval_disabled"

    @pytest.mark.asyncio
    async def test_query_carries_boundary_filter(self, make_index) -> None:
        index = make_index()
        service = RetrievalService(index, query_mode="keyword")

        await service.retrieve("vpn", Classification.INTERNAL, 4, user_role="Agent")

        query = index.queries[0]
        assert query.classification_filter.values == ("public", "internal")
        assert query.classification_filter.field == "classification"
        assert query.top_k == 4
        assert query.query_mode == "keyword"
        assert query.boundary == "Internal"
        assert query.user_role == "Agent"

    @pytest.mark.asyncio
    async def test_public_boundary_never_sees_internal_hits(self, make_index) -> None:
        index = make_index(hits=[("internal", _hit("secret", 0.9)), ("public", _hit("faq", 0.4))])

        bundle = await RetrievalService(index).retrieve("q", Classification.PUBLIC, 5)

        assert [c.url_or_id for c in bundle.citations] == ["faq"]

    @pytest.mark.asyncio
    async def test_citations_and_context(self, make_index, vpn_hit) -> None:
        index = make_index(hits=[("public", vpn_hit)])

        bundle = await RetrievalService(index).retrieve("q", Classification.PUBLIC, 3)

        citation = bundle.citations[0]
        assert citation.title == "public/faq-vpn.docx"
        assert citation.url_or_id == "b_vpn1"
        assert citation.score == 0.5
        assert bundle.context == vpn_hit.content
        assert bundle.debug is None

    @pytest.mark.asyncio
    async def test_hits_below_min_score_dropped(self, make_index) -> None:
        index = make_index(hits=[("public", _hit("a", 0.05)), ("public", _hit("b", 0.5))])

        bundle = await RetrievalService(index, hit_min_score=0.1).retrieve("q", Classification.PUBLIC, 5)

        assert [c.url_or_id for c in bundle.citations] == ["b"]

    @pytest.mark.asyncio
    async def test_index_failure_degrades_to_empty(self, make_index) -> None:
        index = make_index()

        async def _boom(query):  # noqa: ANN001, ANN202
            raise ProviderTransientError(provider_name="in_memory", status_code=503)

        index.search = _boom

        bundle = await RetrievalService(index).retrieve("q", Classification.PUBLIC, 3)

        assert bundle.citations == []
        assert bundle.debug == "retrieval_failed:ProviderTransientError"
