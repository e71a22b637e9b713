"""Integration tests for the HTTP API using FastAPI's TestClient.

The app is assembled the same way ``create_app`` does it (middleware stack
plus router) with in-memory providers placed on ``app.state``.
"""

from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ragdesk.api.middleware import configure_middleware
from ragdesk.api.routes import clamp_max_files, normalize_prefix, router
from ragdesk.models.classification import Classification
from ragdesk.pipeline.chat_orchestrator import ChatOrchestrator
from ragdesk.pipeline.confirmation_token import SignedTokenService
from ragdesk.providers.analysis.pymupdf_provider import PyMuPDFAnalysisProvider
from ragdesk.providers.source.local_directory_source import LocalDirectoryDocumentSource
from ragdesk.services.ingestion.chunker import TextChunker
from ragdesk.services.ingestion.document_extractor import DocumentExtractor
from ragdesk.services.ingestion.ingestion_service import IngestionService
from ragdesk.services.ingestion.upload_trigger import UploadTrigger
from ragdesk.services.prompt_builder import PromptBuilder
from ragdesk.services.retrieval_service import RetrievalService
from ragdesk.services.web_search_service import WebSearchService
from ragdesk.utils.errors import InvalidRequestError

VPN_QUESTION = "How do I reset my VPN client?"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_app(
    settings,
    index=None,
    web_provider=None,
    llm=None,
    ingestion: IngestionService | None = None,
    orchestrator=None,
) -> FastAPI:
    app = FastAPI()
    configure_middleware(app)
    app.include_router(router)

    app.state.settings = settings
    app.state.chat_orchestrator = orchestrator or ChatOrchestrator(
        settings=settings,
        retrieval_service=RetrievalService(index),
        web_search_service=WebSearchService(web_provider, mode=settings.websearch_mode),
        token_service=SignedTokenService(settings.websearch_confirm_secret),
        prompt_builder=PromptBuilder(settings.assistant_name),
        llm=llm,
    )
    app.state.ingestion_service = ingestion
    app.state.upload_trigger = UploadTrigger(ingestion) if ingestion is not None else None
    app.state.provider_status = {"retrieval": "in_memory", "llm": "Groq"}
    return app


def _ingestion(index, embedding, root) -> IngestionService:  # noqa: ANN001
    return IngestionService(
        extractor=DocumentExtractor(PyMuPDFAnalysisProvider()),
        chunker=TextChunker(1200, 150),
        embedding_provider=embedding,
        index=index,
        source=LocalDirectoryDocumentSource(root),
    )


@pytest.fixture
def web_settings(make_settings):
    return make_settings(websearch_mode="tavily", tavily_api_key="tvly-test", websearch_confirm_secret="s3cret")


# ---------------------------------------------------------------------------
# POST /api/chat
# ---------------------------------------------------------------------------


class TestChatEndpoint:
    def test_answer_from_internal_evidence(self, settings, make_index, vpn_hit, fake_llm) -> None:
        client = TestClient(_make_app(settings, make_index(hits=[("public", vpn_hit)]), llm=fake_llm))

        response = client.post("/api/chat", json={"message": VPN_QUESTION, "dataBoundary": "Public"})

        assert response.status_code == 200
        body = response.json()
        assert body["needsWebConfirmation"] is False
        assert len(body["citations"]) == 1
        assert body["citations"][0]["urlOrId"] == "b_vpn1"
        assert "score" not in body["citations"][0]
        assert body["escalation"]["shouldEscalate"] is False
        assert body["answer"] == "Open the client and choose Reset."
        assert body["requestId"] == response.headers["x-correlation-id"]
        assert body["mode"] == {"retrieval": "off", "llm": "stub"}

    @pytest.mark.parametrize("role", ["Customer", "Agent", "Admin"])
    def test_restricted_always_escalates(self, settings, in_memory_index, fake_llm, role: str) -> None:
        client = TestClient(_make_app(settings, in_memory_index, llm=fake_llm))

        response = client.post(
            "/api/chat",
            json={"message": "Show me the incident report", "dataBoundary": "Restricted", "userRole": role},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["escalation"]["shouldEscalate"] is True
        assert body["citations"] == []
        assert in_memory_index.queries == []

    def test_confidential_customer_escalates(self, settings, in_memory_index, fake_llm) -> None:
        client = TestClient(_make_app(settings, in_memory_index, llm=fake_llm))

        response = client.post(
            "/api/chat",
            json={"message": "Contract terms?", "dataBoundary": "Confidential", "userRole": "Customer"},
        )

        body = response.json()
        assert body["escalation"]["shouldEscalate"] is True
        assert "Admin access" in body["escalation"]["reason"]

    def test_legacy_request_type_used_as_boundary(self, settings, in_memory_index, fake_llm) -> None:
        client = TestClient(_make_app(settings, in_memory_index, llm=fake_llm))

        client.post("/api/chat", json={"message": VPN_QUESTION, "requestType": "Internal", "userRole": "Agent"})

        assert in_memory_index.queries[0].boundary == Classification.INTERNAL.value

    def test_web_confirmation_round_trip(self, web_settings, in_memory_index, fake_web_provider, fake_llm) -> None:
        client = TestClient(_make_app(web_settings, in_memory_index, fake_web_provider, fake_llm))

        first = client.post("/api/chat", json={"message": VPN_QUESTION}).json()
        assert first["needsWebConfirmation"] is True
        token = first["webSearchToken"]
        assert token

        second = client.post(
            "/api/chat",
            json={"message": VPN_QUESTION, "confirmWebSearch": True, "webSearchToken": token},
        )
        assert second.status_code == 200
        assert second.json()["citations"][0]["urlOrId"] == "https://vendor.example.com/vpn/reset"

        payload, signature = token.split(".")
        tampered = payload + "." + ("A" if signature[0] != "A" else "B") + signature[1:]
        third = client.post(
            "/api/chat",
            json={"message": VPN_QUESTION, "confirmWebSearch": True, "webSearchToken": tampered},
        )
        assert third.status_code == 400
        assert third.json()["error"]["code"] == "ValidationError"
        assert third.json()["error"]["details"] == {"field": "webSearchToken"}

    def test_missing_body(self, settings) -> None:
        client = TestClient(_make_app(settings))

        response = client.post("/api/chat", content=b"")

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "MissingBody"
        assert body["requestId"] == response.headers["x-correlation-id"]

    @pytest.mark.parametrize("raw", [b"{not json", b"[1, 2]", b'"text"'])
    def test_invalid_json(self, settings, raw: bytes) -> None:
        client = TestClient(_make_app(settings))

        response = client.post("/api/chat", content=raw, headers={"content-type": "application/json"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "InvalidJson"

    def test_blank_message(self, settings) -> None:
        client = TestClient(_make_app(settings))

        response = client.post("/api/chat", json={"message": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == {
            "code": "ValidationError",
            "message": "Field 'message' is required.",
            "details": {"field": "message"},
        }

    def test_wrong_field_type(self, settings) -> None:
        client = TestClient(_make_app(settings))

        response = client.post("/api/chat", json={"message": "hi", "confirmWebSearch": {"a": 1}})

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"field": "confirmWebSearch"}

    def test_correlation_headers(self, settings, fake_llm) -> None:
        client = TestClient(_make_app(settings, llm=fake_llm))

        response = client.post(
            "/api/chat",
            json={"message": VPN_QUESTION},
            headers={"x-correlation-id": "client-42"},
        )

        assert response.headers["x-client-correlation-id"] == "client-42"
        assert len(response.headers["x-correlation-id"]) == 32
        assert "clientCorrelationId=client-42" in response.json()["actionHints"]

    def test_timeout_returns_500(self, make_settings) -> None:
        class SlowOrchestrator:
            async def run(self, query):  # noqa: ANN001, ANN202
                await asyncio.sleep(1)

        settings = make_settings(chat_timeout_seconds=0.01)
        client = TestClient(_make_app(settings, orchestrator=SlowOrchestrator()))

        response = client.post("/api/chat", json={"message": "hi"})

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "Timeout"


# ---------------------------------------------------------------------------
# POST /api/ingest
# ---------------------------------------------------------------------------


class TestIngestEndpoint:
    def test_ingests_prefix_with_defaults(self, settings, in_memory_index, fake_embedding, tmp_path) -> None:
        (tmp_path / "public").mkdir()
        (tmp_path / "public" / "faq-vpn.txt").write_text("x" * 3000, encoding="utf-8")
        (tmp_path / "internal").mkdir()
        (tmp_path / "internal" / "policy.txt").write_text("internal only", encoding="utf-8")
        ingestion = _ingestion(in_memory_index, fake_embedding, tmp_path)
        client = TestClient(_make_app(settings, ingestion=ingestion))

        response = client.post("/api/ingest")

        assert response.status_code == 200
        body = response.json()
        assert body["prefix"] == "public/"
        assert body["maxFiles"] == 20
        assert body["filesProcessed"] == 1
        assert body["chunksUploaded"] == 3
        assert body["actionHints"][:3] == [f"requestId={body['requestId']}", "prefix=public/", "maxFiles=20"]
        assert {r.classification for r in in_memory_index.records.values()} == {"public"}

    def test_invalid_prefix(self, settings, in_memory_index, fake_embedding, tmp_path) -> None:
        client = TestClient(_make_app(settings, ingestion=_ingestion(in_memory_index, fake_embedding, tmp_path)))

        response = client.post("/api/ingest", json={"prefix": "secret/"})

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"field": "prefix"}

    def test_max_files_clamped(self, settings, in_memory_index, fake_embedding, tmp_path) -> None:
        client = TestClient(_make_app(settings, ingestion=_ingestion(in_memory_index, fake_embedding, tmp_path)))

        response = client.post("/api/ingest", json={"prefix": "/Internal", "maxFiles": 5000})

        body = response.json()
        assert body["prefix"] == "internal/"
        assert body["maxFiles"] == 200
        assert body["filesProcessed"] == 0

    def test_ingestion_not_configured(self, settings) -> None:
        client = TestClient(_make_app(settings))

        response = client.post("/api/ingest", json={"prefix": "public/"})

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "InternalError"


class TestPrefixHelpers:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(None, "public/"), ("", "public/"), ("internal", "internal/"), ("//CONFIDENTIAL/", "confidential/")],
    )
    def test_normalize_prefix(self, raw, expected: str) -> None:
        assert normalize_prefix(raw) == expected

    def test_normalize_prefix_rejects_unknown(self) -> None:
        with pytest.raises(InvalidRequestError):
            normalize_prefix("misc/")

    @pytest.mark.parametrize(("raw", "expected"), [(None, 20), (0, 1), (-5, 1), (50, 50), (201, 200)])
    def test_clamp_max_files(self, raw, expected: int) -> None:
        assert clamp_max_files(raw, 20, 200) == expected


# ---------------------------------------------------------------------------
# POST /api/ingest/upload
# ---------------------------------------------------------------------------


class TestUploadEndpoint:
    def test_upload_ingested(self, settings, in_memory_index, fake_embedding, tmp_path) -> None:
        client = TestClient(_make_app(settings, ingestion=_ingestion(in_memory_index, fake_embedding, tmp_path)))

        response = client.post(
            "/api/ingest/upload",
            files={"file": ("vpn.txt", b"reset the vpn client", "text/plain")},
            data={"path": "/internal/vpn.txt"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["path"] == "internal/vpn.txt"
        assert body["chunksUploaded"] == 1
        assert next(iter(in_memory_index.records.values())).classification == "internal"

    def test_upload_skipped_for_markdown(self, settings, in_memory_index, fake_embedding, tmp_path) -> None:
        client = TestClient(_make_app(settings, ingestion=_ingestion(in_memory_index, fake_embedding, tmp_path)))

        response = client.post("/api/ingest/upload", files={"file": ("notes.md", b"# notes", "text/markdown")})

        assert response.json()["status"] == "skipped"
        assert response.json()["path"] == "notes.md"
        assert in_memory_index.records == {}


# ---------------------------------------------------------------------------
# GET /api/health
# ---------------------------------------------------------------------------


def test_health(settings) -> None:
    client = TestClient(_make_app(settings))

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "version": "0.1.0",
        "providers": {"retrieval": "in_memory", "llm": "Groq"},
    }
