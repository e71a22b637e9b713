"""Unit tests for the ingestion pipeline and the upload trigger."""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from ragdesk.interfaces.document_analysis_provider import IDocumentAnalysisProvider
from ragdesk.interfaces.document_source import IDocumentSource
from ragdesk.services.ingestion.chunker import TextChunker
from ragdesk.services.ingestion.document_extractor import DocumentExtractor
from ragdesk.services.ingestion.ingestion_service import IngestionService
from ragdesk.services.ingestion.upload_trigger import UploadTrigger
from ragdesk.utils.errors import ConfigurationError, IndexUploadError, ProviderFatalError

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class DictSource(IDocumentSource):
    """Document source over an in-memory ``{name: bytes}`` mapping."""

    def __init__(self, files: dict[str, bytes], broken: frozenset[str] = frozenset()) -> None:
        self._files = files
        self._broken = broken

    async def list_documents(
        self,
        prefix: str,
        max_files: int,
        extensions: Collection[str] | None = None,
    ) -> list[str]:
        names = [
            name
            for name in sorted(self._files)
            if name.startswith(prefix)
            and (extensions is None or "." + name.rsplit(".", 1)[-1].lower() in extensions)
        ]
        return names[:max_files]

    async def download(self, name: str) -> bytes:
        if name in self._broken:
            raise ProviderFatalError(message=f"cannot read {name}", provider_name="dict")
        return self._files[name]

    def get_provider_name(self) -> str:
        return "dict"


def _service(index, embedding, source=None, batch_size: int = 16) -> IngestionService:  # noqa: ANN001
    return IngestionService(
        extractor=DocumentExtractor(MagicMock(spec=IDocumentAnalysisProvider)),
        chunker=TextChunker(1200, 150),
        embedding_provider=embedding,
        index=index,
        source=source,
        batch_size=batch_size,
        clock=lambda: FIXED_NOW,
    )


class TestIdentifiers:
    def test_chunk_id_is_deterministic_and_key_safe(self) -> None:
        first = IngestionService.make_chunk_id("public/a.txt", 1)
        assert first == IngestionService.make_chunk_id("public/a.txt", 1)
        assert first != IngestionService.make_chunk_id("public/a.txt", 2)
        assert first.startswith("b_")
        assert "=" not in first and "/" not in first and "+" not in first

    def test_source_id_encodes_path(self) -> None:
        assert IngestionService.make_source_id("public/a.txt") == "b_cHVibGljL2EudHh0"


class TestIngestSingle:
    @pytest.mark.asyncio
    async def test_three_thousand_chars_make_three_chunks(self, in_memory_index, fake_embedding) -> None:
        service = _service(in_memory_index, fake_embedding)

        result = await service.ingest_single("internal/vpn-guide.txt", ("x" * 3000).encode())

        assert result.files_processed == 1
        assert result.chunks_uploaded == 3
        records = sorted(in_memory_index.records.values(), key=lambda r: r.chunk_index)
        assert [len(r.content) for r in records] == [1200, 1200, 900]
        assert [r.chunk_index for r in records] == [1, 2, 3]
        assert {r.classification for r in records} == {"internal"}
        assert all(r.source == "internal/vpn-guide.txt" for r in records)
        assert all(r.created_utc == FIXED_NOW for r in records)
        assert records[0].vector == [1200.0, 1.0, 0.0]

    @pytest.mark.asyncio
    async def test_reingest_overwrites_same_ids(self, in_memory_index, fake_embedding) -> None:
        service = _service(in_memory_index, fake_embedding)

        await service.ingest_single("public/faq.txt", b"hello support desk")
        await service.ingest_single("public/faq.txt", b"hello again")

        assert len(in_memory_index.records) == 1
        assert next(iter(in_memory_index.records.values())).content == "hello again"

    @pytest.mark.asyncio
    async def test_unknown_prefix_stored_as_unknown(self, in_memory_index, fake_embedding) -> None:
        await _service(in_memory_index, fake_embedding).ingest_single("misc/readme.txt", b"text")

        assert next(iter(in_memory_index.records.values())).classification == "unknown"

    @pytest.mark.asyncio
    async def test_unsupported_extension_is_empty_result(self, in_memory_index, fake_embedding) -> None:
        result = await _service(in_memory_index, fake_embedding).ingest_single("public/logo.png", b"\x89PNG")

        assert result.files_processed == 0
        assert result.chunks_uploaded == 0
        assert in_memory_index.upload_calls == 0

    @pytest.mark.asyncio
    async def test_blank_document_skipped(self, in_memory_index, fake_embedding) -> None:
        result = await _service(in_memory_index, fake_embedding).ingest_single("public/empty.txt", b"  \n ")

        assert result.files_processed == 0
        assert fake_embedding.batches == []

    @pytest.mark.asyncio
    async def test_batches_respect_batch_size(self, in_memory_index, fake_embedding) -> None:
        service = _service(in_memory_index, fake_embedding, batch_size=2)

        result = await service.ingest_single("public/long.txt", ("y" * 3000).encode())

        assert result.chunks_uploaded == 3
        assert [len(batch) for batch in fake_embedding.batches] == [2, 1]
        assert in_memory_index.upload_calls == 2


class TestIngestBatch:
    @pytest.mark.asyncio
    async def test_requires_source(self, in_memory_index, fake_embedding) -> None:
        with pytest.raises(ConfigurationError):
            await _service(in_memory_index, fake_embedding).ingest_batch("public/", 20)

    @pytest.mark.asyncio
    async def test_lists_only_supported_files_under_prefix(self, in_memory_index, fake_embedding) -> None:
        source = DictSource(
            {
                "public/a.txt": b"alpha",
                "public/b.md": b"# beta",
                "public/c.png": b"img",
                "internal/d.txt": b"delta",
            }
        )

        result = await _service(in_memory_index, fake_embedding, source).ingest_batch("public/", 20)

        assert result.files_processed == 2
        assert {r.path for r in in_memory_index.records.values()} == {"public/a.txt", "public/b.md"}

    @pytest.mark.asyncio
    async def test_max_files_caps_documents(self, in_memory_index, fake_embedding) -> None:
        source = DictSource({f"public/{i}.txt": b"text" for i in range(5)})

        result = await _service(in_memory_index, fake_embedding, source).ingest_batch("public/", 2)

        assert result.files_processed == 2

    @pytest.mark.asyncio
    async def test_download_failure_recorded_and_run_continues(self, in_memory_index, fake_embedding) -> None:
        source = DictSource(
            {"public/a.txt": b"alpha", "public/b.txt": b"beta"},
            broken=frozenset({"public/a.txt"}),
        )

        result = await _service(in_memory_index, fake_embedding, source).ingest_batch("public/", 20)

        assert result.files_processed == 1
        assert [f.path for f in result.failures] == ["public/a.txt"]
        assert result.failures[0].error.startswith("ProviderFatalError")

    @pytest.mark.asyncio
    async def test_corrupt_docx_recorded_and_run_continues(self, in_memory_index, fake_embedding) -> None:
        source = DictSource({"public/a.docx": b"not a zip file", "public/b.txt": b"beta text"})

        result = await _service(in_memory_index, fake_embedding, source).ingest_batch("public/", 20)

        assert result.files_processed == 1
        assert result.chunks_uploaded == 1
        assert [f.path for f in result.failures] == ["public/a.docx"]
        assert result.failures[0].error.startswith("ProviderFatalError")
        assert {r.path for r in in_memory_index.records.values()} == {"public/b.txt"}

    @pytest.mark.asyncio
    async def test_upload_failure_aborts_run(self, in_memory_index, fake_embedding) -> None:
        async def _reject(records):  # noqa: ANN001, ANN202
            raise IndexUploadError(message="rejected", provider_name="in_memory")

        in_memory_index.upload = _reject
        source = DictSource({"public/a.txt": b"alpha"})

        with pytest.raises(IndexUploadError):
            await _service(in_memory_index, fake_embedding, source).ingest_batch("public/", 20)


class TestUploadTrigger:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["public/notes.md", "public/diagram.png"])
    async def test_skips_non_upload_extensions(self, in_memory_index, fake_embedding, name: str) -> None:
        trigger = UploadTrigger(_service(in_memory_index, fake_embedding))

        assert await trigger.handle(name, b"content") is None
        assert in_memory_index.upload_calls == 0

    @pytest.mark.asyncio
    async def test_ingests_text_upload(self, in_memory_index, fake_embedding) -> None:
        trigger = UploadTrigger(_service(in_memory_index, fake_embedding))

        result = await trigger.handle("confidential/contract.txt", b"terms and conditions")

        assert result is not None
        assert result.chunks_uploaded == 1
        assert next(iter(in_memory_index.records.values())).classification == "confidential"
