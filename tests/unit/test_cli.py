"""Unit tests for the ingestion CLI (ragdesk.cli.ingest)."""

from __future__ import annotations

from argparse import Namespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from ragdesk.cli.ingest import _build_parser, _handle_batch, _handle_file
from ragdesk.models.ingestion import IngestionFailure, IngestionResult


def _service(result: IngestionResult) -> MagicMock:
    service = MagicMock()
    service.ingest_batch = AsyncMock(return_value=result)
    service.ingest_single = AsyncMock(return_value=result)
    return service


class TestParser:
    def test_batch_defaults(self) -> None:
        args = _build_parser().parse_args(["batch"])

        assert args.command == "batch"
        assert args.prefix == "public/"
        assert args.max_files is None

    def test_file_arguments(self) -> None:
        args = _build_parser().parse_args(["file", "vpn.docx", "--blob-name", "internal/vpn.docx"])

        assert args.command == "file"
        assert args.file == "vpn.docx"
        assert args.blob_name == "internal/vpn.docx"


class TestHandleBatch:
    @pytest.mark.asyncio
    async def test_normalizes_and_clamps(self, settings, capsys) -> None:
        service = _service(IngestionResult(files_processed=2, chunks_uploaded=5))

        code = await _handle_batch(Namespace(prefix="/INTERNAL", max_files=999), settings, service)

        assert code == 0
        service.ingest_batch.assert_awaited_once_with("internal/", 200)
        assert "Chunks uploaded: 5" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_failures_give_exit_code_two(self, settings) -> None:
        failure = IngestionFailure(path="public/a.pdf", error="ProviderFatalError: bad pdf")
        service = _service(IngestionResult(files_processed=0, failures=[failure]))

        code = await _handle_batch(Namespace(prefix="public/", max_files=None), settings, service)

        assert code == 2
        service.ingest_batch.assert_awaited_once_with("public/", 20)


class TestHandleFile:
    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path) -> None:
        service = _service(IngestionResult())

        code = await _handle_file(Namespace(file=str(tmp_path / "nope.txt"), blob_name=None), service)

        assert code == 1
        service.ingest_single.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_defaults_blob_name_to_public(self, tmp_path) -> None:
        path = tmp_path / "guide.txt"
        path.write_text("reset steps", encoding="utf-8")
        service = _service(IngestionResult(files_processed=1, chunks_uploaded=1))

        code = await _handle_file(Namespace(file=str(path), blob_name=None), service)

        assert code == 0
        service.ingest_single.assert_awaited_once_with("public/guide.txt", b"reset steps")
