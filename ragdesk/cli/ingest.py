"""CLI tool for loading documents into the ragdesk search index.

Usage::

    python -m ragdesk.cli.ingest batch --prefix public/ --max-files 20
    python -m ragdesk.cli.ingest file ./docs/vpn-faq.docx --blob-name public/vpn-faq.docx

``batch`` reads from the configured document source (``INGEST_SOURCE``);
``file`` reads one local file and ingests it under ``--blob-name`` (the
storage path decides its classification), exactly like the upload trigger.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import httpx

from ragdesk.api.routes import clamp_max_files, normalize_prefix
from ragdesk.config.settings import Settings
from ragdesk.models.ingestion import IngestionResult
from ragdesk.utils.errors import RagDeskError
from ragdesk.utils.logging import configure_logging


def _build_ingestion_service(app_settings: Settings, http_client: httpx.AsyncClient):  # noqa: ANN202
    """Construct the ingestion service for the configured index and source.

    Returns
    -------
    tuple[IngestionService, str] or tuple[None, str]
        The service and a status message, or ``None`` with an error message
        when retrieval is off.
    """
    from ragdesk.main import (
        _build_document_source,
        _build_index_provider,
        _build_pdf_analyzer,
    )
    from ragdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
    from ragdesk.services.ingestion.chunker import TextChunker
    from ragdesk.services.ingestion.document_extractor import DocumentExtractor
    from ragdesk.services.ingestion.ingestion_service import IngestionService

    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    if not embedding_provider.is_available():
        return None, "OPENAI_API_KEY is not configured; chunks cannot be embedded."

    index = _build_index_provider(app_settings, http_client, embedding_provider)
    if index is None:
        return None, f"No document index available (RETRIEVAL_MODE={app_settings.retrieval_mode})."

    pdf_analyzer = _build_pdf_analyzer(app_settings, http_client)
    source = _build_document_source(app_settings, http_client)

    service = IngestionService(
        extractor=DocumentExtractor(pdf_analyzer),
        chunker=TextChunker(app_settings.chunk_size, app_settings.chunk_overlap),
        embedding_provider=embedding_provider,
        index=index,
        source=source,
        batch_size=app_settings.ingest_batch_size,
    )
    source_name = source.get_provider_name() if source is not None else "none"
    status = (
        f"Embedding: {embedding_provider.get_provider_name()} | Index: {index.get_provider_name()} "
        f"| PDF: {pdf_analyzer.get_provider_name()} | Source: {source_name}"
    )
    return service, status


def _print_result(result: IngestionResult) -> None:
    print("\nIngestion complete:")
    print(f"  Files processed: {result.files_processed}")
    print(f"  Chunks uploaded: {result.chunks_uploaded}")
    print(f"  Time:            {result.elapsed_ms} ms")
    for failure in result.failures:
        print(f"  Failed:          {failure.path} ({failure.error})")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    async with httpx.AsyncClient(timeout=app_settings.http_timeout_seconds) as http_client:
        service, status_msg = _build_ingestion_service(app_settings, http_client)
        if service is None:
            print(f"Error: {status_msg}", file=sys.stderr)
            return 1
        print(f"Providers: {status_msg}")

        if args.command == "batch":
            return await _handle_batch(args, app_settings, service)
        return await _handle_file(args, service)


async def _handle_batch(args: argparse.Namespace, app_settings: Settings, service) -> int:  # noqa: ANN001
    """Ingest documents stored under a prefix."""
    prefix = normalize_prefix(args.prefix)
    max_files = clamp_max_files(
        args.max_files,
        app_settings.ingest_default_max_files,
        app_settings.ingest_max_files_limit,
    )
    print(f"Ingesting prefix {prefix} (max {max_files} files)")

    result = await service.ingest_batch(prefix, max_files)
    _print_result(result)
    return 0 if not result.failures else 2


async def _handle_file(args: argparse.Namespace, service) -> int:  # noqa: ANN001
    """Ingest a single local file under a storage path."""
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    blob_name = (args.blob_name or f"public/{path.name}").lstrip("/")
    print(f"Ingesting file: {path} as {blob_name}")

    result = await service.ingest_single(blob_name, path.read_bytes())
    _print_result(result)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m ragdesk.cli.ingest",
        description="Load support documents into the ragdesk search index.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Ingestion commands")

    # -- batch --
    batch_parser = subparsers.add_parser("batch", help="Ingest documents under a prefix")
    batch_parser.add_argument("--prefix", default="public/", help="Classification prefix (default: public/)")
    batch_parser.add_argument(
        "--max-files",
        dest="max_files",
        type=int,
        default=None,
        help="Maximum number of documents to ingest (default from settings)",
    )

    # -- file --
    file_parser = subparsers.add_parser("file", help="Ingest one local file")
    file_parser.add_argument("file", help="Path to a .pdf, .docx, .txt or .md file")
    file_parser.add_argument(
        "--blob-name",
        dest="blob_name",
        default=None,
        help="Storage path to record, e.g. internal/vpn.docx (default: public/<file name>)",
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Parse arguments, load settings and run the selected subcommand."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level)

    try:
        exit_code = asyncio.run(_run(args, app_settings))
    except RagDeskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
