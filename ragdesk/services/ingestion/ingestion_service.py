"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **list -> download -> extract -> chunk -> embed -> upload**.

Two entry points share the same tail:

- :meth:`IngestionService.ingest_batch` walks a storage prefix (``public/``,
  ``internal/`` ...) through the injected :class:`IDocumentSource`;
- :meth:`IngestionService.ingest_single` takes one in-memory document, as
  delivered by the upload webhook or the CLI.

Every chunk becomes a :class:`ChunkRecord` whose id is a hash of
``(path, chunk number)``, so re-ingesting a document overwrites its
previous chunks instead of duplicating them.  Classification comes from
the first path segment; documents outside the four prefixes are stored
as ``unknown`` and never match a query filter.

Failure policy:

- download / extraction problems skip the document and are reported in
  :attr:`IngestionResult.failures`;
- embedding and upload errors abort the document *and* the run, since a
  half-written document would leave the index with partial provenance.
"""

from __future__ import annotations

import base64
import hashlib
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import PurePosixPath

import structlog

from ragdesk.interfaces.document_index_provider import IDocumentIndexProvider
from ragdesk.interfaces.document_source import IDocumentSource
from ragdesk.interfaces.embedding_provider import IEmbeddingProvider
from ragdesk.models.ingestion import ChunkRecord, IngestionFailure, IngestionResult, SourceDocument
from ragdesk.services.ingestion.chunker import TextChunker
from ragdesk.services.ingestion.document_extractor import (
    SUPPORTED_EXTENSIONS,
    DocumentExtractor,
    file_extension,
)
from ragdesk.services.policy import infer_classification, infer_doc_type
from ragdesk.utils.errors import ConfigurationError, ProviderError, UnsupportedFileTypeError
from ragdesk.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 16


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IngestionService:
    """Coordinates source, extractor, chunker, embedder and index.

    Parameters
    ----------
    extractor:
        Turns raw bytes into text.
    chunker:
        Splits text into overlapping windows.
    embedding_provider:
        Embeds chunk texts.
    index:
        Receives the chunk records.
    source:
        Document storage for batch runs; ``None`` allows single-file
        ingestion only.
    batch_size:
        Chunks embedded and uploaded per index call.
    clock:
        Returns the ``createdUtc`` timestamp; tests pass a fixed one.
    """

    def __init__(
        self,
        extractor: DocumentExtractor,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        index: IDocumentIndexProvider,
        source: IDocumentSource | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._extractor = extractor
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._index = index
        self._source = source
        self._batch_size = max(1, batch_size)
        self._clock = clock

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    @staticmethod
    def make_chunk_id(path: str, chunkid: int) -> str:
        """Deterministic, index-key-safe id for chunk *chunkid* of *path*."""
        digest = hashlib.sha256(f"{path}::chunk::{chunkid}".encode("utf-8")).digest()
        return "b_" + _b64url(digest)

    @staticmethod
    def make_source_id(path: str) -> str:
        return "b_" + _b64url(path.encode("utf-8"))

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def ingest_batch(self, prefix: str, max_files: int) -> IngestionResult:
        """Ingest up to *max_files* supported documents stored under *prefix*.

        Raises
        ------
        ConfigurationError
            If no document source was configured.
        ragdesk.utils.errors.ProviderError
            If listing, embedding or uploading fails.
        """
        if self._source is None:
            raise ConfigurationError(message="No document source configured for batch ingestion")

        start = time.monotonic()
        names = await self._source.list_documents(prefix, max_files, extensions=SUPPORTED_EXTENSIONS)
        logger.info("ingestion_batch_started", prefix=prefix, max_files=max_files, documents=len(names))

        files = 0
        chunks = 0
        failures: list[IngestionFailure] = []

        for name in names:
            try:
                raw = await self._source.download(name)
                text = await self._extractor.extract(name, raw)
            except (ProviderError, UnsupportedFileTypeError) as exc:
                logger.warning(
                    "ingestion_document_failed",
                    path=name,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                failures.append(IngestionFailure(path=name, error=f"{type(exc).__name__}: {exc}"))
                continue

            if not text:
                logger.info("ingestion_document_empty", path=name)
                continue

            document = SourceDocument(
                path=name,
                source_id=self.make_source_id(name),
                title=PurePosixPath(name).name,
                content=text,
            )
            chunks += await self._ingest_document(document)
            files += 1

        result = IngestionResult(
            files_processed=files,
            chunks_uploaded=chunks,
            failures=failures,
            elapsed_ms=self._elapsed_ms(start),
        )
        logger.info(
            "ingestion_batch_complete",
            prefix=prefix,
            files=files,
            chunks=chunks,
            failures=len(failures),
            elapsed_ms=result.elapsed_ms,
        )
        return result

    async def ingest_single(self, file_name: str, raw_bytes: bytes) -> IngestionResult:
        """Ingest one in-memory document stored at *file_name*.

        Unsupported extensions and documents without text produce an empty
        result instead of an error.
        """
        start = time.monotonic()
        if file_extension(file_name) not in SUPPORTED_EXTENSIONS:
            logger.info("ingestion_unsupported_skipped", path=file_name)
            return IngestionResult(elapsed_ms=self._elapsed_ms(start))

        text = await self._extractor.extract(file_name, raw_bytes)
        if not text:
            logger.info("ingestion_document_empty", path=file_name)
            return IngestionResult(elapsed_ms=self._elapsed_ms(start))

        document = SourceDocument(
            path=file_name,
            source_id=self.make_source_id(file_name),
            title=PurePosixPath(file_name).name,
            content=text,
        )
        chunks = await self._ingest_document(document)
        return IngestionResult(
            files_processed=1,
            chunks_uploaded=chunks,
            elapsed_ms=self._elapsed_ms(start),
        )

    # ------------------------------------------------------------------
    # Shared pipeline: chunk -> embed -> upload
    # ------------------------------------------------------------------

    async def _ingest_document(self, document: SourceDocument) -> int:
        classification = infer_classification(document.path)
        doc_type = infer_doc_type(document.path)
        created = self._clock()
        chunk_texts = list(self._chunker.chunk(document.content))

        uploaded = 0
        for offset in range(0, len(chunk_texts), self._batch_size):
            batch = chunk_texts[offset : offset + self._batch_size]
            vectors = await self._embedding_provider.embed_batch(batch)

            records = [
                ChunkRecord(
                    chunk_id=self.make_chunk_id(document.path, offset + position),
                    content=text,
                    source=document.path,
                    path=document.path,
                    classification=classification,
                    chunk_index=offset + position,
                    created_utc=created,
                    vector=vector,
                )
                for position, (text, vector) in enumerate(zip(batch, vectors), start=1)
            ]
            uploaded += await self._index.upload(records)

        logger.info(
            "ingestion_document_complete",
            path=document.path,
            source_id=document.source_id,
            classification=classification,
            doc_type=doc_type,
            chunks=uploaded,
        )
        return uploaded

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
