"""ChromaDB document-index provider for local development.

Wraps ``chromadb.PersistentClient`` to implement
:class:`IDocumentIndexProvider` without any cloud service.  Query vectors
come from the injected :class:`IEmbeddingProvider`; the classification
filter becomes a ``where`` clause on the ``classification`` metadata key.

ChromaDB has no lexical ranking: ``keyword`` mode is a vector query
restricted to documents containing the query text.  Scores are reported
as cosine similarity (``1 - distance``).
"""

from __future__ import annotations

import asyncio
from typing import Any

import chromadb
import structlog

from ragdesk.interfaces.document_index_provider import IDocumentIndexProvider, IndexHit, IndexQuery
from ragdesk.interfaces.embedding_provider import IEmbeddingProvider
from ragdesk.models.ingestion import ChunkRecord
from ragdesk.utils.errors import IndexUploadError, ProviderError, ProviderFatalError

logger = structlog.get_logger(logger_name=__name__)


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Stops ChromaDB from loading its default ONNX model.

    Every vector is computed by the injected embedding provider and passed
    explicitly, so this function is never called.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError("ragdesk passes pre-computed embeddings")

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBIndexProvider(IDocumentIndexProvider):
    """Document index backed by a persistent ChromaDB collection."""

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "ragdesk_chunks",
        classification_field: str = "classification",
        client: Any | None = None,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._classification_field = classification_field
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # A collection persisted with a different embedding function rejects
        # ours with ValueError; open it as-is since vectors are always explicit.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    # ------------------------------------------------------------------
    # IDocumentIndexProvider implementation
    # ------------------------------------------------------------------

    async def search(self, query: IndexQuery) -> list[IndexHit]:
        query_vector = await self._embedding_provider.embed(query.text)
        kwargs: dict[str, Any] = {
            "query_embeddings": [query_vector],
            "n_results": query.top_k,
            "where": {
                self._classification_field: {"$in": list(query.classification_filter.values)},
            },
            "include": ["documents", "metadatas", "distances"],
        }
        if query.query_mode == "keyword":
            kwargs["where_document"] = {"$contains": query.text}

        try:
            raw = await asyncio.to_thread(self._collection.query, **kwargs)
        except Exception as exc:  # noqa: BLE001
            raise ProviderFatalError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return self._to_hits(raw)

    async def upload(self, records: list[ChunkRecord]) -> int:
        if not records:
            return 0
        try:
            await asyncio.to_thread(
                self._collection.upsert,
                ids=[record.chunk_id for record in records],
                embeddings=[record.vector for record in records],
                documents=[record.content for record in records],
                metadatas=[self._record_metadata(record) for record in records],
            )
        except ProviderError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise IndexUploadError(
                message=f"ChromaDB upsert of {len(records)} records failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_upsert", documents=len(records))
        return len(records)

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record_metadata(self, record: ChunkRecord) -> dict[str, str | int]:
        return {
            "source": record.source,
            "path": record.path,
            self._classification_field: record.classification,
            "chunkid": record.chunk_index,
            "page": record.page,
            "createdUtc": record.created_utc.isoformat(),
        }

    @staticmethod
    def _to_hits(raw: dict[str, Any]) -> list[IndexHit]:
        ids = (raw.get("ids") or [[]])[0]
        documents = (raw.get("documents") or [[]])[0] or []
        metadatas = (raw.get("metadatas") or [[]])[0] or []
        distances = (raw.get("distances") or [[]])[0] or []

        hits: list[IndexHit] = []
        for position, chunk_id in enumerate(ids):
            meta = metadatas[position] if position < len(metadatas) and metadatas[position] else {}
            distance = distances[position] if position < len(distances) else 1.0
            chunk_index = meta.get("chunkid")
            hits.append(
                IndexHit(
                    id=str(chunk_id),
                    content=documents[position] if position < len(documents) else "",
                    score=round(1.0 - float(distance), 6),
                    source=str(meta.get("source", "")),
                    path=str(meta.get("path", "")),
                    chunk_id=chunk_index if isinstance(chunk_index, int) else None,
                    page=meta.get("page"),
                    created_utc=meta.get("createdUtc"),
                )
            )
        return hits
