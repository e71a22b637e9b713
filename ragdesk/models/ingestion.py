"""Ingestion data models: source documents, indexed chunk records, run results."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SourceDocument(BaseModel):
    """A document read from storage, before chunking.  Discarded after the run."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Storage path / blob name, e.g. 'public/faq-vpn.docx'.")
    source_id: str = Field(description="Stable identifier of the source document.")
    title: str = Field(default="", description="Human-readable title (file name).")
    content: str = Field(default="", description="Extracted, normalized text.")


class ChunkRecord(BaseModel):
    """One indexed unit: a chunk of text plus provenance and its embedding.

    ``chunk_id`` is a deterministic hash of ``(path, chunkid)`` so that
    re-ingesting the same document overwrites instead of duplicating.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    content: str
    source: str
    path: str
    classification: str
    chunk_index: int = Field(ge=1, description="1-based position of the chunk in its document.")
    page: int = 1
    created_utc: datetime
    vector: list[float] = Field(default_factory=list)

    def to_index_document(self, vector_field: str = "contentVector") -> dict[str, Any]:
        """Render the record with the index's field names."""
        return {
            "id": self.chunk_id,
            "content": self.content,
            "source": self.source,
            "path": self.path,
            "classification": self.classification,
            "chunkid": self.chunk_index,
            "page": self.page,
            "createdUtc": self.created_utc.isoformat().replace("+00:00", "Z"),
            vector_field: self.vector,
        }


class IngestionFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    error: str


class IngestionResult(BaseModel):
    """Statistics about one ingestion run (batch or single document)."""

    model_config = ConfigDict(frozen=True)

    files_processed: int = Field(default=0, ge=0)
    chunks_uploaded: int = Field(default=0, ge=0)
    failures: list[IngestionFailure] = Field(default_factory=list)
    elapsed_ms: int = Field(default=0, ge=0)
