"""Document ingestion pipeline for the support-desk knowledge base.

Orchestrates **extract -> chunk -> embed -> upload**:

1. **Extract** (document_extractor.py / DocumentExtractor) -- text, Word and
   PDF documents become normalized plain text.
2. **Chunk** (chunker.py / TextChunker) -- 1200-character windows with a
   150-character overlap.
3. **Embed** (via IEmbeddingProvider) -- batches of 16 chunks.
4. **Upload** (via IDocumentIndexProvider) -- upsert by deterministic id.

IngestionService runs the pipeline over a storage prefix or a single
document; UploadTrigger is the ingest-on-upload entry point.
"""

from ragdesk.services.ingestion.chunker import TextChunker, chunk_by_chars
from ragdesk.services.ingestion.document_extractor import DocumentExtractor
from ragdesk.services.ingestion.ingestion_service import IngestionService
from ragdesk.services.ingestion.upload_trigger import UploadTrigger

__all__ = [
    "DocumentExtractor",
    "IngestionService",
    "TextChunker",
    "UploadTrigger",
    "chunk_by_chars",
]
