"""Ingest-on-upload: index a document as soon as it lands in storage.

Only ``.pdf``, ``.docx`` and ``.txt`` uploads are ingested; anything else
is skipped without error.  Markdown is deliberately batch-only.
"""

from __future__ import annotations

import structlog

from ragdesk.models.ingestion import IngestionResult
from ragdesk.services.ingestion.document_extractor import file_extension
from ragdesk.services.ingestion.ingestion_service import IngestionService
from ragdesk.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

UPLOAD_EXTENSIONS = frozenset({".pdf", ".docx", ".txt"})


class UploadTrigger:
    """Routes one uploaded blob into :meth:`IngestionService.ingest_single`."""

    def __init__(self, ingestion_service: IngestionService) -> None:
        self._ingestion_service = ingestion_service

    async def handle(self, blob_name: str, content: bytes) -> IngestionResult | None:
        """Ingest *content* stored as *blob_name*; ``None`` when skipped."""
        logger.info("upload_trigger_fired", blob_name=blob_name, bytes=len(content))

        if file_extension(blob_name) not in UPLOAD_EXTENSIONS:
            logger.info("upload_trigger_skipped", blob_name=blob_name)
            return None

        result = await self._ingestion_service.ingest_single(blob_name, content)
        logger.info(
            "upload_trigger_done",
            blob_name=blob_name,
            files=result.files_processed,
            chunks=result.chunks_uploaded,
        )
        return result
