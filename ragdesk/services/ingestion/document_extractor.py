"""Plain-text extraction for stored documents, dispatched by file extension.

    .txt / .md -> UTF-8 decode (BOM stripped, invalid bytes replaced)
    .docx      -> python-docx paragraphs, one per line
    .pdf       -> injected IDocumentAnalysisProvider

The output is always newline-normalized and stripped.
"""

from __future__ import annotations

import asyncio
import io
from pathlib import PurePosixPath

import structlog
from docx import Document

from ragdesk.interfaces.document_analysis_provider import IDocumentAnalysisProvider
from ragdesk.utils.errors import ProviderFatalError, UnsupportedFileTypeError

logger = structlog.get_logger(logger_name=__name__)

SUPPORTED_EXTENSIONS = frozenset({".pdf", ".docx", ".txt", ".md"})


def file_extension(file_name: str) -> str:
    return PurePosixPath(file_name.replace("\\", "/")).suffix.lower()


def normalize_text(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()


class DocumentExtractor:
    """Extracts text from raw document bytes.

    Parameters
    ----------
    pdf_analyzer:
        Provider used for ``.pdf`` files.
    """

    def __init__(self, pdf_analyzer: IDocumentAnalysisProvider) -> None:
        self._pdf_analyzer = pdf_analyzer

    async def extract(self, file_name: str, content: bytes) -> str:
        """Return the normalized text of *content*.

        Raises
        ------
        UnsupportedFileTypeError
            If the extension is not one of :data:`SUPPORTED_EXTENSIONS`.
        ProviderFatalError
            If the document bytes cannot be parsed.
        """
        extension = file_extension(file_name)

        if extension in (".txt", ".md"):
            text = content.decode("utf-8-sig", errors="replace")
        elif extension == ".docx":
            try:
                text = await asyncio.to_thread(self._docx_text, content)
            except Exception as exc:  # noqa: BLE001
                raise ProviderFatalError(
                    message=f"Could not read DOCX {file_name}: {exc}",
                    provider_name="python-docx",
                ) from exc
        elif extension == ".pdf":
            text = await self._pdf_analyzer.analyze(content, file_name=file_name)
        else:
            raise UnsupportedFileTypeError(
                message=f"Unsupported file type: {extension or '<none>'} ({file_name})",
                file_name=file_name,
            )

        text = normalize_text(text)
        logger.debug("document_extracted", file_name=file_name, extension=extension, chars=len(text))
        return text

    @staticmethod
    def _docx_text(content: bytes) -> str:
        doc = Document(io.BytesIO(content))
        return "\n".join(para.text for para in doc.paragraphs if para.text.strip())
