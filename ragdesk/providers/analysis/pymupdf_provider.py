"""Local PDF text extraction with PyMuPDF (fitz).

Reads the embedded text layer page by page.  Scanned PDFs without a text
layer come back empty; configure Document Intelligence for those.
"""

from __future__ import annotations

import asyncio

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from ragdesk.interfaces.document_analysis_provider import IDocumentAnalysisProvider
from ragdesk.utils.errors import ProviderFatalError

logger = structlog.get_logger(logger_name=__name__)


class PyMuPDFAnalysisProvider(IDocumentAnalysisProvider):
    """Text-layer extraction; pages are separated by a blank line."""

    async def analyze(self, content: bytes, file_name: str = "") -> str:
        try:
            pages = await asyncio.to_thread(self._extract_pages, content)
        except Exception as exc:  # noqa: BLE001
            raise ProviderFatalError(
                message=f"Could not read PDF {file_name or '<bytes>'}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not pages:
            logger.warning("pdf_no_text_extracted", file_name=file_name)
        else:
            logger.debug("pdf_text_extracted", file_name=file_name, pages=len(pages))
        return "\n\n".join(pages)

    def get_provider_name(self) -> str:
        return "pymupdf"

    @staticmethod
    def _extract_pages(content: bytes) -> list[str]:
        doc = fitz.open(stream=content, filetype="pdf")
        pages: list[str] = []
        try:
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        finally:
            doc.close()
        return pages
