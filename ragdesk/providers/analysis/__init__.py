"""PDF analysis adapters.

main.py uses Document Intelligence when DOCINTEL_ENDPOINT is set and
falls back to the local PyMuPDF text layer otherwise.
"""

from ragdesk.providers.analysis.azure_document_intelligence_provider import (
    AzureDocumentIntelligenceProvider,
)
from ragdesk.providers.analysis.pymupdf_provider import PyMuPDFAnalysisProvider

__all__ = ["AzureDocumentIntelligenceProvider", "PyMuPDFAnalysisProvider"]
