"""Abstract base class for PDF-to-text document analysis providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations (ragdesk/providers/analysis/):
#   AzureDocumentIntelligenceProvider - remote submit + poll analysis
#   PyMuPDFAnalysisProvider           - local text-layer extraction
class IDocumentAnalysisProvider(ABC):
    """Contract for turning a binary PDF into plain text."""

    @abstractmethod
    async def analyze(self, content: bytes, file_name: str = "") -> str:
        """Extract the document's text.

        Parameters
        ----------
        content:
            Raw PDF bytes.
        file_name:
            Used for logging only.

        Returns
        -------
        str
            Concatenated text of all pages (may be empty).

        Raises
        ------
        ragdesk.utils.errors.ProviderTransientError
            If analysis did not finish within the polling budget.
        ragdesk.utils.errors.ProviderFatalError
            If the provider reported failure or an unusable response.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier."""
