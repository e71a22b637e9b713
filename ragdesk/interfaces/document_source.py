"""Abstract base class for the storage that holds documents to ingest."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection


# Concrete implementations (ragdesk/providers/source/):
#   LocalDirectoryDocumentSource - files under a local root directory
#   AzureBlobDocumentSource      - blobs in a container addressed by a SAS URL
class IDocumentSource(ABC):
    """Contract for listing and downloading stored documents.

    Names are storage paths relative to the source root using ``/`` as the
    separator, e.g. ``"internal/policy-remote-access.pdf"``.  The first
    segment decides the document's classification.
    """

    @abstractmethod
    async def list_documents(
        self,
        prefix: str,
        max_files: int,
        extensions: Collection[str] | None = None,
    ) -> list[str]:
        """Return up to *max_files* document names under *prefix*, sorted.

        When *extensions* is given (lowercase, with the dot) other files are
        skipped and do not count towards *max_files*.

        Raises
        ------
        ragdesk.utils.errors.ProviderError
            If the listing itself fails.
        """

    @abstractmethod
    async def download(self, name: str) -> bytes:
        """Return the raw bytes of document *name*.

        Raises
        ------
        ragdesk.utils.errors.ProviderError
            If the document cannot be read.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier."""
