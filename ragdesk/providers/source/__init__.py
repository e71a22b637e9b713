"""Document source adapters, selected by INGEST_SOURCE."""

from ragdesk.providers.source.azure_blob_source import AzureBlobDocumentSource
from ragdesk.providers.source.local_directory_source import LocalDirectoryDocumentSource

__all__ = ["AzureBlobDocumentSource", "LocalDirectoryDocumentSource"]
