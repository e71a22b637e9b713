"""Document index adapters, selected by RETRIEVAL_MODE.

    - AzureSearchIndexProvider - Azure AI Search REST API (azureaisearch)
    - ChromaDBIndexProvider    - local persistent ChromaDB collection (chromadb)
"""

from ragdesk.providers.index.azure_search_provider import AzureSearchIndexProvider
from ragdesk.providers.index.chromadb_provider import ChromaDBIndexProvider

__all__ = ["AzureSearchIndexProvider", "ChromaDBIndexProvider"]
