"""Provider interfaces - the swappable seams around external services."""

from ragdesk.interfaces.document_analysis_provider import IDocumentAnalysisProvider
from ragdesk.interfaces.document_index_provider import IDocumentIndexProvider, IndexHit, IndexQuery
from ragdesk.interfaces.document_source import IDocumentSource
from ragdesk.interfaces.embedding_provider import IEmbeddingProvider
from ragdesk.interfaces.llm_provider import ILLMProvider
from ragdesk.interfaces.web_search_provider import IWebSearchProvider, SearchResult

__all__ = [
    "IDocumentAnalysisProvider",
    "IDocumentIndexProvider",
    "IDocumentSource",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IWebSearchProvider",
    "IndexHit",
    "IndexQuery",
    "SearchResult",
]
