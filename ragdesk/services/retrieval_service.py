"""Internal evidence retrieval against the document index.

Every query carries the classification filter for the caller's effective
boundary; :class:`IndexQuery` refuses to exist without one.  Index
failures never fail the chat request: they degrade to an empty
:class:`EvidenceBundle` whose ``debug`` code says what went wrong.
"""

from __future__ import annotations

import structlog

from ragdesk.interfaces.document_index_provider import IDocumentIndexProvider, IndexHit, IndexQuery
from ragdesk.models.classification import Classification
from ragdesk.models.evidence import Citation, EvidenceBundle
from ragdesk.services.policy import build_classification_filter
from ragdesk.utils.errors import ProviderError
from ragdesk.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

_SNIPPET_CHARS = 300


class RetrievalService:
    """Turns a question plus effective boundary into internal evidence.

    Parameters
    ----------
    index:
        Document index provider, or ``None`` when retrieval is disabled.
    query_mode:
        ``keyword``, ``vector`` or ``hybrid``.
    classification_field:
        Index field holding the stored classification value.
    hit_min_score:
        Hits scoring below this are dropped.
    """

    def __init__(
        self,
        index: IDocumentIndexProvider | None,
        query_mode: str = "hybrid",
        classification_field: str = "classification",
        hit_min_score: float = 0.0,
    ) -> None:
        self._index = index
        self._query_mode = query_mode
        self._classification_field = classification_field
        self._hit_min_score = hit_min_score

    @property
    def enabled(self) -> bool:
        return self._index is not None

    async def retrieve(
        self,
        question: str,
        boundary: Classification,
        top_k: int,
        user_role: str = "",
        user_group: str = "",
    ) -> EvidenceBundle:
        if self._index is None:
            return EvidenceBundle(debug="retrieval_disabled")

        query = IndexQuery(
            text=question,
            classification_filter=build_classification_filter(boundary, self._classification_field),
            top_k=top_k,
            query_mode=self._query_mode,
            boundary=boundary.value,
            user_role=user_role,
            user_group=user_group,
        )

        try:
            hits = await self._index.search(query)
        except ProviderError as exc:
            logger.warning(
                "retrieval_degraded",
                provider=self._index.get_provider_name(),
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return EvidenceBundle(debug=f"retrieval_failed:{type(exc).__name__}")

        kept = [hit for hit in hits if hit.score >= self._hit_min_score]
        context = "\n\n".join(hit.content.strip() for hit in kept if hit.content.strip())
        citations = [self._to_citation(hit) for hit in kept]

        logger.info(
            "retrieval_complete",
            boundary=boundary.value,
            hits=len(hits),
            kept=len(kept),
        )
        return EvidenceBundle(context=context, citations=citations)

    @staticmethod
    def _to_citation(hit: IndexHit) -> Citation:
        return Citation(
            title=hit.source or hit.path or None,
            url_or_id=hit.id,
            snippet=hit.content[:_SNIPPET_CHARS],
            score=hit.score,
        )
