"""Evidence models shared by the retrieval and web-search paths.

Both evidence sources return the same :class:`EvidenceBundle` shape so the
chat pipeline never needs to inspect where a citation came from.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Citation(BaseModel):
    """Provenance unit attached to every piece of evidence shown to the model."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str | None = Field(default=None, description="Document source name or web page title.")
    url_or_id: str | None = Field(
        default=None,
        alias="urlOrId",
        description="Index document id for internal hits, URL for web hits.",
    )
    snippet: str | None = Field(default=None, description="Short excerpt of the cited text.")
    # Relevance score from the index; only used by the evidence heuristics.
    score: float | None = Field(default=None, exclude=True)


class EvidenceBundle(BaseModel):
    """Normalized ``{context, citations}`` produced by any evidence source."""

    model_config = ConfigDict(frozen=True)

    context: str = Field(default="", description="Free text assembled for the prompt.")
    citations: list[Citation] = Field(default_factory=list)
    # Short diagnostic code set when the source degraded to empty evidence.
    debug: str | None = None


class EvidenceAssessment(BaseModel):
    """Outcome of scoring internal evidence before the web-search decision."""

    model_config = ConfigDict(frozen=True)

    best_score: float
    min_score: float
    no_evidence: bool
    weak_evidence: bool
    low_overlap: bool
    kept_citations: list[Citation] = Field(default_factory=list)

    @property
    def need_web(self) -> bool:
        return self.no_evidence or self.weak_evidence or self.low_overlap

    @property
    def citations_filtered(self) -> bool:
        return self.weak_evidence or self.low_overlap
