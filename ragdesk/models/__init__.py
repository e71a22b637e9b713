"""ragdesk domain models - re-exports all public model classes.

    - chat.py           - Chat pipeline input/output
    - classification.py - Classification lattice and caller roles
    - evidence.py       - Citations, evidence bundles, evidence assessment
    - ingestion.py      - Source documents, chunk records, ingestion results
"""

from __future__ import annotations

from ragdesk.models.chat import ChatQuery, ChatResult, EscalationInfo, ModeInfo
from ragdesk.models.classification import UNKNOWN_CLASSIFICATION, Classification, Role
from ragdesk.models.evidence import Citation, EvidenceAssessment, EvidenceBundle
from ragdesk.models.ingestion import (
    ChunkRecord,
    IngestionFailure,
    IngestionResult,
    SourceDocument,
)

__all__ = [
    "ChatQuery",
    "ChatResult",
    "ChunkRecord",
    "Citation",
    "Classification",
    "EscalationInfo",
    "EvidenceAssessment",
    "EvidenceBundle",
    "IngestionFailure",
    "IngestionResult",
    "ModeInfo",
    "Role",
    "SourceDocument",
    "UNKNOWN_CLASSIFICATION",
]
