"""Chat pipeline components for the ragdesk support assistant."""

from ragdesk.pipeline.chat_orchestrator import ChatOrchestrator
from ragdesk.pipeline.confirmation_token import SignedTokenService

__all__ = [
    "ChatOrchestrator",
    "SignedTokenService",
]
