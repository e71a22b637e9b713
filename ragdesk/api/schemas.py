"""Pydantic request/response schemas for the ragdesk HTTP API.

Field names are snake_case in Python and camelCase on the wire
(``alias_generator=to_camel``).  Requests accept either spelling;
responses are always serialized with the camelCase aliases.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ragdesk.models.chat import ChatResult
from ragdesk.models.evidence import Citation


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatRequest(_WireModel):
    """Body of ``POST /api/chat``.

    ``requestType`` is the legacy name of ``dataBoundary`` and is only used
    when ``dataBoundary`` is absent.
    """

    message: str | None = None
    issue_type: str | None = None
    data_boundary: str | None = None
    request_type: str | None = None
    user_role: str | None = None
    user_group: str | None = None
    conversation_id: str | None = None
    confirm_web_search: bool | None = None
    web_search_token: str | None = None

    def requested_boundary(self) -> str | None:
        if self.data_boundary is not None and self.data_boundary.strip():
            return self.data_boundary
        return self.request_type


class EscalationResponse(_WireModel):
    should_escalate: bool = False
    reason: str = ""


class ModeResponse(_WireModel):
    retrieval: str
    llm: str


class ChatResponse(_WireModel):
    """Body of a 200 chat response (answered, escalated or awaiting confirmation)."""

    answer: str
    citations: list[Citation] = Field(default_factory=list)
    action_hints: list[str] = Field(default_factory=list)
    needs_web_confirmation: bool = False
    web_search_token: str | None = None
    request_id: str
    escalation: EscalationResponse = Field(default_factory=EscalationResponse)
    mode: ModeResponse

    @classmethod
    def from_result(cls, result: ChatResult) -> ChatResponse:
        return cls(
            answer=result.answer,
            citations=result.citations,
            action_hints=result.action_hints,
            needs_web_confirmation=result.needs_web_confirmation,
            web_search_token=result.web_search_token,
            request_id=result.request_id,
            escalation=EscalationResponse(
                should_escalate=result.escalation.should_escalate,
                reason=result.escalation.reason,
            ),
            mode=ModeResponse(retrieval=result.mode.retrieval, llm=result.mode.llm),
        )


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class IngestRequest(_WireModel):
    """Body of ``POST /api/ingest``; an empty body means all defaults."""

    prefix: str | None = None
    max_files: int | None = None


class IngestResponse(_WireModel):
    status: str = "ok"
    request_id: str
    prefix: str
    max_files: int
    files_processed: int
    chunks_uploaded: int
    elapsed_ms: int
    action_hints: list[str] = Field(default_factory=list)


class UploadIngestResponse(_WireModel):
    """Result of the ingest-on-upload webhook; ``status`` is ``ok`` or ``skipped``."""

    status: str
    request_id: str
    path: str
    files_processed: int = 0
    chunks_uploaded: int = 0


# ---------------------------------------------------------------------------
# Errors / health
# ---------------------------------------------------------------------------


class ErrorInfo(_WireModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class ErrorResponse(_WireModel):
    """Error envelope for every non-2xx response."""

    request_id: str
    error: ErrorInfo


class HealthResponse(_WireModel):
    status: str = "ok"
    version: str
    providers: dict[str, str] = Field(default_factory=dict)
