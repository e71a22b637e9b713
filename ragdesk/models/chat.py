"""Chat pipeline input and output models.

:class:`ChatQuery` is what the HTTP layer hands to the chat pipeline after
the body has been parsed; :class:`ChatResult` is what the pipeline
returns.  Wire-format (camelCase) concerns live in ``ragdesk.api.schemas``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ragdesk.models.evidence import Citation


class ChatQuery(BaseModel):
    """One chat turn as received, before policy normalization."""

    model_config = ConfigDict(frozen=True)

    message: str | None = None
    issue_type: str = "General"
    data_boundary: str | None = None
    user_role: str | None = None
    user_group: str | None = None
    conversation_id: str | None = None
    confirm_web_search: bool = False
    web_search_token: str | None = None
    request_id: str = Field(description="Server-generated id for this request.")
    client_correlation_id: str | None = None


class EscalationInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    should_escalate: bool = False
    reason: str = ""


class ModeInfo(BaseModel):
    """Which retrieval backend and LLM produced the answer."""

    model_config = ConfigDict(frozen=True)

    retrieval: str
    llm: str


class ChatResult(BaseModel):
    """Final outcome of one chat turn (answered, escalated or awaiting confirmation)."""

    model_config = ConfigDict(frozen=True)

    answer: str
    citations: list[Citation] = Field(default_factory=list)
    action_hints: list[str] = Field(default_factory=list)
    request_id: str
    needs_web_confirmation: bool = False
    web_search_token: str | None = None
    escalation: EscalationInfo = Field(default_factory=EscalationInfo)
    mode: ModeInfo
