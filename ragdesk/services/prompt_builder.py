"""Grounding prompt assembly for the support-desk LLM call.

The prompt is a single user message made of labelled sections::

    identity line
    === HARD RULES (NON-NEGOTIABLE) ===
    === USER METADATA ===
    === INTERNAL EVIDENCE ===
    === WEB EVIDENCE (OPTIONAL) ===
    === USER QUESTION ===
    === RESPONSE RULES (IMPORTANT) ===   (guardrails, always appended)

The boundary shown under USER METADATA is the *effective* boundary after
the policy gate, not what the caller asked for.
"""

from __future__ import annotations

from dataclasses import dataclass

# Evidence-grounding rules placed before the evidence.
_PROMPT_TEMPLATE = """\
You are {assistant_name}, an enterprise support assistant.

=== HARD RULES (NON-NEGOTIABLE) ===
1) Use ONLY the evidence provided in "Internal evidence" and "Web evidence".
2) If evidence is missing/unclear, say "Not confirmed by sources" and ask a clarifying question.
3) Do NOT invent details, dates, version numbers, or steps.
4) Do NOT paste raw URLs in the answer. Sources must come from the citations list produced by the system.
5) Do NOT claim actions were performed (e.g., "I escalated" / "after escalation" / "we have escalated").
   You MAY mention escalation only as a conditional next step ("If confirmed, escalate to Tier-2") AND only if supported by evidence.
6) Keep the answer concise and actionable.

=== USER METADATA ===
- boundary: {boundary}
- userRole: {user_role}
- userGroup: {user_group}
- conversationId: {conversation_id}

=== INTERNAL EVIDENCE ===
{internal_context}

=== WEB EVIDENCE (OPTIONAL) ===
{web_context}

=== USER QUESTION ===
{question}
"""

# Source-grounding and timeline-consistency rules placed after the question.
_GUARDRAILS_TEMPLATE = (
    "\n\n=== RESPONSE RULES (IMPORTANT) ===\n"
    "1) Use only facts supported by the provided citations (especially dates, versions, "
    "affected products, and mitigations).\n"
    "2) If a detail is not supported by citations, say \"Not confirmed by sources\" and do not guess.\n"
    "3) If you include a timeline, label each entry as one of: discovered / reported / removed / "
    "patched, and keep the timeline internally consistent.\n"
    "4) Prefer concise, actionable mitigations.\n"
    "5) Escalation flag for this response: {escalation_flag}. Never state or imply that an "
    "escalation was performed unless this flag is true.\n"
    "=== END RULES ===\n"
)


@dataclass(frozen=True)
class PromptContext:
    """Everything the prompt needs for one chat turn."""

    question: str
    boundary: str
    user_role: str
    internal_context: str = ""
    web_context: str | None = None
    user_group: str | None = None
    conversation_id: str | None = None
    escalation_flag: bool = False


class PromptBuilder:
    """Renders :class:`PromptContext` into the final LLM prompt."""

    def __init__(self, assistant_name: str = "RagDesk") -> None:
        self._assistant_name = assistant_name

    def build(self, context: PromptContext) -> str:
        web_context = context.web_context
        base = _PROMPT_TEMPLATE.format(
            assistant_name=self._assistant_name,
            boundary=context.boundary,
            user_role=context.user_role,
            user_group=context.user_group or "",
            conversation_id=context.conversation_id or "",
            internal_context=context.internal_context,
            web_context=web_context if web_context and web_context.strip() else "[none]",
            question=context.question,
        )
        guardrails = _GUARDRAILS_TEMPLATE.format(
            escalation_flag="true" if context.escalation_flag else "false",
        )
        return base + guardrails
