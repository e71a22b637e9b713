"""Chat orchestration: one question in, one grounded answer out.

State machine for a single chat turn::

    Validating -> PolicyGate -> Retrieving -> EvidenceAssessment
        -> { NeedWebConfirmation | WebSearching | SkipWeb }
        -> Prompting -> Generating -> Responding

with early exits:

    BadRequest   -- InvalidRequestError raised (blank message, bad token)
    Escalated    -- normal result with escalation.should_escalate = True
    InternalError -- anything unexpected; handled by the HTTP layer

Web search is a two-step flow.  When internal evidence is insufficient
and web search is allowed, the first call returns a confirmation prompt
and a signed ``webSearchToken`` bound to the question.  The client
resends the same question with ``confirmWebSearch=true`` and the token;
only then does the web search run.

Every step appends short machine-readable ``actionHints`` so a caller
can see why the pipeline behaved as it did without reading logs.
"""

from __future__ import annotations

import structlog

from ragdesk.config.settings import Settings
from ragdesk.interfaces.llm_provider import ILLMProvider
from ragdesk.models.chat import ChatQuery, ChatResult, EscalationInfo, ModeInfo
from ragdesk.models.classification import Classification
from ragdesk.models.evidence import Citation
from ragdesk.pipeline.confirmation_token import SignedTokenService
from ragdesk.services.evidence import assess_evidence, format_score
from ragdesk.services.policy import evaluate_policy
from ragdesk.services.prompt_builder import PromptBuilder, PromptContext
from ragdesk.services.retrieval_service import RetrievalService
from ragdesk.services.web_search_service import WebSearchService
from ragdesk.utils.errors import InvalidRequestError, LLMError, RateLimitError
from ragdesk.utils.logging import get_logger

ESCALATION_ANSWER = (
    "This request needs to be handled by an authorized support specialist, so I can't answer it "
    "directly. It has been flagged for human follow-up; please contact your support team "
    "if you need help sooner."
)

WEB_CONFIRMATION_ANSWER = (
    "Internal knowledge base did not return enough relevant evidence to answer this question.\n"
    "Would you like me to run a Web Search ({provider}) to supplement the answer?\n\n"
    "If yes, resend the request with confirmWebSearch=true and include webSearchToken."
)


class ChatOrchestrator:
    """Runs the chat state machine for one request at a time.

    All collaborators are injected; the orchestrator holds no per-request
    state, so one instance serves every concurrent request.
    """

    def __init__(
        self,
        settings: Settings,
        retrieval_service: RetrievalService,
        web_search_service: WebSearchService,
        token_service: SignedTokenService,
        prompt_builder: PromptBuilder,
        llm: ILLMProvider | None,
        llm_key_name: str = "GROQ_API_KEY",
    ) -> None:
        self._settings = settings
        self._retrieval = retrieval_service
        self._web_search = web_search_service
        self._tokens = token_service
        self._prompt_builder = prompt_builder
        self._llm = llm
        self._llm_key_name = llm_key_name
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, query: ChatQuery) -> ChatResult:
        """Answer *query*.

        Raises
        ------
        InvalidRequestError
            For a blank message or a missing / invalid web-search token.
        """
        # Validating
        message = (query.message or "").strip()
        if not message:
            raise InvalidRequestError(
                message="Field 'message' is required.",
                details={"field": "message"},
            )

        # PolicyGate
        requested = query.data_boundary
        if requested is None or not requested.strip():
            requested = self._settings.data_boundary_default
        decision = evaluate_policy(query.user_role, requested)

        internal_top_k = self._settings.internal_topk
        web_top_k = self._settings.web_topk
        hints = [
            f"cfg:internalTopK={internal_top_k}",
            f"cfg:webTopK={web_top_k}",
            f"serverRequestId={query.request_id}",
        ]
        if query.client_correlation_id:
            hints.append(f"clientCorrelationId={query.client_correlation_id}")

        if decision.escalate or decision.effective is None:
            hints.append("policy:escalated")
            self._logger.info(
                "chat_escalated",
                role=decision.role,
                requested=decision.requested,
                reason=decision.reason,
            )
            return self._result(
                query,
                answer=ESCALATION_ANSWER,
                hints=hints,
                escalation=EscalationInfo(should_escalate=True, reason=decision.reason),
            )

        effective = decision.effective
        self._logger.debug(
            "chat_policy_resolved",
            role=decision.role,
            requested=decision.requested,
            effective=effective.value,
            issue_type=query.issue_type,
        )

        # Retrieving
        internal = await self._retrieval.retrieve(
            message,
            effective,
            internal_top_k,
            user_role=decision.role,
            user_group=query.user_group or "",
        )
        hints.append("used:internal_search" if internal.citations else "used:internal_search_empty")
        if internal.debug:
            hints.append(f"internal:retrieval_degraded={internal.debug}")

        # EvidenceAssessment
        assessment = assess_evidence(message, internal, self._settings.search_min_score)
        hints.append(f"internal:bestScore={format_score(assessment.best_score)}")
        hints.append(f"internal:minScore={format_score(assessment.min_score)}")
        hints.append(f"internal:lowOverlap={'true' if assessment.low_overlap else 'false'}")
        if assessment.citations_filtered:
            hints.append("internal:citations_filtered=true")

        citations: list[Citation] = list(assessment.kept_citations)
        web_context: str | None = None
        web_allowed = self._web_allowed(effective)

        if assessment.need_web and web_allowed and not query.confirm_web_search:
            # NeedWebConfirmation
            hints.append("next:ask_user_for_web_search")
            token = self._tokens.mint(message)
            self._logger.info("chat_web_confirmation_requested", best_score=assessment.best_score)
            return self._result(
                query,
                answer=WEB_CONFIRMATION_ANSWER.format(provider=self._web_search.display_name),
                citations=citations,
                hints=hints,
                needs_web_confirmation=True,
                web_search_token=token,
            )

        if assessment.need_web and web_allowed:
            # WebSearching
            self._check_web_token(query.web_search_token, message)
            web = await self._web_search.search(message, web_top_k)
            web_context = web.context
            citations.extend(web.citations)
            hints.append("used:web_search")
        else:
            # SkipWeb
            hints.append("web_disabled_or_not_allowed" if assessment.need_web else "next:optional_web_search")

        # Prompting
        prompt = self._prompt_builder.build(
            PromptContext(
                question=message,
                boundary=effective.value,
                user_role=decision.role,
                internal_context=internal.context,
                web_context=web_context,
                user_group=query.user_group,
                conversation_id=query.conversation_id,
            )
        )

        # Generating
        answer = await self._generate(prompt, query.request_id)

        # Responding
        self._logger.info(
            "chat_completed",
            boundary=effective.value,
            citations=len(citations),
            need_web=assessment.need_web,
        )
        return self._result(query, answer=answer, citations=citations, hints=hints)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _web_allowed(self, effective: Classification) -> bool:
        return (
            effective is Classification.PUBLIC
            and self._web_search.is_enabled()
            and self._tokens.is_configured
        )

    def _check_web_token(self, token: str | None, message: str) -> None:
        if token is None or not token.strip():
            raise InvalidRequestError(
                message="Field 'webSearchToken' is required when confirmWebSearch=true.",
                details={"field": "webSearchToken"},
            )
        if not self._tokens.verify(token.strip(), message):
            self._logger.info("chat_web_token_rejected")
            raise InvalidRequestError(
                message="Invalid or expired webSearchToken.",
                details={"field": "webSearchToken"},
            )

    async def _generate(self, prompt: str, request_id: str) -> str:
        """Call the LLM; provider failures become a short inline error answer."""
        if self._llm is None or not self._llm.is_available():
            return f"[error] {self._llm_key_name} not configured."

        provider = self._llm.get_provider_name()
        try:
            return await self._llm.complete(
                prompt,
                temperature=self._settings.llm_temperature,
                max_tokens=self._settings.llm_max_tokens,
                correlation_id=request_id,
            )
        except RateLimitError:
            return f"[error] {provider} rate limit hit (429). Try again later or use fallback."
        except LLMError as exc:
            self._logger.warning("chat_generation_failed", provider=provider, status=exc.status_code)
            status = exc.status_code if exc.status_code is not None else "no response"
            return f"[error] {provider} call failed ({status})."

    def _result(
        self,
        query: ChatQuery,
        answer: str,
        hints: list[str],
        citations: list[Citation] | None = None,
        needs_web_confirmation: bool = False,
        web_search_token: str | None = None,
        escalation: EscalationInfo | None = None,
    ) -> ChatResult:
        return ChatResult(
            answer=answer,
            citations=citations or [],
            action_hints=hints,
            request_id=query.request_id,
            needs_web_confirmation=needs_web_confirmation,
            web_search_token=web_search_token,
            escalation=escalation or EscalationInfo(),
            mode=ModeInfo(retrieval=self._settings.retrieval_mode, llm=self._settings.llm_mode()),
        )
