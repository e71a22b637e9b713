"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
Groq exposes an OpenAI-compatible chat-completions API, so the client is
simply pointed at ``groq_base_url``; any other compatible gateway works the
same way.

The grounding prompt is sent as a single user message.  SDK exceptions are
translated into :class:`RateLimitError` (HTTP 429) or :class:`LLMError`
carrying the status code, so the chat pipeline can render a short inline
error without importing the SDK.
"""

from __future__ import annotations

import openai
import structlog

from ragdesk.config.settings import Settings
from ragdesk.interfaces.llm_provider import ILLMProvider
from ragdesk.utils.errors import LLMError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class OpenAICompatibleLLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat-completions endpoint."""

    def __init__(self, settings: Settings, display_name: str = "Groq") -> None:
        self._api_key = settings.groq_api_key.strip()
        self._model = settings.groq_model
        self._display_name = display_name
        self._client = openai.AsyncOpenAI(
            api_key=self._api_key or "unset",
            base_url=settings.groq_base_url,
            timeout=openai.Timeout(settings.http_timeout_seconds, connect=5.0),
            max_retries=0,
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 500,
        correlation_id: str | None = None,
    ) -> str:
        extra_headers = {"x-correlation-id": correlation_id} if correlation_id else None
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
                extra_headers=extra_headers,
            )
        except openai.RateLimitError as exc:
            logger.warning("llm_rate_limited", provider=self._display_name, model=self._model)
            raise RateLimitError(
                message=f"{self._display_name} rate limit hit",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIStatusError as exc:
            # The provider body can contain request details; keep it server-side.
            logger.warning(
                "llm_call_failed",
                provider=self._display_name,
                status=exc.status_code,
                body=str(exc.body)[:500],
            )
            raise LLMError(
                message=f"{self._display_name} call failed",
                provider_name=self.get_provider_name(),
                status_code=exc.status_code,
            ) from exc
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._display_name} call timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._display_name} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices:
            return ""
        content = response.choices[0].message.content or ""
        logger.info(
            "llm_completion",
            provider=self._display_name,
            model=self._model,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def get_provider_name(self) -> str:
        return self._display_name

    def is_available(self) -> bool:
        return bool(self._api_key)
