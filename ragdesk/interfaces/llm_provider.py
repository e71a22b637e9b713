"""Abstract base class for LLM chat-completion providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAICompatibleLLMProvider (ragdesk/providers/llm/),
# pointed at Groq's OpenAI-compatible endpoint by default.
class ILLMProvider(ABC):
    """Contract for the completion call that turns a grounding prompt into an answer."""

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 500,
        correlation_id: str | None = None,
    ) -> str:
        """Send *prompt* as a single user message and return the reply text.

        Parameters
        ----------
        prompt:
            The fully assembled grounding prompt.
        temperature:
            Sampling temperature.
        max_tokens:
            Upper bound on generated tokens.
        correlation_id:
            Forwarded to the provider as ``x-correlation-id`` when given.

        Returns
        -------
        str
            The assistant message content (empty string if the provider
            returned none).

        Raises
        ------
        ragdesk.utils.errors.RateLimitError
            On HTTP 429.
        ragdesk.utils.errors.LLMError
            On any other failure; ``status_code`` is set when known.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a display name such as ``"Groq"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
