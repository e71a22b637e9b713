"""LLM provider adapters.

    - OpenAICompatibleLLMProvider - any OpenAI-compatible chat-completions
      endpoint; main.py points it at Groq.
"""

from ragdesk.providers.llm.openai_compatible_provider import OpenAICompatibleLLMProvider

__all__ = ["OpenAICompatibleLLMProvider"]
