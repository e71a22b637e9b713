"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
The SDK's own retry loop is disabled so that retry policy lives here:
transient failures (429, 5xx, connection errors, timeouts) are retried with
exponential backoff ``min(max_backoff, 2 ** attempt)`` seconds; anything
else fails immediately.  Every returned vector is checked against the
configured dimension, since a mismatch means the index and the model
disagree and retrying cannot fix it.
"""

from __future__ import annotations

import asyncio

import openai
import structlog

from ragdesk.config.settings import Settings
from ragdesk.interfaces.embedding_provider import IEmbeddingProvider
from ragdesk.utils.errors import ProviderFatalError, ProviderTransientError

logger = structlog.get_logger(logger_name=__name__)

_OPENAI_BATCH_LIMIT = 2048


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-3-small`` (1536 dims) by default.  When
    ``openai_base_url`` is configured the client points at that URL.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {"api_key": self._api_key or "unset", "max_retries": 0}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_embed_model
        self._dimension = settings.embedding_dimension
        self._max_attempts = max(1, settings.embed_max_attempts)
        self._max_backoff = settings.embed_max_backoff_seconds

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed_batch([text])
        return result[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for *texts*, preserving input order."""
        if not texts:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(texts), _OPENAI_BATCH_LIMIT):
            batch = texts[start : start + _OPENAI_BATCH_LIMIT]
            vectors.extend(await self._embed_with_retry(batch))
        return vectors

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "openai_embedding"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _embed_with_retry(self, batch: list[str]) -> list[list[float]]:
        last_error: Exception | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                response = await self._client.embeddings.create(input=batch, model=self._model)
            except (openai.RateLimitError, openai.InternalServerError, openai.APIConnectionError) as exc:
                # APITimeoutError is a subclass of APIConnectionError.
                last_error = exc
                if attempt == self._max_attempts:
                    break
                delay = min(self._max_backoff, 2**attempt)
                logger.warning(
                    "embedding_retry",
                    model=self._model,
                    attempt=attempt,
                    delay_s=delay,
                    status=getattr(exc, "status_code", None),
                )
                await asyncio.sleep(delay)
                continue
            except openai.APIStatusError as exc:
                raise ProviderFatalError(
                    message=f"Embedding request rejected ({exc.status_code}): {exc.message}",
                    provider_name=self.get_provider_name(),
                    status_code=exc.status_code,
                ) from exc

            vectors = self._ordered_vectors(response, len(batch))
            logger.info(
                "openai_embedding_batch",
                model=self._model,
                batch_size=len(batch),
                attempt=attempt,
                tokens=response.usage.total_tokens if response.usage else None,
            )
            return vectors

        raise ProviderTransientError(
            message=f"Embedding failed after {self._max_attempts} attempts: {last_error}",
            provider_name=self.get_provider_name(),
            status_code=getattr(last_error, "status_code", None),
        ) from last_error

    def _ordered_vectors(self, response, expected: int) -> list[list[float]]:  # noqa: ANN001
        """Place each returned vector at its ``index`` and check dimensions."""
        slots: list[list[float] | None] = [None] * expected
        for item in response.data:
            index = item.index
            if index is None or not 0 <= index < expected:
                raise ProviderFatalError(
                    message=f"Embedding response carried out-of-range index {index!r}",
                    provider_name=self.get_provider_name(),
                )
            vector = list(item.embedding)
            if len(vector) != self._dimension:
                raise ProviderFatalError(
                    message=(
                        f"Embedding dimension mismatch: model '{self._model}' returned "
                        f"{len(vector)} dims, index expects {self._dimension}"
                    ),
                    provider_name=self.get_provider_name(),
                )
            slots[index] = vector

        missing = [i for i, vector in enumerate(slots) if vector is None]
        if missing:
            raise ProviderFatalError(
                message=f"Embedding response is missing indices {missing}",
                provider_name=self.get_provider_name(),
            )
        return [vector for vector in slots if vector is not None]
