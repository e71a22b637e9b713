"""Custom exception hierarchy for ragdesk.

All application exceptions inherit from :class:`RagDeskError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "azure_search", "groq", "tavily") caused the failure.

The hierarchy is organized by how callers are expected to react:

    RagDeskError  (base -- catch-all for any ragdesk error)
    +-- InvalidRequestError      (caller-fixable input problem -> HTTP 400)
    +-- ConfigurationError       (startup / missing config)
    +-- UnsupportedFileTypeError (ingestion: extension has no extractor)
    +-- ProviderError            (any external provider failure)
        +-- ProviderTransientError   (429 / 5xx / network -> retry or degrade)
        |   +-- RateLimitError       (provider rate limit exceeded)
        +-- ProviderFatalError       (misconfiguration / bad response shape)
        +-- LLMError                 (LLM completion failure)
        +-- IndexUploadError         (index batch write rejected)

Policy escalation is *not* an exception: it is a normal 200 response and
is modelled by :class:`ragdesk.services.policy.PolicyDecision`.
"""

from __future__ import annotations

from typing import Any


class RagDeskError(Exception):
    """Base exception for all ragdesk errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[tavily] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request errors
# ---------------------------------------------------------------------------


class InvalidRequestError(RagDeskError):
    """Raised when a request body is missing, unparseable, or invalid.

    ``code`` is the machine-readable error code returned to the caller
    (``MissingBody``, ``InvalidJson`` or ``ValidationError``) and
    ``details`` is an optional JSON-serializable payload such as
    ``{"field": "message"}``.
    """

    def __init__(
        self,
        message: str = "Invalid request",
        code: str = "ValidationError",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message)
        self._code = code
        self._details = details

    @property
    def code(self) -> str:
        return self._code

    @property
    def details(self) -> dict[str, Any] | None:
        return self._details


# ---------------------------------------------------------------------------
# Configuration / ingestion errors
# ---------------------------------------------------------------------------


class ConfigurationError(RagDeskError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedFileTypeError(RagDeskError):
    """Raised when a document's extension has no registered extractor."""

    def __init__(
        self,
        message: str = "Unsupported file type",
        file_name: str | None = None,
    ) -> None:
        super().__init__(message=message)
        self._file_name = file_name

    @property
    def file_name(self) -> str | None:
        return self._file_name


# ---------------------------------------------------------------------------
# External provider errors
# ---------------------------------------------------------------------------


class ProviderError(RagDeskError):
    """Raised when an external provider call fails."""

    def __init__(
        self,
        message: str = "External provider call failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status_code = status_code

    @property
    def status_code(self) -> int | None:
        return self._status_code


class ProviderTransientError(ProviderError):
    """Raised for failures that may succeed on retry (429, 5xx, network).

    Idempotent callers retry with backoff; the retrieval and web-search
    steps degrade to empty evidence instead.
    """

    def __init__(
        self,
        message: str = "Transient provider failure",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)


class RateLimitError(ProviderTransientError):
    """Raised when a provider rate limit (HTTP 429) is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
        status_code: int | None = 429,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)


class ProviderFatalError(ProviderError):
    """Raised for misconfiguration or unexpected response shapes.  Never retried."""

    def __init__(
        self,
        message: str = "Provider returned an unusable response",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)


class LLMError(ProviderError):
    """Raised when an LLM completion call fails."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)


def error_for_status(
    status_code: int,
    message: str,
    provider_name: str | None = None,
) -> ProviderError:
    """Classify a non-2xx provider status: 429 and 5xx are transient, the rest fatal."""
    if status_code == 429:
        return RateLimitError(message=message, provider_name=provider_name)
    if status_code >= 500 or status_code in (408, 425):
        return ProviderTransientError(message=message, provider_name=provider_name, status_code=status_code)
    return ProviderFatalError(message=message, provider_name=provider_name, status_code=status_code)


class IndexUploadError(ProviderError):
    """Raised when the document index rejects an upload batch.

    Fatal for the document being ingested: remaining batches are not sent.
    """

    def __init__(
        self,
        message: str = "Index upload failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)
