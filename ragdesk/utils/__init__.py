"""Utility modules for ragdesk.

- **errors** -- Domain-specific exception hierarchy rooted at RagDeskError.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from ragdesk.utils.errors import (
    ConfigurationError,
    IndexUploadError,
    InvalidRequestError,
    LLMError,
    ProviderError,
    ProviderFatalError,
    ProviderTransientError,
    RagDeskError,
    RateLimitError,
    UnsupportedFileTypeError,
)

__all__ = [
    "ConfigurationError",
    "IndexUploadError",
    "InvalidRequestError",
    "LLMError",
    "ProviderError",
    "ProviderFatalError",
    "ProviderTransientError",
    "RagDeskError",
    "RateLimitError",
    "UnsupportedFileTypeError",
]
