"""Logging for ragdesk: structlog events correlated per chat request.

Every HTTP request gets a server-generated ``request_id``; callers may also
send their own id in ``X-Correlation-Id``.  ``CorrelationIdMiddleware``
binds both with :func:`bind_request_context` before the route runs, so the
chat, retrieval, web-search and LLM events of that request all carry the
same ``request_id`` and ``client_correlation_id`` fields without any
service passing them around.  The middleware calls
:func:`clear_request_context` once the response is produced, so ids never
leak into the next request handled by the same task.

:func:`configure_logging` renders JSON lines when ``APP_ENV=production``
and coloured console output otherwise.  Output from httpx, uvicorn and
openai is routed through the same processors.  The ingest CLI uses console
output and never binds request ids.
"""

import logging
import sys

import structlog


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR, FATAL).
        json_output: Render JSON lines instead of the coloured console format.

    Returns:
        A configured structlog BoundLogger.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger.

    If structlog has not been configured yet, calls configure_logging() with defaults.

    Args:
        name: Logger name, typically the module name.

    Returns:
        A structlog BoundLogger bound with the given name.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)


def bind_request_context(request_id: str, client_correlation_id: str | None = None) -> None:
    """Start a fresh log context holding this request's correlation ids.

    Anything bound by a previous request on the same task is dropped first.
    ``client_correlation_id`` is only bound when the caller supplied one.
    """
    structlog.contextvars.clear_contextvars()
    ids = {"request_id": request_id}
    if client_correlation_id:
        ids["client_correlation_id"] = client_correlation_id
    structlog.contextvars.bind_contextvars(**ids)


def clear_request_context() -> None:
    """Drop the correlation ids once the response has been produced."""
    structlog.contextvars.clear_contextvars()
