"""API middleware: correlation ids, request logging, error handling, CORS.

Starlette middleware is a stack (last added runs first).  ``configure_middleware``
adds them so that a request flows::

    Client -> CORS -> CorrelationId -> RequestLogging -> ErrorHandling -> route

CorrelationIdMiddleware is outside ErrorHandlingMiddleware, so error
responses carry the correlation headers too, and RequestLoggingMiddleware
sees the final status code after errors were converted to JSON.

Correlation headers:

- inbound ``x-correlation-id`` is the *client* correlation id; it is echoed
  back as ``x-client-correlation-id``;
- the server's own request id (uuid4 hex) is always returned as
  ``x-correlation-id`` and appears in every log line and error body.
"""

from __future__ import annotations

import asyncio
import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from ragdesk.api.schemas import ErrorInfo, ErrorResponse
from ragdesk.utils.errors import IndexUploadError, InvalidRequestError, RagDeskError
from ragdesk.utils.logging import bind_request_context, clear_request_context, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

CORRELATION_HEADER = "x-correlation-id"
CLIENT_CORRELATION_HEADER = "x-client-correlation-id"


def request_id_of(request: Request) -> str:
    """Server request id assigned by :class:`CorrelationIdMiddleware`."""
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        request_id = uuid.uuid4().hex
        request.state.request_id = request_id
    return request_id


def client_correlation_id_of(request: Request) -> str | None:
    return getattr(request.state, "client_correlation_id", None)


def error_response(
    request_id: str,
    status_code: int,
    code: str,
    message: str,
    details: dict | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        request_id=request_id,
        error=ErrorInfo(code=code, message=message, details=details),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; defaults to ``["*"]`` for development."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER, CLIENT_CORRELATION_HEADER],
    )


# ---------------------------------------------------------------------------
# Correlation ids
# ---------------------------------------------------------------------------


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Assign a request id, bind it to the log context, and return both ids as headers."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = uuid.uuid4().hex
        client_id = (request.headers.get(CORRELATION_HEADER) or "").strip() or None
        request.state.request_id = request_id
        request.state.client_correlation_id = client_id
        bind_request_context(request_id, client_id)

        try:
            response = await call_next(request)
        finally:
            clear_request_context()

        response.headers[CORRELATION_HEADER] = request_id
        if client_id:
            response.headers[CLIENT_CORRELATION_HEADER] = client_id
        return response


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert escaped exceptions into the JSON error envelope.

    ``InvalidRequestError`` becomes a 400 with its code and details;
    ``IndexUploadError`` a 500 ``IngestionFailed``; a deadline a 500
    ``Timeout``; everything else a 500 ``InternalError`` with a generic
    message.  Stack traces stay in the server log.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except InvalidRequestError as exc:
            _logger.info(
                "request_rejected",
                code=exc.code,
                message=exc.message,
                path=str(request.url.path),
            )
            return error_response(request_id_of(request), 400, exc.code, exc.message, exc.details)
        except IndexUploadError as exc:
            _logger.error(
                "ingestion_upload_failed",
                message=exc.message,
                provider=exc.provider_name,
                status=exc.status_code,
                path=str(request.url.path),
            )
            return error_response(request_id_of(request), 500, "IngestionFailed", exc.message)
        except asyncio.TimeoutError:
            _logger.error("request_timeout", path=str(request.url.path))
            return error_response(request_id_of(request), 500, "Timeout", "Request timed out.")
        except RagDeskError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            return error_response(request_id_of(request), 500, "InternalError", "Unexpected error.")
        except Exception:  # noqa: BLE001
            _logger.exception("unhandled_error", path=str(request.url.path))
            return error_response(request_id_of(request), 500, "InternalError", "Unexpected error.")


def configure_middleware(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Install the full middleware stack in the order described above."""
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    configure_cors(app, allowed_origins=allowed_origins)
