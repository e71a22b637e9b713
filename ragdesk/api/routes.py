"""FastAPI routes for the ragdesk support assistant.

# ─── API ROUTE MAP ─────────────────────────────────────────────────────
#
# Endpoint              Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/chat             POST    Grounded answer (or escalation / web confirmation)
# /api/ingest           POST    Batch-ingest a storage prefix
# /api/ingest/upload    POST    Ingest one uploaded document (webhook)
# /api/health           GET     Liveness + configured providers
#
# Services are read from app.state (populated by main._build_all) through
# the Depends helpers below.  Errors are raised as RagDeskError subclasses
# and turned into the JSON error envelope by ErrorHandlingMiddleware.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import json
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, Request, UploadFile
from pydantic import ValidationError

from ragdesk.api.middleware import client_correlation_id_of, request_id_of
from ragdesk.api.schemas import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    HealthResponse,
    IngestRequest,
    IngestResponse,
    UploadIngestResponse,
)
from ragdesk.config.settings import Settings
from ragdesk.models.chat import ChatQuery
from ragdesk.pipeline.chat_orchestrator import ChatOrchestrator
from ragdesk.services.ingestion.ingestion_service import IngestionService
from ragdesk.services.ingestion.upload_trigger import UploadTrigger
from ragdesk.utils.errors import ConfigurationError, InvalidRequestError
from ragdesk.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api")

ALLOWED_PREFIXES = ("public/", "internal/", "confidential/", "restricted/")
DEFAULT_PREFIX = "public/"


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_chat_orchestrator(request: Request) -> ChatOrchestrator:
    return request.app.state.chat_orchestrator


def _get_ingestion_service(request: Request) -> IngestionService | None:
    return getattr(request.app.state, "ingestion_service", None)


def _get_upload_trigger(request: Request) -> UploadTrigger | None:
    return getattr(request.app.state, "upload_trigger", None)


def _get_provider_status(request: Request) -> dict[str, str]:
    return getattr(request.app.state, "provider_status", {})


SettingsDep = Annotated[Settings, Depends(_get_settings)]
ChatDep = Annotated[ChatOrchestrator, Depends(_get_chat_orchestrator)]
IngestionDep = Annotated[IngestionService | None, Depends(_get_ingestion_service)]
UploadTriggerDep = Annotated[UploadTrigger | None, Depends(_get_upload_trigger)]
ProviderStatusDep = Annotated[dict[str, str], Depends(_get_provider_status)]


# ---------------------------------------------------------------------------
# Body parsing
# ---------------------------------------------------------------------------


async def _read_json_object(request: Request, *, required: bool) -> dict[str, Any] | None:
    """Parse the request body as a JSON object.

    Returns ``None`` for a blank body when *required* is false.
    """
    raw = await request.body()
    if not raw.strip():
        if required:
            raise InvalidRequestError(message="Request body is required.", code="MissingBody")
        return None
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise InvalidRequestError(message="Invalid JSON body.", code="InvalidJson") from exc
    if not isinstance(data, dict):
        raise InvalidRequestError(message="Invalid JSON body.", code="InvalidJson")
    return data


def _validation_error(exc: ValidationError) -> InvalidRequestError:
    errors = exc.errors()
    field = str(errors[0]["loc"][0]) if errors and errors[0].get("loc") else "body"
    return InvalidRequestError(
        message=f"Field '{field}' has an invalid value.",
        details={"field": field},
    )


def normalize_prefix(prefix: str | None) -> str:
    """Trim, drop leading slashes, lowercase and ensure a trailing slash.

    Raises
    ------
    InvalidRequestError
        If the result is not one of :data:`ALLOWED_PREFIXES`.
    """
    value = (prefix or "").strip()
    if not value:
        return DEFAULT_PREFIX
    value = value.lstrip("/").lower()
    if not value.endswith("/"):
        value += "/"
    if value not in ALLOWED_PREFIXES:
        raise InvalidRequestError(
            message=(
                "Invalid prefix. Allowed values: public/, internal/, confidential/, restricted/. "
                'Example body: { "prefix": "public/", "maxFiles": 20 }'
            ),
            details={"field": "prefix"},
        )
    return value


def clamp_max_files(value: int | None, default: int, limit: int) -> int:
    if value is None:
        return default
    return max(1, min(limit, value))


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Answer a support question from internal (and optionally web) evidence",
)
async def chat(request: Request, orchestrator: ChatDep, settings: SettingsDep) -> ChatResponse:
    data = await _read_json_object(request, required=True)
    try:
        body = ChatRequest.model_validate(data)
    except ValidationError as exc:
        raise _validation_error(exc) from exc

    query = ChatQuery(
        message=body.message,
        issue_type=body.issue_type or "General",
        data_boundary=body.requested_boundary(),
        user_role=body.user_role,
        user_group=body.user_group,
        conversation_id=body.conversation_id,
        confirm_web_search=bool(body.confirm_web_search),
        web_search_token=body.web_search_token,
        request_id=request_id_of(request),
        client_correlation_id=client_correlation_id_of(request),
    )
    result = await asyncio.wait_for(orchestrator.run(query), timeout=settings.chat_timeout_seconds)
    return ChatResponse.from_result(result)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@router.post(
    "/ingest",
    response_model=IngestResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Ingest up to maxFiles documents stored under a classification prefix",
)
async def ingest(
    request: Request,
    ingestion: IngestionDep,
    settings: SettingsDep,
) -> IngestResponse:
    data = await _read_json_object(request, required=False)
    try:
        body = IngestRequest.model_validate(data or {})
    except ValidationError as exc:
        raise _validation_error(exc) from exc

    prefix = normalize_prefix(body.prefix)
    max_files = clamp_max_files(
        body.max_files,
        settings.ingest_default_max_files,
        settings.ingest_max_files_limit,
    )
    if ingestion is None:
        raise ConfigurationError(message="Ingestion is not configured (RETRIEVAL_MODE=off)")

    request_id = request_id_of(request)
    result = await ingestion.ingest_batch(prefix, max_files)

    hints = [
        f"requestId={request_id}",
        f"prefix={prefix}",
        f"maxFiles={max_files}",
        f"filesProcessed={result.files_processed}",
        f"chunksUploaded={result.chunks_uploaded}",
        f"elapsedMs={result.elapsed_ms}",
    ]
    hints.extend(f"failed={failure.path}" for failure in result.failures)

    return IngestResponse(
        request_id=request_id,
        prefix=prefix,
        max_files=max_files,
        files_processed=result.files_processed,
        chunks_uploaded=result.chunks_uploaded,
        elapsed_ms=result.elapsed_ms,
        action_hints=hints,
    )


@router.post(
    "/ingest/upload",
    response_model=UploadIngestResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Ingest a single uploaded document (ingest-on-upload webhook)",
)
async def ingest_upload(
    request: Request,
    file: UploadFile,
    trigger: UploadTriggerDep,
    path: Annotated[str | None, Form()] = None,
) -> UploadIngestResponse:
    if trigger is None:
        raise ConfigurationError(message="Ingestion is not configured (RETRIEVAL_MODE=off)")

    blob_name = (path or file.filename or "").strip().lstrip("/")
    if not blob_name:
        raise InvalidRequestError(message="Field 'path' is required.", details={"field": "path"})

    content = await file.read()
    result = await trigger.handle(blob_name, content)
    request_id = request_id_of(request)

    if result is None:
        return UploadIngestResponse(status="skipped", request_id=request_id, path=blob_name)
    return UploadIngestResponse(
        status="ok",
        request_id=request_id,
        path=blob_name,
        files_processed=result.files_processed,
        chunks_uploaded=result.chunks_uploaded,
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Liveness check")
async def health(settings: SettingsDep, providers: ProviderStatusDep) -> HealthResponse:
    return HealthResponse(status="ok", version=settings.app_version, providers=providers)
