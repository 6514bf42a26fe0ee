"""Trace identifiers and error envelopes for the document endpoints."""

from __future__ import annotations

import logging
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Final, Mapping, NoReturn
from uuid import UUID, uuid4

from fastapi import HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .diagnostics import DiagnosticLogger
from .exceptions import EditEngineError
from .models.errors import ErrorResponse
from .service_errors import ServiceError, definition_for

LOGGER = logging.getLogger(__name__)

TRACE_ID_HEADER: Final[str] = "x-trace-id"
_TRACE_ID_CONTEXT: ContextVar[str] = ContextVar("latexai_trace_id", default="")

_DOCUMENTED_STATUSES: Final[tuple[int, ...]] = (
    status.HTTP_400_BAD_REQUEST,
    status.HTTP_404_NOT_FOUND,
    status.HTTP_409_CONFLICT,
    status.HTTP_500_INTERNAL_SERVER_ERROR,
    status.HTTP_502_BAD_GATEWAY,
)


def default_error_responses() -> dict[int | str, dict[str, Any]]:
    """OpenAPI ``responses`` mapping advertising the error envelope."""

    return {status_code: {"model": ErrorResponse} for status_code in _DOCUMENTED_STATUSES}


# Trace identifiers ---------------------------------------------------------------


def resolve_trace_id(candidate: str | None) -> str:
    """Keep a caller-supplied UUID, otherwise mint a new one."""

    if candidate:
        try:
            UUID(candidate)
        except ValueError:
            LOGGER.debug("Ignoring invalid trace identifier: %s", candidate)
        else:
            return candidate
    return str(uuid4())


def ensure_trace_id() -> str:
    trace_id = _TRACE_ID_CONTEXT.get()
    if not trace_id:
        trace_id = str(uuid4())
        _TRACE_ID_CONTEXT.set(trace_id)
    return trace_id


def get_trace_context() -> ContextVar[str]:
    return _TRACE_ID_CONTEXT


# Envelopes -----------------------------------------------------------------------


def build_error_payload(
    *, code: str, message: str, details: Mapping[str, Any], trace_id: str
) -> ErrorResponse:
    return ErrorResponse(code=code, message=message, details=dict(details), trace_id=trace_id)


def error_response(
    payload: ErrorResponse,
    status_code: int,
    *,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Render ``payload`` with the trace header attached."""

    merged = dict(headers or {})
    merged.setdefault(TRACE_ID_HEADER, payload.trace_id)
    return JSONResponse(status_code=status_code, content=payload.model_dump(), headers=merged)


def service_error_response(exc: ServiceError, trace_id: str) -> JSONResponse:
    return error_response(exc.to_payload(trace_id), exc.status_code)


def http_exception_to_response(exc: HTTPException, trace_id: str) -> JSONResponse:
    """Framework-raised HTTP errors (unknown routes, bad methods) in envelope form."""

    detail = exc.detail
    if isinstance(detail, dict):
        fallback = definition_for(str(detail.get("code", "INTERNAL")))
        payload = build_error_payload(
            code=str(detail.get("code", fallback.code)),
            message=str(detail.get("message") or fallback.message),
            details=detail.get("details") or {},
            trace_id=trace_id,
        )
    else:
        code = "NOT_FOUND" if exc.status_code == status.HTTP_404_NOT_FOUND else "INTERNAL"
        payload = build_error_payload(
            code=code,
            message=str(detail) or definition_for(code).message,
            details={},
            trace_id=trace_id,
        )
    return error_response(payload, exc.status_code, headers=exc.headers)


def request_validation_response(exc: RequestValidationError, trace_id: str) -> JSONResponse:
    payload = build_error_payload(
        code="VALIDATION",
        message="Request validation failed.",
        details={"errors": _jsonable(exc.errors())},
        trace_id=trace_id,
    )
    return error_response(payload, status.HTTP_400_BAD_REQUEST)


def internal_error_response(trace_id: str) -> JSONResponse:
    payload = build_error_payload(
        code="INTERNAL", message="Internal server error.", details={}, trace_id=trace_id
    )
    return error_response(payload, status.HTTP_500_INTERNAL_SERVER_ERROR)


def _jsonable(value: Any) -> Any:
    """Validation contexts may hold exception instances; stringify them."""

    if isinstance(value, Exception):
        return str(value)
    if isinstance(value, Mapping):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


# Raising -------------------------------------------------------------------------


def _raise(
    error: ServiceError, *, diagnostics: DiagnosticLogger, document_root: Path | None
) -> NoReturn:
    if document_root is not None:
        diagnostics.log(
            document_root, code=error.code, message=error.message, details=error.details
        )
    raise error


def raise_service_error(
    *,
    code: str,
    message: str | None,
    details: Mapping[str, Any],
    diagnostics: DiagnosticLogger,
    document_root: Path | None,
    status_code: int | None = None,
) -> NoReturn:
    """Raise a ``ServiceError`` for ``code``, recording a diagnostic for the document."""

    definition = definition_for(code)
    error = ServiceError(
        code=code,
        status_code=status_code or definition.status_code,
        message=message or definition.message,
        details=_jsonable(dict(details)),
        document_root=document_root,
    )
    _raise(error, diagnostics=diagnostics, document_root=document_root)


def raise_engine_error(
    exc: EditEngineError,
    *,
    diagnostics: DiagnosticLogger,
    document_root: Path | None,
) -> NoReturn:
    LOGGER.info(
        "documents.engine_error",
        extra={"extra_payload": {"code": exc.code, "error_type": type(exc).__name__}},
    )
    error = ServiceError.from_engine_error(exc, document_root=document_root)
    _raise(error, diagnostics=diagnostics, document_root=document_root)


def raise_validation_error(
    *,
    message: str,
    details: Mapping[str, Any],
    diagnostics: DiagnosticLogger,
    document_root: Path | None,
) -> NoReturn:
    raise_service_error(
        code="VALIDATION",
        message=message,
        details=details,
        diagnostics=diagnostics,
        document_root=document_root,
    )


__all__: list[str] = [
    "TRACE_ID_HEADER",
    "build_error_payload",
    "default_error_responses",
    "ensure_trace_id",
    "error_response",
    "get_trace_context",
    "http_exception_to_response",
    "internal_error_response",
    "raise_engine_error",
    "raise_service_error",
    "raise_validation_error",
    "request_validation_response",
    "resolve_trace_id",
    "service_error_response",
]
