"""Error codes exposed over HTTP and the exception that carries them to the middleware."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

from fastapi import status

from .exceptions import EditEngineError
from .models.errors import ErrorResponse


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


def _table(*definitions: ErrorDefinition) -> Dict[str, ErrorDefinition]:
    return {definition.code: definition for definition in definitions}


_CONFLICT = status.HTTP_409_CONFLICT

ERROR_DEFINITIONS: Dict[str, ErrorDefinition] = _table(
    ErrorDefinition("VALIDATION", "Request validation failed.", status.HTTP_400_BAD_REQUEST),
    ErrorDefinition("NOT_FOUND", "No such document, message or session.", status.HTTP_404_NOT_FOUND),
    ErrorDefinition("CHECKPOINT_NOT_FOUND", "Checkpoint is unknown or was evicted.", status.HTTP_404_NOT_FOUND),
    ErrorDefinition("CONFLICT", "Document state conflict.", _CONFLICT),
    ErrorDefinition("REQUEST_IN_FLIGHT", "An AI request is already in progress.", _CONFLICT),
    ErrorDefinition("STALE_SELECTION", "Selection refers to an older document revision.", _CONFLICT),
    ErrorDefinition("STALE_ANCHOR", "Suggestion no longer matches the document.", _CONFLICT),
    ErrorDefinition("SUGGESTION_NOT_ACTIVE", "Suggestion is not the active preview.", _CONFLICT),
    ErrorDefinition("MODEL_ERROR", "The language model service failed.", status.HTTP_502_BAD_GATEWAY),
    ErrorDefinition("INTERNAL", "Internal server error.", status.HTTP_500_INTERNAL_SERVER_ERROR),
)

DEFAULT_ERROR_DEFINITION = ErrorDefinition(
    "UNEXPECTED_ERROR",
    "Unexpected error occurred.",
    status.HTTP_500_INTERNAL_SERVER_ERROR,
)


def definition_for(code: str) -> ErrorDefinition:
    return ERROR_DEFINITIONS.get(code, DEFAULT_ERROR_DEFINITION)


class ServiceError(Exception):
    """Raised by routers; ``TraceMiddleware`` renders it as an ``ErrorResponse``."""

    def __init__(
        self,
        *,
        code: str,
        status_code: int,
        message: str,
        details: Mapping[str, Any] | None = None,
        document_root: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = dict(details or {})
        self.status_code = status_code
        self.document_root = document_root

    @classmethod
    def from_engine_error(
        cls, exc: EditEngineError, *, document_root: Path | None = None
    ) -> "ServiceError":
        definition = definition_for(exc.code)
        return cls(
            code=exc.code,
            status_code=definition.status_code,
            message=exc.message or definition.message,
            details=exc.details,
            document_root=document_root,
        )

    def to_payload(self, trace_id: str) -> ErrorResponse:
        return ErrorResponse(
            code=self.code, message=self.message, details=self.details, trace_id=trace_id
        )


__all__ = [
    "DEFAULT_ERROR_DEFINITION",
    "ERROR_DEFINITIONS",
    "ErrorDefinition",
    "ServiceError",
    "definition_for",
]
