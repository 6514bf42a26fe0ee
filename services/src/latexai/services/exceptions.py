"""Domain errors raised by the edit-proposal engine."""

from __future__ import annotations

from typing import Any, ClassVar, Mapping


class EditEngineError(RuntimeError):
    """Base error carrying a service error code and structured details."""

    code: ClassVar[str] = "INTERNAL"

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})


class StaleSelectionError(EditEngineError):
    """Raised when the tracked selection predates the current document revision."""

    code = "STALE_SELECTION"


class InvalidAnchorError(EditEngineError):
    """Raised when an anchor no longer fits the document it would mutate."""

    code = "STALE_ANCHOR"


class RequestInFlightError(EditEngineError):
    """Raised when a second AI request is submitted while one is pending."""

    code = "REQUEST_IN_FLIGHT"


class SuggestionNotActiveError(EditEngineError):
    """Raised when accepting or rejecting a suggestion that is not being previewed."""

    code = "SUGGESTION_NOT_ACTIVE"


class MessageNotFoundError(EditEngineError):
    """Raised when a message id is unknown to the session log."""

    code = "NOT_FOUND"


class SessionNotFoundError(EditEngineError):
    """Raised when a document endpoint is used before its session was opened."""

    code = "NOT_FOUND"


class CheckpointNotFoundError(EditEngineError):
    """Raised when restoring a checkpoint that is unknown or has been evicted."""

    code = "CHECKPOINT_NOT_FOUND"


class BackendUnavailableError(EditEngineError):
    """Raised when a remote collaborator is unreachable or answers with an error."""

    code = "MODEL_ERROR"


class MalformedResponseError(EditEngineError):
    """Raised when a remote collaborator answers with an unusable payload."""

    code = "MODEL_ERROR"


__all__ = [
    "BackendUnavailableError",
    "CheckpointNotFoundError",
    "EditEngineError",
    "InvalidAnchorError",
    "MalformedResponseError",
    "MessageNotFoundError",
    "RequestInFlightError",
    "SessionNotFoundError",
    "StaleSelectionError",
    "SuggestionNotActiveError",
]
