"""AI-assisted LaTeX edit-proposal engine and its HTTP service."""

from __future__ import annotations

from .app import SERVICE_VERSION, create_app
from .session import AcceptanceResult, EditSession, EngineOptions, RestoreResult, SubmitOutcome

__all__ = [
    "AcceptanceResult",
    "EditSession",
    "EngineOptions",
    "RestoreResult",
    "SERVICE_VERSION",
    "SubmitOutcome",
    "create_app",
]
