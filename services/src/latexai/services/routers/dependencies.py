"""Dependency injection helpers for FastAPI routers."""

from __future__ import annotations

from typing import cast

from fastapi import Request

from ..config import ServiceSettings
from ..diagnostics import DiagnosticLogger
from ..registry import SessionRegistry

__all__ = ["get_diagnostics", "get_registry", "get_settings"]


def get_settings(request: Request) -> ServiceSettings:
    """Return the service settings configured for the application."""

    return cast(ServiceSettings, request.app.state.settings)


def get_diagnostics(request: Request) -> DiagnosticLogger:
    """Return the diagnostics logger stored on the application state."""

    return cast(DiagnosticLogger, request.app.state.diagnostics)


def get_registry(request: Request) -> SessionRegistry:
    """Return the per-document session registry."""

    return cast(SessionRegistry, request.app.state.session_registry)
