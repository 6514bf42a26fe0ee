"""Document edit-session API split across feature-focused modules."""

from __future__ import annotations

import importlib

from fastapi import APIRouter

from ...http import default_error_responses

router = APIRouter(prefix="/documents", tags=["documents"], responses=default_error_responses())

for module_name in ("editor", "chat", "suggestions", "checkpoints"):
    importlib.import_module(f"{__name__}.{module_name}")

__all__ = ["router"]
