"""Router package exports."""

from __future__ import annotations

from .api_v1 import router as api_router
from .documents import router as documents_router

__all__ = ["api_router", "documents_router"]
