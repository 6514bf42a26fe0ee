"""API v1 aggregate router."""

from __future__ import annotations

from fastapi import APIRouter

from .documents import router as documents_router

router = APIRouter(prefix="/api/v1")
router.include_router(documents_router)

__all__ = ["router"]
