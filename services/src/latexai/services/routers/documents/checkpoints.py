"""Checkpoint listing and restore endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import Depends

from . import router
from .common import DocumentScope, dump_checkpoint, dump_message, get_document_scope


@router.get("/{document_id}/checkpoints")
async def list_checkpoints(scope: DocumentScope = Depends(get_document_scope)) -> dict[str, Any]:
    session = scope.session()
    return {
        "document_id": scope.document_id,
        "capacity": session.checkpoints.capacity,
        "checkpoints": [dump_checkpoint(item) for item in session.checkpoints.list()],
    }


@router.post("/{document_id}/checkpoints/{checkpoint_id}/restore")
async def restore_checkpoint(
    checkpoint_id: str,
    scope: DocumentScope = Depends(get_document_scope),
) -> dict[str, Any]:
    """Roll the document back to the content captured before an accepted edit."""

    session = scope.session()
    with scope.engine_errors():
        result = await session.restore(checkpoint_id)
    return {
        "checkpoint_id": result.checkpoint_id,
        "content": result.content,
        "revision": result.revision,
        "message": dump_message(result.message),
    }
