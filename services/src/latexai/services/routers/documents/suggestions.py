"""Preview, accept and reject endpoints for suggestions."""

from __future__ import annotations

from typing import Any

from fastapi import Depends

from . import router
from .common import (
    DocumentScope,
    dump_checkpoint,
    dump_message,
    dump_segments,
    get_document_scope,
)


@router.get("/{document_id}/preview")
async def get_preview(scope: DocumentScope = Depends(get_document_scope)) -> dict[str, Any]:
    session = scope.session()
    active = session.preview.active
    return {
        "state": session.preview.state.value,
        "message_id": active.message_id if active else None,
        "segments": dump_segments(session.preview_segments()),
        "revision": session.revision,
    }


@router.post("/{document_id}/suggestions/{message_id}/accept")
async def accept_suggestion(
    message_id: str,
    scope: DocumentScope = Depends(get_document_scope),
) -> dict[str, Any]:
    """Apply the previewed suggestion behind a fresh checkpoint."""

    session = scope.session()
    with scope.engine_errors():
        result = await session.accept(message_id)
    return {
        "message": dump_message(result.message),
        "restore_message": dump_message(result.restore_message),
        "checkpoint": dump_checkpoint(result.checkpoint),
        "content": result.content,
        "revision": result.revision,
        "change": result.change.as_dict(),
    }


@router.post("/{document_id}/suggestions/{message_id}/reject")
async def reject_suggestion(
    message_id: str,
    scope: DocumentScope = Depends(get_document_scope),
) -> dict[str, Any]:
    session = scope.session()
    with scope.engine_errors():
        message = await session.reject(message_id)
    return {"message": dump_message(message), "revision": session.revision}
