"""Session lifecycle and editor-surface notifications."""

from __future__ import annotations

from typing import Any

from fastapi import Depends

from ...models.requests import (
    CursorUpdate,
    DocumentContentUpdate,
    SelectionUpdate,
    SessionOpenRequest,
)
from . import router
from .common import DocumentScope, dump_checkpoint, dump_messages, get_document_scope


@router.post("/{document_id}/session")
async def open_session(
    payload: SessionOpenRequest,
    scope: DocumentScope = Depends(get_document_scope),
) -> dict[str, Any]:
    """Open or reload the edit session, reconciling chat history and checkpoints."""

    session = scope.registry.open(scope.document_id)
    if payload.content is not None:
        session.sync_document(payload.content)
    with scope.engine_errors():
        messages = await session.load(payload.project_id)
    return {
        "document_id": scope.document_id,
        "session_id": session.session_id,
        "revision": session.revision,
        "messages": dump_messages(messages),
        "checkpoints": [dump_checkpoint(item) for item in session.checkpoints.list()],
    }


@router.put("/{document_id}/content")
async def update_content(
    payload: DocumentContentUpdate,
    scope: DocumentScope = Depends(get_document_scope),
) -> dict[str, Any]:
    session = scope.session()
    revision = session.sync_document(payload.content)
    return {"revision": revision, "length": len(payload.content)}


@router.put("/{document_id}/selection")
async def update_selection(
    payload: SelectionUpdate,
    scope: DocumentScope = Depends(get_document_scope),
) -> dict[str, Any]:
    session = scope.session()
    with scope.engine_errors():
        session.update_selection(payload.selection, revision=payload.revision)
    return {
        "revision": session.revision,
        "selection": payload.selection.model_dump(mode="json", by_alias=True),
    }


@router.delete("/{document_id}/selection")
async def clear_selection(scope: DocumentScope = Depends(get_document_scope)) -> dict[str, Any]:
    session = scope.session()
    session.clear_selection()
    return {"revision": session.revision, "selection": None}


@router.put("/{document_id}/cursor")
async def update_cursor(
    payload: CursorUpdate,
    scope: DocumentScope = Depends(get_document_scope),
) -> dict[str, Any]:
    session = scope.session()
    with scope.engine_errors():
        session.update_cursor(payload.offset, revision=payload.revision)
    return {"revision": session.revision, "offset": payload.offset}


@router.delete("/{document_id}/session")
async def close_session(scope: DocumentScope = Depends(get_document_scope)) -> dict[str, Any]:
    """Forget the in-memory session; persisted chat and checkpoints stay on disk."""

    scope.session()
    scope.registry.close(scope.document_id)
    return {"document_id": scope.document_id, "closed": True}
