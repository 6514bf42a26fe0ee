"""Message log endpoints: read the log, submit and cancel edit requests."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends

from ...models.requests import EditRequestPayload
from . import router
from .common import DocumentScope, dump_messages, dump_segments, get_document_scope

LOGGER = logging.getLogger(__name__)


@router.get("/{document_id}/messages")
async def list_messages(scope: DocumentScope = Depends(get_document_scope)) -> dict[str, Any]:
    session = scope.session()
    return {
        "document_id": scope.document_id,
        "messages": dump_messages(session.messages()),
        "pending_request": session.pending.id if session.pending else None,
    }


@router.post("/{document_id}/messages")
async def submit_message(
    payload: EditRequestPayload,
    scope: DocumentScope = Depends(get_document_scope),
) -> dict[str, Any]:
    """Send an edit request; model failures come back as error messages, not HTTP errors."""

    session = scope.session()
    with scope.engine_errors():
        outcome = await session.submit(payload.content)
    LOGGER.info(
        "documents.request_completed",
        extra={
            "extra_payload": {
                "document_id": scope.document_id,
                "request_id": outcome.request_id,
                "status": outcome.status,
            }
        },
    )
    return {
        "request_id": outcome.request_id,
        "status": outcome.status,
        "messages": dump_messages(outcome.messages),
        "segments": dump_segments(outcome.segments),
        "suggestion_message_id": outcome.suggestion_message_id,
        "revision": session.revision,
    }


@router.post("/{document_id}/cancel")
async def cancel_request(scope: DocumentScope = Depends(get_document_scope)) -> dict[str, Any]:
    session = scope.session()
    return {"cancelled": session.cancel()}
