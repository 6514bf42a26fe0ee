"""HTTP client for the remote project service (completions, chat, checkpoints)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from .exceptions import BackendUnavailableError, MalformedResponseError
from .models.chat import ChatMessage
from .models.checkpoint import Checkpoint, utc_now
from .models.completion import CompletionRequest, CompletionResult
from .response_parser import parse_backend_payload

LOGGER = logging.getLogger(__name__)

CHAT_COMPLETION_PATH = "/api/ai-assistance/chat"
CHAT_SESSION_PATH = "/api/latex-ai/chat/session/{document_id}"
CHAT_HISTORY_PATH = "/api/latex-ai/chat/history/{document_id}"
CHAT_MESSAGES_PATH = "/api/latex-ai/chat/{document_id}/messages"
CHECKPOINTS_PATH = "/api/latex-ai/checkpoints/{document_id}"
CHECKPOINT_RESTORE_PATH = "/api/latex-ai/checkpoints/{checkpoint_id}/restore"


class ProjectServiceClient:
    """Talk to the project service over HTTP.

    Responses use the ``{status, message, data}`` envelope. Transport errors and
    non-2xx answers raise ``BackendUnavailableError``; bodies that cannot be
    interpreted raise ``MalformedResponseError``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        data = await self._request("POST", CHAT_COMPLETION_PATH, json=request.to_wire())
        if isinstance(data, str):
            return CompletionResult(text=data)
        if isinstance(data, Mapping):
            suggestion = parse_backend_payload(data)
            text = data.get("content") or data.get("response") or ""
            if not isinstance(text, str):
                raise MalformedResponseError(
                    "Completion text is not a string.",
                    details={"type": type(text).__name__},
                )
            return CompletionResult(text=text, suggestion=suggestion)
        raise MalformedResponseError(
            "Completion response has an unexpected shape.",
            details={"type": type(data).__name__},
        )

    async def get_chat_session(self, document_id: str, project_id: str) -> str:
        data = await self._request(
            "GET",
            CHAT_SESSION_PATH.format(document_id=document_id),
            params={"projectId": project_id},
        )
        session_id = data.get("id") if isinstance(data, Mapping) else None
        if session_id in (None, ""):
            raise MalformedResponseError(
                "Chat session response carries no id.", details={"document_id": document_id}
            )
        return str(session_id)

    async def get_chat_history(self, document_id: str) -> list[ChatMessage]:
        data = await self._request("GET", CHAT_HISTORY_PATH.format(document_id=document_id))
        if data is None:
            return []
        if not isinstance(data, list):
            raise MalformedResponseError(
                "Chat history is not a list.", details={"document_id": document_id}
            )
        return [message for message in (_message_from_wire(item) for item in data) if message]

    async def send_chat_message(
        self, document_id: str, session_id: str, message: ChatMessage
    ) -> None:
        await self._request(
            "POST",
            CHAT_MESSAGES_PATH.format(document_id=document_id),
            json=_message_to_wire(message, session_id),
        )

    async def create_checkpoint(
        self,
        document_id: str,
        session_id: str,
        checkpoint: Checkpoint,
        *,
        set_current: bool = True,
    ) -> None:
        payload: dict[str, Any] = {
            "checkpointId": checkpoint.id,
            "checkpointName": checkpoint.description,
            "contentBefore": checkpoint.content_before,
            "contentAfter": checkpoint.content_after,
            "setCurrent": set_current,
        }
        if checkpoint.message_id:
            payload["messageId"] = checkpoint.message_id
        await self._request(
            "POST",
            CHECKPOINTS_PATH.format(document_id=document_id),
            params={"sessionId": session_id},
            json=payload,
        )

    async def get_checkpoints(self, document_id: str) -> list[Checkpoint]:
        data = await self._request("GET", CHECKPOINTS_PATH.format(document_id=document_id))
        if data is None:
            return []
        if not isinstance(data, list):
            raise MalformedResponseError(
                "Checkpoint list is not a list.", details={"document_id": document_id}
            )
        checkpoints = []
        for item in data:
            checkpoint = _checkpoint_from_wire(item)
            if checkpoint is not None:
                checkpoints.append(checkpoint)
        return checkpoints

    async def restore_to_checkpoint(self, document_id: str, checkpoint_id: str) -> str | None:
        data = await self._request(
            "POST", CHECKPOINT_RESTORE_PATH.format(checkpoint_id=checkpoint_id)
        )
        return data if isinstance(data, str) else None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._http.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.warning(
                "project_service.http_error",
                extra={
                    "extra_payload": {
                        "method": method,
                        "path": path,
                        "status": exc.response.status_code,
                    }
                },
            )
            raise BackendUnavailableError(
                "Project service answered with an error.",
                details={"path": path, "status": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "project_service.unreachable",
                extra={"extra_payload": {"method": method, "path": path, "error": str(exc)}},
            )
            raise BackendUnavailableError(
                "Project service is unreachable.",
                details={"path": path, "error": type(exc).__name__},
            ) from exc

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                "Project service returned invalid JSON.", details={"path": path}
            ) from exc
        if isinstance(body, Mapping) and "data" in body:
            return body["data"]
        return body


def _message_to_wire(message: ChatMessage, session_id: str) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "messageId": message.id,
        "sessionId": session_id,
        "messageType": "USER" if message.role == "user" else "AI",
        "content": message.content,
        "isApplied": message.applied == "applied",
        "metadata": message.model_dump(mode="json", by_alias=True),
    }
    if message.suggestion is not None:
        anchor = message.suggestion.anchor
        payload.update(
            {
                "latexSuggestion": message.suggestion.fragment,
                "actionType": message.suggestion.action_kind.upper(),
                "selectionRangeFrom": anchor.from_,
                "selectionRangeTo": anchor.to,
            }
        )
    return payload


def _message_from_wire(item: Any) -> ChatMessage | None:
    if not isinstance(item, Mapping):
        return None
    metadata = item.get("metadata")
    if isinstance(metadata, Mapping):
        try:
            return ChatMessage.model_validate(dict(metadata))
        except ValidationError:
            LOGGER.debug("project_service.message_metadata_invalid")
    message_id = item.get("messageId") or item.get("id")
    if message_id in (None, ""):
        return None
    is_user = str(item.get("messageType", "")).upper() == "USER"
    return ChatMessage(
        id=str(message_id),
        role="user" if is_user else "assistant",
        kind="user" if is_user else "assistant",
        content=str(item.get("content") or ""),
        applied="applied" if item.get("isApplied") else None,
        created_at=_parse_timestamp(item.get("createdAt") or item.get("timestamp")),
    )


def _checkpoint_from_wire(item: Any) -> Checkpoint | None:
    if not isinstance(item, Mapping) or item.get("id") in (None, ""):
        return None
    return Checkpoint(
        id=str(item["id"]),
        content_before=str(item.get("contentBefore") or ""),
        content_after=_optional_str(item.get("contentAfter")),
        timestamp=_parse_timestamp(item.get("createdAt")),
        description=str(item.get("displayName") or item.get("checkpointName") or "Checkpoint"),
        message_id=_optional_str(item.get("messageId")),
    )


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return utc_now()
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return utc_now()


__all__ = ["ProjectServiceClient"]
