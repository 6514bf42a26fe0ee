"""File-backed chat history used in offline mode."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from ..models.chat import ChatMessage
from .atomic import read_json, write_json_atomic
from .paths import document_root

LOGGER = logging.getLogger(__name__)

CHAT_FILENAME = "chat.json"


@dataclass
class ChatFileStore:
    """Persist the message log under ``<data_dir>/documents/<id>/chat.json``.

    Messages are upserted by id so flag changes overwrite the stored entry in
    place without reordering the history.
    """

    data_dir: Path

    def _path(self, document_id: str) -> Path:
        return document_root(self.data_dir, document_id) / CHAT_FILENAME

    def _load(self, document_id: str) -> dict[str, Any]:
        payload = read_json(self._path(document_id), default=None)
        if not isinstance(payload, dict):
            return {"session_id": None, "project_id": None, "messages": []}
        payload.setdefault("messages", [])
        return payload

    async def get_chat_session(self, document_id: str, project_id: str) -> str:
        payload = self._load(document_id)
        session_id = payload.get("session_id")
        if not session_id:
            session_id = f"session-{uuid4().hex[:12]}"
            payload["session_id"] = session_id
            payload["project_id"] = project_id
            write_json_atomic(self._path(document_id), payload)
        return str(session_id)

    async def get_chat_history(self, document_id: str) -> list[ChatMessage]:
        messages: list[ChatMessage] = []
        for entry in self._load(document_id)["messages"]:
            try:
                messages.append(ChatMessage.model_validate(entry))
            except ValidationError as exc:
                LOGGER.warning(
                    "chat.file.invalid_entry",
                    extra={
                        "extra_payload": {
                            "document_id": document_id,
                            "errors": exc.error_count(),
                        }
                    },
                )
        return messages

    async def send_chat_message(
        self, document_id: str, session_id: str, message: ChatMessage
    ) -> None:
        payload = self._load(document_id)
        record = message.model_dump(mode="json", by_alias=True)
        entries = payload["messages"]
        for index, entry in enumerate(entries):
            if entry.get("id") == message.id:
                entries[index] = record
                break
        else:
            entries.append(record)
        payload["session_id"] = payload.get("session_id") or session_id
        write_json_atomic(self._path(document_id), payload)


__all__ = ["CHAT_FILENAME", "ChatFileStore"]
