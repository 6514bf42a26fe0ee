"""Collaborator protocols for completions, checkpoints and chat history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .models.chat import ChatMessage
from .models.checkpoint import Checkpoint
from .models.completion import CompletionRequest, CompletionResult

LOGGER = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    async def complete(self, request: CompletionRequest) -> CompletionResult: ...


class CheckpointBackend(Protocol):
    async def create_checkpoint(
        self,
        document_id: str,
        session_id: str,
        checkpoint: Checkpoint,
        *,
        set_current: bool = True,
    ) -> None: ...

    async def get_checkpoints(self, document_id: str) -> list[Checkpoint]: ...

    async def restore_to_checkpoint(self, document_id: str, checkpoint_id: str) -> str | None: ...


class ChatBackend(Protocol):
    async def get_chat_session(self, document_id: str, project_id: str) -> str: ...

    async def get_chat_history(self, document_id: str) -> list[ChatMessage]: ...

    async def send_chat_message(
        self, document_id: str, session_id: str, message: ChatMessage
    ) -> None: ...


class OfflineCompletionBackend:
    """Deterministic completion backend used when no model service is configured.

    It echoes the request as a LaTeX comment followed by the selected text in a
    fenced block, which exercises the full parse and preview pipeline.
    """

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        lines = [f"% {line}" for line in request.user_request.splitlines() or [""]]
        if request.selected_text:
            lines.append(request.selected_text)
        text = (
            "Offline mode: no language model is configured, so the request is "
            "echoed back as a LaTeX comment.\n\n"
            "```latex\n" + "\n".join(lines) + "\n```"
        )
        LOGGER.debug(
            "completion.offline",
            extra={"extra_payload": {"document_id": request.document_id}},
        )
        return CompletionResult(text=text)


@dataclass(frozen=True)
class Backends:
    """The collaborators an edit session talks to."""

    completion: CompletionBackend
    checkpoints: CheckpointBackend
    chat: ChatBackend


__all__ = [
    "Backends",
    "ChatBackend",
    "CheckpointBackend",
    "CompletionBackend",
    "OfflineCompletionBackend",
]
