"""Ordered chat log for one document session."""

from __future__ import annotations

import logging
from typing import Iterable
from uuid import uuid4

from .exceptions import MessageNotFoundError
from .models.chat import AppliedFlag, ChatMessage
from .models.suggestion import ParsedSuggestion

LOGGER = logging.getLogger(__name__)

WELCOME_MESSAGE_ID = "welcome"
WELCOME_MESSAGE = (
    "Welcome to **LaTeXAI**! I'm your LaTeX assistant for this document.\n\n"
    "**I can help you with:**\n"
    "• Writing and formatting LaTeX documents\n"
    "• Fixing compilation errors and syntax issues\n"
    "• Suggesting mathematical notation and environments\n"
    "• Converting content to LaTeX format\n\n"
    "Select text in your document and ask me anything about LaTeX!"
)
ERROR_MESSAGE = "Sorry, I encountered an error processing your request. Please try again."
RESTORE_MESSAGE = "Suggestion applied successfully! You can restore the previous version if needed."
RESTORED_MESSAGE = "Content restored from checkpoint."


def new_message_id() -> str:
    return f"msg-{uuid4().hex[:16]}"


def user_message(text: str) -> ChatMessage:
    return ChatMessage(id=new_message_id(), role="user", kind="user", content=text)


def assistant_message(text: str, suggestion: ParsedSuggestion | None = None) -> ChatMessage:
    return ChatMessage(
        id=new_message_id(),
        role="assistant",
        kind="assistant",
        content=text,
        suggestion=suggestion,
        applied="pending" if suggestion is not None else None,
    )


def welcome_message() -> ChatMessage:
    return ChatMessage(
        id=WELCOME_MESSAGE_ID, role="assistant", kind="welcome", content=WELCOME_MESSAGE
    )


def restore_message(checkpoint_id: str) -> ChatMessage:
    """Affordance offering to roll back to ``checkpoint_id``."""

    return ChatMessage(
        id=new_message_id(),
        role="assistant",
        kind="restore",
        content=RESTORE_MESSAGE,
        checkpoint_id=checkpoint_id,
    )


def restored_message(checkpoint_id: str) -> ChatMessage:
    return ChatMessage(
        id=new_message_id(),
        role="assistant",
        kind="restored",
        content=RESTORED_MESSAGE,
        checkpoint_id=checkpoint_id,
    )


def warning_message(text: str) -> ChatMessage:
    return ChatMessage(id=new_message_id(), role="assistant", kind="warning", content=text)


def error_message(text: str = ERROR_MESSAGE) -> ChatMessage:
    return ChatMessage(id=new_message_id(), role="assistant", kind="error", content=text)


class MessageLog:
    """Append-only message sequence with server reconciliation.

    Entries are immutable; flag changes replace an entry in place with an
    updated copy so ordering never changes.
    """

    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []
        self._positions: dict[str, int] = {}
        self._confirmed: set[str] = set()

    def __len__(self) -> int:
        return len(self._messages)

    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def append(self, message: ChatMessage) -> ChatMessage:
        if message.id in self._positions:
            raise ValueError(f"Duplicate message id: {message.id}")
        self._positions[message.id] = len(self._messages)
        self._messages.append(message)
        return message

    def get(self, message_id: str) -> ChatMessage:
        position = self._positions.get(message_id)
        if position is None:
            raise MessageNotFoundError(
                "Message not found.", details={"message_id": message_id}
            )
        return self._messages[position]

    def mark(self, message_id: str, applied: AppliedFlag) -> ChatMessage:
        """Set the applied/rejected flag on a suggestion-bearing message."""

        current = self.get(message_id)
        updated = current.model_copy(update={"applied": applied})
        self._messages[self._positions[message_id]] = updated
        # A changed flag has to be written back to the server again.
        self._confirmed.discard(message_id)
        return updated

    def has_restore_for(self, checkpoint_id: str) -> bool:
        return any(
            message.kind == "restore" and message.checkpoint_id == checkpoint_id
            for message in self._messages
        )

    def mark_confirmed(self, message_id: str) -> None:
        if message_id in self._positions:
            self._confirmed.add(message_id)

    def unconfirmed(self) -> list[ChatMessage]:
        """Return entries the server has not acknowledged, in log order."""

        return [
            message
            for message in self._messages
            if message.id not in self._confirmed and message.kind != "welcome"
        ]

    def reconcile(self, confirmed: Iterable[ChatMessage]) -> list[ChatMessage]:
        """Merge server-confirmed history with local optimistic entries.

        Confirmed versions win for shared ids. Local-only entries follow the
        confirmed history in their original order; a local welcome message is
        dropped once real history exists. An empty result is seeded with a
        single welcome message.
        """

        history = list(confirmed)
        confirmed_ids = {message.id for message in history}
        local_only = [
            message
            for message in self._messages
            if message.id not in confirmed_ids and not (history and message.kind == "welcome")
        ]

        self._messages = []
        self._positions = {}
        for message in history:
            if message.id in self._positions:
                continue
            self.append(message)
        for message in local_only:
            self.append(message)
        self._confirmed = set(confirmed_ids)

        if not self._messages:
            self.seed_welcome()

        LOGGER.info(
            "message_log.reconciled",
            extra={
                "extra_payload": {
                    "confirmed": len(history),
                    "local_only": len(local_only),
                    "total": len(self._messages),
                }
            },
        )
        return self.messages()

    def seed_welcome(self) -> ChatMessage | None:
        """Seed the welcome message into an empty log."""

        if self._messages:
            return None
        return self.append(welcome_message())


__all__ = [
    "ERROR_MESSAGE",
    "MessageLog",
    "RESTORED_MESSAGE",
    "RESTORE_MESSAGE",
    "WELCOME_MESSAGE",
    "WELCOME_MESSAGE_ID",
    "assistant_message",
    "error_message",
    "new_message_id",
    "restore_message",
    "restored_message",
    "user_message",
    "warning_message",
]
