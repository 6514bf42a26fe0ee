"""Chat message models for the edit session log."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .checkpoint import utc_now
from .suggestion import ParsedSuggestion

Role = Literal["user", "assistant"]
MessageKind = Literal[
    "user",
    "assistant",
    "welcome",
    "restore",
    "restored",
    "warning",
    "error",
]
AppliedFlag = Literal["applied", "rejected", "pending"]


class ChatMessage(BaseModel):
    """One entry in the ordered, append-only session log."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    role: Role
    kind: MessageKind
    content: str
    suggestion: ParsedSuggestion | None = None
    applied: AppliedFlag | None = None
    checkpoint_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


__all__ = ["AppliedFlag", "ChatMessage", "MessageKind", "Role"]
