"""Checkpoint model for pre-edit document snapshots."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class Checkpoint(BaseModel):
    """Full document text captured immediately before an accepted edit."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    content_before: str
    content_after: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)
    description: str = ""
    message_id: str | None = None


__all__ = ["Checkpoint", "utc_now"]
