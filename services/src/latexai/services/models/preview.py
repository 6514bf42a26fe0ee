"""Diff preview segment models handed to the editor surface."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SegmentKind = Literal["add", "delete", "replace"]


class PreviewState(str, Enum):
    """Lifecycle of the preview overlay for one document."""

    NONE = "none"
    PREVIEWING = "previewing"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class DiffPreviewSegment(BaseModel):
    """Non-destructive overlay describing one region of a pending edit."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    kind: SegmentKind
    from_: int = Field(alias="from", ge=0)
    to: int = Field(ge=0)
    content: str
    original_content: str | None = None


__all__ = ["DiffPreviewSegment", "PreviewState", "SegmentKind"]
