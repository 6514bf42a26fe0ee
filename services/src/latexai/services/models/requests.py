"""Pydantic models for document endpoint request bodies."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .selection import Selection


class SessionOpenRequest(BaseModel):
    """Request payload for opening or reloading a document session."""

    model_config = ConfigDict(extra="forbid")

    project_id: str = Field(min_length=1, max_length=128)
    content: str | None = None


class DocumentContentUpdate(BaseModel):
    """Full document text pushed by the editor surface."""

    model_config = ConfigDict(extra="forbid")

    content: str


class SelectionUpdate(BaseModel):
    """Selection change observed at a given document revision."""

    model_config = ConfigDict(extra="forbid")

    selection: Selection
    revision: int = Field(ge=0)


class CursorUpdate(BaseModel):
    """Cursor move observed at a given document revision."""

    model_config = ConfigDict(extra="forbid")

    offset: int = Field(ge=0)
    revision: int = Field(ge=0)


class EditRequestPayload(BaseModel):
    """Free-text edit request typed by the user."""

    model_config = ConfigDict(extra="forbid")

    content: str = Field(min_length=1, max_length=4000)

    @field_validator("content")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Edit request must not be blank.")
        return value


__all__ = [
    "CursorUpdate",
    "DocumentContentUpdate",
    "EditRequestPayload",
    "SelectionUpdate",
    "SessionOpenRequest",
]
