"""Selection and cursor models produced by the editor surface."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Selection(BaseModel):
    """Highlighted text range ``[from, to)`` in the editor."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str
    from_: int = Field(alias="from", ge=0)
    to: int = Field(ge=0)

    @model_validator(mode="after")
    def _validate_range(self) -> "Selection":
        if self.from_ > self.to:
            raise ValueError("Selection 'from' must not exceed 'to'.")
        return self

    @property
    def is_empty(self) -> bool:
        """Return True when the selection carries no usable text."""

        return self.to <= self.from_ or not self.text.strip()

    def fits(self, document_length: int) -> bool:
        return self.to <= document_length


class CursorOffset(BaseModel):
    """Caret position reported by the editor."""

    model_config = ConfigDict(frozen=True)

    offset: int = Field(ge=0)


__all__ = ["CursorOffset", "Selection"]
