"""Models exchanged with the language-model completion backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .selection import Selection
from .suggestion import ACTION_KINDS, ActionKind


@dataclass(frozen=True, slots=True)
class EditRequest:
    """A submitted user request, alive only until its response is parsed."""

    id: int
    user_text: str
    document_revision: int
    selection: Selection | None = None
    cursor: int | None = None


class CompletionRequest(BaseModel):
    """Payload sent to the completion backend."""

    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(serialization_alias="documentId")
    selected_text: str = Field(default="", serialization_alias="selectedText")
    user_request: str = Field(serialization_alias="userRequest")
    full_document: str = Field(default="", serialization_alias="fullDocument")
    selection_range_from: int | None = Field(default=None, serialization_alias="selectionRangeFrom")
    selection_range_to: int | None = Field(default=None, serialization_alias="selectionRangeTo")
    cursor_position: int | None = Field(default=None, serialization_alias="cursorPosition")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BackendSuggestion(BaseModel):
    """Pre-parsed suggestion fields some backends return alongside the text."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    action_type: ActionKind | None = Field(
        default=None,
        validation_alias=AliasChoices("actionType", "action_type"),
    )
    selection_range_from: int | None = Field(
        default=None,
        validation_alias=AliasChoices("selectionRangeFrom", "selection_range_from"),
    )
    selection_range_to: int | None = Field(
        default=None,
        validation_alias=AliasChoices("selectionRangeTo", "selection_range_to"),
    )
    latex_suggestion: str | None = Field(
        default=None,
        validation_alias=AliasChoices("latexSuggestion", "latex_suggestion"),
    )

    @field_validator("action_type", mode="before")
    @classmethod
    def _normalise_action(cls, value: object) -> object:
        if isinstance(value, str):
            candidate = value.strip().lower()
            if candidate == "modify":
                return "replace"
            if candidate in ACTION_KINDS:
                return candidate
            return None
        return value

    @property
    def has_fragment(self) -> bool:
        return bool(self.latex_suggestion and self.latex_suggestion.strip())

    def explicit_range(self) -> tuple[int, int] | None:
        """Return the backend anchor, defaulting ``to`` to ``from`` like the editor does."""

        if self.selection_range_from is None:
            return None
        end = self.selection_range_to
        return self.selection_range_from, self.selection_range_from if end is None else end


@dataclass(frozen=True, slots=True)
class CompletionResult:
    """Raw completion text plus any structured fields the backend supplied."""

    text: str
    suggestion: BackendSuggestion | None = None


__all__ = [
    "BackendSuggestion",
    "CompletionRequest",
    "CompletionResult",
    "EditRequest",
]
