"""Parsed suggestion models, discriminated on the edit action kind."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

ActionKind = Literal["add", "replace", "delete"]
ACTION_KINDS: tuple[ActionKind, ...] = ("add", "replace", "delete")

ParseRule = Literal[
    "backend",
    "labeled_fence",
    "fenced",
    "intro_phrase",
    "structure",
    "token_lines",
    "raw",
]


class Anchor(BaseModel):
    """Resolved document range an edit applies to."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: int = Field(alias="from", ge=0)
    to: int = Field(ge=0)
    original_text: str = ""

    @model_validator(mode="after")
    def _validate_range(self) -> "Anchor":
        if self.from_ > self.to:
            raise ValueError("Anchor 'from' must not exceed 'to'.")
        if len(self.original_text) != self.to - self.from_:
            raise ValueError("Anchor original_text must span exactly [from, to).")
        return self


class _SuggestionBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    fragment: str
    explanation: str
    anchor: Anchor
    document_revision: int = Field(ge=0)
    parse_rule: ParseRule
    low_confidence: bool = False


class AddSuggestion(_SuggestionBase):
    """Insert ``fragment`` at ``anchor.from``; the anchor text is left alone."""

    action_kind: Literal["add"] = "add"


class ReplaceSuggestion(_SuggestionBase):
    """Swap ``anchor.original_text`` for ``fragment``."""

    action_kind: Literal["replace"] = "replace"


class DeleteSuggestion(_SuggestionBase):
    """Remove ``anchor.original_text``; ``fragment`` is informational only."""

    action_kind: Literal["delete"] = "delete"


ParsedSuggestion = Annotated[
    Union[AddSuggestion, ReplaceSuggestion, DeleteSuggestion],
    Field(discriminator="action_kind"),
]

_SUGGESTION_ADAPTER: TypeAdapter[Any] = TypeAdapter(ParsedSuggestion)


def build_suggestion(action_kind: ActionKind, **fields: Any) -> ParsedSuggestion:
    """Validate ``fields`` into the suggestion variant for ``action_kind``."""

    return _SUGGESTION_ADAPTER.validate_python({"action_kind": action_kind, **fields})


__all__ = [
    "ACTION_KINDS",
    "ActionKind",
    "AddSuggestion",
    "Anchor",
    "DeleteSuggestion",
    "ParseRule",
    "ParsedSuggestion",
    "ReplaceSuggestion",
    "build_suggestion",
]
