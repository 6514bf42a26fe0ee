"""Pydantic models and dataclasses for service IO."""

from .chat import AppliedFlag, ChatMessage, MessageKind
from .checkpoint import Checkpoint
from .completion import BackendSuggestion, CompletionRequest, CompletionResult, EditRequest
from .preview import DiffPreviewSegment, PreviewState
from .selection import CursorOffset, Selection
from .suggestion import (
    ActionKind,
    AddSuggestion,
    Anchor,
    DeleteSuggestion,
    ParsedSuggestion,
    ParseRule,
    ReplaceSuggestion,
    build_suggestion,
)

__all__ = [
    "ActionKind",
    "AddSuggestion",
    "Anchor",
    "AppliedFlag",
    "BackendSuggestion",
    "ChatMessage",
    "Checkpoint",
    "CompletionRequest",
    "CompletionResult",
    "CursorOffset",
    "DeleteSuggestion",
    "DiffPreviewSegment",
    "EditRequest",
    "MessageKind",
    "ParseRule",
    "ParsedSuggestion",
    "PreviewState",
    "ReplaceSuggestion",
    "Selection",
    "build_suggestion",
]
