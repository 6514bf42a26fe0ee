"""Editor surface abstraction and the in-process document buffer."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .exceptions import InvalidAnchorError
from .models.preview import DiffPreviewSegment
from .models.suggestion import ActionKind

LOGGER = logging.getLogger(__name__)


class EditorSurface(Protocol):
    """What the edit session needs from the component that owns the text."""

    @property
    def content(self) -> str: ...

    @property
    def revision(self) -> int: ...

    def apply_suggestion(
        self,
        fragment: str,
        anchor_from: int,
        action_kind: ActionKind,
        selection_range: tuple[int, int],
    ) -> str: ...

    def replace_content(self, content: str) -> int: ...

    def preview_inline_diff(self, segments: Sequence[DiffPreviewSegment]) -> None: ...

    def clear_preview(self) -> None: ...

    def insert_anchor(self) -> int: ...


class DocumentBuffer:
    """Authoritative document text with a monotonically increasing revision.

    Every mutation bumps ``revision``. Preview segments are held alongside the
    text as an overlay and never touch it; applying an edit clears them.
    """

    def __init__(self, content: str = "", *, revision: int = 0) -> None:
        self._content = content
        self._revision = revision
        self._preview: list[DiffPreviewSegment] = []

    @property
    def content(self) -> str:
        return self._content

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def preview(self) -> list[DiffPreviewSegment]:
        return list(self._preview)

    def apply_suggestion(
        self,
        fragment: str,
        anchor_from: int,
        action_kind: ActionKind,
        selection_range: tuple[int, int],
    ) -> str:
        """Mutate the text for ``action_kind`` and return the new content."""

        start, end = selection_range
        length = len(self._content)
        if not (0 <= anchor_from <= length and 0 <= start <= end <= length):
            raise InvalidAnchorError(
                "Edit range lies outside the current document.",
                details={
                    "anchor_from": anchor_from,
                    "range": [start, end],
                    "document_length": length,
                },
            )

        if action_kind == "add":
            updated = self._content[:anchor_from] + fragment + self._content[anchor_from:]
        elif action_kind == "replace":
            updated = self._content[:start] + fragment + self._content[end:]
        elif action_kind == "delete":
            updated = self._content[:start] + self._content[end:]
        else:
            raise ValueError(f"Unsupported action kind: {action_kind}")

        self._set(updated)
        self._preview = []
        return updated

    def replace_content(self, content: str) -> int:
        """Swap in new text wholesale; returns the new revision."""

        if content != self._content:
            self._set(content)
        return self._revision

    def preview_inline_diff(self, segments: Sequence[DiffPreviewSegment]) -> None:
        self._preview = list(segments)

    def clear_preview(self) -> None:
        self._preview = []

    def insert_anchor(self) -> int:
        """Offset used when neither the model nor the editor supplied a position."""

        return len(self._content)

    def _set(self, content: str) -> None:
        self._content = content
        self._revision += 1
        LOGGER.debug(
            "document.mutated",
            extra={"extra_payload": {"revision": self._revision, "content_chars": len(content)}},
        )


__all__ = ["DocumentBuffer", "EditorSurface"]
