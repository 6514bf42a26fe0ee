"""Resolve the authoritative document anchor for a suggestion."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from .models.selection import Selection
from .models.suggestion import ActionKind, Anchor

LOGGER = logging.getLogger(__name__)

AnchorSource = Literal["backend", "selection", "cursor", "default", "origin"]

DOWNGRADE_WARNING = (
    "The suggested range was reversed after fitting it to the document, "
    "so the content will be added at the end of the document instead."
)


@dataclass(frozen=True, slots=True)
class ResolvedAnchor:
    """Anchor plus the action kind it ended up supporting."""

    anchor: Anchor
    action_kind: ActionKind
    source: AnchorSource
    warning: str | None = None

    @property
    def downgraded(self) -> bool:
        return self.warning is not None


def resolve_anchor(
    document: str,
    action_kind: ActionKind,
    *,
    explicit: tuple[int, int] | None = None,
    selection: Selection | None = None,
    cursor: int | None = None,
    default_anchor: int | None = None,
) -> ResolvedAnchor:
    """Pick the edit range by strict priority and read its current text.

    Priority: explicit backend anchor (when in bounds), non-empty selection,
    cursor, caller default, offset 0. Offsets are clamped to the document and
    ``original_text`` is read from ``document`` now, never from an earlier copy.
    """

    length = len(document)
    start: int
    end: int
    source: AnchorSource

    if explicit is not None and _in_bounds(explicit, length):
        (start, end), source = explicit, "backend"
    elif selection is not None and not selection.is_empty:
        (start, end), source = (selection.from_, selection.to), "selection"
    elif cursor is not None:
        (start, end), source = (cursor, cursor), "cursor"
    elif default_anchor is not None:
        (start, end), source = (default_anchor, default_anchor), "default"
    else:
        (start, end), source = (0, 0), "origin"

    start = _clamp(start, length)
    end = _clamp(end, length)

    if start > end:
        LOGGER.warning(
            "anchor.downgraded",
            extra={
                "extra_payload": {
                    "source": source,
                    "from": start,
                    "to": end,
                    "document_length": length,
                    "action_kind": action_kind,
                }
            },
        )
        return ResolvedAnchor(
            anchor=Anchor(from_=length, to=length, original_text=""),
            action_kind="add",
            source=source,
            warning=DOWNGRADE_WARNING,
        )

    return ResolvedAnchor(
        anchor=Anchor(from_=start, to=end, original_text=document[start:end]),
        action_kind=action_kind,
        source=source,
    )


def _in_bounds(candidate: tuple[int, int], length: int) -> bool:
    start, end = candidate
    return 0 <= start <= length and 0 <= end <= length


def _clamp(value: int, length: int) -> int:
    return max(0, min(int(value), length))


__all__ = ["AnchorSource", "DOWNGRADE_WARNING", "ResolvedAnchor", "resolve_anchor"]
