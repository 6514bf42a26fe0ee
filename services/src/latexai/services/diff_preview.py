"""Turn parsed suggestions into preview segments and track the active preview."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .exceptions import SuggestionNotActiveError
from .models.preview import DiffPreviewSegment, PreviewState
from .models.suggestion import ParsedSuggestion

LOGGER = logging.getLogger(__name__)


def build_segments(suggestion: ParsedSuggestion, *, preview_id: str) -> list[DiffPreviewSegment]:
    """Decompose ``suggestion`` into overlay segments.

    A replace becomes a ``delete`` over the old range followed by an ``add`` at
    the end of that range, so segments stay ordered left to right.
    """

    anchor = suggestion.anchor
    if suggestion.action_kind == "add":
        return [
            DiffPreviewSegment(
                id=preview_id,
                kind="add",
                from_=anchor.from_,
                to=anchor.from_,
                content=suggestion.fragment,
            )
        ]

    if suggestion.action_kind == "delete":
        if anchor.to == anchor.from_:
            return []
        return [
            DiffPreviewSegment(
                id=preview_id,
                kind="delete",
                from_=anchor.from_,
                to=anchor.to,
                content=anchor.original_text,
                original_content=anchor.original_text,
            )
        ]

    segments: list[DiffPreviewSegment] = []
    if anchor.original_text:
        segments.append(
            DiffPreviewSegment(
                id=f"{preview_id}-delete",
                kind="delete",
                from_=anchor.from_,
                to=anchor.to,
                content=anchor.original_text,
                original_content=anchor.original_text,
            )
        )
    segments.append(
        DiffPreviewSegment(
            id=f"{preview_id}-add",
            kind="add",
            from_=anchor.to,
            to=anchor.to,
            content=suggestion.fragment,
        )
    )
    return segments


@dataclass(slots=True)
class ActivePreview:
    """The single preview awaiting accept or reject."""

    message_id: str
    suggestion: ParsedSuggestion
    segments: list[DiffPreviewSegment] = field(default_factory=list)


class DiffPreviewBuilder:
    """Per-document preview state machine.

    ``NONE -> PREVIEWING -> {ACCEPTED, REJECTED} -> NONE``. Only one preview is
    active; starting a new one discards the previous one.
    """

    def __init__(self) -> None:
        self._active: ActivePreview | None = None
        self._last_outcome: PreviewState = PreviewState.NONE

    @property
    def state(self) -> PreviewState:
        return PreviewState.PREVIEWING if self._active else PreviewState.NONE

    @property
    def active(self) -> ActivePreview | None:
        return self._active

    @property
    def last_outcome(self) -> PreviewState:
        return self._last_outcome

    def begin(
        self, message_id: str, suggestion: ParsedSuggestion
    ) -> tuple[list[DiffPreviewSegment], ActivePreview | None]:
        """Start previewing ``suggestion``; return its segments and the discarded preview."""

        discarded = self._active
        self._active = None
        if discarded is not None:
            LOGGER.info(
                "preview.superseded",
                extra={
                    "extra_payload": {
                        "previous": discarded.message_id,
                        "current": message_id,
                    }
                },
            )

        segments = build_segments(suggestion, preview_id=message_id)
        if segments:
            self._active = ActivePreview(
                message_id=message_id, suggestion=suggestion, segments=segments
            )
        return segments, discarded

    def accept(self, message_id: str) -> ActivePreview:
        preview = self.require(message_id)
        self._settle(PreviewState.ACCEPTED)
        return preview

    def reject(self, message_id: str) -> ActivePreview:
        preview = self.require(message_id)
        self._settle(PreviewState.REJECTED)
        return preview

    def discard(self) -> ActivePreview | None:
        """Drop the active preview without an outcome (document replaced underneath)."""

        preview = self._active
        if preview is not None:
            self._settle(PreviewState.REJECTED)
        return preview

    def require(self, message_id: str) -> ActivePreview:
        if self._active is None or self._active.message_id != message_id:
            raise SuggestionNotActiveError(
                "Suggestion is not the active preview.",
                details={
                    "message_id": message_id,
                    "active_message_id": self._active.message_id if self._active else None,
                },
            )
        return self._active

    def _settle(self, outcome: PreviewState) -> None:
        self._last_outcome = outcome
        self._active = None


__all__ = ["ActivePreview", "DiffPreviewBuilder", "build_segments"]
