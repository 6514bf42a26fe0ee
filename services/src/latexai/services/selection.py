"""Selection and cursor tracking bound to document revisions."""

from __future__ import annotations

import logging

from .exceptions import StaleSelectionError
from .models.selection import CursorOffset, Selection

LOGGER = logging.getLogger(__name__)


class SelectionTracker:
    """Hold the latest selection or cursor reported by the editor surface.

    Every update is tagged with the document revision it was observed at.
    When the document mutates the tracker is marked out of sync, and reading a
    position before the editor re-synchronises raises ``StaleSelectionError``.
    """

    def __init__(self, *, revision: int = 0, document_length: int = 0) -> None:
        self._revision = revision
        self._document_length = document_length
        self._synced_revision = revision
        self._selection: Selection | None = None
        self._cursor: CursorOffset | None = None

    @property
    def in_sync(self) -> bool:
        return self._synced_revision == self._revision

    def document_changed(self, *, revision: int, document_length: int) -> None:
        """Record a document mutation; tracked positions become stale."""

        self._revision = revision
        self._document_length = document_length

    def reset(self, *, revision: int, document_length: int) -> None:
        """Forget all positions after an engine-driven mutation."""

        self._revision = revision
        self._document_length = document_length
        self._synced_revision = revision
        self._selection = None
        self._cursor = None

    def update_selection(self, selection: Selection, *, revision: int) -> None:
        self._check_revision(revision)
        if not selection.fits(self._document_length):
            raise StaleSelectionError(
                "Selection lies outside the current document.",
                details={"to": selection.to, "document_length": self._document_length},
            )
        self._selection = selection
        self._synced_revision = revision

    def update_cursor(self, offset: int, *, revision: int) -> None:
        self._check_revision(revision)
        if offset > self._document_length:
            raise StaleSelectionError(
                "Cursor lies outside the current document.",
                details={"offset": offset, "document_length": self._document_length},
            )
        self._cursor = CursorOffset(offset=offset)
        self._synced_revision = revision

    def clear(self) -> None:
        """Drop the selection entirely (explicit cancel); the cursor is kept."""

        self._selection = None

    def current(self) -> Selection | CursorOffset | None:
        """Return the selection, else the cursor, else None."""

        value: Selection | CursorOffset | None = self._selection or self._cursor
        if value is not None and not self.in_sync:
            LOGGER.debug(
                "selection.stale_read",
                extra={
                    "extra_payload": {
                        "synced_revision": self._synced_revision,
                        "revision": self._revision,
                    }
                },
            )
            raise StaleSelectionError(
                "Selection predates the latest document change; re-sync before reading.",
                details={"synced_revision": self._synced_revision, "revision": self._revision},
            )
        return value

    def _check_revision(self, revision: int) -> None:
        if revision != self._revision:
            raise StaleSelectionError(
                "Position update refers to an outdated document revision.",
                details={"revision": revision, "current_revision": self._revision},
            )


__all__ = ["SelectionTracker"]
