"""Unit tests for revision-bound selection tracking."""

from __future__ import annotations

import pytest

from latexai.services.exceptions import StaleSelectionError
from latexai.services.models import CursorOffset, Selection
from latexai.services.selection import SelectionTracker


def _tracker() -> SelectionTracker:
    return SelectionTracker(revision=3, document_length=40)


def test_selection_is_preferred_over_cursor() -> None:
    tracker = _tracker()
    tracker.update_cursor(5, revision=3)
    tracker.update_selection(Selection(text="abc", from_=10, to=13), revision=3)

    current = tracker.current()

    assert isinstance(current, Selection)
    assert current.from_ == 10


def test_clear_drops_selection_and_keeps_cursor() -> None:
    tracker = _tracker()
    tracker.update_cursor(5, revision=3)
    tracker.update_selection(Selection(text="abc", from_=10, to=13), revision=3)

    tracker.clear()

    assert tracker.current() == CursorOffset(offset=5)


def test_read_after_document_change_is_refused() -> None:
    tracker = _tracker()
    tracker.update_selection(Selection(text="abc", from_=10, to=13), revision=3)

    tracker.document_changed(revision=4, document_length=20)

    assert not tracker.in_sync
    with pytest.raises(StaleSelectionError):
        tracker.current()


def test_resync_after_document_change_allows_reads() -> None:
    tracker = _tracker()
    tracker.update_cursor(5, revision=3)
    tracker.document_changed(revision=4, document_length=20)

    tracker.update_cursor(7, revision=4)

    assert tracker.in_sync
    assert tracker.current() == CursorOffset(offset=7)


def test_empty_tracker_reads_none_even_when_out_of_sync() -> None:
    tracker = _tracker()
    tracker.document_changed(revision=4, document_length=20)

    assert tracker.current() is None


def test_updates_tagged_with_old_revision_are_rejected() -> None:
    tracker = _tracker()
    tracker.document_changed(revision=4, document_length=40)

    with pytest.raises(StaleSelectionError):
        tracker.update_selection(Selection(text="abc", from_=10, to=13), revision=3)
    with pytest.raises(StaleSelectionError):
        tracker.update_cursor(1, revision=3)


def test_positions_beyond_document_length_are_rejected() -> None:
    tracker = _tracker()

    with pytest.raises(StaleSelectionError):
        tracker.update_selection(Selection(text="x", from_=39, to=41), revision=3)
    with pytest.raises(StaleSelectionError):
        tracker.update_cursor(41, revision=3)


def test_reset_forgets_positions_and_resyncs() -> None:
    tracker = _tracker()
    tracker.update_cursor(5, revision=3)

    tracker.reset(revision=9, document_length=12)

    assert tracker.in_sync
    assert tracker.current() is None


def test_selection_model_rejects_reversed_range() -> None:
    with pytest.raises(ValueError):
        Selection(text="x", from_=5, to=4)
