"""Unit tests for preview segment synthesis and the preview state machine."""

from __future__ import annotations

import pytest

from latexai.services.diff_preview import DiffPreviewBuilder, build_segments
from latexai.services.exceptions import SuggestionNotActiveError
from latexai.services.models import Anchor, PreviewState, build_suggestion


def _suggestion(kind: str, *, start: int, end: int, original: str, fragment: str = "NEW"):
    return build_suggestion(
        kind,
        fragment=fragment,
        explanation="why",
        anchor=Anchor(from_=start, to=end, original_text=original),
        document_revision=0,
        parse_rule="labeled_fence",
    )


def test_add_is_a_single_insertion_at_anchor_from() -> None:
    segments = build_segments(
        _suggestion("add", start=4, end=9, original="hello"), preview_id="m1"
    )

    assert len(segments) == 1
    segment = segments[0]
    assert (segment.kind, segment.from_, segment.to) == ("add", 4, 4)
    assert segment.content == "NEW"
    assert segment.original_content is None


def test_delete_covers_the_anchor_with_original_text() -> None:
    segments = build_segments(
        _suggestion("delete", start=2, end=5, original="abc"), preview_id="m1"
    )

    assert [(s.kind, s.from_, s.to, s.content) for s in segments] == [("delete", 2, 5, "abc")]


def test_delete_of_empty_range_has_no_segments() -> None:
    assert build_segments(_suggestion("delete", start=3, end=3, original=""), preview_id="m1") == []


def test_replace_orders_delete_before_add_at_range_end() -> None:
    segments = build_segments(
        _suggestion("replace", start=120, end=128, original="Table 1 ", fragment="\\begin{tabular}"),
        preview_id="m1",
    )

    assert [(s.id, s.kind, s.from_, s.to) for s in segments] == [
        ("m1-delete", "delete", 120, 128),
        ("m1-add", "add", 128, 128),
    ]
    assert segments[0].content == "Table 1 "
    assert segments[1].content == "\\begin{tabular}"


def test_replace_of_empty_range_only_adds() -> None:
    segments = build_segments(_suggestion("replace", start=6, end=6, original=""), preview_id="m1")

    assert [(s.kind, s.from_) for s in segments] == [("add", 6)]


def test_segments_serialise_with_from_alias() -> None:
    segment = build_segments(_suggestion("add", start=1, end=1, original=""), preview_id="m1")[0]

    dumped = segment.model_dump(by_alias=True)

    assert dumped["from"] == 1
    assert "from_" not in dumped


def test_begin_accept_cycle() -> None:
    builder = DiffPreviewBuilder()
    assert builder.state is PreviewState.NONE

    segments, discarded = builder.begin("m1", _suggestion("add", start=0, end=0, original=""))

    assert discarded is None
    assert segments
    assert builder.state is PreviewState.PREVIEWING
    accepted = builder.accept("m1")
    assert accepted.message_id == "m1"
    assert builder.state is PreviewState.NONE
    assert builder.last_outcome is PreviewState.ACCEPTED


def test_new_preview_discards_the_previous_one() -> None:
    builder = DiffPreviewBuilder()
    builder.begin("m1", _suggestion("add", start=0, end=0, original=""))

    _, discarded = builder.begin("m2", _suggestion("add", start=1, end=1, original=""))

    assert discarded is not None and discarded.message_id == "m1"
    assert builder.active is not None and builder.active.message_id == "m2"
    with pytest.raises(SuggestionNotActiveError):
        builder.accept("m1")


def test_reject_requires_the_active_message_id() -> None:
    builder = DiffPreviewBuilder()
    builder.begin("m1", _suggestion("add", start=0, end=0, original=""))

    with pytest.raises(SuggestionNotActiveError):
        builder.reject("other")
    builder.reject("m1")

    assert builder.state is PreviewState.NONE
    assert builder.last_outcome is PreviewState.REJECTED


def test_suggestion_without_segments_does_not_become_active() -> None:
    builder = DiffPreviewBuilder()

    segments, _ = builder.begin("m1", _suggestion("delete", start=2, end=2, original=""))

    assert segments == []
    assert builder.state is PreviewState.NONE
