"""Unit tests for edit action classification."""

from __future__ import annotations

import pytest

from latexai.services.classifier import classify_action


def test_make_this_a_table_with_selection_replaces() -> None:
    assert classify_action("make this a table", has_selection=True) == "replace"


def test_add_new_section_without_selection_adds() -> None:
    assert classify_action("add a new section here", has_selection=False) == "add"


def test_bare_deictic_reference_with_selection_defaults_to_replace() -> None:
    assert classify_action("could you fix this", has_selection=True) == "replace"


def test_no_keywords_and_no_deictic_with_selection_defaults_to_add() -> None:
    assert classify_action("a short abstract please", has_selection=True) == "add"


def test_make_without_selection_creates_content() -> None:
    assert classify_action("make a bibliography", has_selection=False) == "add"
    assert classify_action("convert to latex", has_selection=False) == "add"


@pytest.mark.parametrize(
    ("text", "has_selection", "expected"),
    [
        ("replace this with a 5x5 table", True, "replace"),
        ("Change the heading", False, "replace"),
        ("please modify the caption", True, "replace"),
        ("use bold instead", True, "replace"),
        ("italic rather than bold", True, "replace"),
        ("delete this paragraph", True, "delete"),
        ("Remove the footnote", False, "delete"),
        ("insert a figure after this", True, "add"),
        ("add a citation here", False, "add"),
    ],
)
def test_keyword_triggers(text: str, has_selection: bool, expected: str) -> None:
    assert classify_action(text, has_selection=has_selection) == expected


def test_replace_keywords_take_precedence_over_delete() -> None:
    assert classify_action("remove the old one and replace it", has_selection=True) == "replace"
    assert classify_action("remove the old one and replace it", has_selection=False) == "replace"
