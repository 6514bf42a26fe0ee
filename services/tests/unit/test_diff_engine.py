"""Unit tests for the applied-change summary helpers."""

from __future__ import annotations

from latexai.services.diff_engine import compute_change


def test_compute_change_insert_only() -> None:
    """Pure insert operations should populate the added list and anchors."""

    result = compute_change("abc", "abcXYZ")

    assert result.added == [{"range": [3, 3], "text": "XYZ"}]
    assert result.removed == []
    assert result.changed == []
    assert result.anchors == {"left": 3, "right": 0}


def test_compute_change_delete_only() -> None:
    """Pure delete operations should populate the removed list and anchors."""

    result = compute_change("abcXYZ", "abc")

    assert result.added == []
    assert result.removed == [{"range": [3, 6], "text": "XYZ"}]
    assert result.changed == []
    assert result.anchors == {"left": 3, "right": 0}


def test_compute_change_replace_only() -> None:
    """Replacing text should produce a changed entry and zero anchors."""

    result = compute_change("cat", "dog")

    assert result.added == []
    assert result.removed == []
    assert result.changed == [{"range": [0, 3], "before": "cat", "after": "dog"}]
    assert result.anchors == {"left": 0, "right": 0}


def test_identical_documents_have_empty_summary() -> None:
    result = compute_change("same", "same")

    assert result.is_empty
    assert result.as_dict() == {
        "added": [],
        "removed": [],
        "changed": [],
        "anchors": {"left": 4, "right": 4},
    }
