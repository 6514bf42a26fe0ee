"""Utility helpers for describing an applied document change."""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass
class ChangeSummary:
    """Structured record of what an accepted edit did to the document."""

    added: list[dict[str, Any]] = field(default_factory=list)
    removed: list[dict[str, Any]] = field(default_factory=list)
    changed: list[dict[str, Any]] = field(default_factory=list)
    anchors: dict[Literal["left", "right"], int] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)

    def as_dict(self) -> dict[str, Any]:
        return {
            "added": list(self.added),
            "removed": list(self.removed),
            "changed": list(self.changed),
            "anchors": dict(self.anchors),
        }


def compute_change(before: str, after: str) -> ChangeSummary:
    """Compute the character-level change between two document versions."""

    before = before or ""
    after = after or ""

    matcher = difflib.SequenceMatcher(a=before, b=after, autojunk=False)
    summary = ChangeSummary()

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        if tag == "replace":
            summary.changed.append(
                {"range": [i1, i2], "before": before[i1:i2], "after": after[j1:j2]}
            )
        elif tag == "delete":
            summary.removed.append({"range": [i1, i2], "text": before[i1:i2]})
        elif tag == "insert":
            summary.added.append({"range": [i1, i1], "text": after[j1:j2]})

    summary.anchors = {
        "left": _matching_prefix_length(before, after),
        "right": _matching_suffix_length(before, after),
    }
    return summary


def _matching_prefix_length(left: str, right: str) -> int:
    limit = min(len(left), len(right))
    count = 0
    for idx in range(limit):
        if left[idx] != right[idx]:
            break
        count += 1
    return count


def _matching_suffix_length(left: str, right: str) -> int:
    limit = min(len(left), len(right))
    count = 0
    for idx in range(1, limit + 1):
        if left[-idx] != right[-idx]:
            break
        count += 1
    return count


__all__ = ["ChangeSummary", "compute_change"]
