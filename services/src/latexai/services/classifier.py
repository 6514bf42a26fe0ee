"""Infer the edit action kind from the user's request text."""

from __future__ import annotations

import re

from .models.suggestion import ActionKind


def _keywords(*alternatives: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(alternatives) + r")\b", re.IGNORECASE)


_REPLACE = _keywords(
    r"replac(?:e|es|ed|ing)",
    r"chang(?:e|es|ed|ing)",
    r"modif(?:y|ies|ied|ying)",
)
_TRANSFORM = _keywords(
    r"mak(?:e|es|ing)",
    r"convert(?:s|ed|ing)?",
)
_SELECTION_REPLACE = _keywords(r"instead", r"rather\s+than", r"tables?")
_DELETE = _keywords(r"delet(?:e|es|ed|ing)", r"remov(?:e|es|ed|ing)")
_ADD = _keywords(r"add(?:s|ed|ing)?", r"insert(?:s|ed|ing)?")
_DEICTIC = _keywords(r"this", r"that", r"here")


def classify_action(user_text: str, *, has_selection: bool) -> ActionKind:
    """Return ``add``, ``replace`` or ``delete`` for a request.

    With a selection, transformation verbs ("make", "convert") and the table
    keyword mean the selected text is rewritten, and a bare deictic reference
    ("this", "that", "here") defaults to replacing it. Without a selection
    there is nothing to transform, so "make"/"convert" create new content.
    """

    text = user_text or ""

    if has_selection:
        if _REPLACE.search(text) or _TRANSFORM.search(text) or _SELECTION_REPLACE.search(text):
            return "replace"
        if _DELETE.search(text):
            return "delete"
        if _ADD.search(text):
            return "add"
        if _DEICTIC.search(text):
            return "replace"
        return "add"

    if _REPLACE.search(text):
        return "replace"
    if _DELETE.search(text):
        return "delete"
    return "add"


__all__ = ["classify_action"]
