"""Shared document identifier validation helpers."""

from __future__ import annotations

import re

_DOCUMENT_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,127}$")


def validate_document_id(value: str) -> str:
    """Ensure a document identifier is usable as a single path segment."""

    if not isinstance(value, str):
        raise ValueError("Document ID must be a string.")

    if value.strip() != value:
        raise ValueError("Document ID must not contain leading or trailing whitespace.")

    if value == "":
        raise ValueError("Document ID must not be empty.")

    if value in {".", ".."} or ".." in value:
        raise ValueError("Document ID is invalid.")

    if not _DOCUMENT_ID_RE.fullmatch(value):
        raise ValueError(
            "Document ID may only contain letters, digits, '.', '_' and '-' "
            "and must start with a letter or digit."
        )

    return value


__all__ = ["validate_document_id"]
