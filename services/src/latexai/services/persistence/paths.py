"""On-disk layout for per-document state."""

from __future__ import annotations

from pathlib import Path

from ..models._document_id import validate_document_id

DOCUMENTS_DIRNAME = "documents"


def document_root(data_dir: Path, document_id: str) -> Path:
    """Return ``<data_dir>/documents/<document_id>`` after validating the id."""

    return data_dir / DOCUMENTS_DIRNAME / validate_document_id(document_id)


__all__ = ["DOCUMENTS_DIRNAME", "document_root"]
