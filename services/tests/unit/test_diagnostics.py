"""Tests for diagnostic logging utilities."""

from __future__ import annotations

import json
from pathlib import Path

from latexai.services.diagnostics import DiagnosticLogger


def test_diagnostic_logger_writes_redacted_payload(tmp_path: Path) -> None:
    logger = DiagnosticLogger()

    path = logger.log(
        tmp_path,
        code="STALE_ANCHOR",
        message="The document changed since this suggestion was made.",
        details={
            "document_id": "paper-1",
            "document_length": 42,
            "original_text": "secret draft",
            "fragment": "\\section{Hidden}",
            "from": 3,
        },
    )

    assert path.parent == tmp_path / "history" / "diagnostics"
    assert path.name.endswith("_stale_anchor.json")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["code"] == "STALE_ANCHOR"
    assert payload["timestamp"].endswith("Z")
    assert payload["details"] == {
        "document_id": "paper-1",
        "document_length": 42,
        "original_text": "[REDACTED]",
        "fragment": "[REDACTED]",
        "from": 3,
    }


def test_diagnostic_logger_never_overwrites(tmp_path: Path) -> None:
    logger = DiagnosticLogger()

    paths = {logger.log(tmp_path, code="model/error", message="x") for _ in range(3)}

    assert len(paths) == 3
    assert all("model-error" in path.name for path in paths)


def test_nested_anchor_text_is_redacted(tmp_path: Path) -> None:
    root = tmp_path / "documents" / "paper-1"

    path = DiagnosticLogger().log(
        root,
        code="STALE_ANCHOR",
        message="changed",
        details={"anchor": {"from": 4, "to": 9, "original_text": "Table"}, "revision": 3},
    )

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["document_id"] == "paper-1"
    assert payload["details"] == {
        "anchor": {"from": 4, "to": 9, "original_text": "[REDACTED]"},
        "revision": 3,
    }
