"""Tests for the per-document session registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from latexai.services.backends import Backends, OfflineCompletionBackend
from latexai.services.exceptions import SessionNotFoundError
from latexai.services.persistence import ChatFileStore, CheckpointFileStore
from latexai.services.registry import SessionRegistry
from latexai.services.session import EditSession


def _registry(tmp_path: Path) -> SessionRegistry:
    backends = Backends(
        completion=OfflineCompletionBackend(),
        checkpoints=CheckpointFileStore(tmp_path),
        chat=ChatFileStore(tmp_path),
    )
    return SessionRegistry(lambda document_id: EditSession(document_id, backends=backends))


def test_open_reuses_the_session_for_a_document(tmp_path: Path) -> None:
    registry = _registry(tmp_path)

    first = registry.open("paper-1")

    assert registry.open("paper-1") is first
    assert registry.get("paper-1") is first
    assert registry.open("paper-2") is not first
    assert len(registry) == 2
    assert "paper-1" in registry


def test_get_before_open_raises(tmp_path: Path) -> None:
    registry = _registry(tmp_path)

    with pytest.raises(SessionNotFoundError) as excinfo:
        registry.get("paper-1")

    assert excinfo.value.code == "NOT_FOUND"
    assert excinfo.value.details == {"document_id": "paper-1"}


def test_close_forgets_the_session(tmp_path: Path) -> None:
    registry = _registry(tmp_path)
    registry.open("paper-1")

    assert registry.close("paper-1") is True
    assert registry.close("paper-1") is False
    assert "paper-1" not in registry
    assert registry.open("paper-1") is not None
    assert len(registry) == 1
