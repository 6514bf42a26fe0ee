"""Shared helpers across document router modules."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

from fastapi import Depends

from ...config import ServiceSettings
from ...diagnostics import DiagnosticLogger
from ...exceptions import EditEngineError
from ...http import raise_engine_error, raise_validation_error
from ...models.chat import ChatMessage
from ...models.checkpoint import Checkpoint
from ...models.preview import DiffPreviewSegment
from ...registry import SessionRegistry
from ...session import EditSession
from ..dependencies import get_diagnostics, get_registry, get_settings


@dataclass
class DocumentScope:
    """Everything a document endpoint needs to reach its session and report errors."""

    document_id: str
    root: Path
    diagnostics: DiagnosticLogger
    registry: SessionRegistry

    @contextmanager
    def engine_errors(self) -> Iterator[None]:
        """Translate edit-engine failures into service errors with diagnostics."""

        try:
            yield
        except EditEngineError as exc:
            raise_engine_error(exc, diagnostics=self.diagnostics, document_root=self.root)

    def session(self) -> EditSession:
        with self.engine_errors():
            return self.registry.get(self.document_id)


def get_document_scope(
    document_id: str,
    settings: ServiceSettings = Depends(get_settings),
    diagnostics: DiagnosticLogger = Depends(get_diagnostics),
    registry: SessionRegistry = Depends(get_registry),
) -> DocumentScope:
    try:
        root = settings.document_root(document_id)
    except ValueError as exc:
        raise_validation_error(
            message=str(exc),
            details={"document_id": document_id},
            diagnostics=diagnostics,
            document_root=None,
        )
    return DocumentScope(
        document_id=document_id, root=root, diagnostics=diagnostics, registry=registry
    )


def dump_message(message: ChatMessage) -> dict[str, Any]:
    return message.model_dump(mode="json", by_alias=True)


def dump_messages(messages: Iterable[ChatMessage]) -> list[dict[str, Any]]:
    return [dump_message(message) for message in messages]


def dump_segments(segments: Iterable[DiffPreviewSegment]) -> list[dict[str, Any]]:
    return [segment.model_dump(mode="json", by_alias=True) for segment in segments]


def dump_checkpoint(checkpoint: Checkpoint) -> dict[str, Any]:
    """Checkpoint metadata; document text stays on the server."""

    return {
        "id": checkpoint.id,
        "timestamp": checkpoint.timestamp.isoformat(),
        "description": checkpoint.description,
        "message_id": checkpoint.message_id,
        "content_before_chars": len(checkpoint.content_before),
        "content_after_chars": (
            len(checkpoint.content_after) if checkpoint.content_after is not None else None
        ),
    }


__all__ = [
    "DocumentScope",
    "dump_checkpoint",
    "dump_message",
    "dump_messages",
    "dump_segments",
    "get_document_scope",
]
