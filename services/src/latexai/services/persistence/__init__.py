"""Convenience exports for persistence helpers."""

from __future__ import annotations

from .atomic import dump_diagnostic, read_json, write_json_atomic
from .chat import ChatFileStore
from .checkpoints import CheckpointFileStore
from .paths import document_root

__all__ = [
    "ChatFileStore",
    "CheckpointFileStore",
    "document_root",
    "dump_diagnostic",
    "read_json",
    "write_json_atomic",
]
