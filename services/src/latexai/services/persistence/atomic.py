"""Atomic JSON files for the per-document chat, checkpoint and diagnostic state."""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from threading import Lock, RLock
from typing import IO, Any, Iterator
from uuid import uuid4

LOGGER = logging.getLogger(__name__)


class _PathLocks:
    """One re-entrant lock per file path, created on first use."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[Path, RLock] = {}

    def for_path(self, target: Path) -> RLock:
        with self._guard:
            return self._locks.setdefault(target, RLock())


_LOCKS = _PathLocks()


@contextmanager
def locked_path(target: Path) -> Iterator[None]:
    """Serialise readers and writers of ``target`` within this process."""

    with _LOCKS.for_path(target):
        yield


def flush_handle(handle: IO[Any], *, durable: bool) -> None:
    handle.flush()
    if durable:
        os.fsync(handle.fileno())


def write_json_atomic(path: Path, payload: Any, *, durable: bool = True) -> None:
    """Write JSON to a hidden sibling and rename it over ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    staging = path.with_name(f".{path.name}.{uuid4().hex}.tmp")
    with locked_path(path):
        try:
            with staging.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
                flush_handle(handle, durable=durable)
            staging.replace(path)
        finally:
            staging.unlink(missing_ok=True)


def read_json(path: Path, *, default: Any = None) -> Any:
    """Load ``path``; missing files yield ``default`` and unreadable ones are set aside."""

    with locked_path(path):
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            quarantined = path.with_name(f"{path.name}.corrupt-{uuid4().hex[:8]}")
            path.replace(quarantined)
            LOGGER.warning(
                "persistence.corrupt_file",
                extra={
                    "extra_payload": {
                        "file": path.name,
                        "quarantined_as": quarantined.name,
                        "error": str(exc),
                    }
                },
            )
            return default


def dump_diagnostic(path: Path, payload: dict[str, Any]) -> None:
    write_json_atomic(path, payload, durable=True)


__all__ = [
    "dump_diagnostic",
    "flush_handle",
    "locked_path",
    "read_json",
    "write_json_atomic",
]
