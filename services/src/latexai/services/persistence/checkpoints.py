"""File-backed checkpoint persistence used in offline mode."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..models.checkpoint import Checkpoint
from .atomic import read_json, write_json_atomic
from .paths import document_root

LOGGER = logging.getLogger(__name__)

CHECKPOINTS_FILENAME = "checkpoints.json"
MAX_PERSISTED_CHECKPOINTS = 50


@dataclass
class CheckpointFileStore:
    """Persist checkpoints under ``<data_dir>/documents/<id>/checkpoints.json``."""

    data_dir: Path
    max_entries: int = MAX_PERSISTED_CHECKPOINTS

    def _path(self, document_id: str) -> Path:
        return document_root(self.data_dir, document_id) / CHECKPOINTS_FILENAME

    def _load(self, document_id: str) -> dict[str, Any]:
        payload = read_json(self._path(document_id), default=None)
        if not isinstance(payload, dict):
            return {"checkpoints": [], "current": None}
        payload.setdefault("checkpoints", [])
        payload.setdefault("current", None)
        return payload

    async def create_checkpoint(
        self,
        document_id: str,
        session_id: str,
        checkpoint: Checkpoint,
        *,
        set_current: bool = True,
    ) -> None:
        payload = self._load(document_id)
        entries = [entry for entry in payload["checkpoints"] if entry.get("id") != checkpoint.id]
        record = checkpoint.model_dump(mode="json")
        record["session_id"] = session_id
        entries.append(record)
        payload["checkpoints"] = entries[-self.max_entries :]
        if set_current:
            payload["current"] = checkpoint.id
        write_json_atomic(self._path(document_id), payload)

    async def get_checkpoints(self, document_id: str) -> list[Checkpoint]:
        checkpoints: list[Checkpoint] = []
        for entry in self._load(document_id)["checkpoints"]:
            try:
                checkpoints.append(Checkpoint.model_validate(entry))
            except ValidationError as exc:
                LOGGER.warning(
                    "checkpoint.file.invalid_entry",
                    extra={
                        "extra_payload": {
                            "document_id": document_id,
                            "errors": exc.error_count(),
                        }
                    },
                )
        return checkpoints

    async def restore_to_checkpoint(self, document_id: str, checkpoint_id: str) -> str | None:
        payload = self._load(document_id)
        for entry in payload["checkpoints"]:
            if entry.get("id") == checkpoint_id:
                payload["current"] = checkpoint_id
                write_json_atomic(self._path(document_id), payload)
                return str(entry.get("content_before", ""))
        return None


__all__ = ["CHECKPOINTS_FILENAME", "CheckpointFileStore"]
