"""Bounded in-memory store of pre-edit document snapshots."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Iterable
from uuid import uuid4

from .exceptions import CheckpointNotFoundError
from .models.checkpoint import Checkpoint

LOGGER = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10


def new_checkpoint_id() -> str:
    return f"ckpt-{uuid4().hex[:16]}"


class CheckpointStore:
    """Ring buffer of checkpoints for one document.

    The oldest checkpoint is evicted once ``capacity`` is exceeded. Evicted ids
    are remembered so a later restore can report why it failed.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("Checkpoint capacity must be at least 1.")
        self._capacity = capacity
        self._entries: OrderedDict[str, Checkpoint] = OrderedDict()
        self._evicted: set[str] = set()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, checkpoint_id: object) -> bool:
        return checkpoint_id in self._entries

    def snapshot(
        self,
        content_before: str,
        *,
        description: str = "",
        message_id: str | None = None,
    ) -> str:
        """Capture ``content_before`` and return the new checkpoint id."""

        checkpoint = Checkpoint(
            id=new_checkpoint_id(),
            content_before=content_before,
            description=description,
            message_id=message_id,
        )
        self._insert(checkpoint)
        LOGGER.debug(
            "checkpoint.snapshot",
            extra={
                "extra_payload": {
                    "checkpoint_id": checkpoint.id,
                    "message_id": message_id,
                    "content_chars": len(content_before),
                }
            },
        )
        return checkpoint.id

    def commit(self, checkpoint_id: str, content_after: str) -> Checkpoint:
        """Record the post-edit content for audit; it is never used by restore."""

        checkpoint = self.get(checkpoint_id)
        committed = checkpoint.model_copy(update={"content_after": content_after})
        self._entries[checkpoint_id] = committed
        return committed

    def restore(self, checkpoint_id: str) -> str:
        """Return the exact pre-edit content captured under ``checkpoint_id``."""

        return self.get(checkpoint_id).content_before

    def discard(self, checkpoint_id: str) -> None:
        """Drop a snapshot whose mutation never happened."""

        self._entries.pop(checkpoint_id, None)

    def get(self, checkpoint_id: str) -> Checkpoint:
        checkpoint = self._entries.get(checkpoint_id)
        if checkpoint is None:
            reason = "evicted" if checkpoint_id in self._evicted else "unknown"
            raise CheckpointNotFoundError(
                "Checkpoint is no longer available." if reason == "evicted" else "Checkpoint not found.",
                details={"checkpoint_id": checkpoint_id, "reason": reason},
            )
        return checkpoint

    def list(self) -> list[Checkpoint]:
        """Return retained checkpoints, newest first."""

        return list(reversed(self._entries.values()))

    def hydrate(self, checkpoints: Iterable[Checkpoint]) -> int:
        """Merge persisted checkpoints into the buffer in timestamp order.

        Returns how many previously unknown checkpoints were retained.
        """

        merged = dict(self._entries)
        incoming = [item for item in checkpoints if item.id not in merged]
        for checkpoint in incoming:
            merged[checkpoint.id] = checkpoint
            self._evicted.discard(checkpoint.id)

        self._entries = OrderedDict()
        for checkpoint in sorted(merged.values(), key=lambda item: item.timestamp):
            self._insert(checkpoint)
        return sum(1 for item in incoming if item.id in self._entries)

    def _insert(self, checkpoint: Checkpoint) -> None:
        self._entries[checkpoint.id] = checkpoint
        while len(self._entries) > self._capacity:
            evicted_id, _ = self._entries.popitem(last=False)
            self._evicted.add(evicted_id)
            LOGGER.info(
                "checkpoint.evicted",
                extra={"extra_payload": {"checkpoint_id": evicted_id, "capacity": self._capacity}},
            )


__all__ = ["CheckpointStore", "DEFAULT_CAPACITY", "new_checkpoint_id"]
