"""Unit tests for the bounded checkpoint store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from latexai.services.checkpoints import DEFAULT_CAPACITY, CheckpointStore
from latexai.services.exceptions import CheckpointNotFoundError
from latexai.services.models import Checkpoint


def test_snapshot_commit_restore_round_trip() -> None:
    store = CheckpointStore()

    checkpoint_id = store.snapshot("before", description="Before applying: x...", message_id="m1")
    committed = store.commit(checkpoint_id, "after")

    assert committed.content_before == "before"
    assert committed.content_after == "after"
    assert committed.message_id == "m1"
    assert store.restore(checkpoint_id) == "before"


def test_eleven_snapshots_keep_the_ten_most_recent() -> None:
    store = CheckpointStore()
    ids = [store.snapshot(f"version {index}") for index in range(DEFAULT_CAPACITY + 1)]

    assert len(store) == DEFAULT_CAPACITY
    assert ids[0] not in store
    for index, checkpoint_id in enumerate(ids[1:], start=1):
        assert store.restore(checkpoint_id) == f"version {index}"

    with pytest.raises(CheckpointNotFoundError) as excinfo:
        store.restore(ids[0])
    assert excinfo.value.details == {"checkpoint_id": ids[0], "reason": "evicted"}


def test_unknown_checkpoint_is_reported_as_unknown() -> None:
    store = CheckpointStore()

    with pytest.raises(CheckpointNotFoundError) as excinfo:
        store.get("ckpt-missing")

    assert excinfo.value.details["reason"] == "unknown"
    assert excinfo.value.code == "CHECKPOINT_NOT_FOUND"


def test_list_is_newest_first() -> None:
    store = CheckpointStore(capacity=3)
    first = store.snapshot("a")
    second = store.snapshot("b")

    assert [item.id for item in store.list()] == [second, first]


def test_discard_removes_an_uncommitted_snapshot() -> None:
    store = CheckpointStore()
    checkpoint_id = store.snapshot("a")

    store.discard(checkpoint_id)

    assert checkpoint_id not in store
    with pytest.raises(CheckpointNotFoundError):
        store.commit(checkpoint_id, "b")


def test_hydrate_merges_by_timestamp_and_respects_capacity() -> None:
    store = CheckpointStore(capacity=3)
    local_id = store.snapshot("local")
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    persisted = [
        Checkpoint(id=f"ckpt-{index}", content_before=str(index), timestamp=base + timedelta(minutes=index))
        for index in range(4)
    ]

    retained = store.hydrate(persisted)

    # The local snapshot is newest; only two persisted slots remain.
    assert retained == 2
    assert [item.id for item in store.list()] == [local_id, "ckpt-3", "ckpt-2"]
    with pytest.raises(CheckpointNotFoundError) as excinfo:
        store.restore("ckpt-0")
    assert excinfo.value.details["reason"] == "evicted"


def test_hydrate_ignores_known_ids() -> None:
    store = CheckpointStore()
    checkpoint_id = store.snapshot("a")
    duplicate = store.get(checkpoint_id).model_copy(update={"content_before": "changed"})

    assert store.hydrate([duplicate]) == 0
    assert store.restore(checkpoint_id) == "a"


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        CheckpointStore(capacity=0)
