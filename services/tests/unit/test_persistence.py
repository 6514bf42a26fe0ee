"""Unit tests for the file-backed chat and checkpoint stores."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from latexai.services.message_log import assistant_message, user_message
from latexai.services.models import Anchor, Checkpoint, build_suggestion
from latexai.services.persistence import (
    ChatFileStore,
    CheckpointFileStore,
    document_root,
    read_json,
    write_json_atomic,
)

pytestmark = pytest.mark.anyio


async def test_write_json_atomic_leaves_no_temp_files(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "state.json"

    write_json_atomic(target, {"message": "héllo", "count": 2})

    assert json.loads(target.read_text(encoding="utf-8")) == {"message": "héllo", "count": 2}
    assert [path.name for path in target.parent.iterdir()] == ["state.json"]
    assert read_json(tmp_path / "missing.json", default=[]) == []


async def test_document_root_rejects_traversal(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        document_root(tmp_path, "..")


async def test_chat_store_keeps_session_and_upserts_messages(tmp_path: Path) -> None:
    store = ChatFileStore(tmp_path)
    session_id = await store.get_chat_session("paper-1", "project-9")
    assert await store.get_chat_session("paper-1", "project-9") == session_id

    suggestion = build_suggestion(
        "replace",
        fragment="\\textbf{Hi}",
        explanation="bold",
        anchor=Anchor(from_=0, to=2, original_text="Hi"),
        document_revision=1,
        parse_rule="labeled_fence",
    )
    question = user_message("make this bold")
    answer = assistant_message("bold", suggestion)
    await store.send_chat_message("paper-1", session_id, question)
    await store.send_chat_message("paper-1", session_id, answer)
    await store.send_chat_message("paper-1", session_id, answer.model_copy(update={"applied": "applied"}))

    history = await store.get_chat_history("paper-1")

    assert [message.id for message in history] == [question.id, answer.id]
    assert history[1].applied == "applied"
    assert history[1].suggestion == suggestion
    stored = json.loads((tmp_path / "documents" / "paper-1" / "chat.json").read_text("utf-8"))
    assert stored["project_id"] == "project-9"
    assert stored["messages"][1]["suggestion"]["anchor"]["from"] == 0


async def test_chat_store_skips_corrupt_entries(tmp_path: Path) -> None:
    path = tmp_path / "documents" / "paper-1" / "chat.json"
    write_json_atomic(
        path,
        {"session_id": "s", "messages": [{"id": "broken"}, user_message("ok").model_dump(mode="json")]},
    )

    history = await ChatFileStore(tmp_path).get_chat_history("paper-1")

    assert [message.content for message in history] == ["ok"]


async def test_checkpoint_store_round_trip_and_current_pointer(tmp_path: Path) -> None:
    store = CheckpointFileStore(tmp_path, max_entries=2)
    first = Checkpoint(id="ckpt-1", content_before="v0", content_after="v1", description="one")
    second = Checkpoint(id="ckpt-2", content_before="v1", content_after="v2")
    third = Checkpoint(id="ckpt-3", content_before="v2", content_after="v3")

    for checkpoint in (first, second, third):
        await store.create_checkpoint("paper-1", "session-1", checkpoint)

    persisted = await store.get_checkpoints("paper-1")
    assert [item.id for item in persisted] == ["ckpt-2", "ckpt-3"]
    assert persisted[0].content_before == "v1"

    assert await store.restore_to_checkpoint("paper-1", "ckpt-2") == "v1"
    assert await store.restore_to_checkpoint("paper-1", "ckpt-1") is None
    stored = json.loads((tmp_path / "documents" / "paper-1" / "checkpoints.json").read_text("utf-8"))
    assert stored["current"] == "ckpt-2"
    assert stored["checkpoints"][0]["session_id"] == "session-1"


async def test_checkpoint_store_without_file_is_empty(tmp_path: Path) -> None:
    assert await CheckpointFileStore(tmp_path).get_checkpoints("paper-1") == []


async def test_corrupt_chat_file_is_quarantined(tmp_path: Path) -> None:
    path = tmp_path / "documents" / "paper-1" / "chat.json"
    path.parent.mkdir(parents=True)
    path.write_text("{not json", encoding="utf-8")
    store = ChatFileStore(tmp_path)

    assert await store.get_chat_history("paper-1") == []

    leftovers = sorted(item.name for item in path.parent.iterdir())
    assert len(leftovers) == 1
    assert leftovers[0].startswith("chat.json.corrupt-")
    assert (await store.get_chat_session("paper-1", "project-9")).startswith("session-")
