"""Unit tests for the session message log."""

from __future__ import annotations

import pytest

from latexai.services.exceptions import MessageNotFoundError
from latexai.services.message_log import (
    WELCOME_MESSAGE_ID,
    MessageLog,
    assistant_message,
    restore_message,
    user_message,
)
from latexai.services.models import Anchor, build_suggestion


def _suggestion():
    return build_suggestion(
        "add",
        fragment="\\cite{x}",
        explanation="cite",
        anchor=Anchor(from_=0, to=0),
        document_revision=0,
        parse_rule="fenced",
    )


def test_append_preserves_order_and_rejects_duplicates() -> None:
    log = MessageLog()
    first = log.append(user_message("hi"))
    second = log.append(assistant_message("hello"))

    assert [m.id for m in log.messages()] == [first.id, second.id]
    with pytest.raises(ValueError):
        log.append(first)


def test_assistant_message_with_suggestion_is_pending() -> None:
    message = assistant_message("cite", _suggestion())

    assert message.applied == "pending"
    assert assistant_message("plain").applied is None


def test_mark_replaces_in_place() -> None:
    log = MessageLog()
    log.append(user_message("q"))
    suggestion = log.append(assistant_message("cite", _suggestion()))
    log.append(user_message("next"))

    updated = log.mark(suggestion.id, "applied")

    assert updated.applied == "applied"
    assert log.messages()[1] == updated
    assert log.get(suggestion.id).applied == "applied"


def test_get_unknown_message_raises() -> None:
    with pytest.raises(MessageNotFoundError):
        MessageLog().get("msg-nope")


def test_empty_reconcile_seeds_a_single_welcome() -> None:
    log = MessageLog()

    messages = log.reconcile([])
    again = log.reconcile([])

    assert [m.id for m in messages] == [WELCOME_MESSAGE_ID]
    assert [m.kind for m in again] == ["welcome"]


def test_reconcile_prefers_confirmed_versions_and_keeps_local_only_entries() -> None:
    log = MessageLog()
    log.seed_welcome()
    question = log.append(user_message("make this bold"))
    answer = log.append(assistant_message("bold", _suggestion()))
    affordance = log.append(restore_message("ckpt-1"))

    confirmed_answer = answer.model_copy(update={"applied": "applied"})
    merged = log.reconcile([question, confirmed_answer])

    assert [m.id for m in merged] == [question.id, answer.id, affordance.id]
    assert merged[1].applied == "applied"
    assert [m.id for m in log.unconfirmed()] == [affordance.id]


def test_marking_unconfirms_until_written_back() -> None:
    log = MessageLog()
    answer = assistant_message("bold", _suggestion())
    log.reconcile([answer])
    assert log.unconfirmed() == []

    log.mark(answer.id, "rejected")
    assert [m.id for m in log.unconfirmed()] == [answer.id]

    log.mark_confirmed(answer.id)
    assert log.unconfirmed() == []


def test_has_restore_for_matches_checkpoint_id() -> None:
    log = MessageLog()
    log.append(restore_message("ckpt-1"))

    assert log.has_restore_for("ckpt-1")
    assert not log.has_restore_for("ckpt-2")
