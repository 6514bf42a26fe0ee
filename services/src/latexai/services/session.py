"""Per-document edit session tying parsing, preview, checkpoints and the log together."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Literal

from .backends import Backends
from .checkpoints import DEFAULT_CAPACITY, CheckpointStore
from .classifier import classify_action
from .diff_engine import ChangeSummary, compute_change
from .diff_preview import DiffPreviewBuilder
from .exceptions import (
    BackendUnavailableError,
    CheckpointNotFoundError,
    InvalidAnchorError,
    MalformedResponseError,
    RequestInFlightError,
)
from .message_log import (
    MessageLog,
    assistant_message,
    error_message,
    restore_message,
    restored_message,
    user_message,
    warning_message,
)
from .metrics import record_completion
from .models.chat import ChatMessage
from .models.checkpoint import Checkpoint
from .models.completion import CompletionRequest, CompletionResult, EditRequest
from .models.preview import DiffPreviewSegment
from .models.selection import CursorOffset, Selection
from .models.suggestion import Anchor, build_suggestion
from .position_resolver import resolve_anchor
from .resilience import CircuitOpenError, ServiceResilienceExecutor
from .response_parser import EXPLANATION_PLACEHOLDER, parse_response
from .selection import SelectionTracker
from .surface import DocumentBuffer, EditorSurface

LOGGER = logging.getLogger(__name__)

STALE_RESPONSE_WARNING = (
    "The document changed while I was working on your request, so the suggestion "
    "was discarded. Please try again."
)
SUPPRESSED_PREVIEW_MESSAGE = (
    "I could not isolate a clear LaTeX fragment in the response, so no preview was "
    "created. Try selecting the text you want to change and asking again."
)
CHECKPOINT_MISSING_MESSAGE = (
    "That checkpoint is no longer available, so the document was left unchanged."
)

SubmitStatus = Literal["previewed", "logged", "discarded", "stale", "failed"]

_COMPLETION_FAILURES = (
    BackendUnavailableError,
    MalformedResponseError,
    CircuitOpenError,
    asyncio.TimeoutError,
)
_PERSISTENCE_FAILURES = (BackendUnavailableError, MalformedResponseError, OSError)


@dataclass(frozen=True)
class EngineOptions:
    """Tunables for one edit session."""

    checkpoint_capacity: int = DEFAULT_CAPACITY
    target_language: str = "latex"
    preview_min_chars: int = 400
    preview_size_ratio: float = 3.0


@dataclass
class SubmitOutcome:
    request_id: int
    status: SubmitStatus
    messages: list[ChatMessage] = field(default_factory=list)
    segments: list[DiffPreviewSegment] = field(default_factory=list)
    suggestion_message_id: str | None = None


@dataclass
class AcceptanceResult:
    message: ChatMessage
    checkpoint: Checkpoint
    restore_message: ChatMessage
    content: str
    revision: int
    change: ChangeSummary


@dataclass
class RestoreResult:
    checkpoint_id: str
    content: str
    revision: int
    message: ChatMessage


class EditSession:
    """Single-writer edit engine for one document.

    At most one model request is pending at a time. Every request captures the
    document revision it was made against, and a response is only turned into a
    preview when it is still the pending request and the document has not moved
    on. Accepting a suggestion snapshots, mutates and logs without yielding to
    the event loop, so nothing can observe a half-applied edit.
    """

    def __init__(
        self,
        document_id: str,
        *,
        backends: Backends,
        options: EngineOptions | None = None,
        executor: ServiceResilienceExecutor[CompletionResult] | None = None,
        surface: EditorSurface | None = None,
    ) -> None:
        self.document_id = document_id
        self.options = options or EngineOptions()
        self._backends = backends
        self._executor = executor
        self._surface: EditorSurface = surface if surface is not None else DocumentBuffer()
        self._tracker = SelectionTracker(
            revision=self._surface.revision, document_length=len(self._surface.content)
        )
        self._preview = DiffPreviewBuilder()
        self._checkpoints = CheckpointStore(self.options.checkpoint_capacity)
        self._log = MessageLog()
        self._request_counter = 0
        self._pending: EditRequest | None = None
        self.project_id: str | None = None
        self.session_id: str | None = None

    @property
    def surface(self) -> EditorSurface:
        return self._surface

    @property
    def content(self) -> str:
        return self._surface.content

    @property
    def revision(self) -> int:
        return self._surface.revision

    @property
    def tracker(self) -> SelectionTracker:
        return self._tracker

    @property
    def preview(self) -> DiffPreviewBuilder:
        return self._preview

    @property
    def checkpoints(self) -> CheckpointStore:
        return self._checkpoints

    @property
    def log(self) -> MessageLog:
        return self._log

    @property
    def pending(self) -> EditRequest | None:
        return self._pending

    def messages(self) -> list[ChatMessage]:
        return self._log.messages()

    def preview_segments(self) -> list[DiffPreviewSegment]:
        active = self._preview.active
        return list(active.segments) if active else []

    # Editor surface notifications -------------------------------------------------

    def sync_document(self, content: str) -> int:
        """Adopt the editor's text; tracked positions must be re-sent afterwards."""

        before = self._surface.revision
        revision = self._surface.replace_content(content)
        if revision != before:
            self._tracker.document_changed(revision=revision, document_length=len(content))
        return revision

    def update_selection(self, selection: Selection, *, revision: int) -> None:
        self._tracker.update_selection(selection, revision=revision)

    def update_cursor(self, offset: int, *, revision: int) -> None:
        self._tracker.update_cursor(offset, revision=revision)

    def clear_selection(self) -> None:
        self._tracker.clear()

    # Session lifecycle ------------------------------------------------------------

    async def load(self, project_id: str) -> list[ChatMessage]:
        """Open the remote chat session, reconcile history and hydrate checkpoints."""

        self.project_id = project_id
        history: list[ChatMessage] = []
        try:
            self.session_id = await self._backends.chat.get_chat_session(
                self.document_id, project_id
            )
            history = await self._backends.chat.get_chat_history(self.document_id)
        except _PERSISTENCE_FAILURES as exc:
            LOGGER.warning(
                "session.history_unavailable",
                extra={"extra_payload": {"document_id": self.document_id, "error": str(exc)}},
            )
        self._log.reconcile(history)

        try:
            persisted = await self._backends.checkpoints.get_checkpoints(self.document_id)
        except _PERSISTENCE_FAILURES as exc:
            LOGGER.warning(
                "session.checkpoints_unavailable",
                extra={"extra_payload": {"document_id": self.document_id, "error": str(exc)}},
            )
            persisted = []
        self._checkpoints.hydrate(persisted)
        for checkpoint in reversed(self._checkpoints.list()):
            if not self._log.has_restore_for(checkpoint.id):
                self._log.append(restore_message(checkpoint.id))

        await self._persist(*self._log.unconfirmed())
        return self._log.messages()

    # Requests ---------------------------------------------------------------------

    async def submit(self, user_text: str) -> SubmitOutcome:
        """Send an edit request to the model and preview the parsed suggestion."""

        if self._pending is not None:
            raise RequestInFlightError(
                "An AI request is already in progress.",
                details={"request_id": self._pending.id},
            )

        position = self._tracker.current()
        selection: Selection | None = None
        cursor: int | None = None
        if isinstance(position, Selection):
            if position.is_empty:
                cursor = position.from_
            else:
                selection = position
        elif isinstance(position, CursorOffset):
            cursor = position.offset

        self._request_counter += 1
        request = EditRequest(
            id=self._request_counter,
            user_text=user_text,
            document_revision=self._surface.revision,
            selection=selection,
            cursor=cursor,
        )
        self._pending = request
        document = self._surface.content
        question = self._log.append(user_message(user_text))
        outcome = SubmitOutcome(request_id=request.id, status="logged", messages=[question])

        completion_request = CompletionRequest(
            document_id=self.document_id,
            selected_text=selection.text if selection else "",
            user_request=user_text,
            full_document=document,
            selection_range_from=selection.from_ if selection else None,
            selection_range_to=selection.to if selection else None,
            cursor_position=cursor,
        )

        try:
            result = await self._complete(completion_request)
        except _COMPLETION_FAILURES as exc:
            if not self._is_current(request):
                return self._discarded(outcome, request)
            self._pending = None
            LOGGER.warning(
                "session.completion_failed",
                extra={
                    "extra_payload": {
                        "document_id": self.document_id,
                        "request_id": request.id,
                        "error": str(exc) or type(exc).__name__,
                    }
                },
            )
            outcome.status = "failed"
            outcome.messages.append(self._log.append(error_message()))
            record_completion("failed")
            await self._persist(*outcome.messages)
            return outcome
        except BaseException:
            if self._is_current(request):
                self._pending = None
            raise

        if not self._is_current(request):
            return self._discarded(outcome, request)
        self._pending = None

        if self._surface.revision != request.document_revision:
            LOGGER.info(
                "session.response_stale",
                extra={
                    "extra_payload": {
                        "document_id": self.document_id,
                        "request_id": request.id,
                        "request_revision": request.document_revision,
                        "revision": self._surface.revision,
                    }
                },
            )
            outcome.status = "stale"
            outcome.messages.append(self._log.append(warning_message(STALE_RESPONSE_WARNING)))
            record_completion("stale")
            await self._persist(*outcome.messages)
            return outcome

        self._build_preview(request, result, outcome)
        record_completion(outcome.status)
        await self._persist(*outcome.messages)
        return outcome

    def cancel(self) -> bool:
        """Forget the pending request; its response will be ignored when it lands."""

        if self._pending is None:
            return False
        LOGGER.info(
            "session.request_cancelled",
            extra={"extra_payload": {"document_id": self.document_id, "request_id": self._pending.id}},
        )
        self._pending = None
        self._request_counter += 1
        return True

    # Decisions --------------------------------------------------------------------

    async def accept(self, message_id: str) -> AcceptanceResult:
        """Apply the previewed suggestion behind a checkpoint."""

        self._log.get(message_id)
        active = self._preview.require(message_id)
        suggestion = active.suggestion
        anchor = suggestion.anchor
        before = self._surface.content
        self._ensure_anchor_current(anchor, suggestion.document_revision, before)

        # No await from here until the log holds the restore message.
        checkpoint_id = self._checkpoints.snapshot(
            before,
            description=f"Before applying: {suggestion.fragment[:50]}...",
            message_id=message_id,
        )
        try:
            after = self._surface.apply_suggestion(
                suggestion.fragment,
                anchor.from_,
                suggestion.action_kind,
                (anchor.from_, anchor.to),
            )
        except Exception:
            self._checkpoints.discard(checkpoint_id)
            raise
        checkpoint = self._checkpoints.commit(checkpoint_id, after)
        self._preview.accept(message_id)
        applied = self._log.mark(message_id, "applied")
        affordance = self._log.append(restore_message(checkpoint_id))
        self._tracker.reset(revision=self._surface.revision, document_length=len(after))

        LOGGER.info(
            "session.suggestion_accepted",
            extra={
                "extra_payload": {
                    "document_id": self.document_id,
                    "message_id": message_id,
                    "checkpoint_id": checkpoint_id,
                    "action_kind": suggestion.action_kind,
                    "revision": self._surface.revision,
                }
            },
        )

        await self._persist_checkpoint(checkpoint)
        await self._persist(applied, affordance)
        return AcceptanceResult(
            message=applied,
            checkpoint=checkpoint,
            restore_message=affordance,
            content=after,
            revision=self._surface.revision,
            change=compute_change(before, after),
        )

    async def reject(self, message_id: str) -> ChatMessage:
        """Discard the previewed suggestion; the document is never touched."""

        self._log.get(message_id)
        self._preview.reject(message_id)
        self._surface.clear_preview()
        rejected = self._log.mark(message_id, "rejected")
        await self._persist(rejected)
        return rejected

    async def restore(self, checkpoint_id: str) -> RestoreResult:
        """Put back the document exactly as it was before ``checkpoint_id``'s edit."""

        try:
            content = self._checkpoints.restore(checkpoint_id)
        except CheckpointNotFoundError as exc:
            failure = self._log.append(error_message(CHECKPOINT_MISSING_MESSAGE))
            LOGGER.warning(
                "session.restore_failed",
                extra={
                    "extra_payload": {
                        "document_id": self.document_id,
                        "checkpoint_id": checkpoint_id,
                        "reason": exc.details.get("reason"),
                    }
                },
            )
            await self._persist(failure)
            raise

        changed: list[ChatMessage] = []
        superseded = self._preview.discard()
        if superseded is not None:
            self._surface.clear_preview()
            changed.append(self._log.mark(superseded.message_id, "rejected"))
        revision = self._surface.replace_content(content)
        self._tracker.reset(revision=revision, document_length=len(content))
        confirmation = self._log.append(restored_message(checkpoint_id))
        changed.append(confirmation)

        LOGGER.info(
            "session.checkpoint_restored",
            extra={
                "extra_payload": {
                    "document_id": self.document_id,
                    "checkpoint_id": checkpoint_id,
                    "revision": revision,
                }
            },
        )

        try:
            await self._backends.checkpoints.restore_to_checkpoint(self.document_id, checkpoint_id)
        except _PERSISTENCE_FAILURES as exc:
            LOGGER.warning(
                "session.remote_restore_failed",
                extra={"extra_payload": {"checkpoint_id": checkpoint_id, "error": str(exc)}},
            )
        await self._persist(*changed)
        return RestoreResult(
            checkpoint_id=checkpoint_id, content=content, revision=revision, message=confirmation
        )

    # Internals --------------------------------------------------------------------

    async def _complete(self, request: CompletionRequest) -> CompletionResult:
        completion = self._backends.completion
        if self._executor is None:
            return await completion.complete(request)
        return await self._executor.run(
            label="completion", operation=lambda: completion.complete(request)
        )

    def _is_current(self, request: EditRequest) -> bool:
        return self._pending is not None and self._pending.id == request.id

    def _discarded(self, outcome: SubmitOutcome, request: EditRequest) -> SubmitOutcome:
        LOGGER.info(
            "session.response_discarded",
            extra={"extra_payload": {"document_id": self.document_id, "request_id": request.id}},
        )
        outcome.status = "discarded"
        record_completion("discarded")
        return outcome

    def _build_preview(
        self, request: EditRequest, result: CompletionResult, outcome: SubmitOutcome
    ) -> None:
        document = self._surface.content
        parsed = parse_response(result.text, target_language=self.options.target_language)
        structured = result.suggestion

        if structured is not None and structured.has_fragment:
            fragment = structured.latex_suggestion or ""
            explanation = parsed.explanation if result.text.strip() else EXPLANATION_PLACEHOLDER
            rule, low_confidence = "backend", False
        else:
            fragment = parsed.fragment
            explanation = parsed.explanation
            rule, low_confidence = parsed.rule, parsed.low_confidence

        if structured is not None and structured.action_type is not None:
            action_kind = structured.action_type
        else:
            action_kind = classify_action(
                request.user_text, has_selection=request.selection is not None
            )

        if not fragment.strip() and action_kind != "delete":
            outcome.messages.append(
                self._log.append(assistant_message(result.text.strip() or EXPLANATION_PLACEHOLDER))
            )
            return

        resolved = resolve_anchor(
            document,
            action_kind,
            explicit=structured.explicit_range() if structured is not None else None,
            selection=request.selection,
            cursor=request.cursor,
            default_anchor=self._surface.insert_anchor(),
        )
        if resolved.warning:
            outcome.messages.append(self._log.append(warning_message(resolved.warning)))

        if (
            low_confidence
            and resolved.action_kind != "delete"
            and self._should_suppress(fragment, resolved.anchor, document)
        ):
            LOGGER.info(
                "session.preview_suppressed",
                extra={
                    "extra_payload": {
                        "document_id": self.document_id,
                        "rule": rule,
                        "fragment_chars": len(fragment),
                        "anchor_chars": len(resolved.anchor.original_text),
                    }
                },
            )
            outcome.messages.append(self._log.append(assistant_message(result.text)))
            outcome.messages.append(self._log.append(error_message(SUPPRESSED_PREVIEW_MESSAGE)))
            return

        suggestion = build_suggestion(
            resolved.action_kind,
            fragment=fragment,
            explanation=explanation,
            anchor=resolved.anchor,
            document_revision=request.document_revision,
            parse_rule=rule,
            low_confidence=low_confidence,
        )
        message = assistant_message(explanation, suggestion)
        segments, superseded = self._preview.begin(message.id, suggestion)
        if superseded is not None:
            outcome.messages.append(self._log.mark(superseded.message_id, "rejected"))
        if not segments:
            message = message.model_copy(update={"applied": None})
            self._surface.clear_preview()
        else:
            self._surface.preview_inline_diff(segments)
            outcome.status = "previewed"
            outcome.segments = segments
            outcome.suggestion_message_id = message.id
        outcome.messages.append(self._log.append(message))

    def _should_suppress(self, fragment: str, anchor: Anchor, document: str) -> bool:
        limit = max(
            self.options.preview_min_chars,
            int(self.options.preview_size_ratio * len(anchor.original_text)),
        )
        whole_document = bool(document.strip()) and fragment.strip() == document.strip()
        return len(fragment) > limit or whole_document

    def _ensure_anchor_current(self, anchor: Anchor, revision: int, content: str) -> None:
        if (
            self._surface.revision != revision
            or anchor.to > len(content)
            or content[anchor.from_ : anchor.to] != anchor.original_text
        ):
            raise InvalidAnchorError(
                "The document changed since this suggestion was made.",
                details={
                    "suggestion_revision": revision,
                    "revision": self._surface.revision,
                    "from": anchor.from_,
                    "to": anchor.to,
                },
            )

    async def _persist_checkpoint(self, checkpoint: Checkpoint) -> None:
        if self.session_id is None:
            return
        try:
            await self._backends.checkpoints.create_checkpoint(
                self.document_id, self.session_id, checkpoint, set_current=True
            )
        except _PERSISTENCE_FAILURES as exc:
            LOGGER.warning(
                "session.checkpoint_persist_failed",
                extra={"extra_payload": {"checkpoint_id": checkpoint.id, "error": str(exc)}},
            )

    async def _persist(self, *messages: ChatMessage) -> None:
        """Best-effort write-through of log entries once a remote session exists."""

        if self.session_id is None:
            return
        for message in messages:
            try:
                await self._backends.chat.send_chat_message(
                    self.document_id, self.session_id, message
                )
            except _PERSISTENCE_FAILURES as exc:
                LOGGER.warning(
                    "session.message_persist_failed",
                    extra={"extra_payload": {"message_id": message.id, "error": str(exc)}},
                )
                continue
            self._log.mark_confirmed(message.id)


__all__ = [
    "AcceptanceResult",
    "EditSession",
    "EngineOptions",
    "RestoreResult",
    "SubmitOutcome",
]
