"""Registry of live edit sessions keyed by document id."""

from __future__ import annotations

import logging
from typing import Callable

from .exceptions import SessionNotFoundError
from .session import EditSession

LOGGER = logging.getLogger(__name__)

SessionFactory = Callable[[str], EditSession]


class SessionRegistry:
    """Own one ``EditSession`` per document for the lifetime of the process."""

    def __init__(self, factory: SessionFactory) -> None:
        self._factory = factory
        self._sessions: dict[str, EditSession] = {}

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, document_id: str) -> EditSession:
        session = self._sessions.get(document_id)
        if session is None:
            session = self._factory(document_id)
            self._sessions[document_id] = session
            LOGGER.info("session.created", extra={"extra_payload": {"document_id": document_id}})
        return session

    def get(self, document_id: str) -> EditSession:
        session = self._sessions.get(document_id)
        if session is None:
            raise SessionNotFoundError(
                "No edit session is open for this document.",
                details={"document_id": document_id},
            )
        return session

    def close(self, document_id: str) -> bool:
        """Drop the session; a request still in flight is cancelled first."""

        session = self._sessions.pop(document_id, None)
        if session is None:
            return False
        session.cancel()
        LOGGER.info("session.closed", extra={"extra_payload": {"document_id": document_id}})
        return True


__all__ = ["SessionFactory", "SessionRegistry"]
