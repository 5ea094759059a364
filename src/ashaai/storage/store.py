"""Conversation message store implementations."""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from typing import Protocol, Sequence

from ashaai.metrics.observability import get_logger
from ashaai.models import ConversationTurn, Role, utcnow


class StoreError(RuntimeError):
    """Raised when a store backend cannot complete an operation."""


class MessageStore(Protocol):
    """Protocol for conversation persistence backends."""

    async def get_messages(self, session_id: str) -> Sequence[ConversationTurn]:
        """Return the turns of a session ordered by id."""

    async def add_message(self, role: Role, content: str, session_id: str) -> ConversationTurn:
        """Persist a new turn and return it with its id and timestamp."""

    async def clear_messages(self, session_id: str) -> None:
        """Remove every turn of a session."""


class InMemoryMessageStore:
    """Process-local store; ids increase across all sessions."""

    def __init__(self) -> None:
        self._sessions: defaultdict[str, list[ConversationTurn]] = defaultdict(list)
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self._logger = get_logger("store")

    async def get_messages(self, session_id: str) -> Sequence[ConversationTurn]:
        async with self._lock:
            return list(self._sessions.get(session_id, ()))

    async def add_message(self, role: Role, content: str, session_id: str) -> ConversationTurn:
        async with self._lock:
            turn = ConversationTurn(
                id=next(self._ids),
                role=role,
                content=content,
                session_id=session_id,
                timestamp=utcnow(),
            )
            self._sessions[session_id].append(turn)
        self._logger.debug("store.added", session_id=session_id, role=role, message_id=turn.id)
        return turn

    async def clear_messages(self, session_id: str) -> None:
        async with self._lock:
            removed = len(self._sessions.pop(session_id, ()))
        self._logger.info("store.cleared", session_id=session_id, removed=removed)
