"""
Session Store

Process-lifetime conversation histories keyed by session id.

Updates are serialized per key: a request holds its session's lock across
read -> retrieve -> generate -> append, so two requests on the same session
never interleave, while different sessions never wait on each other.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List

from ..common.schemas import ConversationTurn


class SessionHandle:
    """A locked view of one session for the duration of a request"""

    def __init__(self, session_id: str, turns: List[ConversationTurn]):
        self.session_id = session_id
        self._turns = turns

    @property
    def history(self) -> List[ConversationTurn]:
        """Copy of the turns so far, oldest first"""
        return list(self._turns)

    def append(self, *turns: ConversationTurn) -> None:
        self._turns.extend(turns)


class SessionStore:
    """Append-only session histories with one asyncio.Lock per key"""

    def __init__(self):
        self._sessions: Dict[str, List[ConversationTurn]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> List[ConversationTurn]:
        """Unlocked snapshot of a session (empty when unknown)"""
        return list(self._sessions.get(session_id, ()))

    @asynccontextmanager
    async def session(self, session_id: str) -> AsyncIterator[SessionHandle]:
        """
        Hold a session exclusively.

        The session is created on first use and never removed.
        """
        if session_id not in self._locks:
            self._locks[session_id] = asyncio.Lock()
        async with self._locks[session_id]:
            turns = self._sessions.setdefault(session_id, [])
            yield SessionHandle(session_id, turns)
