"""Per-session conversation memory."""

from __future__ import annotations

import logging
from collections import OrderedDict
from threading import Lock

from chat_agent.types import ConversationTurn, Role

log = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"


class ConversationStore:
    """Conversation histories keyed by session id.

    Each session holds an ordered list of user/assistant turns. When
    ``max_turns`` is set, the oldest exchanges are dropped so that at most
    ``max_turns`` turns remain; trimming removes whole user/assistant pairs,
    so a history never starts with an assistant turn.

    At most ``max_sessions`` sessions are kept. Reading or appending marks a
    session as recently used, and adding a session beyond the limit evicts
    the least recently used one.
    """

    def __init__(self, max_turns: int | None = None, *, max_sessions: int | None = None) -> None:
        if max_turns is not None and max_turns < 2:
            raise ValueError("max_turns must be at least 2")
        if max_sessions is not None and max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_turns = max_turns
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, list[ConversationTurn]] = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> list[ConversationTurn]:
        """Return a snapshot of the session history (empty if unknown)."""
        with self._lock:
            turns = self._sessions.get(session_id)
            if turns is None:
                return []
            self._sessions.move_to_end(session_id)
            return list(turns)

    def append_exchange(self, session_id: str, question: str, answer: str) -> None:
        """Append one user turn followed by its assistant answer."""
        with self._lock:
            turns = self._sessions.setdefault(session_id, [])
            self._sessions.move_to_end(session_id)
            turns.append(ConversationTurn(role=Role.USER, content=question))
            turns.append(ConversationTurn(role=Role.ASSISTANT, content=answer))
            self._trim(session_id, turns)
            self._evict()

    def clear(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def clear_all(self) -> None:
        with self._lock:
            self._sessions.clear()

    def _trim(self, session_id: str, turns: list[ConversationTurn]) -> None:
        if self.max_turns is None or len(turns) <= self.max_turns:
            return
        excess = len(turns) - self.max_turns
        excess += excess % 2
        del turns[:excess]
        log.debug("Trimmed %d turns from session %s", excess, session_id)

    def _evict(self) -> None:
        if self.max_sessions is None:
            return
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            log.info("Evicted least recently used session %s", evicted)
