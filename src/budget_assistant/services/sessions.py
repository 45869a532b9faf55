import time
from collections.abc import Callable
from uuid import uuid4

from budget_assistant.core import settings
from budget_assistant.logger import get_logger
from budget_assistant.manager import AssistantFactory
from budget_assistant.services.chat import ChatSession

logger = get_logger(__name__)


class SessionRegistry:
    """
    Live chat sessions keyed by an opaque id; dropping one discards its history.

    Sessions nobody has touched for ``idle_timeout`` seconds are closed when a
    new one is opened. At ``max_sessions`` the least recently used idle session
    makes room. Sessions with a message in flight are never evicted.
    """

    def __init__(
        self,
        factory: AssistantFactory,
        max_sessions: int | None = None,
        idle_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.factory = factory
        self.max_sessions = (
            max_sessions
            if max_sessions is not None
            else settings.get_env_int("MAX_SESSIONS", settings.DEFAULT_MAX_SESSIONS, min_value=1)
        )
        self.idle_timeout = (
            idle_timeout
            if idle_timeout is not None
            else settings.get_env_float(
                "SESSION_IDLE_TIMEOUT", settings.DEFAULT_SESSION_IDLE_TIMEOUT, min_value=1.0
            )
        )
        self.clock = clock
        self._sessions: dict[str, ChatSession] = {}
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def open(self, owner_id: str) -> tuple[str, ChatSession]:
        await self.evict_idle()
        if len(self._sessions) >= self.max_sessions:
            await self._evict_least_recent()

        session_id = uuid4().hex
        session = ChatSession(owner_id, self.factory.create(owner_id))
        self._sessions[session_id] = session
        self._last_seen[session_id] = self.clock()
        logger.info("Opened chat session %s (%s backend)", session_id, self.factory.kind)
        return session_id, session

    def get(self, session_id: str) -> ChatSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            self._last_seen[session_id] = self.clock()
        return session

    async def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if session is None:
            return False
        await session.aclose()
        logger.info("Closed chat session %s", session_id)
        return True

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)

    async def evict_idle(self) -> int:
        cutoff = self.clock() - self.idle_timeout
        expired = [
            session_id
            for session_id, seen in self._last_seen.items()
            if seen <= cutoff and not self._sessions[session_id].is_busy
        ]
        for session_id in expired:
            logger.info("Evicting idle chat session %s", session_id)
            await self.close(session_id)
        return len(expired)

    async def _evict_least_recent(self) -> None:
        candidates = [
            session_id for session_id in self._last_seen if not self._sessions[session_id].is_busy
        ]
        if not candidates:
            logger.warning("All %s chat sessions are busy; exceeding the session limit", len(self))
            return
        oldest = min(candidates, key=self._last_seen.__getitem__)
        logger.info("Session limit %s reached, evicting chat session %s", self.max_sessions, oldest)
        await self.close(oldest)
