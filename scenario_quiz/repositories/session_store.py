import asyncio
import weakref
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, List, Optional, TypeVar

from ..domain.errors import SessionNotFound, StorageUnavailable
from ..domain.session import QuizSession

T = TypeVar("T")

Mutation = Callable[[QuizSession], T]


class SessionStore(ABC):
    """Durable record of quiz attempts keyed by session id.

    ``update`` is the only way to change a stored session. It must run the
    given mutation against the latest state under per-session mutual
    exclusion, persist the result only if the mutation returns normally, and
    leave the record untouched if it raises.
    """

    @abstractmethod
    async def create(self, session: QuizSession) -> None: ...

    @abstractmethod
    async def get(self, session_id: str) -> QuizSession: ...

    @abstractmethod
    async def update(self, session_id: str, mutate: Mutation) -> T: ...

    @abstractmethod
    async def list_completed(self, since: Optional[datetime] = None) -> List[QuizSession]:
        """Completed sessions, optionally only those completed at or after ``since``."""

    async def close(self) -> None:
        return None


class InMemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self.sessions: Dict[str, QuizSession] = {}
        # a lock lives only while some update holds or awaits it
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    async def create(self, session: QuizSession) -> None:
        if session.session_id in self.sessions:
            raise StorageUnavailable(f"session id collision: {session.session_id}")
        self.sessions[session.session_id] = session.model_copy(deep=True)

    async def get(self, session_id: str) -> QuizSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFound(f"quiz session {session_id} not found")
        return session.model_copy(deep=True)

    async def update(self, session_id: str, mutate: Mutation) -> T:
        if session_id not in self.sessions:
            raise SessionNotFound(f"quiz session {session_id} not found")
        async with self._lock(session_id):
            current = self.sessions.get(session_id)
            if current is None:
                raise SessionNotFound(f"quiz session {session_id} not found")
            # mutate a copy so a rejected mutation leaves the stored record as it was
            draft = current.model_copy(deep=True)
            result = mutate(draft)
            self.sessions[session_id] = draft
            return result

    async def list_completed(self, since: Optional[datetime] = None) -> List[QuizSession]:
        out: List[QuizSession] = []
        for s in list(self.sessions.values()):
            if not s.completed or s.completed_at is None:
                continue
            if since is not None and s.completed_at < since:
                continue
            out.append(s.model_copy(deep=True))
        return out
