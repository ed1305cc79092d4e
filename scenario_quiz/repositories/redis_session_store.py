import logging
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from ..domain.errors import SessionNotFound, StorageUnavailable
from ..domain.session import QuizSession
from .session_store import Mutation, SessionStore, T

logger = logging.getLogger(__name__)

MGET_CHUNK = 200


def _epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


class RedisSessionStore(SessionStore):
    """Sessions as JSON strings, plus a sorted set of completed session ids.

    Updates use optimistic locking: the session key is WATCHed, the mutation
    runs on the freshly read record and the write goes out in MULTI/EXEC. A
    concurrent write to the same key aborts the EXEC and the mutation is
    re-run on the new state.
    """

    def __init__(
        self,
        r: Redis,
        prefix: str = "quiz:",
        ttl_seconds: int | None = None,
        cas_retries: int = 5,
    ) -> None:
        self.r = r
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds
        self.cas_retries = cas_retries

    # --- keys ---

    def k_session(self, session_id: str) -> str:
        return f"{self.prefix}session:{session_id}"

    def k_completed(self) -> str:
        return f"{self.prefix}session:completed"

    # --- operations ---

    async def create(self, session: QuizSession) -> None:
        try:
            created = await self.r.set(
                self.k_session(session.session_id),
                session.model_dump_json(),
                nx=True,
                ex=self.ttl_seconds,
            )
        except RedisError as e:
            raise StorageUnavailable(f"redis unavailable: {e}") from e
        if not created:
            raise StorageUnavailable(f"session id collision: {session.session_id}")

    async def get(self, session_id: str) -> QuizSession:
        try:
            raw = await self.r.get(self.k_session(session_id))
        except RedisError as e:
            raise StorageUnavailable(f"redis unavailable: {e}") from e
        if raw is None:
            raise SessionNotFound(f"quiz session {session_id} not found")
        return self._parse(session_id, raw)

    async def update(self, session_id: str, mutate: Mutation) -> T:
        key = self.k_session(session_id)
        try:
            async with self.r.pipeline(transaction=True) as pipe:
                for attempt in range(1, self.cas_retries + 1):
                    try:
                        await pipe.watch(key)
                        raw = await pipe.get(key)
                        if raw is None:
                            raise SessionNotFound(f"quiz session {session_id} not found")
                        session = self._parse(session_id, raw)
                        was_completed = session.completed
                        result = mutate(session)

                        pipe.multi()
                        if self.ttl_seconds:
                            pipe.set(key, session.model_dump_json(), ex=self.ttl_seconds)
                        else:
                            pipe.set(key, session.model_dump_json(), keepttl=True)
                        if session.completed and not was_completed and session.completed_at:
                            pipe.zadd(self.k_completed(), {session_id: _epoch_ms(session.completed_at)})
                        await pipe.execute()
                        return result
                    except WatchError:
                        logger.info({"event": "session_update_conflict", "session_id": session_id, "attempt": attempt})
                        continue
        except RedisError as e:
            raise StorageUnavailable(f"redis unavailable: {e}") from e
        raise StorageUnavailable(f"quiz session {session_id} is under heavy contention")

    async def list_completed(self, since: Optional[datetime] = None) -> List[QuizSession]:
        min_score = _epoch_ms(since) if since is not None else "-inf"
        try:
            ids = await self.r.zrangebyscore(self.k_completed(), min_score, "+inf")
            out: List[QuizSession] = []
            for i in range(0, len(ids), MGET_CHUNK):
                chunk = ids[i:i + MGET_CHUNK]
                raws = await self.r.mget([self.k_session(sid) for sid in chunk])
                for sid, raw in zip(chunk, raws):
                    if raw is None:
                        # expired by TTL; the index entry is harmless
                        continue
                    try:
                        out.append(QuizSession.model_validate_json(raw))
                    except ValidationError:
                        logger.warning({"event": "session_record_skipped", "session_id": sid})
        except RedisError as e:
            raise StorageUnavailable(f"redis unavailable: {e}") from e
        return out

    def _parse(self, session_id: str, raw: str) -> QuizSession:
        try:
            return QuizSession.model_validate_json(raw)
        except ValidationError as e:
            logger.error({"event": "session_record_corrupt", "session_id": session_id})
            raise StorageUnavailable(f"quiz session {session_id} is unreadable") from e
