import logging
from typing import Optional
from pydantic import TypeAdapter, ValidationError
from redis.exceptions import RedisError
from infrastructure.redis_config import RedisPool, history_key, stats_key, recent_key
from app.domain.repositories_interfaces.submission_repo import HistoryRepoInterface
from app.domain.entities.submission import Submission, HistoryQuery, HistoryPage, UserStats
from app.domain.entities.user import User


logger = logging.getLogger('cache')

page_adapter = TypeAdapter(HistoryPage)
stats_adapter = TypeAdapter(UserStats)
recent_adapter = TypeAdapter(list[Submission])


class RedisHistoryRepo(HistoryRepoInterface):
    """
    Caches the read models derived from a user's submissions: filtered history pages,
    statistics and recent activity. All of them are evicted by RedisQuizRepo.invalidate_user
    when the user submits.
    """

    def __init__(self, redis_pool: RedisPool, ttl: int = 1800, stats_ttl: int = 3600, recent_ttl: int = 900):
        self.redis_pool = redis_pool
        self.ttl = ttl
        self.stats_ttl = stats_ttl
        self.recent_ttl = recent_ttl

    async def get(self, user: User, query: HistoryQuery) -> Optional[HistoryPage]:
        return await self._read(history_key(user.id, query), page_adapter, user)

    async def save(self, user: User, query: HistoryQuery, page: HistoryPage) -> None:
        await self._write(history_key(user.id, query), page_adapter.dump_json(page), self.ttl, user)

    async def get_stats(self, user: User) -> Optional[UserStats]:
        return await self._read(stats_key(user.id), stats_adapter, user)

    async def save_stats(self, user: User, stats: UserStats) -> None:
        await self._write(stats_key(user.id), stats_adapter.dump_json(stats), self.stats_ttl, user)

    async def get_recent(self, user: User, limit: int) -> Optional[list[Submission]]:
        return await self._read(recent_key(user.id, limit), recent_adapter, user)

    async def save_recent(self, user: User, limit: int, submissions: list[Submission]) -> None:
        await self._write(recent_key(user.id, limit), recent_adapter.dump_json(submissions),
                          self.recent_ttl, user)

    async def _read(self, key: str, adapter: TypeAdapter, user: User):
        try:
            data = await self.redis_pool.execute('get', key)
        except (RedisError, OSError) as e:
            logger.error(f"Cache GET failed for {key}: {e}", extra={'user': user.id})
            return None
        if data is None:
            return None
        try:
            return adapter.validate_json(data)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}", extra={'user': user.id})
            return None

    async def _write(self, key: str, payload: bytes, ttl: int, user: User) -> None:
        try:
            await self.redis_pool.execute('set', key, payload.decode(), ex=ttl)
        except (RedisError, OSError) as e:
            logger.error(f"Cache SET failed for {key}: {e}", extra={'user': user.id})
