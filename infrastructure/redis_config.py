import asyncio
import json
import logging
from redis.asyncio import Redis
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError
from infrastructure.memory_cache import MemoryCache


logger = logging.getLogger('cache')


def quiz_key(quiz_id: str) -> str:
    return f'quiz:{quiz_id}'


def history_key(user_id: str, query) -> str:
    """One key per distinct history query, with only the non-default filters spelled out."""
    filters = json.dumps(query.model_dump(mode='json', exclude_defaults=True), sort_keys=True)
    return f'history:{user_id}:{filters}'


def stats_key(user_id: str) -> str:
    return f'stats:{user_id}'


def recent_key(user_id: str, limit: int) -> str:
    return f'recent:{user_id}:{limit}'


def hint_key(quiz_id: str, question_id: str) -> str:
    return f'hint:{quiz_id}:{question_id}'


class RedisPool:
    def __init__(self, host: str, port: int, db: int, connect_timeout: float = 0.5):
        self.host = host
        self.port = port
        self.db = db
        self.connect_timeout = connect_timeout
        self.pool = None

    async def create_pool(self):
        """
        Connects to redis, falling back to an in-process MemoryCache when redis does not
        answer a ping within connect_timeout seconds.
        """
        pool = Redis(host=self.host, port=self.port, db=self.db,
                     socket_connect_timeout=self.connect_timeout,
                     socket_timeout=self.connect_timeout,
                     decode_responses=True)
        try:
            await asyncio.wait_for(pool.ping(), timeout=self.connect_timeout)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Redis unavailable at {self.host}:{self.port} ({e!r}), using in-memory cache")
            await pool.aclose()
            self.pool = MemoryCache()
            return
        logger.info(f"Redis connected at {self.host}:{self.port}")
        self.pool = pool

    @property
    def using_redis(self) -> bool:
        return isinstance(self.pool, Redis)

    async def get_connection(self) -> Redis:
        return self.pool.client()

    async def fall_back(self, error: Exception):
        """Switches to the in-memory cache for the rest of the process lifetime."""
        failed = self.pool
        logger.warning(f"Redis at {self.host}:{self.port} lost ({error!r}), switching to in-memory cache")
        self.pool = MemoryCache()
        try:
            await failed.aclose()
        except (RedisError, OSError) as e:
            logger.debug(f"Closing the lost redis client failed: {e!r}")

    async def execute(self, command: str, *args, **kwargs):
        """
        Runs one cache command, e.g. execute('set', key, value, ex=60).

        A connection failure on the redis backend swaps in the in-memory cache and the
        command is retried there. Other errors propagate to the caller.
        """
        pool = self.pool
        try:
            async with pool.client() as conn:
                return await getattr(conn, command)(*args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            if not isinstance(pool, Redis):
                raise
            # Another command may already have switched backends
            if self.pool is pool:
                await self.fall_back(e)
        async with await self.get_connection() as conn:
            return await getattr(conn, command)(*args, **kwargs)

    async def close_pool(self):
        await self.pool.aclose()
        self.pool = None
