import logging
from typing import Optional
from redis.exceptions import RedisError
from infrastructure.redis_config import RedisPool, hint_key
from app.domain.repositories_interfaces.hint_repo import HintRepoInterface
from app.domain.entities.hint import Hint


logger = logging.getLogger('cache')


class RedisHintRepo(HintRepoInterface):
    def __init__(self, redis_pool: RedisPool, ttl: int = 86400):
        self.redis_pool = redis_pool
        self.ttl = ttl

    async def get(self, hint: Hint) -> Optional[Hint]:
        try:
            text = await self.redis_pool.execute('get', hint_key(hint.quiz_id, hint.question_id))
        except (RedisError, OSError) as e:
            logger.error(f"Cache GET failed for hint {hint.quiz_id}/{hint.question_id}: {e}")
            return None
        if text is None:
            return None
        return Hint(quiz_id=hint.quiz_id, question_id=hint.question_id, text=text)

    async def save(self, hint: Hint) -> None:
        try:
            await self.redis_pool.execute('set', hint_key(hint.quiz_id, hint.question_id), hint.text, ex=self.ttl)
        except (RedisError, OSError) as e:
            logger.error(f"Cache SET failed for hint {hint.quiz_id}/{hint.question_id}: {e}")
