import json
import logging
from typing import Optional
from pydantic import ValidationError
from redis.exceptions import RedisError
from infrastructure.redis_config import RedisPool, quiz_key, stats_key
from app.domain.repositories_interfaces.quiz_repo import QuizRepoInterface, QuizCacheInterface
from app.domain.entities.quiz import Quiz
from app.domain.entities.user import User
from app.domain.codecs.question_set import QuestionSetCodec


logger = logging.getLogger('cache')


class RedisQuizRepo(QuizCacheInterface):
    """
    Write-through cache of quizzes keyed by quiz id.

    The cached copy is expendable: an entry that claims questions but holds none is
    repaired from source_repo on read, and a write never stores fewer questions than
    source_repo can provide. Cache backend failures are logged and behave as misses.
    """

    def __init__(self, redis_pool: RedisPool, source_repo: QuizRepoInterface, ttl: int = 3600):
        self.redis_pool = redis_pool
        self.source_repo = source_repo
        self.ttl = ttl

    async def get(self, quiz: Quiz) -> Optional[Quiz]:
        """
        Returns the cached quiz, repairing it from the source repository when the cached
        entry is missing its questions.

        :param quiz: Quiz instance carrying the id to look up.
        :return: The cached (or repaired) Quiz, None on a miss.
        """
        key = quiz_key(quiz.id)
        raw = await self._raw_get(key)
        if raw is None:
            return None

        cached = self._parse(raw, quiz.id)
        if cached is None:
            await self._raw_delete(key)
            return None

        if cached.is_missing_questions():
            logger.warning(f"Cached quiz {quiz.id} has 0 of {cached.total_questions} questions, repairing")
            fresh = await self.source_repo.get(quiz)
            if fresh and fresh.questions:
                await self._store(fresh)
                logger.info(f"Cache entry for quiz {quiz.id} repaired with {len(fresh.questions)} questions")
                return fresh
            logger.error(f"Could not repair cached quiz {quiz.id}, source has no questions either")
        return cached

    async def save(self, quiz: Quiz) -> Quiz:
        """
        Stores a normalized deep copy of the quiz for ttl seconds.

        :param quiz: The quiz to cache. Its questions may be a list or serialized text.
        :return: The normalized copy that was cached.
        """
        normalized = quiz.model_copy(deep=True)
        normalized.questions = QuestionSetCodec.decode(normalized.questions)

        if normalized.is_missing_questions() and normalized.id:
            logger.warning(f"Quiz {quiz.id} arrived at the cache without questions, reading the source")
            fresh = await self.source_repo.get(Quiz(id=quiz.id))
            if fresh and fresh.questions:
                normalized.questions = [question.model_copy() for question in fresh.questions]
            else:
                logger.warning(f"Source has no questions for quiz {quiz.id} either, caching the empty set")

        await self._store(normalized)
        return normalized

    async def delete(self, quiz: Quiz) -> None:
        await self._raw_delete(quiz_key(quiz.id))

    async def invalidate_user(self, user: User) -> None:
        """Evicts the history, statistics and per-user quiz views derived from a user's submissions."""
        patterns = (f'history:{user.id}:*', stats_key(user.id), f'recent:{user.id}:*', f'quiz:*:user:{user.id}')
        try:
            for pattern in patterns:
                keys = await self.redis_pool.execute('keys', pattern)
                if keys:
                    await self.redis_pool.execute('delete', *keys)
        except (RedisError, OSError) as e:
            logger.error(f"Cache invalidation failed for user {user.id}: {e}")

    async def _store(self, quiz: Quiz) -> None:
        try:
            await self.redis_pool.execute('set', quiz_key(quiz.id), quiz.model_dump_json(), ex=self.ttl)
        except (RedisError, OSError) as e:
            logger.error(f"Cache SET failed for quiz {quiz.id}: {e}")

    async def _raw_get(self, key: str):
        try:
            return await self.redis_pool.execute('get', key)
        except (RedisError, OSError) as e:
            logger.error(f"Cache GET failed for {key}: {e}")
            return None

    async def _raw_delete(self, key: str) -> None:
        try:
            await self.redis_pool.execute('delete', key)
        except (RedisError, OSError) as e:
            logger.error(f"Cache DEL failed for {key}: {e}")

    @staticmethod
    def _parse(raw, quiz_id: str) -> Optional[Quiz]:
        try:
            payload = json.loads(raw)
            # Entry written as a JSON string of the JSON document
            if isinstance(payload, str):
                payload = json.loads(payload)
            if not isinstance(payload, dict):
                raise ValueError(f"expected an object, got {type(payload).__name__}")
            payload['questions'] = QuestionSetCodec.decode(payload.get('questions'))
            return Quiz.model_validate(payload)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Discarding unreadable cache entry for quiz {quiz_id}: {e}")
            return None
