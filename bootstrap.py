import asyncio
import logging
from dataclasses import dataclass
from infrastructure.aiomysql_config import MySQLPool
from infrastructure.redis_config import RedisPool
from infrastructure.schema import create_tables
from infrastructure.repositories.quiz.sql_repo import MySQLQuizRepo
from infrastructure.repositories.quiz.redis_repo import RedisQuizRepo
from infrastructure.repositories.submission.sql_repo import MySQLSubmissionRepo
from infrastructure.repositories.submission.redis_repo import RedisHistoryRepo
from infrastructure.repositories.hint.sql_repo import MySQLHintRepo
from infrastructure.repositories.hint.redis_repo import RedisHintRepo
from infrastructure.services.aiohttp_service import AiohttpService
from infrastructure.services.ai_factory import create_ai_service
from infrastructure.services.repo_service import RepoService
from app.use_cases.quizzes.question_generator import QuestionGenerator
from app.use_cases.quizzes.quiz_use_cases import QuizUseCases
from app.use_cases.quizzes.hint_use_cases import HintUseCases
from app.use_cases.submissions.evaluator import SubmissionEvaluator
from app.use_cases.submissions.submission_use_cases import SubmissionUseCases
from config.main_config import (DB_HOST, DB_NAME, DB_USER, DB_PASSWORD, DB_PORT, REDIS_HOST, REDIS_PORT,
                                REDIS_DB, REDIS_CONNECT_TIMEOUT, CACHE_QUIZ_TTL, CACHE_HISTORY_TTL,
                                CACHE_STATS_TTL, CACHE_RECENT_TTL, CACHE_HINTS_TTL, AI_PROVIDER, AI_TIMEOUT,
                                GENERATION_ATTEMPTS)
from config.logging_config import configure_logging


logger = logging.getLogger('use_cases')


@dataclass
class Application:
    sql_pool: MySQLPool
    redis_pool: RedisPool
    repo_service: RepoService
    quizzes: QuizUseCases
    hints: HintUseCases
    submissions: SubmissionUseCases

    async def close(self):
        await self.repo_service.aiohttp_service.close()
        await self.redis_pool.close_pool()
        await self.sql_pool.close_pool()


async def build_application(init_schema: bool = False) -> Application:
    """
    Creates the pools and wires repositories, services and use cases together.

    :param init_schema: Create the tables if they do not exist yet.
    :return: Application holding the use cases. Call close() on shutdown.
    """
    configure_logging()

    sql_pool = MySQLPool(host=DB_HOST, port=DB_PORT, user=DB_USER, password=DB_PASSWORD, db=DB_NAME)
    redis_pool = RedisPool(host=REDIS_HOST, port=REDIS_PORT, db=REDIS_DB, connect_timeout=REDIS_CONNECT_TIMEOUT)
    await sql_pool.create_pool()
    await redis_pool.create_pool()
    if init_schema:
        await create_tables(sql_pool)

    sql_quiz_repo = MySQLQuizRepo(sql_pool)
    redis_quiz_repo = RedisQuizRepo(redis_pool, sql_quiz_repo, ttl=CACHE_QUIZ_TTL)

    sql_submission_repo = MySQLSubmissionRepo(sql_pool)
    redis_history_repo = RedisHistoryRepo(redis_pool, ttl=CACHE_HISTORY_TTL, stats_ttl=CACHE_STATS_TTL,
                                          recent_ttl=CACHE_RECENT_TTL)

    sql_hint_repo = MySQLHintRepo(sql_pool)
    redis_hint_repo = RedisHintRepo(redis_pool, ttl=CACHE_HINTS_TTL)

    aiohttp_service = AiohttpService(timeout=AI_TIMEOUT)
    ai_service = create_ai_service(aiohttp_service, AI_PROVIDER)

    repo_service = RepoService(
        sql_quiz_repo=sql_quiz_repo,
        sql_submission_repo=sql_submission_repo,
        sql_hint_repo=sql_hint_repo,
        redis_quiz_repo=redis_quiz_repo,
        redis_history_repo=redis_history_repo,
        redis_hint_repo=redis_hint_repo,
        aiohttp_service=aiohttp_service,
        ai_service=ai_service,
    )

    generator = QuestionGenerator(ai_service, attempts=GENERATION_ATTEMPTS, timeout=AI_TIMEOUT)
    quizzes = QuizUseCases(sql_quiz_repo, redis_quiz_repo, generator)
    hints = HintUseCases(quizzes, sql_hint_repo, redis_hint_repo, ai_service, timeout=AI_TIMEOUT)
    evaluator = SubmissionEvaluator(ai_service, timeout=AI_TIMEOUT)
    submissions = SubmissionUseCases(sql_submission_repo, redis_history_repo, quizzes, evaluator, redis_quiz_repo)

    logger.info(f"Quiz core ready (AI provider: {type(ai_service).__name__}, "
                f"cache: {'redis' if redis_pool.using_redis else 'in-memory'})")
    return Application(sql_pool, redis_pool, repo_service, quizzes, hints, submissions)


async def main():
    app = await build_application(init_schema=True)
    await app.close()


if __name__ == '__main__':
    asyncio.run(main())
