# Repository service that contains all repositories for SQL, redis and external services.
class RepoService:
    def __init__(self, sql_quiz_repo, sql_submission_repo, sql_hint_repo,
                 redis_quiz_repo, redis_history_repo, redis_hint_repo,
                 aiohttp_service, ai_service):
        self.sql_quiz_repo = sql_quiz_repo
        self.sql_submission_repo = sql_submission_repo
        self.sql_hint_repo = sql_hint_repo
        self.redis_quiz_repo = redis_quiz_repo
        self.redis_history_repo = redis_history_repo
        self.redis_hint_repo = redis_hint_repo
        self.aiohttp_service = aiohttp_service
        self.ai_service = ai_service
