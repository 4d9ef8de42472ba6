import logging
from typing import Optional
from app.domain.entities.quiz import Quiz
from app.domain.entities.submission import QuizResponse, Submission, HistoryQuery, HistoryPage, UserStats, BestScore
from app.domain.entities.user import User
from app.domain.exceptions import QuizNotFoundError, InvalidSubmissionError, ValidationAnomaly
from app.domain.repositories_interfaces.quiz_repo import QuizCacheInterface
from app.domain.repositories_interfaces.submission_repo import SubmissionRepoInterface, HistoryRepoInterface
from app.use_cases.quizzes.quiz_use_cases import QuizUseCases
from app.use_cases.submissions.evaluator import SubmissionEvaluator


logger = logging.getLogger('use_cases')

MAX_RECENT = 50


class SubmissionUseCases:
    def __init__(self, sql_repo: SubmissionRepoInterface, history_repo: HistoryRepoInterface,
                 quiz_use_cases: QuizUseCases, evaluator: SubmissionEvaluator, quiz_cache: QuizCacheInterface):
        self.sql_repo = sql_repo
        self.history_repo = history_repo
        self.quiz_use_cases = quiz_use_cases
        self.evaluator = evaluator
        self.quiz_cache = quiz_cache

    async def submit(self, user_id: str, quiz_id: str, responses: list[QuizResponse]) -> Submission:
        """
        Grades an attempt and records it.

        Responses to questions the quiz does not have, and repeated responses to the same
        question, are dropped before grading. An attempt on a quiz the user has submitted
        before is stored as a retry linked to the user's first submission.

        :param user_id: The ID of the user submitting.
        :param quiz_id: The attempted quiz.
        :param responses: The user's responses.
        :return: The stored Submission.
        """
        quiz = await self.quiz_use_cases.get(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")
        if not responses:
            raise InvalidSubmissionError('Responses are required')

        accepted = self._filter_responses(quiz, responses)
        result = await self.evaluator.evaluate(quiz, accepted)

        user = User(id=user_id)
        previous = await self.sql_repo.get_last(user, quiz)
        submission = Submission(
            quiz_id=quiz.id,
            user_id=user_id,
            responses=accepted,
            score=result.total_score,
            max_score=result.max_score,
            percentage=result.percentage,
            detailed_results=result.detailed_results,
            suggestions=result.suggestions,
            is_retry=previous is not None,
            original_submission_id=(previous.original_submission_id or previous.id) if previous else None,
            quiz_title=quiz.title,
            subject=quiz.subject,
            grade=quiz.grade,
        )
        submission = await self.sql_repo.save(submission)

        # Cached history, stats and recent activity of this user are stale now
        await self.quiz_cache.invalidate_user(user)
        logger.info(f"Submission {submission.id} scored {submission.score}/{submission.max_score}",
                    extra={'user': user_id})
        return submission

    async def get(self, submission_id: str) -> Optional[Submission]:
        return await self.sql_repo.get(Submission(id=submission_id, quiz_id='', user_id=''))

    async def history(self, user_id: str, query: Optional[HistoryQuery] = None) -> HistoryPage:
        """
        Retrieves a filtered page of the user's submissions, newest first. It first checks
        Redis cache and falls back to SQL if not found.

        :param user_id: The ID of the user.
        :param query: Paging and filters, the first 10 submissions when omitted.
        :return: HistoryPage with the total number of matching submissions.
        """
        query = query or HistoryQuery()
        user = User(id=user_id)
        cached = await self.history_repo.get(user, query)
        if cached is not None:
            return cached

        page = await self.sql_repo.get_by_user(user, query)
        await self.history_repo.save(user, query, page)
        logger.info(f"History retrieved: {len(page.submissions)} of {page.total} submissions",
                    extra={'user': user_id})
        return page

    async def user_stats(self, user_id: str) -> UserStats:
        """Overall, per-subject and per-grade performance of a user. Cached like history."""
        user = User(id=user_id)
        cached = await self.history_repo.get_stats(user)
        if cached is not None:
            return cached

        stats = await self.sql_repo.get_user_stats(user)
        await self.history_repo.save_stats(user, stats)
        return stats

    async def recent_activity(self, user_id: str, limit: int = 5) -> list[Submission]:
        if not 1 <= limit <= MAX_RECENT:
            raise InvalidSubmissionError(f"Recent activity limit must be between 1 and {MAX_RECENT}")
        user = User(id=user_id)
        cached = await self.history_repo.get_recent(user, limit)
        if cached is not None:
            return cached

        submissions = await self.sql_repo.get_recent(user, limit)
        await self.history_repo.save_recent(user, limit, submissions)
        return submissions

    async def best_score(self, user_id: str, quiz_id: str) -> BestScore:
        return await self.sql_repo.get_best_score(User(id=user_id), Quiz(id=quiz_id))

    @staticmethod
    def _filter_responses(quiz: Quiz, responses: list[QuizResponse]) -> list[QuizResponse]:
        known = {question.question_id for question in quiz.questions}
        seen = set()
        accepted = []
        for response in responses:
            if response.question_id not in known:
                anomaly = ValidationAnomaly(f"response to unknown question {response.question_id}")
            elif response.question_id in seen:
                anomaly = ValidationAnomaly(f"duplicate response to question {response.question_id}")
            else:
                seen.add(response.question_id)
                accepted.append(response)
                continue
            logger.warning(f"Dropping response in quiz {quiz.id}: {anomaly}")
        return accepted
