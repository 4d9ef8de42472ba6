import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import aiomysql
from pydantic import TypeAdapter
from app.domain.repositories_interfaces.submission_repo import SubmissionRepoInterface
from app.domain.entities.submission import (Submission, QuizResponse, DetailedResult, HistoryQuery, HistoryPage,
                                            UserStats, ScoreBreakdown, BestScore)
from app.domain.entities.user import User
from app.domain.entities.quiz import Quiz
from app.domain.identifiers import generate_submission_id
from infrastructure.aiomysql_config import MySQLPool


logger = logging.getLogger('repositories')

SUBMISSION_COLUMNS = ('s.submission_id, s.quiz_id, s.user_id, s.responses, s.score, s.max_score, s.percentage, '
                      's.detailed_results, s.suggestions, s.completed_at, s.is_retry, s.original_submission_id')

responses_adapter = TypeAdapter(list[QuizResponse])
results_adapter = TypeAdapter(list[DetailedResult])


def _score(value) -> float:
    """Rounds a percentage aggregate, NULL on no rows, to two places."""
    return round(float(value or Decimal(0)), 2)


class MySQLSubmissionRepo(SubmissionRepoInterface):
    def __init__(self, pool: MySQLPool):
        self.pool = pool

    async def get(self, submission: Submission) -> Optional[Submission]:
        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(
                    f'''SELECT {SUBMISSION_COLUMNS}, q.title AS quiz_title, q.subject, q.grade
                        FROM quiz_submissions s JOIN quizzes q ON s.quiz_id = q.quiz_id
                        WHERE s.submission_id=%s''',
                    (submission.id,)
                )
                row = await cursor.fetchone()
        return self._row_to_submission(row) if row else None

    async def save(self, submission: Submission) -> Submission:
        """
        Persists a graded submission under a fresh id. Submissions are never updated.

        :param submission: Submission without id.
        :return: The stored Submission with id and completion time.
        """
        created = submission.model_copy(update={
            'id': generate_submission_id(),
            'completed_at': datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0),
        })
        async with self.pool.connection() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(
                    '''INSERT INTO quiz_submissions (submission_id, quiz_id, user_id, responses, score, max_score,
                           percentage, detailed_results, suggestions, completed_at, is_retry, original_submission_id)
                       VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)''',
                    (created.id, created.quiz_id, created.user_id,
                     responses_adapter.dump_json(created.responses, by_alias=True).decode(),
                     created.score, created.max_score, created.percentage,
                     results_adapter.dump_json(created.detailed_results, by_alias=True).decode(),
                     json.dumps(created.suggestions), created.completed_at,
                     created.is_retry, created.original_submission_id)
                )
                await conn.commit()
        logger.info(f"Quiz submission created: {created.id} for quiz {created.quiz_id}",
                    extra={'user': created.user_id})
        return created

    async def get_last(self, user: User, quiz: Quiz) -> Optional[Submission]:
        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(
                    f'''SELECT {SUBMISSION_COLUMNS} FROM quiz_submissions s
                        WHERE s.user_id=%s AND s.quiz_id=%s
                        ORDER BY s.completed_at DESC LIMIT 1''',
                    (user.id, quiz.id)
                )
                row = await cursor.fetchone()
        return self._row_to_submission(row) if row else None

    async def get_by_user(self, user: User, query: HistoryQuery) -> HistoryPage:
        """
        A filtered page of a user's submissions, newest first, with the number of
        submissions matching the filters across all pages.
        """
        conditions, params = self._history_filters(user, query)
        where = ' AND '.join(conditions)
        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(
                    f'''SELECT {SUBMISSION_COLUMNS}, q.title AS quiz_title, q.subject, q.grade
                        FROM quiz_submissions s JOIN quizzes q ON s.quiz_id = q.quiz_id
                        WHERE {where}
                        ORDER BY s.completed_at DESC LIMIT %s OFFSET %s''',
                    tuple(params + [query.limit, query.offset])
                )
                rows = await cursor.fetchall()
                await cursor.execute(
                    f'''SELECT COUNT(*) AS total
                        FROM quiz_submissions s JOIN quizzes q ON s.quiz_id = q.quiz_id
                        WHERE {where}''',
                    tuple(params)
                )
                count = await cursor.fetchone() or {}
        return HistoryPage(submissions=[self._row_to_submission(row) for row in rows],
                           total=int(count.get('total') or 0), limit=query.limit, offset=query.offset)

    async def get_user_stats(self, user: User) -> UserStats:
        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(
                    '''SELECT COUNT(*) AS total_submissions,
                              COUNT(DISTINCT quiz_id) AS unique_quizzes_attempted,
                              AVG(percentage) AS average_score,
                              MAX(percentage) AS best_score,
                              MIN(percentage) AS worst_score,
                              COUNT(CASE WHEN percentage >= 80 THEN 1 END) AS excellent_scores,
                              COUNT(CASE WHEN percentage >= 60 AND percentage < 80 THEN 1 END) AS good_scores,
                              COUNT(CASE WHEN percentage < 60 THEN 1 END) AS needs_improvement,
                              COUNT(CASE WHEN is_retry = TRUE THEN 1 END) AS total_retries
                       FROM quiz_submissions WHERE user_id=%s''',
                    (user.id,)
                )
                overall = await cursor.fetchone() or {}
                await cursor.execute(
                    '''SELECT q.subject, COUNT(*) AS attempts, AVG(s.percentage) AS average_score,
                              MAX(s.percentage) AS best_score
                       FROM quiz_submissions s JOIN quizzes q ON s.quiz_id = q.quiz_id
                       WHERE s.user_id=%s GROUP BY q.subject ORDER BY average_score DESC''',
                    (user.id,)
                )
                by_subject = await cursor.fetchall()
                await cursor.execute(
                    '''SELECT q.grade, COUNT(*) AS attempts, AVG(s.percentage) AS average_score,
                              MAX(s.percentage) AS best_score
                       FROM quiz_submissions s JOIN quizzes q ON s.quiz_id = q.quiz_id
                       WHERE s.user_id=%s GROUP BY q.grade ORDER BY q.grade''',
                    (user.id,)
                )
                by_grade = await cursor.fetchall()

        counters = ('total_submissions', 'unique_quizzes_attempted', 'excellent_scores', 'good_scores',
                    'needs_improvement', 'total_retries')
        scores = ('average_score', 'best_score', 'worst_score')
        return UserStats(
            **{name: int(overall.get(name) or 0) for name in counters},
            **{name: _score(overall.get(name)) for name in scores},
            by_subject=[self._row_to_breakdown(row) for row in by_subject],
            by_grade=[self._row_to_breakdown(row) for row in by_grade],
        )

    async def get_recent(self, user: User, limit: int = 5) -> list[Submission]:
        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(
                    f'''SELECT {SUBMISSION_COLUMNS}, q.title AS quiz_title, q.subject, q.grade
                        FROM quiz_submissions s JOIN quizzes q ON s.quiz_id = q.quiz_id
                        WHERE s.user_id=%s
                        ORDER BY s.completed_at DESC LIMIT %s''',
                    (user.id, limit)
                )
                rows = await cursor.fetchall()
        return [self._row_to_submission(row) for row in rows]

    async def get_best_score(self, user: User, quiz: Quiz) -> BestScore:
        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(
                    '''SELECT MAX(percentage) AS best_score, MIN(completed_at) AS first_attempt
                       FROM quiz_submissions WHERE user_id=%s AND quiz_id=%s''',
                    (user.id, quiz.id)
                )
                row = await cursor.fetchone() or {}
        best = row.get('best_score')
        return BestScore(best_score=_score(best) if best is not None else None,
                         first_attempt=row.get('first_attempt'))

    @staticmethod
    def _history_filters(user: User, query: HistoryQuery) -> tuple[list[str], list]:
        conditions = ['s.user_id=%s']
        params = [user.id]
        if not query.include_retries:
            conditions.append('s.is_retry = FALSE')
        for condition, value in (('q.subject=%s', query.subject),
                                 ('q.grade=%s', query.grade),
                                 ('s.percentage >= %s', query.min_score),
                                 ('s.percentage <= %s', query.max_score),
                                 ('DATE(s.completed_at) >= %s', query.from_date),
                                 ('DATE(s.completed_at) <= %s', query.to_date)):
            if value is not None:
                conditions.append(condition)
                params.append(value)
        return conditions, params

    @staticmethod
    def _row_to_breakdown(row: dict) -> ScoreBreakdown:
        return ScoreBreakdown(
            subject=row.get('subject'),
            grade=row.get('grade'),
            attempts=int(row.get('attempts') or 0),
            average_score=_score(row.get('average_score')),
            best_score=_score(row.get('best_score')),
        )

    @staticmethod
    def _row_to_submission(row: dict) -> Submission:
        return Submission(
            id=row['submission_id'],
            quiz_id=row['quiz_id'],
            user_id=row['user_id'],
            responses=responses_adapter.validate_json(row['responses']),
            score=row['score'],
            max_score=row['max_score'],
            percentage=float(row['percentage']),
            detailed_results=results_adapter.validate_json(row['detailed_results']),
            suggestions=json.loads(row['suggestions']),
            completed_at=row['completed_at'],
            is_retry=bool(row['is_retry']),
            original_submission_id=row['original_submission_id'],
            quiz_title=row.get('quiz_title'),
            subject=row.get('subject'),
            grade=row.get('grade'),
        )
