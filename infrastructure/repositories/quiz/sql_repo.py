import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import aiomysql
from app.domain.repositories_interfaces.quiz_repo import QuizStoreInterface
from app.domain.entities.quiz import Quiz, QuizStats
from app.domain.entities.user import User
from app.domain.codecs.question_set import QuestionSetCodec
from app.domain.identifiers import generate_quiz_id
from infrastructure.aiomysql_config import MySQLPool


logger = logging.getLogger('repositories')

QUIZ_COLUMNS = ('quiz_id, user_id, title, subject, grade, difficulty, '
                'total_questions, max_score, questions, created_at')
SUMMARY_COLUMNS = 'quiz_id, user_id, title, subject, grade, difficulty, total_questions, max_score, created_at'


class MySQLQuizRepo(QuizStoreInterface):
    def __init__(self, pool: MySQLPool):
        self.pool = pool

    async def get(self, quiz: Quiz) -> Optional[Quiz]:
        """
        Reads a quiz and decodes its questions.

        If the quiz expects questions but none could be decoded, the questions column is
        fetched on its own and decoded once more before giving up with an empty set.

        :param quiz: Quiz instance carrying the id to look up.
        :return: The stored Quiz, or None if no row has that id.
        """
        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(f"SELECT {QUIZ_COLUMNS} FROM quizzes WHERE quiz_id=%s", (quiz.id,))
                row = await cursor.fetchone()
                if not row:
                    return None
                result = self._row_to_quiz(row)

                if result.is_missing_questions():
                    logger.warning(f"Quiz {quiz.id} decoded with 0 of {result.total_questions} questions, "
                                   f"re-reading the questions column")
                    await cursor.execute("SELECT questions FROM quizzes WHERE quiz_id=%s", (quiz.id,))
                    raw_row = await cursor.fetchone()
                    if raw_row:
                        result.questions = QuestionSetCodec.decode(raw_row['questions'])
                    if not result.questions:
                        logger.error(f"Quiz {quiz.id} has no recoverable questions")

        self._check_question_count(result)
        return result

    async def save(self, quiz: Quiz) -> Quiz:
        """
        Creates a quiz under a freshly generated id.

        Questions are validated and encoded before they reach the store. The returned Quiz
        always carries the validated questions; when the store does not return the written
        row it is rebuilt from the input.

        :param quiz: Quiz without id holding owner, metadata and questions.
        :return: The created Quiz with its id and creation time.
        """
        quiz_id = generate_quiz_id()
        questions = QuestionSetCodec.validate(quiz.questions)
        created_at = datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)
        difficulty = quiz.difficulty.value if quiz.difficulty else None

        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(
                    f'''INSERT INTO quizzes ({QUIZ_COLUMNS}) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)''',
                    (quiz_id, quiz.user_id, quiz.title, quiz.subject, quiz.grade, difficulty,
                     quiz.total_questions, quiz.max_score, QuestionSetCodec.encode(questions), created_at)
                )
                await conn.commit()
                await cursor.execute(f"SELECT {QUIZ_COLUMNS} FROM quizzes WHERE quiz_id=%s", (quiz_id,))
                row = await cursor.fetchone()

        if row:
            created = self._row_to_quiz(row)
        else:
            logger.info(f"Store did not return quiz {quiz_id}, rebuilding it from the input")
            created = quiz.model_copy(update={'id': quiz_id, 'created_at': created_at})
        created.questions = questions

        self._check_question_count(created)
        logger.info(f"Quiz created: {quiz_id}", extra={'user': quiz.user_id})
        return created

    async def delete(self, quiz: Quiz) -> None:
        # Children first, all in one transaction
        async with self.pool.transaction() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute("DELETE FROM quiz_hints WHERE quiz_id=%s", (quiz.id,))
                await cursor.execute("DELETE FROM quiz_submissions WHERE quiz_id=%s", (quiz.id,))
                await cursor.execute("DELETE FROM quizzes WHERE quiz_id=%s", (quiz.id,))
        logger.info(f"Quiz deleted: {quiz.id}")

    async def get_stats(self, quiz: Quiz) -> QuizStats:
        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(
                    '''SELECT COUNT(submission_id) AS total_attempts,
                              AVG(percentage) AS average_score,
                              MAX(percentage) AS highest_score,
                              COUNT(DISTINCT user_id) AS unique_users
                       FROM quiz_submissions WHERE quiz_id=%s''',
                    (quiz.id,)
                )
                row = await cursor.fetchone() or {}
        return QuizStats(
            total_attempts=int(row.get('total_attempts') or 0),
            average_score=round(float(row.get('average_score') or Decimal(0)), 2),
            highest_score=round(float(row.get('highest_score') or Decimal(0)), 2),
            unique_users=int(row.get('unique_users') or 0),
        )

    async def get_by_user(self, user: User, limit: int = 10, offset: int = 0,
                          subject: str = None, grade: int = None, difficulty: str = None) -> list[Quiz]:
        """Quiz summaries of a user, newest first. Questions are not loaded."""
        conditions = ['user_id=%s']
        params = [user.id]
        for column, value in (('subject', subject), ('grade', grade), ('difficulty', difficulty)):
            if value is not None:
                conditions.append(f'{column}=%s')
                params.append(value)
        params.extend([limit, offset])

        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(
                    f'''SELECT {SUMMARY_COLUMNS} FROM quizzes WHERE {' AND '.join(conditions)}
                        ORDER BY created_at DESC LIMIT %s OFFSET %s''',
                    tuple(params)
                )
                rows = await cursor.fetchall()
        return [self._row_to_quiz(row) for row in rows]

    @staticmethod
    def _row_to_quiz(row: dict) -> Quiz:
        return Quiz(
            id=row['quiz_id'],
            user_id=row['user_id'],
            title=row['title'],
            subject=row['subject'],
            grade=row['grade'],
            difficulty=row['difficulty'],
            total_questions=row['total_questions'],
            max_score=row['max_score'],
            questions=row.get('questions'),
            created_at=row['created_at'],
        )

    @staticmethod
    def _check_question_count(quiz: Quiz) -> None:
        if quiz.total_questions is not None and len(quiz.questions) != quiz.total_questions:
            logger.warning(f"Quiz {quiz.id} holds {len(quiz.questions)} questions "
                           f"but expects {quiz.total_questions}")
