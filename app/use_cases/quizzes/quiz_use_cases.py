import logging
from typing import Optional
from app.domain.entities.quiz import Quiz, QuizSpec, QuizStats, RetryQuiz
from app.domain.entities.user import User
from app.domain.exceptions import QuizNotFoundError, InvalidSubmissionError
from app.domain.repositories_interfaces.submission_repo import SubmissionRepoInterface
from app.use_cases.quizzes.question_generator import QuestionGenerator
from app.domain.repositories_interfaces.quiz_repo import QuizStoreInterface, QuizCacheInterface


logger = logging.getLogger('use_cases')


class QuizUseCases:
    def __init__(self, sql_repo: QuizStoreInterface, redis_repo: QuizCacheInterface, generator: QuestionGenerator):
        self.sql_repo = sql_repo
        self.redis_repo = redis_repo
        self.generator = generator

    async def generate(self, user_id: str, spec: QuizSpec) -> Quiz:
        """
        Generates a new quiz, persists it and publishes it to the cache.

        :param user_id: The ID of the user requesting the quiz.
        :param spec: Grade, subject, number of questions, max score and difficulty.
        :return: The created Quiz.
        """
        logger.info(f"Generating {spec.difficulty.value} quiz: grade {spec.grade} {spec.subject}, "
                    f"{spec.total_questions} questions", extra={'user': user_id})
        questions = await self.generator.generate(spec)

        quiz = Quiz(
            user_id=user_id,
            title=f'Grade {spec.grade} {spec.subject} Quiz',
            subject=spec.subject,
            grade=spec.grade,
            difficulty=spec.difficulty,
            total_questions=spec.total_questions,
            max_score=spec.max_score,
            questions=questions,
        )

        # Save quiz in SQL repository, it assigns the id
        quiz = await self.sql_repo.save(quiz)

        # If quiz is saved in SQL repo, save it in Redis cache
        await self.redis_repo.save(quiz)
        return quiz

    async def get(self, quiz_id: str) -> Optional[Quiz]:
        """
        Retrieves a quiz by its ID. It first checks Redis cache and
        falls back to SQL if not found.

        :param quiz_id: The unique identifier for the quiz.
        :return: The retrieved Quiz object, None if it does not exist.
        """
        quiz = Quiz(id=quiz_id)
        cached = await self.redis_repo.get(quiz)
        if cached:
            return cached

        # If not found in Redis, fetch from SQL and update the Redis cache
        quiz = await self.sql_repo.get(quiz)
        if quiz is None:
            return None
        return await self.redis_repo.save(quiz)

    async def delete(self, quiz_id: str) -> None:
        """
        Deletes a quiz together with its hints and submissions, then evicts it from the cache.

        :param quiz_id: The unique identifier of the quiz to delete.
        """
        quiz = Quiz(id=quiz_id)
        await self.sql_repo.delete(quiz)
        await self.redis_repo.delete(quiz)

    async def get_stats(self, quiz_id: str) -> QuizStats:
        return await self.sql_repo.get_stats(Quiz(id=quiz_id))

    async def list_for_user(self, user_id: str, limit: int = 10, offset: int = 0,
                            subject: str = None, grade: int = None, difficulty: str = None) -> list[Quiz]:
        return await self.sql_repo.get_by_user(User(id=user_id), limit=limit, offset=offset,
                                               subject=subject, grade=grade, difficulty=difficulty)

    async def prepare_retry(self, user_id: str, quiz_id: str,
                            submission_repo: SubmissionRepoInterface) -> RetryQuiz:
        """
        Hands a quiz back for a new attempt without its correct answers.

        :param user_id: The ID of the user retrying the quiz.
        :param quiz_id: The quiz to retry.
        :param submission_repo: Repository holding the previous attempts.
        :return: RetryQuiz linking to the first attempt and carrying the previous percentage.
        """
        quiz = await self.get(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")

        last = await submission_repo.get_last(User(id=user_id), quiz)
        if last is None:
            raise InvalidSubmissionError(f"No previous submission found for quiz {quiz_id}")

        hidden = quiz.model_copy(update={
            'questions': [question.model_copy(update={'correct_answer': '', 'explanation': ''})
                          for question in quiz.questions]
        })
        return RetryQuiz(
            quiz=hidden,
            original_submission_id=last.original_submission_id or last.id,
            previous_score=last.percentage,
        )
