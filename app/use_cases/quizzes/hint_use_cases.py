import asyncio
import logging
from app.domain.entities.hint import Hint
from app.domain.entities.quiz import Quiz
from app.domain.exceptions import CollaboratorError, QuizNotFoundError
from app.domain.repositories_interfaces.hint_repo import HintRepoInterface
from app.domain.services_interfaces.ai_service import AIServiceInterface
from app.use_cases.quizzes.quiz_use_cases import QuizUseCases


logger = logging.getLogger('use_cases')


def fallback_hint(quiz: Quiz) -> str:
    return (f"Think carefully about the key concepts related to {quiz.subject} for grade {quiz.grade}. "
            f"Consider each option and eliminate the ones that don't make sense.")


class HintUseCases:
    def __init__(self, quiz_use_cases: QuizUseCases, sql_repo: HintRepoInterface,
                 redis_repo: HintRepoInterface, ai_service: AIServiceInterface, timeout: float = 30):
        self.quiz_use_cases = quiz_use_cases
        self.sql_repo = sql_repo
        self.redis_repo = redis_repo
        self.ai_service = ai_service
        self.timeout = timeout

    async def get_hint(self, quiz_id: str, question_id: str) -> Hint:
        """
        Returns the hint for one question of a quiz, generating it on first request.

        Generated hints are stored and cached, so every later request for the same question
        gets the same text. When the AI provider fails a generic hint is returned and nothing
        is stored, so the next request tries the provider again.

        :param quiz_id: The quiz holding the question.
        :param question_id: The question to hint at.
        :return: Hint for the question.
        """
        lookup = Hint(quiz_id=quiz_id, question_id=question_id, text='')

        cached = await self.redis_repo.get(lookup)
        if cached:
            return cached

        quiz = await self.quiz_use_cases.get(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")
        question = next((q for q in quiz.questions if q.question_id == question_id), None)
        if question is None:
            raise QuizNotFoundError(f"Question {question_id} not found in quiz {quiz_id}")

        stored = await self.sql_repo.get(lookup)
        if stored:
            await self.redis_repo.save(stored)
            return stored

        try:
            text = await asyncio.wait_for(self.ai_service.generate_hint(question, quiz), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Hint generation for {quiz_id}/{question_id} timed out after {self.timeout}s")
            return Hint(quiz_id=quiz_id, question_id=question_id, text=fallback_hint(quiz))
        except CollaboratorError as e:
            logger.warning(f"Hint generation for {quiz_id}/{question_id} failed: {e}")
            return Hint(quiz_id=quiz_id, question_id=question_id, text=fallback_hint(quiz))

        hint = Hint(quiz_id=quiz_id, question_id=question_id, text=text)
        await self.sql_repo.save(hint)
        await self.redis_repo.save(hint)
        logger.info(f"Hint generated for {quiz_id}/{question_id}")
        return hint
