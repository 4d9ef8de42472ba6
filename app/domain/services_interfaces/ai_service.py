from abc import ABC, abstractmethod
from app.domain.entities.question import Question
from app.domain.entities.quiz import Quiz, QuizSpec
from app.domain.entities.submission import QuizResponse


class AIServiceInterface(ABC):
    """
    External text-generation provider. Implementations raise CollaboratorError on any
    failure: missing credentials, transport errors or output that is not JSON.
    """

    @abstractmethod
    async def generate_questions(self, spec: QuizSpec) -> list[dict]:
        """
        Generates raw question records for a quiz.

        :param spec: Grade, subject, question count, max score and difficulty of the quiz
        :return: List of question dicts as produced by the provider, not yet validated
        """
        pass

    @abstractmethod
    async def grade_responses(self, quiz: Quiz, responses: list[QuizResponse]) -> dict:
        """
        Grades the responses of one attempt.

        :param quiz: The quiz with its questions and correct answers
        :param responses: Responses matched to questions of the quiz
        :return: Evaluation dict with totalScore, maxScore, percentage, detailedResults and suggestions
        """
        pass

    @abstractmethod
    async def generate_hint(self, question: Question, quiz: Quiz) -> str:
        """
        Generates a hint that guides towards the answer without revealing it.

        :param question: The question to hint at
        :param quiz: The quiz the question belongs to
        :return: Hint text
        """
        pass
