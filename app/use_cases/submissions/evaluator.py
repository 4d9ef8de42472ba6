import asyncio
import logging
from typing import Optional
from pydantic import ValidationError
from app.domain.services_interfaces.ai_service import AIServiceInterface
from app.domain.entities.question import Question
from app.domain.entities.quiz import Quiz
from app.domain.entities.submission import QuizResponse, DetailedResult, EvaluationResult
from app.domain.codecs.question_set import QuestionSetCodec
from app.domain.exceptions import CollaboratorError


logger = logging.getLogger('use_cases')

NO_QUESTIONS_SUGGESTION = 'Unable to evaluate quiz - no questions found.'


def compute_percentage(total_score: int, max_score: int) -> float:
    if max_score <= 0:
        return 0.0
    return round(100 * total_score / max_score, 2)


def build_suggestions(percentage: float, all_correct: bool, subject: Optional[str]) -> list[str]:
    if all_correct:
        return ['Excellent work! You got all questions correct.']
    if percentage >= 80:
        return ['Great job! Review the questions you missed to strengthen your understanding.']
    if percentage >= 60:
        return [f'Good effort! Focus on reviewing {subject or "this topic"} concepts to improve your score.']
    return [
        f'Keep practicing! Consider reviewing the fundamentals of {subject or "this topic"}.',
        'Try studying with additional resources or ask for help with challenging topics.',
    ]


class SubmissionEvaluator:
    """
    Grades one attempt. The AI provider is asked first; when it fails, times out or
    returns a result that does not match the answered questions, the attempt is graded
    locally by exact comparison with the correct answers. evaluate() always returns a
    complete EvaluationResult and never raises for provider problems.
    """

    def __init__(self, ai_service: AIServiceInterface, timeout: float = 30):
        self.ai_service = ai_service
        self.timeout = timeout

    async def evaluate(self, quiz: Quiz, responses: list[QuizResponse]) -> EvaluationResult:
        """
        :param quiz: The quiz being attempted.
        :param responses: Responses of the attempt, already filtered to known question ids.
        :return: The evaluation with one detailed result per quiz question.
        """
        questions = QuestionSetCodec.decode(quiz.questions)
        if not questions:
            logger.error(f"No questions found in quiz {quiz.id}, cannot evaluate")
            return EvaluationResult(
                total_score=0,
                max_score=quiz.max_score or 0,
                percentage=0.0,
                detailed_results=[],
                suggestions=[NO_QUESTIONS_SUGGESTION],
            )
        quiz = quiz.model_copy(update={'questions': questions})

        try:
            raw = await asyncio.wait_for(self.ai_service.grade_responses(quiz, responses), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Grading quiz {quiz.id} timed out after {self.timeout}s, using fallback evaluation")
            return self.fallback_evaluation(quiz, responses)
        except CollaboratorError as e:
            logger.warning(f"Grading quiz {quiz.id} failed ({e}), using fallback evaluation")
            return self.fallback_evaluation(quiz, responses)
        except Exception as e:
            logger.error(f"Unexpected error grading quiz {quiz.id}: {e!r}, using fallback evaluation", exc_info=True)
            return self.fallback_evaluation(quiz, responses)

        result = self._repair(raw, quiz, responses)
        if result is None:
            return self.fallback_evaluation(quiz, responses)
        logger.info(f"Evaluated quiz {quiz.id}: {result.total_score}/{result.max_score}")
        return result

    def fallback_evaluation(self, quiz: Quiz, responses: list[QuizResponse]) -> EvaluationResult:
        """Rule-based grading: a question is correct iff the response equals its correct answer exactly."""
        logger.info(f"Using fallback evaluation for quiz {quiz.id}")
        answers = self._answers_by_question(responses)
        detailed_results = []
        total_score = 0

        for question in quiz.questions:
            answered = question.question_id in answers
            user_response = answers.get(question.question_id)
            is_correct = answered and user_response == question.correct_answer
            marks = question.marks if is_correct else 0
            total_score += marks
            detailed_results.append(DetailedResult(
                question_id=question.question_id,
                user_response=user_response,
                correct_answer=question.correct_answer,
                is_correct=is_correct,
                marks=marks,
                explanation=self._explain(question, is_correct, answered),
            ))

        return self._finalize(quiz, detailed_results, suggestions=None)

    def _repair(self, raw, quiz: Quiz, responses: list[QuizResponse]) -> Optional[EvaluationResult]:
        """
        Checks the provider result against the answered questions and rebuilds it on the
        quiz's own marks. Returns None when the result cannot be trusted.
        """
        if not isinstance(raw, dict) or not isinstance(raw.get('detailedResults'), list):
            logger.warning(f"Invalid evaluation structure for quiz {quiz.id}, missing detailedResults")
            return None

        questions = {question.question_id: question for question in quiz.questions}
        answers = {question_id: answer for question_id, answer in self._answers_by_question(responses).items()
                   if question_id in questions}
        try:
            entries = [DetailedResult.model_validate(entry) for entry in raw['detailedResults']]
        except ValidationError as e:
            logger.warning(f"Invalid detailedResults entry for quiz {quiz.id}: {e}")
            return None

        by_question = {}
        for entry in entries:
            if entry.question_id not in questions or entry.question_id in by_question:
                logger.warning(f"Unexpected or duplicate result for question {entry.question_id} in quiz {quiz.id}")
                return None
            by_question[entry.question_id] = entry

        # Exactly one entry per answered question
        if set(by_question) != set(answers):
            logger.warning(f"Evaluation covers {sorted(by_question)} but the answered questions are "
                           f"{sorted(answers)} in quiz {quiz.id}, using fallback evaluation")
            return None

        detailed_results = []
        for question_id, question in questions.items():
            answered = question_id in answers
            entry = by_question.get(question_id) if answered else None
            if entry is None:
                detailed_results.append(DetailedResult(
                    question_id=question_id,
                    user_response=None,
                    correct_answer=question.correct_answer,
                    is_correct=False,
                    marks=0,
                    explanation=self._explain(question, False, False),
                ))
                continue
            marks = min(max(entry.marks, 0), question.marks) if entry.is_correct else 0
            detailed_results.append(entry.model_copy(update={
                'user_response': answers[question_id],
                'correct_answer': question.correct_answer,
                'marks': marks,
                'explanation': entry.explanation or self._explain(question, entry.is_correct, True),
            }))

        suggestions = raw.get('suggestions')
        if not isinstance(suggestions, list) or not all(isinstance(item, str) for item in suggestions):
            suggestions = None
        return self._finalize(quiz, detailed_results, suggestions)

    def _finalize(self, quiz: Quiz, detailed_results: list[DetailedResult],
                  suggestions: Optional[list[str]]) -> EvaluationResult:
        max_score = quiz.max_score or sum(question.marks for question in quiz.questions)
        total_score = sum(result.marks for result in detailed_results)
        if total_score > max_score:
            logger.warning(f"Quiz {quiz.id} scored {total_score} over its max score {max_score}, capping")
            total_score = max_score
        percentage = compute_percentage(total_score, max_score)
        all_correct = bool(detailed_results) and all(result.is_correct for result in detailed_results)

        return EvaluationResult(
            total_score=total_score,
            max_score=max_score,
            percentage=percentage,
            detailed_results=detailed_results,
            suggestions=suggestions or build_suggestions(percentage, all_correct, quiz.subject),
        )

    @staticmethod
    def _answers_by_question(responses: list[QuizResponse]) -> dict:
        answers = {}
        for response in responses:
            # The first response to a question wins
            answers.setdefault(response.question_id, response.user_response)
        return answers

    @staticmethod
    def _explain(question: Question, is_correct: bool, answered: bool) -> str:
        if is_correct:
            return 'Correct! Well done.'
        prefix = 'Incorrect.' if answered else 'Not answered.'
        return f'{prefix} The correct answer is {question.correct_answer}. {question.explanation}'.strip()
