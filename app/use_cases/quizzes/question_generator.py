import asyncio
import logging
from app.domain.services_interfaces.ai_service import AIServiceInterface
from app.domain.entities.question import Question, QuestionKind, ANSWER_LETTERS
from app.domain.entities.quiz import QuizSpec
from app.domain.codecs.question_set import QuestionSetCodec
from app.domain.exceptions import CollaboratorError, ProviderUnavailableError


logger = logging.getLogger('use_cases')


def distribute_marks(max_score: int, count: int) -> list[int]:
    """
    Splits max_score over count questions. Every question gets max_score // count
    and the first question also takes the whole remainder.
    """
    if count <= 0:
        return []
    base, remainder = divmod(max_score, count)
    marks = [base] * count
    marks[0] += remainder
    return marks


def stub_questions(spec: QuizSpec) -> list[Question]:
    """Deterministic placeholder questions used when the AI provider cannot be used."""
    difficulty = spec.difficulty.value
    return [
        Question(
            question_id=f'q{i + 1}',
            text=f'Sample {spec.subject} question {i + 1} for grade {spec.grade} ({difficulty} level)',
            kind=QuestionKind.MULTIPLE_CHOICE,
            options=[f'Option {letter}' for letter in ANSWER_LETTERS],
            correct_answer='A',
            marks=marks,
            explanation=f'This is a sample explanation for question {i + 1}',
        )
        for i, marks in enumerate(distribute_marks(spec.max_score, spec.total_questions))
    ]


class QuestionGenerator:
    def __init__(self, ai_service: AIServiceInterface, attempts: int = 2, timeout: float = 30):
        self.ai_service = ai_service
        self.attempts = attempts
        self.timeout = timeout

    async def generate(self, spec: QuizSpec) -> list[Question]:
        """
        Produces the questions of a new quiz.

        Each attempt asks the AI provider (bounded by timeout) and validates the output.
        An attempt succeeds when it yields at least spec.total_questions well-formed
        multiple choice questions. When every attempt fails, placeholder questions are
        generated locally. Marks are always redistributed so they sum to spec.max_score.

        :param spec: The generation request.
        :return: Exactly spec.total_questions questions.
        """
        for attempt in range(1, self.attempts + 1):
            try:
                raw = await asyncio.wait_for(self.ai_service.generate_questions(spec), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Question generation attempt {attempt} timed out after {self.timeout}s")
                continue
            except ProviderUnavailableError as e:
                logger.info(f"Question generation skipped: {e}")
                break
            except CollaboratorError as e:
                logger.warning(f"Question generation attempt {attempt} failed: {e}")
                continue
            except Exception as e:
                logger.error(f"Question generation attempt {attempt} raised {e!r}", exc_info=True)
                continue

            if not isinstance(raw, list):
                logger.warning(f"Question generation attempt {attempt} returned {type(raw).__name__}, expected a list")
                continue
            questions = self._accept(raw, spec, attempt)
            if questions:
                return questions

        logger.warning(f"Falling back to placeholder questions for {spec.subject}, grade {spec.grade}")
        return stub_questions(spec)

    def _accept(self, raw: list, spec: QuizSpec, attempt: int) -> list[Question]:
        validated = QuestionSetCodec.validate(raw)
        well_formed = []
        for question in validated:
            if question.is_well_formed():
                well_formed.append(question)
            else:
                logger.warning(f"Dropping malformed question {question.question_id}: "
                               f"{len(question.options)} options, answer {question.correct_answer!r}")

        if len(well_formed) < spec.total_questions:
            logger.warning(f"Attempt {attempt} yielded {len(well_formed)} valid questions, "
                           f"expected {spec.total_questions}")
            return []
        if len(well_formed) > spec.total_questions:
            logger.warning(f"Attempt {attempt} yielded {len(well_formed)} questions, keeping the first "
                           f"{spec.total_questions}")

        questions = well_formed[:spec.total_questions]
        questions = self._dedupe_ids(questions)
        marks = distribute_marks(spec.max_score, spec.total_questions)
        return [question.model_copy(update={'marks': mark}) for question, mark in zip(questions, marks)]

    @staticmethod
    def _dedupe_ids(questions: list[Question]) -> list[Question]:
        seen = set()
        result = []
        for index, question in enumerate(questions):
            if question.question_id in seen:
                question = question.model_copy(update={'question_id': f'q{index + 1}'})
                while question.question_id in seen:
                    question = question.model_copy(update={'question_id': f'{question.question_id}_'})
            seen.add(question.question_id)
            result.append(question)
        return result
