import json
from app.domain.entities.question import Question
from app.domain.entities.quiz import Quiz, Difficulty
from app.domain.services_interfaces.ai_service import AIServiceInterface
from app.domain.exceptions import CollaboratorError


class FakeCursor:
    """Records executed statements and answers fetches from scripted rows."""

    def __init__(self, rows=None, fail_on=None, error=None):
        self.rows = list(rows or [])
        self.executed = []
        self.fail_on = fail_on
        self.error = error

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def execute(self, sql, params=None):
        self.executed.append((' '.join(sql.split()), params))
        if self.fail_on and self.fail_on in sql:
            raise self.error

    async def fetchone(self):
        return self.rows.pop(0) if self.rows else None

    async def fetchall(self):
        rows = self.rows.pop(0) if self.rows else []
        return rows


class FakeConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor
        self.calls = []

    def cursor(self, *args):
        return self._cursor

    async def begin(self):
        self.calls.append('begin')

    async def commit(self):
        self.calls.append('commit')

    async def rollback(self):
        self.calls.append('rollback')


class FakeAiomysqlPool:
    def __init__(self, connection: FakeConnection):
        self.connection = connection
        self.acquired = 0
        self.released = 0

    async def acquire(self):
        self.acquired += 1
        return self.connection

    def release(self, connection):
        self.released += 1


class ScriptedAIService(AIServiceInterface):
    """AI provider double. Each queue entry is returned, or raised when it is an exception."""

    def __init__(self, questions=None, evaluations=None, hints=None):
        self.questions = list(questions or [])
        self.evaluations = list(evaluations or [])
        self.hints = list(hints or [])
        self.calls = []

    @staticmethod
    def _next(queue):
        if not queue:
            raise CollaboratorError('no scripted response left')
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def generate_questions(self, spec):
        self.calls.append('generate_questions')
        return self._next(self.questions)

    async def grade_responses(self, quiz, responses):
        self.calls.append('grade_responses')
        return self._next(self.evaluations)

    async def generate_hint(self, question, quiz):
        self.calls.append('generate_hint')
        return self._next(self.hints)


def make_question(index: int, answer: str = 'A', marks: int = 1) -> Question:
    return Question(
        question_id=f'q{index}',
        text=f'Question {index}?',
        options=['Option A', 'Option B', 'Option C', 'Option D'],
        correct_answer=answer,
        marks=marks,
        explanation=f'Explanation {index}',
    )


def make_quiz(count: int = 3, quiz_id: str = 'quiz_abc123', marks: int = 1, **overrides) -> Quiz:
    fields = dict(
        id=quiz_id,
        user_id='user-1',
        title='Grade 5 Math Quiz',
        subject='Math',
        grade=5,
        difficulty=Difficulty.MEDIUM,
        total_questions=count,
        max_score=count * marks,
        questions=[make_question(i + 1, marks=marks) for i in range(count)],
    )
    fields.update(overrides)
    return Quiz(**fields)


def quiz_row(quiz: Quiz, questions=None) -> dict:
    """Row of the quizzes table as aiomysql.DictCursor returns it."""
    return {
        'quiz_id': quiz.id,
        'user_id': quiz.user_id,
        'title': quiz.title,
        'subject': quiz.subject,
        'grade': quiz.grade,
        'difficulty': quiz.difficulty.value,
        'total_questions': quiz.total_questions,
        'max_score': quiz.max_score,
        'questions': questions if questions is not None else json.dumps(
            [question.model_dump(by_alias=True) for question in quiz.questions]),
        'created_at': None,
    }
