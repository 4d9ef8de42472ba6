import logging
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from app.domain.entities.question import Question
from app.domain.codecs.question_set import QuestionSetCodec


logger = logging.getLogger('use_cases')


class Difficulty(str, Enum):
    EASY = 'EASY'
    MEDIUM = 'MEDIUM'
    HARD = 'HARD'


"""
Quiz Entity:
1. id (str, None): Unique identifier of the quiz, assigned by the repository on creation.
Other fields can be None because for some functionality we need only id (e.g. get method).
2. user_id (str, None): Identifier of the user who generated the quiz.
3. title (str, None), subject (str, None): Display title and subject of the quiz.
4. grade (int, None): School grade 1-12 the quiz targets.
5. difficulty (Difficulty, None): EASY, MEDIUM or HARD.
6. total_questions (int, None): Expected number of questions.
7. max_score (int, None): Sum of the marks of all questions.
8. questions (list[Question]): Always a real list. Serialized strings are decoded on assignment.
9. created_at (datetime, None): Creation timestamp.
"""
class Quiz(BaseModel):
    id: Optional[str] = None
    user_id: Optional[str] = None
    title: Optional[str] = None
    subject: Optional[str] = None
    grade: Optional[int] = Field(default=None, ge=1, le=12)
    difficulty: Optional[Difficulty] = None
    total_questions: Optional[int] = Field(default=None, ge=0)
    max_score: Optional[int] = Field(default=None, ge=0)
    questions: list[Question] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @field_validator('questions', mode='before')
    @classmethod
    def decode_questions(cls, value):
        return QuestionSetCodec.decode(value)

    def is_missing_questions(self) -> bool:
        """A quiz that expects questions but holds none is an anomaly worth repairing."""
        return not self.questions and bool(self.total_questions)


class QuizSpec(BaseModel):
    """Parameters of a quiz generation request."""
    grade: int = Field(ge=1, le=12)
    subject: str = Field(min_length=1)
    total_questions: int = Field(ge=1, le=50)
    max_score: int = Field(ge=1, le=500)
    difficulty: Difficulty = Difficulty.MEDIUM

    @field_validator('difficulty', mode='before')
    @classmethod
    def normalize_difficulty(cls, value):
        if isinstance(value, Difficulty):
            return value
        normalized = str(value or '').upper()
        if normalized not in Difficulty.__members__:
            logger.warning(f"Invalid difficulty {value!r}, defaulting to MEDIUM")
            return Difficulty.MEDIUM
        return normalized

    @model_validator(mode='after')
    def check_marks_cover_questions(self):
        # Every question must be worth at least one mark
        if self.max_score < self.total_questions:
            raise ValueError('max_score must be at least total_questions')
        return self


class QuizStats(BaseModel):
    total_attempts: int = 0
    average_score: float = 0.0
    highest_score: float = 0.0
    unique_users: int = 0


class RetryQuiz(BaseModel):
    """Quiz handed back for a new attempt, stripped of the correct answers."""
    quiz: Quiz
    original_submission_id: str
    previous_score: float
