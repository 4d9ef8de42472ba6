import math
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class QuizResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    question_id: str
    user_response: Optional[str] = None


class DetailedResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    question_id: str
    user_response: Optional[str] = None
    correct_answer: str = ''
    is_correct: bool = False
    marks: int = Field(default=0, ge=0)
    explanation: str = ''


class EvaluationResult(BaseModel):
    """Outcome of grading one attempt. Every field is always populated."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_score: int = Field(default=0, ge=0)
    max_score: int = Field(default=0, ge=0)
    percentage: float = Field(default=0.0, ge=0, le=100)
    detailed_results: list[DetailedResult] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


"""
Submission Entity:
1. id (str, None): Unique identifier, assigned when the submission is persisted.
2. quiz_id (str), user_id (str): The graded quiz and the user who attempted it.
3. responses (list[QuizResponse]): Responses that matched a question of the quiz, in submission order.
4. score, max_score, percentage: Copied from the evaluation result.
5. detailed_results (list[DetailedResult]), suggestions (list[str]): Copied from the evaluation result.
6. completed_at (datetime, None): Set by the repository.
7. is_retry (bool), original_submission_id (str, None): Link to the first attempt of the same user on the same quiz.
"""
class Submission(BaseModel):
    id: Optional[str] = None
    quiz_id: str
    user_id: str
    responses: list[QuizResponse] = Field(default_factory=list)
    score: int = Field(default=0, ge=0)
    max_score: int = Field(default=0, ge=0)
    percentage: float = Field(default=0.0, ge=0, le=100)
    detailed_results: list[DetailedResult] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    completed_at: Optional[datetime] = None
    is_retry: bool = False
    original_submission_id: Optional[str] = None
    # Denormalized quiz fields for history listings
    quiz_title: Optional[str] = None
    subject: Optional[str] = None
    grade: Optional[int] = None


class HistoryQuery(BaseModel):
    """Paging and filters for a user's history. Filters left as None match everything."""
    limit: int = Field(default=10, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
    subject: Optional[str] = None
    grade: Optional[int] = Field(default=None, ge=1, le=12)
    min_score: Optional[float] = Field(default=None, ge=0, le=100)
    max_score: Optional[float] = Field(default=None, ge=0, le=100)
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    include_retries: bool = True

    @model_validator(mode='after')
    def check_ranges(self):
        if self.min_score is not None and self.max_score is not None and self.min_score > self.max_score:
            raise ValueError('min_score must not exceed max_score')
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError('from_date must not be after to_date')
        return self


class HistoryPage(BaseModel):
    submissions: list[Submission] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    limit: int = 10
    offset: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class ScoreBreakdown(BaseModel):
    """Attempts and scores of a user within one subject or one grade."""
    subject: Optional[str] = None
    grade: Optional[int] = None
    attempts: int = 0
    average_score: float = 0.0
    best_score: float = 0.0


class UserStats(BaseModel):
    total_submissions: int = 0
    unique_quizzes_attempted: int = 0
    average_score: float = 0.0
    best_score: float = 0.0
    worst_score: float = 0.0
    # Percentage bands: >= 80, 60 to 80, < 60
    excellent_scores: int = 0
    good_scores: int = 0
    needs_improvement: int = 0
    total_retries: int = 0
    by_subject: list[ScoreBreakdown] = Field(default_factory=list)
    by_grade: list[ScoreBreakdown] = Field(default_factory=list)


class BestScore(BaseModel):
    """Best percentage of a user on one quiz. Both fields are None before the first attempt."""
    best_score: Optional[float] = None
    first_attempt: Optional[datetime] = None
