from app.domain.entities.quiz import Quiz, QuizStats
from app.domain.entities.user import User
from abc import ABC, abstractmethod


class QuizRepoInterface(ABC):
    @abstractmethod
    async def get(self, quiz: Quiz) -> Quiz:
        raise NotImplementedError
    
    @abstractmethod
    async def save(self, quiz: Quiz) -> Quiz:
        raise NotImplementedError
    
    @abstractmethod
    async def delete(self, quiz: Quiz) -> None:
        raise NotImplementedError


class QuizStoreInterface(QuizRepoInterface):
    """Durable store of quizzes. save() creates the quiz and assigns its id."""

    @abstractmethod
    async def get_stats(self, quiz: Quiz) -> QuizStats:
        raise NotImplementedError

    @abstractmethod
    async def get_by_user(self, user: User, limit: int = 10, offset: int = 0,
                          subject: str = None, grade: int = None, difficulty: str = None) -> list[Quiz]:
        raise NotImplementedError


class QuizCacheInterface(QuizRepoInterface):
    @abstractmethod
    async def invalidate_user(self, user: User) -> None:
        raise NotImplementedError
