from typing import Optional
from app.domain.entities.submission import Submission, HistoryQuery, HistoryPage, UserStats, BestScore
from app.domain.entities.user import User
from app.domain.entities.quiz import Quiz
from abc import ABC, abstractmethod


class SubmissionRepoInterface(ABC):
    @abstractmethod
    async def get(self, submission: Submission) -> Submission:
        raise NotImplementedError

    @abstractmethod
    async def save(self, submission: Submission) -> Submission:
        raise NotImplementedError

    @abstractmethod
    async def get_last(self, user: User, quiz: Quiz) -> Submission:
        raise NotImplementedError

    @abstractmethod
    async def get_by_user(self, user: User, query: HistoryQuery) -> HistoryPage:
        raise NotImplementedError

    @abstractmethod
    async def get_user_stats(self, user: User) -> UserStats:
        raise NotImplementedError

    @abstractmethod
    async def get_recent(self, user: User, limit: int = 5) -> list[Submission]:
        raise NotImplementedError

    @abstractmethod
    async def get_best_score(self, user: User, quiz: Quiz) -> BestScore:
        raise NotImplementedError


class HistoryRepoInterface(ABC):
    @abstractmethod
    async def get(self, user: User, query: HistoryQuery) -> Optional[HistoryPage]:
        raise NotImplementedError

    @abstractmethod
    async def save(self, user: User, query: HistoryQuery, page: HistoryPage) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_stats(self, user: User) -> Optional[UserStats]:
        raise NotImplementedError

    @abstractmethod
    async def save_stats(self, user: User, stats: UserStats) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_recent(self, user: User, limit: int) -> Optional[list[Submission]]:
        raise NotImplementedError

    @abstractmethod
    async def save_recent(self, user: User, limit: int, submissions: list[Submission]) -> None:
        raise NotImplementedError
