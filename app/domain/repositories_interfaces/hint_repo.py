from app.domain.entities.hint import Hint
from abc import ABC, abstractmethod


class HintRepoInterface(ABC):
    @abstractmethod
    async def get(self, hint: Hint) -> Hint:
        raise NotImplementedError

    @abstractmethod
    async def save(self, hint: Hint) -> None:
        raise NotImplementedError
