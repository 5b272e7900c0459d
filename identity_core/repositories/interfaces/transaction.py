from abc import ABC, abstractmethod
from typing import ContextManager


class ITransaction(ABC):
    @abstractmethod
    def begin(self) -> ContextManager[None]:
        """
        하나의 원자적 작업 단위를 시작합니다.

        with 블록이 정상 종료되면 commit 하고, 예외가 발생하면 rollback 합니다.
        저장소의 유일성 제약 위반은 CollisionError로 변환되어 전파됩니다.
        """
        pass
