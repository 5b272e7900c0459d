from abc import ABC, abstractmethod
from typing import Optional
from identity_core.database import models


class INamespaceRepository(ABC):
    @abstractmethod
    def add(self, namespace_model: models.Namespace) -> models.Namespace:
        """네임스페이스(개인 또는 그룹)를 현재 트랜잭션에 추가합니다."""
        pass

    @abstractmethod
    def find_by_id(self, namespace_id: int) -> Optional[models.Namespace]:
        """고유 ID로 네임스페이스를 조회합니다."""
        pass

    @abstractmethod
    def find_by_path(self, path: str) -> Optional[models.Namespace]:
        """경로로 네임스페이스를 조회합니다. 개인/그룹 구분 없이 전체 경로 공간에서 찾습니다. (대소문자 무시)"""
        pass

    @abstractmethod
    def find_group_by_id(self, group_id: int, for_update: bool = False) -> Optional[models.Group]:
        """ID로 그룹을 조회합니다. 개인 네임스페이스는 반환하지 않습니다."""
        pass

    @abstractmethod
    def find_personal_by_owner(self, account_id: int, for_update: bool = False) -> Optional[models.PersonalNamespace]:
        """계정의 개인 네임스페이스를 조회합니다."""
        pass

    @abstractmethod
    def path_taken(self, path: str, excluding_namespace_id: Optional[int] = None) -> bool:
        """다른 네임스페이스가 같은 경로(대소문자 무시)를 사용 중인지 확인합니다."""
        pass

    @abstractmethod
    def delete(self, namespace_model: models.Namespace) -> bool:
        """네임스페이스 행을 삭제합니다. 하위 프로젝트는 호출자가 먼저 정리해야 합니다."""
        pass
