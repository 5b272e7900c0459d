from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set
from identity_core.database import models


class IProjectRepository(ABC):
    @abstractmethod
    def add(self, project_model: models.Project) -> models.Project:
        """새로운 프로젝트를 현재 트랜잭션에 추가합니다."""
        pass

    @abstractmethod
    def find_by_id(self, project_id: int) -> Optional[models.Project]:
        """고유 ID로 특정 프로젝트를 조회합니다."""
        pass

    @abstractmethod
    def find_by_path(self, namespace_id: int, path: str) -> Optional[models.Project]:
        """네임스페이스 안에서 경로로 프로젝트를 조회합니다."""
        pass

    @abstractmethod
    def list_by_namespace(self, namespace_id: int) -> List[models.Project]:
        """특정 네임스페이스에 속한 모든 프로젝트를 조회합니다."""
        pass

    @abstractmethod
    def count_by_namespace(self, namespace_id: int) -> int:
        """특정 네임스페이스에 속한 프로젝트의 개수를 조회합니다."""
        pass

    @abstractmethod
    def ids_in_namespaces(self, namespace_ids: Iterable[int]) -> Set[int]:
        """주어진 네임스페이스들에 속한 모든 프로젝트의 ID 집합을 조회합니다."""
        pass

    @abstractmethod
    def group_ids_owning(self, project_ids: Iterable[int]) -> Set[int]:
        """
        주어진 프로젝트들을 소유한 네임스페이스 중 그룹인 것의 ID 집합을 조회합니다.
        개인 네임스페이스는 결과에 포함되지 않습니다.
        """
        pass

    @abstractmethod
    def delete(self, project: models.Project) -> bool:
        """특정 프로젝트를 삭제합니다. 프로젝트 멤버십은 호출자가 먼저 정리해야 합니다."""
        pass
