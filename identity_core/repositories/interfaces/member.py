from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set
from identity_core.database import models


class IMemberRepository(ABC):
    @abstractmethod
    def add(self, member_model: models.Member) -> models.Member:
        """그룹 또는 프로젝트 멤버십을 현재 트랜잭션에 추가합니다."""
        pass

    @abstractmethod
    def find_group_member(self, account_id: int, group_id: int) -> Optional[models.GroupMember]:
        """계정의 특정 그룹 멤버십을 조회합니다."""
        pass

    @abstractmethod
    def find_project_member(self, account_id: int, project_id: int) -> Optional[models.ProjectMember]:
        """계정의 특정 프로젝트 직접 멤버십을 조회합니다."""
        pass

    @abstractmethod
    def group_ids_for_account(
        self, account_id: int, access_levels: Optional[Iterable[models.AccessLevel]] = None
    ) -> Set[int]:
        """
        계정이 멤버로 속한 그룹의 ID 집합을 조회합니다.

        Args:
            account_id: 대상 계정의 ID.
            access_levels: 지정하면 해당 접근 수준의 멤버십만 포함합니다.
        """
        pass

    @abstractmethod
    def project_ids_for_account(self, account_id: int) -> Set[int]:
        """계정이 직접 멤버십을 가진 프로젝트의 ID 집합을 조회합니다."""
        pass

    @abstractmethod
    def account_ids_for_group(self, group_id: int, access_levels: Optional[Iterable[models.AccessLevel]] = None) -> Set[int]:
        """그룹에 속한 계정의 ID 집합을 조회합니다."""
        pass

    @abstractmethod
    def account_ids_for_project(self, project_id: int) -> Set[int]:
        """프로젝트에 직접 멤버십을 가진 계정의 ID 집합을 조회합니다."""
        pass

    @abstractmethod
    def list_by_account(self, account_id: int) -> List[models.Member]:
        """계정의 모든 멤버십(그룹, 프로젝트)을 조회합니다."""
        pass

    @abstractmethod
    def delete(self, member_model: models.Member) -> bool:
        """멤버십 하나를 삭제합니다."""
        pass

    @abstractmethod
    def delete_by_account(self, account_id: int) -> int:
        """계정의 모든 멤버십을 삭제하고 삭제된 개수를 반환합니다."""
        pass

    @abstractmethod
    def delete_by_project(self, project_id: int) -> int:
        """프로젝트에 걸린 모든 직접 멤버십을 삭제하고 삭제된 개수를 반환합니다."""
        pass

    @abstractmethod
    def list_for_group(self, group_id: int) -> List[models.GroupMember]:
        """그룹의 모든 멤버십을 계정 정보와 함께 조회합니다."""
        pass

    @abstractmethod
    def list_for_project(self, project_id: int) -> List[models.ProjectMember]:
        """프로젝트의 모든 직접 멤버십을 계정 정보와 함께 조회합니다."""
        pass

    @abstractmethod
    def delete_by_group(self, group_id: int) -> int:
        """그룹에 걸린 모든 멤버십을 삭제하고 삭제된 개수를 반환합니다."""
        pass
