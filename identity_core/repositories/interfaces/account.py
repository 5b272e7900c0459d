from abc import ABC, abstractmethod
from typing import List, Optional, Union
from identity_core.database import models
from identity_core.services.filters import AccountFilter


class IAccountRepository(ABC):
    @abstractmethod
    def add(self, account_model: models.Account) -> models.Account:
        """새로운 계정을 현재 트랜잭션에 추가하고 ID를 할당받습니다. (commit 하지 않음)"""
        pass

    @abstractmethod
    def find_by_id(self, account_id: int, for_update: bool = False) -> Optional[models.Account]:
        """
        고유 ID로 특정 계정을 조회합니다.

        Args:
            account_id: 조회할 계정의 ID.
            for_update: True이면 트랜잭션이 끝날 때까지 해당 행에 쓰기 잠금을 겁니다.
        """
        pass

    @abstractmethod
    def find_by_username(self, username: str) -> Optional[models.Account]:
        """사용자 이름으로 계정을 조회합니다. (대소문자 무시)"""
        pass

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[models.Account]:
        """기본(primary) 이메일로 계정을 조회합니다. (대소문자 무시)"""
        pass

    @abstractmethod
    def find_by_secondary_email(self, email: str) -> Optional[models.Account]:
        """보조 이메일 레코드를 통해 계정을 조회합니다."""
        pass

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[models.Account]:
        """표시 이름(name)이 정확히 일치하는 첫 번째 계정을 조회합니다."""
        pass

    @abstractmethod
    def find_by_login(self, login: str) -> Optional[models.Account]:
        """사용자 이름 또는 기본 이메일이 login과 일치하는 계정을 조회합니다. (대소문자 무시)"""
        pass

    @abstractmethod
    def find_by_username_or_id(self, value: Union[str, int]) -> Optional[models.Account]:
        """사용자 이름이 정확히 일치하거나 ID가 일치하는 계정을 조회합니다."""
        pass

    @abstractmethod
    def search(self, query: str) -> List[models.Account]:
        """이름, 이메일, 사용자 이름 중 하나라도 query를 포함하는 계정 목록을 조회합니다. (대소문자 무시)"""
        pass

    @abstractmethod
    def list_by_filter(self, account_filter: AccountFilter) -> List[models.Account]:
        """지정한 필터(관리자, 차단, 프로젝트 없음, 활성)에 해당하는 계정 목록을 조회합니다."""
        pass

    @abstractmethod
    def username_taken(self, username: str, excluding_account_id: Optional[int] = None) -> bool:
        """다른 계정이 같은 사용자 이름(대소문자 무시)을 사용 중인지 확인합니다."""
        pass

    @abstractmethod
    def email_taken(self, email: str, excluding_account_id: Optional[int] = None) -> bool:
        """다른 계정이 같은 이메일을 기본 이메일로 사용 중인지 확인합니다. (대소문자 무시)"""
        pass

    @abstractmethod
    def delete(self, account: models.Account) -> bool:
        """특정 계정 행을 삭제합니다. 딸린 엔티티는 호출자가 먼저 정리해야 합니다."""
        pass
