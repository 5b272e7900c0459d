from abc import ABC, abstractmethod
from typing import List, Optional
from identity_core.database import models


class IEmailRepository(ABC):
    @abstractmethod
    def add(self, email_model: models.Email) -> models.Email:
        """보조 이메일을 현재 트랜잭션에 추가합니다."""
        pass

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[models.Email]:
        """주소로 보조 이메일 레코드를 조회합니다. (대소문자 무시)"""
        pass

    @abstractmethod
    def list_by_account(self, account_id: int) -> List[models.Email]:
        """계정이 소유한 모든 보조 이메일을 조회합니다."""
        pass

    @abstractmethod
    def delete(self, email_model: models.Email) -> bool:
        """보조 이메일 레코드 하나를 삭제합니다."""
        pass

    @abstractmethod
    def delete_by_account(self, account_id: int) -> int:
        """계정의 모든 보조 이메일을 삭제하고 삭제된 개수를 반환합니다."""
        pass
