# identity_core/services/collaborators.py
import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from identity_core.database import models

logger = logging.getLogger(__name__)


class IPasswordHasher(ABC):
    @abstractmethod
    def hash(self, password: str) -> str:
        """비밀번호를 저장용 마커(해시)로 변환합니다."""
        pass


class Sha256PasswordHasher(IPasswordHasher):
    """기존 로그인 흐름과 같은 SHA-256 해시를 사용하는 기본 구현."""
    def hash(self, password: str) -> str:
        return hashlib.sha256(password.encode("utf-8")).hexdigest()


class IHookDispatcher(ABC):
    @abstractmethod
    def execute_hooks_for(self, payload: Dict[str, Any], event: str) -> None:
        """
        계정 생성/삭제 이벤트를 외부 시스템 훅으로 전달합니다.

        Args:
            payload: hook_attributes()가 만든 {name, username, avatar_url} 딕셔너리.
            event: 'create' 또는 'destroy'.
        """
        pass


class INotificationService(ABC):
    @abstractmethod
    def new_account(self, account: models.Account, reset_token: Optional[str]) -> None:
        """다른 계정이 대신 만들어 준 계정에게 환영 알림을 보냅니다."""
        pass


class LoggingHookDispatcher(IHookDispatcher):
    """훅 전송 시스템이 연결되지 않았을 때 쓰는 기본 구현. 로그만 남깁니다."""
    def execute_hooks_for(self, payload: Dict[str, Any], event: str) -> None:
        logger.debug("System hook '%s' for %s", event, payload.get("username"))


class LoggingNotificationService(INotificationService):
    def new_account(self, account: models.Account, reset_token: Optional[str]) -> None:
        logger.debug("New account notification for %s", account.username)
