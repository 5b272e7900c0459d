# identity_core/services/exceptions.py
from typing import Dict, Iterable, List, Optional


# --- Validation Exceptions ---
class ValidationError(Exception):
    """
    하나 이상의 필드 검증에 실패했을 때.
    첫 번째 오류에서 멈추지 않고 모든 오류를 필드 -> 메시지 목록 형태로 모아서 전달합니다.
    """
    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = {field: list(messages) for field, messages in errors.items() if messages}
        super().__init__(self.full_messages_text())

    def full_messages(self) -> List[str]:
        return [f"{field} {message}" for field, messages in self.errors.items() for message in messages]

    def full_messages_text(self) -> str:
        return ", ".join(self.full_messages())


class CollisionError(ValidationError):
    """애플리케이션 검사를 통과했지만 저장소의 유일성 제약에서 충돌이 감지되었을 때"""
    def __init__(self, errors: Optional[Dict[str, List[str]]] = None, constraint: Optional[str] = None):
        self.constraint = constraint
        super().__init__(errors or {"base": ["has already been taken"]})


class GenerationExhaustedError(Exception):
    """사용자 이름 자동 생성이 반복 한도를 넘어섰을 때"""
    pass


# --- General Exceptions ---
class AccountNotFoundError(Exception):
    """계정을 찾을 수 없을 때"""
    pass

class GroupNotFoundError(Exception):
    """그룹을 찾을 수 없을 때"""
    pass

class ProjectNotFoundError(Exception):
    """프로젝트를 찾을 수 없을 때"""
    pass

class EmailNotFoundError(Exception):
    """보조 이메일을 찾을 수 없을 때"""
    pass

# --- Policy Exceptions ---
class QuotaExceededError(Exception):
    """개인 프로젝트 할당량을 초과하여 프로젝트를 만들 수 없을 때"""
    pass

class PermissionDeniedError(Exception):
    """계정 정책 플래그가 요청한 작업을 허용하지 않을 때"""
    pass


class ErrorCollector:
    """여러 검증 단계의 오류 메시지를 필드별로 모읍니다."""
    def __init__(self):
        self.errors: Dict[str, List[str]] = {}

    def add(self, field: str, messages: Iterable[str]):
        for message in messages:
            self.errors.setdefault(field, []).append(message)

    def raise_if_any(self):
        if self.errors:
            raise ValidationError(self.errors)
