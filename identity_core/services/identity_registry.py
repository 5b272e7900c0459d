# identity_core/services/identity_registry.py
import re
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email

from identity_core.config import Settings
from identity_core.database import models
from identity_core.repositories.interfaces import IAccountRepository, IEmailRepository, INamespaceRepository
from identity_core.services.exceptions import GenerationExhaustedError, ValidationError

USERNAME_REGEX = re.compile(r"\A[a-zA-Z0-9_.][a-zA-Z0-9_\-.]*(?<!\.git)\Z")
USERNAME_REGEX_MESSAGE = (
    "can contain only letters, digits, '_', '-' and '.'. "
    "Cannot start with '-' or end in '.git'"
)
_DISALLOWED_USERNAME_CHARS = re.compile(r"[^a-zA-Z0-9_\-.]")


class IdentityRegistry:
    """
    사용자 이름, 네임스페이스 경로, 이메일의 시스템 전체 유일성을 검사합니다.

    검사만 수행하고 쓰기는 하지 않습니다. 실제 쓰기는 검사 직후 호출자의 같은
    트랜잭션 안에서 일어나야 하며, 저장소의 유일 인덱스가 최종 보루 역할을 합니다.
    """

    def __init__(
        self,
        account_repo: IAccountRepository,
        namespace_repo: INamespaceRepository,
        email_repo: IEmailRepository,
        settings: Settings,
    ):
        self.account_repo = account_repo
        self.namespace_repo = namespace_repo
        self.email_repo = email_repo
        self.settings = settings

    def check_username(self, candidate: Optional[str], excluding_account_id: Optional[int] = None) -> List[str]:
        """
        사용자 이름 후보를 검사하고 오류 메시지 목록을 반환합니다. 문제가 없으면 빈 목록입니다.

        다른 계정의 사용자 이름뿐 아니라 네임스페이스 경로 공간 전체(개인 + 그룹)와도 충돌을 검사합니다.

        Args:
            candidate: 검사할 사용자 이름.
            excluding_account_id: 이 계정이 이미 쓰고 있는 값은 충돌로 보지 않습니다. (같은 값으로의 이름 변경 허용)
        """
        if not candidate or not candidate.strip():
            return ["can't be blank"]

        errors = []
        if not USERNAME_REGEX.match(candidate):
            errors.append(USERNAME_REGEX_MESSAGE)
        if self.is_reserved(candidate):
            errors.append("is reserved")
        if self.account_repo.username_taken(candidate, excluding_account_id):
            errors.append("has already been taken")

        namespace = self.namespace_repo.find_by_path(candidate)
        if namespace and not self._owned_by(namespace, excluding_account_id):
            errors.append("already exists")
        return errors

    def reserve_username(self, candidate: Optional[str], excluding_account_id: Optional[int] = None) -> None:
        """
        check_username과 같지만 문제가 있으면 ValidationError를 발생시킵니다.

        Raises:
            ValidationError: 형식 오류, 예약어, 충돌이 하나라도 있을 때.
        """
        errors = self.check_username(candidate, excluding_account_id)
        if errors:
            raise ValidationError({"username": errors})

    def check_email(self, candidate: Optional[str], excluding_account_id: Optional[int] = None) -> List[str]:
        """
        기본 이메일 후보를 검사합니다.
        다른 계정의 기본 이메일, 그리고 시스템의 모든 보조 이메일과 겹치면 안 됩니다.
        """
        if not candidate or not candidate.strip():
            return ["can't be blank"]

        errors = []
        if not self.is_valid_email(candidate):
            errors.append("is invalid")
        if self.account_repo.email_taken(candidate, excluding_account_id):
            errors.append("has already been taken")
        elif self.email_repo.find_by_email(candidate):
            errors.append("has already been taken")
        return errors

    def reserve_email(self, candidate: Optional[str], excluding_account_id: Optional[int] = None) -> None:
        errors = self.check_email(candidate, excluding_account_id)
        if errors:
            raise ValidationError({"email": errors})

    def check_secondary_email(self, candidate: Optional[str]) -> List[str]:
        """보조 이메일 후보를 검사합니다. 어떤 계정의 기본 이메일이나 기존 보조 이메일과도 겹치면 안 됩니다."""
        if not candidate or not candidate.strip():
            return ["can't be blank"]

        errors = []
        if not self.is_valid_email(candidate):
            errors.append("is invalid")
        if self.account_repo.email_taken(candidate) or self.email_repo.find_by_email(candidate):
            errors.append("has already been taken")
        return errors

    def check_group_path(self, path: Optional[str], excluding_namespace_id: Optional[int] = None) -> List[str]:
        """그룹 경로 후보를 검사합니다. 그룹과 개인 네임스페이스는 하나의 경로 공간을 공유합니다."""
        if not path or not path.strip():
            return ["can't be blank"]

        errors = []
        if not USERNAME_REGEX.match(path):
            errors.append(USERNAME_REGEX_MESSAGE)
        if self.is_reserved(path):
            errors.append("is reserved")
        if self.namespace_repo.path_taken(path, excluding_namespace_id):
            errors.append("has already been taken")
        return errors

    def is_reserved(self, candidate: str) -> bool:
        return candidate.lower() in self.settings.reserved_paths

    @staticmethod
    def is_valid_email(candidate: str) -> bool:
        try:
            validate_email(candidate, check_deliverability=False)
        except EmailNotValidError:
            return False
        return True

    def sanitize_username(self, candidate: str) -> str:
        """
        외부 식별자(예: 이메일 주소)로부터 사용 가능한 사용자 이름을 만듭니다.

        1. 첫 '@'부터 끝까지 제거
        2. 끝의 '.git' 제거
        3. 맨 앞의 '-' 하나 제거
        4. [A-Za-z0-9_.-] 이외의 문자 제거
        5. 기존 로그인/네임스페이스 경로와 겹치면 base1, base2, ... 순서로 첫 번째 빈 이름을 사용

        Raises:
            GenerationExhaustedError: 정리 결과가 비었거나, 접미사 반복 한도를 넘었을 때.
        """
        username = (candidate or "").split("@", 1)[0]
        if username.endswith(".git"):
            username = username[:-len(".git")]
        if username.startswith("-"):
            username = username[1:]
        username = _DISALLOWED_USERNAME_CHARS.sub("", username)
        if not username:
            raise GenerationExhaustedError(f"Cannot derive a username from '{candidate}'.")

        base = username
        counter = 0
        while self._login_or_path_taken(username):
            counter += 1
            if counter > self.settings.username_generation_limit:
                raise GenerationExhaustedError(
                    f"No free username for '{base}' after {self.settings.username_generation_limit} attempts."
                )
            username = f"{base}{counter}"
        return username

    def _login_or_path_taken(self, username: str) -> bool:
        return (
            self.account_repo.find_by_login(username) is not None
            or self.namespace_repo.find_by_path(username) is not None
        )

    @staticmethod
    def _owned_by(namespace: models.Namespace, account_id: Optional[int]) -> bool:
        return (
            account_id is not None
            and namespace.type == "personal"
            and namespace.owner_id == account_id
        )
