# identity_core/services/account_service.py
import hashlib
import logging
import secrets
from typing import Any, Dict, List, Optional, Union

from identity_core.config import Settings
from identity_core.database import models
from identity_core.repositories.interfaces import (
    IAccountRepository, IEmailRepository, IMemberRepository,
    INamespaceRepository, IProjectRepository, ITransaction,
)
from identity_core.services.authorization import ResolutionCache
from identity_core.services.collaborators import (
    IHookDispatcher, INotificationService, IPasswordHasher,
    LoggingHookDispatcher, LoggingNotificationService, Sha256PasswordHasher,
)
from identity_core.services.exceptions import (
    AccountNotFoundError, EmailNotFoundError, ErrorCollector, ValidationError,
)
from identity_core.services.filters import AccountFilter
from identity_core.services.identity_registry import IdentityRegistry
from identity_core.services.lifecycle import LifecycleEvent, next_state
from identity_core.services.notification_email import NotificationEmailBinder
from identity_core.services.quota import QuotaEnforcer

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("identity_core.audit")

# update_account로 바꿀 수 있는 속성
UPDATABLE_ATTRIBUTES = (
    "name", "username", "email", "notification_email", "projects_limit",
    "admin", "can_create_group", "can_create_team", "theme_id", "avatar",
)


class AccountService:
    """계정 생성, 변경, 이름 변경, 생명주기 전이, 삭제 및 조회 기능을 제공합니다."""

    def __init__(
        self,
        account_repo: IAccountRepository,
        email_repo: IEmailRepository,
        namespace_repo: INamespaceRepository,
        project_repo: IProjectRepository,
        member_repo: IMemberRepository,
        transaction: ITransaction,
        registry: IdentityRegistry,
        quota: QuotaEnforcer,
        settings: Settings,
        password_hasher: Optional[IPasswordHasher] = None,
        hook_dispatcher: Optional[IHookDispatcher] = None,
        notification_service: Optional[INotificationService] = None,
    ):
        """
        AccountService를 초기화합니다.

        Args:
            account_repo, email_repo, namespace_repo, project_repo, member_repo: 각 엔티티의 리포지토리.
            transaction: 변경 작업 하나를 하나의 원자적 트랜잭션으로 묶는 객체.
            registry: 사용자 이름/이메일/경로 유일성 검사기.
            quota: 프로젝트 한도 관리자 (기본 한도 지정에 사용).
            settings: 기본 권한, 기본 테마 등 설정 값.
            password_hasher, hook_dispatcher, notification_service: 외부 협력 객체. 생략하면 기본 구현을 사용합니다.
        """
        self.account_repo = account_repo
        self.email_repo = email_repo
        self.namespace_repo = namespace_repo
        self.project_repo = project_repo
        self.member_repo = member_repo
        self.transaction = transaction
        self.registry = registry
        self.quota = quota
        self.settings = settings
        self.email_binder = NotificationEmailBinder(email_repo)
        self.password_hasher = password_hasher or Sha256PasswordHasher()
        self.hook_dispatcher = hook_dispatcher or LoggingHookDispatcher()
        self.notification_service = notification_service or LoggingNotificationService()

    # ------------------------------------------------------------------
    # 생성
    # ------------------------------------------------------------------

    def create_account(
        self,
        name: str,
        email: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        force_random_password: bool = False,
        projects_limit: Optional[int] = None,
        admin: bool = False,
        can_create_group: Optional[bool] = None,
        can_create_team: Optional[bool] = None,
        created_by_id: Optional[int] = None,
    ) -> models.Account:
        """
        새 계정을 만들고 개인 네임스페이스를 함께 생성합니다.

        username을 생략하면 이메일 주소에서 사용자 이름을 만들어 냅니다.
        비밀번호가 없거나 force_random_password가 True이면 임의의 비밀번호를 생성합니다.

        Returns:
            생성된 계정 모델.

        Raises:
            ValidationError: 하나 이상의 필드가 유효하지 않을 때. (모든 오류를 모아서 전달)
            CollisionError: 검사 이후 동시에 같은 값이 저장되어 유일 인덱스에서 충돌했을 때.
            GenerationExhaustedError: 사용자 이름을 자동으로 만들 수 없을 때.
        """
        reset_token = None
        with self.transaction.begin():
            errors = ErrorCollector()
            if not name or not name.strip():
                errors.add("name", ["can't be blank"])
            email_errors = self.registry.check_email(email)
            errors.add("email", email_errors)

            if not username:
                # 이메일이 유효할 때만 사용자 이름을 만들어 냅니다.
                if email_errors:
                    errors.raise_if_any()
                username = self.registry.sanitize_username(email)

            password_automatically_set = False
            if force_random_password or not password:
                password = secrets.token_urlsafe(6)[:8]
                password_automatically_set = True

            account = models.Account(
                name=name,
                username=username,
                email=email,
                password_hash=self.password_hasher.hash(password),
                password_automatically_set=password_automatically_set,
                state=models.AccountState.ACTIVE,
                admin=admin,
                can_create_group=self.settings.default_can_create_group if can_create_group is None else can_create_group,
                can_create_team=self.settings.default_can_create_team if can_create_team is None else can_create_team,
                theme_id=self.settings.default_theme_id,
                created_by_id=created_by_id,
            )
            self.quota.apply_default_limit(account, projects_limit)
            self.email_binder.bind_notification_email(account)

            errors.add("username", self.registry.check_username(username))
            errors.add("projects_limit", self.quota.check_projects_limit(account.projects_limit))
            errors.raise_if_any()

            self.account_repo.add(account)
            self.ensure_namespace_correct(account)
            if created_by_id:
                reset_token = secrets.token_urlsafe(20)

        audit_logger.info('Account "%s" (%s) was created', account.name, account.email)
        if created_by_id:
            self._notify_new_account(account, reset_token)
        self._execute_hooks(account, "create")
        return account

    def ensure_namespace_correct(self, account: models.Account) -> models.PersonalNamespace:
        """
        계정의 개인 네임스페이스가 존재하고 path/name이 사용자 이름과 같도록 보장합니다.
        없으면 만들고, 다르면 고칩니다. 호출자의 트랜잭션 안에서 실행되어야 합니다.
        """
        namespace = self.namespace_repo.find_personal_by_owner(account.id, for_update=True)
        if namespace is None:
            namespace = models.PersonalNamespace(path=account.username, name=account.username, owner_id=account.id)
            self.namespace_repo.add(namespace)
            logger.debug("Created personal namespace '%s' for account %s", namespace.path, account.id)
        elif namespace.path != account.username or namespace.name != account.username:
            namespace.path = account.username
            namespace.name = account.username
        return namespace

    # ------------------------------------------------------------------
    # 변경
    # ------------------------------------------------------------------

    def update_account(self, account_id: int, **attrs) -> models.Account:
        """
        계정 속성을 변경합니다. 모든 검증을 먼저 수행하고, 오류가 하나라도 있으면 아무것도 바꾸지 않습니다.

        - username 변경 시 개인 네임스페이스의 path/name도 같은 트랜잭션에서 바뀝니다.
        - email 변경 시 알림 이메일이 더 이상 소유한 주소가 아니면 새 기본 이메일로 되돌립니다.
        - notification_email을 직접 지정하면 소유한 주소인지 검사하고, 아니면 오류를 냅니다.

        Raises:
            AccountNotFoundError: 해당 ID의 계정을 찾을 수 없을 때.
            ValidationError: 하나 이상의 속성이 유효하지 않을 때.
        """
        unknown = set(attrs) - set(UPDATABLE_ATTRIBUTES)
        if unknown:
            raise ValueError(f"Unknown account attributes: {', '.join(sorted(unknown))}")

        with self.transaction.begin():
            account = self._get_account(account_id, for_update=True)
            errors = ErrorCollector()

            if "name" in attrs and (not attrs["name"] or not str(attrs["name"]).strip()):
                errors.add("name", ["can't be blank"])

            username_changed = "username" in attrs and attrs["username"] != account.username
            if username_changed:
                errors.add("username", self.registry.check_username(attrs["username"], account.id))

            new_email = attrs.get("email", account.email)
            email_changed = new_email != account.email
            if email_changed:
                errors.add("email", self.registry.check_email(new_email, account.id))

            # 직접 지정한 알림 이메일은 변경 후의 소유 이메일 기준으로 항상 검사합니다.
            if "notification_email" in attrs:
                errors.add(
                    "notification_email",
                    self.email_binder.check_notification_email(account, attrs["notification_email"], new_email),
                )

            if "projects_limit" in attrs:
                errors.add("projects_limit", self.quota.check_projects_limit(attrs["projects_limit"]))

            errors.raise_if_any()

            for key, value in attrs.items():
                setattr(account, key, value)
            if email_changed and "notification_email" not in attrs:
                self.email_binder.bind_notification_email(account, new_email)
            if username_changed:
                self.ensure_namespace_correct(account)
        return account

    def rename_account(self, account_id: int, username: str) -> models.Account:
        """사용자 이름을 바꾸고 개인 네임스페이스의 경로를 함께 옮깁니다."""
        return self.update_account(account_id, username=username)

    def change_email(self, account_id: int, email: str) -> models.Account:
        return self.update_account(account_id, email=email)

    def set_notification_email(self, account_id: int, notification_email: str) -> models.Account:
        return self.update_account(account_id, notification_email=notification_email)

    def set_projects_limit(self, account_id: int, projects_limit: int) -> models.Account:
        return self.update_account(account_id, projects_limit=projects_limit)

    def add_secondary_email(self, account_id: int, email: str) -> models.Email:
        """
        계정에 보조 이메일을 추가합니다.

        Raises:
            AccountNotFoundError: 해당 ID의 계정을 찾을 수 없을 때.
            ValidationError: 주소가 비었거나, 형식이 틀렸거나, 이미 사용 중일 때.
        """
        with self.transaction.begin():
            account = self._get_account(account_id, for_update=True)
            errors = self.registry.check_secondary_email(email)
            if errors:
                raise ValidationError({"email": errors})
            created = self.email_repo.add(models.Email(account_id=account.id, email=email))
        return created

    def remove_secondary_email(self, account_id: int, email: str) -> models.Account:
        """
        보조 이메일을 제거합니다. 제거된 주소가 알림 이메일이었다면 기본 이메일로 되돌립니다.

        Raises:
            AccountNotFoundError: 해당 ID의 계정을 찾을 수 없을 때.
            EmailNotFoundError: 계정이 소유한 보조 이메일이 아닐 때.
        """
        with self.transaction.begin():
            account = self._get_account(account_id, for_update=True)
            record = self.email_repo.find_by_email(email)
            if record is None or record.account_id != account.id:
                raise EmailNotFoundError(f"Email '{email}' not found for account '{account_id}'.")
            self.email_repo.delete(record)
            self.email_binder.bind_notification_email(account)
        return account

    # ------------------------------------------------------------------
    # 생명주기
    # ------------------------------------------------------------------

    def block(self, account_id: int) -> models.Account:
        """계정을 차단합니다. 이미 차단된 계정이면 아무것도 하지 않습니다."""
        return self._transition(account_id, LifecycleEvent.BLOCK)

    def activate(self, account_id: int) -> models.Account:
        """차단된 계정을 활성화합니다. 이미 활성 상태이면 아무것도 하지 않습니다."""
        return self._transition(account_id, LifecycleEvent.ACTIVATE)

    def _transition(self, account_id: int, event: LifecycleEvent) -> models.Account:
        with self.transaction.begin():
            account = self._get_account(account_id, for_update=True)
            previous = account.state
            account.state = next_state(previous, event)
        if account.state != previous:
            audit_logger.info('Account "%s" (%s) was %s', account.name, account.email, account.state.value)
        return account

    # ------------------------------------------------------------------
    # 삭제
    # ------------------------------------------------------------------

    def delete_account(self, account_id: int, cache: Optional[ResolutionCache] = None) -> bool:
        """
        계정을 삭제합니다. 하나의 트랜잭션 안에서 다음 순서로 딸린 엔티티를 먼저 지웁니다.
        멤버십 -> 보조 이메일 -> 개인 네임스페이스의 프로젝트(와 그 멤버십) -> 개인 네임스페이스 -> 계정

        Raises:
            AccountNotFoundError: 해당 ID의 계정을 찾을 수 없을 때.
        """
        affected = {account_id}
        with self.transaction.begin():
            account = self._get_account(account_id, for_update=True)
            payload = self.hook_attributes(account)
            name, email = account.name, account.email

            self.member_repo.delete_by_account(account.id)
            self.email_repo.delete_by_account(account.id)

            namespace = self.namespace_repo.find_personal_by_owner(account.id, for_update=True)
            if namespace is not None:
                for project in self.project_repo.list_by_namespace(namespace.id):
                    affected |= self.member_repo.account_ids_for_project(project.id)
                    self.member_repo.delete_by_project(project.id)
                    self.project_repo.delete(project)
                self.namespace_repo.delete(namespace)

            self.account_repo.delete(account)

        if cache is not None:
            cache.invalidate(*affected)
        audit_logger.info('Account "%s" (%s) was removed', name, email)
        self._dispatch_hooks(payload, "destroy")
        return True

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def get_account(self, account_id: int) -> models.Account:
        """
        ID로 계정을 조회합니다.

        Raises:
            AccountNotFoundError: 해당 ID의 계정을 찾을 수 없을 때.
        """
        return self._get_account(account_id)

    def find_by_login(self, login: Optional[str]) -> Optional[models.Account]:
        """사용자 이름 또는 이메일(대소문자 무시)로 계정을 찾습니다. 없으면 None."""
        if not login:
            return None
        return self.account_repo.find_by_login(login)

    def find_for_commit_author(self, email: Optional[str], name: Optional[str]) -> Optional[models.Account]:
        """
        외부 데이터(이메일/이름 텍스트)로부터 작성자 계정을 찾습니다.
        기본 이메일 -> 보조 이메일 -> 표시 이름 순서로 처음 일치한 계정을 반환합니다.
        """
        if email:
            account = self.account_repo.find_by_email(email) or self.account_repo.find_by_secondary_email(email)
            if account:
                return account
        if name:
            return self.account_repo.find_by_name(name)
        return None

    def find_by_username_or_id(self, value: Union[str, int]) -> Optional[models.Account]:
        return self.account_repo.find_by_username_or_id(value)

    def search_by_text(self, query: str) -> List[models.Account]:
        """이름, 이메일, 사용자 이름에 query가 포함된(대소문자 무시) 계정 목록."""
        return self.account_repo.search(query or "")

    def filter_accounts(self, account_filter: Union[AccountFilter, str, None]) -> List[models.Account]:
        if not isinstance(account_filter, AccountFilter):
            account_filter = AccountFilter.from_name(account_filter)
        return self.account_repo.list_by_filter(account_filter)

    def all_emails(self, account: models.Account) -> List[str]:
        return self.email_binder.owned_emails(account)

    def avatar_url(self, account: models.Account, size: Optional[int] = None) -> str:
        """업로드된 아바타가 있으면 그 URL, 없으면 이메일 기반 Gravatar URL을 반환합니다."""
        if account.avatar:
            if account.avatar.startswith(("http://", "https://")):
                return account.avatar
            return self.settings.base_url.rstrip("/") + "/" + account.avatar.lstrip("/")
        email_hash = hashlib.md5((account.email or "").strip().lower().encode("utf-8")).hexdigest()
        return (
            self.settings.gravatar_url
            .replace("%{hash}", email_hash)
            .replace("%{size}", str(size or 40))
        )

    def hook_attributes(self, account: models.Account) -> Dict[str, Any]:
        """외부 훅 소비자가 의존하는 고정 형태의 페이로드. 키를 바꾸면 하위 호환성이 깨집니다."""
        return {
            "name": account.name,
            "username": account.username,
            "avatar_url": self.avatar_url(account),
        }

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------

    def _get_account(self, account_id: int, for_update: bool = False) -> models.Account:
        account = self.account_repo.find_by_id(account_id, for_update=for_update)
        if not account:
            raise AccountNotFoundError(f"Account with id '{account_id}' not found.")
        return account

    def _execute_hooks(self, account: models.Account, event: str):
        self._dispatch_hooks(self.hook_attributes(account), event)

    def _dispatch_hooks(self, payload: Dict[str, Any], event: str):
        # 이미 커밋된 변경은 훅 실패로 되돌리지 않습니다.
        try:
            self.hook_dispatcher.execute_hooks_for(payload, event)
        except Exception:
            logger.exception("System hook '%s' failed for %s", event, payload.get("username"))

    def _notify_new_account(self, account: models.Account, reset_token: Optional[str]):
        try:
            self.notification_service.new_account(account, reset_token)
        except Exception:
            logger.exception("New account notification failed for %s", account.username)
