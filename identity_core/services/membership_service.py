# identity_core/services/membership_service.py
import logging
from typing import Any, Dict, List, Optional

from identity_core.database import models
from identity_core.repositories.interfaces import (
    IAccountRepository, IMemberRepository, INamespaceRepository, IProjectRepository, ITransaction,
)
from identity_core.services.authorization import AuthorizationResolver, ResolutionCache
from identity_core.services.exceptions import (
    AccountNotFoundError, ErrorCollector, GroupNotFoundError, PermissionDeniedError,
    ProjectNotFoundError, QuotaExceededError,
)
from identity_core.services.identity_registry import IdentityRegistry
from identity_core.services.quota import QuotaEnforcer

logger = logging.getLogger(__name__)

AccessLevel = models.AccessLevel


class MembershipService:
    """그룹과 프로젝트의 생성/삭제, 그리고 그룹/프로젝트 멤버십 부여와 회수를 담당합니다."""

    def __init__(
        self,
        account_repo: IAccountRepository,
        namespace_repo: INamespaceRepository,
        project_repo: IProjectRepository,
        member_repo: IMemberRepository,
        transaction: ITransaction,
        registry: IdentityRegistry,
        quota: QuotaEnforcer,
        resolver: AuthorizationResolver,
    ):
        self.account_repo = account_repo
        self.namespace_repo = namespace_repo
        self.project_repo = project_repo
        self.member_repo = member_repo
        self.transaction = transaction
        self.registry = registry
        self.quota = quota
        self.resolver = resolver

    # ------------------------------------------------------------------
    # 그룹
    # ------------------------------------------------------------------

    def create_group(
        self, account_id: int, name: str, path: str, cache: Optional[ResolutionCache] = None
    ) -> models.Group:
        """
        새 그룹을 만들고 생성자를 Owner 멤버로 등록합니다.

        Raises:
            AccountNotFoundError: 생성자 계정을 찾을 수 없을 때.
            PermissionDeniedError: 계정에 그룹 생성 권한이 없을 때.
            ValidationError: 이름이 비었거나 경로가 유효하지 않거나 이미 사용 중일 때.
        """
        with self.transaction.begin():
            account = self._get_account(account_id)
            if not (account.can_create_group or account.is_admin):
                raise PermissionDeniedError(f"Account '{account.username}' cannot create groups.")

            errors = ErrorCollector()
            if not name or not name.strip():
                errors.add("name", ["can't be blank"])
            errors.add("path", self.registry.check_group_path(path))
            errors.raise_if_any()

            group = self.namespace_repo.add(models.Group(name=name, path=path))
            self.member_repo.add(models.GroupMember(account_id=account.id, group_id=group.id, access_level=AccessLevel.OWNER))

        self._invalidate(cache, account_id)
        logger.info("Group '%s' created by %s", path, account_id)
        return group

    def delete_group(self, group_id: int, cache: Optional[ResolutionCache] = None) -> bool:
        """
        그룹과 그룹이 소유한 프로젝트, 관련된 모든 멤버십을 삭제합니다.

        Raises:
            GroupNotFoundError: 해당 ID의 그룹을 찾을 수 없을 때.
        """
        with self.transaction.begin():
            group = self._get_group(group_id, for_update=True)
            affected = set(self.member_repo.account_ids_for_group(group.id))
            for project in self.project_repo.list_by_namespace(group.id):
                affected |= self.member_repo.account_ids_for_project(project.id)
                self.member_repo.delete_by_project(project.id)
                self.project_repo.delete(project)
            self.member_repo.delete_by_group(group.id)
            self.namespace_repo.delete(group)

        self._invalidate(cache, *affected)
        return True

    def add_group_member(
        self, group_id: int, account_id: int, access_level: AccessLevel, cache: Optional[ResolutionCache] = None
    ) -> models.GroupMember:
        """계정을 그룹 멤버로 추가합니다. 이미 멤버이면 접근 수준만 바꿉니다."""
        with self.transaction.begin():
            group = self._get_group(group_id)
            account = self._get_account(account_id)
            member = self.member_repo.find_group_member(account.id, group.id)
            if member is None:
                member = self.member_repo.add(
                    models.GroupMember(account_id=account.id, group_id=group.id, access_level=AccessLevel(access_level))
                )
            else:
                member.access_level = AccessLevel(access_level)

        self._invalidate(cache, account_id)
        return member

    def remove_group_member(self, group_id: int, account_id: int, cache: Optional[ResolutionCache] = None) -> bool:
        """그룹 멤버십을 회수합니다. 멤버가 아니었으면 False를 반환합니다."""
        with self.transaction.begin():
            group = self._get_group(group_id)
            member = self.member_repo.find_group_member(account_id, group.id)
            removed = self.member_repo.delete(member) if member else False

        self._invalidate(cache, account_id)
        return removed

    def list_group_members(self, group_id: int) -> List[Dict[str, Any]]:
        """
        그룹의 멤버와 각자의 접근 수준을 조회합니다.

        Returns:
            (예: [{'id': 1, 'username': 'alice', 'access_level': 'OWNER'}])
        """
        self._get_group(group_id)
        return [self._member_dict(m) for m in self.member_repo.list_for_group(group_id)]

    # ------------------------------------------------------------------
    # 프로젝트
    # ------------------------------------------------------------------

    def create_project(
        self,
        account_id: int,
        name: str,
        path: Optional[str] = None,
        namespace_id: Optional[int] = None,
        cache: Optional[ResolutionCache] = None,
    ) -> models.Project:
        """
        프로젝트를 만듭니다. namespace_id를 생략하면 계정의 개인 네임스페이스에 만듭니다.

        개인 네임스페이스에 만들 때는 프로젝트 한도를 확인하고, 그룹에 만들 때는
        계정이 그 그룹을 관리(Owner 또는 Master)할 수 있어야 합니다.

        Raises:
            AccountNotFoundError: 계정을 찾을 수 없을 때.
            GroupNotFoundError: 지정한 네임스페이스가 없을 때.
            QuotaExceededError: 개인 프로젝트 한도를 모두 사용했을 때.
            PermissionDeniedError: 관리할 수 없는 네임스페이스에 만들려고 할 때.
            ValidationError: 이름/경로가 비었거나 네임스페이스 안에서 경로가 겹칠 때.
        """
        path = path or name
        with self.transaction.begin():
            account = self._get_account(account_id, for_update=True)
            personal = self.namespace_repo.find_personal_by_owner(account.id)

            if namespace_id is None or (personal is not None and namespace_id == personal.id):
                if personal is None:
                    raise GroupNotFoundError(f"Account '{account.username}' has no personal namespace.")
                if not self.quota.can_create_project(account):
                    raise QuotaExceededError(
                        f"Account '{account.username}' reached its limit of {account.projects_limit} projects."
                    )
                namespace = personal
                affected = {account.id}
            else:
                namespace = self._get_group(namespace_id)
                if namespace.id not in self.resolver.resolve_manageable_namespaces(account.id):
                    raise PermissionDeniedError(
                        f"Account '{account.username}' cannot create projects in '{namespace.path}'."
                    )
                affected = self.member_repo.account_ids_for_group(namespace.id) | {account.id}

            errors = ErrorCollector()
            if not name or not name.strip():
                errors.add("name", ["can't be blank"])
            if not path or not path.strip():
                errors.add("path", ["can't be blank"])
            elif self.project_repo.find_by_path(namespace.id, path):
                errors.add("path", ["has already been taken"])
            errors.raise_if_any()

            project = self.project_repo.add(
                models.Project(name=name, path=path, namespace_id=namespace.id, creator_id=account.id)
            )

        self._invalidate(cache, *affected)
        return project

    def delete_project(self, project_id: int, cache: Optional[ResolutionCache] = None) -> bool:
        """
        프로젝트와 그 프로젝트의 직접 멤버십을 삭제합니다.

        Raises:
            ProjectNotFoundError: 해당 ID의 프로젝트를 찾을 수 없을 때.
        """
        with self.transaction.begin():
            project = self._get_project(project_id)
            affected = set(self.member_repo.account_ids_for_project(project.id))
            namespace = self.namespace_repo.find_by_id(project.namespace_id)
            if namespace is not None and namespace.is_group:
                affected |= self.member_repo.account_ids_for_group(namespace.id)
            elif namespace is not None:
                affected.add(namespace.owner_id)

            self.member_repo.delete_by_project(project.id)
            self.project_repo.delete(project)

        self._invalidate(cache, *affected)
        return True

    def add_project_member(
        self, project_id: int, account_id: int, access_level: AccessLevel, cache: Optional[ResolutionCache] = None
    ) -> models.ProjectMember:
        """계정에 프로젝트 직접 멤버십을 부여합니다. 이미 있으면 접근 수준만 바꿉니다."""
        with self.transaction.begin():
            project = self._get_project(project_id)
            account = self._get_account(account_id)
            member = self.member_repo.find_project_member(account.id, project.id)
            if member is None:
                member = self.member_repo.add(
                    models.ProjectMember(account_id=account.id, project_id=project.id, access_level=AccessLevel(access_level))
                )
            else:
                member.access_level = AccessLevel(access_level)

        self._invalidate(cache, account_id)
        return member

    def remove_project_member(self, project_id: int, account_id: int, cache: Optional[ResolutionCache] = None) -> bool:
        """프로젝트 직접 멤버십을 회수합니다. 그룹이나 개인 네임스페이스를 통한 접근은 그대로 남습니다."""
        with self.transaction.begin():
            project = self._get_project(project_id)
            member = self.member_repo.find_project_member(account_id, project.id)
            removed = self.member_repo.delete(member) if member else False

        self._invalidate(cache, account_id)
        return removed

    def list_project_members(self, project_id: int) -> List[Dict[str, Any]]:
        """프로젝트에 직접 멤버십을 가진 계정과 접근 수준을 조회합니다."""
        self._get_project(project_id)
        return [self._member_dict(m) for m in self.member_repo.list_for_project(project_id)]

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------

    def _get_account(self, account_id: int, for_update: bool = False) -> models.Account:
        account = self.account_repo.find_by_id(account_id, for_update=for_update)
        if not account:
            raise AccountNotFoundError(f"Account with id '{account_id}' not found.")
        return account

    def _get_group(self, group_id: int, for_update: bool = False) -> models.Group:
        group = self.namespace_repo.find_group_by_id(group_id, for_update=for_update)
        if not group:
            raise GroupNotFoundError(f"Group with id '{group_id}' not found.")
        return group

    def _get_project(self, project_id: int) -> models.Project:
        project = self.project_repo.find_by_id(project_id)
        if not project:
            raise ProjectNotFoundError(f"Project with id '{project_id}' not found.")
        return project

    @staticmethod
    def _member_dict(member: models.Member) -> Dict[str, Any]:
        return {
            "id": member.account.id,
            "username": member.account.username,
            "access_level": member.level.name,
        }

    @staticmethod
    def _invalidate(cache: Optional[ResolutionCache], *account_ids: int):
        if cache is not None:
            cache.invalidate(*(a for a in account_ids if a is not None))
