# identity_core/services/authorization.py
import logging
from typing import Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Set, Tuple

from identity_core.database import models
from identity_core.repositories.interfaces import IMemberRepository, INamespaceRepository, IProjectRepository

logger = logging.getLogger(__name__)

AccessLevel = models.AccessLevel


class ResolutionCache:
    """
    요청 단위로 계산 결과를 저장하는 캐시입니다.

    호출자가 만들어 resolver와 변경 작업(MembershipService 등)에 함께 넘겨야 합니다.
    멤버십/네임스페이스/프로젝트가 바뀌면 영향을 받는 계정의 항목이 무효화됩니다.
    """

    def __init__(self):
        self._entries: Dict[Tuple[str, int], FrozenSet[int]] = {}

    def get_or_compute(self, kind: str, account_id: int, compute: Callable[[], Iterable[int]]) -> Set[int]:
        key = (kind, account_id)
        if key not in self._entries:
            self._entries[key] = frozenset(compute())
        return set(self._entries[key])

    def invalidate(self, *account_ids: int) -> None:
        targets = set(account_ids)
        for key in [k for k in self._entries if k[1] in targets]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class AuthorizationResolver:
    """
    계정이 접근할 수 있는 프로젝트, 그룹, 네임스페이스 집합을 계산합니다.

    세 가지 독립된 접근 경로(개인 네임스페이스, 그룹 멤버십, 프로젝트 직접 멤버십)의
    합집합으로 계산하며, '거부'라는 결과는 없고 (비어 있을 수 있는) 집합만 반환합니다.
    계정의 차단 여부는 보지 않습니다. 결과를 따를지는 호출자가 생명주기 상태를 보고 결정합니다.
    """

    def __init__(
        self,
        member_repo: IMemberRepository,
        project_repo: IProjectRepository,
        namespace_repo: INamespaceRepository,
    ):
        self.member_repo = member_repo
        self.project_repo = project_repo
        self.namespace_repo = namespace_repo

    def resolve_authorized_projects(self, account_id: int, cache: Optional[ResolutionCache] = None) -> Set[int]:
        """
        계정이 접근 가능한 프로젝트 ID 집합을 반환합니다.

        다음 세 집합의 합집합(중복 제거)입니다.
          (a) 개인 네임스페이스의 모든 프로젝트
          (b) 멤버로 속한 모든 그룹의 프로젝트 (접근 수준 무관)
          (c) 직접 멤버십을 가진 모든 프로젝트
        """
        def compute():
            personal = self.personal_project_ids(account_id)
            group_projects = self.project_repo.ids_in_namespaces(self.member_repo.group_ids_for_account(account_id))
            direct = self.member_repo.project_ids_for_account(account_id)
            return personal | group_projects | direct

        return self._resolve(cache, "authorized_projects", account_id, compute)

    def resolve_authorized_groups(self, account_id: int, cache: Optional[ResolutionCache] = None) -> Set[int]:
        """
        계정이 볼 수 있는 그룹 ID 집합을 반환합니다.

        그룹 멤버십으로 속한 그룹에 더해, 접근 가능한 프로젝트를 소유한 그룹도 포함됩니다.
        즉 그룹 멤버십 없이 프로젝트 멤버십만 있어도 그 프로젝트의 그룹이 보입니다.
        """
        def compute():
            groups = self.member_repo.group_ids_for_account(account_id)
            authorized_projects = self.resolve_authorized_projects(account_id, cache)
            return groups | self.project_repo.group_ids_owning(authorized_projects)

        return self._resolve(cache, "authorized_groups", account_id, compute)

    def resolve_owned_projects(self, account_id: int, cache: Optional[ResolutionCache] = None) -> Set[int]:
        """개인 네임스페이스 또는 Owner 수준으로 속한 그룹에 있는 프로젝트 ID 집합."""
        def compute():
            namespace_ids = self.owned_group_ids(account_id)
            personal = self.personal_namespace_id(account_id)
            if personal is not None:
                namespace_ids.add(personal)
            return self.project_repo.ids_in_namespaces(namespace_ids)

        return self._resolve(cache, "owned_projects", account_id, compute)

    def resolve_manageable_namespaces(self, account_id: int, cache: Optional[ResolutionCache] = None) -> Set[int]:
        """개인 네임스페이스 + Owner 그룹 + Master 그룹의 네임스페이스 ID 집합."""
        def compute():
            namespaces = self.member_repo.group_ids_for_account(
                account_id, access_levels=[AccessLevel.OWNER, AccessLevel.MASTER]
            )
            personal = self.personal_namespace_id(account_id)
            if personal is not None:
                namespaces.add(personal)
            return namespaces

        return self._resolve(cache, "manageable_namespaces", account_id, compute)

    def personal_namespace_id(self, account_id: int) -> Optional[int]:
        namespace = self.namespace_repo.find_personal_by_owner(account_id)
        return namespace.id if namespace else None

    def personal_project_ids(self, account_id: int) -> Set[int]:
        namespace_id = self.personal_namespace_id(account_id)
        if namespace_id is None:
            return set()
        return self.project_repo.ids_in_namespaces([namespace_id])

    def owned_group_ids(self, account_id: int) -> Set[int]:
        return self.member_repo.group_ids_for_account(account_id, access_levels=[AccessLevel.OWNER])

    def solo_owned_groups(self, account_id: int) -> List[int]:
        """이 계정이 유일한 Owner인 그룹 ID 목록. 계정 삭제 전에 확인하는 용도입니다."""
        return sorted(
            group_id for group_id in self.owned_group_ids(account_id)
            if self.member_repo.account_ids_for_group(group_id, access_levels=[AccessLevel.OWNER]) == {account_id}
        )

    def several_namespaces(self, account_id: int) -> bool:
        """개인 네임스페이스 외에 관리할 수 있는 그룹이 있는지 여부."""
        return bool(self.member_repo.group_ids_for_account(
            account_id, access_levels=[AccessLevel.OWNER, AccessLevel.MASTER]
        ))

    def can_select_namespace(self, account: models.Account) -> bool:
        return account.is_admin or self.several_namespaces(account.id)

    def can_leave_project(self, account_id: int, project_id: int) -> bool:
        """개인 프로젝트가 아니고 직접 멤버십이 있는 프로젝트만 떠날 수 있습니다."""
        project = self.project_repo.find_by_id(project_id)
        if project is None:
            return False
        if project.namespace_id == self.personal_namespace_id(account_id):
            return False
        return self.member_repo.find_project_member(account_id, project_id) is not None

    @staticmethod
    def _resolve(
        cache: Optional[ResolutionCache], kind: str, account_id: int, compute: Callable[[], Iterable[int]]
    ) -> Set[int]:
        if cache is None:
            return set(compute())
        return cache.get_or_compute(kind, account_id, compute)
