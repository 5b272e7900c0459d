# identity_core/services/quota.py
from typing import List, Optional

from identity_core.config import Settings
from identity_core.database import models
from identity_core.repositories.interfaces import INamespaceRepository, IProjectRepository


class QuotaEnforcer:
    """
    계정별 개인 프로젝트 생성 한도를 관리합니다.
    그룹이나 직접 멤버십으로 접근하는 프로젝트는 한도에 포함되지 않습니다.
    """

    def __init__(self, project_repo: IProjectRepository, namespace_repo: INamespaceRepository, settings: Settings):
        self.project_repo = project_repo
        self.namespace_repo = namespace_repo
        self.settings = settings

    def personal_project_count(self, account: models.Account) -> int:
        if account.id is None:
            return 0
        namespace = self.namespace_repo.find_personal_by_owner(account.id)
        if namespace is None:
            return 0
        return self.project_repo.count_by_namespace(namespace.id)

    def projects_limit_left(self, account: models.Account) -> int:
        return account.projects_limit - self.personal_project_count(account)

    def can_create_project(self, account: models.Account) -> bool:
        """개인 네임스페이스에 프로젝트를 하나 더 만들 수 있는지 여부."""
        return self.projects_limit_left(account) > 0

    def projects_limit_percent(self, account: models.Account) -> float:
        """
        한도 대비 사용 비율(%)을 반환합니다.

        한도가 0이면 표시용으로 100을 반환합니다. can_create_project는 같은 경우에
        항상 False이므로, 0을 '무제한'으로 볼지는 호출자가 따로 판단해야 합니다.
        """
        if account.projects_limit == 0:
            return 100
        return (self.personal_project_count(account) / account.projects_limit) * 100

    def apply_default_limit(self, account: models.Account, projects_limit: Optional[int] = None) -> None:
        """명시적인 한도가 없으면 설정의 기본 한도를 계정에 지정합니다."""
        if projects_limit is None:
            account.projects_limit = self.settings.default_projects_limit
        else:
            account.projects_limit = projects_limit

    @staticmethod
    def check_projects_limit(value) -> List[str]:
        if value is None:
            return ["can't be blank"]
        if isinstance(value, bool) or not isinstance(value, int):
            return ["is not a number"]
        if value < 0:
            return ["must be greater than or equal to 0"]
        return []
