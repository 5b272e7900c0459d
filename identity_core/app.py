# identity_core/app.py
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from identity_core.config import Settings, get_settings
from identity_core.repositories.sqlalchemy.sqlalchemy_account_repository import SqlalchemyAccountRepository
from identity_core.repositories.sqlalchemy.sqlalchemy_email_repository import SqlalchemyEmailRepository
from identity_core.repositories.sqlalchemy.sqlalchemy_member_repository import SqlalchemyMemberRepository
from identity_core.repositories.sqlalchemy.sqlalchemy_namespace_repository import SqlalchemyNamespaceRepository
from identity_core.repositories.sqlalchemy.sqlalchemy_project_repository import SqlalchemyProjectRepository
from identity_core.repositories.sqlalchemy.sqlalchemy_transaction import SqlalchemyTransaction
from identity_core.services.account_service import AccountService
from identity_core.services.authorization import AuthorizationResolver
from identity_core.services.collaborators import IHookDispatcher, INotificationService, IPasswordHasher
from identity_core.services.identity_registry import IdentityRegistry
from identity_core.services.membership_service import MembershipService
from identity_core.services.quota import QuotaEnforcer


def build_services(
    db_session: Session,
    settings: Optional[Settings] = None,
    password_hasher: Optional[IPasswordHasher] = None,
    hook_dispatcher: Optional[IHookDispatcher] = None,
    notification_service: Optional[INotificationService] = None,
) -> Dict[str, Any]:
    """
    하나의 DB 세션(요청)에 묶인 리포지토리와 서비스 객체들을 생성합니다.
    설정과 외부 협력 객체는 여기서 명시적으로 주입됩니다.

    Returns:
        'accounts', 'memberships', 'authorization', 'quota', 'registry' 키를 가진 딕셔너리.
    """
    settings = settings or get_settings()

    # 1. 의존성 생성 (Repositories -> Services)
    account_repo = SqlalchemyAccountRepository(db_session)
    email_repo = SqlalchemyEmailRepository(db_session)
    namespace_repo = SqlalchemyNamespaceRepository(db_session)
    project_repo = SqlalchemyProjectRepository(db_session)
    member_repo = SqlalchemyMemberRepository(db_session)
    transaction = SqlalchemyTransaction(db_session)

    registry = IdentityRegistry(account_repo, namespace_repo, email_repo, settings)
    quota = QuotaEnforcer(project_repo, namespace_repo, settings)
    resolver = AuthorizationResolver(member_repo, project_repo, namespace_repo)

    account_service = AccountService(
        account_repo, email_repo, namespace_repo, project_repo, member_repo, transaction,
        registry, quota, settings,
        password_hasher=password_hasher,
        hook_dispatcher=hook_dispatcher,
        notification_service=notification_service,
    )
    membership_service = MembershipService(
        account_repo, namespace_repo, project_repo, member_repo, transaction,
        registry, quota, resolver,
    )

    return {
        'accounts': account_service,
        'memberships': membership_service,
        'authorization': resolver,
        'quota': quota,
        'registry': registry,
    }
