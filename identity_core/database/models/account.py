from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import relationship
from ..database import Base
from .enums import AccountState


class Account(Base):
    """
    시스템에 로그인하고 프로젝트, 그룹 등의 리소스에 접근하는 계정을 나타냅니다.
    계정은 정확히 하나의 개인 네임스페이스를 소유하며, 보조 이메일과 멤버십을 가질 수 있습니다.
    """
    __tablename__ = "accounts"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    username = Column(String, nullable=False)
    email = Column(String, nullable=False)
    notification_email = Column(String)
    password_hash = Column(String, nullable=False, default="")
    password_automatically_set = Column(Boolean, nullable=False, default=False)

    state = Column(
        Enum(AccountState, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AccountState.ACTIVE,
    )
    admin = Column(Boolean, nullable=False, default=False)
    can_create_group = Column(Boolean, nullable=False, default=True)
    can_create_team = Column(Boolean, nullable=False, default=False)
    projects_limit = Column(Integer, nullable=False, default=10)
    theme_id = Column(Integer, nullable=False, default=1)
    avatar = Column(String)

    created_by_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"))
    created_at = Column(DateTime, server_default=func.now())

    # 읽기 전용 관계. 쓰기와 삭제는 리포지토리가 명시적으로 수행합니다.
    namespace = relationship("PersonalNamespace", uselist=False, viewonly=True)
    emails = relationship("Email", order_by="Email.id", viewonly=True)
    members = relationship("Member", viewonly=True)

    @property
    def is_admin(self) -> bool:
        return bool(self.admin)

    @property
    def is_active(self) -> bool:
        return self.state in (None, AccountState.ACTIVE)

    @property
    def is_blocked(self) -> bool:
        return self.state == AccountState.BLOCKED

    @property
    def namespace_id(self):
        return self.namespace.id if self.namespace else None

    @property
    def namespace_path(self):
        return self.namespace.path if self.namespace else None

    def __repr__(self):
        return f"<Account id={self.id} username={self.username!r}>"


# 대소문자를 구분하지 않는 유일성의 최종 보루 (애플리케이션 검사는 최적화일 뿐)
Index("uq_accounts_lower_username", func.lower(Account.username), unique=True)
Index("uq_accounts_lower_email", func.lower(Account.email), unique=True)
