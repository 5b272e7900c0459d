from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func, text
from sqlalchemy.orm import relationship
from ..database import Base


class Namespace(Base):
    """
    프로젝트를 담는 컨테이너입니다.
    개인 네임스페이스와 그룹이 하나의 테이블(그리고 하나의 경로 공간)을 공유합니다.
    """
    __tablename__ = "namespaces"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    path = Column(String, nullable=False)
    type = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    owner_id = Column(Integer, ForeignKey("accounts.id"))
    created_at = Column(DateTime, server_default=func.now())

    projects = relationship("Project", order_by="Project.id", viewonly=True)

    __mapper_args__ = {"polymorphic_on": type, "polymorphic_identity": "namespace"}

    @property
    def is_group(self) -> bool:
        return self.type == "group"


class PersonalNamespace(Namespace):
    """계정 하나에 1:1로 딸린 네임스페이스. path와 name은 항상 소유자의 username과 같습니다."""
    owner = relationship("Account")

    __mapper_args__ = {"polymorphic_identity": "personal"}


class Group(Namespace):
    """
    여러 계정이 멤버십으로 참여하는 네임스페이스입니다.
    그룹 멤버십은 접근 수준과 무관하게 그룹이 소유한 모든 프로젝트에 대한 접근을 부여합니다.
    """
    members = relationship("GroupMember", viewonly=True)

    __mapper_args__ = {"polymorphic_identity": "group"}


Index("uq_namespaces_lower_path", func.lower(Namespace.path), unique=True)
# 계정당 개인 네임스페이스는 하나뿐
Index(
    "uq_namespaces_personal_owner",
    Namespace.owner_id,
    unique=True,
    sqlite_where=text("type = 'personal'"),
    postgresql_where=text("type = 'personal'"),
)
