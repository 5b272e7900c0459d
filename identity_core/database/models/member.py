from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..database import Base
from .enums import AccessLevel


class Member(Base):
    """
    계정(Account)을 그룹 또는 프로젝트에 연결하는 멤버십 모델입니다.
    계정이 직접 소유하지 않은 그룹/프로젝트에 접근하는 유일한 경로이며,
    접근 수준(AccessLevel)을 함께 기록합니다.
    """
    __tablename__ = "members"
    __table_args__ = (
        UniqueConstraint("account_id", "group_id", name="uq_members_account_group"),
        UniqueConstraint("account_id", "project_id", name="uq_members_account_project"),
        CheckConstraint("(group_id IS NULL) <> (project_id IS NULL)", name="ck_members_single_source"),
    )
    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    access_level = Column(Integer, nullable=False, default=AccessLevel.GUEST)
    type = Column(String, nullable=False)
    group_id = Column(Integer, ForeignKey("namespaces.id"), index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), index=True)
    created_at = Column(DateTime, server_default=func.now())

    account = relationship("Account")

    __mapper_args__ = {"polymorphic_on": type, "polymorphic_identity": "member"}

    @property
    def level(self) -> AccessLevel:
        return AccessLevel(self.access_level)


class GroupMember(Member):
    group = relationship("Group")

    __mapper_args__ = {"polymorphic_identity": "group"}


class ProjectMember(Member):
    project = relationship("Project")

    __mapper_args__ = {"polymorphic_identity": "project"}
