from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..database import Base


class Project(Base):
    """
    정확히 하나의 네임스페이스(개인 또는 그룹)에 속한 프로젝트입니다.
    개인 네임스페이스에 속한 프로젝트만 계정의 프로젝트 할당량에 포함됩니다.
    """
    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("namespace_id", "path", name="uq_projects_namespace_path"),)
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    path = Column(String, nullable=False)
    namespace_id = Column(Integer, ForeignKey("namespaces.id"), nullable=False, index=True)
    creator_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"))
    created_at = Column(DateTime, server_default=func.now())

    namespace = relationship("Namespace")
    members = relationship("ProjectMember", viewonly=True)
