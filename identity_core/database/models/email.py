from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import relationship
from ..database import Base


class Email(Base):
    """
    계정이 소유한 보조(secondary) 이메일 주소입니다.
    보조 이메일도 시스템 전체에서 유일해야 하며, 알림 이메일로 지정할 수 있습니다.
    """
    __tablename__ = "emails"
    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    email = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    account = relationship("Account")


Index("uq_emails_lower_email", func.lower(Email.email), unique=True)
