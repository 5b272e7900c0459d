import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from identity_core.config import Settings, get_settings
from .database import SessionLocal, Base
from .models import *

logger = logging.getLogger(__name__)


def initialize_db(session_factory: Optional[sessionmaker] = None, settings: Optional[Settings] = None,
                  admin_password: str = "admin"):
    """
    DB와 테이블을 생성하고, 저장소가 비어 있으면 기본 관리자 계정을 만듭니다.
    관리자 계정도 일반 계정 생성 흐름(개인 네임스페이스 포함)을 그대로 거칩니다.

    Returns:
        새로 만든 관리자 계정의 ID. 이미 데이터가 있으면 None.
    """
    # 순환 import를 피하기 위해 함수 안에서 가져옵니다.
    from identity_core.app import build_services

    session_factory = session_factory or SessionLocal
    settings = settings or get_settings()

    logger.info("Initializing identity database...")
    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=session_factory.kw["bind"])

    db = session_factory()
    try:
        # 기본 데이터가 이미 있는지 확인
        if db.query(Account).first():
            logger.info("Seed data already present, skipping.")
            return None

        services = build_services(db, settings)
        admin = services['accounts'].create_account(
            name="Administrator",
            username="root",
            email="admin@example.com",
            password=admin_password,
            admin=True,
            projects_limit=settings.default_projects_limit,
        )
        logger.info("Created administrator account '%s'.", admin.username)
        return admin.id
    finally:
        db.close()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    initialize_db()
