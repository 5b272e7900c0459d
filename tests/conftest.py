# tests/conftest.py
from contextlib import contextmanager

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from identity_core.app import build_services
from identity_core.config import Settings
from identity_core.database import models  # noqa: F401  (모델을 Base.metadata에 등록)
from identity_core.database.database import Base
from identity_core.repositories.interfaces import ITransaction


class FakeTransaction(ITransaction):
    """커밋/롤백 횟수만 기록하는 가짜 트랜잭션. 예외는 그대로 전파합니다."""
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def begin(self):
        try:
            yield
            self.commits += 1
        except Exception:
            self.rollbacks += 1
            raise


@pytest.fixture
def fake_transaction() -> FakeTransaction:
    return FakeTransaction()


@pytest.fixture
def settings() -> Settings:
    """테스트용 설정. 환경 변수와 무관하게 항상 같은 값을 사용합니다."""
    return Settings(
        database_url="sqlite://",
        default_projects_limit=10,
        default_can_create_group=True,
        default_can_create_team=False,
        default_theme_id=1,
        reserved_paths=frozenset({"admin", "help", "groups", "projects"}),
        username_generation_limit=5,
        base_url="https://code.example.com",
        gravatar_url="https://www.gravatar.com/avatar/%{hash}?s=%{size}&d=identicon",
    )


@pytest.fixture
def session_factory():
    """메모리 SQLite DB에 모든 테이블을 만든 세션 팩토리."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def services(db_session, settings):
    return build_services(db_session, settings)
