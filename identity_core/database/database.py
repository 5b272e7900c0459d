from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from identity_core.config import get_settings


def create_session_factory(database_url: str, **engine_kwargs) -> sessionmaker:
    """
    주어진 연결 문자열로 엔진을 만들고, 그 엔진에 바인딩된 세션 팩토리를 반환합니다.

    SQLite를 사용할 때는 여러 스레드가 같은 연결을 쓸 수 있도록
    check_same_thread 옵션을 꺼 줍니다.
    """
    if database_url.startswith("sqlite"):
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(database_url, **engine_kwargs)
    # autoflush=False로 설정하여, 트랜잭션 경계에서 명시적으로 flush/commit 합니다.
    return sessionmaker(autoflush=False, bind=engine)


# 기본 세션 팩토리 (설정 파일의 IDENTITY_DATABASE_URL 사용)
SessionLocal = create_session_factory(get_settings().database_url)
engine = SessionLocal.kw["bind"]

# 모든 모델 클래스가 상속받을 Base 클래스
Base = declarative_base()
