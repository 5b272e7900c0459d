# identity_core/config.py
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import FrozenSet

# 애플리케이션 라우트와 겹쳐 네임스페이스 경로로 쓸 수 없는 이름들
DEFAULT_RESERVED_PATHS = (
    "admin", "all", "assets", "ci", "dashboard", "files", "groups", "help",
    "hooks", "issues", "merge_requests", "new", "notes", "profile", "projects",
    "public", "repository", "s", "search", "services", "snippets", "teams",
    "u", "unsubscribes", "users",
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_paths(name: str) -> FrozenSet[str]:
    value = os.getenv(name)
    if not value:
        return frozenset(DEFAULT_RESERVED_PATHS)
    return frozenset(p.strip().lower() for p in value.split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    """
    계정 코어가 사용하는 설정 값입니다.
    전역에서 직접 조회하지 않고, 필요한 컴포넌트의 생성자에 명시적으로 주입합니다.

    기본값의 환경 변수는 이 모듈을 처음 import할 때 한 번만 읽습니다. (reserved_paths는 인스턴스 생성 시)
    이후에 바뀐 IDENTITY_* 값을 쓰려면 Settings(...)에 값을 직접 넘기세요.
    """
    database_url: str = os.getenv("IDENTITY_DATABASE_URL", "sqlite:///identity_metadata.db")
    default_projects_limit: int = int(os.getenv("IDENTITY_DEFAULT_PROJECTS_LIMIT", "10"))
    default_can_create_group: bool = _env_bool("IDENTITY_DEFAULT_CAN_CREATE_GROUP", True)
    default_can_create_team: bool = _env_bool("IDENTITY_DEFAULT_CAN_CREATE_TEAM", False)
    default_theme_id: int = int(os.getenv("IDENTITY_DEFAULT_THEME_ID", "1"))
    reserved_paths: FrozenSet[str] = field(default_factory=lambda: _env_paths("IDENTITY_RESERVED_PATHS"))
    username_generation_limit: int = int(os.getenv("IDENTITY_USERNAME_GENERATION_LIMIT", "10000"))
    base_url: str = os.getenv("IDENTITY_BASE_URL", "http://localhost")
    gravatar_url: str = os.getenv(
        "IDENTITY_GRAVATAR_URL",
        "https://www.gravatar.com/avatar/%{hash}?s=%{size}&d=identicon",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """프로세스에서 공유하는 Settings 인스턴스를 반환합니다."""
    return Settings()
