import enum


class AccountState(str, enum.Enum):
    """계정의 생명주기 상태. active와 blocked 두 가지만 존재합니다."""
    ACTIVE = "active"
    BLOCKED = "blocked"


class AccessLevel(enum.IntEnum):
    """
    그룹/프로젝트 멤버십이 부여하는 접근 수준입니다.
    값이 클수록 더 높은 권한을 의미합니다. (Guest < Reporter < Developer < Master < Owner)
    """
    GUEST = 10
    REPORTER = 20
    DEVELOPER = 30
    MASTER = 40
    OWNER = 50
