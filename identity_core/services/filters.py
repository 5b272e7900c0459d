import enum


class AccountFilter(enum.Enum):
    """계정 목록을 고르는 이름 붙은 필터. 저장소가 각 값을 하나의 조회 조건으로 변환합니다."""
    ADMINS = "admins"
    BLOCKED = "blocked"
    WITHOUT_PROJECTS = "wop"
    ACTIVE = "active"

    @classmethod
    def from_name(cls, filter_name) -> "AccountFilter":
        """
        외부에서 전달된 필터 이름을 AccountFilter로 변환합니다.
        알 수 없는 이름이나 None은 ACTIVE로 취급합니다.
        """
        for member in cls:
            if member.value == filter_name:
                return member
        return cls.ACTIVE
