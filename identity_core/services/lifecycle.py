import enum
from typing import Dict, Tuple

from identity_core.database.models import AccountState


class LifecycleEvent(str, enum.Enum):
    BLOCK = "block"
    ACTIVATE = "activate"


# (현재 상태, 이벤트) -> 다음 상태. 모든 조합이 정의되어 있으므로 잘못된 전이는 존재하지 않습니다.
TRANSITIONS: Dict[Tuple[AccountState, LifecycleEvent], AccountState] = {
    (AccountState.ACTIVE, LifecycleEvent.BLOCK): AccountState.BLOCKED,
    (AccountState.BLOCKED, LifecycleEvent.BLOCK): AccountState.BLOCKED,
    (AccountState.ACTIVE, LifecycleEvent.ACTIVATE): AccountState.ACTIVE,
    (AccountState.BLOCKED, LifecycleEvent.ACTIVATE): AccountState.ACTIVE,
}


def next_state(current: AccountState, event: LifecycleEvent) -> AccountState:
    """현재 상태에 이벤트를 적용한 결과 상태를 반환합니다. 이미 목표 상태이면 그대로 반환합니다."""
    return TRANSITIONS[(AccountState(current or AccountState.ACTIVE), event)]
