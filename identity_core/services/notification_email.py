# identity_core/services/notification_email.py
from typing import List, Optional, Sequence

from identity_core.database import models
from identity_core.repositories.interfaces import IEmailRepository

NOT_OWNED_MESSAGE = "is not an email you own"


class NotificationEmailBinder:
    """알림 이메일이 항상 계정이 소유한 주소 중 하나가 되도록 보장합니다."""

    def __init__(self, email_repo: IEmailRepository):
        self.email_repo = email_repo

    def secondary_emails(self, account: models.Account) -> List[str]:
        if account.id is None:
            return []
        return [e.email for e in self.email_repo.list_by_account(account.id)]

    def owned_emails(self, account: models.Account, primary_email: Optional[str] = None) -> List[str]:
        """기본 이메일(primary_email로 덮어쓸 수 있음)과 보조 이메일을 합친 목록."""
        primary = account.email if primary_email is None else primary_email
        return [primary, *self.secondary_emails(account)]

    def bind_notification_email(self, account: models.Account, primary_email: Optional[str] = None) -> bool:
        """
        알림 이메일이 비어 있거나 소유한 이메일이 아니면 기본 이메일로 되돌립니다.
        기본 이메일이 바뀌는 쓰기 직전에 실행됩니다. 값이 바뀌었으면 True를 반환합니다.
        """
        primary = account.email if primary_email is None else primary_email
        current = account.notification_email
        if current and _contains(self.owned_emails(account, primary), current):
            return False
        account.notification_email = primary
        return True

    def check_notification_email(
        self, account: models.Account, notification_email: Optional[str], primary_email: Optional[str] = None
    ) -> List[str]:
        """알림 이메일을 직접 바꿀 때의 검사. 소유하지 않은 주소는 고치지 않고 오류로 돌려줍니다."""
        if not notification_email or not notification_email.strip():
            return ["can't be blank"]
        if not _contains(self.owned_emails(account, primary_email), notification_email):
            return [NOT_OWNED_MESSAGE]
        return []


def _contains(emails: Sequence[Optional[str]], candidate: str) -> bool:
    candidate = candidate.lower()
    return any(e and e.lower() == candidate for e in emails)
