from typing import List, Optional, Union
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from identity_core.database import models
from identity_core.repositories.interfaces import IAccountRepository
from identity_core.services.filters import AccountFilter


def account_filter_predicate(account_filter: AccountFilter):
    """AccountFilter 값 하나를 계정 조회 조건 하나로 변환합니다."""
    if account_filter is AccountFilter.ADMINS:
        return models.Account.admin.is_(True)
    if account_filter is AccountFilter.BLOCKED:
        return models.Account.state == models.AccountState.BLOCKED
    if account_filter is AccountFilter.WITHOUT_PROJECTS:
        return models.Account.id.not_in(select(models.Member.account_id).distinct())
    return models.Account.state == models.AccountState.ACTIVE


class SqlalchemyAccountRepository(IAccountRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def add(self, account_model: models.Account) -> models.Account:
        self.db.add(account_model)
        self.db.flush()
        return account_model

    def find_by_id(self, account_id: int, for_update: bool = False) -> Optional[models.Account]:
        query = self.db.query(models.Account).filter(models.Account.id == account_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_by_username(self, username: str) -> Optional[models.Account]:
        return self.db.query(models.Account).filter(
            func.lower(models.Account.username) == username.lower()
        ).first()

    def find_by_email(self, email: str) -> Optional[models.Account]:
        return self.db.query(models.Account).filter(
            func.lower(models.Account.email) == email.lower()
        ).first()

    def find_by_secondary_email(self, email: str) -> Optional[models.Account]:
        return self.db.query(models.Account).join(models.Email, models.Email.account_id == models.Account.id).filter(
            func.lower(models.Email.email) == email.lower()
        ).first()

    def find_by_name(self, name: str) -> Optional[models.Account]:
        return self.db.query(models.Account).filter(models.Account.name == name).order_by(models.Account.id.asc()).first()

    def find_by_login(self, login: str) -> Optional[models.Account]:
        value = str(login).lower()
        return self.db.query(models.Account).filter(
            or_(func.lower(models.Account.username) == value, func.lower(models.Account.email) == value)
        ).first()

    def find_by_username_or_id(self, value: Union[str, int]) -> Optional[models.Account]:
        text = str(value)
        conditions = [models.Account.username == text]
        if text.isdigit():
            conditions.append(models.Account.id == int(text))
        return self.db.query(models.Account).filter(or_(*conditions)).first()

    def search(self, query: str) -> List[models.Account]:
        # LIKE 와일드카드 문자는 글자 그대로 검색
        needle = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{needle}%"
        return self.db.query(models.Account).filter(
            or_(
                models.Account.name.ilike(pattern, escape="\\"),
                models.Account.email.ilike(pattern, escape="\\"),
                models.Account.username.ilike(pattern, escape="\\"),
            )
        ).order_by(models.Account.username.asc()).all()

    def list_by_filter(self, account_filter: AccountFilter) -> List[models.Account]:
        return self.db.query(models.Account).filter(
            account_filter_predicate(account_filter)
        ).order_by(models.Account.username.asc()).all()

    def username_taken(self, username: str, excluding_account_id: Optional[int] = None) -> bool:
        query = self.db.query(models.Account.id).filter(func.lower(models.Account.username) == username.lower())
        if excluding_account_id is not None:
            query = query.filter(models.Account.id != excluding_account_id)
        return query.first() is not None

    def email_taken(self, email: str, excluding_account_id: Optional[int] = None) -> bool:
        query = self.db.query(models.Account.id).filter(func.lower(models.Account.email) == email.lower())
        if excluding_account_id is not None:
            query = query.filter(models.Account.id != excluding_account_id)
        return query.first() is not None

    def delete(self, account: models.Account) -> bool:
        if account:
            self.db.delete(account)
            self.db.flush()
            return True
        return False
