from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from identity_core.database import models
from identity_core.repositories.interfaces import IEmailRepository


class SqlalchemyEmailRepository(IEmailRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def add(self, email_model: models.Email) -> models.Email:
        self.db.add(email_model)
        self.db.flush()
        return email_model

    def find_by_email(self, email: str) -> Optional[models.Email]:
        return self.db.query(models.Email).filter(func.lower(models.Email.email) == email.lower()).first()

    def list_by_account(self, account_id: int) -> List[models.Email]:
        return self.db.query(models.Email).filter(
            models.Email.account_id == account_id
        ).order_by(models.Email.id.asc()).all()

    def delete(self, email_model: models.Email) -> bool:
        if email_model:
            self.db.delete(email_model)
            self.db.flush()
            return True
        return False

    def delete_by_account(self, account_id: int) -> int:
        emails = self.list_by_account(account_id)
        for email_model in emails:
            self.db.delete(email_model)
        self.db.flush()
        return len(emails)
