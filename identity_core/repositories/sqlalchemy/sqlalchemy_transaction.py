import logging
from contextlib import contextmanager
from typing import Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from identity_core.repositories.interfaces import ITransaction
from identity_core.services.exceptions import CollisionError

logger = logging.getLogger(__name__)

# 제약 이름(또는 SQLite 오류 메시지 조각) -> (필드, 메시지)
_CONSTRAINT_ERRORS = (
    ("uq_accounts_lower_username", "username", "has already been taken"),
    ("uq_accounts_lower_email", "email", "has already been taken"),
    ("uq_emails_lower_email", "email", "has already been taken"),
    ("uq_namespaces_lower_path", "path", "has already been taken"),
    ("uq_namespaces_personal_owner", "namespace", "already exists"),
    ("uq_projects_namespace_path", "path", "has already been taken"),
    ("projects.namespace_id, projects.path", "path", "has already been taken"),
    ("uq_members_account_group", "base", "is already a member"),
    ("members.account_id, members.group_id", "base", "is already a member"),
    ("uq_members_account_project", "base", "is already a member"),
    ("members.account_id, members.project_id", "base", "is already a member"),
)


def collision_errors(error: IntegrityError) -> Dict[str, List[str]]:
    """IntegrityError를 필드별 검증 오류로 변환합니다."""
    detail = str(error.orig)
    for marker, field, message in _CONSTRAINT_ERRORS:
        if marker in detail:
            return {field: [message]}
    return {"base": ["conflicts with an existing record"]}


class SqlalchemyTransaction(ITransaction):
    def __init__(self, db_session: Session):
        self.db = db_session

    @contextmanager
    def begin(self):
        try:
            yield
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Unique constraint violated, transaction rolled back: %s", e.orig)
            raise CollisionError(collision_errors(e), constraint=str(e.orig)) from e
        except Exception:
            self.db.rollback()
            raise
