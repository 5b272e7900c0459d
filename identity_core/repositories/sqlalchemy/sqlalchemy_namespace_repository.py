from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from identity_core.database import models
from identity_core.repositories.interfaces import INamespaceRepository


class SqlalchemyNamespaceRepository(INamespaceRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def add(self, namespace_model: models.Namespace) -> models.Namespace:
        self.db.add(namespace_model)
        self.db.flush()
        return namespace_model

    def find_by_id(self, namespace_id: int) -> Optional[models.Namespace]:
        return self.db.query(models.Namespace).filter(models.Namespace.id == namespace_id).first()

    def find_by_path(self, path: str) -> Optional[models.Namespace]:
        return self.db.query(models.Namespace).filter(func.lower(models.Namespace.path) == path.lower()).first()

    def find_group_by_id(self, group_id: int, for_update: bool = False) -> Optional[models.Group]:
        query = self.db.query(models.Group).filter(models.Group.id == group_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_personal_by_owner(self, account_id: int, for_update: bool = False) -> Optional[models.PersonalNamespace]:
        query = self.db.query(models.PersonalNamespace).filter(models.PersonalNamespace.owner_id == account_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def path_taken(self, path: str, excluding_namespace_id: Optional[int] = None) -> bool:
        query = self.db.query(models.Namespace.id).filter(func.lower(models.Namespace.path) == path.lower())
        if excluding_namespace_id is not None:
            query = query.filter(models.Namespace.id != excluding_namespace_id)
        return query.first() is not None

    def delete(self, namespace_model: models.Namespace) -> bool:
        if namespace_model:
            self.db.delete(namespace_model)
            self.db.flush()
            return True
        return False
