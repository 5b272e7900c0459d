from typing import Iterable, List, Optional, Set
from sqlalchemy.orm import Session
from identity_core.database import models
from identity_core.repositories.interfaces import IProjectRepository


class SqlalchemyProjectRepository(IProjectRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def add(self, project_model: models.Project) -> models.Project:
        self.db.add(project_model)
        self.db.flush()
        return project_model

    def find_by_id(self, project_id: int) -> Optional[models.Project]:
        return self.db.query(models.Project).filter(models.Project.id == project_id).first()

    def find_by_path(self, namespace_id: int, path: str) -> Optional[models.Project]:
        return self.db.query(models.Project).filter(
            models.Project.namespace_id == namespace_id,
            models.Project.path == path,
        ).first()

    def list_by_namespace(self, namespace_id: int) -> List[models.Project]:
        return self.db.query(models.Project).filter(
            models.Project.namespace_id == namespace_id
        ).order_by(models.Project.id.asc()).all()

    def count_by_namespace(self, namespace_id: int) -> int:
        return self.db.query(models.Project).filter(models.Project.namespace_id == namespace_id).count()

    def ids_in_namespaces(self, namespace_ids: Iterable[int]) -> Set[int]:
        namespace_ids = list(namespace_ids)
        if not namespace_ids:
            return set()
        rows = self.db.query(models.Project.id).filter(models.Project.namespace_id.in_(namespace_ids)).all()
        return {row.id for row in rows}

    def group_ids_owning(self, project_ids: Iterable[int]) -> Set[int]:
        project_ids = list(project_ids)
        if not project_ids:
            return set()
        rows = self.db.query(models.Namespace.id).join(
            models.Project, models.Project.namespace_id == models.Namespace.id
        ).filter(
            models.Project.id.in_(project_ids),
            models.Namespace.type == "group",
        ).distinct().all()
        return {row.id for row in rows}

    def delete(self, project: models.Project) -> bool:
        if project:
            self.db.delete(project)
            self.db.flush()
            return True
        return False
