from typing import Iterable, List, Optional, Set
from sqlalchemy.orm import Session, joinedload
from identity_core.database import models
from identity_core.repositories.interfaces import IMemberRepository


class SqlalchemyMemberRepository(IMemberRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def add(self, member_model: models.Member) -> models.Member:
        self.db.add(member_model)
        self.db.flush()
        return member_model

    def find_group_member(self, account_id: int, group_id: int) -> Optional[models.GroupMember]:
        return self.db.query(models.GroupMember).filter(
            models.GroupMember.account_id == account_id,
            models.GroupMember.group_id == group_id,
        ).first()

    def find_project_member(self, account_id: int, project_id: int) -> Optional[models.ProjectMember]:
        return self.db.query(models.ProjectMember).filter(
            models.ProjectMember.account_id == account_id,
            models.ProjectMember.project_id == project_id,
        ).first()

    def group_ids_for_account(
        self, account_id: int, access_levels: Optional[Iterable[models.AccessLevel]] = None
    ) -> Set[int]:
        query = self.db.query(models.GroupMember.group_id).filter(models.GroupMember.account_id == account_id)
        if access_levels is not None:
            query = query.filter(models.GroupMember.access_level.in_([int(level) for level in access_levels]))
        return {row.group_id for row in query.all()}

    def project_ids_for_account(self, account_id: int) -> Set[int]:
        rows = self.db.query(models.ProjectMember.project_id).filter(
            models.ProjectMember.account_id == account_id
        ).all()
        return {row.project_id for row in rows}

    def account_ids_for_group(self, group_id: int, access_levels: Optional[Iterable[models.AccessLevel]] = None) -> Set[int]:
        query = self.db.query(models.GroupMember.account_id).filter(models.GroupMember.group_id == group_id)
        if access_levels is not None:
            query = query.filter(models.GroupMember.access_level.in_([int(level) for level in access_levels]))
        return {row.account_id for row in query.all()}

    def account_ids_for_project(self, project_id: int) -> Set[int]:
        rows = self.db.query(models.ProjectMember.account_id).filter(
            models.ProjectMember.project_id == project_id
        ).all()
        return {row.account_id for row in rows}

    def list_by_account(self, account_id: int) -> List[models.Member]:
        return self.db.query(models.Member).filter(
            models.Member.account_id == account_id
        ).order_by(models.Member.id.asc()).all()

    def delete(self, member_model: models.Member) -> bool:
        if member_model:
            self.db.delete(member_model)
            self.db.flush()
            return True
        return False

    def delete_by_account(self, account_id: int) -> int:
        members = self.list_by_account(account_id)
        for member in members:
            self.db.delete(member)
        self.db.flush()
        return len(members)

    def delete_by_project(self, project_id: int) -> int:
        members = self.db.query(models.ProjectMember).filter(models.ProjectMember.project_id == project_id).all()
        for member in members:
            self.db.delete(member)
        self.db.flush()
        return len(members)

    def list_for_group(self, group_id: int) -> List[models.GroupMember]:
        return self.db.query(models.GroupMember).options(joinedload(models.GroupMember.account)).filter(
            models.GroupMember.group_id == group_id
        ).order_by(models.GroupMember.id.asc()).all()

    def list_for_project(self, project_id: int) -> List[models.ProjectMember]:
        return self.db.query(models.ProjectMember).options(joinedload(models.ProjectMember.account)).filter(
            models.ProjectMember.project_id == project_id
        ).order_by(models.ProjectMember.id.asc()).all()

    def delete_by_group(self, group_id: int) -> int:
        members = self.db.query(models.GroupMember).filter(models.GroupMember.group_id == group_id).all()
        for member in members:
            self.db.delete(member)
        self.db.flush()
        return len(members)
