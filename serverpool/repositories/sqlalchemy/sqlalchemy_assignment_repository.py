from typing import List, Optional, Set
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from serverpool.database import models
from serverpool.repositories.interfaces import IAssignmentRepository
from serverpool.services.exceptions import AssignmentAlreadyExistsError

class SqlalchemyAssignmentRepository(IAssignmentRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, assignment_model: models.ServerPoolAssignment) -> models.ServerPoolAssignment:
        self.db.add(assignment_model)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise AssignmentAlreadyExistsError(
                f"Server '{assignment_model.server_id}' is already assigned to pool '{assignment_model.pool_id}'."
            ) from e
        self.db.refresh(assignment_model)
        return assignment_model

    def find_by_id(self, assignment_id: str) -> Optional[models.ServerPoolAssignment]:
        return self.db.query(models.ServerPoolAssignment).filter(models.ServerPoolAssignment.id == assignment_id).first()

    def list_by_server_id(self, server_id: str) -> List[models.ServerPoolAssignment]:
        return self.db.query(models.ServerPoolAssignment).filter(models.ServerPoolAssignment.server_id == server_id).all()

    def list_pool_ids_by_server_owner(self, owner_id: str) -> Set[str]:
        rows = (
            self.db.query(models.ServerPoolAssignment.pool_id)
            .join(models.Server, models.Server.id == models.ServerPoolAssignment.server_id)
            .filter(models.Server.owner_id == owner_id)
            .all()
        )
        return {row[0] for row in rows}

    def delete(self, assignment: models.ServerPoolAssignment) -> bool:
        if assignment:
            self.db.delete(assignment)
            self.db.commit()
            return True
        return False
