from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from serverpool.database import models
from serverpool.repositories.interfaces import IContributorRepository
from serverpool.services.exceptions import ContributorAlreadyExistsError

class SqlalchemyContributorRepository(IContributorRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, contributor_model: models.PoolContributor) -> models.PoolContributor:
        self.db.add(contributor_model)
        try:
            self.db.commit()
        except IntegrityError as e:
            # (pool_id, user_id) 유일성 제약 위반: 동시 등록 경쟁에서 진 쪽
            self.db.rollback()
            raise ContributorAlreadyExistsError(
                f"User '{contributor_model.user_id}' is already a contributor of pool '{contributor_model.pool_id}'."
            ) from e
        self.db.refresh(contributor_model)
        return contributor_model

    def find_by_id(self, contributor_id: str) -> Optional[models.PoolContributor]:
        return self.db.query(models.PoolContributor).filter(models.PoolContributor.id == contributor_id).first()

    def find_by_pool_and_user(self, pool_id: str, user_id: str) -> Optional[models.PoolContributor]:
        return self.db.query(models.PoolContributor).filter(
            models.PoolContributor.pool_id == pool_id,
            models.PoolContributor.user_id == user_id
        ).first()

    def find_owned(self, contributor_id: str, user_id: str) -> Optional[models.PoolContributor]:
        return self.db.query(models.PoolContributor).filter(
            models.PoolContributor.id == contributor_id,
            models.PoolContributor.user_id == user_id
        ).first()

    def list_by_pool_id(self, pool_id: str) -> List[models.PoolContributor]:
        return self.db.query(models.PoolContributor).filter(models.PoolContributor.pool_id == pool_id).order_by(models.PoolContributor.created_at.asc()).all()

    def list_online_by_pool_id(self, pool_id: str) -> List[models.PoolContributor]:
        return self.db.query(models.PoolContributor).filter(
            models.PoolContributor.pool_id == pool_id,
            models.PoolContributor.status == "online"
        ).all()

    def update(self, contributor: models.PoolContributor) -> models.PoolContributor:
        self.db.commit()
        self.db.refresh(contributor)
        return contributor

    def delete(self, contributor: models.PoolContributor) -> bool:
        if contributor:
            self.db.delete(contributor)
            self.db.commit()
            return True
        return False
