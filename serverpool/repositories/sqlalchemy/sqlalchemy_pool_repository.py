from typing import Dict, Iterable, List, Optional, Set
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from serverpool.database import models
from serverpool.repositories.interfaces import IPoolRepository
from serverpool.services.exceptions import PoolCreationError

class SqlalchemyPoolRepository(IPoolRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, pool_model: models.Pool) -> models.Pool:
        self.db.add(pool_model)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise PoolCreationError(f"Invite code '{pool_model.invite_code}' is already in use.") from e
        self.db.refresh(pool_model)
        return pool_model

    def find_by_id(self, pool_id: str) -> Optional[models.Pool]:
        return self.db.query(models.Pool).filter(models.Pool.id == pool_id).first()

    def find_by_invite_code(self, invite_code: str) -> Optional[models.Pool]:
        return self.db.query(models.Pool).filter(models.Pool.invite_code == invite_code).first()

    def list_by_owner_id(self, owner_id: str) -> List[models.Pool]:
        return self.db.query(models.Pool).filter(models.Pool.owner_id == owner_id).order_by(models.Pool.created_at.desc()).all()

    def list_by_contributor_user_id(self, user_id: str) -> List[models.Pool]:
        return (
            self.db.query(models.Pool)
            .join(models.PoolContributor, models.PoolContributor.pool_id == models.Pool.id)
            .filter(models.PoolContributor.user_id == user_id)
            .order_by(models.Pool.created_at.desc())
            .all()
        )

    def list_public(self) -> List[models.Pool]:
        return self.db.query(models.Pool).filter(models.Pool.is_public.is_(True)).order_by(models.Pool.name.asc()).all()

    def update_totals(self, pool_id: str, cpu_cores: int, ram_gb: float, storage_gb: float) -> None:
        try:
            self.db.query(models.Pool).filter(models.Pool.id == pool_id).update(
                {
                    models.Pool.total_cpu_cores: cpu_cores,
                    models.Pool.total_ram_gb: ram_gb,
                    models.Pool.total_storage_gb: storage_gb,
                },
                synchronize_session="fetch",
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def delete(self, pool: models.Pool) -> bool:
        if pool:
            self.db.delete(pool)
            self.db.commit()
            return True
        return False

    def map_members(self, user_id: str, extra_pool_ids: Iterable[str] = ()) -> Dict[str, Set[str]]:
        contributed = self.db.query(models.PoolContributor.pool_id).filter(models.PoolContributor.user_id == user_id)
        pools = self.db.query(models.Pool.id, models.Pool.owner_id).filter(
            or_(
                models.Pool.owner_id == user_id,
                models.Pool.id.in_(contributed),
                models.Pool.id.in_(list(extra_pool_ids)),
            )
        ).all()

        members = {pool_id: {owner_id} for pool_id, owner_id in pools}
        if not members:
            return members

        rows = self.db.query(models.PoolContributor.pool_id, models.PoolContributor.user_id).filter(
            models.PoolContributor.pool_id.in_(list(members))
        ).all()
        for pool_id, contributor_user_id in rows:
            members[pool_id].add(contributor_user_id)
        return members
