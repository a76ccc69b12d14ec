from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from serverpool.database import models
from serverpool.repositories.interfaces import IProfileRepository

class SqlalchemyProfileRepository(IProfileRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, profile_model: models.Profile) -> models.Profile:
        self.db.add(profile_model)
        self.db.commit()
        self.db.refresh(profile_model)
        return profile_model

    def find_by_user_id(self, user_id: str) -> Optional[models.Profile]:
        return self.db.query(models.Profile).filter(models.Profile.user_id == user_id).first()

    def list_by_user_ids(self, user_ids: Iterable[str]) -> List[models.Profile]:
        user_ids = list(user_ids)
        if not user_ids:
            return []
        return self.db.query(models.Profile).filter(models.Profile.user_id.in_(user_ids)).all()

    def update(self, profile: models.Profile) -> models.Profile:
        self.db.commit()
        self.db.refresh(profile)
        return profile
