from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from serverpool.database import models
from serverpool.repositories.interfaces import IUserRepository
from serverpool.services.exceptions import UserCreationError

class SqlalchemyUserRepository(IUserRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, user_model: models.User) -> models.User:
        self.db.add(user_model)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise UserCreationError(f"User with email '{user_model.email}' already exists.") from e
        self.db.refresh(user_model)
        return user_model

    def find_by_id(self, user_id: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.id == user_id).first()

    def find_by_email(self, email: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.email == email).first()
