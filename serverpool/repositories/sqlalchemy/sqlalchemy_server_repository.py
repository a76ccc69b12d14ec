from typing import List, Optional
from sqlalchemy.orm import Session
from serverpool.database import models
from serverpool.repositories.interfaces import IServerRepository

class SqlalchemyServerRepository(IServerRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, server_model: models.Server) -> models.Server:
        self.db.add(server_model)
        self.db.commit()
        self.db.refresh(server_model)
        return server_model

    def find_by_id(self, server_id: str) -> Optional[models.Server]:
        return self.db.query(models.Server).filter(models.Server.id == server_id).first()

    def list_by_owner_id(self, owner_id: str) -> List[models.Server]:
        return self.db.query(models.Server).filter(models.Server.owner_id == owner_id).order_by(models.Server.created_at.desc()).all()

    def update(self, server: models.Server) -> models.Server:
        self.db.commit()
        self.db.refresh(server)
        return server

    def delete(self, server: models.Server) -> bool:
        if server:
            self.db.delete(server)
            self.db.commit()
            return True
        return False
