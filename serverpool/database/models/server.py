from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base
from ._ids import new_id

SERVER_STATUSES = ("offline", "online", "starting")

class Server(Base):
    """
    사용자가 선언한 게임 호스팅 인스턴스입니다.
    실제 프로비저닝은 하지 않으며, 선언된 상태와 소유 관계만 기록합니다.
    """
    __tablename__ = "servers"
    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    game_type = Column(String, nullable=False)
    description = Column(String)
    status = Column(String, nullable=False, default="offline")
    max_players = Column(Integer, default=10)
    current_players = Column(Integer, default=0)
    port = Column(Integer)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="servers")
    pool_assignments = relationship("ServerPoolAssignment", back_populates="server", cascade="all, delete-orphan")
