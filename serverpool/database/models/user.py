from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from ..database import Base
from ._ids import new_id

class User(Base):
    """
    시스템에 로그인하고 서버와 풀을 소유할 수 있는 인증 주체입니다.
    다른 모든 엔티티는 owner_id 또는 user_id로 이 모델을 참조합니다.
    """
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    servers = relationship("Server", back_populates="owner", cascade="all, delete-orphan")
    pools = relationship("Pool", back_populates="owner", cascade="all, delete-orphan")
    contributions = relationship("PoolContributor", back_populates="user", cascade="all, delete-orphan")
