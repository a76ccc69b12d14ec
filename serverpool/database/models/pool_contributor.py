from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..database import Base
from ._ids import new_id

CONTRIBUTOR_STATUSES = ("online", "offline")

class PoolContributor(Base):
    """
    사용자와 풀을 연결하는 멤버십 레코드입니다.
    에이전트가 자체 보고한 리소스 용량과 온라인 상태, 마지막 확인 시각을 가집니다.
    (pool_id, user_id) 쌍마다 최대 한 개의 행만 존재합니다.
    """
    __tablename__ = "pool_contributors"
    __table_args__ = (UniqueConstraint("pool_id", "user_id", name="uq_pool_contributors_pool_user"),)

    id = Column(String(36), primary_key=True, default=new_id)
    pool_id = Column(String(36), ForeignKey("pools.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    cpu_cores = Column(Integer, default=0)
    ram_gb = Column(Float, default=0)
    storage_gb = Column(Float, default=0)
    status = Column(String, nullable=False, default="offline")
    last_seen = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())

    pool = relationship("Pool", back_populates="contributors")
    user = relationship("User", back_populates="contributions")
