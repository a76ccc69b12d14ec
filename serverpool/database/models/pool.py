from sqlalchemy import Column, Integer, Float, String, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base
from ._ids import new_id

class Pool(Base):
    """
    여러 사용자가 기여한 CPU/RAM/스토리지를 묶은 공유 리소스 풀입니다.

    total_* 컬럼은 입력값이 아니라 캐시입니다. 온라인 상태인 기여자들의
    리소스 합계로부터 PoolTotalsAggregator가 다시 계산해 덮어씁니다.
    """
    __tablename__ = "pools"
    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String)
    invite_code = Column(String, unique=True, nullable=False, index=True)
    is_public = Column(Boolean, default=False)
    total_cpu_cores = Column(Integer, default=0)
    total_ram_gb = Column(Float, default=0)
    total_storage_gb = Column(Float, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="pools")
    contributors = relationship("PoolContributor", back_populates="pool", cascade="all, delete-orphan")
    server_assignments = relationship("ServerPoolAssignment", back_populates="pool", cascade="all, delete-orphan")
