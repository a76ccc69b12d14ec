from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..database import Base
from ._ids import new_id

class ServerPoolAssignment(Base):
    """
    서버와 풀을 연결하고, 풀 리소스 중 해당 서버에 예약된 할당량을 기록하는 연관 모델입니다.
    (server_id, pool_id) 쌍마다 최대 한 개이며, 서버 소유자만 생성/삭제할 수 있습니다.
    """
    __tablename__ = "server_pool_assignments"
    __table_args__ = (UniqueConstraint("server_id", "pool_id", name="uq_server_pool_assignments_server_pool"),)

    id = Column(String(36), primary_key=True, default=new_id)
    server_id = Column(String(36), ForeignKey("servers.id", ondelete="CASCADE"), nullable=False, index=True)
    pool_id = Column(String(36), ForeignKey("pools.id", ondelete="CASCADE"), nullable=False, index=True)
    allocated_cpu = Column(Integer, default=0)
    allocated_ram_gb = Column(Float, default=0)
    allocated_storage_gb = Column(Float, default=0)
    created_at = Column(DateTime, server_default=func.now())

    server = relationship("Server", back_populates="pool_assignments")
    pool = relationship("Pool", back_populates="server_assignments")
