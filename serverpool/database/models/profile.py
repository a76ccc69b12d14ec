from sqlalchemy import Column, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base
from ._ids import new_id

class Profile(Base):
    """
    사용자 한 명당 하나씩 존재하는 표시용 메타데이터입니다.
    사용자가 생성될 때 함께 만들어지며, 본인만 수정할 수 있습니다.
    """
    __tablename__ = "profiles"
    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    display_name = Column(String)
    avatar_url = Column(String)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="profile")
