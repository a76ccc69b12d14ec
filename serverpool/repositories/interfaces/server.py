from abc import ABC, abstractmethod
from typing import List, Optional
from serverpool.database import models

class IServerRepository(ABC):
    @abstractmethod
    def create(self, server_model: models.Server) -> models.Server:
        """새로운 서버 정보를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, server_id: str) -> Optional[models.Server]:
        """고유 ID로 특정 서버를 조회합니다."""
        pass

    @abstractmethod
    def list_by_owner_id(self, owner_id: str) -> List[models.Server]:
        """특정 사용자가 소유한 모든 서버의 목록을 조회합니다."""
        pass

    @abstractmethod
    def update(self, server: models.Server) -> models.Server:
        """변경된 서버 정보를 저장합니다."""
        pass

    @abstractmethod
    def delete(self, server: models.Server) -> bool:
        """특정 서버를 삭제합니다. 연결된 풀 할당도 함께 삭제됩니다."""
        pass
