from abc import ABC, abstractmethod
from typing import List, Optional, Set
from serverpool.database import models

class IAssignmentRepository(ABC):
    @abstractmethod
    def create(self, assignment_model: models.ServerPoolAssignment) -> models.ServerPoolAssignment:
        """
        새로운 서버-풀 할당을 생성합니다.

        Raises:
            AssignmentAlreadyExistsError: (server_id, pool_id) 유일성 제약을 위반했을 때.
        """
        pass

    @abstractmethod
    def find_by_id(self, assignment_id: str) -> Optional[models.ServerPoolAssignment]:
        """고유 ID로 할당을 조회합니다."""
        pass

    @abstractmethod
    def list_by_server_id(self, server_id: str) -> List[models.ServerPoolAssignment]:
        """특정 서버의 모든 풀 할당을 조회합니다."""
        pass

    @abstractmethod
    def list_pool_ids_by_server_owner(self, owner_id: str) -> Set[str]:
        """특정 사용자가 소유한 서버들에 할당된 풀 ID 집합을 조회합니다."""
        pass

    @abstractmethod
    def delete(self, assignment: models.ServerPoolAssignment) -> bool:
        """할당을 삭제합니다."""
        pass
