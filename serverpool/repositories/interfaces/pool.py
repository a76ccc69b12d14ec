from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Set
from serverpool.database import models

class IPoolRepository(ABC):
    @abstractmethod
    def create(self, pool_model: models.Pool) -> models.Pool:
        """새로운 풀을 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, pool_id: str) -> Optional[models.Pool]:
        """고유 ID로 특정 풀을 조회합니다."""
        pass

    @abstractmethod
    def find_by_invite_code(self, invite_code: str) -> Optional[models.Pool]:
        """초대 코드로 특정 풀을 조회합니다."""
        pass

    @abstractmethod
    def list_by_owner_id(self, owner_id: str) -> List[models.Pool]:
        """특정 사용자가 소유한 풀 목록을 조회합니다."""
        pass

    @abstractmethod
    def list_by_contributor_user_id(self, user_id: str) -> List[models.Pool]:
        """특정 사용자가 기여자로 참여한 풀 목록을 조회합니다."""
        pass

    @abstractmethod
    def list_public(self) -> List[models.Pool]:
        """공개(is_public) 풀 목록을 조회합니다."""
        pass

    @abstractmethod
    def update_totals(self, pool_id: str, cpu_cores: int, ram_gb: float, storage_gb: float) -> None:
        """풀의 세 가지 합계 컬럼을 한 번의 UPDATE로 덮어씁니다."""
        pass

    @abstractmethod
    def delete(self, pool: models.Pool) -> bool:
        """특정 풀을 삭제합니다. 기여자와 서버 할당도 함께 삭제됩니다."""
        pass

    @abstractmethod
    def map_members(self, user_id: str, extra_pool_ids: Iterable[str] = ()) -> Dict[str, Set[str]]:
        """
        사용자가 소유하거나 기여하는 풀, 그리고 extra_pool_ids로 지정된 풀 각각에 대해
        멤버(소유자 + 기여자) 사용자 ID 집합을 조회합니다.

        Args:
            user_id: 기준이 되는 사용자의 ID.
            extra_pool_ids: 사용자의 멤버십과 무관하게 함께 조회할 풀 ID 목록.

        Returns:
            풀 ID를 키로, 멤버 사용자 ID 집합을 값으로 하는 딕셔너리.
            (예: {'pool-1': {'owner-id', 'contributor-id'}})
        """
        pass
