from abc import ABC, abstractmethod
from typing import List, Optional
from serverpool.database import models

class IContributorRepository(ABC):
    @abstractmethod
    def create(self, contributor_model: models.PoolContributor) -> models.PoolContributor:
        """
        새로운 기여자 레코드를 생성합니다.

        Raises:
            ContributorAlreadyExistsError: (pool_id, user_id) 유일성 제약을 위반했을 때.
        """
        pass

    @abstractmethod
    def find_by_id(self, contributor_id: str) -> Optional[models.PoolContributor]:
        """고유 ID로 기여자 레코드를 조회합니다."""
        pass

    @abstractmethod
    def find_by_pool_and_user(self, pool_id: str, user_id: str) -> Optional[models.PoolContributor]:
        """풀 ID와 사용자 ID로 기여자 레코드를 조회합니다."""
        pass

    @abstractmethod
    def find_owned(self, contributor_id: str, user_id: str) -> Optional[models.PoolContributor]:
        """호출자(user_id)가 소유한 기여자 레코드만 조회합니다. 다른 사용자의 레코드는 None입니다."""
        pass

    @abstractmethod
    def list_by_pool_id(self, pool_id: str) -> List[models.PoolContributor]:
        """특정 풀의 모든 기여자를 조회합니다."""
        pass

    @abstractmethod
    def list_online_by_pool_id(self, pool_id: str) -> List[models.PoolContributor]:
        """특정 풀에서 status가 'online'인 기여자만 조회합니다."""
        pass

    @abstractmethod
    def update(self, contributor: models.PoolContributor) -> models.PoolContributor:
        """변경된 기여자 레코드를 저장합니다."""
        pass

    @abstractmethod
    def delete(self, contributor: models.PoolContributor) -> bool:
        """기여자 레코드를 삭제합니다."""
        pass
