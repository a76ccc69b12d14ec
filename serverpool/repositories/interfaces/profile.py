from abc import ABC, abstractmethod
from typing import Iterable, List, Optional
from serverpool.database import models

class IProfileRepository(ABC):
    @abstractmethod
    def create(self, profile_model: models.Profile) -> models.Profile:
        """새로운 프로필을 생성합니다."""
        pass

    @abstractmethod
    def find_by_user_id(self, user_id: str) -> Optional[models.Profile]:
        """사용자 ID로 프로필을 조회합니다."""
        pass

    @abstractmethod
    def list_by_user_ids(self, user_ids: Iterable[str]) -> List[models.Profile]:
        """여러 사용자의 프로필을 한 번에 조회합니다."""
        pass

    @abstractmethod
    def update(self, profile: models.Profile) -> models.Profile:
        """변경된 프로필을 저장합니다."""
        pass
