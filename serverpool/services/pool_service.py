import logging
import secrets
from typing import Any, Dict, List, Optional

from serverpool.database import models
from serverpool.repositories.interfaces import IPoolRepository, IContributorRepository, IProfileRepository
from serverpool.services import policy
from serverpool.services.aggregator import PoolTotalsAggregator
from serverpool.services.serializers import serialize_pool, serialize_contributor
from serverpool.services.validation import require
from serverpool.services.exceptions import (
    PoolNotFoundError, PoolCreationError, ContributorNotFoundError,
    InviteCodeNotFoundError, ContributorAlreadyExistsError, PermissionDeniedError
)

logger = logging.getLogger(__name__)

INVITE_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
INVITE_CODE_LENGTH = 8
MAX_INVITE_CODE_ATTEMPTS = 5


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


class PoolService:
    """풀 생성/삭제, 초대 코드로 참여, 기여자 목록 조회와 제거를 담당합니다."""

    def __init__(
        self,
        pool_repo: IPoolRepository,
        contributor_repo: IContributorRepository,
        profile_repo: IProfileRepository,
        aggregator: PoolTotalsAggregator,
    ):
        self.pool_repo = pool_repo
        self.contributor_repo = contributor_repo
        self.profile_repo = profile_repo
        self.aggregator = aggregator

    def _is_contributor(self, pool_id: str, user_id: str) -> bool:
        return self.contributor_repo.find_by_pool_and_user(pool_id, user_id) is not None

    def _find_readable_pool(self, user_id: str, pool_id: str) -> models.Pool:
        pool = self.pool_repo.find_by_id(pool_id)
        if not pool or not policy.can_read_pool(user_id, pool, self._is_contributor(pool_id, user_id)):
            raise PoolNotFoundError("Pool not found")
        return pool

    def create_pool(
        self, owner_id: str, name: Optional[str], description: Optional[str] = None, is_public: bool = False
    ) -> Dict[str, Any]:
        """
        새로운 풀을 생성합니다. 8자리 초대 코드를 생성하며, 충돌하면 다시 생성합니다.

        Raises:
            ValidationError: name이 없을 때.
            PoolCreationError: 초대 코드 생성을 반복해서 실패했을 때.
        """
        require(name, "name")
        for _ in range(MAX_INVITE_CODE_ATTEMPTS):
            invite_code = generate_invite_code()
            if self.pool_repo.find_by_invite_code(invite_code):
                continue
            try:
                pool = self.pool_repo.create(models.Pool(
                    owner_id=owner_id,
                    name=name,
                    description=description or None,
                    invite_code=invite_code,
                    is_public=bool(is_public),
                    total_cpu_cores=0,
                    total_ram_gb=0,
                    total_storage_gb=0,
                ))
            except PoolCreationError:
                logger.warning("Invite code collision on insert, retrying")
                continue
            logger.info("Pool created: %s (%s) by %s", pool.id, pool.name, owner_id)
            return serialize_pool(pool)
        raise PoolCreationError("Failed to generate a unique invite code.")

    def list_visible_pools(self, user_id: str) -> List[Dict[str, Any]]:
        """호출자가 소유하거나 기여하는 풀, 그리고 공개 풀을 중복 없이 반환합니다."""
        pools = {}
        for pool in (
            self.pool_repo.list_by_owner_id(user_id)
            + self.pool_repo.list_by_contributor_user_id(user_id)
            + self.pool_repo.list_public()
        ):
            pools.setdefault(pool.id, pool)
        return [serialize_pool(p) for p in pools.values()]

    def delete_pool(self, user_id: str, pool_id: str) -> bool:
        """
        Raises:
            PoolNotFoundError: 풀이 없거나 호출자가 볼 수 없을 때.
            PermissionDeniedError: 소유자가 아닐 때.
        """
        pool = self._find_readable_pool(user_id, pool_id)
        if not policy.can_modify_pool(user_id, pool):
            raise PermissionDeniedError("Only the pool owner can delete the pool")
        self.pool_repo.delete(pool)
        return True

    def list_contributors(self, user_id: str, pool_id: str) -> List[Dict[str, Any]]:
        """
        풀의 기여자 목록을 프로필 표시 이름과 함께 반환합니다.
        풀 소유자와 기여자만 조회할 수 있습니다.

        Raises:
            PoolNotFoundError: 풀이 없거나 호출자가 멤버가 아닐 때.
        """
        pool = self.pool_repo.find_by_id(pool_id)
        if not pool or not policy.can_read_contributors(user_id, pool, self._is_contributor(pool_id, user_id)):
            raise PoolNotFoundError("Pool not found")

        contributors = self.contributor_repo.list_by_pool_id(pool_id)
        profiles = self.profile_repo.list_by_user_ids(c.user_id for c in contributors)
        names = {p.user_id: p.display_name for p in profiles}
        return [serialize_contributor(c, names.get(c.user_id)) for c in contributors]

    def join_by_invite(self, user_id: str, invite_code: str) -> Dict[str, Any]:
        """
        초대 코드로 풀에 참여합니다. 리소스가 0인 오프라인 기여자로 등록되며,
        이후 에이전트의 register 호출로 온라인이 됩니다.

        Raises:
            InviteCodeNotFoundError: 초대 코드가 올바르지 않을 때.
            ContributorAlreadyExistsError: 이미 풀의 기여자일 때.
        """
        pool = self.pool_repo.find_by_invite_code(invite_code)
        if not pool:
            raise InviteCodeNotFoundError("Invalid invite code")
        if self._is_contributor(pool.id, user_id):
            raise ContributorAlreadyExistsError(f"You are already a contributor to {pool.name}")

        contributor = self.contributor_repo.create(models.PoolContributor(
            pool_id=pool.id,
            user_id=user_id,
            cpu_cores=0,
            ram_gb=0,
            storage_gb=0,
            status="offline",
        ))
        return {
            "contributor_id": contributor.id,
            "pool_id": pool.id,
            "pool_name": pool.name,
            "message": f"You're now a contributor to {pool.name}",
        }

    def remove_contributor(self, user_id: str, contributor_id: str) -> bool:
        """
        기여자를 풀에서 제거하고 풀 합계를 재계산합니다.
        풀 소유자 또는 기여자 본인만 제거할 수 있습니다.

        Raises:
            ContributorNotFoundError: 레코드가 없거나 호출자가 볼 수 없을 때.
            PermissionDeniedError: 소유자도 본인도 아닐 때.
        """
        contributor = self.contributor_repo.find_by_id(contributor_id)
        if not contributor:
            raise ContributorNotFoundError("Contributor not found")
        pool = self.pool_repo.find_by_id(contributor.pool_id)
        if not pool or not policy.can_read_contributors(user_id, pool, self._is_contributor(pool.id, user_id)):
            raise ContributorNotFoundError("Contributor not found")
        if not policy.can_modify_contributor(user_id, contributor, pool):
            raise PermissionDeniedError("Only the pool owner or the contributor can remove this contributor")

        pool_id = contributor.pool_id
        self.contributor_repo.delete(contributor)
        self.aggregator.recompute(pool_id)
        return True
