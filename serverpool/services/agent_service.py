import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from serverpool.database import models
from serverpool.repositories.interfaces import IPoolRepository, IContributorRepository
from serverpool.services import policy
from serverpool.services.aggregator import PoolTotalsAggregator
from serverpool.services.serializers import serialize_pool, serialize_pool_summary
from serverpool.services.validation import RESOURCE_FIELDS, require, coerce_cpu, coerce_resource
from serverpool.services.exceptions import (
    ValidationError, PoolNotFoundError, ContributorNotFoundError,
    InviteCodeNotFoundError, ContributorAlreadyExistsError
)

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "Agent registered successfully"
RECONNECTED_MESSAGE = "Agent reconnected to pool"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_resources(resources: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(resources) - set(RESOURCE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown resource field(s): {', '.join(sorted(unknown))}")
    coerced = {}
    for name, value in resources.items():
        coerced[name] = coerce_cpu(name, value) if name == "cpu_cores" else coerce_resource(name, value)
    return coerced


class AgentService:
    """
    원격 에이전트가 호출하는 기여자 등록/하트비트/연결 해제 서비스입니다.
    기여자 상태를 바꾸는 모든 연산은 끝난 뒤 PoolTotalsAggregator로 풀 합계를 갱신합니다.
    """

    def __init__(self, pool_repo: IPoolRepository, contributor_repo: IContributorRepository, aggregator: PoolTotalsAggregator):
        """
        AgentService를 초기화합니다.

        Args:
            pool_repo: 풀 데이터에 접근하기 위한 리포지토리.
            contributor_repo: 기여자 데이터에 접근하기 위한 리포지토리.
            aggregator: 풀 합계를 재계산하는 집계기.
        """
        self.pool_repo = pool_repo
        self.contributor_repo = contributor_repo
        self.aggregator = aggregator

    def register(
        self,
        user_id: str,
        pool_id: Optional[str],
        cpu_cores: Any = None,
        ram_gb: Any = None,
        storage_gb: Any = None,
    ) -> Dict[str, Any]:
        """
        호출자를 풀의 기여자로 등록하거나, 이미 등록되어 있다면 재연결합니다.

        재연결 시 리소스 필드는 요청 값으로 전부 덮어씁니다. 생략된 필드는 기존 값을
        유지하지 않고 0이 됩니다.

        Args:
            user_id: 인증된 호출자의 ID.
            pool_id: 참여할 풀의 ID.
            cpu_cores, ram_gb, storage_gb: 에이전트가 보고한 리소스 용량.

        Returns:
            contributor_id, pool_name, 등록/재연결을 구분하는 message를 담은 딕셔너리.

        Raises:
            ValidationError: pool_id가 없거나 리소스 값이 올바르지 않을 때.
            PoolNotFoundError: 해당 ID의 풀이 없을 때.
        """
        require(pool_id, "pool_id")
        values = {
            "cpu_cores": coerce_cpu("cpu_cores", cpu_cores) or 0,
            "ram_gb": coerce_resource("ram_gb", ram_gb) or 0,
            "storage_gb": coerce_resource("storage_gb", storage_gb) or 0,
        }

        pool = self.pool_repo.find_by_id(pool_id)
        if not pool:
            raise PoolNotFoundError("Pool not found")

        existing = self.contributor_repo.find_by_pool_and_user(pool_id, user_id)
        if existing is None:
            new_contributor = models.PoolContributor(
                pool_id=pool_id,
                user_id=user_id,
                status="online",
                last_seen=_now(),
                **values
            )
            try:
                contributor = self.contributor_repo.create(new_contributor)
            except ContributorAlreadyExistsError:
                # 동시에 들어온 다른 등록 요청이 먼저 삽입했습니다. 재연결로 처리합니다.
                existing = self.contributor_repo.find_by_pool_and_user(pool_id, user_id)
                if existing is None:
                    raise
            else:
                self.aggregator.recompute(pool_id)
                logger.info("Agent registered: %s for pool %s", contributor.id, pool.name)
                return {
                    "success": True,
                    "contributor_id": contributor.id,
                    "pool_name": pool.name,
                    "message": REGISTERED_MESSAGE,
                }

        for name, value in values.items():
            setattr(existing, name, value)
        existing.status = "online"
        existing.last_seen = _now()
        self.contributor_repo.update(existing)
        self.aggregator.recompute(pool_id)
        logger.info("Agent reconnected: %s for pool %s", existing.id, pool.name)
        return {
            "success": True,
            "contributor_id": existing.id,
            "pool_name": pool.name,
            "message": RECONNECTED_MESSAGE,
        }

    def heartbeat(self, user_id: str, contributor_id: Optional[str], status: Optional[str] = None, **resources) -> Dict[str, Any]:
        """
        호출자 소유의 기여자 레코드를 부분 갱신합니다.

        요청에 포함된 리소스 필드만 반영하고, last_seen은 항상 갱신하며, status가 없으면
        'online'으로 간주합니다. 리소스 필드가 포함되었거나 상태가 실제로 바뀐 경우에만
        풀 합계를 재계산합니다.

        Raises:
            ValidationError: contributor_id가 없거나 status/리소스 값이 올바르지 않을 때.
            ContributorNotFoundError: 레코드가 없거나 다른 사용자의 레코드일 때.
        """
        require(contributor_id, "contributor_id")
        new_status = status or "online"
        if new_status not in models.CONTRIBUTOR_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(models.CONTRIBUTOR_STATUSES)}")
        updates = _coerce_resources(resources)

        contributor = self.contributor_repo.find_owned(contributor_id, user_id)
        if not contributor:
            raise ContributorNotFoundError("Contributor not found")

        previous_status = contributor.status
        contributor.status = new_status
        contributor.last_seen = _now()
        for name, value in updates.items():
            setattr(contributor, name, value)
        self.contributor_repo.update(contributor)

        if updates or previous_status != new_status:
            self.aggregator.recompute(contributor.pool_id)

        return {"success": True, "message": "Heartbeat received"}

    def disconnect(self, user_id: str, contributor_id: Optional[str]) -> Dict[str, Any]:
        """
        호출자 소유의 기여자를 오프라인으로 표시하고 풀 합계를 재계산합니다.

        Raises:
            ValidationError: contributor_id가 없을 때.
            ContributorNotFoundError: 레코드가 없거나 다른 사용자의 레코드일 때.
        """
        require(contributor_id, "contributor_id")
        contributor = self.contributor_repo.find_owned(contributor_id, user_id)
        if not contributor:
            raise ContributorNotFoundError("Contributor not found")

        contributor.status = "offline"
        contributor.last_seen = _now()
        self.contributor_repo.update(contributor)
        self.aggregator.recompute(contributor.pool_id)

        logger.info("Agent disconnected: %s", contributor_id)
        return {"success": True, "message": "Agent disconnected"}

    def list_pools(self, user_id: str) -> Dict[str, Any]:
        """호출자가 기여하는 풀과 소유한 풀의 요약(id, name, invite_code) 목록을 반환합니다."""
        contributed = self.pool_repo.list_by_contributor_user_id(user_id)
        owned = self.pool_repo.list_by_owner_id(user_id)
        return {
            "contributed_pools": [serialize_pool_summary(p) for p in contributed],
            "owned_pools": [serialize_pool_summary(p) for p in owned],
        }

    def get_pool(self, user_id: str, pool_id: str) -> Dict[str, Any]:
        """
        풀의 전체 레코드를 반환합니다. 소유자, 기여자, 또는 공개 풀만 조회할 수 있습니다.

        Raises:
            PoolNotFoundError: 풀이 없거나 호출자가 볼 수 없는 풀일 때.
        """
        pool = self.pool_repo.find_by_id(pool_id)
        if not pool:
            raise PoolNotFoundError("Pool not found")
        is_contributor = self.contributor_repo.find_by_pool_and_user(pool.id, user_id) is not None
        if not policy.can_read_pool(user_id, pool, is_contributor):
            raise PoolNotFoundError("Pool not found")
        return serialize_pool(pool)

    def lookup_invite(self, invite_code: str) -> Dict[str, Any]:
        """
        초대 코드를 풀 ID와 이름으로 변환합니다. 멤버십은 만들지 않습니다.

        Raises:
            InviteCodeNotFoundError: 초대 코드에 해당하는 풀이 없을 때.
        """
        pool = self.pool_repo.find_by_invite_code(invite_code)
        if not pool:
            raise InviteCodeNotFoundError("Invalid invite code")
        return {
            "pool_id": pool.id,
            "pool_name": pool.name,
            "message": "Use /register with this pool_id to join",
        }
