import logging
from dataclasses import dataclass
from typing import Iterable

from serverpool.database import models
from serverpool.repositories.interfaces import IPoolRepository, IContributorRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolTotals:
    cpu_cores: int = 0
    ram_gb: float = 0.0
    storage_gb: float = 0.0


def compute_pool_totals(contributors: Iterable[models.PoolContributor]) -> PoolTotals:
    """
    온라인 기여자들의 리소스 합계를 계산합니다.

    cpu_cores는 정수 합, ram_gb/storage_gb는 실수 합이며 None은 0으로 취급합니다.
    status가 'online'이 아닌 기여자는 무시합니다.
    """
    cpu_cores, ram_gb, storage_gb = 0, 0.0, 0.0
    for contributor in contributors:
        if contributor.status != "online":
            continue
        cpu_cores += int(contributor.cpu_cores or 0)
        ram_gb += float(contributor.ram_gb or 0)
        storage_gb += float(contributor.storage_gb or 0)
    return PoolTotals(cpu_cores=cpu_cores, ram_gb=ram_gb, storage_gb=storage_gb)


class PoolTotalsAggregator:
    """풀의 캐시된 합계(total_*)를 기여자 상태로부터 다시 계산해 덮어씁니다."""

    def __init__(self, pool_repo: IPoolRepository, contributor_repo: IContributorRepository):
        self.pool_repo = pool_repo
        self.contributor_repo = contributor_repo

    def recompute(self, pool_id: str) -> bool:
        """
        풀의 합계를 재계산합니다.

        실패하더라도 예외를 전파하지 않고 로그만 남깁니다. 합계 재계산 실패가
        이미 커밋된 기여자 변경을 되돌리지 않도록 하기 위함입니다.

        Returns:
            재계산과 저장에 성공하면 True, 실패하면 False.
        """
        try:
            online = self.contributor_repo.list_online_by_pool_id(pool_id)
            totals = compute_pool_totals(online)
            self.pool_repo.update_totals(pool_id, totals.cpu_cores, totals.ram_gb, totals.storage_gb)
        except Exception:
            logger.exception("Failed to update totals for pool %s", pool_id)
            return False

        logger.info(
            "Updated pool %s totals: cpu=%d ram=%.2f storage=%.2f",
            pool_id, totals.cpu_cores, totals.ram_gb, totals.storage_gb,
        )
        return True
