"""
프로필 가시성 판정.

"사용자는 자기 자신의 프로필과, 풀 관계를 공유하는 사용자의 프로필만 볼 수 있다"는
정책을 부수 효과 없는 순수 함수로 표현합니다. 판정에 필요한 멤버십 정보는
MembershipSnapshot으로 미리 읽어 전달합니다.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping

from serverpool.repositories.interfaces import IPoolRepository, IAssignmentRepository


@dataclass(frozen=True)
class MembershipSnapshot:
    """
    한 사용자(viewer) 기준의 풀 멤버십 스냅샷.

    Attributes:
        pool_members: 풀 ID -> 멤버(소유자 + 기여자) 사용자 ID 집합.
            viewer가 멤버인 풀과 server_pool_ids의 풀을 모두 포함해야 합니다.
        server_pool_ids: viewer가 소유한 서버에 할당된 풀 ID 집합.
    """
    pool_members: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    server_pool_ids: FrozenSet[str] = frozenset()


def users_share_pool(viewer_id: str, target_id: str, snapshot: MembershipSnapshot) -> bool:
    """
    viewer와 target이 풀 관계를 공유하는지 판정합니다.

    1. 같은 풀의 멤버(소유자 또는 기여자)인 경우. viewer == target이면 viewer가
       속한 풀이 하나라도 있을 때 참입니다.
    2. viewer가 소유한 서버에 할당된 풀의 멤버가 target인 경우.
       이 조건은 비대칭이며, 반대 방향의 가시성을 부여하지 않습니다.
    """
    for members in snapshot.pool_members.values():
        if viewer_id in members and target_id in members:
            return True

    for pool_id in snapshot.server_pool_ids:
        if target_id in snapshot.pool_members.get(pool_id, frozenset()):
            return True

    return False


def can_view_profile(viewer_id: str, target_id: str, snapshot: MembershipSnapshot) -> bool:
    return viewer_id == target_id or users_share_pool(viewer_id, target_id, snapshot)


def load_membership_snapshot(
    viewer_id: str, pool_repo: IPoolRepository, assignment_repo: IAssignmentRepository
) -> MembershipSnapshot:
    """viewer 기준의 MembershipSnapshot을 리포지토리에서 읽어 구성합니다."""
    server_pool_ids = frozenset(assignment_repo.list_pool_ids_by_server_owner(viewer_id))
    members = pool_repo.map_members(viewer_id, extra_pool_ids=server_pool_ids)
    return MembershipSnapshot(
        pool_members={pool_id: frozenset(user_ids) for pool_id, user_ids in members.items()},
        server_pool_ids=server_pool_ids,
    )
