"""
리소스 종류별 접근 정책.

읽기 권한이 없는 리소스는 호출부에서 NotFound로, 읽을 수는 있지만 변경 권한이 없는
리소스는 PermissionDeniedError로 다룹니다.
"""
from serverpool.database import models
from serverpool.services.visibility import MembershipSnapshot, can_view_profile


# --- Profile ---
def can_read_profile(viewer_id: str, profile: models.Profile, snapshot: MembershipSnapshot) -> bool:
    return can_view_profile(viewer_id, profile.user_id, snapshot)

def can_update_profile(user_id: str, profile: models.Profile) -> bool:
    return profile.user_id == user_id


# --- Server ---
def can_read_server(user_id: str, server: models.Server) -> bool:
    return server.owner_id == user_id

def can_modify_server(user_id: str, server: models.Server) -> bool:
    return server.owner_id == user_id


# --- Pool ---
def can_read_pool(user_id: str, pool: models.Pool, is_contributor: bool) -> bool:
    return pool.owner_id == user_id or is_contributor or bool(pool.is_public)

def can_modify_pool(user_id: str, pool: models.Pool) -> bool:
    return pool.owner_id == user_id


# --- PoolContributor ---
def can_read_contributors(user_id: str, pool: models.Pool, is_contributor: bool) -> bool:
    # 공개 풀이라도 기여자 목록은 멤버에게만 보입니다.
    return pool.owner_id == user_id or is_contributor

def can_modify_contributor(user_id: str, contributor: models.PoolContributor, pool: models.Pool) -> bool:
    return pool.owner_id == user_id or contributor.user_id == user_id


# --- ServerPoolAssignment ---
def can_manage_assignment(user_id: str, server: models.Server) -> bool:
    return server.owner_id == user_id
