from datetime import datetime
from typing import Any, Dict, Optional

from serverpool.database import models


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_pool(pool: models.Pool) -> Dict[str, Any]:
    return {
        "id": pool.id,
        "owner_id": pool.owner_id,
        "name": pool.name,
        "description": pool.description,
        "invite_code": pool.invite_code,
        "is_public": bool(pool.is_public),
        "total_cpu_cores": pool.total_cpu_cores or 0,
        "total_ram_gb": pool.total_ram_gb or 0,
        "total_storage_gb": pool.total_storage_gb or 0,
        "created_at": _iso(pool.created_at),
        "updated_at": _iso(pool.updated_at),
    }


def serialize_pool_summary(pool: models.Pool) -> Dict[str, Any]:
    return {"id": pool.id, "name": pool.name, "invite_code": pool.invite_code}


def serialize_contributor(contributor: models.PoolContributor, display_name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": contributor.id,
        "pool_id": contributor.pool_id,
        "user_id": contributor.user_id,
        "display_name": display_name,
        "cpu_cores": contributor.cpu_cores or 0,
        "ram_gb": contributor.ram_gb or 0,
        "storage_gb": contributor.storage_gb or 0,
        "status": contributor.status,
        "last_seen": _iso(contributor.last_seen),
        "created_at": _iso(contributor.created_at),
    }


def serialize_server(server: models.Server) -> Dict[str, Any]:
    return {
        "id": server.id,
        "owner_id": server.owner_id,
        "name": server.name,
        "game_type": server.game_type,
        "description": server.description,
        "status": server.status,
        "max_players": server.max_players,
        "current_players": server.current_players,
        "port": server.port,
        "created_at": _iso(server.created_at),
        "updated_at": _iso(server.updated_at),
    }


def serialize_assignment(assignment: models.ServerPoolAssignment) -> Dict[str, Any]:
    return {
        "id": assignment.id,
        "server_id": assignment.server_id,
        "pool_id": assignment.pool_id,
        "allocated_cpu": assignment.allocated_cpu or 0,
        "allocated_ram_gb": assignment.allocated_ram_gb or 0,
        "allocated_storage_gb": assignment.allocated_storage_gb or 0,
        "created_at": _iso(assignment.created_at),
    }


def serialize_profile(profile: models.Profile) -> Dict[str, Any]:
    return {
        "user_id": profile.user_id,
        "display_name": profile.display_name,
        "avatar_url": profile.avatar_url,
        "created_at": _iso(profile.created_at),
        "updated_at": _iso(profile.updated_at),
    }
