import logging
from typing import Any, Dict, List, Optional

from serverpool.database import models
from serverpool.repositories.interfaces import (
    IServerRepository, IPoolRepository, IContributorRepository, IAssignmentRepository
)
from serverpool.services import policy
from serverpool.services.serializers import serialize_server, serialize_assignment
from serverpool.services.validation import require, coerce_cpu, coerce_resource
from serverpool.services.exceptions import (
    ValidationError, ServerNotFoundError, PoolNotFoundError, AssignmentNotFoundError
)

logger = logging.getLogger(__name__)

GAME_TYPES = ("minecraft", "terraria", "valheim", "custom")
MINECRAFT_SERVER_TYPES = (
    "vanilla", "paper", "purpur", "spigot", "bukkit", "fabric",
    "forge", "velocity", "bungeecord", "waterfall", "sponge",
)
DEFAULT_MINECRAFT_SERVER_TYPE = "paper"
DEFAULT_MINECRAFT_VERSION = "1.21.4"
DEFAULT_MAX_PLAYERS = 10


def build_game_type(game_type: str, mc_server_type: Optional[str] = None, mc_version: Optional[str] = None) -> str:
    """
    저장할 game_type 문자열을 만듭니다.
    Minecraft는 서버 종류와 버전을 'minecraft:<server_type>:<version>' 형식으로 함께 저장합니다.
    """
    if game_type not in GAME_TYPES:
        raise ValidationError(f"game_type must be one of: {', '.join(GAME_TYPES)}")
    if game_type != "minecraft":
        return game_type

    server_type = mc_server_type or DEFAULT_MINECRAFT_SERVER_TYPE
    if server_type not in MINECRAFT_SERVER_TYPES:
        raise ValidationError(f"Unknown Minecraft server type '{server_type}'")
    return f"minecraft:{server_type}:{mc_version or DEFAULT_MINECRAFT_VERSION}"


def _optional_int(field_name: str, value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


class ServerService:
    """게임 서버 선언과 서버-풀 할당을 관리합니다. 서버는 소유자만 보고 수정할 수 있습니다."""

    def __init__(
        self,
        server_repo: IServerRepository,
        pool_repo: IPoolRepository,
        contributor_repo: IContributorRepository,
        assignment_repo: IAssignmentRepository,
    ):
        self.server_repo = server_repo
        self.pool_repo = pool_repo
        self.contributor_repo = contributor_repo
        self.assignment_repo = assignment_repo

    def _find_owned_server(self, user_id: str, server_id: str) -> models.Server:
        server = self.server_repo.find_by_id(server_id)
        if not server or not policy.can_read_server(user_id, server):
            raise ServerNotFoundError("Server not found")
        return server

    def create_server(
        self,
        owner_id: str,
        name: Optional[str],
        game_type: Optional[str],
        description: Optional[str] = None,
        max_players: Any = None,
        port: Any = None,
        mc_server_type: Optional[str] = None,
        mc_version: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        새로운 서버를 선언합니다. 상태는 'offline'으로 시작합니다.

        Raises:
            ValidationError: name 또는 game_type이 없거나 값이 올바르지 않을 때.
        """
        require(name, "name")
        require(game_type, "game_type")
        server = self.server_repo.create(models.Server(
            owner_id=owner_id,
            name=name,
            game_type=build_game_type(game_type, mc_server_type, mc_version),
            description=description or None,
            status="offline",
            max_players=_optional_int("max_players", max_players) or DEFAULT_MAX_PLAYERS,
            current_players=0,
            port=_optional_int("port", port),
        ))
        logger.info("Server created: %s (%s) by %s", server.id, server.game_type, owner_id)
        return serialize_server(server)

    def list_servers(self, owner_id: str) -> List[Dict[str, Any]]:
        return [serialize_server(s) for s in self.server_repo.list_by_owner_id(owner_id)]

    def update_status(self, user_id: str, server_id: str, status: Optional[str], current_players: Any = None) -> Dict[str, Any]:
        """
        서버의 선언 상태와 현재 인원을 갱신합니다.

        Raises:
            ValidationError: status가 허용되지 않는 값일 때.
            ServerNotFoundError: 서버가 없거나 호출자 소유가 아닐 때.
        """
        require(status, "status")
        if status not in models.SERVER_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(models.SERVER_STATUSES)}")
        server = self._find_owned_server(user_id, server_id)

        server.status = status
        players = _optional_int("current_players", current_players)
        if players is not None:
            if players < 0 or (server.max_players is not None and players > server.max_players):
                raise ValidationError("current_players must be between 0 and max_players")
            server.current_players = players
        return serialize_server(self.server_repo.update(server))

    def delete_server(self, user_id: str, server_id: str) -> bool:
        server = self._find_owned_server(user_id, server_id)
        self.server_repo.delete(server)
        return True

    def assign_to_pool(
        self,
        user_id: str,
        server_id: str,
        pool_id: Optional[str],
        allocated_cpu: Any = None,
        allocated_ram_gb: Any = None,
        allocated_storage_gb: Any = None,
    ) -> Dict[str, Any]:
        """
        서버를 풀에 할당합니다. 호출자는 서버 소유자여야 하고, 풀을 볼 수 있어야 합니다.

        Raises:
            ValidationError: pool_id가 없거나 할당량이 올바르지 않을 때.
            ServerNotFoundError: 서버가 없거나 호출자 소유가 아닐 때.
            PoolNotFoundError: 풀이 없거나 호출자가 볼 수 없을 때.
            AssignmentAlreadyExistsError: 이미 같은 풀에 할당되어 있을 때.
        """
        require(pool_id, "pool_id")
        server = self._find_owned_server(user_id, server_id)
        pool = self.pool_repo.find_by_id(pool_id)
        is_contributor = pool is not None and self.contributor_repo.find_by_pool_and_user(pool.id, user_id) is not None
        if not pool or not policy.can_read_pool(user_id, pool, is_contributor):
            raise PoolNotFoundError("Pool not found")

        assignment = self.assignment_repo.create(models.ServerPoolAssignment(
            server_id=server.id,
            pool_id=pool.id,
            allocated_cpu=coerce_cpu("allocated_cpu", allocated_cpu) or 0,
            allocated_ram_gb=coerce_resource("allocated_ram_gb", allocated_ram_gb) or 0,
            allocated_storage_gb=coerce_resource("allocated_storage_gb", allocated_storage_gb) or 0,
        ))
        logger.info("Server %s assigned to pool %s", server.id, pool.id)
        return serialize_assignment(assignment)

    def list_assignments(self, user_id: str, server_id: str) -> List[Dict[str, Any]]:
        server = self._find_owned_server(user_id, server_id)
        return [serialize_assignment(a) for a in self.assignment_repo.list_by_server_id(server.id)]

    def unassign(self, user_id: str, assignment_id: str) -> bool:
        """
        Raises:
            AssignmentNotFoundError: 할당이 없거나 호출자가 서버 소유자가 아닐 때.
        """
        assignment = self.assignment_repo.find_by_id(assignment_id)
        server = self.server_repo.find_by_id(assignment.server_id) if assignment else None
        if not server or not policy.can_manage_assignment(user_id, server):
            raise AssignmentNotFoundError("Assignment not found")
        self.assignment_repo.delete(assignment)
        return True
