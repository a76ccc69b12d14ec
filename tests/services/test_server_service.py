# tests/services/test_server_service.py
import pytest
from unittest.mock import MagicMock

from serverpool.services.server_service import ServerService, build_game_type
from serverpool.services.exceptions import *
from serverpool.repositories.interfaces import (
    IServerRepository, IPoolRepository, IContributorRepository, IAssignmentRepository
)
from serverpool.database import models

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_server_repo() -> MagicMock:
    repo = MagicMock(spec=IServerRepository)
    repo.create.side_effect = lambda s: (setattr(s, "id", "server-new") or s)
    repo.update.side_effect = lambda s: s
    return repo

@pytest.fixture
def mock_pool_repo() -> MagicMock:
    return MagicMock(spec=IPoolRepository)

@pytest.fixture
def mock_contributor_repo() -> MagicMock:
    return MagicMock(spec=IContributorRepository)

@pytest.fixture
def mock_assignment_repo() -> MagicMock:
    repo = MagicMock(spec=IAssignmentRepository)
    repo.create.side_effect = lambda a: (setattr(a, "id", "assign-new") or a)
    return repo

@pytest.fixture
def server_service(mock_server_repo, mock_pool_repo, mock_contributor_repo, mock_assignment_repo) -> ServerService:
    """테스트에 사용될 ServerService 인스턴스를 생성하고, 의존성을 주입합니다."""
    return ServerService(mock_server_repo, mock_pool_repo, mock_contributor_repo, mock_assignment_repo)

def make_server(**overrides):
    values = dict(id="server-1", owner_id="owner", name="Survival", game_type="terraria", status="offline", max_players=10, current_players=0)
    values.update(overrides)
    return models.Server(**values)

# ===================================================================
#  서버 생성/상태 테스트
# ===================================================================
class TestServers:
    def test_build_game_type_for_minecraft(self):
        assert build_game_type("minecraft") == "minecraft:paper:1.21.4"
        assert build_game_type("minecraft", "fabric", "1.20.1") == "minecraft:fabric:1.20.1"
        assert build_game_type("valheim") == "valheim"

    def test_build_game_type_rejects_unknown_game(self):
        with pytest.raises(ValidationError):
            build_game_type("tetris")

    def test_create_server_defaults(self, server_service, mock_server_repo):
        # === Act ===
        server = server_service.create_server("owner", "Survival", "minecraft", mc_server_type="vanilla", port="25565")

        # === Assert ===
        assert server["id"] == "server-new"
        assert server["status"] == "offline"
        assert server["max_players"] == 10
        assert server["port"] == 25565
        assert server["game_type"] == "minecraft:vanilla:1.21.4"

    def test_create_server_requires_game_type(self, server_service, mock_server_repo):
        with pytest.raises(ValidationError, match="game_type is required"):
            server_service.create_server("owner", "Survival", None)
        mock_server_repo.create.assert_not_called()

    def test_update_status(self, server_service, mock_server_repo):
        server = make_server()
        mock_server_repo.find_by_id.return_value = server

        result = server_service.update_status("owner", "server-1", "online", current_players=3)

        assert result["status"] == "online"
        assert result["current_players"] == 3

    def test_update_status_rejects_unknown_status(self, server_service, mock_server_repo):
        with pytest.raises(ValidationError):
            server_service.update_status("owner", "server-1", "exploded")
        mock_server_repo.find_by_id.assert_not_called()

    def test_foreign_server_is_not_found(self, server_service, mock_server_repo):
        """다른 사용자의 서버는 존재하지 않는 것처럼 보입니다."""
        mock_server_repo.find_by_id.return_value = make_server(owner_id="someone-else")

        with pytest.raises(ServerNotFoundError):
            server_service.delete_server("owner", "server-1")
        mock_server_repo.delete.assert_not_called()

# ===================================================================
#  서버-풀 할당 테스트
# ===================================================================
class TestAssignments:
    def test_assign_to_visible_pool(self, server_service, mock_server_repo, mock_pool_repo, mock_contributor_repo, mock_assignment_repo):
        # === Arrange ===
        mock_server_repo.find_by_id.return_value = make_server()
        mock_pool_repo.find_by_id.return_value = models.Pool(id="pool-1", owner_id="other", is_public=False)
        # 시나리오: 서버 소유자는 이 풀의 기여자
        mock_contributor_repo.find_by_pool_and_user.return_value = models.PoolContributor(id="c1")

        # === Act ===
        assignment = server_service.assign_to_pool("owner", "server-1", "pool-1", allocated_cpu=2, allocated_ram_gb=4)

        # === Assert ===
        assert assignment["id"] == "assign-new"
        assert assignment["allocated_cpu"] == 2
        assert assignment["allocated_ram_gb"] == 4.0
        assert assignment["allocated_storage_gb"] == 0

    def test_assign_to_invisible_pool_fails(self, server_service, mock_server_repo, mock_pool_repo, mock_contributor_repo, mock_assignment_repo):
        mock_server_repo.find_by_id.return_value = make_server()
        mock_pool_repo.find_by_id.return_value = models.Pool(id="pool-1", owner_id="other", is_public=False)
        mock_contributor_repo.find_by_pool_and_user.return_value = None

        with pytest.raises(PoolNotFoundError):
            server_service.assign_to_pool("owner", "server-1", "pool-1")
        mock_assignment_repo.create.assert_not_called()

    def test_only_server_owner_can_unassign(self, server_service, mock_server_repo, mock_assignment_repo):
        mock_assignment_repo.find_by_id.return_value = models.ServerPoolAssignment(id="a1", server_id="server-1", pool_id="pool-1")
        mock_server_repo.find_by_id.return_value = make_server(owner_id="owner")

        with pytest.raises(AssignmentNotFoundError):
            server_service.unassign("pool-owner", "a1")
        mock_assignment_repo.delete.assert_not_called()

        assert server_service.unassign("owner", "a1") is True
        mock_assignment_repo.delete.assert_called_once()
