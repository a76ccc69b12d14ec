# tests/services/test_agent_service.py
import pytest
from unittest.mock import MagicMock

from serverpool.services.agent_service import AgentService, REGISTERED_MESSAGE, RECONNECTED_MESSAGE
from serverpool.services.aggregator import PoolTotalsAggregator
from serverpool.services.exceptions import *
from serverpool.repositories.interfaces import IPoolRepository, IContributorRepository
from serverpool.database import models

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_pool_repo() -> MagicMock:
    """IPoolRepository에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=IPoolRepository)

@pytest.fixture
def mock_contributor_repo() -> MagicMock:
    """IContributorRepository에 대한 모의 객체를 생성합니다."""
    repo = MagicMock(spec=IContributorRepository)
    # update/create는 전달받은 모델을 그대로 돌려준다고 가정
    repo.update.side_effect = lambda c: c
    return repo

@pytest.fixture
def mock_aggregator() -> MagicMock:
    """PoolTotalsAggregator에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=PoolTotalsAggregator)

@pytest.fixture
def agent_service(mock_pool_repo, mock_contributor_repo, mock_aggregator) -> AgentService:
    """테스트에 사용될 AgentService 인스턴스를 생성하고, 의존성을 주입합니다."""
    return AgentService(mock_pool_repo, mock_contributor_repo, mock_aggregator)

def make_pool(**overrides) -> models.Pool:
    values = dict(id="pool-1", owner_id="owner", name="LAN Party", invite_code="ABCD1234", is_public=False)
    values.update(overrides)
    return models.Pool(**values)

def make_contributor(**overrides) -> models.PoolContributor:
    values = dict(id="contrib-1", pool_id="pool-1", user_id="user-1", cpu_cores=4, ram_gb=8.0, storage_gb=50.0, status="online")
    values.update(overrides)
    return models.PoolContributor(**values)

# ===================================================================
#  register 테스트
# ===================================================================
class TestRegister:
    def test_register_new_contributor(self, agent_service, mock_pool_repo, mock_contributor_repo, mock_aggregator):
        """기존 레코드가 없으면 온라인 기여자를 새로 만들고 '등록' 메시지를 반환합니다."""
        # === Arrange ===
        mock_pool_repo.find_by_id.return_value = make_pool()
        mock_contributor_repo.find_by_pool_and_user.return_value = None
        mock_contributor_repo.create.side_effect = lambda c: (setattr(c, "id", "new-contrib") or c)

        # === Act ===
        result = agent_service.register("user-1", "pool-1", cpu_cores=4)

        # === Assert ===
        assert result == {
            "success": True,
            "contributor_id": "new-contrib",
            "pool_name": "LAN Party",
            "message": REGISTERED_MESSAGE,
        }
        created = mock_contributor_repo.create.call_args.args[0]
        assert created.status == "online"
        assert created.cpu_cores == 4
        assert created.ram_gb == 0
        assert created.storage_gb == 0
        assert created.last_seen is not None
        mock_aggregator.recompute.assert_called_once_with("pool-1")

    def test_register_existing_contributor_overwrites_all_resources(self, agent_service, mock_pool_repo, mock_contributor_repo, mock_aggregator):
        """재등록은 전체 덮어쓰기입니다. 생략된 리소스 필드는 0이 됩니다."""
        # === Arrange ===
        existing = make_contributor(status="offline", cpu_cores=8, ram_gb=16.0, storage_gb=100.0)
        mock_pool_repo.find_by_id.return_value = make_pool()
        mock_contributor_repo.find_by_pool_and_user.return_value = existing

        # === Act ===
        result = agent_service.register("user-1", "pool-1", cpu_cores=2)

        # === Assert ===
        assert result["message"] == RECONNECTED_MESSAGE
        assert result["contributor_id"] == "contrib-1"
        assert existing.status == "online"
        assert (existing.cpu_cores, existing.ram_gb, existing.storage_gb) == (2, 0, 0)
        mock_contributor_repo.create.assert_not_called()
        mock_contributor_repo.update.assert_called_once_with(existing)
        mock_aggregator.recompute.assert_called_once_with("pool-1")

    def test_register_race_converts_insert_into_reconnect(self, agent_service, mock_pool_repo, mock_contributor_repo, mock_aggregator):
        """동시 등록으로 유일성 충돌이 나면 먼저 생성된 레코드를 갱신합니다."""
        # === Arrange ===
        winner = make_contributor(id="winner", cpu_cores=1)
        mock_pool_repo.find_by_id.return_value = make_pool()
        # 시나리오: 처음 조회할 때는 없었지만, 삽입 시점에는 다른 요청이 먼저 만들었음
        mock_contributor_repo.find_by_pool_and_user.side_effect = [None, winner]
        mock_contributor_repo.create.side_effect = ContributorAlreadyExistsError("duplicate")

        # === Act ===
        result = agent_service.register("user-1", "pool-1", cpu_cores=6, ram_gb=12, storage_gb=30)

        # === Assert ===
        assert result["contributor_id"] == "winner"
        assert result["message"] == RECONNECTED_MESSAGE
        assert (winner.cpu_cores, winner.ram_gb, winner.storage_gb) == (6, 12.0, 30.0)
        mock_contributor_repo.update.assert_called_once_with(winner)
        mock_aggregator.recompute.assert_called_once_with("pool-1")

    def test_register_requires_pool_id(self, agent_service, mock_pool_repo):
        """pool_id가 없으면 ValidationError가 발생합니다."""
        with pytest.raises(ValidationError, match="pool_id is required"):
            agent_service.register("user-1", None)
        mock_pool_repo.find_by_id.assert_not_called()

    def test_register_unknown_pool(self, agent_service, mock_pool_repo, mock_contributor_repo, mock_aggregator):
        """존재하지 않는 풀이면 PoolNotFoundError가 발생하고 아무것도 바뀌지 않습니다."""
        mock_pool_repo.find_by_id.return_value = None

        with pytest.raises(PoolNotFoundError, match="Pool not found"):
            agent_service.register("user-1", "missing-pool", cpu_cores=4)
        mock_contributor_repo.create.assert_not_called()
        mock_aggregator.recompute.assert_not_called()

    def test_register_rejects_negative_resources(self, agent_service, mock_pool_repo):
        """음수 리소스는 ValidationError입니다."""
        with pytest.raises(ValidationError):
            agent_service.register("user-1", "pool-1", ram_gb=-1)
        mock_pool_repo.find_by_id.assert_not_called()

    @pytest.mark.parametrize("field", ["cpu_cores", "ram_gb", "storage_gb"])
    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_register_rejects_non_finite_resources(self, agent_service, mock_pool_repo, mock_contributor_repo, mock_aggregator, field, value):
        """NaN/Infinity는 합계를 오염시키므로 ValidationError입니다."""
        with pytest.raises(ValidationError, match="must be a finite number"):
            agent_service.register("user-1", "pool-1", **{field: value})
        mock_pool_repo.find_by_id.assert_not_called()
        mock_contributor_repo.create.assert_not_called()
        mock_aggregator.recompute.assert_not_called()

# ===================================================================
#  heartbeat 테스트
# ===================================================================
class TestHeartbeat:
    def test_status_only_heartbeat_preserves_resources(self, agent_service, mock_contributor_repo, mock_aggregator):
        """status만 보낸 하트비트는 리소스 값을 유지하고, 상태가 그대로면 재집계하지 않습니다."""
        # === Arrange ===
        contributor = make_contributor()
        mock_contributor_repo.find_owned.return_value = contributor

        # === Act ===
        result = agent_service.heartbeat("user-1", "contrib-1", status="online")

        # === Assert ===
        assert result == {"success": True, "message": "Heartbeat received"}
        assert (contributor.cpu_cores, contributor.ram_gb, contributor.storage_gb) == (4, 8.0, 50.0)
        assert contributor.last_seen is not None
        mock_contributor_repo.find_owned.assert_called_once_with("contrib-1", "user-1")
        mock_aggregator.recompute.assert_not_called()

    def test_partial_resource_heartbeat_updates_only_given_fields(self, agent_service, mock_contributor_repo, mock_aggregator):
        """요청에 포함된 리소스 필드만 바뀌고, 재집계가 실행됩니다."""
        contributor = make_contributor()
        mock_contributor_repo.find_owned.return_value = contributor

        agent_service.heartbeat("user-1", "contrib-1", ram_gb=32)

        assert contributor.ram_gb == 32.0
        assert contributor.cpu_cores == 4
        assert contributor.storage_gb == 50.0
        mock_aggregator.recompute.assert_called_once_with("pool-1")

    def test_heartbeat_defaults_status_to_online(self, agent_service, mock_contributor_repo, mock_aggregator):
        """status가 없으면 online으로 간주하며, 오프라인에서 돌아오면 재집계합니다."""
        contributor = make_contributor(status="offline")
        mock_contributor_repo.find_owned.return_value = contributor

        agent_service.heartbeat("user-1", "contrib-1")

        assert contributor.status == "online"
        mock_aggregator.recompute.assert_called_once_with("pool-1")

    def test_heartbeat_on_foreign_contributor_fails(self, agent_service, mock_contributor_repo, mock_aggregator):
        """다른 사용자의 기여자 ID로는 하트비트를 보낼 수 없습니다."""
        # 시나리오: 호출자 범위 조회 결과가 없음 (ID는 존재하지만 소유자가 다름)
        mock_contributor_repo.find_owned.return_value = None

        with pytest.raises(ContributorNotFoundError):
            agent_service.heartbeat("intruder", "contrib-1", cpu_cores=64)
        mock_contributor_repo.update.assert_not_called()
        mock_aggregator.recompute.assert_not_called()

    def test_heartbeat_rejects_unknown_status(self, agent_service, mock_contributor_repo):
        with pytest.raises(ValidationError):
            agent_service.heartbeat("user-1", "contrib-1", status="sleeping")
        mock_contributor_repo.find_owned.assert_not_called()

    def test_heartbeat_requires_contributor_id(self, agent_service):
        with pytest.raises(ValidationError, match="contributor_id is required"):
            agent_service.heartbeat("user-1", "")

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_heartbeat_rejects_non_finite_resources(self, agent_service, mock_contributor_repo, mock_aggregator, value):
        with pytest.raises(ValidationError, match="storage_gb must be a finite number"):
            agent_service.heartbeat("user-1", "contrib-1", storage_gb=value)
        mock_contributor_repo.find_owned.assert_not_called()
        mock_contributor_repo.update.assert_not_called()
        mock_aggregator.recompute.assert_not_called()

# ===================================================================
#  disconnect 테스트
# ===================================================================
class TestDisconnect:
    def test_disconnect_marks_offline_and_recomputes(self, agent_service, mock_contributor_repo, mock_aggregator):
        """연결 해제 시 오프라인으로 바뀌고, 풀 합계가 즉시 재계산됩니다."""
        contributor = make_contributor()
        mock_contributor_repo.find_owned.return_value = contributor

        result = agent_service.disconnect("user-1", "contrib-1")

        assert result == {"success": True, "message": "Agent disconnected"}
        assert contributor.status == "offline"
        mock_contributor_repo.update.assert_called_once_with(contributor)
        mock_aggregator.recompute.assert_called_once_with("pool-1")

    def test_disconnect_foreign_contributor_fails(self, agent_service, mock_contributor_repo, mock_aggregator):
        mock_contributor_repo.find_owned.return_value = None

        with pytest.raises(ContributorNotFoundError):
            agent_service.disconnect("intruder", "contrib-1")
        mock_aggregator.recompute.assert_not_called()

# ===================================================================
#  조회 연산 테스트
# ===================================================================
class TestLookups:
    def test_list_pools_returns_minimal_records(self, agent_service, mock_pool_repo):
        mock_pool_repo.list_by_contributor_user_id.return_value = [make_pool(id="p-c", name="Joined", invite_code="JOIN0001")]
        mock_pool_repo.list_by_owner_id.return_value = [make_pool(id="p-o", name="Mine", invite_code="MINE0001")]

        result = agent_service.list_pools("user-1")

        assert result == {
            "contributed_pools": [{"id": "p-c", "name": "Joined", "invite_code": "JOIN0001"}],
            "owned_pools": [{"id": "p-o", "name": "Mine", "invite_code": "MINE0001"}],
        }

    def test_get_pool_visible_to_contributor(self, agent_service, mock_pool_repo, mock_contributor_repo):
        mock_pool_repo.find_by_id.return_value = make_pool(total_cpu_cores=4, total_ram_gb=8.0, total_storage_gb=50.0)
        mock_contributor_repo.find_by_pool_and_user.return_value = make_contributor()

        pool = agent_service.get_pool("user-1", "pool-1")

        assert pool["id"] == "pool-1"
        assert pool["total_cpu_cores"] == 4
        assert pool["invite_code"] == "ABCD1234"

    def test_get_private_pool_hidden_from_outsider(self, agent_service, mock_pool_repo, mock_contributor_repo):
        """멤버가 아닌 사용자에게 비공개 풀은 존재하지 않는 것처럼 보입니다."""
        mock_pool_repo.find_by_id.return_value = make_pool()
        mock_contributor_repo.find_by_pool_and_user.return_value = None

        with pytest.raises(PoolNotFoundError):
            agent_service.get_pool("outsider", "pool-1")

    def test_get_public_pool_visible_to_anyone(self, agent_service, mock_pool_repo, mock_contributor_repo):
        mock_pool_repo.find_by_id.return_value = make_pool(is_public=True)
        mock_contributor_repo.find_by_pool_and_user.return_value = None

        assert agent_service.get_pool("outsider", "pool-1")["is_public"] is True

    def test_lookup_invite(self, agent_service, mock_pool_repo, mock_contributor_repo):
        """초대 코드 조회는 풀 정보만 돌려주고 멤버십을 만들지 않습니다."""
        mock_pool_repo.find_by_invite_code.return_value = make_pool()

        result = agent_service.lookup_invite("ABCD1234")

        assert result["pool_id"] == "pool-1"
        assert result["pool_name"] == "LAN Party"
        mock_contributor_repo.create.assert_not_called()

    def test_lookup_invalid_invite(self, agent_service, mock_pool_repo):
        mock_pool_repo.find_by_invite_code.return_value = None

        with pytest.raises(InviteCodeNotFoundError, match="Invalid invite code"):
            agent_service.lookup_invite("NOPE")
