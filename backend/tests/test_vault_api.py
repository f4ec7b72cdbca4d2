"""
Vault API tests

Runs the HTTP surface against a fresh simulation per test.
"""
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.main import app  # noqa: E402
from app.core.simulation import build_simulation, load_config, reset_simulation  # noqa: E402

TEST_CONFIG = {
    "vault": {
        "base_threshold": 3600,
        "limit_threshold": 1200,
        "rebalance_cooldown": 0,
        "protocol_fee": 100000
    },
    "pool": {"initial_tick": 0, "tick_spacing": 60, "fee": 3000}
}


@pytest.fixture
def client():
    reset_simulation(TEST_CONFIG)
    return TestClient(app)


@pytest.fixture
def funded(client):
    """alice funded, oracle history warmed up"""
    client.post("/api/v1/sim/faucet", json={"holder": "alice", "amount0": 10**12, "amount1": 10**12})
    client.post("/api/v1/sim/advance", json={"seconds": 3600})
    return client


def deposit(client, amount0=10**6, amount1=10**6, sender="alice"):
    return client.post("/api/v1/vault/deposit", json={
        "amount0_desired": amount0,
        "amount1_desired": amount1,
        "to": sender,
        "sender": sender
    })


class TestHealth:
    """Health and root endpoints"""

    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["health"] == "/api/v1/health"


class TestConfigLoading:
    """Config file discovery"""

    def test_shipped_config_found(self):
        raw = load_config()
        assert raw["vault"]["base_threshold"] == 3600
        assert raw["pool"]["tick_spacing"] == 60

    def test_simulation_built_from_config_file(self):
        env = build_simulation()
        assert env.vault.config.base_threshold == 3600
        assert env.vault.config.protocol_fee == 100000
        assert env.vault.config.version == 1
        assert env.pool.tick_spacing == 60
        assert env.pool.fee == 3000


class TestDepositWithdraw:
    """Share issuance over HTTP"""

    def test_bootstrap_deposit(self, funded):
        response = deposit(funded)
        assert response.status_code == 200
        body = response.json()
        assert body["shares"] > 0
        assert body["amount0"] <= 10**6
        assert body["amount1"] <= 10**6

        state = funded.get("/api/v1/vault").json()
        assert state["total_supply"] == body["shares"] + 1000
        assert state["base_liquidity"] == state["total_supply"]

        balances = funded.get("/api/v1/sim/balances/alice").json()
        assert balances["shares"] == body["shares"]

    def test_zero_amounts_rejected(self, funded):
        response = deposit(funded, 0, 0)
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "zero amounts"

    def test_negative_amount_fails_validation(self, funded):
        response = deposit(funded, -1, 10)
        assert response.status_code == 422

    def test_withdraw_all(self, funded):
        shares = deposit(funded).json()["shares"]
        response = funded.post("/api/v1/vault/withdraw", json={
            "shares": shares, "to": "alice", "sender": "alice"
        })
        assert response.status_code == 200
        assert response.json()["amount0"] > 0

        state = funded.get("/api/v1/vault").json()
        assert state["total_supply"] == 1000

    def test_withdraw_more_than_held(self, funded):
        shares = deposit(funded).json()["shares"]
        response = funded.post("/api/v1/vault/withdraw", json={
            "shares": shares + 1, "to": "alice", "sender": "alice"
        })
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "insufficient shares"


class TestRebalance:
    """Keeper operations over HTTP"""

    def test_rebalance(self, funded):
        deposit(funded)
        response = funded.post("/api/v1/vault/rebalance", json={"sender": "keeper"})
        assert response.status_code == 200
        body = response.json()
        assert body["tick"] == 0
        assert body["base_range"] == {"tick_lower": -3600, "tick_upper": 3660}
        assert body["base_range"] != body["limit_range"]

    def test_oracle_history_too_short(self, client):
        client.post("/api/v1/sim/faucet", json={"holder": "alice", "amount0": 10**12, "amount1": 10**12})
        deposit(client)
        response = client.post("/api/v1/vault/rebalance", json={"sender": "keeper"})
        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "oracle history too short"

    def test_swap_moves_pool(self, funded):
        funded.post("/api/v1/sim/faucet", json={"holder": "alice", "amount0": 10**12, "amount1": 10**12})
        deposit(funded, 10**12, 10**12)
        response = funded.post("/api/v1/sim/swap", json={
            "trader": "alice", "zero_for_one": True, "amount_in": 10**6
        })
        assert response.status_code == 200
        body = response.json()
        assert body["amount0"] == 10**6
        assert body["amount1"] < 0
        assert body["tick"] <= 0


class TestGovernance:
    """Role checks and fee buckets"""

    def test_collect_requires_governance(self, funded):
        response = funded.post("/api/v1/vault/fees/protocol", json={
            "amount0": 0, "amount1": 0, "to": "eve", "sender": "eve"
        })
        assert response.status_code == 403
        assert response.json()["detail"]["reason"] == "governance only"

    def test_unknown_bucket(self, funded):
        response = funded.post("/api/v1/vault/fees/other", json={
            "amount0": 0, "amount1": 0, "to": "eve", "sender": "governance"
        })
        assert response.status_code == 404

    def test_config_update(self, funded):
        response = funded.post("/api/v1/vault/config", json={
            "sender": "eve", "changes": {"protocol_fee": 0}
        })
        assert response.status_code == 403

        response = funded.post("/api/v1/vault/config", json={
            "sender": "governance", "changes": {"protocol_fee": 50000}
        })
        assert response.status_code == 200
        assert response.json()["protocol_fee"] == 50000
        assert response.json()["version"] == 2

    def test_invalid_config_rejected(self, funded):
        response = funded.post("/api/v1/vault/config", json={
            "sender": "governance", "changes": {"protocol_fee": 10**6}
        })
        assert response.status_code == 400

    def test_reserved_key_rejected(self, funded):
        response = funded.post("/api/v1/vault/config", json={
            "sender": "governance", "changes": {"sender": "x"}
        })
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "invalid config"

class TestSimulation:
    """Clock and reset"""

    def test_advance(self, client):
        before = client.get("/api/v1/sim/status").json()["timestamp"]
        response = client.post("/api/v1/sim/advance", json={"seconds": 60})
        assert response.json()["timestamp"] == before + 60

    def test_reset(self, funded):
        deposit(funded)
        reset_simulation(TEST_CONFIG)
        assert funded.get("/api/v1/vault").json()["total_supply"] == 0
