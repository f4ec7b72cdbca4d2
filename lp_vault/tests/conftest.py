"""
공통 fixture

기본 환경: tick 0, tick spacing 60, 0.30% 풀, base ±3600, limit 1200.
풀 생성 후 1시간을 흘려 TWAP 기록을 확보합니다.
"""

import pytest

from ..sim import SimEnvironment
from ..vault import VaultConfig

FULL_RANGE = (-887220, 887220)


@pytest.fixture
def config():
    return VaultConfig(
        base_threshold=3600,
        limit_threshold=1200,
        max_twap_deviation=100,
        twap_duration=60,
        rebalance_cooldown=0,
        protocol_fee=0,
    )


@pytest.fixture
def env(config):
    env = SimEnvironment.create(config, initial_tick=0, tick_spacing=60, fee=3000)
    env.advance(3600)
    env.faucet("alice", 10**12, 10**12)
    env.faucet("bob", 10**12, 10**12)
    return env


@pytest.fixture
def bootstrapped(env):
    """alice 가 1e6 / 1e6 으로 최초 예치한 환경"""
    env.vault.deposit(10**6, 10**6, 0, 0, "alice", sender="alice")
    return env


@pytest.fixture
def deep_env(env):
    """외부 LP 가 전 구간에 큰 유동성을 공급한 환경 (스왑 테스트용)"""
    env.faucet("lp", 10**14, 10**14)
    env.faucet("trader", 10**14, 10**14)
    env.add_liquidity("lp", FULL_RANGE[0], FULL_RANGE[1], 10**12)
    return env
