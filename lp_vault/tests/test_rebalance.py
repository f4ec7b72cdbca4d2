"""
Rebalance 테스트

쿨다운, keeper 권한, TWAP staleness, 스왑, 수수료 분배, 보존 법칙.
"""

import pytest

from ..errors import BoundsViolation, PreconditionViolation, StalenessViolation, UnauthorizedCaller
from ..sim import SimEnvironment
from ..vault.rebalance import RebalanceState


class TestRebalanceCycle:
    """기본 재배치"""

    def test_conserves_value(self, bootstrapped):
        """스왑 없는 rebalance 는 반올림 이상의 가치를 잃지 않음"""
        vault = bootstrapped.vault
        before = vault.get_total_amounts()

        report = vault.rebalance(sender="keeper")

        after = vault.get_total_amounts()
        assert before[0] - 10 <= after[0] <= before[0]
        assert before[1] - 10 <= after[1] <= before[1]
        assert report.base_range == vault.base_range
        assert report.limit_range == vault.limit_range
        assert vault.base_range != vault.limit_range
        assert vault.last_rebalance == bootstrapped.clock()
        assert vault._engine.state is RebalanceState.IDLE

    def test_keeper_only_when_set(self, bootstrapped):
        vault = bootstrapped.vault
        vault.set_keeper("keeper", sender="governance")
        with pytest.raises(UnauthorizedCaller):
            vault.rebalance(sender="eve")
        assert vault._engine.state is RebalanceState.IDLE
        vault.rebalance(sender="keeper")


class TestCooldown:
    """now >= last_rebalance + cooldown"""

    def test_second_rebalance_waits(self, bootstrapped):
        vault = bootstrapped.vault
        vault.set_rebalance_cooldown(3600, sender="governance")
        vault.rebalance(sender="keeper")

        with pytest.raises(PreconditionViolation) as exc_info:
            vault.rebalance(sender="keeper")
        assert exc_info.value.reason == "cooldown"
        assert vault._engine.state is RebalanceState.IDLE

        bootstrapped.advance(3599)
        with pytest.raises(PreconditionViolation):
            vault.rebalance(sender="keeper")

        bootstrapped.advance(1)
        vault.rebalance(sender="keeper")


class TestStaleness:
    """가격 조작 직후의 rebalance 거부"""

    def test_twap_deviation_rejected_until_twap_catches_up(self, deep_env):
        env = deep_env
        env.vault.deposit(10**6, 10**6, 0, 0, "alice", sender="alice")
        env.swap("trader", False, 2 * 10**10)
        assert env.pool.tick > 100

        before = env.vault.state()
        with pytest.raises(StalenessViolation) as exc_info:
            env.vault.rebalance(sender="keeper")
        assert exc_info.value.reason == "max twap deviation"
        assert env.vault.state() == before
        assert env.vault._engine.state is RebalanceState.IDLE

        env.advance(60)
        report = env.vault.rebalance(sender="keeper")
        assert report.twap == env.pool.tick
        assert report.base_range.contains(env.pool.tick)

    def test_oracle_history_too_short(self, config):
        env = SimEnvironment.create(config)
        env.faucet("alice", 10**6, 10**6)
        env.vault.deposit(10**6, 10**6, 0, 0, "alice", sender="alice")
        with pytest.raises(StalenessViolation) as exc_info:
            env.vault.rebalance(sender="keeper")
        assert exc_info.value.reason == "oracle history too short"


class TestSwap:
    """rebalance 중 free balance 스왑"""

    def test_sell_token0(self, deep_env):
        env = deep_env
        vault = env.vault
        vault.deposit(10**6, 10**6, 0, 0, "alice", sender="alice")
        before = vault.get_total_amounts()

        vault.rebalance(swap_amount=100_000, sender="keeper")

        after = vault.get_total_amounts()
        assert after[0] < before[0] - 99_000
        assert after[1] > before[1] + 99_000
        assert env.pool.tick < 0

    def test_sell_token1(self, deep_env):
        env = deep_env
        vault = env.vault
        vault.deposit(10**6, 10**6, 0, 0, "alice", sender="alice")
        before = vault.get_total_amounts()

        vault.rebalance(swap_amount=-100_000, sender="keeper")

        after = vault.get_total_amounts()
        assert after[1] < before[1] - 99_000
        assert after[0] > before[0] + 99_000

    def test_swap_exceeding_free_balance_rolls_back(self, deep_env):
        env = deep_env
        vault = env.vault
        vault.deposit(10**6, 10**6, 0, 0, "alice", sender="alice")
        before = vault.state()

        with pytest.raises(BoundsViolation) as exc_info:
            vault.rebalance(swap_amount=10**9, sender="keeper")

        assert exc_info.value.reason == "swap exceeds free balance"
        assert vault.state() == before
        assert vault._engine.state is RebalanceState.IDLE


class TestFeeSplit:
    """10% 프로토콜 수수료: 1000 -> owner 50, team 50, 예치자 900"""

    def test_split_on_rebalance(self, bootstrapped):
        env = bootstrapped
        vault = env.vault
        vault.set_protocol_fee(100_000, sender="governance")
        env.faucet("donor", 1000, 0)
        env.pool.donate("donor", 1000, 0)

        report = vault.rebalance(sender="keeper")

        assert report.fees0 == 900
        assert report.fees1 == 0
        assert vault.accrued_protocol_fees == (50, 0)
        assert vault.accrued_team_fees == (50, 0)

    def test_buckets_excluded_from_balances(self, bootstrapped):
        env = bootstrapped
        vault = env.vault
        vault.set_protocol_fee(100_000, sender="governance")
        env.faucet("donor", 1000, 0)
        env.pool.donate("donor", 1000, 0)
        vault.rebalance(sender="keeper")

        held = env.token0.balance_of(vault.address)
        assert vault.get_balance0() == held - 100

    def test_collect_buckets(self, bootstrapped):
        env = bootstrapped
        vault = env.vault
        vault.set_protocol_fee(100_000, sender="governance")
        env.faucet("donor", 1000, 0)
        env.pool.donate("donor", 1000, 0)
        vault.rebalance(sender="keeper")

        with pytest.raises(UnauthorizedCaller):
            vault.collect_protocol(50, 0, "eve", sender="eve")
        with pytest.raises(BoundsViolation):
            vault.collect_protocol(51, 0, "treasury", sender="governance")

        vault.collect_protocol(50, 0, "treasury", sender="governance")
        vault.collect_team(50, 0, "team-wallet", sender="team")
        assert env.token0.balance_of("treasury") == 50
        assert env.token0.balance_of("team-wallet") == 50
        assert vault.accrued_protocol_fees == (0, 0)
        assert vault.accrued_team_fees == (0, 0)

    def test_withdraw_pays_fee_share(self, bootstrapped):
        """출금 시 수집된 수수료의 지분 비율을 함께 지급"""
        env = bootstrapped
        vault = env.vault
        alice_shares = env.shares.balance_of("alice")
        total = vault.total_supply()
        env.faucet("donor", 10**6, 0)
        env.pool.donate("donor", 10**6, 0)

        without_fees = vault.get_total_amounts()
        result = vault.withdraw(alice_shares, 0, 0, "alice", sender="alice")
        assert result.amount0 >= (without_fees[0] * alice_shares // total) - 5
