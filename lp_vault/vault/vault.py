"""
Vault - 집중 유동성 vault 진입점

예치자에게 지분을 발행하고, 모은 자금을 base / limit 두 범위의 AMM 포지션으로
운용합니다. 모든 공개 작업은 GuardRail 아래에서 원자적으로 실행됩니다.

Python 에는 msg.sender 가 없으므로 공개 작업은 keyword-only `sender` 를 받습니다.

Example:
    >>> vault = Vault(pool, shares, config, governance="gov")
    >>> result = vault.deposit(10**18, 10**18, 0, 0, "alice", sender="alice")
    >>> vault.withdraw(result.shares, 0, 0, "alice", sender="alice")
"""

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Optional, Tuple

from ..constants import DEAD_ADDRESS, MINIMUM_LIQUIDITY
from ..errors import ArithmeticViolation, BoundsViolation, PreconditionViolation
from ..math import to_uint256
from .config import VaultConfig, WithdrawalBasis
from .fees import FeeDistributor
from .guard import GuardRail
from .interfaces import ConcentratedPool, ShareLedger
from .positions import PositionLedger, Settle
from .ranges import RangeSelector, check_threshold
from .rebalance import RebalanceEngine, get_twap
from .shares import ShareAccountant, pro_rata
from .types import (
    DepositResult,
    Holdings,
    RebalanceReport,
    Roles,
    TickRange,
    VaultState,
    WithdrawResult,
)

logger = logging.getLogger(__name__)


def _wall_clock() -> int:
    return int(time.time())


class Vault:
    """집중 유동성 vault

    Args:
        pool: AMM 풀 (ConcentratedPool)
        shares: 지분 원장 (ShareLedger)
        config: 초기 설정
        governance: governance 주소
        address: vault 자신의 주소 (포지션 소유자, 토큰 보관 주소)
        keeper: rebalance 권한 주소 (None 이면 누구나)
        team: 팀 수수료 수령 주소
        clock: 현재 시각(초)을 돌려주는 함수
    """

    def __init__(
        self,
        pool: ConcentratedPool,
        shares: ShareLedger,
        config: VaultConfig,
        governance: str,
        address: str = "vault",
        keeper: Optional[str] = None,
        team: Optional[str] = None,
        clock: Optional[Callable[[], int]] = None
    ):
        self.pool = pool
        self.shares = shares
        self.address = address
        self.roles = Roles(governance=governance, keeper=keeper, team=team)
        self._clock = clock or _wall_clock

        self._selector = RangeSelector(pool.tick_spacing)
        self._check_config(config)
        self.config = config

        self._guard = GuardRail()
        self._fees = FeeDistributor()
        self._accountant = ShareAccountant()
        self._positions = PositionLedger(pool, address, self._fees)
        self._engine = RebalanceEngine(
            pool, self._positions, self._selector, self.get_balances, self._pay_from_vault, address
        )

        _, tick = pool.slot0()
        self.base_range = self._selector.base_range(tick, config.base_threshold)
        self.limit_range = self._selector.bid_range(tick, config.limit_threshold)
        self.last_rebalance = 0

        logger.info(
            "Vault %s created at tick %d: base [%d, %d], limit [%d, %d]",
            address, tick,
            self.base_range.tick_lower, self.base_range.tick_upper,
            self.limit_range.tick_lower, self.limit_range.tick_upper
        )

    # ------------------------------------------------------------------
    # 예치 / 출금
    # ------------------------------------------------------------------

    def deposit(
        self,
        amount0_desired: int,
        amount1_desired: int,
        amount0_min: int,
        amount1_min: int,
        to: str,
        *,
        sender: str
    ) -> DepositResult:
        """토큰을 예치하고 지분을 받음

        Returns:
            DepositResult(shares=수신자 지분, amount0, amount1=실제 지불량)

        Raises:
            PreconditionViolation: 0 수량, 잘못된 수신자, finalized, BALANCE 모드
            BoundsViolation: 최소 수량 미달, 공급 한도 초과, 최초 예치 부족
        """
        if amount0_desired < 0 or amount1_desired < 0:
            raise PreconditionViolation("negative amount")
        if amount0_desired == 0 and amount1_desired == 0:
            raise PreconditionViolation("zero amounts")
        self._guard.check_recipient(to, self.address)

        with self._guard.operation("deposit", self._participants()):
            config = self.config
            self._guard.require_not_finalized()
            if config.withdrawal_basis is WithdrawalBasis.BALANCE:
                raise PreconditionViolation("deposits disabled", "withdrawal basis is balance")

            sqrt_price_x96, _ = self.pool.slot0()
            total_supply = self.shares.total_supply()

            if total_supply == 0:
                quote = self._accountant.quote_bootstrap(
                    sqrt_price_x96, self.base_range, amount0_desired, amount1_desired
                )
                self._guard.check_bootstrap(quote.shares)
            else:
                self._poke(config)
                quote = self._accountant.quote_deposit(
                    self._holdings(sqrt_price_x96),
                    total_supply,
                    amount0_desired,
                    amount1_desired,
                    config.idle_dust_threshold
                )

            self._guard.check_supply_cap(total_supply + quote.shares, config.max_total_supply)

            remaining = [quote.amount0 - quote.idle0, quote.amount1 - quote.idle1]
            settle = self._settle_from(sender, remaining)
            amount0 = amount1 = 0
            for rng, liquidity in quote.liquidities:
                paid0, paid1 = self._positions.mint(rng, liquidity, settle)
                amount0 += paid0
                amount1 += paid1

            if quote.idle0:
                self.pool.token0.transfer(sender, self.address, quote.idle0)
            if quote.idle1:
                self.pool.token1.transfer(sender, self.address, quote.idle1)
            amount0 += quote.idle0
            amount1 += quote.idle1

            if amount0 > amount0_desired or amount1 > amount1_desired:
                raise BoundsViolation(
                    "cost above desired", f"{amount0} / {amount1} > {amount0_desired} / {amount1_desired}"
                )
            self._guard.check_minimums(amount0, amount1, amount0_min, amount1_min)

            minted = quote.shares
            if total_supply == 0:
                self.shares.mint(DEAD_ADDRESS, MINIMUM_LIQUIDITY)
                minted -= MINIMUM_LIQUIDITY
            self.shares.mint(to, minted)
            to_uint256(self.shares.total_supply())

        logger.info(
            "Deposit: %s -> %s, %d shares for %d / %d",
            sender, to, minted, amount0, amount1
        )
        return DepositResult(minted, amount0, amount1)

    def withdraw(
        self,
        shares: int,
        amount0_min: int,
        amount1_min: int,
        to: str,
        *,
        sender: str
    ) -> WithdrawResult:
        """지분을 소각하고 비례 몫의 토큰을 받음

        지분 소각이 다른 모든 부수 효과보다 먼저 일어납니다.

        Raises:
            PreconditionViolation: 0 지분, 잘못된 수신자, 잠긴 지분 보유자
            BoundsViolation: 보유 지분 초과, 최소 수량 미달
        """
        if shares <= 0:
            raise PreconditionViolation("zero shares")
        if sender == DEAD_ADDRESS:
            raise PreconditionViolation("locked shares", sender)
        self._guard.check_recipient(to, self.address)

        with self._guard.operation("withdraw", self._participants()):
            config = self.config
            balance = self.shares.balance_of(sender)
            if shares > balance:
                raise BoundsViolation("insufficient shares", f"{shares} > {balance}")

            total_supply = self.shares.total_supply()
            self.shares.burn(sender, shares)

            idle0, idle1 = self.get_balances()
            amount0 = pro_rata(idle0, shares, total_supply)
            amount1 = pro_rata(idle1, shares, total_supply)

            if config.withdrawal_basis is WithdrawalBasis.POSITION:
                for rng in self._ranges():
                    liquidity = self._positions.liquidity(rng)
                    if liquidity == 0:
                        continue
                    result = self._positions.burn_and_collect(
                        rng, pro_rata(liquidity, shares, total_supply), config.protocol_fee
                    )
                    amount0 += result.burned0 + pro_rata(result.fees0, shares, total_supply)
                    amount1 += result.burned1 + pro_rata(result.fees1, shares, total_supply)

            self._guard.check_minimums(amount0, amount1, amount0_min, amount1_min)

            self._transfer_out(to, amount0, amount1)

        logger.info(
            "Withdraw: %s -> %s, %d shares for %d / %d",
            sender, to, shares, amount0, amount1
        )
        return WithdrawResult(amount0, amount1)

    # ------------------------------------------------------------------
    # Rebalance
    # ------------------------------------------------------------------

    def rebalance(
        self,
        swap_amount: int = 0,
        sqrt_price_limit_x96: int = 0,
        *,
        sender: str
    ) -> RebalanceReport:
        """포지션 전량 회수 후 현재 가격 중심으로 재배치

        Args:
            swap_amount: 양수면 token0 를, 음수면 token1 을 그 절댓값만큼 판매
            sqrt_price_limit_x96: 스왑 가격 한도 (0 이면 방향별 극단값)
        """
        with self._guard.operation("rebalance", self._participants()):
            config = self.config
            self._guard.require_not_finalized()
            now = self._clock()
            tick, twap = self._engine.validate(
                config, sender, self.roles.keeper, now, self.last_rebalance
            )
            report = self._engine.run(
                config, self.base_range, self.limit_range, tick, twap,
                swap_amount, sqrt_price_limit_x96
            )
            self.base_range = report.base_range
            self.limit_range = report.limit_range
            self.last_rebalance = now

        logger.info(
            "Rebalance at tick %d (twap %d): base [%d, %d] L=%d, limit [%d, %d] L=%d",
            report.tick, report.twap,
            report.base_range.tick_lower, report.base_range.tick_upper, report.base_liquidity,
            report.limit_range.tick_lower, report.limit_range.tick_upper, report.limit_liquidity
        )
        return report

    # ------------------------------------------------------------------
    # 수수료 인출
    # ------------------------------------------------------------------

    def collect_protocol(self, amount0: int, amount1: int, to: str, *, sender: str) -> None:
        """owner 버킷 인출 (governance)"""
        self._guard.require_role(sender, self.roles.governance, "governance")
        self._guard.check_recipient(to, self.address)
        with self._guard.operation("collect_protocol", self._participants()):
            self._fees.withdraw_protocol(amount0, amount1)
            self._transfer_out(to, amount0, amount1)
        logger.info("Protocol fees collected: %d / %d -> %s", amount0, amount1, to)

    def collect_team(self, amount0: int, amount1: int, to: str, *, sender: str) -> None:
        """team 버킷 인출 (team 주소)"""
        self._guard.require_role(sender, self.roles.team, "team")
        self._guard.check_recipient(to, self.address)
        with self._guard.operation("collect_team", self._participants()):
            self._fees.withdraw_team(amount0, amount1)
            self._transfer_out(to, amount0, amount1)
        logger.info("Team fees collected: %d / %d -> %s", amount0, amount1, to)

    # ------------------------------------------------------------------
    # Governance
    # ------------------------------------------------------------------

    def update_config(self, changes: Dict[str, Any], *, sender: str) -> VaultConfig:
        """설정 변경. 다음 작업부터 적용"""
        self._guard.require_role(sender, self.roles.governance, "governance")
        new_config = self.config.evolve(**changes)
        self._check_config(new_config)
        self.config = new_config
        logger.info("Config v%d: %s", new_config.version, changes)
        return new_config

    def set_base_threshold(self, base_threshold: int, *, sender: str) -> VaultConfig:
        return self.update_config({"base_threshold": base_threshold}, sender=sender)

    def set_limit_threshold(self, limit_threshold: int, *, sender: str) -> VaultConfig:
        return self.update_config({"limit_threshold": limit_threshold}, sender=sender)

    def set_max_twap_deviation(self, max_twap_deviation: int, *, sender: str) -> VaultConfig:
        return self.update_config({"max_twap_deviation": max_twap_deviation}, sender=sender)

    def set_twap_duration(self, twap_duration: int, *, sender: str) -> VaultConfig:
        return self.update_config({"twap_duration": twap_duration}, sender=sender)

    def set_rebalance_cooldown(self, rebalance_cooldown: int, *, sender: str) -> VaultConfig:
        return self.update_config({"rebalance_cooldown": rebalance_cooldown}, sender=sender)

    def set_max_total_supply(self, max_total_supply: int, *, sender: str) -> VaultConfig:
        return self.update_config({"max_total_supply": max_total_supply}, sender=sender)

    def set_protocol_fee(self, protocol_fee: int, *, sender: str) -> VaultConfig:
        return self.update_config({"protocol_fee": protocol_fee}, sender=sender)

    def set_idle_dust_threshold(self, idle_dust_threshold: int, *, sender: str) -> VaultConfig:
        return self.update_config({"idle_dust_threshold": idle_dust_threshold}, sender=sender)

    def set_withdrawal_basis(self, basis: WithdrawalBasis, *, sender: str) -> VaultConfig:
        return self.update_config({"withdrawal_basis": basis}, sender=sender)

    def set_keeper(self, keeper: Optional[str], *, sender: str) -> None:
        self._guard.require_role(sender, self.roles.governance, "governance")
        self.roles.keeper = keeper
        logger.info("Keeper set to %s", keeper)

    def set_team(self, team: Optional[str], *, sender: str) -> None:
        self._guard.require_role(sender, self.roles.governance, "governance")
        self.roles.team = team
        logger.info("Team set to %s", team)

    def set_governance(self, pending: str, *, sender: str) -> None:
        """governance 이전 1단계: 후보 지정"""
        self._guard.require_role(sender, self.roles.governance, "governance")
        if not pending:
            raise PreconditionViolation("invalid governance", str(pending))
        self.roles.pending_governance = pending
        logger.info("Pending governance: %s", pending)

    def accept_governance(self, *, sender: str) -> None:
        """governance 이전 2단계: 후보가 수락"""
        self._guard.require_role(sender, self.roles.pending_governance, "pending governance")
        self.roles.governance = sender
        self.roles.pending_governance = None
        logger.info("Governance accepted by %s", sender)

    def finalize(self, *, sender: str) -> None:
        """새 유동성 민트를 영구 중단. 출금은 계속 가능"""
        self._guard.require_role(sender, self.roles.governance, "governance")
        self._guard.require_not_finalized()
        self._guard.finalized = True
        logger.warning("Vault %s finalized", self.address)

    def emergency_burn(self, rng: TickRange, liquidity: int, *, sender: str) -> Tuple[int, int]:
        """finalized 이후 포지션 유동성을 idle 잔고로 회수 (governance)"""
        self._guard.require_role(sender, self.roles.governance, "governance")
        if not self._guard.finalized:
            raise PreconditionViolation("not finalized")
        with self._guard.operation("emergency_burn", self._participants()):
            result = self._positions.burn_and_collect(rng, liquidity, self.config.protocol_fee)
        logger.warning(
            "Emergency burn L=%d from [%d, %d]: %d / %d",
            liquidity, rng.tick_lower, rng.tick_upper, result.burned0, result.burned1
        )
        return result.burned0, result.burned1

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    @property
    def finalized(self) -> bool:
        return self._guard.finalized

    @property
    def accrued_protocol_fees(self) -> Tuple[int, int]:
        return tuple(self._fees.accrued_protocol)

    @property
    def accrued_team_fees(self) -> Tuple[int, int]:
        return tuple(self._fees.accrued_team)

    def total_supply(self) -> int:
        return self.shares.total_supply()

    def get_balance0(self) -> int:
        return self.get_balances()[0]

    def get_balance1(self) -> int:
        return self.get_balances()[1]

    def get_balances(self) -> Tuple[int, int]:
        """수수료 버킷을 제외한 idle 잔고"""
        reserved0, reserved1 = self._fees.reserved()
        balance0 = self.pool.token0.balance_of(self.address) - reserved0
        balance1 = self.pool.token1.balance_of(self.address) - reserved1
        if balance0 < 0 or balance1 < 0:
            raise ArithmeticViolation("fee buckets exceed balance", f"{balance0} / {balance1}")
        return balance0, balance1

    def get_position_amounts(self, rng: TickRange) -> Tuple[int, int]:
        sqrt_price_x96, _ = self.pool.slot0()
        return self._positions.amounts(rng, sqrt_price_x96, self.config.protocol_fee)

    def get_total_amounts(self) -> Tuple[int, int]:
        """idle + 두 포지션 (현재 가격, 내림) + 미수령 수수료 중 예치자 몫"""
        total0, total1 = self.get_balances()
        for rng in self._ranges():
            amount0, amount1 = self.get_position_amounts(rng)
            total0 += amount0
            total1 += amount1
        return total0, total1

    def get_twap(self) -> int:
        return get_twap(self.pool, self.config.twap_duration)

    def state(self) -> VaultState:
        sqrt_price_x96, tick = self.pool.slot0()
        total0, total1 = self.get_total_amounts()
        free0, free1 = self.get_balances()
        return VaultState(
            total_supply=self.total_supply(),
            base_range=self.base_range,
            limit_range=self.limit_range,
            base_liquidity=self._positions.liquidity(self.base_range),
            limit_liquidity=self._positions.liquidity(self.limit_range),
            total_amount0=total0,
            total_amount1=total1,
            free_balance0=free0,
            free_balance1=free1,
            accrued_protocol_fees=self.accrued_protocol_fees,
            accrued_team_fees=self.accrued_team_fees,
            tick=tick,
            sqrt_price_x96=sqrt_price_x96,
            last_rebalance=self.last_rebalance,
            finalized=self.finalized,
            config_version=self.config.version,
            roles=replace(self.roles),
        )

    # ------------------------------------------------------------------
    # Journaled
    # ------------------------------------------------------------------

    def checkpoint(self) -> object:
        return (
            self.base_range,
            self.limit_range,
            self.config,
            replace(self.roles),
            self.last_rebalance,
            self._guard.finalized,
        )

    def rollback(self, state: object) -> None:
        (
            self.base_range,
            self.limit_range,
            self.config,
            roles,
            self.last_rebalance,
            self._guard.finalized,
        ) = state
        self.roles = replace(roles)

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------

    def _ranges(self) -> Tuple[TickRange, TickRange]:
        return self.base_range, self.limit_range

    def _participants(self) -> Tuple[object, ...]:
        return self, self._fees, self.shares, self.pool.token0, self.pool.token1, self.pool

    def _check_config(self, config: VaultConfig) -> None:
        check_threshold(config.base_threshold, self._selector.tick_spacing)
        check_threshold(config.limit_threshold, self._selector.tick_spacing)

    def _holdings(self, sqrt_price_x96: int) -> Holdings:
        positions = tuple((rng, self._positions.liquidity(rng)) for rng in self._ranges())
        idle0, idle1 = self.get_balances()
        return Holdings(sqrt_price_x96, positions, idle0, idle1)

    def _poke(self, config: VaultConfig) -> None:
        """미수령 수수료를 idle 로 정산 (예치 가격에 반영)"""
        for rng in self._ranges():
            if self._positions.liquidity(rng) > 0:
                self._positions.burn_and_collect(rng, 0, config.protocol_fee)

    def _settle_from(self, payer: str, remaining: list) -> Settle:
        """예치자 → 풀 정산. 견적을 넘는 요청은 거부"""
        def settle(amount0: int, amount1: int) -> None:
            self._guard.require_locked()
            if amount0 > remaining[0] or amount1 > remaining[1]:
                raise BoundsViolation(
                    "mint cost above quote", f"{amount0} / {amount1} > {remaining[0]} / {remaining[1]}"
                )
            remaining[0] -= amount0
            remaining[1] -= amount1
            if amount0:
                self.pool.token0.transfer(payer, self.pool.address, amount0)
            if amount1:
                self.pool.token1.transfer(payer, self.pool.address, amount1)
        return settle

    def _pay_from_vault(self, amount0: int, amount1: int) -> None:
        """vault idle 잔고 → 풀 정산 (rebalance 민트/스왑)"""
        self._guard.require_locked()
        balance0, balance1 = self.get_balances()
        if amount0 > balance0 or amount1 > balance1:
            raise BoundsViolation(
                "insufficient free balance", f"{amount0} / {amount1} > {balance0} / {balance1}"
            )
        if amount0:
            self.pool.token0.transfer(self.address, self.pool.address, amount0)
        if amount1:
            self.pool.token1.transfer(self.address, self.pool.address, amount1)

    def _transfer_out(self, to: str, amount0: int, amount1: int) -> None:
        if amount0:
            self.pool.token0.transfer(self.address, to, amount0)
        if amount1:
            self.pool.token1.transfer(self.address, to, amount1)
