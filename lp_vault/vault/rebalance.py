"""
Rebalance Engine - 포지션 재배치

한 번의 rebalance 는 다음 단계를 순서대로 거칩니다:

    VALIDATING  → keeper / 쿨다운 / 가격 경계 / TWAP 편차 검사
    WITHDRAWING → base, limit 포지션 전량 burn + collect (수수료 분배)
    SWAPPING    → (선택) free balance 로 exact-input 스왑
    SELECTING   → 스왑 이후 틱으로 새 base / limit 범위 계산
    DEPOSITING  → base 에 최대 유동성, 남은 잔고로 limit 에 최대 유동성

중간 실패는 GuardRail 이 전체를 되돌리므로 이 모듈은 상태를 부분 복구하지 않습니다.
"""

import logging
from enum import Enum
from typing import Callable, Optional, Tuple

from ..constants import MAX_TICK, MIN_TICK
from ..errors import BoundsViolation, StalenessViolation, UnauthorizedCaller, PreconditionViolation
from ..math import MAX_SQRT_RATIO, MIN_SQRT_RATIO
from .config import VaultConfig
from .interfaces import ConcentratedPool
from .positions import PositionLedger, Settle
from .ranges import RangeSelector
from .types import RebalanceReport, TickRange

logger = logging.getLogger(__name__)


class RebalanceState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    WITHDRAWING = "withdrawing"
    SWAPPING = "swapping"
    SELECTING = "selecting"
    DEPOSITING = "depositing"


def check_price_bounds(tick: int, max_threshold: int, tick_spacing: int) -> None:
    """새 범위가 전역 틱 경계를 넘지 않도록 현재 틱 위치 검사"""
    lower = MIN_TICK + max_threshold + tick_spacing
    upper = MAX_TICK - max_threshold - tick_spacing
    if not lower < tick < upper:
        raise StalenessViolation("price too close to tick bounds", f"tick {tick} outside ({lower}, {upper})")


def check_twap_deviation(tick: int, twap: int, max_deviation: int) -> None:
    deviation = abs(tick - twap)
    if deviation > max_deviation:
        raise StalenessViolation("max twap deviation", f"|{tick} - {twap}| = {deviation} > {max_deviation}")


def get_twap(pool: ConcentratedPool, duration: int) -> int:
    """duration 초 동안의 평균 틱 (음수 방향 내림)"""
    try:
        tick_cumulatives = pool.observe([duration, 0])
    except ValueError as e:
        raise StalenessViolation("oracle history too short", str(e)) from e
    return (tick_cumulatives[1] - tick_cumulatives[0]) // duration


class RebalanceEngine:
    """rebalance 상태 머신

    Args:
        pool: AMM 풀
        positions: vault 포지션 원장
        selector: 범위 선택기
        free_balances: 수수료 버킷을 뺀 vault idle 잔고 조회 함수
        pay: vault 잔고에서 풀로 토큰을 보내는 정산 함수
        vault_address: 스왑 수령 주소
    """

    def __init__(
        self,
        pool: ConcentratedPool,
        positions: PositionLedger,
        selector: RangeSelector,
        free_balances: Callable[[], Tuple[int, int]],
        pay: Settle,
        vault_address: str
    ):
        self.pool = pool
        self.positions = positions
        self.selector = selector
        self.free_balances = free_balances
        self.pay = pay
        self.vault_address = vault_address
        self.state = RebalanceState.IDLE

    def validate(
        self,
        config: VaultConfig,
        sender: str,
        keeper: Optional[str],
        now: int,
        last_rebalance: int
    ) -> Tuple[int, int]:
        """실행 가능 여부 검사. (tick, twap) 반환"""
        self.state = RebalanceState.VALIDATING
        try:
            if keeper is not None and sender != keeper:
                raise UnauthorizedCaller("keeper only", sender)
            if now < last_rebalance + config.rebalance_cooldown:
                raise PreconditionViolation(
                    "cooldown", f"next rebalance at {last_rebalance + config.rebalance_cooldown}, now {now}"
                )

            _, tick = self.pool.slot0()
            check_price_bounds(tick, config.max_threshold, self.pool.tick_spacing)
            twap = get_twap(self.pool, config.twap_duration)
            check_twap_deviation(tick, twap, config.max_twap_deviation)
        except Exception:
            self.state = RebalanceState.IDLE
            raise
        return tick, twap

    def run(
        self,
        config: VaultConfig,
        base_range: TickRange,
        limit_range: TickRange,
        tick: int,
        twap: int,
        swap_amount: int = 0,
        sqrt_price_limit_x96: int = 0
    ) -> RebalanceReport:
        """validate 이후의 단계 실행"""
        try:
            fees0, fees1 = self._withdraw_all(config, base_range, limit_range)

            if swap_amount != 0:
                self.state = RebalanceState.SWAPPING
                self._swap(swap_amount, sqrt_price_limit_x96)

            self.state = RebalanceState.SELECTING
            sqrt_price_x96, tick = self.pool.slot0()
            check_price_bounds(tick, config.max_threshold, self.pool.tick_spacing)
            new_base = self.selector.base_range(tick, config.base_threshold)

            self.state = RebalanceState.DEPOSITING
            balance0, balance1 = self.free_balances()
            base_liquidity = self.selector.liquidity_for(new_base, sqrt_price_x96, balance0, balance1)
            self.positions.mint(new_base, base_liquidity, self.pay)

            balance0, balance1 = self.free_balances()
            new_limit = self.selector.limit_range(
                sqrt_price_x96, tick, config.limit_threshold, balance0, balance1
            )
            if new_limit == new_base:
                raise BoundsViolation("base and limit ranges overlap", str(new_base.as_tuple()))
            limit_liquidity = self.selector.liquidity_for(new_limit, sqrt_price_x96, balance0, balance1)
            self.positions.mint(new_limit, limit_liquidity, self.pay)
        finally:
            self.state = RebalanceState.IDLE

        logger.debug(
            "New ranges: base [%d, %d] L=%d, limit [%d, %d] L=%d",
            new_base.tick_lower, new_base.tick_upper, base_liquidity,
            new_limit.tick_lower, new_limit.tick_upper, limit_liquidity
        )
        return RebalanceReport(
            tick=tick,
            twap=twap,
            base_range=new_base,
            limit_range=new_limit,
            base_liquidity=base_liquidity,
            limit_liquidity=limit_liquidity,
            fees0=fees0,
            fees1=fees1,
        )

    def _withdraw_all(
        self, config: VaultConfig, base_range: TickRange, limit_range: TickRange
    ) -> Tuple[int, int]:
        self.state = RebalanceState.WITHDRAWING
        fees0 = fees1 = 0
        for rng in (base_range, limit_range):
            liquidity = self.positions.liquidity(rng)
            if liquidity == 0:
                continue
            result = self.positions.burn_and_collect(rng, liquidity, config.protocol_fee)
            fees0 += result.fees0
            fees1 += result.fees1
        return fees0, fees1

    def _swap(self, swap_amount: int, sqrt_price_limit_x96: int) -> None:
        """swap_amount > 0: token0 판매, < 0: token1 판매 (exact input)"""
        zero_for_one = swap_amount > 0
        amount_in = abs(swap_amount)
        balance0, balance1 = self.free_balances()
        available = balance0 if zero_for_one else balance1
        if amount_in > available:
            raise BoundsViolation("swap exceeds free balance", f"{amount_in} > {available}")

        if sqrt_price_limit_x96 == 0:
            sqrt_price_limit_x96 = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1

        def settle(amount0_delta: int, amount1_delta: int) -> None:
            self.pay(max(amount0_delta, 0), max(amount1_delta, 0))

        amount0, amount1 = self.pool.swap(
            self.vault_address, zero_for_one, amount_in, sqrt_price_limit_x96, settle
        )
        logger.info("Rebalance swap: amount0 %d, amount1 %d", amount0, amount1)
