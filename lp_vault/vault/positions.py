"""
Position Ledger - vault 소유 AMM 포지션 조작

풀의 mint/burn/collect 를 감싸고, 수집한 수수료를 FeeDistributor 로 넘깁니다.
mint 는 콜백 기반 2단계 정산: 풀이 필요한 수량을 요청하면 콜백이 이체를 끝내야
mint 가 반환됩니다.
"""

import logging
from typing import Callable, Tuple

from ..constants import PROTOCOL_FEE_DENOMINATOR, UINT128_MAX
from ..errors import BoundsViolation
from ..math import check_tick_range, get_amounts_for_liquidity, get_sqrt_ratio_at_tick, to_uint128
from .fees import FeeDistributor
from .interfaces import ConcentratedPool
from .types import BurnResult, PositionInfo, TickRange

logger = logging.getLogger(__name__)

# (amount0, amount1) 을 풀로 보내는 정산 함수
Settle = Callable[[int, int], None]


class PositionLedger:
    """vault 주소로 열린 포지션들의 조회/민트/소각"""

    def __init__(self, pool: ConcentratedPool, owner: str, fees: FeeDistributor):
        self.pool = pool
        self.owner = owner
        self.fees = fees

    def info(self, rng: TickRange) -> PositionInfo:
        return self.pool.position(self.owner, rng.tick_lower, rng.tick_upper)

    def liquidity(self, rng: TickRange) -> int:
        return self.info(rng).liquidity

    def amounts(self, rng: TickRange, sqrt_price_x96: int, protocol_fee: int) -> Tuple[int, int]:
        """포지션이 대표하는 토큰 양

        원금(내림) + 미수령 수수료 중 예치자 몫.
        """
        info = self.info(rng)
        amount0, amount1 = get_amounts_for_liquidity(
            sqrt_price_x96,
            get_sqrt_ratio_at_tick(rng.tick_lower),
            get_sqrt_ratio_at_tick(rng.tick_upper),
            info.liquidity
        )
        keep = PROTOCOL_FEE_DENOMINATOR - protocol_fee
        amount0 += info.tokens_owed_0 * keep // PROTOCOL_FEE_DENOMINATOR
        amount1 += info.tokens_owed_1 * keep // PROTOCOL_FEE_DENOMINATOR
        return amount0, amount1

    def mint(self, rng: TickRange, liquidity: int, settle: Settle) -> Tuple[int, int]:
        """유동성 민트. settle 은 풀 콜백 안에서 호출됨"""
        check_tick_range(rng.tick_lower, rng.tick_upper, self.pool.tick_spacing)
        to_uint128(liquidity)
        if liquidity == 0:
            return 0, 0

        amount0, amount1 = self.pool.mint(
            self.owner, rng.tick_lower, rng.tick_upper, liquidity, settle
        )
        logger.debug(
            "Minted L=%d in [%d, %d] for %d / %d",
            liquidity, rng.tick_lower, rng.tick_upper, amount0, amount1
        )
        return amount0, amount1

    def burn_and_collect(self, rng: TickRange, liquidity: int, protocol_fee: int) -> BurnResult:
        """유동성 소각 후 전부 수집

        liquidity=0 이면 수수료만 정산합니다 (poke).
        반환되는 fees 는 프로토콜 몫을 뗀 예치자 몫입니다.
        """
        if liquidity < 0:
            raise BoundsViolation("negative liquidity", str(liquidity))

        burned0 = burned1 = 0
        if liquidity > 0 or self.liquidity(rng) > 0:
            burned0, burned1 = self.pool.burn(self.owner, rng.tick_lower, rng.tick_upper, liquidity)

        collect0, collect1 = self.pool.collect(
            self.owner, self.owner, rng.tick_lower, rng.tick_upper, UINT128_MAX, UINT128_MAX
        )
        fees0 = collect0 - burned0
        fees1 = collect1 - burned1
        fees0, fees1 = self.fees.distribute(fees0, fees1, protocol_fee)

        if liquidity:
            logger.debug(
                "Burned L=%d from [%d, %d]: principal %d / %d",
                liquidity, rng.tick_lower, rng.tick_upper, burned0, burned1
            )
        return BurnResult(burned0, burned1, fees0, fees1)
