"""
Share Accountant - 지분 발행/상환 수량 계산

최초 예치 (total_shares == 0):
    shares = base 범위에 원하는 수량으로 민트 가능한 유동성
    그중 MINIMUM_LIQUIDITY 는 DEAD_ADDRESS 에 영구 잠금

기존 vault 예치:
    예치자는 vault 구성의 s / T 만큼을 그대로 산다.
        ΔL_r  = ceil(L_r * s / T) + LIQUIDITY_EPSILON    (L_r > 0 인 범위)
        idle  = ceil(idle_i * s / T)                      (idle_i >= dust 일 때)
    비용은 올림으로 계산하며, 원하는 수량 안에 들어가는 최대 s 를 이진 탐색으로
    찾는다 (비용은 s 에 대해 단조 증가).

출금:
    release_r = floor(L_r * s / T), idle = floor(idle_i * s / T)
"""

import logging
from typing import Tuple

from ..constants import LIQUIDITY_EPSILON
from ..errors import BoundsViolation
from ..math import (
    get_amounts_for_liquidity,
    get_liquidity_for_amounts,
    get_sqrt_ratio_at_tick,
    mul_div,
    mul_div_rounding_up,
    to_uint128,
)
from .types import DepositQuote, Holdings, TickRange

logger = logging.getLogger(__name__)


def pro_rata(amount: int, shares: int, total_shares: int) -> int:
    """floor(amount * shares / total_shares) - 지급 쪽 비례 계산"""
    return mul_div(amount, shares, total_shares)


def _range_cost(sqrt_price_x96: int, rng: TickRange, liquidity: int) -> Tuple[int, int]:
    return get_amounts_for_liquidity(
        sqrt_price_x96,
        get_sqrt_ratio_at_tick(rng.tick_lower),
        get_sqrt_ratio_at_tick(rng.tick_upper),
        liquidity,
        round_up=True
    )


class ShareAccountant:

    def quote_bootstrap(
        self,
        sqrt_price_x96: int,
        base_range: TickRange,
        amount0_desired: int,
        amount1_desired: int
    ) -> DepositQuote:
        liquidity = get_liquidity_for_amounts(
            sqrt_price_x96,
            get_sqrt_ratio_at_tick(base_range.tick_lower),
            get_sqrt_ratio_at_tick(base_range.tick_upper),
            amount0_desired,
            amount1_desired
        )
        amount0, amount1 = _range_cost(sqrt_price_x96, base_range, liquidity)
        return DepositQuote(liquidity, ((base_range, liquidity),), 0, 0, amount0, amount1)

    def cost(
        self,
        holdings: Holdings,
        shares: int,
        total_shares: int,
        idle_dust_threshold: int = 0
    ) -> DepositQuote:
        """shares 만큼 발행할 때 예치자가 부담할 비용 (올림)"""
        liquidities = []
        amount0 = amount1 = 0
        for rng, liquidity in holdings.positions:
            if liquidity == 0:
                continue
            delta = to_uint128(mul_div_rounding_up(liquidity, shares, total_shares) + LIQUIDITY_EPSILON)
            cost0, cost1 = _range_cost(holdings.sqrt_price_x96, rng, delta)
            liquidities.append((rng, delta))
            amount0 += cost0
            amount1 += cost1

        idle0 = idle1 = 0
        if holdings.idle0 > 0 and holdings.idle0 >= idle_dust_threshold:
            idle0 = mul_div_rounding_up(holdings.idle0, shares, total_shares)
        if holdings.idle1 > 0 and holdings.idle1 >= idle_dust_threshold:
            idle1 = mul_div_rounding_up(holdings.idle1, shares, total_shares)

        return DepositQuote(
            shares, tuple(liquidities), idle0, idle1, amount0 + idle0, amount1 + idle1
        )

    def quote_deposit(
        self,
        holdings: Holdings,
        total_shares: int,
        amount0_desired: int,
        amount1_desired: int,
        idle_dust_threshold: int = 0
    ) -> DepositQuote:
        """원하는 수량 안에서 발행 가능한 최대 지분

        Raises:
            BoundsViolation: vault 가 비어 있거나 1 지분도 살 수 없는 경우
        """
        if total_shares <= 0:
            raise BoundsViolation("vault not bootstrapped")

        def fits(shares: int) -> bool:
            quote = self.cost(holdings, shares, total_shares, idle_dust_threshold)
            return quote.amount0 <= amount0_desired and quote.amount1 <= amount1_desired

        whole = self.cost(holdings, total_shares, total_shares, idle_dust_threshold)
        bounds = []
        if whole.amount0 > 0:
            bounds.append(amount0_desired * total_shares // whole.amount0)
        if whole.amount1 > 0:
            bounds.append(amount1_desired * total_shares // whole.amount1)
        if not bounds:
            raise BoundsViolation("empty vault", "nothing to price shares against")

        upper = min(bounds) + 1
        while fits(upper):
            upper *= 2

        lower = 0
        while lower < upper:
            mid = (lower + upper + 1) // 2
            if fits(mid):
                lower = mid
            else:
                upper = mid - 1

        if lower == 0:
            raise BoundsViolation(
                "deposit too small",
                f"{amount0_desired} / {amount1_desired} buys no shares"
            )

        quote = self.cost(holdings, lower, total_shares, idle_dust_threshold)
        logger.debug("Deposit quote: %d shares for %d / %d", quote.shares, quote.amount0, quote.amount1)
        return quote
