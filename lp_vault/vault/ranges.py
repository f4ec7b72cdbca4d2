"""
Range Selector - base / limit 범위 계산

현재 틱을 틱 간격으로 내림한 값(floor)을 기준으로:
    base  = [floor - base_threshold, floor + spacing + base_threshold]
    bid   = [floor - limit_threshold, floor]
    ask   = [floor + spacing, floor + spacing + limit_threshold]

limit 범위는 bid/ask 중 현재 idle 잔고로 더 많은 유동성을 만들 수 있는 쪽을
선택합니다 (같으면 bid). 경계가 틱 범위를 벗어나면 잘라내지 않고 거부합니다.
"""

import logging

from ..constants import MAX_TICK
from ..errors import BoundsViolation
from ..math import check_tick_range, floor_tick, get_liquidity_for_amounts, get_sqrt_ratio_at_tick
from .types import TickRange

logger = logging.getLogger(__name__)


def check_threshold(threshold: int, tick_spacing: int) -> None:
    """threshold 는 양수, 틱 간격의 배수, MAX_TICK 이하"""
    if threshold <= 0:
        raise BoundsViolation("threshold must be positive", str(threshold))
    if threshold > MAX_TICK:
        raise BoundsViolation("threshold too high", str(threshold))
    if threshold % tick_spacing != 0:
        raise BoundsViolation("threshold not aligned", f"{threshold} % {tick_spacing}")


class RangeSelector:
    """틱 간격에 맞춘 base / limit 범위 선택기"""

    def __init__(self, tick_spacing: int):
        if tick_spacing <= 0:
            raise BoundsViolation("invalid tick spacing", str(tick_spacing))
        self.tick_spacing = tick_spacing

    def _make(self, tick_lower: int, tick_upper: int) -> TickRange:
        check_tick_range(tick_lower, tick_upper, self.tick_spacing)
        return TickRange(tick_lower, tick_upper)

    def base_range(self, tick: int, base_threshold: int) -> TickRange:
        floor = floor_tick(tick, self.tick_spacing)
        return self._make(floor - base_threshold, floor + self.tick_spacing + base_threshold)

    def bid_range(self, tick: int, limit_threshold: int) -> TickRange:
        floor = floor_tick(tick, self.tick_spacing)
        return self._make(floor - limit_threshold, floor)

    def ask_range(self, tick: int, limit_threshold: int) -> TickRange:
        floor = floor_tick(tick, self.tick_spacing)
        return self._make(floor + self.tick_spacing, floor + self.tick_spacing + limit_threshold)

    def limit_range(
        self,
        sqrt_price_x96: int,
        tick: int,
        limit_threshold: int,
        balance0: int,
        balance1: int
    ) -> TickRange:
        """idle 잔고로 더 큰 유동성을 지원하는 한쪽 범위 (동률이면 bid)"""
        bid = self.bid_range(tick, limit_threshold)
        ask = self.ask_range(tick, limit_threshold)
        bid_liquidity = self.liquidity_for(bid, sqrt_price_x96, balance0, balance1)
        ask_liquidity = self.liquidity_for(ask, sqrt_price_x96, balance0, balance1)

        chosen = bid if bid_liquidity >= ask_liquidity else ask
        logger.debug(
            "limit range: bid L=%d ask L=%d -> [%d, %d]",
            bid_liquidity, ask_liquidity, chosen.tick_lower, chosen.tick_upper
        )
        return chosen

    @staticmethod
    def liquidity_for(rng: TickRange, sqrt_price_x96: int, amount0: int, amount1: int) -> int:
        return get_liquidity_for_amounts(
            sqrt_price_x96,
            get_sqrt_ratio_at_tick(rng.tick_lower),
            get_sqrt_ratio_at_tick(rng.tick_upper),
            amount0,
            amount1
        )
