"""
SimPool - 정수 정밀도 집중 유동성 풀 시뮬레이터

Vault 가 사용하는 ConcentratedPool 인터페이스의 인메모리 구현:
- mint: 콜백으로 토큰을 받은 뒤 잔고 증가를 검사
- burn: 원금을 tokens_owed 로 이동 (collect 로 수령)
- swap: exact-input, 초기화된 틱 경계를 넘으며 단계별로 가격 이동.
        입력 토큰 수수료는 해당 구간 활성 포지션에 유동성 비례로 적립
- observe: tick cumulative 오라클 (TWAP 계산용)

각 쓰기 작업은 실패 시 풀과 두 토큰 원장을 되돌립니다.

References:
- Uniswap V3 Core: UniswapV3Pool.sol, SwapMath.sol, Oracle.sol
"""

import bisect
import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from ..constants import TICK_SPACINGS
from ..errors import BoundsViolation, PreconditionViolation
from ..math import (
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    apply_fee,
    check_tick_range,
    div_rounding_up,
    get_amount0_delta,
    get_amount1_delta,
    get_amounts_for_liquidity,
    get_next_sqrt_price_from_input,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
    to_uint128,
)
from ..vault.types import PositionInfo
from .clock import SimClock
from .ledger import Ledger

logger = logging.getLogger(__name__)

FEE_DENOMINATOR = 1_000_000


@dataclass
class _Position:
    liquidity: int = 0
    tokens_owed_0: int = 0
    tokens_owed_1: int = 0


class SimPool:
    """집중 유동성 풀

    Args:
        token0, token1: 풀 토큰 원장
        sqrt_price_x96: 초기 가격
        tick_spacing: 틱 간격 (None 이면 fee 티어의 표준 간격)
        fee: 스왑 수수료 (pips, 3000 = 0.30%)
        clock: 오라클 시계
        address: 풀 주소 (토큰 보관)
    """

    def __init__(
        self,
        token0: Ledger,
        token1: Ledger,
        sqrt_price_x96: int,
        tick_spacing: Optional[int] = None,
        fee: int = 3000,
        clock: Optional[SimClock] = None,
        address: str = "pool"
    ):
        if not 0 <= fee < FEE_DENOMINATOR:
            raise BoundsViolation("invalid fee", str(fee))
        if tick_spacing is None:
            if fee not in TICK_SPACINGS:
                raise BoundsViolation("invalid fee", f"no standard tick spacing for fee {fee}")
            tick_spacing = TICK_SPACINGS[fee]
        if tick_spacing <= 0:
            raise BoundsViolation("invalid tick spacing", str(tick_spacing))

        self.token0 = token0
        self.token1 = token1
        self.tick_spacing = tick_spacing
        self.fee = fee
        self.address = address
        self.clock = clock or SimClock()

        self.sqrt_price_x96 = sqrt_price_x96
        self.tick = get_tick_at_sqrt_ratio(sqrt_price_x96)
        self._positions: Dict[Tuple[str, int, int], _Position] = {}
        # (timestamp, tick_cumulative)
        self._observations: List[Tuple[int, int]] = [(self.clock(), 0)]
        self._locked = False

    @classmethod
    def from_tick(cls, token0: Ledger, token1: Ledger, tick: int, **kwargs) -> "SimPool":
        return cls(token0, token1, get_sqrt_ratio_at_tick(tick), **kwargs)

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def slot0(self) -> Tuple[int, int]:
        return self.sqrt_price_x96, self.tick

    def position(self, owner: str, tick_lower: int, tick_upper: int) -> PositionInfo:
        pos = self._positions.get((owner, tick_lower, tick_upper))
        if pos is None:
            return PositionInfo(0, 0, 0)
        return PositionInfo(pos.liquidity, pos.tokens_owed_0, pos.tokens_owed_1)

    def positions_of(self, owner: str) -> Dict[Tuple[int, int], PositionInfo]:
        return {
            (lower, upper): PositionInfo(p.liquidity, p.tokens_owed_0, p.tokens_owed_1)
            for (o, lower, upper), p in self._positions.items()
            if o == owner
        }

    @property
    def liquidity(self) -> int:
        """현재 틱의 활성 유동성"""
        return self._active_liquidity(self.tick)

    # ------------------------------------------------------------------
    # 포지션
    # ------------------------------------------------------------------

    def mint(
        self,
        recipient: str,
        tick_lower: int,
        tick_upper: int,
        liquidity: int,
        callback: Callable[[int, int], None]
    ) -> Tuple[int, int]:
        with self._lock("mint"):
            check_tick_range(tick_lower, tick_upper, self.tick_spacing)
            if liquidity <= 0:
                raise BoundsViolation("liquidity must be positive", str(liquidity))

            amount0, amount1 = get_amounts_for_liquidity(
                self.sqrt_price_x96,
                get_sqrt_ratio_at_tick(tick_lower),
                get_sqrt_ratio_at_tick(tick_upper),
                liquidity,
                round_up=True
            )
            pos = self._positions.setdefault((recipient, tick_lower, tick_upper), _Position())
            pos.liquidity = to_uint128(pos.liquidity + liquidity)

            balance0 = self.token0.balance_of(self.address)
            balance1 = self.token1.balance_of(self.address)
            callback(amount0, amount1)
            if self.token0.balance_of(self.address) < balance0 + amount0:
                raise BoundsViolation("mint not settled", f"token0 {amount0}")
            if self.token1.balance_of(self.address) < balance1 + amount1:
                raise BoundsViolation("mint not settled", f"token1 {amount1}")

        return amount0, amount1

    def burn(self, owner: str, tick_lower: int, tick_upper: int, liquidity: int) -> Tuple[int, int]:
        with self._lock("burn"):
            pos = self._positions.get((owner, tick_lower, tick_upper))
            if pos is None:
                raise BoundsViolation("position not found", f"{owner} [{tick_lower}, {tick_upper}]")
            if liquidity < 0 or liquidity > pos.liquidity:
                raise BoundsViolation("burn exceeds position", f"{liquidity} > {pos.liquidity}")

            amount0, amount1 = get_amounts_for_liquidity(
                self.sqrt_price_x96,
                get_sqrt_ratio_at_tick(tick_lower),
                get_sqrt_ratio_at_tick(tick_upper),
                liquidity
            )
            pos.liquidity -= liquidity
            pos.tokens_owed_0 += amount0
            pos.tokens_owed_1 += amount1
        return amount0, amount1

    def collect(
        self,
        owner: str,
        recipient: str,
        tick_lower: int,
        tick_upper: int,
        amount0_max: int,
        amount1_max: int
    ) -> Tuple[int, int]:
        with self._lock("collect"):
            pos = self._positions.get((owner, tick_lower, tick_upper))
            if pos is None:
                return 0, 0
            amount0 = min(pos.tokens_owed_0, amount0_max)
            amount1 = min(pos.tokens_owed_1, amount1_max)
            pos.tokens_owed_0 -= amount0
            pos.tokens_owed_1 -= amount1
            if amount0:
                self.token0.transfer(self.address, recipient, amount0)
            if amount1:
                self.token1.transfer(self.address, recipient, amount1)
        return amount0, amount1

    def donate(self, payer: str, amount0: int, amount1: int) -> None:
        """활성 포지션에 수수료를 직접 적립"""
        with self._lock("donate"):
            if self.liquidity == 0:
                raise BoundsViolation("no in-range liquidity")
            if amount0:
                self.token0.transfer(payer, self.address, amount0)
            if amount1:
                self.token1.transfer(payer, self.address, amount1)
            self._credit_fees(self.tick, amount0, amount1)

    # ------------------------------------------------------------------
    # 스왑
    # ------------------------------------------------------------------

    def swap(
        self,
        recipient: str,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: int,
        callback: Callable[[int, int], None]
    ) -> Tuple[int, int]:
        """exact-input 스왑

        Returns:
            (amount0, amount1): 풀 기준 변화량. 양수 = 풀이 받은 양, 음수 = 지급한 양
        """
        with self._lock("swap"):
            if amount_specified <= 0:
                raise BoundsViolation("amount must be positive", str(amount_specified))
            if zero_for_one:
                if not MIN_SQRT_RATIO < sqrt_price_limit_x96 < self.sqrt_price_x96:
                    raise BoundsViolation("invalid price limit", str(sqrt_price_limit_x96))
            elif not self.sqrt_price_x96 < sqrt_price_limit_x96 < MAX_SQRT_RATIO:
                raise BoundsViolation("invalid price limit", str(sqrt_price_limit_x96))

            self._write_observation()
            amount_in, amount_out = self._swap_steps(zero_for_one, amount_specified, sqrt_price_limit_x96)

            if zero_for_one:
                amount0, amount1 = amount_in, -amount_out
                token_in, token_out = self.token0, self.token1
            else:
                amount0, amount1 = -amount_out, amount_in
                token_in, token_out = self.token1, self.token0

            if amount_out:
                token_out.transfer(self.address, recipient, amount_out)
            balance_in = token_in.balance_of(self.address)
            callback(amount0, amount1)
            if token_in.balance_of(self.address) < balance_in + amount_in:
                raise BoundsViolation("swap not settled", str(amount_in))

        logger.debug(
            "Swap %s: in %d, out %d, tick -> %d",
            "0->1" if zero_for_one else "1->0", amount_in, amount_out, self.tick
        )
        return amount0, amount1

    def _swap_steps(self, zero_for_one: bool, amount_specified: int, sqrt_price_limit_x96: int) -> Tuple[int, int]:
        sqrt_price = self.sqrt_price_x96
        tick = self.tick
        remaining = amount_specified
        amount_out = 0

        while remaining > 0 and sqrt_price != sqrt_price_limit_x96:
            next_tick = self._next_initialized_tick(tick, zero_for_one)
            if next_tick is None:
                target = sqrt_price_limit_x96
            elif zero_for_one:
                target = max(get_sqrt_ratio_at_tick(next_tick), sqrt_price_limit_x96)
            else:
                target = min(get_sqrt_ratio_at_tick(next_tick), sqrt_price_limit_x96)

            liquidity = self._active_liquidity(tick)
            if liquidity == 0:
                next_price = target
            else:
                amount_less_fee = apply_fee(remaining, self.fee)
                if zero_for_one:
                    max_in = get_amount0_delta(target, sqrt_price, liquidity, round_up=True)
                else:
                    max_in = get_amount1_delta(sqrt_price, target, liquidity, round_up=True)

                if amount_less_fee >= max_in:
                    next_price = target
                    step_in = max_in
                    step_fee = min(
                        div_rounding_up(max_in * self.fee, FEE_DENOMINATOR - self.fee),
                        remaining - max_in
                    )
                else:
                    next_price = get_next_sqrt_price_from_input(
                        sqrt_price, liquidity, amount_less_fee, zero_for_one
                    )
                    step_in = amount_less_fee
                    step_fee = remaining - step_in

                if zero_for_one:
                    amount_out += get_amount1_delta(next_price, sqrt_price, liquidity, round_up=False)
                    self._credit_fees(tick, step_fee, 0)
                else:
                    amount_out += get_amount0_delta(sqrt_price, next_price, liquidity, round_up=False)
                    self._credit_fees(tick, 0, step_fee)
                remaining -= step_in + step_fee

            crossed = (
                next_tick is not None
                and next_price == target
                and target == get_sqrt_ratio_at_tick(next_tick)
            )
            if crossed:
                tick = next_tick - 1 if zero_for_one else next_tick
            else:
                tick = get_tick_at_sqrt_ratio(next_price)
            sqrt_price = next_price

        self.sqrt_price_x96 = sqrt_price
        self.tick = tick
        return amount_specified - remaining, amount_out

    # ------------------------------------------------------------------
    # 오라클
    # ------------------------------------------------------------------

    def observe(self, seconds_agos: Sequence[int]) -> List[int]:
        """각 시점의 tick cumulative

        Raises:
            ValueError: 기록보다 이전 시점을 요청한 경우
        """
        now = self.clock()
        timestamps = [ts for ts, _ in self._observations]
        result = []
        for seconds_ago in seconds_agos:
            target = now - seconds_ago
            last_ts, last_cumulative = self._observations[-1]
            if target >= last_ts:
                result.append(last_cumulative + self.tick * (target - last_ts))
                continue
            if target < timestamps[0]:
                raise ValueError(f"observation too old: {seconds_ago}s ago")

            i = bisect.bisect_right(timestamps, target) - 1
            ts_a, cum_a = self._observations[i]
            ts_b, cum_b = self._observations[i + 1]
            tick_between = (cum_b - cum_a) // (ts_b - ts_a)
            result.append(cum_a + tick_between * (target - ts_a))
        return result

    def _write_observation(self) -> None:
        now = self.clock()
        last_ts, last_cumulative = self._observations[-1]
        if now > last_ts:
            self._observations.append((now, last_cumulative + self.tick * (now - last_ts)))

    # ------------------------------------------------------------------
    # 내부
    # ------------------------------------------------------------------

    def _active_liquidity(self, tick: int) -> int:
        return sum(
            pos.liquidity
            for (_, lower, upper), pos in self._positions.items()
            if lower <= tick < upper
        )

    def _next_initialized_tick(self, tick: int, zero_for_one: bool) -> Optional[int]:
        boundaries = set()
        for (_, lower, upper), pos in self._positions.items():
            if pos.liquidity > 0:
                boundaries.add(lower)
                boundaries.add(upper)
        if zero_for_one:
            candidates = [b for b in boundaries if b <= tick]
            return max(candidates) if candidates else None
        candidates = [b for b in boundaries if b > tick]
        return min(candidates) if candidates else None

    def _credit_fees(self, tick: int, fee0: int, fee1: int) -> None:
        active = [
            pos for (_, lower, upper), pos in self._positions.items()
            if lower <= tick < upper and pos.liquidity > 0
        ]
        total = sum(pos.liquidity for pos in active)
        if total == 0:
            return
        for pos in active:
            pos.tokens_owed_0 += fee0 * pos.liquidity // total
            pos.tokens_owed_1 += fee1 * pos.liquidity // total

    @contextmanager
    def _lock(self, name: str) -> Iterator[None]:
        if self._locked:
            raise PreconditionViolation("pool locked", name)
        self._locked = True
        participants = (self, self.token0, self.token1)
        states = [(p, p.checkpoint()) for p in participants]
        try:
            yield
        except BaseException:
            for participant, state in reversed(states):
                participant.rollback(state)
            raise
        finally:
            self._locked = False

    def checkpoint(self) -> object:
        return (
            self.sqrt_price_x96,
            self.tick,
            copy.deepcopy(self._positions),
            list(self._observations),
        )

    def rollback(self, state: object) -> None:
        sqrt_price, tick, positions, observations = state
        self.sqrt_price_x96 = sqrt_price
        self.tick = tick
        self._positions = copy.deepcopy(positions)
        self._observations = list(observations)
