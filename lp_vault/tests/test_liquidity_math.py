"""
Liquidity Math 테스트

유동성 계산 함수와 반올림 방향을 테스트합니다.
지급은 내림, 예치자 비용은 올림이어야 vault 가 손해를 보지 않습니다.
"""

import pytest

from ..math.liquidity_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_liquidity_for_amount0,
    get_liquidity_for_amount1,
    get_liquidity_for_amounts,
    get_amounts_for_liquidity
)
from ..constants import Q96, UINT128_MAX
from ..errors import ArithmeticViolation
from ..math.full_math import mul_div, mul_div_rounding_up, to_uint128
from ..math.sqrt_price_math import apply_fee, get_next_sqrt_price_from_input
from ..math.tick_math import get_sqrt_ratio_at_tick


class TestGetAmountDeltas:
    """get_amount0_delta, get_amount1_delta 테스트"""

    def test_amount0_delta_basic(self):
        """amount0 변화량 기본 테스트"""
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        liquidity = 10**18

        result = get_amount0_delta(sqrt_a, sqrt_b, liquidity)
        assert result > 0

    def test_amount1_delta_basic(self):
        """amount1 변화량 기본 테스트"""
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        liquidity = 10**18

        result = get_amount1_delta(sqrt_a, sqrt_b, liquidity)
        assert result > 0

    def test_amount_deltas_swap_order(self):
        """sqrt 순서가 바뀌어도 결과 동일"""
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        liquidity = 10**18

        result1 = get_amount0_delta(sqrt_a, sqrt_b, liquidity)
        result2 = get_amount0_delta(sqrt_b, sqrt_a, liquidity)
        assert result1 == result2

    def test_round_up_exceeds_round_down(self):
        """올림 결과는 내림 결과보다 작지 않음 (차이는 최대 1)"""
        sqrt_a = get_sqrt_ratio_at_tick(-60)
        sqrt_b = get_sqrt_ratio_at_tick(120)
        liquidity = 123456789

        up0 = get_amount0_delta(sqrt_a, sqrt_b, liquidity, round_up=True)
        down0 = get_amount0_delta(sqrt_a, sqrt_b, liquidity, round_up=False)
        up1 = get_amount1_delta(sqrt_a, sqrt_b, liquidity, round_up=True)
        down1 = get_amount1_delta(sqrt_a, sqrt_b, liquidity, round_up=False)
        assert 0 <= up0 - down0 <= 1
        assert 0 <= up1 - down1 <= 1

    def test_amount1_delta_exact(self):
        """Δy = L * (√P_b - √P_a) / Q96"""
        sqrt_a = Q96
        sqrt_b = 2 * Q96
        assert get_amount1_delta(sqrt_a, sqrt_b, 1000, round_up=False) == 1000

    def test_amount_deltas_zero_liquidity(self):
        """유동성 0일 때"""
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)

        result0 = get_amount0_delta(sqrt_a, sqrt_b, 0)
        result1 = get_amount1_delta(sqrt_a, sqrt_b, 0)
        assert result0 == 0
        assert result1 == 0


class TestGetLiquidityForAmounts:
    """get_liquidity_for_amount0, get_liquidity_for_amount1, get_liquidity_for_amounts 테스트"""

    def test_liquidity_for_amount0(self):
        """amount0에서 유동성 계산"""
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        amount0 = 10**18

        liquidity = get_liquidity_for_amount0(sqrt_a, sqrt_b, amount0)
        assert liquidity > 0

    def test_liquidity_for_amount1(self):
        """amount1에서 유동성 계산"""
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        amount1 = 10**18

        liquidity = get_liquidity_for_amount1(sqrt_a, sqrt_b, amount1)
        assert liquidity > 0

    def test_liquidity_for_amounts_below_range(self):
        """가격이 범위 아래일 때: token0만 사용"""
        sqrt_current = get_sqrt_ratio_at_tick(-200)
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        amount0 = 10**18
        amount1 = 10**18

        liquidity = get_liquidity_for_amounts(sqrt_current, sqrt_a, sqrt_b, amount0, amount1)
        expected = get_liquidity_for_amount0(sqrt_a, sqrt_b, amount0)
        assert liquidity == expected

    def test_liquidity_for_amounts_above_range(self):
        """가격이 범위 위일 때: token1만 사용"""
        sqrt_current = get_sqrt_ratio_at_tick(200)
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        amount0 = 10**18
        amount1 = 10**18

        liquidity = get_liquidity_for_amounts(sqrt_current, sqrt_a, sqrt_b, amount0, amount1)
        expected = get_liquidity_for_amount1(sqrt_a, sqrt_b, amount1)
        assert liquidity == expected

    def test_liquidity_for_amounts_in_range(self):
        """가격이 범위 내일 때: 둘 다 사용, 작은 값 반환"""
        sqrt_current = get_sqrt_ratio_at_tick(50)
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        amount0 = 10**18
        amount1 = 10**18

        liquidity = get_liquidity_for_amounts(sqrt_current, sqrt_a, sqrt_b, amount0, amount1)

        liq0 = get_liquidity_for_amount0(sqrt_current, sqrt_b, amount0)
        liq1 = get_liquidity_for_amount1(sqrt_a, sqrt_current, amount1)
        expected = min(liq0, liq1)

        assert liquidity == expected


class TestGetAmountsForLiquidity:
    """get_amounts_for_liquidity 테스트"""

    def test_amounts_below_range(self):
        """가격이 범위 아래일 때: token0만 반환"""
        sqrt_current = get_sqrt_ratio_at_tick(-200)
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        liquidity = 10**18

        amount0, amount1 = get_amounts_for_liquidity(sqrt_current, sqrt_a, sqrt_b, liquidity)
        assert amount0 > 0
        assert amount1 == 0

    def test_amounts_above_range(self):
        """가격이 범위 위일 때: token1만 반환"""
        sqrt_current = get_sqrt_ratio_at_tick(200)
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        liquidity = 10**18

        amount0, amount1 = get_amounts_for_liquidity(sqrt_current, sqrt_a, sqrt_b, liquidity)
        assert amount0 == 0
        assert amount1 > 0

    def test_amounts_in_range(self):
        """가격이 범위 내일 때: 둘 다 반환"""
        sqrt_current = get_sqrt_ratio_at_tick(50)
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        liquidity = 10**18

        amount0, amount1 = get_amounts_for_liquidity(sqrt_current, sqrt_a, sqrt_b, liquidity)
        assert amount0 > 0
        assert amount1 > 0

    def test_cost_never_below_payout(self):
        """같은 유동성에 대해 예치 비용(올림) >= 지급(내림)"""
        sqrt_current = get_sqrt_ratio_at_tick(30)
        sqrt_a = get_sqrt_ratio_at_tick(-60)
        sqrt_b = get_sqrt_ratio_at_tick(120)
        for liquidity in [1, 7, 1001, 10**18 + 3]:
            pay0, pay1 = get_amounts_for_liquidity(sqrt_current, sqrt_a, sqrt_b, liquidity)
            cost0, cost1 = get_amounts_for_liquidity(
                sqrt_current, sqrt_a, sqrt_b, liquidity, round_up=True
            )
            assert cost0 >= pay0
            assert cost1 >= pay1

    def test_liquidity_from_amounts_fits_budget(self):
        """수량에서 구한 유동성의 비용(올림)은 그 수량을 넘지 않음"""
        sqrt_current = get_sqrt_ratio_at_tick(0)
        sqrt_a = get_sqrt_ratio_at_tick(-3660)
        sqrt_b = get_sqrt_ratio_at_tick(3660)
        amount0 = amount1 = 10**6

        liquidity = get_liquidity_for_amounts(sqrt_current, sqrt_a, sqrt_b, amount0, amount1)
        cost0, cost1 = get_amounts_for_liquidity(
            sqrt_current, sqrt_a, sqrt_b, liquidity, round_up=True
        )
        assert cost0 <= amount0
        assert cost1 <= amount1

    def test_roundtrip(self):
        """유동성 -> 토큰 -> 유동성 왕복 테스트"""
        sqrt_current = get_sqrt_ratio_at_tick(50)
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(100)
        original_liquidity = 10**18

        # 유동성 -> 토큰
        amount0, amount1 = get_amounts_for_liquidity(sqrt_current, sqrt_a, sqrt_b, original_liquidity)

        # 토큰 -> 유동성
        result_liquidity = get_liquidity_for_amounts(sqrt_current, sqrt_a, sqrt_b, amount0, amount1)

        # 반올림으로 인한 작은 차이 허용
        assert abs(result_liquidity - original_liquidity) < original_liquidity * 0.01


class TestUint128Overflow:
    """uint128 범위를 넘는 유동성은 잘리지 않고 거부"""

    def test_to_uint128_bounds(self):
        """경계값"""
        assert to_uint128(UINT128_MAX) == UINT128_MAX
        with pytest.raises(ArithmeticViolation):
            to_uint128(UINT128_MAX + 1)
        with pytest.raises(ArithmeticViolation):
            to_uint128(-1)

    def test_liquidity_overflow(self):
        """거대한 수량 -> ArithmeticViolation"""
        sqrt_a = get_sqrt_ratio_at_tick(0)
        sqrt_b = get_sqrt_ratio_at_tick(1)
        with pytest.raises(ArithmeticViolation):
            get_liquidity_for_amount1(sqrt_a, sqrt_b, 2 ** 200)

    def test_same_price_bounds_gives_zero(self):
        """하한 == 상한이면 유동성 0"""
        sqrt_a = get_sqrt_ratio_at_tick(0)
        assert get_liquidity_for_amount0(sqrt_a, sqrt_a, 10**18) == 0
        assert get_liquidity_for_amount1(sqrt_a, sqrt_a, 10**18) == 0


class TestFullMath:
    """mul_div 반올림"""

    def test_mul_div(self):
        """내림 / 올림"""
        assert mul_div(10, 10, 3) == 33
        assert mul_div_rounding_up(10, 10, 3) == 34
        assert mul_div_rounding_up(10, 9, 3) == 30

    def test_division_by_zero(self):
        """0 으로 나누기는 ArithmeticViolation"""
        with pytest.raises(ArithmeticViolation):
            mul_div(1, 1, 0)


class TestSqrtPriceMath:
    """스왑 입력에 따른 가격 이동"""

    def test_token0_in_lowers_price(self):
        """token0 입력 -> 가격 하락"""
        sqrt_price = get_sqrt_ratio_at_tick(0)
        next_price = get_next_sqrt_price_from_input(sqrt_price, 10**18, 10**15, True)
        assert next_price < sqrt_price

    def test_token1_in_raises_price(self):
        """token1 입력 -> 가격 상승 (Δ√P = Δy / L)"""
        next_price = get_next_sqrt_price_from_input(Q96, 10**18, 10**15, False)
        assert next_price == Q96 + (10**15 * Q96) // 10**18

    def test_zero_liquidity_rejected(self):
        """유동성 0 에서는 가격 계산 불가"""
        with pytest.raises(ValueError):
            get_next_sqrt_price_from_input(Q96, 0, 1, True)

    def test_apply_fee(self):
        """0.30% 수수료는 올림으로 떼어냄"""
        assert apply_fee(1_000_000, 3000) == 997_000
        assert apply_fee(1, 3000) == 0
        assert apply_fee(1000, 0) == 1000
