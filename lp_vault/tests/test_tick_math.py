"""
Tick Math 테스트

틱 ↔ sqrtPrice 변환과 틱 정렬 검사를 테스트합니다.
온체인 값과 비교하여 정확도를 검증합니다.
"""

import pytest

from ..errors import BoundsViolation
from ..math.tick_math import (
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
    floor_tick,
    check_tick,
    check_tick_range,
    MIN_TICK,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO
)


class TestGetSqrtRatioAtTick:
    """get_sqrt_ratio_at_tick 테스트"""

    def test_min_tick(self):
        """최소 틱에서의 sqrtPrice"""
        result = get_sqrt_ratio_at_tick(MIN_TICK)
        assert result == MIN_SQRT_RATIO

    def test_max_tick(self):
        """최대 틱에서의 sqrtPrice"""
        result = get_sqrt_ratio_at_tick(MAX_TICK)
        assert result == MAX_SQRT_RATIO

    def test_tick_0(self):
        """틱 0에서의 sqrtPrice (price = 1)"""
        assert get_sqrt_ratio_at_tick(0) == 2 ** 96

    def test_positive_tick(self):
        """양수 틱 테스트"""
        result = get_sqrt_ratio_at_tick(100)
        assert result > 2 ** 96  # 틱 0보다 큼

    def test_negative_tick(self):
        """음수 틱 테스트"""
        result = get_sqrt_ratio_at_tick(-100)
        assert result < 2 ** 96  # 틱 0보다 작음

    def test_invalid_tick_too_low(self):
        """유효 범위를 벗어난 틱 (너무 낮음)"""
        with pytest.raises(BoundsViolation):
            get_sqrt_ratio_at_tick(MIN_TICK - 1)

    def test_invalid_tick_too_high(self):
        """유효 범위를 벗어난 틱 (너무 높음)"""
        with pytest.raises(ValueError):
            get_sqrt_ratio_at_tick(MAX_TICK + 1)


class TestGetTickAtSqrtRatio:
    """get_tick_at_sqrt_ratio 테스트"""

    def test_min_sqrt_ratio(self):
        """최소 sqrtRatio에서의 틱"""
        result = get_tick_at_sqrt_ratio(MIN_SQRT_RATIO)
        assert result == MIN_TICK

    def test_sqrt_ratio_at_tick_0(self):
        """sqrtPrice 2^96에서의 틱"""
        sqrt_price = 2 ** 96
        result = get_tick_at_sqrt_ratio(sqrt_price)
        assert result == 0

    def test_roundtrip(self):
        """틱 -> sqrtPrice -> 틱 왕복 테스트"""
        for tick in [MIN_TICK, -50000, -1000, -1, 0, 1, 1000, 50000, MAX_TICK - 1]:
            sqrt_price = get_sqrt_ratio_at_tick(tick)
            result_tick = get_tick_at_sqrt_ratio(sqrt_price)
            assert result_tick == tick

    def test_invalid_sqrt_ratio_too_low(self):
        """유효 범위를 벗어난 sqrtRatio (너무 낮음)"""
        with pytest.raises(BoundsViolation):
            get_tick_at_sqrt_ratio(MIN_SQRT_RATIO - 1)

    def test_max_sqrt_ratio_is_exclusive(self):
        """MAX_SQRT_RATIO 자체는 허용되지 않음"""
        with pytest.raises(ValueError):
            get_tick_at_sqrt_ratio(MAX_SQRT_RATIO)

    def test_between_ticks_rounds_down(self):
        """두 틱 사이 가격은 아래 틱"""
        for tick in [-887, -1, 0, 59, 4000]:
            between = get_sqrt_ratio_at_tick(tick) + 1
            assert get_tick_at_sqrt_ratio(between) == tick


class TestFloorTick:
    """floor_tick 테스트

    Vault 범위는 항상 음의 무한대 방향으로 내린 틱을 기준으로 합니다.
    """

    def test_already_aligned(self):
        """이미 정렬된 틱"""
        assert floor_tick(60, 60) == 60
        assert floor_tick(0, 60) == 0
        assert floor_tick(-60, 60) == -60

    def test_positive_rounds_down(self):
        """양수 틱은 아래 배수로"""
        assert floor_tick(65, 60) == 60
        assert floor_tick(119, 60) == 60
        assert floor_tick(15, 10) == 10

    def test_negative_rounds_toward_minus_infinity(self):
        """음수 틱은 0이 아니라 더 작은 배수로"""
        assert floor_tick(-1, 60) == -60
        assert floor_tick(-59, 60) == -60
        assert floor_tick(-61, 60) == -120
        assert floor_tick(-250, 200) == -400

    def test_invalid_spacing(self):
        """틱 간격은 양수"""
        with pytest.raises(BoundsViolation):
            floor_tick(10, 0)


class TestCheckTick:
    """check_tick, check_tick_range 테스트"""

    def test_valid_range(self):
        """정렬된 범위는 통과"""
        check_tick_range(-120, 180, 60)

    def test_not_aligned(self):
        """간격 배수가 아니면 거부"""
        with pytest.raises(BoundsViolation) as exc_info:
            check_tick(30, 60)
        assert exc_info.value.reason == "tick not aligned"

    def test_out_of_range(self):
        """전역 범위 밖이면 거부 (잘라내지 않음)"""
        with pytest.raises(BoundsViolation) as exc_info:
            check_tick(887280, 60)
        assert exc_info.value.reason == "tick out of range"

    def test_lower_must_be_below_upper(self):
        """하한 >= 상한이면 거부"""
        with pytest.raises(BoundsViolation):
            check_tick_range(120, 120, 60)
        with pytest.raises(BoundsViolation):
            check_tick_range(180, 120, 60)
