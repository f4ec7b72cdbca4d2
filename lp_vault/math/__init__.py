"""
Math layer for LP Vault

온체인 수준 정밀도의 수학 함수들:
- tick_math: Tick ↔ sqrtPriceX96 변환, 틱 정렬 검사
- liquidity_math: 유동성 ↔ 토큰 수량
- sqrt_price_math: 스왑 입력에 따른 가격 이동
- full_math: mulDiv, uint128/uint256 범위 검사
"""

from .tick_math import (
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO,
    get_tick_at_sqrt_ratio,
    get_sqrt_ratio_at_tick,
    floor_tick,
    check_tick,
    check_tick_range,
)
from .liquidity_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_liquidity_for_amounts,
    get_amounts_for_liquidity,
)
from .sqrt_price_math import (
    get_next_sqrt_price_from_input,
    apply_fee,
)
from .full_math import (
    mul_div,
    mul_div_rounding_up,
    div_rounding_up,
    to_uint128,
    to_uint256,
)
