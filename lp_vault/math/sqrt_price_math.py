"""
Sqrt Price Math - 스왑 입력에 따른 다음 sqrtPriceX96 계산

시뮬레이션 풀의 exact-input 스왑 단계에서 사용합니다.
가격이 목표를 넘어가지 않도록 token0 입력은 올림, token1 입력은 내림으로 계산합니다.

References:
- Uniswap V3 Core: contracts/libraries/SqrtPriceMath.sol
"""

from .full_math import div_rounding_up, mul_div_rounding_up


def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int
) -> int:
    """token0를 amount 만큼 넣었을 때의 새 sqrtPriceX96 (가격 하락, 올림)

    공식: √P' = L * √P / (L + Δx * √P)
    """
    if amount == 0:
        return sqrt_price_x96

    numerator1 = liquidity << 96
    denominator = numerator1 + amount * sqrt_price_x96
    return mul_div_rounding_up(numerator1, sqrt_price_x96, denominator)


def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int
) -> int:
    """token1을 amount 만큼 넣었을 때의 새 sqrtPriceX96 (가격 상승, 내림)

    공식: √P' = √P + Δy / L
    """
    return sqrt_price_x96 + (amount << 96) // liquidity


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int,
    liquidity: int,
    amount_in: int,
    zero_for_one: bool
) -> int:
    """입력 토큰 방향에 맞는 다음 가격"""
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise ValueError("sqrt price와 유동성은 양수여야 합니다")
    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in)
    return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in)


def apply_fee(amount: int, fee_pips: int) -> int:
    """입력에서 수수료(fee_pips / 1e6)를 떼고 남는 양 (수수료는 올림)"""
    fee = div_rounding_up(amount * fee_pips, 1_000_000)
    return amount - fee
