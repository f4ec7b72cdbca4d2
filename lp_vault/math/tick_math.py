"""
Tick Math - Tick ↔ sqrtPrice 변환

AMM의 틱 수학 함수들. 온체인 컨트랙트와 동일한 정밀도로 구현.

References:
- Uniswap V3 Core: contracts/libraries/TickMath.sol
- 백서 Section 6.1: Ticks and Tick Spacing

핵심 공식:
    price = 1.0001^tick
    sqrtPriceX96 = sqrt(price) * 2^96
"""

from ..constants import MIN_TICK, MAX_TICK
from ..errors import BoundsViolation


# TickMath 상수
MIN_SQRT_RATIO: int = 4295128739
MAX_SQRT_RATIO: int = 1461446703485210103287273052203988822378723970342

# |tick|의 각 비트에 대응하는 1/sqrt(1.0001)^(2^i) (Q128.128)
_RATIO_MULTIPLIERS = (
    (0x2, 0xfff97272373d413259a46990580e213a),
    (0x4, 0xfff2e50f5f656932ef12357cf3c7fdcc),
    (0x8, 0xffe5caca7e10e4e61c3624eaa0941cd0),
    (0x10, 0xffcb9843d60f6159c9db58835c926644),
    (0x20, 0xff973b41fa98c081472e6896dfb254c0),
    (0x40, 0xff2ea16466c96a3843ec78b326b52861),
    (0x80, 0xfe5dee046a99a2a811c461f1969c3053),
    (0x100, 0xfcbe86c7900a88aedcffc83b479aa3a4),
    (0x200, 0xf987a7253ac413176f2b074cf7815e54),
    (0x400, 0xf3392b0822b70005940c7a398e4b70f3),
    (0x800, 0xe7159475a2c29b7443b29c7fa6e889d9),
    (0x1000, 0xd097f3bdfd2022b8845ad8f792aa5825),
    (0x2000, 0xa9f746462d870fdf8a65dc1f90e061e5),
    (0x4000, 0x70d869a156d2a1b890bb3df62baf32f7),
    (0x8000, 0x31be135f97d08fd981231505542fcfa6),
    (0x10000, 0x9aa508b5b7a84e1c677de54f3e99bc9),
    (0x20000, 0x5d6af8dedb81196699c329225ee604),
    (0x40000, 0x2216e584f5fa1ea926041bedfe98),
    (0x80000, 0x48a170391f7dc42444e8fa2),
)


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """틱에서 sqrtPriceX96 계산

    Solidity TickMath.getSqrtRatioAtTick()과 동일한 결과.
    정수 연산만 사용하며 결과는 올림 처리됩니다.

    Args:
        tick: 틱 인덱스 (MIN_TICK ~ MAX_TICK)

    Returns:
        sqrtPriceX96 (Q64.96 형식)

    Raises:
        BoundsViolation: 틱이 유효 범위를 벗어난 경우
    """
    if tick < MIN_TICK or tick > MAX_TICK:
        raise BoundsViolation("tick out of range", f"{tick} (범위: {MIN_TICK} ~ {MAX_TICK})")

    abs_tick = abs(tick)

    ratio = 0x100000000000000000000000000000000 if abs_tick & 0x1 == 0 \
        else 0xfffcb933bd6fad37aa2d162d1a594001
    for bit, multiplier in _RATIO_MULTIPLIERS:
        if abs_tick & bit:
            ratio = (ratio * multiplier) >> 128

    if tick > 0:
        ratio = (2 ** 256 - 1) // ratio

    # Q128.128 -> Q64.96, 올림
    return (ratio >> 32) + (1 if ratio % (1 << 32) != 0 else 0)


def get_tick_at_sqrt_ratio(sqrt_price_x96: int) -> int:
    """sqrtPriceX96 이하인 최대 틱 계산

    Solidity TickMath.getTickAtSqrtRatio()과 동일한 결과.

    Args:
        sqrt_price_x96: sqrtPriceX96 (Q64.96 형식)

    Returns:
        get_sqrt_ratio_at_tick(tick) <= sqrt_price_x96 를 만족하는 최대 틱

    Raises:
        BoundsViolation: sqrtPriceX96이 유효 범위를 벗어난 경우
    """
    if sqrt_price_x96 < MIN_SQRT_RATIO or sqrt_price_x96 >= MAX_SQRT_RATIO:
        raise BoundsViolation("sqrt price out of range", str(sqrt_price_x96))

    ratio = sqrt_price_x96 << 32
    msb = ratio.bit_length() - 1

    if msb >= 128:
        r = ratio >> (msb - 127)
    else:
        r = ratio << (127 - msb)

    log_2 = (msb - 128) << 64

    # log2 소수부를 14비트까지 계산
    for i in range(14):
        r = (r * r) >> 127
        f = r >> 128
        log_2 |= f << (63 - i)
        r >>= f

    log_sqrt10001 = log_2 * 255738958999603826347141

    tick_low = (log_sqrt10001 - 3402992956809132418596140100660247210) >> 128
    tick_high = (log_sqrt10001 + 291339464771989622907027621153398088495) >> 128

    if tick_low == tick_high:
        return tick_low
    return tick_high if get_sqrt_ratio_at_tick(tick_high) <= sqrt_price_x96 else tick_low


def floor_tick(tick: int, tick_spacing: int) -> int:
    """틱을 음의 무한대 방향으로 tick_spacing 배수에 맞춤

    Python의 floor division이 음수 틱도 아래로 내리므로
    Solidity의 `if (tick < 0 && tick % spacing != 0) compressed--` 보정이 필요 없습니다.

    Example:
        >>> floor_tick(-1, 60)
        -60
    """
    if tick_spacing <= 0:
        raise BoundsViolation("tick spacing", f"양수여야 합니다: {tick_spacing}")
    return (tick // tick_spacing) * tick_spacing


def check_tick(tick: int, tick_spacing: int) -> None:
    """틱이 전역 범위 안에 있고 tick_spacing에 정렬되어 있는지 검사"""
    if tick < MIN_TICK or tick > MAX_TICK:
        raise BoundsViolation("tick out of range", str(tick))
    if tick % tick_spacing != 0:
        raise BoundsViolation("tick not aligned", f"{tick} % {tick_spacing} != 0")


def check_tick_range(tick_lower: int, tick_upper: int, tick_spacing: int) -> None:
    """AMM으로 보내기 전에 범위 경계를 검증

    AMM도 잘못된 범위를 거부하지만, 그 경우 전체 작업이 중단되므로
    엔진에서 먼저 같은 규칙을 확인합니다.
    """
    check_tick(tick_lower, tick_spacing)
    check_tick(tick_upper, tick_spacing)
    if tick_lower >= tick_upper:
        raise BoundsViolation("invalid range", f"{tick_lower} >= {tick_upper}")
