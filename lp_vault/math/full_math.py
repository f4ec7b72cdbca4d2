"""
Full Math - 고정 폭 정수 연산 헬퍼

Python 정수는 무한 정밀도이므로 곱셈 중간값 오버플로우는 없습니다.
대신 결과가 uint128/uint256 범위를 넘는지 명시적으로 검사해서
온체인에서 revert 될 값을 조용히 잘라내지 않도록 합니다.

References:
- Uniswap V3 Core: contracts/libraries/FullMath.sol, SafeCast.sol
"""

from ..constants import UINT128_MAX, UINT256_MAX
from ..errors import ArithmeticViolation


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)"""
    if denominator <= 0:
        raise ArithmeticViolation("division by zero")
    return (a * b) // denominator


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator)"""
    if denominator <= 0:
        raise ArithmeticViolation("division by zero")
    result, remainder = divmod(a * b, denominator)
    return result + 1 if remainder > 0 else result


def div_rounding_up(numerator: int, denominator: int) -> int:
    """ceil(numerator / denominator)"""
    if denominator <= 0:
        raise ArithmeticViolation("division by zero")
    result, remainder = divmod(numerator, denominator)
    return result + 1 if remainder > 0 else result


def to_uint128(value: int) -> int:
    """uint128 범위 검사 후 그대로 반환"""
    if value < 0 or value > UINT128_MAX:
        raise ArithmeticViolation("uint128 overflow", str(value))
    return value


def to_uint256(value: int) -> int:
    """uint256 범위 검사 후 그대로 반환"""
    if value < 0 or value > UINT256_MAX:
        raise ArithmeticViolation("uint256 overflow", str(value))
    return value
