"""
LP Vault 상수 정의

온체인 수준 정밀도를 위한 상수들:
- Q96: sqrt price 인코딩에 사용 (2^96)
- MIN_TICK / MAX_TICK: AMM이 지원하는 틱 범위
- MINIMUM_LIQUIDITY: 최초 예치 시 영구 잠금되는 지분
- PROTOCOL_FEE_DENOMINATOR: 프로토콜 수수료 분모 (1e6 = 100%)
"""

from typing import Dict

# Fixed-point 인코딩 상수
Q96: int = 2 ** 96

# 수수료 티어 (pips, 1e6 = 100%)별 틱 간격
TICK_SPACINGS: Dict[int, int] = {
    100: 1,
    500: 10,
    3000: 60,
    10000: 200,
}

# 틱 범위 상수
MIN_TICK: int = -887272
MAX_TICK: int = 887272

# uint 최대값 (오버플로우 검사용)
UINT256_MAX: int = 2 ** 256 - 1
UINT128_MAX: int = 2 ** 128 - 1

# 프로토콜 수수료는 1e6 분의 x 로 표현
PROTOCOL_FEE_DENOMINATOR: int = 1_000_000

# 최초 예치 시 DEAD_ADDRESS에 잠기는 지분 (= 유동성 단위)
MINIMUM_LIQUIDITY: int = 1000
DEAD_ADDRESS: str = "0x000000000000000000000000000000000000dEaD"

# 예치자 유동성 올림 여유분 (범위당)
LIQUIDITY_EPSILON: int = 2
