"""
LP Vault

집중 유동성 AMM 위에서 동작하는 vault 엔진.
예치자에게 지분을 발행하고, base / limit 두 범위의 포지션으로 자금을 운용하며,
주기적으로 현재 가격 중심으로 재배치합니다.

모든 수량은 정수 (sqrt price 는 Q64.96, 유동성은 uint128) 로 계산합니다.
"""

__version__ = "0.1.0"

from .constants import DEAD_ADDRESS, LIQUIDITY_EPSILON, MINIMUM_LIQUIDITY
from .errors import (
    ArithmeticViolation,
    BoundsViolation,
    PreconditionViolation,
    StalenessViolation,
    UnauthorizedCaller,
    VaultError,
)
from .vault import TickRange, Vault, VaultConfig, WithdrawalBasis
