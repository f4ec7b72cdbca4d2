"""
Vault 데이터 타입 정의

모든 수량 필드는 온체인 정밀도를 위해 int 타입 사용.
"""

from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Tuple


@dataclass(frozen=True)
class TickRange:
    """틱 범위 [tick_lower, tick_upper)"""
    tick_lower: int
    tick_upper: int

    @property
    def width(self) -> int:
        return self.tick_upper - self.tick_lower

    def contains(self, tick: int) -> bool:
        return self.tick_lower <= tick < self.tick_upper

    def as_tuple(self) -> Tuple[int, int]:
        return self.tick_lower, self.tick_upper


@dataclass
class Roles:
    """Vault 역할

    governance 이전은 두 단계: set_governance 로 pending 지정 → pending 주소가 accept.
    keeper 가 None 이면 누구나 rebalance 호출 가능.
    """
    governance: str
    pending_governance: Optional[str] = None
    keeper: Optional[str] = None
    team: Optional[str] = None


class PositionInfo(NamedTuple):
    """AMM 포지션 상태"""
    liquidity: int
    tokens_owed_0: int
    tokens_owed_1: int


class BurnResult(NamedTuple):
    """burn + collect 결과

    fees0/fees1 은 프로토콜 몫을 뗀 뒤 예치자에게 돌아가는 수수료.
    """
    burned0: int
    burned1: int
    fees0: int
    fees1: int


class DepositResult(NamedTuple):
    shares: int
    amount0: int
    amount1: int


class WithdrawResult(NamedTuple):
    amount0: int
    amount1: int


class Holdings(NamedTuple):
    """예치/출금 시점의 vault 구성 (현재 가격, 범위별 유동성, idle 잔고)"""
    sqrt_price_x96: int
    positions: Tuple[Tuple[TickRange, int], ...]
    idle0: int
    idle1: int


class DepositQuote(NamedTuple):
    """지분 발행 견적

    liquidities: 범위별로 새로 민트할 유동성
    idle0/idle1: idle 잔고 비례분으로 vault 에 직접 이체할 양
    amount0/amount1: 예치자가 지불할 총량 (올림)
    """
    shares: int
    liquidities: Tuple[Tuple[TickRange, int], ...]
    idle0: int
    idle1: int
    amount0: int
    amount1: int


class RebalanceReport(NamedTuple):
    """rebalance 한 사이클의 결과"""
    tick: int
    twap: int
    base_range: TickRange
    limit_range: TickRange
    base_liquidity: int
    limit_liquidity: int
    fees0: int
    fees1: int


@dataclass
class VaultState:
    """조회용 vault 스냅샷"""
    total_supply: int
    base_range: TickRange
    limit_range: TickRange
    base_liquidity: int
    limit_liquidity: int
    total_amount0: int
    total_amount1: int
    free_balance0: int
    free_balance1: int
    accrued_protocol_fees: Tuple[int, int]
    accrued_team_fees: Tuple[int, int]
    tick: int
    sqrt_price_x96: int
    last_rebalance: int
    finalized: bool
    config_version: int
    roles: Roles = field(default_factory=lambda: Roles(governance=""))
