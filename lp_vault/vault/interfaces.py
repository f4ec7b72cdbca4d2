"""
외부 협력자 인터페이스

Vault 는 AMM 풀, 토큰, 지분 원장을 직접 구현하지 않고 아래 프로토콜로만 사용합니다.
Python 에는 msg.sender 가 없으므로 소유자/송신자 주소를 인자로 명시합니다.

- ConcentratedPool: mint/burn/collect/swap/observe
- TokenLedger: 풀 토큰 잔고 이체
- ShareLedger: vault 지분 발행/소각
- Journaled: 작업 실패 시 상태 복원 (checkpoint/rollback)
"""

from typing import Callable, List, Protocol, Sequence, Tuple, runtime_checkable

from .types import PositionInfo

# (amount0_owed, amount1_owed): 풀이 받아야 할 양. 반환 전에 이체가 끝나야 함
MintCallback = Callable[[int, int], None]
# (amount0_delta, amount1_delta): 양수 = 풀이 받아야 할 양
SwapCallback = Callable[[int, int], None]


class TokenLedger(Protocol):
    address: str

    def balance_of(self, holder: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...


class ShareLedger(Protocol):
    def mint(self, holder: str, amount: int) -> None: ...

    def burn(self, holder: str, amount: int) -> None: ...

    def total_supply(self) -> int: ...

    def balance_of(self, holder: str) -> int: ...


class ConcentratedPool(Protocol):
    address: str
    token0: TokenLedger
    token1: TokenLedger
    tick_spacing: int

    def slot0(self) -> Tuple[int, int]: ...

    def position(self, owner: str, tick_lower: int, tick_upper: int) -> PositionInfo: ...

    def mint(
        self,
        recipient: str,
        tick_lower: int,
        tick_upper: int,
        liquidity: int,
        callback: MintCallback,
    ) -> Tuple[int, int]: ...

    def burn(self, owner: str, tick_lower: int, tick_upper: int, liquidity: int) -> Tuple[int, int]: ...

    def collect(
        self,
        owner: str,
        recipient: str,
        tick_lower: int,
        tick_upper: int,
        amount0_max: int,
        amount1_max: int,
    ) -> Tuple[int, int]: ...

    def swap(
        self,
        recipient: str,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: int,
        callback: SwapCallback,
    ) -> Tuple[int, int]: ...

    def observe(self, seconds_agos: Sequence[int]) -> List[int]: ...


@runtime_checkable
class Journaled(Protocol):
    def checkpoint(self) -> object: ...

    def rollback(self, state: object) -> None: ...
