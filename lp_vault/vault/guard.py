"""
Guard Rail - 작업 간 불변 조건

- 단일 진입 락: deposit / withdraw / rebalance / 수수료 인출 / emergency burn 은
  동시에 하나만 실행되며, 실행 중 재진입은 PreconditionViolation.
- 원자성: 작업 시작 시 모든 참여자(Journaled)의 체크포인트를 잡고,
  예외가 나면 역순으로 복원한 뒤 예외를 그대로 다시 던집니다.
- 최초 예치 최소량, 공급 한도, 수신자 검사, finalized 모드.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from ..constants import DEAD_ADDRESS, MINIMUM_LIQUIDITY
from ..errors import BoundsViolation, PreconditionViolation, UnauthorizedCaller
from .interfaces import Journaled

logger = logging.getLogger(__name__)


class GuardRail:

    def __init__(self):
        self._active: Optional[str] = None
        self.finalized = False

    @property
    def locked(self) -> bool:
        return self._active is not None

    @contextmanager
    def operation(self, name: str, participants: Iterable[object]) -> Iterator[None]:
        if self._active is not None:
            raise PreconditionViolation("reentrant call", f"{name} during {self._active}")

        self._active = name
        checkpoints = [(p, p.checkpoint()) for p in participants if isinstance(p, Journaled)]
        try:
            yield
        except BaseException:
            for participant, state in reversed(checkpoints):
                participant.rollback(state)
            logger.warning("%s rolled back", name)
            raise
        finally:
            self._active = None

    def require_locked(self) -> None:
        """콜백은 진행 중인 작업 안에서만 유효"""
        if self._active is None:
            raise PreconditionViolation("callback outside operation")

    def require_not_finalized(self) -> None:
        if self.finalized:
            raise PreconditionViolation("finalized")

    @staticmethod
    def require_role(sender: str, expected: Optional[str], role: str) -> None:
        if expected is None or sender != expected:
            raise UnauthorizedCaller(f"{role} only", sender)

    @staticmethod
    def check_recipient(to: str, vault_address: str) -> None:
        if not to or to in (vault_address, DEAD_ADDRESS):
            raise PreconditionViolation("invalid recipient", str(to))

    @staticmethod
    def check_bootstrap(liquidity: int) -> None:
        if liquidity <= MINIMUM_LIQUIDITY:
            raise BoundsViolation(
                "insufficient initial liquidity",
                f"{liquidity} <= {MINIMUM_LIQUIDITY}"
            )

    @staticmethod
    def check_supply_cap(total_supply: int, max_total_supply: int) -> None:
        if max_total_supply and total_supply > max_total_supply:
            raise BoundsViolation("max total supply exceeded", f"{total_supply} > {max_total_supply}")

    @staticmethod
    def check_minimums(amount0: int, amount1: int, amount0_min: int, amount1_min: int) -> None:
        if amount0 < amount0_min:
            raise BoundsViolation("amount0 below minimum", f"{amount0} < {amount0_min}")
        if amount1 < amount1_min:
            raise BoundsViolation("amount1 below minimum", f"{amount1} < {amount1_min}")
