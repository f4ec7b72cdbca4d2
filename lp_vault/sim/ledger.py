"""
Ledger - 인메모리 잔고 원장

풀 토큰(TokenLedger)과 vault 지분(ShareLedger) 양쪽으로 사용합니다.
checkpoint / rollback 을 지원하므로 실패한 vault 작업의 이체도 되돌려집니다.
"""

from typing import Dict, Optional

from ..errors import BoundsViolation
from ..math import to_uint256


class Ledger:
    """단순 잔고 원장

    Args:
        symbol: 토큰 심볼 (예: "WETH")
        address: 원장 주소 (기본값: 소문자 심볼)
        decimals: 표시용 소수 자릿수
    """

    def __init__(self, symbol: str, address: Optional[str] = None, decimals: int = 18):
        self.symbol = symbol
        self.address = address or symbol.lower()
        self.decimals = decimals
        self._balances: Dict[str, int] = {}
        self._total_supply = 0

    def __repr__(self) -> str:
        return f"Ledger({self.symbol}, supply={self._total_supply})"

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def total_supply(self) -> int:
        return self._total_supply

    def mint(self, holder: str, amount: int) -> None:
        self._check_amount(amount)
        self._total_supply = to_uint256(self._total_supply + amount)
        self._balances[holder] = self.balance_of(holder) + amount

    def burn(self, holder: str, amount: int) -> None:
        self._check_amount(amount)
        self._debit(holder, amount)
        self._total_supply -= amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._check_amount(amount)
        self._debit(sender, amount)
        self._balances[recipient] = self.balance_of(recipient) + amount

    def _debit(self, holder: str, amount: int) -> None:
        balance = self.balance_of(holder)
        if amount > balance:
            raise BoundsViolation(
                "insufficient balance", f"{self.symbol} {holder}: {amount} > {balance}"
            )
        self._balances[holder] = balance - amount

    @staticmethod
    def _check_amount(amount: int) -> None:
        if amount < 0:
            raise BoundsViolation("negative amount", str(amount))

    def checkpoint(self) -> object:
        return dict(self._balances), self._total_supply

    def rollback(self, state: object) -> None:
        balances, total_supply = state
        self._balances = dict(balances)
        self._total_supply = total_supply
