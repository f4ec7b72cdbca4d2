"""
Vault Simulation Environment

SimPool + Ledger + SimClock 위에 Vault 를 올린 실행 환경.
테스트와 HTTP 서비스가 같은 구성을 사용합니다.

Example:
    >>> env = SimEnvironment.create(VaultConfig(base_threshold=1200, limit_threshold=600))
    >>> env.faucet("alice", 10**18, 10**18)
    >>> env.vault.deposit(10**18, 10**18, 0, 0, "alice", sender="alice")
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..math import MAX_SQRT_RATIO, MIN_SQRT_RATIO
from ..vault.config import VaultConfig
from ..vault.vault import Vault
from .clock import SimClock
from .ledger import Ledger
from .pool import SimPool

logger = logging.getLogger(__name__)


@dataclass
class SimEnvironment:
    clock: SimClock
    token0: Ledger
    token1: Ledger
    shares: Ledger
    pool: SimPool
    vault: Vault

    @classmethod
    def create(
        cls,
        config: VaultConfig,
        initial_tick: int = 0,
        tick_spacing: Optional[int] = None,
        fee: int = 3000,
        governance: str = "governance",
        keeper: Optional[str] = None,
        team: Optional[str] = "team",
        start_time: int = 1_700_000_000,
        symbols: Tuple[str, str] = ("TOKEN0", "TOKEN1")
    ) -> "SimEnvironment":
        clock = SimClock(start_time)
        token0 = Ledger(symbols[0])
        token1 = Ledger(symbols[1])
        shares = Ledger("LPV", address="lpv")
        pool = SimPool.from_tick(
            token0, token1, initial_tick, tick_spacing=tick_spacing, fee=fee, clock=clock
        )
        vault = Vault(
            pool, shares, config,
            governance=governance, keeper=keeper, team=team, clock=clock
        )
        logger.info(
            "Simulation ready: tick %d, spacing %d, fee %d", initial_tick, pool.tick_spacing, fee
        )
        return cls(clock, token0, token1, shares, pool, vault)

    def faucet(self, holder: str, amount0: int, amount1: int) -> None:
        """테스트 토큰 지급"""
        if amount0:
            self.token0.mint(holder, amount0)
        if amount1:
            self.token1.mint(holder, amount1)

    def advance(self, seconds: int) -> int:
        return self.clock.advance(seconds)

    def add_liquidity(self, owner: str, tick_lower: int, tick_upper: int, liquidity: int) -> Tuple[int, int]:
        """vault 외부 LP 포지션 추가 (owner 잔고에서 정산)"""
        def settle(amount0: int, amount1: int) -> None:
            if amount0:
                self.token0.transfer(owner, self.pool.address, amount0)
            if amount1:
                self.token1.transfer(owner, self.pool.address, amount1)

        return self.pool.mint(owner, tick_lower, tick_upper, liquidity, settle)

    def swap(
        self,
        trader: str,
        zero_for_one: bool,
        amount_in: int,
        sqrt_price_limit_x96: int = 0
    ) -> Tuple[int, int]:
        """trader 잔고로 exact-input 스왑"""
        if sqrt_price_limit_x96 == 0:
            sqrt_price_limit_x96 = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1

        def settle(amount0_delta: int, amount1_delta: int) -> None:
            if amount0_delta > 0:
                self.token0.transfer(trader, self.pool.address, amount0_delta)
            if amount1_delta > 0:
                self.token1.transfer(trader, self.pool.address, amount1_delta)

        return self.pool.swap(trader, zero_for_one, amount_in, sqrt_price_limit_x96, settle)
