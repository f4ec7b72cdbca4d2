"""
Vault engine

- vault: 공개 작업 진입점 (deposit / withdraw / rebalance / governance)
- shares: 지분 발행/상환 계산
- ranges: base / limit 범위 선택
- positions: AMM 포지션 mint / burn / collect
- rebalance: rebalance 상태 머신
- fees: 프로토콜 / 팀 수수료 분배
- guard: 재진입 락, 원자적 롤백, 공통 검사
"""

from .config import VaultConfig, WithdrawalBasis
from .fees import FeeDistributor, FeeSplit, split_fee
from .guard import GuardRail
from .positions import PositionLedger
from .ranges import RangeSelector, check_threshold
from .rebalance import (
    RebalanceEngine,
    RebalanceState,
    check_price_bounds,
    check_twap_deviation,
    get_twap,
)
from .shares import ShareAccountant, pro_rata
from .types import (
    BurnResult,
    DepositQuote,
    DepositResult,
    Holdings,
    PositionInfo,
    RebalanceReport,
    Roles,
    TickRange,
    VaultState,
    WithdrawResult,
)
from .vault import Vault
