"""
Vault 설정

VaultConfig 는 불변(frozen)이며 버전을 가집니다. 각 작업은 시작 시점에 설정을
한 번만 읽으므로 setter 변경은 다음 작업부터 적용됩니다.
틱 간격과의 정렬 검사는 풀에 의존하므로 Vault 에서 수행합니다.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..constants import MAX_TICK, PROTOCOL_FEE_DENOMINATOR
from ..errors import BoundsViolation

logger = logging.getLogger(__name__)


class WithdrawalBasis(str, Enum):
    """출금 기준

    POSITION: 지분 비율만큼 AMM 포지션을 burn 해서 지급 (기본값)
    BALANCE: vault 의 free balance 비율만 지급, AMM 포지션은 건드리지 않음.
             이 모드에서는 예치가 거부됩니다.
    """
    POSITION = "position"
    BALANCE = "balance"


class VaultConfig(BaseModel):
    """Vault 파라미터 (governance 만 변경 가능)"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: int = Field(default=1, ge=1)
    base_threshold: int = Field(..., gt=0, le=MAX_TICK, description="base 범위 반폭 (틱)")
    limit_threshold: int = Field(..., gt=0, le=MAX_TICK, description="limit 범위 폭 (틱)")
    max_twap_deviation: int = Field(default=100, ge=0, description="현재 틱과 TWAP 허용 편차")
    twap_duration: int = Field(default=60, gt=0, lt=2 ** 32, description="TWAP 구간 (초)")
    rebalance_cooldown: int = Field(default=0, ge=0, description="rebalance 최소 간격 (초)")
    max_total_supply: int = Field(default=0, ge=0, description="지분 공급 한도 (0 = 무제한)")
    protocol_fee: int = Field(default=0, ge=0, lt=PROTOCOL_FEE_DENOMINATOR)
    idle_dust_threshold: int = Field(default=0, ge=0, description="예치 비례 계산에서 무시할 idle 잔고")
    withdrawal_basis: WithdrawalBasis = WithdrawalBasis.POSITION

    @property
    def max_threshold(self) -> int:
        return max(self.base_threshold, self.limit_threshold)

    def evolve(self, **changes: Any) -> "VaultConfig":
        """변경 사항을 적용한 다음 버전의 설정"""
        if "version" in changes:
            raise BoundsViolation("invalid config", "version is managed by the vault")
        data = self.model_dump()
        data.update(changes)
        data["version"] = self.version + 1
        return VaultConfig.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VaultConfig":
        try:
            return cls(**data)
        except ValidationError as e:
            raise BoundsViolation("invalid config", str(e)) from e

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "VaultConfig":
        """YAML 파일에서 설정 로드 (최상위 `vault:` 키 또는 평탄한 매핑)"""
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
        data = raw.get("vault", raw)
        logger.info("Loaded vault config from %s", path)
        return cls.from_dict(data)
