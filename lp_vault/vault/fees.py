"""
Fee Distributor - 수집된 수수료의 프로토콜/팀/예치자 분배

    fees      = collected - burned
    protocol  = fees * protocol_fee // 1e6
    owner     = protocol // 2          (governance 가 인출)
    team      = protocol - owner       (team 주소가 인출)
    depositor = fees - protocol        (vault idle 잔고에 남음)

owner/team 버킷은 vault 토큰 잔고 안에 있지만 idle 잔고와 총 보유량 계산에서
항상 제외됩니다.
"""

import logging
from typing import List, NamedTuple, Tuple

from ..constants import PROTOCOL_FEE_DENOMINATOR
from ..errors import BoundsViolation

logger = logging.getLogger(__name__)


class FeeSplit(NamedTuple):
    to_depositors: int
    to_owner: int
    to_team: int


def split_fee(amount: int, protocol_fee: int) -> FeeSplit:
    """한 토큰의 수수료를 세 몫으로 분할 (합은 항상 amount)"""
    if amount < 0:
        raise BoundsViolation("negative fee", str(amount))
    protocol = amount * protocol_fee // PROTOCOL_FEE_DENOMINATOR
    owner = protocol // 2
    return FeeSplit(amount - protocol, owner, protocol - owner)


class FeeDistributor:
    """owner / team 수수료 버킷"""

    def __init__(self):
        self.accrued_protocol: List[int] = [0, 0]
        self.accrued_team: List[int] = [0, 0]

    def distribute(self, fees0: int, fees1: int, protocol_fee: int) -> Tuple[int, int]:
        """수수료를 버킷에 적립하고 예치자 몫을 반환"""
        split0 = split_fee(fees0, protocol_fee)
        split1 = split_fee(fees1, protocol_fee)

        self.accrued_protocol[0] += split0.to_owner
        self.accrued_protocol[1] += split1.to_owner
        self.accrued_team[0] += split0.to_team
        self.accrued_team[1] += split1.to_team

        if fees0 or fees1:
            logger.info(
                "Fees collected: %d / %d (protocol %d / %d, team %d / %d)",
                fees0, fees1, split0.to_owner, split1.to_owner, split0.to_team, split1.to_team
            )
        return split0.to_depositors, split1.to_depositors

    def reserved(self) -> Tuple[int, int]:
        """idle 잔고에서 제외할 양"""
        return (
            self.accrued_protocol[0] + self.accrued_team[0],
            self.accrued_protocol[1] + self.accrued_team[1],
        )

    def withdraw_protocol(self, amount0: int, amount1: int) -> None:
        self._take(self.accrued_protocol, amount0, amount1, "protocol")

    def withdraw_team(self, amount0: int, amount1: int) -> None:
        self._take(self.accrued_team, amount0, amount1, "team")

    @staticmethod
    def _take(bucket: List[int], amount0: int, amount1: int, name: str) -> None:
        if amount0 < 0 or amount1 < 0:
            raise BoundsViolation("negative amount")
        if amount0 > bucket[0] or amount1 > bucket[1]:
            raise BoundsViolation(
                f"{name} fees exceeded",
                f"requested {amount0} / {amount1}, accrued {bucket[0]} / {bucket[1]}"
            )
        bucket[0] -= amount0
        bucket[1] -= amount1

    def checkpoint(self) -> object:
        return list(self.accrued_protocol), list(self.accrued_team)

    def rollback(self, state: object) -> None:
        protocol, team = state
        self.accrued_protocol = list(protocol)
        self.accrued_team = list(team)
