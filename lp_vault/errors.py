"""
Vault 에러 계층

모든 실패는 동기적이며 작업 전체를 중단시킵니다 (부분 커밋 없음).
각 예외는 짧은 `reason` 코드를 가지며, 호출자는 이를 보고 파라미터를 조정해
재시도할지 결정합니다.

- PreconditionViolation: 0 수량, 권한 없음, 쿨다운, 잘못된 수신자, 재진입
- BoundsViolation: 최소/최대 수량, 공급 한도, 틱 범위/정렬, 잘못된 설정값
- StalenessViolation: TWAP 편차 초과, 전역 틱 경계 근접
- ArithmeticViolation: uint128/uint256 범위 초과
"""


class VaultError(Exception):
    """Vault 작업 실패의 최상위 예외"""

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        message = f"{reason}: {detail}" if detail else reason
        super().__init__(message)


class PreconditionViolation(VaultError):
    """호출 전제 조건 위반"""


class UnauthorizedCaller(PreconditionViolation):
    """역할(governance/keeper/team)이 맞지 않는 호출자"""


class BoundsViolation(VaultError, ValueError):
    """허용 범위를 벗어난 수량 또는 틱"""


class StalenessViolation(VaultError):
    """가격이 TWAP에서 벗어났거나 극단 구간에 있음"""


class ArithmeticViolation(VaultError, ArithmeticError):
    """고정 폭 정수 범위를 벗어나는 연산"""
