"""시뮬레이션 시계 (초 단위, 수동 진행)"""


class SimClock:

    def __init__(self, start: int = 1_700_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"시간은 되돌릴 수 없습니다: {seconds}")
        self.now += seconds
        return self.now
