"""
Reference simulation

Vault 협력자(풀, 토큰, 지분 원장, 시계)의 인메모리 구현.
"""

from .clock import SimClock
from .environment import SimEnvironment
from .ledger import Ledger
from .pool import SimPool
