"""
State types for Orbital pools
"""

from .balances import LedgerError, TokenLedger
from .lp import LiquidityPosition, PositionBook
from .pools import CurveParams, PoolParams, PoolState, PoolStatus, compute_pool_id

__all__ = [
    "TokenLedger",
    "LedgerError",
    "LiquidityPosition",
    "PositionBook",
    "CurveParams",
    "PoolParams",
    "PoolState",
    "PoolStatus",
    "compute_pool_id",
]
