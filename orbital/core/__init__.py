"""
Core Orbital AMM: curve API, swap math, pools, quoting and routing
"""

from .curve import f_inverse, verify, verify_pool
from .fees import MAX_PROTOCOL_FEE, FeeConfig, ProtocolFee
from .path import decode_first_pool, decode_path, encode_path, has_multiple_pools, num_pools, skip_token
from .periphery import Periphery, PathSwapResult
from .pool import Pool, PoolSnapshot
from .quoter import PathQuote, Quoter, SingleQuote
from .routing import RouteQuote, best_route_exact_in_2hop
from .swap_math import SwapResult, compute_swap
from .ticks import TickLadder, TickRange, price_at_tick
from .encrypted import (
    ConstantSumEngine,
    EncryptedPool,
    HomomorphicArithmetic,
    PlaintextArithmetic,
)

__all__ = [
    "verify",
    "verify_pool",
    "f_inverse",
    "compute_swap",
    "SwapResult",
    "Pool",
    "PoolSnapshot",
    "FeeConfig",
    "ProtocolFee",
    "MAX_PROTOCOL_FEE",
    "encode_path",
    "decode_path",
    "decode_first_pool",
    "num_pools",
    "has_multiple_pools",
    "skip_token",
    "Quoter",
    "SingleQuote",
    "PathQuote",
    "Periphery",
    "PathSwapResult",
    "TickLadder",
    "TickRange",
    "price_at_tick",
    "RouteQuote",
    "best_route_exact_in_2hop",
    "ConstantSumEngine",
    "EncryptedPool",
    "PlaintextArithmetic",
    "HomomorphicArithmetic",
]
