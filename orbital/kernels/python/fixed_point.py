"""
Fixed-point primitives (WAD = 1e18 scale).

All curve formulas route their multiply-then-divide steps through `mul_div`
so that the rounding direction is explicit at every call site. Operands and
results are held to the uint256 range, which is the width the pool's reserve
and price bounds are sized against.
"""

from __future__ import annotations

import math

from ...errors import MathOverflow


WAD = 10**18
MAX_UINT256 = 2**256 - 1
MAX_RESERVE = 2**112 - 1


def _require_uint(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def _check_width(operation: str, value: int) -> int:
    if value > MAX_UINT256:
        raise MathOverflow(operation, value)
    return value


def mul_div(a: int, b: int, denominator: int, round_up: bool = False) -> int:
    """
    Compute a * b / denominator with full intermediate precision.

    The product is never truncated; only the final quotient is rounded
    (down by default, up when `round_up`). Raises MathOverflow when an operand
    or the result does not fit in 256 bits.
    """
    _require_uint("a", a)
    _require_uint("b", b)
    _require_uint("denominator", denominator)
    _check_width("mul_div.a", a)
    _check_width("mul_div.b", b)
    _check_width("mul_div.denominator", denominator)
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")

    q, r = divmod(a * b, denominator)
    if round_up and r:
        q += 1
    return _check_width("mul_div", q)


def ceil_div(numerator: int, denominator: int) -> int:
    _require_uint("numerator", numerator)
    if not isinstance(denominator, int) or isinstance(denominator, bool) or denominator <= 0:
        raise ValueError("denominator must be a positive int")
    return (numerator + denominator - 1) // denominator


def sqrt(x: int) -> int:
    """Integer square root, rounded down."""
    _require_uint("x", x)
    return math.isqrt(x)


def sqrt_ceil(x: int) -> int:
    """Integer square root, rounded up."""
    r = sqrt(x)
    return r if r * r == x else r + 1
