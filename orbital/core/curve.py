"""
Curve invariant API over `CurveParams` / `PoolParams`.

Thin validated wrappers around `orbital/kernels/python/orbital_curve_v1.py`:
- `verify(reserve_a, reserve_b, params)` is the pair acceptance test,
- `f_inverse(...)` is the closed-form inversion (raises InvalidDomain for y <= y0),
- `verify_pool(reserves, equilibrium, params)` is the n-asset acceptance test,
- `min_reserve_out` / `min_reserve_in` answer "how little of y (resp. how much of x)
  keeps the pair on the curve" with the closed form, choosing the branch by
  which side of the peg the known coordinate sits on.

Monotonicity (the property the bisection fallback relies on): with params fixed,
if verify(x, y) holds then verify(x', y') holds for every x' >= x, y' >= y.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..kernels.python import orbital_curve_v1 as kernel
from ..state.balances import Amount
from ..state.pools import CurveParams, PoolParams


def verify(reserve_a: Amount, reserve_b: Amount, params: CurveParams) -> bool:
    """True iff (reserve_a, reserve_b) is on or outside the curve."""
    return kernel.verify(
        int(reserve_a),
        int(reserve_b),
        params.price_x,
        params.price_y,
        params.x0,
        params.y0,
        params.concentration_x,
        params.concentration_y,
    )


def f(x: Amount, px: int, py: int, x0: int, y0: int, c: int) -> int:
    return kernel.f(int(x), int(px), int(py), int(x0), int(y0), int(c))


def f_inverse(y: Amount, px: int, py: int, x0: int, y0: int, c: int) -> int:
    """
    Solve x from y on the x-deficit branch. Result is rounded up and tight:
    verify(result, y) holds and verify(result - 1, y) does not.

    Raises:
        InvalidDomain: if y <= y0
    """
    return kernel.f_inverse(int(y), int(px), int(py), int(x0), int(y0), int(c))


def min_reserve_out(x_new: Amount, params: CurveParams) -> int:
    """
    Smallest y such that verify(x_new, y) holds.

    x_new below the peg: y = f(x_new). At the peg: y0. Above: invert the
    mirrored branch (the closed form sees x_new as its "y > y0" argument).
    """
    if x_new <= 0:
        raise ValueError("x_new must be positive")
    if x_new < params.x0:
        return f(x_new, params.price_x, params.price_y, params.x0, params.y0, params.concentration_x)
    if x_new == params.x0:
        return params.y0
    return f_inverse(x_new, params.price_y, params.price_x, params.y0, params.x0, params.concentration_y)


def min_reserve_in(y_new: Amount, params: CurveParams) -> int:
    """Smallest x such that verify(x, y_new) holds."""
    return min_reserve_out(y_new, params.swapped())


def verify_pool(
    reserves: Sequence[Amount],
    equilibrium: Sequence[Amount],
    params: PoolParams,
) -> bool:
    """n-asset acceptance test for a pool's reserves around its current equilibrium."""
    return kernel.verify_reserves(reserves, equilibrium, params.prices, params.concentrations)


def others_slack(
    reserves: Sequence[Amount],
    equilibrium: Sequence[Amount],
    params: PoolParams,
    i: int,
    j: int,
) -> Optional[int]:
    """Invariant slack contributed by every asset except i and j."""
    return kernel.invariant_slack(
        reserves, equilibrium, params.prices, params.concentrations, exclude=(i, j)
    )
