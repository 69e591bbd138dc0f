"""
Bisection solvers for the n-asset pool invariant.

When the assets that do not take part in a trade sit off equilibrium, their
credits and debits shift the pair boundary and the closed form no longer
applies. These solvers fall back to searching the full invariant:

- `solve_min_reserve_out`: with asset i's reserve fixed, the smallest reserve
  of asset j that still verifies (exact-in),
- `solve_min_reserve_in`: with asset j's reserve fixed, the smallest reserve of
  asset i that verifies (exact-out).

Both rely on monotonicity: raising any reserve never breaks verification.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from ..errors import InsufficientReserves
from ..kernels.python.binary_search import (
    DEFAULT_MAX_ITERATIONS,
    search_min_satisfying,
    search_upper_bound,
)
from ..kernels.python.fixed_point import MAX_RESERVE
from ..state.pools import PoolParams
from . import curve


def _with(reserves: Sequence[int], index: int, value: int) -> Tuple[int, ...]:
    out = list(reserves)
    out[index] = int(value)
    return tuple(out)


def solve_min_reserve_out(
    reserves: Sequence[int],
    equilibrium: Sequence[int],
    params: PoolParams,
    i: int,
    j: int,
    reserve_in_after: int,
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> int:
    """
    Smallest r_j such that the pool verifies with r_i = reserve_in_after.

    The pre-trade reserve of j is the upper bracket: adding input never makes
    a verifying state fail. Raises InsufficientReserves if even that does not
    verify (pool was not on the curve to begin with).
    """
    base = _with(reserves, i, reserve_in_after)

    def ok(y: int) -> bool:
        return curve.verify_pool(_with(base, j, y), equilibrium, params)

    hi = int(reserves[j])
    if hi < 1 or not ok(hi):
        raise InsufficientReserves(j, 0, hi)
    return search_min_satisfying(ok, 1, hi, max_iterations=max_iterations)


def solve_min_reserve_in(
    reserves: Sequence[int],
    equilibrium: Sequence[int],
    params: PoolParams,
    i: int,
    j: int,
    reserve_out_after: int,
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> int:
    """
    Smallest r_i such that the pool verifies with r_j = reserve_out_after.

    The upper bracket is found by doubling from the current reserve of i.
    Raises InsufficientReserves when no representable reserve of i reaches it.
    """
    base = _with(reserves, j, reserve_out_after)

    def ok(x: int) -> bool:
        return curve.verify_pool(_with(base, i, x), equilibrium, params)

    try:
        hi = search_upper_bound(ok, max(1, int(reserves[i])), MAX_RESERVE, max_iterations=max_iterations)
    except ValueError:
        raise InsufficientReserves(j, int(reserves[j]) - int(reserve_out_after), int(reserves[j])) from None
    return search_min_satisfying(ok, 1, hi, max_iterations=max_iterations)
