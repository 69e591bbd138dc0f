"""
Integer bisection over monotone predicates.

A predicate here is monotone non-decreasing in its argument: once it holds for
some v it holds for every v' >= v. Both helpers return the exact boundary (the
bracket is narrowed to a single integer), so callers that pick "the smallest
satisfying reserve" get the tightest value the predicate allows.
"""

from __future__ import annotations

from typing import Callable


DEFAULT_MAX_ITERATIONS = 256


def search_min_satisfying(
    predicate: Callable[[int], bool],
    lo: int,
    hi: int,
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> int:
    """
    Return the smallest v in [lo, hi] with predicate(v) true.

    Raises ValueError if predicate(hi) is false (no satisfying value in range).
    Complexity: O(log(hi - lo)) predicate evaluations.
    """
    if lo < 0 or hi < lo:
        raise ValueError(f"invalid search bracket: [{lo}, {hi}]")
    if not predicate(hi):
        raise ValueError(f"predicate does not hold at upper bound {hi}")
    if predicate(lo):
        return lo

    # Invariant: predicate(lo) is false, predicate(hi) is true.
    for _ in range(max_iterations):
        if hi - lo <= 1:
            return hi
        mid = lo + (hi - lo) // 2
        if predicate(mid):
            hi = mid
        else:
            lo = mid
    raise RuntimeError("bisection exceeded iteration bound (unexpected)")


def search_upper_bound(
    predicate: Callable[[int], bool],
    start: int,
    cap: int,
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> int:
    """
    Find some v in [start, cap] with predicate(v) true by doubling from `start`.

    Returns the first doubled value (clamped to `cap`) that satisfies the
    predicate. Raises ValueError if even `cap` does not.
    """
    if start < 1 or cap < start:
        raise ValueError(f"invalid doubling range: [{start}, {cap}]")
    v = start
    for _ in range(max_iterations):
        if predicate(v):
            return v
        if v >= cap:
            raise ValueError(f"predicate does not hold at cap {cap}")
        v = min(cap, v * 2)
    raise RuntimeError("doubling exceeded iteration bound (unexpected)")
