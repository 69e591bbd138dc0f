"""
Orbital curve kernel (v1 semantics).

Pair curve for one tick, with reserves (x, y), equilibrium point (x0, y0),
prices (px, py) and concentrations (cx, cy), all fixed-point with WAD = 1e18:

  x <= x0:  y = f(x)  = y0 + (px/py) * (x0 - x) * (cx + (1 - cx) * x0 / x)
  y <= y0:  x = f(y)  (same formula with the axes swapped)

A reserve pair is acceptable when it lies on or above the curve. With c = 1 the
curve is the constant-sum line through the peg; with c = 0 it is a
constant-product hyperbola.

n-asset generalization (separable):
  every asset above equilibrium credits  p_i * (r_i - e_i)
  every asset below equilibrium debits   p_i * (e_i - r_i) * (c_i * r_i + (1 - c_i) * e_i) / r_i
  reserves are acceptable iff  sum(credits) >= sum(debits)

For two assets this is exactly the pair curve: `py*(y - y0) >= ceil(debit_x)` is
the same comparison as `y >= f(x)`.

Rounding:
- Curve heights and debits round up; credits are exact. Every rounding step
  therefore makes acceptance harder, never easier.
- `f_inverse` computes the quadratic root with rounded-up intermediates and
  then normalizes to the exact minimal integer by bisection against `f`.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ...errors import InvalidDomain, MathOverflow
from .binary_search import search_min_satisfying
from .fixed_point import MAX_RESERVE, WAD, ceil_div, mul_div, sqrt, sqrt_ceil


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def f(x: int, px: int, py: int, x0: int, y0: int, c: int) -> int:
    """
    Height of the curve at x (0 < x <= x0), rounded up.

    Raises MathOverflow when the height does not fit in 256 bits (x very close to 0).
    """
    if x <= 0 or x > x0:
        raise ValueError(f"f is defined on (0, x0]: x={x}, x0={x0}")
    v = mul_div(px * (x0 - x), c * x + (WAD - c) * x0, x * WAD, round_up=True)
    return y0 + ceil_div(v, py)


def _height_at_most(x: int, y: int, px: int, py: int, x0: int, y0: int, c: int) -> bool:
    try:
        return f(x, px, py, x0, y0, c) <= y
    except MathOverflow:
        # Required height is beyond 256 bits, so no representable y reaches it.
        return False


def verify(x: int, y: int, px: int, py: int, x0: int, y0: int, cx: int, cy: int) -> bool:
    """True iff (x, y) lies on or above the pair curve."""
    for name, v in (("x", x), ("y", y)):
        _require_int(name, v)
        if v < 0:
            raise ValueError(f"{name} must be non-negative: {v}")
    if x > MAX_RESERVE or y > MAX_RESERVE:
        return False

    if x >= x0:
        if y >= y0:
            return True
        if y == 0:
            return False
        return _height_at_most(y, x, py, px, y0, x0, cy)
    if y < y0 or x == 0:
        return False
    return _height_at_most(x, y, px, py, x0, y0, cx)


def _closed_form_candidate(y: int, px: int, py: int, x0: int, y0: int, c: int) -> int:
    # Curve in x-units: (c/W)*x^2 + B*x - C = 0 with
    #   B = py*(y - y0)/px + (1 - 2c/W)*x0
    #   C = (1 - c/W)*x0^2
    y_units = mul_div(py, y - y0, px, round_up=True)
    two_c = 2 * c
    if two_c <= WAD:
        b = y_units + mul_div(WAD - two_c, x0, WAD, round_up=True)
    else:
        b = y_units - mul_div(two_c - WAD, x0, WAD)
    big_c = mul_div(WAD - c, x0 * x0, WAD, round_up=True)

    if c == 0:
        # Linear: B*x = C, and B >= x0 > 0 here.
        return ceil_div(big_c, b)

    four_ac = mul_div(4 * c, big_c, WAD, round_up=True)
    abs_b = -b if b < 0 else b
    discriminant = mul_div(abs_b, abs_b, 1) + four_ac
    root = sqrt_ceil(discriminant)

    if b <= 0:
        # x = W * (-B + sqrt(D)) / 2c
        return mul_div(abs_b + root, WAD, two_c, round_up=True)
    if big_c == 0:
        return 0
    # Same root, written without cancellation: x = 2C / (B + sqrt(D))
    return ceil_div(2 * big_c, abs_b + sqrt(discriminant))


def f_inverse(y: int, px: int, py: int, x0: int, y0: int, c: int) -> int:
    """
    Smallest integer x in [1, x0] with f(x) <= y, i.e. the tight inverse of `f`.

    Precondition: y > y0. At or below the reference point the closed form is
    undefined and InvalidDomain is raised; the mirrored call (axes swapped)
    covers that half of the curve.
    """
    _require_int("y", y)
    if y <= y0:
        raise InvalidDomain(y, y0)

    try:
        guess = _closed_form_candidate(y, px, py, x0, y0, c)
    except MathOverflow:
        guess = x0
    guess = max(1, min(x0, guess))

    def ok(v: int) -> bool:
        return _height_at_most(v, y, px, py, x0, y0, c)

    return _gallop_min(ok, guess, 1, x0)


def _gallop_min(pred, guess: int, lo_limit: int, hi_limit: int) -> int:
    """
    Minimal v in [lo_limit, hi_limit] with pred(v), starting near `guess`.

    pred must be monotone and true at hi_limit. The bracket grows by doubling
    away from the guess, so an accurate guess costs O(1) evaluations.
    """
    step = 1
    if pred(guess):
        hi = guess
        lo = guess - step
        while lo >= lo_limit and pred(lo):
            hi = lo
            step *= 2
            lo = hi - step
        if lo < lo_limit:
            if pred(lo_limit):
                return lo_limit
            lo = lo_limit
    else:
        lo = guess
        hi = guess + step
        while hi < hi_limit and not pred(hi):
            lo = hi
            step *= 2
            hi = lo + step
        hi = min(hi, hi_limit)
    # pred(lo) is false and pred(hi) is true.
    return search_min_satisfying(pred, lo + 1, hi) if lo + 1 <= hi else hi


# --- n-asset invariant --------------------------------------------------------


def debit(r: int, p: int, e: int, c: int) -> int:
    """Debit of an asset below equilibrium (0 < r < e), rounded up."""
    if r <= 0:
        raise ValueError("debit is undefined for an empty reserve")
    if r >= e:
        return 0
    return mul_div(p * (e - r), c * r + (WAD - c) * e, r * WAD, round_up=True)


def credit(r: int, p: int, e: int) -> int:
    return p * (r - e) if r > e else 0


def invariant_slack(
    reserves: Sequence[int],
    equilibrium: Sequence[int],
    prices: Sequence[int],
    concentrations: Sequence[int],
    *,
    exclude: Sequence[int] = (),
) -> Optional[int]:
    """
    sum(credits) - sum(debits) over all assets not in `exclude`.

    Returns None when some included asset below equilibrium has an empty
    reserve, or its debit does not fit in 256 bits (unbounded debit).
    """
    slack = 0
    for i, (r, e, p, c) in enumerate(zip(reserves, equilibrium, prices, concentrations)):
        if i in exclude:
            continue
        if r >= e:
            slack += credit(r, p, e)
            continue
        if r == 0:
            return None
        try:
            slack -= debit(r, p, e, c)
        except MathOverflow:
            return None
    return slack


def verify_reserves(
    reserves: Sequence[int],
    equilibrium: Sequence[int],
    prices: Sequence[int],
    concentrations: Sequence[int],
) -> bool:
    """n-asset acceptance test."""
    if not (len(reserves) == len(equilibrium) == len(prices) == len(concentrations)):
        raise ValueError("reserves/equilibrium/prices/concentrations length mismatch")
    for r in reserves:
        _require_int("reserve", r)
        if r < 0:
            raise ValueError(f"reserve must be non-negative: {r}")
        if r > MAX_RESERVE:
            return False
    slack = invariant_slack(reserves, equilibrium, prices, concentrations)
    return slack is not None and slack >= 0


# --- tick boundary ------------------------------------------------------------


def reserve_at_price(
    price: int,
    *,
    p_in: int,
    p_out: int,
    c_in: int,
    c_out: int,
    e_in: int,
    e_out: int,
) -> int:
    """
    Output-asset reserve at which the marginal price of the output asset,
    quoted in input-asset units (WAD), reaches `price` on the pair curve.

    Buying the output asset pushes its marginal price up, so the returned value
    is a reserve floor: trading below it crosses the price. Rounded up (stops
    the trade early rather than late).
    """
    if price <= 0:
        raise ValueError("price must be positive")
    q = mul_div(price, p_in, p_out)

    if q >= WAD:
        # Output asset below equilibrium: |dx/dy| = (p_out/p_in) * (c + (1 - c) * e^2 / y^2)
        if c_out == WAD:
            return e_out if q == WAD else 0
        squared = mul_div(e_out * e_out, WAD - c_out, q - c_out, round_up=True)
        return min(e_out, sqrt_ceil(squared))

    # Output asset above equilibrium, input asset below: price stays under the peg.
    if c_in == WAD or q == 0:
        return MAX_RESERVE
    u = mul_div(WAD, WAD, q)
    x = sqrt(mul_div(e_in * e_in, WAD - c_in, u - c_in))
    if x <= 0:
        return MAX_RESERVE
    try:
        return f(min(x, e_in), p_in, p_out, e_in, e_out, c_in)
    except MathOverflow:
        return MAX_RESERVE
