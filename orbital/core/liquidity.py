"""
Liquidity math for n-asset pools: the first deposit, ratio-preserving mint
and proportional burn.

Pure functions with explicit rounding, always in the pool's favour:
- deposits used are rounded up, shares minted rounded down,
- withdrawals are rounded down,
- the equilibrium point grows by floor on mint and shrinks by ceil on burn.

The curve is homogeneous of degree one, so scaling reserves and equilibrium by
the same factor scales the invariant slack by that factor; the rounding above
only ever adds slack.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from ..errors import InsufficientLiquidity, UnbalancedDeposit
from ..kernels.python.fixed_point import WAD, ceil_div


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class InitialMintResult:
    shares_minted: int
    total_supply: int


@dataclass(frozen=True)
class MintResult:
    shares_minted: int
    amounts_used: Tuple[int, ...]
    refunds: Tuple[int, ...]
    reserves_after: Tuple[int, ...]
    equilibrium_after: Tuple[int, ...]
    total_supply: int


@dataclass(frozen=True)
class BurnResult:
    amounts_out: Tuple[int, ...]
    reserves_after: Tuple[int, ...]
    equilibrium_after: Tuple[int, ...]
    total_supply: int


def _check_amounts(amounts: Sequence[int], n: int) -> Tuple[int, ...]:
    if len(amounts) != n:
        raise ValueError(f"expected {n} amounts, got {len(amounts)}")
    for k, a in enumerate(amounts):
        _require_int(f"amounts[{k}]", a)
        if a <= 0:
            raise ValueError(f"amounts must be positive: {tuple(amounts)}")
    return tuple(amounts)


def mint_initial(amounts: Sequence[int], prices: Sequence[int], *, min_liquidity: int) -> InitialMintResult:
    """
    First deposit into an empty pool.

    Total shares are the deposit's value at the pool prices (WAD, rounded
    down); `min_liquidity` of them stay locked forever.
    """
    amounts = _check_amounts(amounts, len(prices))
    value = sum(a * p for a, p in zip(amounts, prices)) // WAD
    if value <= min_liquidity:
        raise InsufficientLiquidity("initial deposit below minimum liquidity", value, min_liquidity + 1)
    return InitialMintResult(shares_minted=value - min_liquidity, total_supply=value)


def initial_equilibrium(amounts: Sequence[int], reference: Sequence[int]) -> Tuple[int, ...]:
    """
    Equilibrium point for the first deposit: the reference point scaled onto it.

    The deposit must keep the reference ratio exactly; it then sits on the
    equilibrium point with zero invariant slack.
    """
    amounts = _check_amounts(amounts, len(reference))
    if any(a * reference[0] != amounts[0] * r for a, r in zip(amounts, reference)):
        raise UnbalancedDeposit(amounts, tuple(reference))
    return amounts


def mint_proportional(
    reserves: Sequence[int],
    equilibrium: Sequence[int],
    lp_supply: int,
    amounts_desired: Sequence[int],
) -> MintResult:
    """
    shares = min_i floor(amount_i * S / r_i)
    used_i = ceil(shares * r_i / S)   (never above amount_i)
    """
    n = len(reserves)
    desired = _check_amounts(amounts_desired, n)
    if lp_supply <= 0 or any(r <= 0 for r in reserves):
        raise InsufficientLiquidity("pool has no liquidity to mint against", 0, lp_supply)

    shares = min((a * lp_supply) // r for a, r in zip(desired, reserves))
    if shares <= 0:
        raise InsufficientLiquidity("deposit too small to mint a share", shares, 1)

    used = tuple(ceil_div(shares * r, lp_supply) for r in reserves)
    if any(u > a for u, a in zip(used, desired)):
        raise AssertionError("used amounts exceed desired amounts")
    return MintResult(
        shares_minted=shares,
        amounts_used=used,
        refunds=tuple(a - u for a, u in zip(desired, used)),
        reserves_after=tuple(r + u for r, u in zip(reserves, used)),
        equilibrium_after=tuple(e + (shares * e) // lp_supply for e in equilibrium),
        total_supply=lp_supply + shares,
    )


def burn_proportional(
    reserves: Sequence[int],
    equilibrium: Sequence[int],
    lp_supply: int,
    shares: int,
) -> BurnResult:
    """out_i = floor(shares * r_i / S)"""
    _require_int("shares", shares)
    if shares <= 0:
        raise ValueError(f"shares must be positive: {shares}")
    if shares >= lp_supply:
        raise InsufficientLiquidity("burn would empty the pool", shares, lp_supply - 1)

    out = tuple((shares * r) // lp_supply for r in reserves)
    eq_after = tuple(e - ceil_div(shares * e, lp_supply) for e in equilibrium)
    if any(e <= 0 for e in eq_after):
        raise InsufficientLiquidity("burn leaves an empty equilibrium reserve", shares, lp_supply)
    return BurnResult(
        amounts_out=out,
        reserves_after=tuple(r - o for r, o in zip(reserves, out)),
        equilibrium_after=eq_after,
        total_supply=lp_supply - shares,
    )
