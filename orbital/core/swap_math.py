"""
Side-effect-free swap computation.

`compute_swap` is the one code path behind both `Pool.swap` and every quote:
given a committed `PoolState` it returns the amounts and the post-trade
reserves without touching any ledger, so a quote followed by an execution on
unchanged state always agrees.

Semantics:
- fee = ceil(gross_in * fee_rate / 1e18), taken from the input before the
  curve is evaluated; it leaves the pool to the fee recipient (or stays in
  reserves when there is none),
- exact-in picks the smallest post-trade output reserve that verifies,
- exact-out picks the smallest gross input (at least 1) whose net amount reaches the
  smallest verifying input reserve,
- `limit` is a floor on the output asset's post-trade reserve (0 disables); a
  trade that would cross it fills only up to the floor (`at_boundary`).

Strategy: when every asset outside the traded pair contributes zero slack the
n-asset invariant reduces to the pair curve and the closed form applies;
otherwise the full invariant is bisected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import OrbitalConfig
from ..errors import CurveViolation, InsufficientCash, InsufficientReserves, MathOverflow, UnsupportedPair
from ..kernels.python.fixed_point import MAX_RESERVE, WAD, ceil_div, mul_div
from ..state.balances import Address, Amount
from ..state.pools import PoolState
from . import curve
from .binary_search import solve_min_reserve_in, solve_min_reserve_out


CLOSED_FORM = "closed_form"
BINARY_SEARCH = "binary_search"


@dataclass(frozen=True)
class SwapResult:
    """
    Attributes:
        amount_in: gross input, fee included
        amount_out: output paid to the receiver
        fee_amount: part of amount_in routed to the fee recipient
        reserves_before / reserves_after: pool reserves around the trade
        tick_after: tick key of the pool that filled the trade
        at_boundary: the fill stopped at the `limit` reserve floor
        strategy: "closed_form" or "binary_search"
    """

    amount_in: Amount
    amount_out: Amount
    fee_amount: Amount
    fee_recipient: Optional[Address]
    reserves_before: Tuple[Amount, ...]
    reserves_after: Tuple[Amount, ...]
    tick_after: int
    at_boundary: bool = False
    strategy: str = CLOSED_FORM


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def compute_fee(gross_in: Amount, fee_rate: int) -> Amount:
    """fee = ceil(gross_in * fee_rate / 1e18)"""
    if gross_in < 0:
        raise ValueError(f"gross_in must be non-negative: {gross_in}")
    if gross_in == 0 or fee_rate == 0:
        return 0
    return mul_div(gross_in, fee_rate, WAD, round_up=True)


def min_gross_for_net(target_net: Amount, fee_rate: int) -> Tuple[Amount, Amount, Amount]:
    """
    Minimal gross such that gross - fee(gross) >= target_net.
    Returns (gross, net, fee).
    """
    if target_net < 0:
        raise ValueError("target_net must be non-negative")
    if not (0 <= fee_rate < WAD):
        raise ValueError(f"fee_rate must be in [0, {WAD}): {fee_rate}")
    if target_net == 0:
        return 0, 0, 0
    if fee_rate == 0:
        return target_net, target_net, 0

    # Lower bound from the unrounded relation net = gross * (1 - rate).
    gross = ceil_div(target_net * WAD, WAD - fee_rate)
    for _ in range(64):
        if gross - compute_fee(gross, fee_rate) >= target_net:
            break
        gross += 1
    else:
        raise RuntimeError("failed to reach target net within bound (unexpected)")
    for _ in range(64):
        if gross <= 1:
            break
        prev = gross - 1
        if prev - compute_fee(prev, fee_rate) >= target_net:
            gross = prev
            continue
        break
    fee = compute_fee(gross, fee_rate)
    return gross, gross - fee, fee


class _Solver:
    """Curve boundary lookups for one (state, i, j) trade direction."""

    def __init__(self, state: PoolState, i: int, j: int, max_iterations: int) -> None:
        self.state = state
        self.i = i
        self.j = j
        self.max_iterations = max_iterations
        self.pair = state.params.pair(i, j, state.equilibrium)
        slack = curve.others_slack(state.reserves, state.equilibrium, state.params, i, j)
        self.strategy = CLOSED_FORM if slack == 0 else BINARY_SEARCH

    def min_reserve_out(self, reserve_in_after: int) -> int:
        if self.strategy == CLOSED_FORM:
            return curve.min_reserve_out(reserve_in_after, self.pair)
        return solve_min_reserve_out(
            self.state.reserves,
            self.state.equilibrium,
            self.state.params,
            self.i,
            self.j,
            reserve_in_after,
            max_iterations=self.max_iterations,
        )

    def min_reserve_in(self, reserve_out_after: int, amount_out: int) -> int:
        if self.strategy == CLOSED_FORM:
            try:
                x = curve.min_reserve_in(reserve_out_after, self.pair)
            except MathOverflow:
                x = MAX_RESERVE + 1
            if x > MAX_RESERVE:
                raise InsufficientReserves(self.j, amount_out, self.state.reserves[self.j])
            return x
        return solve_min_reserve_in(
            self.state.reserves,
            self.state.equilibrium,
            self.state.params,
            self.i,
            self.j,
            reserve_out_after,
            max_iterations=self.max_iterations,
        )


def compute_swap(
    state: PoolState,
    token_in: int,
    token_out: int,
    amount: Amount,
    *,
    exact_in: bool = True,
    limit: Amount = 0,
    fee_rate: int = 0,
    fee_recipient: Optional[Address] = None,
    cash_out: Optional[Amount] = None,
    config: Optional[OrbitalConfig] = None,
) -> SwapResult:
    """
    Quote a swap of asset index `token_in` for `token_out` against `state`.

    `amount` is the gross input for exact-in and the desired output for
    exact-out. `cash_out` is the output-asset balance the pool can actually pay
    (its holdings net of custodian exposure); None skips the check.

    Raises:
        UnsupportedPair: equal or out-of-range indices
        InsufficientReserves: output >= reserve, or no finite input reaches it
        InsufficientCash: output exceeds `cash_out`
        CurveViolation: post-trade reserves fail the invariant
    """
    cfg = config or OrbitalConfig()
    n = state.params.num_assets
    for name, v in (("token_in", token_in), ("token_out", token_out), ("amount", amount), ("limit", limit)):
        _require_int(name, v)
    if token_in == token_out or not (0 <= token_in < n) or not (0 <= token_out < n):
        raise UnsupportedPair(token_in, token_out, n)
    if amount <= 0:
        raise ValueError(f"amount must be positive: {amount}")
    if limit < 0:
        raise ValueError(f"limit must be non-negative: {limit}")
    _require_int("fee_rate", fee_rate)
    if not (0 <= fee_rate < WAD):
        raise ValueError(f"fee_rate must be in [0, {WAD}): {fee_rate}")

    i, j = token_in, token_out
    before = state.reserves
    r_i, r_j = before[i], before[j]
    if r_j == 0:
        raise InsufficientReserves(j, amount, 0)

    solver = _Solver(state, i, j, cfg.max_search_iterations)
    at_boundary = False

    if exact_in:
        gross = amount
        fee = compute_fee(gross, fee_rate)
        net = gross - fee
        x_new = r_i + net
        if x_new > MAX_RESERVE:
            raise CurveViolation(_replace2(before, i, x_new, j, r_j), state.equilibrium)
        y_min = solver.min_reserve_out(x_new)
        if limit and y_min < limit:
            # Fill only down to the floor: re-solve as exact-out for what is left.
            at_boundary = True
            if limit >= r_j:
                return _empty(state, fee_recipient, solver.strategy)
            return _finish(
                state, solver, i, j, r_j - limit, fee_rate, fee_recipient, cash_out, at_boundary
            )
        amount_out = max(0, r_j - y_min)
        if amount_out == 0:
            raise ValueError(f"amount_in too small, no output: {amount}")
        after = _replace2(before, i, r_i + (net if fee_recipient is not None else gross), j, r_j - amount_out)
        return _checked(
            state,
            j,
            SwapResult(
                amount_in=gross,
                amount_out=amount_out,
                fee_amount=fee,
                fee_recipient=fee_recipient,
                reserves_before=before,
                reserves_after=after,
                tick_after=state.params.tick,
                at_boundary=False,
                strategy=solver.strategy,
            ),
            cash_out,
        )

    amount_out = amount
    if amount_out >= r_j:
        raise InsufficientReserves(j, amount_out, r_j)
    if limit and r_j - amount_out < limit:
        at_boundary = True
        if limit >= r_j:
            return _empty(state, fee_recipient, solver.strategy)
        amount_out = r_j - limit
    return _finish(state, solver, i, j, amount_out, fee_rate, fee_recipient, cash_out, at_boundary)


def _finish(
    state: PoolState,
    solver: _Solver,
    i: int,
    j: int,
    amount_out: Amount,
    fee_rate: int,
    fee_recipient: Optional[Address],
    cash_out: Optional[Amount],
    at_boundary: bool,
) -> SwapResult:
    """Exact-out tail: minimal gross input for `amount_out`."""
    before = state.reserves
    r_i, r_j = before[i], before[j]
    x_min = solver.min_reserve_in(r_j - amount_out, amount_out)
    # Any paid output costs at least one unit of input.
    gross, net, fee = min_gross_for_net(max(1, x_min - r_i), fee_rate)
    after = _replace2(before, i, r_i + (net if fee_recipient is not None else gross), j, r_j - amount_out)
    return _checked(
        state,
        j,
        SwapResult(
            amount_in=gross,
            amount_out=amount_out,
            fee_amount=fee,
            fee_recipient=fee_recipient,
            reserves_before=before,
            reserves_after=after,
            tick_after=state.params.tick,
            at_boundary=at_boundary,
            strategy=solver.strategy,
        ),
        cash_out,
    )


def _checked(state: PoolState, j: int, result: SwapResult, cash_out: Optional[Amount]) -> SwapResult:
    if cash_out is not None and result.amount_out > cash_out:
        raise InsufficientCash(state.params.assets[j], result.amount_out, cash_out)
    if not curve.verify_pool(result.reserves_after, state.equilibrium, state.params):
        raise CurveViolation(result.reserves_after, state.equilibrium)
    return result


def _empty(state: PoolState, fee_recipient: Optional[Address], strategy: str) -> SwapResult:
    return SwapResult(
        amount_in=0,
        amount_out=0,
        fee_amount=0,
        fee_recipient=fee_recipient,
        reserves_before=state.reserves,
        reserves_after=state.reserves,
        tick_after=state.params.tick,
        at_boundary=True,
        strategy=strategy,
    )


def _replace2(reserves: Tuple[int, ...], i: int, vi: int, j: int, vj: int) -> Tuple[int, ...]:
    out = list(reserves)
    out[i] = vi
    out[j] = vj
    return tuple(out)
