"""
Tick ladder: a piecewise curve built from one pool per price band.

Prices are quoted as `base` in units of `quote`, with tick t meaning price
1.0001**t. Each registered `TickRange` maps to one pool whose curve constants
serve that band; ranges never overlap. Routing across bands is done here, not
inside any pool:

- buying `base` pushes the price up, so bands are filled in ascending order,
  each bounded by the base reserve at which the price reaches the band's upper
  tick,
- selling `base` walks the bands downwards, each bounded by the quote reserve
  at which the price falls to the band's lower tick.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..errors import AmountOutLessThanMin, InsufficientReserves, UnsupportedPair
from ..kernels.python.fixed_point import WAD, mul_div
from ..kernels.python.orbital_curve_v1 import reserve_at_price
from ..state.balances import Address, Amount
from ..state.pools import normalize_address
from .pool import Pool
from .swap_math import SwapResult

log = logging.getLogger(__name__)


MIN_TICK = -887272
MAX_TICK = 887272
TICK_BASE = WAD + 10**14  # 1.0001


def price_at_tick(tick: int) -> int:
    """1.0001**tick in WAD, rounded down at each squaring step."""
    if not isinstance(tick, int) or isinstance(tick, bool):
        raise TypeError("tick must be an int")
    if not (MIN_TICK <= tick <= MAX_TICK):
        raise ValueError(f"tick out of range [{MIN_TICK}, {MAX_TICK}]: {tick}")
    t = abs(tick)
    result = WAD
    base = TICK_BASE
    while t:
        if t & 1:
            result = mul_div(result, base, WAD)
        t >>= 1
        if t:
            base = mul_div(base, base, WAD)
    if tick < 0:
        return mul_div(WAD, WAD, result)
    return result


@dataclass(frozen=True, order=True)
class TickRange:
    tick_lower: int
    tick_upper: int

    def __post_init__(self) -> None:
        for name in ("tick_lower", "tick_upper"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
        if not (MIN_TICK <= self.tick_lower < self.tick_upper <= MAX_TICK):
            raise ValueError(f"invalid tick range [{self.tick_lower}, {self.tick_upper})")

    def contains(self, tick: int) -> bool:
        return self.tick_lower <= tick < self.tick_upper

    def overlaps(self, other: "TickRange") -> bool:
        return self.tick_lower < other.tick_upper and other.tick_lower < self.tick_upper


@dataclass(frozen=True)
class BandFill:
    tick_range: TickRange
    pool_id: str
    limit: Amount
    result: SwapResult


@dataclass(frozen=True)
class LadderSwapResult:
    amount_in: Amount
    amount_out: Amount
    fills: Tuple[BandFill, ...]
    tick_after: int


class TickLadder:
    """Registry of (TickRange -> Pool) for one base/quote pair."""

    def __init__(self, base: str, quote: str) -> None:
        self.base = normalize_address(base)
        self.quote = normalize_address(quote)
        if self.base == self.quote:
            raise ValueError("base and quote must differ")
        self._ranges: List[TickRange] = []
        self._pools: Dict[TickRange, Pool] = {}
        self._active: Optional[int] = None

    def register(self, tick_range: TickRange, pool: Pool) -> None:
        for a in (self.base, self.quote):
            if a not in pool.assets:
                raise ValueError(f"pool {pool.pool_id} does not hold {a}")
        if not tick_range.contains(pool.tick):
            raise ValueError(f"pool tick {pool.tick} outside {tick_range}")
        for existing in self._ranges:
            if existing.overlaps(tick_range):
                raise ValueError(f"tick range {tick_range} overlaps {existing}")
        bisect.insort(self._ranges, tick_range)
        self._pools[tick_range] = pool
        self._active = None
        log.info("tick ladder %s/%s: registered [%d, %d) -> %s",
                 self.base, self.quote, tick_range.tick_lower, tick_range.tick_upper, pool.pool_id)

    def bands(self) -> List[Tuple[TickRange, Pool]]:
        return [(r, self._pools[r]) for r in self._ranges]

    def pool_at(self, tick: int) -> Optional[Pool]:
        for r in self._ranges:
            if r.contains(tick):
                return self._pools[r]
        return None

    def neighbors(self, tick_range: TickRange) -> Tuple[Optional[Pool], Optional[Pool]]:
        """Pools of the bands directly below and above `tick_range`."""
        k = self._ranges.index(tick_range)
        below = self._pools[self._ranges[k - 1]] if k > 0 else None
        above = self._pools[self._ranges[k + 1]] if k + 1 < len(self._ranges) else None
        return below, above

    @property
    def active_tick(self) -> Optional[int]:
        """Tick of the band the last ladder swap ended in (None before any)."""
        if self._active is None:
            return None
        return self._pools[self._ranges[self._active]].tick

    def _band_order(self, buying_base: bool) -> List[int]:
        n = len(self._ranges)
        if buying_base:
            start = self._active if self._active is not None else 0
            return list(range(start, n))
        start = self._active if self._active is not None else n - 1
        return list(range(start, -1, -1))

    def _band_limit(self, tick_range: TickRange, pool: Pool, i: int, j: int, buying_base: bool) -> Amount:
        pair = pool.params.pair(i, j, pool.state.equilibrium)
        if buying_base:
            price = price_at_tick(tick_range.tick_upper)
        else:
            # Price of quote in base units at the lower boundary.
            price = price_at_tick(-tick_range.tick_lower)
        return reserve_at_price(
            price,
            p_in=pair.price_x,
            p_out=pair.price_y,
            c_in=pair.concentration_x,
            c_out=pair.concentration_y,
            e_in=pair.x0,
            e_out=pair.y0,
        )

    def _plan(self, token_in: str, token_out: str, amount_in: Amount) -> Tuple[List[Tuple[int, BandFill]], bool]:
        tin, tout = normalize_address(token_in), normalize_address(token_out)
        if {tin, tout} != {self.base, self.quote}:
            raise UnsupportedPair(token_in, token_out, 2)
        if not self._ranges:
            raise InsufficientReserves(0, amount_in, 0)
        buying_base = tout == self.base

        fills: List[Tuple[int, BandFill]] = []
        remaining = amount_in
        for k in self._band_order(buying_base):
            r = self._ranges[k]
            pool = self._pools[r]
            i, j = pool.index_of(tin), pool.index_of(tout)
            limit = self._band_limit(r, pool, i, j, buying_base)
            res = pool.preview_swap(i, j, remaining, True, limit)
            if res.amount_in:
                fills.append((k, BandFill(tick_range=r, pool_id=pool.pool_id, limit=limit, result=res)))
            remaining -= res.amount_in
            if not res.at_boundary or remaining == 0:
                break
        if remaining:
            filled = amount_in - remaining
            raise InsufficientReserves(-1, amount_in, filled)
        return fills, buying_base

    def _tick_after(self, fills: List[Tuple[int, BandFill]], buying_base: bool) -> int:
        k, last = fills[-1]
        if last.result.at_boundary:
            return last.tick_range.tick_upper if buying_base else last.tick_range.tick_lower
        return self._pools[self._ranges[k]].tick

    def quote_exact_in(self, token_in: str, token_out: str, amount_in: Amount) -> LadderSwapResult:
        """Fill `amount_in` band by band without touching any pool."""
        fills, buying_base = self._plan(token_in, token_out, amount_in)
        return LadderSwapResult(
            amount_in=sum(f.result.amount_in for _, f in fills),
            amount_out=sum(f.result.amount_out for _, f in fills),
            fills=tuple(f for _, f in fills),
            tick_after=self._tick_after(fills, buying_base),
        )

    def swap_exact_in(
        self,
        sender: Address,
        token_in: str,
        token_out: str,
        amount_in: Amount,
        amount_out_min: Amount = 0,
        recipient: Optional[Address] = None,
    ) -> LadderSwapResult:
        """Execute the band-by-band fill; every band commits or none does."""
        fills, buying_base = self._plan(token_in, token_out, amount_in)
        total_out = sum(f.result.amount_out for _, f in fills)
        if total_out < amount_out_min:
            raise AmountOutLessThanMin(total_out, amount_out_min)

        pools = [self._pools[f.tick_range] for _, f in fills]
        ledger = pools[0].ledger
        ledger_snap = ledger.snapshot()
        pool_snaps = [p.snapshot() for p in pools]
        executed = []
        try:
            for (_, f), pool in zip(fills, pools):
                i, j = pool.index_of(token_in), pool.index_of(token_out)
                res = pool.swap(sender, i, j, f.result.amount_in, exact_in=True, limit=f.limit,
                                to=recipient if recipient is not None else sender)
                executed.append(BandFill(tick_range=f.tick_range, pool_id=f.pool_id, limit=f.limit, result=res))
        except Exception as e:
            ledger.restore(ledger_snap)
            for p, snap in zip(pools, pool_snaps):
                p.restore(snap)
            log.warning("tick ladder swap rolled back after %d band(s): %s", len(executed), e)
            raise

        k_last = fills[-1][0]
        if fills[-1][1].result.at_boundary:
            step = 1 if buying_base else -1
            k_last = min(max(k_last + step, 0), len(self._ranges) - 1)
        self._active = k_last
        result = LadderSwapResult(
            amount_in=sum(f.result.amount_in for f in executed),
            amount_out=sum(f.result.amount_out for f in executed),
            fills=tuple(executed),
            tick_after=self._tick_after(fills, buying_base),
        )
        log.debug("tick ladder swap in=%d out=%d bands=%d tick_after=%d",
                  result.amount_in, result.amount_out, len(executed), result.tick_after)
        return result
