"""
Read-only quoting over single pools and encoded paths.

Quotes call `Pool.preview_swap`, which runs the exact computation `Pool.swap`
commits, so a quote on unchanged state always matches execution. Nothing here
mutates a pool or the ledger.

A path that revisits a pool is quoted hop by hop against the simulated state
left by the earlier hop, matching what sequential execution would see.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from ..errors import InvalidPath, UnsupportedPair
from ..state.balances import Amount
from ..state.pools import PoolState, normalize_address
from . import path as path_codec
from .pool import Pool

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SingleQuote:
    pool_id: str
    token_in: str
    token_out: str
    amount_in: Amount
    amount_out: Amount
    fee_amount: Amount
    reserves_after: Tuple[Amount, ...]
    tick_after: int
    at_boundary: bool = False


@dataclass(frozen=True)
class PathQuote:
    amount_in: Amount
    amount_out: Amount
    hops: Tuple[SingleQuote, ...]

    @property
    def reserves_after(self) -> Tuple[Tuple[Amount, ...], ...]:
        return tuple(h.reserves_after for h in self.hops)

    @property
    def tick_after(self) -> Tuple[int, ...]:
        return tuple(h.tick_after for h in self.hops)


PoolRef = Union[Pool, str]


class Quoter:
    def __init__(self, pools: Union[Mapping[str, Pool], Iterable[Pool]] = ()) -> None:
        self._pools: Dict[str, Pool] = {}
        items = pools.values() if isinstance(pools, Mapping) else pools
        for p in items:
            self.register(p)

    def register(self, pool: Pool) -> None:
        self._pools[pool.pool_id] = pool

    def pool(self, ref: PoolRef) -> Pool:
        if isinstance(ref, Pool):
            return ref
        pid = normalize_address(ref)
        try:
            return self._pools[pid]
        except KeyError:
            raise InvalidPath(f"unknown pool {pid}", 0) from None

    @property
    def pools(self) -> Dict[str, Pool]:
        return dict(self._pools)

    def _quote(
        self,
        pool: Pool,
        token_in: str,
        token_out: str,
        amount: Amount,
        exact_in: bool,
        limit: Amount,
        state: Optional[PoolState] = None,
        cash_delta: Amount = 0,
    ) -> SingleQuote:
        try:
            i = pool.index_of(token_in)
            j = pool.index_of(token_out)
        except ValueError:
            raise UnsupportedPair(token_in, token_out, len(pool.assets)) from None
        r = pool.preview_swap(i, j, amount, exact_in, limit, state=state, cash_delta=cash_delta)
        return SingleQuote(
            pool_id=pool.pool_id,
            token_in=pool.assets[i],
            token_out=pool.assets[j],
            amount_in=r.amount_in,
            amount_out=r.amount_out,
            fee_amount=r.fee_amount,
            reserves_after=r.reserves_after,
            tick_after=r.tick_after,
            at_boundary=r.at_boundary,
        )

    def quote_single(
        self,
        pool: PoolRef,
        token_in: str,
        token_out: str,
        amount: Amount,
        exact_in: bool = True,
        limit: Amount = 0,
    ) -> SingleQuote:
        """amount_out for exact-in (amount_in for exact-out), reserves after and tick reached."""
        return self._quote(self.pool(pool), token_in, token_out, amount, exact_in, limit)

    def quote(self, path: bytes, amount_in: Amount) -> PathQuote:
        """
        Exact-in quote along `path`: each hop's output is the next hop's input.

        Raises InvalidPath for malformed bytes or unknown pools.
        """
        # Simulated state per revisited pool; reserve changes equal cash changes.
        states: Dict[str, PoolState] = {}
        hops = []
        amount = amount_in
        for token_in, pool_id, token_out in path_codec.decode_path(path):
            pool = self.pool(pool_id)
            sim = states.get(pool.pool_id)
            delta = 0
            if sim is not None:
                j = pool.index_of(token_out)
                delta = sim.reserves[j] - pool.reserves[j]
            q = self._quote(pool, token_in, token_out, amount, True, 0, state=sim, cash_delta=delta)
            states[pool.pool_id] = (sim or pool.state).with_reserves(q.reserves_after)
            hops.append(q)
            amount = q.amount_out
        log.debug("path quote in=%d out=%d hops=%d", amount_in, amount, len(hops))
        return PathQuote(amount_in=amount_in, amount_out=amount, hops=tuple(hops))

    def quote_exact_output(self, path: bytes, amount_out: Amount) -> PathQuote:
        """
        Exact-out quote along `path` (written in trade order), walking the hops
        backwards from the desired final output.

        A path that revisits a pool raises InvalidPath: its backward walk would
        not see the state the forward execution does.
        """
        decoded = path_codec.decode_path(path)
        seen = [normalize_address(pid) for _, pid, _ in decoded]
        if len(set(seen)) != len(seen):
            raise InvalidPath("exact-output path revisits a pool", len(path))
        hops = []
        amount = amount_out
        for token_in, pool_id, token_out in reversed(decoded):
            q = self._quote(self.pool(pool_id), token_in, token_out, amount, False, 0)
            hops.append(q)
            amount = q.amount_in
        hops.reverse()
        return PathQuote(amount_in=amount, amount_out=amount_out, hops=tuple(hops))
