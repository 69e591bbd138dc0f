"""
User-facing swap entry points with slippage bounds.

Each call quotes first, checks the caller's bound, then executes the real
swap. The bounds (`AmountOutLessThanMin`, `AmountInMoreThanMax`) are checked
here and never inside a pool. Multi-hop execution snapshots every pool on the
path and the ledger, and restores all of them if any hop fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..errors import AmountInMoreThanMax, AmountOutLessThanMin
from ..state.balances import Address, Amount
from ..state.pools import normalize_address
from . import path as path_codec
from .pool import Pool
from .quoter import PoolRef, Quoter
from .swap_math import SwapResult

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathSwapResult:
    amount_in: Amount
    amount_out: Amount
    hops: Tuple[SwapResult, ...]


class Periphery:
    def __init__(self, quoter: Quoter) -> None:
        self.quoter = quoter

    def swap_exact_in(
        self,
        sender: Address,
        pool: PoolRef,
        token_in: str,
        token_out: str,
        amount_in: Amount,
        amount_out_min: Amount,
        recipient: Optional[Address] = None,
    ) -> SwapResult:
        p = self.quoter.pool(pool)
        q = self.quoter.quote_single(p, token_in, token_out, amount_in, exact_in=True)
        if q.amount_out < amount_out_min:
            raise AmountOutLessThanMin(q.amount_out, amount_out_min)
        return p.swap(
            sender,
            p.index_of(token_in),
            p.index_of(token_out),
            amount_in,
            exact_in=True,
            to=recipient if recipient is not None else sender,
        )

    def swap_exact_out(
        self,
        sender: Address,
        pool: PoolRef,
        token_in: str,
        token_out: str,
        amount_out: Amount,
        amount_in_max: Amount,
        recipient: Optional[Address] = None,
    ) -> SwapResult:
        p = self.quoter.pool(pool)
        q = self.quoter.quote_single(p, token_in, token_out, amount_out, exact_in=False)
        if q.amount_in > amount_in_max:
            raise AmountInMoreThanMax(q.amount_in, amount_in_max)
        return p.swap(
            sender,
            p.index_of(token_in),
            p.index_of(token_out),
            amount_out,
            exact_in=False,
            to=recipient if recipient is not None else sender,
        )

    def swap_path_exact_in(
        self,
        sender: Address,
        path: bytes,
        amount_in: Amount,
        amount_out_min: Amount,
        recipient: Optional[Address] = None,
    ) -> PathSwapResult:
        """
        Execute an exact-in multi-hop swap. Intermediate outputs are paid to
        `sender` and pulled again by the next hop; only the last hop pays
        `recipient`. All hops commit together or not at all.
        """
        sender = normalize_address(sender)
        receiver = normalize_address(recipient) if recipient is not None else sender
        q = self.quoter.quote(path, amount_in)
        if q.amount_out < amount_out_min:
            raise AmountOutLessThanMin(q.amount_out, amount_out_min)

        hops = path_codec.decode_path(path)
        pools: Dict[str, Pool] = {}
        for _, pid, _ in hops:
            p = self.quoter.pool(pid)
            pools[p.pool_id] = p
        ledger = next(iter(pools.values())).ledger
        ledger_snap = ledger.snapshot()
        pool_snaps = {pid: p.snapshot() for pid, p in pools.items()}

        results = []
        amount = amount_in
        try:
            for k, (token_in, pid, token_out) in enumerate(hops):
                p = pools[normalize_address(pid)]
                last = k == len(hops) - 1
                r = p.swap(
                    sender,
                    p.index_of(token_in),
                    p.index_of(token_out),
                    amount,
                    exact_in=True,
                    to=receiver if last else sender,
                )
                results.append(r)
                amount = r.amount_out
            if amount < amount_out_min:
                raise AmountOutLessThanMin(amount, amount_out_min)
        except Exception as e:
            ledger.restore(ledger_snap)
            for pid, snap in pool_snaps.items():
                pools[pid].restore(snap)
            log.warning("path swap rolled back after %d hop(s): %s", len(results), e)
            raise

        log.debug("path swap in=%d out=%d hops=%d", amount_in, amount, len(results))
        return PathSwapResult(amount_in=amount_in, amount_out=amount, hops=tuple(results))
