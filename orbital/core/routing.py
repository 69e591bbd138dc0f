"""
Deterministic exact-in routing over registered Orbital pools.

Two-hop router:
- enumerate every direct swap,
- enumerate every 2-hop swap via an intermediate asset.

The winner carries its encoded path, ready for `Quoter.quote` or
`Periphery.swap_path_exact_in`. Quotes go through the quoter, so the route
amounts are exactly what execution on unchanged state yields.

Determinism:
- Ties are broken lexicographically by (hop_count, pool_id sequence, intermediate_asset).

Complexity:
- Time: O(P + P^2 * A) quotes for P pools of at most A assets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import OrbitalError
from ..state.balances import Amount, AssetId
from ..state.pools import PoolStatus, normalize_address
from .path import encode_path
from .pool import Pool
from .quoter import Quoter


@dataclass(frozen=True)
class RouteHop:
    pool_id: str
    asset_in: AssetId
    asset_out: AssetId
    amount_in: Amount
    amount_out: Amount


@dataclass(frozen=True)
class RouteQuote:
    asset_in: AssetId
    asset_out: AssetId
    amount_in: Amount
    amount_out: Amount
    hops: Tuple[RouteHop, ...]

    @property
    def path(self) -> bytes:
        tokens = [self.hops[0].asset_in] + [h.asset_out for h in self.hops]
        return encode_path(tokens, [h.pool_id for h in self.hops])


def _pool_quote_exact_in(
    quoter: Quoter, pool: Pool, *, asset_in: AssetId, asset_out: AssetId, amount_in: Amount
) -> Optional[Amount]:
    if amount_in <= 0:
        return None
    if pool.status != PoolStatus.ACTIVE:
        return None
    if asset_in not in pool.assets or asset_out not in pool.assets:
        return None
    try:
        q = quoter.quote_single(pool, asset_in, asset_out, amount_in, exact_in=True)
    except (OrbitalError, ValueError):
        # Pool cannot fill this size; it is simply not a candidate.
        return None
    return q.amount_out


def _quote_key(q: RouteQuote) -> Tuple[int, str, str]:
    # Prefer fewer hops, then lexicographic pool_id sequence, then the intermediate asset.
    pool_seq = ",".join(h.pool_id for h in q.hops)
    mid = q.hops[0].asset_out if len(q.hops) == 2 else ""
    return (len(q.hops), pool_seq, mid)


def _better(q: RouteQuote, best: Optional[RouteQuote]) -> bool:
    return best is None or q.amount_out > best.amount_out or (
        q.amount_out == best.amount_out and _quote_key(q) < _quote_key(best)
    )


def best_route_exact_in_2hop(
    quoter: Quoter,
    *,
    asset_in: AssetId,
    asset_out: AssetId,
    amount_in: Amount,
) -> Optional[RouteQuote]:
    """
    Best exact-in route of at most two hops across the quoter's pools.

    Returns None when no route can fill `amount_in`.
    """
    if amount_in <= 0:
        return None
    asset_in = normalize_address(asset_in)
    asset_out = normalize_address(asset_out)
    if asset_in == asset_out:
        return None

    pools: List[Pool] = sorted(quoter.pools.values(), key=lambda p: p.pool_id)
    best: Optional[RouteQuote] = None

    # 1-hop candidates
    for p in pools:
        out = _pool_quote_exact_in(quoter, p, asset_in=asset_in, asset_out=asset_out, amount_in=amount_in)
        if out is None:
            continue
        q = RouteQuote(
            asset_in=asset_in,
            asset_out=asset_out,
            amount_in=amount_in,
            amount_out=out,
            hops=(RouteHop(p.pool_id, asset_in, asset_out, amount_in, out),),
        )
        if _better(q, best):
            best = q

    # 2-hop candidates: asset_in -> mid -> asset_out, every mid the first pool holds.
    for p1 in pools:
        if asset_in not in p1.assets:
            continue
        for mid in p1.assets:
            if mid in (asset_in, asset_out):
                continue
            amt_mid = _pool_quote_exact_in(quoter, p1, asset_in=asset_in, asset_out=mid, amount_in=amount_in)
            if amt_mid is None:
                continue
            for p2 in pools:
                if p2.pool_id == p1.pool_id:
                    continue
                amt_out = _pool_quote_exact_in(quoter, p2, asset_in=mid, asset_out=asset_out, amount_in=amt_mid)
                if amt_out is None:
                    continue
                q = RouteQuote(
                    asset_in=asset_in,
                    asset_out=asset_out,
                    amount_in=amount_in,
                    amount_out=amt_out,
                    hops=(
                        RouteHop(p1.pool_id, asset_in, mid, amount_in, amt_mid),
                        RouteHop(p2.pool_id, mid, asset_out, amt_mid, amt_out),
                    ),
                )
                if _better(q, best):
                    best = q

    return best
