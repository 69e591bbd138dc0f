"""
Liquidity positions for Orbital pools.

Shares are scoped per pool_id. A position also remembers the token amounts its
owner deposited, which is what the owner claimed at mint time; the redeemable
amounts at any later point are proportional to the pool's reserves.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Tuple

from .balances import Address, Amount

# Type alias
PoolId = str


@dataclass(frozen=True)
class LiquidityPosition:
    owner: Address
    pool_id: PoolId
    shares: Amount = 0
    deposited: Tuple[Amount, ...] = ()

    def __post_init__(self) -> None:
        if self.shares < 0:
            raise ValueError(f"LP shares cannot be negative: {self.shares}")


class PositionBook:
    """
    Deterministic position table mapping (owner, pool_id) -> LiquidityPosition.

    Positions with zero shares are dropped.
    """

    def __init__(self) -> None:
        self._positions: Dict[Tuple[Address, PoolId], LiquidityPosition] = {}

    def get(self, owner: Address, pool_id: PoolId) -> LiquidityPosition:
        return self._positions.get((owner, pool_id), LiquidityPosition(owner=owner, pool_id=pool_id))

    def shares_of(self, owner: Address, pool_id: PoolId) -> Amount:
        return self.get(owner, pool_id).shares

    def credit(self, owner: Address, pool_id: PoolId, shares: Amount, deposited: Tuple[Amount, ...]) -> LiquidityPosition:
        """Record a mint: add shares and the token amounts paid for them."""
        if shares <= 0:
            raise ValueError(f"minted shares must be positive: {shares}")
        pos = self.get(owner, pool_id)
        prior = pos.deposited or (0,) * len(deposited)
        if len(prior) != len(deposited):
            raise ValueError("deposit vector length changed for an existing position")
        pos = replace(
            pos,
            shares=pos.shares + shares,
            deposited=tuple(a + b for a, b in zip(prior, deposited)),
        )
        self._positions[(owner, pool_id)] = pos
        return pos

    def debit(self, owner: Address, pool_id: PoolId, shares: Amount) -> LiquidityPosition:
        """
        Record a burn. The deposited vector shrinks pro rata (rounded down).

        Raises ValueError if the owner holds fewer shares than requested; the
        pool checks this first and reports InsufficientLiquidity.
        """
        if shares <= 0:
            raise ValueError(f"burned shares must be positive: {shares}")
        pos = self.get(owner, pool_id)
        if shares > pos.shares:
            raise ValueError(f"Insufficient LP balance: {pos.shares} < {shares}")
        remaining = pos.shares - shares
        if remaining == 0:
            self._positions.pop((owner, pool_id), None)
            return replace(pos, shares=0, deposited=tuple(0 for _ in pos.deposited))
        deposited = tuple((d * remaining) // pos.shares for d in pos.deposited)
        pos = replace(pos, shares=remaining, deposited=deposited)
        self._positions[(owner, pool_id)] = pos
        return pos

    def positions_for_pool(self, pool_id: PoolId) -> Dict[Address, LiquidityPosition]:
        return {owner: pos for (owner, pid), pos in self._positions.items() if pid == pool_id}

    def snapshot(self) -> Dict[Tuple[Address, PoolId], LiquidityPosition]:
        return dict(self._positions)

    def restore(self, snap: Dict[Tuple[Address, PoolId], LiquidityPosition]) -> None:
        self._positions = dict(snap)

    def __repr__(self) -> str:
        return f"PositionBook({len(self._positions)} positions)"
