"""
Token custody: fungible balances and allowances per (holder, asset).

This is the in-process stand-in for the token contracts a pool talks to. It
offers transfer/approve/transfer_from semantics plus snapshot/restore, which
the pool uses to make each operation all-or-nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


# Type aliases
Address = str  # 0x-prefixed 20-byte hex string
AssetId = str  # token address, same format
Amount = int  # Non-negative integer (arbitrary precision)

UNLIMITED = 2**256 - 1


class LedgerError(ValueError):
    """A transfer could not be honoured (balance or allowance too small)."""

    def __init__(self, message: str, *, holder: Address, asset: AssetId, requested: Amount, available: Amount):
        self.holder = holder
        self.asset = asset
        self.requested = requested
        self.available = available
        super().__init__(message)


@dataclass(frozen=True)
class LedgerSnapshot:
    balances: Tuple[Tuple[Tuple[Address, AssetId], Amount], ...]
    allowances: Tuple[Tuple[Tuple[Address, Address, AssetId], Amount], ...]


class TokenLedger:
    """
    Balance table mapping (holder, asset) -> amount, and allowance table mapping
    (owner, spender, asset) -> amount.

    Note: zero entries are dropped so the tables stay sparse.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Address, AssetId], Amount] = {}
        self._allowances: Dict[Tuple[Address, Address, AssetId], Amount] = {}

    def balance_of(self, holder: Address, asset: AssetId) -> Amount:
        """Returns 0 if not found."""
        return self._balances.get((holder, asset), 0)

    def _set(self, holder: Address, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((holder, asset), None)
        else:
            self._balances[(holder, asset)] = amount

    def mint(self, holder: Address, asset: AssetId, amount: Amount) -> None:
        """Credit new tokens to `holder` (faucet / test setup)."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        self._set(holder, asset, self.balance_of(holder, asset) + amount)

    def transfer(self, asset: AssetId, sender: Address, recipient: Address, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        if amount == 0:
            return
        available = self.balance_of(sender, asset)
        if available < amount:
            raise LedgerError(
                f"Insufficient balance: {available} < {amount}",
                holder=sender,
                asset=asset,
                requested=amount,
                available=available,
            )
        self._set(sender, asset, available - amount)
        self._set(recipient, asset, self.balance_of(recipient, asset) + amount)

    def allowance(self, owner: Address, spender: Address, asset: AssetId) -> Amount:
        return self._allowances.get((owner, spender, asset), 0)

    def approve(self, owner: Address, spender: Address, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Allowance cannot be negative: {amount}")
        if amount == 0:
            self._allowances.pop((owner, spender, asset), None)
        else:
            self._allowances[(owner, spender, asset)] = amount

    def transfer_from(
        self, spender: Address, asset: AssetId, owner: Address, recipient: Address, amount: Amount
    ) -> None:
        """Move `amount` from `owner` to `recipient` using `spender`'s allowance."""
        allowed = self.allowance(owner, spender, asset)
        if allowed < amount:
            raise LedgerError(
                f"Insufficient allowance: {allowed} < {amount}",
                holder=owner,
                asset=asset,
                requested=amount,
                available=allowed,
            )
        self.transfer(asset, owner, recipient, amount)
        if allowed != UNLIMITED:
            self.approve(owner, spender, asset, allowed - amount)

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            balances=tuple(self._balances.items()),
            allowances=tuple(self._allowances.items()),
        )

    def restore(self, snap: LedgerSnapshot) -> None:
        self._balances = dict(snap.balances)
        self._allowances = dict(snap.allowances)

    def get_all_balances(self) -> Dict[Tuple[Address, AssetId], Amount]:
        return dict(self._balances)

    def __repr__(self) -> str:
        return f"TokenLedger({len(self._balances)} balances, {len(self._allowances)} allowances)"
