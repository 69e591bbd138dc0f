"""
One Orbital pool: a single tick's curve constants plus live reserves.

The pool is the sole writer of its `PoolState`. Every mutating call runs under
a reentrancy lock and is all-or-nothing: ledger effects are snapshotted first
and restored on any failure, and the new state is committed only after the
invariant check passes.

Swap settlement order:
1. output is sent to `to` (default: the callee for a flash swap, else `sender`),
2. with non-empty `data` the callee's `orbital_swap_call` hook runs and must
   leave the pool holding the input (flash swap); otherwise the input is
   pulled from `sender`,
3. the protocol fee leaves the pool to its recipient,
4. post-trade reserves are verified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional, Protocol, Sequence, Tuple

from ..config import OrbitalConfig
from ..errors import (
    AmountUsedLessThanMin,
    CurveViolation,
    InsufficientCash,
    InsufficientLiquidity,
    Locked,
    PoolNotActive,
)
from ..state.balances import UNLIMITED, Address, Amount, LedgerError, LedgerSnapshot, TokenLedger
from ..state.lp import LiquidityPosition, PositionBook
from ..state.pools import PoolParams, PoolState, PoolStatus, normalize_address
from . import curve
from .fees import FeeConfig
from .liquidity import burn_proportional, initial_equilibrium, mint_initial, mint_proportional
from .swap_math import SwapResult, compute_swap

log = logging.getLogger(__name__)


ZERO_ADDRESS = "0x" + "00" * 20


class SwapCallee(Protocol):
    """Flash-swap settlement hook. `address` receives the output when `to` is not given."""

    address: Address

    def orbital_swap_call(self, sender: Address, amount_in: Amount, amount_out: Amount, data: bytes) -> None:
        ...


@dataclass(frozen=True)
class PoolSnapshot:
    state: PoolState
    positions: Dict[Tuple[Address, str], LiquidityPosition]


@dataclass(frozen=True)
class MintReceipt:
    owner: Address
    shares: Amount
    amounts_used: Tuple[Amount, ...]
    reserves_after: Tuple[Amount, ...]


@dataclass(frozen=True)
class BurnReceipt:
    owner: Address
    shares: Amount
    amounts_out: Tuple[Amount, ...]
    reserves_after: Tuple[Amount, ...]


class Pool:
    def __init__(
        self,
        params: PoolParams,
        ledger: TokenLedger,
        fee_config: Optional[FeeConfig] = None,
        config: Optional[OrbitalConfig] = None,
        *,
        salt: int = 0,
    ) -> None:
        self.config = config or OrbitalConfig()
        self.ledger = ledger
        self.fee_config = fee_config
        self.positions = PositionBook()
        self._state = PoolState.initial(params, salt=salt)
        self._locked = False

    # --- read side ---------------------------------------------------------

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def pool_id(self) -> str:
        return self._state.pool_id

    @property
    def address(self) -> Address:
        """The pool's token-holding address in the ledger (its pool id)."""
        return self._state.pool_id

    @property
    def params(self) -> PoolParams:
        return self._state.params

    @property
    def assets(self) -> Tuple[str, ...]:
        return self._state.params.assets

    @property
    def reserves(self) -> Tuple[Amount, ...]:
        return self._state.reserves

    @property
    def tick(self) -> int:
        return self._state.params.tick

    @property
    def status(self) -> PoolStatus:
        return self._state.status

    def index_of(self, asset: str) -> int:
        return self._state.params.index_of(asset)

    def cash(self, index: int) -> Amount:
        """Tokens of asset `index` the pool actually holds (net of custodian pulls)."""
        return self.ledger.balance_of(self.address, self.assets[index])

    def position(self, owner: Address) -> LiquidityPosition:
        return self.positions.get(normalize_address(owner), self.pool_id)

    def verify(self, reserves: Optional[Sequence[Amount]] = None) -> bool:
        r = self._state.reserves if reserves is None else tuple(reserves)
        return curve.verify_pool(r, self._state.equilibrium, self._state.params)

    def protocol_fee(self) -> Tuple[Optional[Address], int]:
        if self.fee_config is None:
            return None, 0
        return self.fee_config.get_protocol_fee(self.pool_id)

    # --- lifecycle ---------------------------------------------------------

    def activate(self, custodians: Iterable[Address] = ()) -> None:
        """
        UNINITIALIZED -> ACTIVE, granting each custodian an unlimited allowance
        on every pool asset. Calling again is a no-op for known custodians.
        """
        new = [c for c in (normalize_address(x) for x in custodians) if c not in self._state.activated_custodians]
        if self._state.status == PoolStatus.ACTIVE and not new:
            return
        for custodian in new:
            for asset in self.assets:
                self.ledger.approve(self.address, custodian, asset, UNLIMITED)
        self._state = replace(
            self._state,
            status=PoolStatus.ACTIVE,
            activated_custodians=self._state.activated_custodians + tuple(new),
        )
        log.info("pool %s active (tick=%d, custodians=%d)", self.pool_id, self.tick, len(self._state.activated_custodians))

    def snapshot(self) -> PoolSnapshot:
        return PoolSnapshot(state=self._state, positions=self.positions.snapshot())

    def restore(self, snap: PoolSnapshot) -> None:
        self._state = snap.state
        self.positions.restore(snap.positions)

    def _enter(self) -> None:
        if self._locked:
            raise Locked(self.pool_id)
        self._locked = True

    def _rollback(self, ledger_snap: LedgerSnapshot, what: str, exc: Exception) -> None:
        self.ledger.restore(ledger_snap)
        log.warning("pool %s: %s rolled back: %s", self.pool_id, what, exc)

    def _pull(self, asset: str, sender: Address, amount: Amount) -> None:
        try:
            self.ledger.transfer(asset, sender, self.address, amount)
        except LedgerError as e:
            raise InsufficientCash(asset, e.requested, e.available) from e

    def _push(self, asset: str, recipient: Address, amount: Amount) -> None:
        try:
            self.ledger.transfer(asset, self.address, recipient, amount)
        except LedgerError as e:
            raise InsufficientCash(asset, e.requested, e.available) from e

    # --- swaps -------------------------------------------------------------

    def preview_swap(
        self,
        token_in_index: int,
        token_out_index: int,
        amount: Amount,
        exact_in: bool = True,
        limit: Amount = 0,
        *,
        state: Optional[PoolState] = None,
        cash_delta: Amount = 0,
    ) -> SwapResult:
        """
        What `swap` would do right now, without touching any state.

        `state` and `cash_delta` let a caller chain hops through the same pool:
        they stand in for the committed state and the change in the pool's
        output-asset holdings since then.
        """
        if self._state.status != PoolStatus.ACTIVE:
            raise PoolNotActive(self.pool_id, self._state.status.value)
        recipient, fee_rate = self.protocol_fee()
        cash_out = None
        if isinstance(token_out_index, int) and 0 <= token_out_index < len(self.assets):
            cash_out = self.cash(token_out_index) + cash_delta
        return compute_swap(
            self._state if state is None else state,
            token_in_index,
            token_out_index,
            amount,
            exact_in=exact_in,
            limit=limit,
            fee_rate=fee_rate,
            fee_recipient=recipient,
            cash_out=cash_out,
            config=self.config,
        )

    def swap(
        self,
        sender: Address,
        token_in_index: int,
        token_out_index: int,
        amount: Amount,
        exact_in: bool = True,
        limit: Amount = 0,
        to: Optional[Address] = None,
        data: bytes = b"",
        callee: Optional[SwapCallee] = None,
    ) -> SwapResult:
        """
        Execute a swap and commit the new reserves.

        Raises:
            PoolNotActive, Locked, UnsupportedPair, InsufficientReserves,
            InsufficientCash (input not delivered / output not held),
            CurveViolation
        """
        sender = normalize_address(sender)
        self._enter()
        try:
            result = self.preview_swap(token_in_index, token_out_index, amount, exact_in, limit)
            if data and callee is None:
                raise ValueError("flash swap data given without a callee")
            if to is not None:
                receiver = normalize_address(to)
            elif data:
                # Flash output goes to the callee unless redirected.
                callee_address = getattr(callee, "address", None)
                if callee_address is None:
                    raise ValueError("flash swap callee has no address; pass `to`")
                receiver = normalize_address(callee_address)
            else:
                receiver = sender
            asset_in = self.assets[token_in_index]
            asset_out = self.assets[token_out_index]

            ledger_snap = self.ledger.snapshot()
            try:
                held_before = self.ledger.balance_of(self.address, asset_in)
                self._push(asset_out, receiver, result.amount_out)
                if data:
                    callee.orbital_swap_call(sender, result.amount_in, result.amount_out, data)
                    held = self.ledger.balance_of(self.address, asset_in)
                    if held < held_before + result.amount_in:
                        raise InsufficientCash(asset_in, result.amount_in, held - held_before)
                else:
                    self._pull(asset_in, sender, result.amount_in)
                if result.fee_amount and result.fee_recipient is not None:
                    self._push(asset_in, result.fee_recipient, result.fee_amount)
                if not self.verify(result.reserves_after):
                    raise CurveViolation(result.reserves_after, self._state.equilibrium)
            except Exception as e:
                self._rollback(ledger_snap, "swap", e)
                raise

            self._state = self._state.with_reserves(result.reserves_after)
            log.debug(
                "pool %s swap %d->%d in=%d out=%d fee=%d (%s)",
                self.pool_id,
                token_in_index,
                token_out_index,
                result.amount_in,
                result.amount_out,
                result.fee_amount,
                result.strategy,
            )
            return result
        finally:
            self._locked = False

    # --- liquidity ---------------------------------------------------------

    def mint(self, owner: Address, amounts: Sequence[Amount], amounts_min: Sequence[Amount] = ()) -> MintReceipt:
        """
        Deposit into the pool for LP shares.

        The first mint locks `config.min_liquidity` shares to the zero address;
        its deposit must keep the reference ratio and becomes the equilibrium
        point. Later mints are ratio-preserving and scale the equilibrium with
        the supply, using at most `amounts` and at least `amounts_min`.

        Raises:
            UnbalancedDeposit, InsufficientLiquidity, AmountUsedLessThanMin,
            InsufficientCash, CurveViolation
        """
        owner = normalize_address(owner)
        self._enter()
        try:
            st = self._state
            if amounts_min and len(amounts_min) != len(self.assets):
                raise ValueError(f"expected {len(self.assets)} minimum amounts, got {len(amounts_min)}")
            if st.lp_supply == 0:
                eq_after = initial_equilibrium(amounts, st.params.equilibrium_reserves)
                initial = mint_initial(amounts, st.params.prices, min_liquidity=self.config.min_liquidity)
                shares, used, supply = initial.shares_minted, eq_after, initial.total_supply
                reserves_after = used
            else:
                res = mint_proportional(st.reserves, st.equilibrium, st.lp_supply, amounts)
                shares, used, supply = res.shares_minted, res.amounts_used, res.total_supply
                reserves_after, eq_after = res.reserves_after, res.equilibrium_after
            for k, (u, m) in enumerate(zip(used, amounts_min)):
                if u < m:
                    raise AmountUsedLessThanMin(k, u, m)
            if not curve.verify_pool(reserves_after, eq_after, st.params):
                raise CurveViolation(tuple(reserves_after), tuple(eq_after))

            ledger_snap = self.ledger.snapshot()
            try:
                for asset, amt in zip(self.assets, used):
                    self._pull(asset, owner, amt)
            except Exception as e:
                self._rollback(ledger_snap, "mint", e)
                raise

            if st.lp_supply == 0 and self.config.min_liquidity:
                self.positions.credit(ZERO_ADDRESS, self.pool_id, self.config.min_liquidity, (0,) * len(used))
            self.positions.credit(owner, self.pool_id, shares, tuple(used))
            self._state = replace(st, reserves=tuple(reserves_after), equilibrium=tuple(eq_after), lp_supply=supply)
            log.debug("pool %s mint owner=%s shares=%d used=%s", self.pool_id, owner, shares, used)
            return MintReceipt(owner=owner, shares=shares, amounts_used=tuple(used), reserves_after=self._state.reserves)
        finally:
            self._locked = False

    def burn(self, owner: Address, shares: Amount) -> BurnReceipt:
        """Redeem LP shares for a proportional slice of every reserve."""
        owner = normalize_address(owner)
        self._enter()
        try:
            st = self._state
            owned = self.positions.shares_of(owner, self.pool_id)
            if shares > owned:
                raise InsufficientLiquidity("burn exceeds owned shares", shares, owned)
            res = burn_proportional(st.reserves, st.equilibrium, st.lp_supply, shares)
            if not curve.verify_pool(res.reserves_after, res.equilibrium_after, st.params):
                raise CurveViolation(res.reserves_after, res.equilibrium_after)

            ledger_snap = self.ledger.snapshot()
            try:
                for asset, amt in zip(self.assets, res.amounts_out):
                    self._push(asset, owner, amt)
            except Exception as e:
                self._rollback(ledger_snap, "burn", e)
                raise

            self.positions.debit(owner, self.pool_id, shares)
            self._state = replace(
                st,
                reserves=res.reserves_after,
                equilibrium=res.equilibrium_after,
                lp_supply=res.total_supply,
            )
            log.debug("pool %s burn owner=%s shares=%d out=%s", self.pool_id, owner, shares, res.amounts_out)
            return BurnReceipt(owner=owner, shares=shares, amounts_out=res.amounts_out, reserves_after=res.reserves_after)
        finally:
            self._locked = False

    def __repr__(self) -> str:
        return f"Pool({self._state!r})"
