"""
Swap engine over encrypted reserves.

The engine is written once against the `Arithmetic` capability set
{add, sub, compare, select} and runs unchanged over plaintext integers or over
ciphertext handles held by an external homomorphic coprocessor. Which one a
pool uses is fixed when the pool is constructed.

The encrypted pool trades in the peg region of the curve only: concentration
1, equal prices, no fee. There the invariant is the constant sum of reserves,
so it needs nothing beyond the four operations above. A swap that the output
reserve cannot cover is turned into a no-op with `select`; the pool never
branches on an encrypted value.

Reserves are never decrypted. Only a trade's output may be decrypted, once, and only
for the trader who owns it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Sequence, Tuple

from ..errors import UnsupportedPair
from ..state.balances import Address
from ..state.pools import normalize_address

log = logging.getLogger(__name__)


MAX_UINT64 = 2**64 - 1

Handle = Any  # opaque ciphertext handle, or a plain int under PlaintextArithmetic


class Arithmetic(Protocol):
    def encrypt(self, value: int) -> Handle:
        ...

    def add(self, a: Handle, b: Handle) -> Handle:
        ...

    def sub(self, a: Handle, b: Handle) -> Handle:
        ...

    def compare(self, a: Handle, b: Handle) -> Handle:
        """Encrypted boolean a >= b."""
        ...

    def select(self, condition: Handle, if_true: Handle, if_false: Handle) -> Handle:
        ...

    def decrypt_for(self, owner: Address, value: Handle) -> int:
        ...


class Coprocessor(Protocol):
    """External homomorphic-encryption service; results are new handles."""

    def trivial_encrypt(self, value: int) -> Handle:
        ...

    def execute(self, op: str, *operands: Handle) -> Handle:
        ...

    def decrypt_for(self, owner: Address, handle: Handle) -> int:
        ...


def _check_u64(value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError("value must be an int")
    if not (0 <= value <= MAX_UINT64):
        raise ValueError(f"value must fit in uint64: {value}")
    return value


class PlaintextArithmetic:
    """uint64 arithmetic on plain ints (wrapping sub is a caller error)."""

    def encrypt(self, value: int) -> int:
        return _check_u64(value)

    def add(self, a: int, b: int) -> int:
        return _check_u64(a + b)

    def sub(self, a: int, b: int) -> int:
        return _check_u64(a - b)

    def compare(self, a: int, b: int) -> bool:
        return a >= b

    def select(self, condition: bool, if_true: int, if_false: int) -> int:
        return if_true if condition else if_false

    def decrypt_for(self, owner: Address, value: int) -> int:
        return value


class HomomorphicArithmetic:
    """Forwards every operation to a coprocessor by op tag."""

    OPS = ("add", "sub", "compare", "select")

    def __init__(self, coprocessor: Coprocessor) -> None:
        self.coprocessor = coprocessor

    def encrypt(self, value: int) -> Handle:
        return self.coprocessor.trivial_encrypt(_check_u64(value))

    def add(self, a: Handle, b: Handle) -> Handle:
        return self.coprocessor.execute("add", a, b)

    def sub(self, a: Handle, b: Handle) -> Handle:
        return self.coprocessor.execute("sub", a, b)

    def compare(self, a: Handle, b: Handle) -> Handle:
        return self.coprocessor.execute("compare", a, b)

    def select(self, condition: Handle, if_true: Handle, if_false: Handle) -> Handle:
        return self.coprocessor.execute("select", condition, if_true, if_false)

    def decrypt_for(self, owner: Address, value: Handle) -> int:
        return self.coprocessor.decrypt_for(normalize_address(owner), value)


@dataclass(frozen=True)
class EncryptedSwap:
    amount_in: Handle
    amount_out: Handle
    reserve_in_after: Handle
    reserve_out_after: Handle


class ConstantSumEngine:
    """Peg-region swap: out = in when the output reserve covers it, else nothing trades."""

    def __init__(self, arithmetic: Arithmetic) -> None:
        self.arithmetic = arithmetic

    def swap(self, reserve_in: Handle, reserve_out: Handle, amount_in: Handle) -> EncryptedSwap:
        ar = self.arithmetic
        zero = ar.encrypt(0)
        ok = ar.compare(reserve_out, amount_in)
        filled = ar.select(ok, amount_in, zero)
        return EncryptedSwap(
            amount_in=filled,
            amount_out=filled,
            reserve_in_after=ar.add(reserve_in, filled),
            reserve_out_after=ar.sub(reserve_out, filled),
        )


class EncryptedPool:
    """
    n-asset constant-sum pool over encrypted reserves.

    Liquidity is tracked per provider as the encrypted sum of deposits (all
    assets are worth the same at the peg).
    """

    def __init__(self, assets: Sequence[str], arithmetic: Arithmetic) -> None:
        norm = tuple(normalize_address(a) for a in assets)
        if len(norm) < 2:
            raise ValueError("a pool needs at least 2 assets")
        for a, b in zip(norm, norm[1:]):
            if a >= b:
                raise ValueError(f"Assets must be in canonical order: {a} < {b}")
        self.assets = norm
        self.arithmetic = arithmetic
        self.engine = ConstantSumEngine(arithmetic)
        zero = arithmetic.encrypt(0)
        self._reserves: List[Handle] = [zero for _ in norm]
        self._liquidity: Dict[Address, Handle] = {}
        self._outputs: Dict[Address, List[EncryptedSwap]] = {}

    @property
    def reserves(self) -> Tuple[Handle, ...]:
        """Encrypted reserve handles, in asset order."""
        return tuple(self._reserves)

    def liquidity_of(self, provider: Address) -> Handle:
        return self._liquidity.get(normalize_address(provider), self.arithmetic.encrypt(0))

    def add_liquidity(self, provider: Address, amounts: Sequence[Handle]) -> Handle:
        """Deposit one encrypted amount per asset; returns the provider's encrypted liquidity."""
        if len(amounts) != len(self.assets):
            raise ValueError(f"expected {len(self.assets)} amounts, got {len(amounts)}")
        ar = self.arithmetic
        provider = normalize_address(provider)
        total = self.liquidity_of(provider)
        for k, amt in enumerate(amounts):
            self._reserves[k] = ar.add(self._reserves[k], amt)
            total = ar.add(total, amt)
        self._liquidity[provider] = total
        log.debug("encrypted pool: liquidity added by %s", provider)
        return total

    def swap(self, trader: Address, token_in_index: int, token_out_index: int, amount_in: Handle) -> EncryptedSwap:
        n = len(self.assets)
        if token_in_index == token_out_index or not (0 <= token_in_index < n) or not (0 <= token_out_index < n):
            raise UnsupportedPair(token_in_index, token_out_index, n)
        trader = normalize_address(trader)
        res = self.engine.swap(self._reserves[token_in_index], self._reserves[token_out_index], amount_in)
        self._reserves[token_in_index] = res.reserve_in_after
        self._reserves[token_out_index] = res.reserve_out_after
        self._outputs.setdefault(trader, []).append(res)
        log.debug("encrypted pool: swap %d->%d by %s", token_in_index, token_out_index, trader)
        return res

    def decrypt_output(self, owner: Address, swap: EncryptedSwap) -> int:
        """
        Decrypt the output of `swap` for the trader who received it.

        `swap` must be the receipt this pool returned (matched by identity); each
        receipt decrypts once.
        """
        owner = normalize_address(owner)
        pending = self._outputs.get(owner, [])
        for k, held in enumerate(pending):
            if held is swap:
                value = self.arithmetic.decrypt_for(owner, swap.amount_out)
                del pending[k]
                return value
        raise PermissionError(f"{owner} has no pending output for this swap")
