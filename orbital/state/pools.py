"""
Pool parameter and state types.

A pool holds n >= 2 assets in canonical (ascending address) order and one set of
curve constants, i.e. one tick of the price ladder. `PoolParams` is immutable
for the pool's lifetime; `PoolState` is a frozen snapshot that the pool
replaces wholesale when an operation commits.
"""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Tuple

from ..kernels.python.fixed_point import MAX_RESERVE, WAD
from .balances import Amount, AssetId


MIN_PRICE = WAD
MAX_PRICE = 10**36
MAX_CONCENTRATION = WAD

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(value: str) -> str:
    """Lower-case a 0x-prefixed 20-byte hex address, rejecting anything else."""
    if not isinstance(value, str):
        raise TypeError("address must be a string")
    v = value.strip().lower()
    if not _ADDRESS_RE.match(v):
        raise ValueError(f"not a 20-byte hex address: {value!r}")
    return v


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _check_price(name: str, value: int) -> None:
    _require_int(name, value)
    if not (MIN_PRICE <= value <= MAX_PRICE):
        raise ValueError(f"{name} must be in [{MIN_PRICE}, {MAX_PRICE}]: {value}")


def _check_concentration(name: str, value: int) -> None:
    _require_int(name, value)
    if not (0 <= value <= MAX_CONCENTRATION):
        raise ValueError(f"{name} must be in [0, {MAX_CONCENTRATION}]: {value}")


def _check_reference(name: str, value: int) -> None:
    _require_int(name, value)
    if not (0 < value <= MAX_RESERVE):
        raise ValueError(f"{name} must be in (0, {MAX_RESERVE}]: {value}")


@dataclass(frozen=True)
class CurveParams:
    """
    Pair curve constants: asset x against asset y.

    Attributes:
        price_x, price_y: relative price scaling (WAD), in [1e18, 1e36]
        concentration_x, concentration_y: flatness around the peg (WAD), in [0, 1e18]
        x0, y0: reserve pair at the peg price
    """

    price_x: int
    price_y: int
    concentration_x: int
    concentration_y: int
    x0: int
    y0: int

    def __post_init__(self) -> None:
        _check_price("price_x", self.price_x)
        _check_price("price_y", self.price_y)
        _check_concentration("concentration_x", self.concentration_x)
        _check_concentration("concentration_y", self.concentration_y)
        _check_reference("x0", self.x0)
        _check_reference("y0", self.y0)

    def swapped(self) -> "CurveParams":
        """The same curve with the axes exchanged."""
        return CurveParams(
            price_x=self.price_y,
            price_y=self.price_x,
            concentration_x=self.concentration_y,
            concentration_y=self.concentration_x,
            x0=self.y0,
            y0=self.x0,
        )


@dataclass(frozen=True)
class PoolParams:
    """
    Per-asset curve constants of an n-asset pool.

    Attributes:
        assets: asset addresses, strictly ascending
        prices: per-asset price scaling (WAD)
        concentrations: per-asset concentration (WAD)
        equilibrium_reserves: reference point, the reserves at the peg
        tick: tick key of the price band this pool serves
    """

    assets: Tuple[AssetId, ...]
    prices: Tuple[int, ...]
    concentrations: Tuple[int, ...]
    equilibrium_reserves: Tuple[Amount, ...]
    tick: int = 0

    def __post_init__(self) -> None:
        assets = tuple(normalize_address(a) for a in self.assets)
        n = len(assets)
        if n < 2:
            raise ValueError(f"a pool needs at least 2 assets, got {n}")
        for a, b in zip(assets, assets[1:]):
            if a >= b:
                raise ValueError(f"Assets must be in canonical order: {a} < {b}")
        for name in ("prices", "concentrations", "equilibrium_reserves"):
            if len(getattr(self, name)) != n:
                raise ValueError(f"{name} must have one entry per asset ({n})")
        for i in range(n):
            _check_price(f"prices[{i}]", self.prices[i])
            _check_concentration(f"concentrations[{i}]", self.concentrations[i])
            _check_reference(f"equilibrium_reserves[{i}]", self.equilibrium_reserves[i])
        _require_int("tick", self.tick)
        object.__setattr__(self, "assets", assets)
        object.__setattr__(self, "prices", tuple(self.prices))
        object.__setattr__(self, "concentrations", tuple(self.concentrations))
        object.__setattr__(self, "equilibrium_reserves", tuple(self.equilibrium_reserves))

    @property
    def num_assets(self) -> int:
        return len(self.assets)

    def index_of(self, asset: AssetId) -> int:
        a = normalize_address(asset)
        try:
            return self.assets.index(a)
        except ValueError:
            raise ValueError(f"Asset {asset} not in pool") from None

    def pair(self, i: int, j: int, equilibrium: Tuple[Amount, ...] | None = None) -> CurveParams:
        """Project onto the (i, j) pair; asset i is the x axis."""
        eq = self.equilibrium_reserves if equilibrium is None else equilibrium
        return CurveParams(
            price_x=self.prices[i],
            price_y=self.prices[j],
            concentration_x=self.concentrations[i],
            concentration_y=self.concentrations[j],
            x0=eq[i],
            y0=eq[j],
        )


class PoolStatus(Enum):
    """Pool lifecycle."""
    UNINITIALIZED = "UNINITIALIZED"
    ACTIVE = "ACTIVE"


def compute_pool_id(params: PoolParams, *, salt: int = 0) -> str:
    """
    Deterministic 20-byte pool identifier:
        H("OrbitalPool" || canonical_json(params, salt))[:20]
    """
    payload = {
        "assets": list(params.assets),
        "concentrations": [str(c) for c in params.concentrations],
        "equilibrium_reserves": [str(e) for e in params.equilibrium_reserves],
        "prices": [str(p) for p in params.prices],
        "salt": int(salt),
        "tick": int(params.tick),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), allow_nan=False).encode("utf-8")
    return "0x" + hashlib.sha256(b"OrbitalPool" + encoded).hexdigest()[:40]


@dataclass(frozen=True)
class PoolState:
    """
    Committed state of one pool.

    Attributes:
        pool_id: 20-byte pool identifier (hex string)
        params: immutable curve constants
        reserves: per-asset reserves, in asset order
        equilibrium: current peg point; the first deposit, scaled by later liquidity changes
        lp_supply: total liquidity shares, including the locked minimum
        status: lifecycle state
    """

    pool_id: str
    params: PoolParams
    reserves: Tuple[Amount, ...]
    equilibrium: Tuple[Amount, ...]
    lp_supply: Amount = 0
    status: PoolStatus = PoolStatus.UNINITIALIZED
    activated_custodians: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        n = self.params.num_assets
        if len(self.reserves) != n or len(self.equilibrium) != n:
            raise ValueError(f"reserves and equilibrium must have {n} entries")
        for r in self.reserves:
            _require_int("reserve", r)
            if r < 0:
                raise ValueError(f"Reserves must be non-negative: {self.reserves}")
        if self.lp_supply < 0:
            raise ValueError(f"LP supply must be non-negative: {self.lp_supply}")
        object.__setattr__(self, "reserves", tuple(self.reserves))
        object.__setattr__(self, "equilibrium", tuple(self.equilibrium))

    @classmethod
    def initial(cls, params: PoolParams, *, salt: int = 0) -> "PoolState":
        n = params.num_assets
        return cls(
            pool_id=compute_pool_id(params, salt=salt),
            params=params,
            reserves=(0,) * n,
            equilibrium=params.equilibrium_reserves,
        )

    def with_reserves(self, reserves: Tuple[Amount, ...]) -> "PoolState":
        return replace(self, reserves=tuple(reserves))

    def get_reserve(self, asset: AssetId) -> Amount:
        return self.reserves[self.params.index_of(asset)]

    def __repr__(self) -> str:
        return (
            f"PoolState(pool_id={self.pool_id[:12]}..., "
            f"reserves={self.reserves}, equilibrium={self.equilibrium}, "
            f"lp_supply={self.lp_supply}, status={self.status.value})"
        )
