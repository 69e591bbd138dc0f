"""Exception types for the Orbital AMM.

Every error keeps the offending values as attributes (and in ``details``) so a
caller can report the failure without re-reading pool state.
"""

from __future__ import annotations

from typing import Any, Dict


class OrbitalError(Exception):
    """Base class for typed protocol failures."""

    def __init__(self, message: str, **details: Any) -> None:
        self.details: Dict[str, Any] = dict(details)
        for key, value in details.items():
            setattr(self, key, value)
        if details:
            rendered = ", ".join(f"{k}={v!r}" for k, v in sorted(details.items()))
            message = f"{message} ({rendered})"
        super().__init__(message)


# --- domain errors: curve / math preconditions -------------------------------


class DomainError(OrbitalError):
    """Curve or math precondition failed. Never recovered from."""


class InvalidDomain(DomainError):
    def __init__(self, y: int, y0: int) -> None:
        super().__init__("closed-form inverse requires y > y0", y=y, y0=y0)


class CurveViolation(DomainError):
    def __init__(self, reserves: tuple, equilibrium: tuple) -> None:
        super().__init__("post-trade reserves fail the curve invariant", reserves=reserves, equilibrium=equilibrium)


class MathOverflow(DomainError):
    def __init__(self, operation: str, value: int) -> None:
        super().__init__("value exceeds uint256", operation=operation, value=value)


# --- liquidity errors ---------------------------------------------------------


class LiquidityError(OrbitalError):
    """Requested trade or position exceeds available capacity."""


class InsufficientReserves(LiquidityError):
    def __init__(self, asset_index: int, requested: int, available: int) -> None:
        super().__init__(
            "requested amount exceeds pool reserves",
            asset_index=asset_index,
            requested=requested,
            available=available,
        )


class InsufficientCash(LiquidityError):
    def __init__(self, asset: str, requested: int, available: int) -> None:
        super().__init__("insufficient token cash", asset=asset, requested=requested, available=available)


class InsufficientLiquidity(LiquidityError):
    def __init__(self, reason: str, requested: int, available: int) -> None:
        super().__init__(f"insufficient liquidity: {reason}", requested=requested, available=available)


class UnbalancedDeposit(LiquidityError):
    def __init__(self, amounts: tuple, reference: tuple) -> None:
        super().__init__("initial deposit is off the reference ratio", amounts=amounts, reference=reference)


# --- bounds errors (user slippage guards) -----------------------------------


class BoundsError(OrbitalError):
    """User-specified slippage bound violated."""


class AmountOutLessThanMin(BoundsError):
    def __init__(self, amount_out: int, amount_out_min: int) -> None:
        super().__init__("amount_out below minimum", amount_out=amount_out, amount_out_min=amount_out_min)


class AmountInMoreThanMax(BoundsError):
    def __init__(self, amount_in: int, amount_in_max: int) -> None:
        super().__init__("amount_in above maximum", amount_in=amount_in, amount_in_max=amount_in_max)


class AmountUsedLessThanMin(BoundsError):
    def __init__(self, asset_index: int, amount_used: int, amount_min: int) -> None:
        super().__init__(
            "liquidity amount used below minimum",
            asset_index=asset_index,
            amount_used=amount_used,
            amount_min=amount_min,
        )


# --- configuration errors (admin mutation only) -------------------------------


class ConfigurationError(OrbitalError):
    """Admin mutation rejected."""


class InvalidProtocolFee(ConfigurationError):
    def __init__(self, fee: int, max_fee: int) -> None:
        super().__init__("protocol fee out of range", fee=fee, max_fee=max_fee)


class InvalidProtocolFeeRecipient(ConfigurationError):
    def __init__(self, recipient: object, fee: int) -> None:
        super().__init__("a recipient is required when fee > 0", recipient=recipient, fee=fee)


class InvalidAdminAddress(ConfigurationError):
    def __init__(self, admin: object) -> None:
        super().__init__("invalid admin address", admin=admin)


class Unauthorized(ConfigurationError):
    def __init__(self, caller: str) -> None:
        super().__init__("caller is not the fee admin", caller=caller)


# --- pool / call-shape errors -------------------------------------------------


class PoolError(OrbitalError):
    """Malformed call against a pool or path."""


class UnsupportedPair(PoolError):
    def __init__(self, token_in: object, token_out: object, num_assets: int) -> None:
        super().__init__("unsupported token pair", token_in=token_in, token_out=token_out, num_assets=num_assets)


class PoolNotActive(PoolError):
    def __init__(self, pool_id: str, status: str) -> None:
        super().__init__("pool is not active", pool_id=pool_id, status=status)


class Locked(PoolError):
    def __init__(self, pool_id: str) -> None:
        super().__init__("pool is locked (reentrant call)", pool_id=pool_id)


class InvalidPath(PoolError):
    def __init__(self, reason: str, length: int) -> None:
        super().__init__(f"invalid path: {reason}", length=length)
