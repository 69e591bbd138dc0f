"""
Protocol fee table.

One admin-controlled default `(recipient, fee)` plus optional per-pool
overrides. Fees are WAD fractions of the gross input, capped at 15%. Pools read
the table at swap time; only the admin may change it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..errors import InvalidAdminAddress, InvalidProtocolFee, InvalidProtocolFeeRecipient, Unauthorized
from ..state.balances import Address
from ..state.pools import normalize_address

log = logging.getLogger(__name__)


MAX_PROTOCOL_FEE = 150_000_000_000_000_000  # 0.15e18


@dataclass(frozen=True)
class ProtocolFee:
    recipient: Optional[Address]
    fee: int

    def __post_init__(self) -> None:
        if not isinstance(self.fee, int) or isinstance(self.fee, bool):
            raise TypeError("fee must be an int")
        if not (0 <= self.fee <= MAX_PROTOCOL_FEE):
            raise InvalidProtocolFee(self.fee, MAX_PROTOCOL_FEE)
        if self.recipient is None:
            if self.fee > 0:
                raise InvalidProtocolFeeRecipient(self.recipient, self.fee)
            return
        try:
            recipient = normalize_address(self.recipient)
        except (TypeError, ValueError):
            raise InvalidProtocolFeeRecipient(self.recipient, self.fee) from None
        object.__setattr__(self, "recipient", recipient)


NO_FEE = ProtocolFee(recipient=None, fee=0)


class FeeConfig:
    """Admin-gated fee table keyed by pool id."""

    def __init__(self, admin: Address, default: ProtocolFee = NO_FEE) -> None:
        self._admin = self._check_admin(admin)
        self._default = default
        self._overrides: Dict[str, ProtocolFee] = {}

    @staticmethod
    def _check_admin(admin: object) -> Address:
        try:
            return normalize_address(admin)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise InvalidAdminAddress(admin) from None

    def _only_admin(self, caller: Address) -> None:
        if not isinstance(caller, str) or caller.strip().lower() != self._admin:
            raise Unauthorized(caller)

    @property
    def admin(self) -> Address:
        return self._admin

    @property
    def default(self) -> ProtocolFee:
        return self._default

    def set_admin(self, caller: Address, new_admin: Address) -> None:
        self._only_admin(caller)
        self._admin = self._check_admin(new_admin)
        log.info("fee admin changed to %s", self._admin)

    def set_default(self, caller: Address, recipient: Optional[Address], fee: int) -> None:
        self._only_admin(caller)
        self._default = ProtocolFee(recipient=recipient, fee=fee)
        log.info("default protocol fee set: fee=%d recipient=%s", fee, self._default.recipient)

    def set_override(self, caller: Address, pool_id: str, recipient: Optional[Address], fee: int) -> None:
        self._only_admin(caller)
        pid = normalize_address(pool_id)
        self._overrides[pid] = ProtocolFee(recipient=recipient, fee=fee)
        log.info("protocol fee override for %s: fee=%d", pid, fee)

    def remove_override(self, caller: Address, pool_id: str) -> None:
        self._only_admin(caller)
        pid = normalize_address(pool_id)
        if self._overrides.pop(pid, None) is not None:
            log.info("protocol fee override removed for %s", pid)

    def has_override(self, pool_id: str) -> bool:
        return normalize_address(pool_id) in self._overrides

    def get_protocol_fee(self, pool_id: str) -> Tuple[Optional[Address], int]:
        """(recipient, fee) for `pool_id`: the override if set, else the default."""
        entry = self._overrides.get(normalize_address(pool_id), self._default)
        return entry.recipient, entry.fee
