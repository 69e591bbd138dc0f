from __future__ import annotations

import pytest

from orbital.core.fees import MAX_PROTOCOL_FEE, NO_FEE, FeeConfig, ProtocolFee
from orbital.errors import (
    ConfigurationError,
    InvalidAdminAddress,
    InvalidProtocolFee,
    InvalidProtocolFeeRecipient,
    Unauthorized,
)

ADMIN = "0x" + "ad" * 20
OTHER = "0x" + "07" * 20
FEE_TO = "0x" + "fe" * 20
POOL_1 = "0x" + "11" * 20
POOL_2 = "0x" + "22" * 20


def test_protocol_fee_validation() -> None:
    assert ProtocolFee(None, 0) == NO_FEE
    assert ProtocolFee(FEE_TO.upper().replace("0X", "0x"), 1).recipient == FEE_TO
    assert ProtocolFee(FEE_TO, MAX_PROTOCOL_FEE).fee == MAX_PROTOCOL_FEE
    with pytest.raises(InvalidProtocolFee):
        ProtocolFee(FEE_TO, MAX_PROTOCOL_FEE + 1)
    with pytest.raises(InvalidProtocolFee):
        ProtocolFee(FEE_TO, -1)
    with pytest.raises(InvalidProtocolFeeRecipient):
        ProtocolFee(None, 1)
    with pytest.raises(InvalidProtocolFeeRecipient):
        ProtocolFee("not-an-address", 1)


def test_default_and_override() -> None:
    cfg = FeeConfig(ADMIN, ProtocolFee(FEE_TO, 10**15))
    assert cfg.get_protocol_fee(POOL_1) == (FEE_TO, 10**15)
    cfg.set_override(ADMIN, POOL_1, None, 0)
    assert cfg.has_override(POOL_1)
    assert cfg.get_protocol_fee(POOL_1) == (None, 0)
    assert cfg.get_protocol_fee(POOL_2) == (FEE_TO, 10**15)
    cfg.remove_override(ADMIN, POOL_1)
    assert not cfg.has_override(POOL_1)
    assert cfg.get_protocol_fee(POOL_1) == (FEE_TO, 10**15)
    cfg.remove_override(ADMIN, POOL_1)


def test_only_admin_mutates() -> None:
    cfg = FeeConfig(ADMIN)
    with pytest.raises(Unauthorized):
        cfg.set_default(OTHER, FEE_TO, 1)
    with pytest.raises(Unauthorized):
        cfg.set_override(OTHER, POOL_1, FEE_TO, 1)
    with pytest.raises(Unauthorized):
        cfg.remove_override(OTHER, POOL_1)
    with pytest.raises(Unauthorized):
        cfg.set_admin(OTHER, OTHER)
    assert cfg.default == NO_FEE


def test_admin_handover() -> None:
    cfg = FeeConfig(ADMIN)
    cfg.set_admin(ADMIN, OTHER)
    assert cfg.admin == OTHER
    with pytest.raises(Unauthorized):
        cfg.set_default(ADMIN, FEE_TO, 1)
    cfg.set_default(OTHER, FEE_TO, 1)
    assert cfg.get_protocol_fee(POOL_1) == (FEE_TO, 1)


def test_invalid_admin() -> None:
    with pytest.raises(InvalidAdminAddress):
        FeeConfig("admin")
    cfg = FeeConfig(ADMIN)
    with pytest.raises(InvalidAdminAddress) as exc:
        cfg.set_admin(ADMIN, None)  # type: ignore[arg-type]
    assert isinstance(exc.value, ConfigurationError)
    assert cfg.admin == ADMIN


def test_rejected_fee_leaves_table_unchanged() -> None:
    cfg = FeeConfig(ADMIN, ProtocolFee(FEE_TO, 5))
    with pytest.raises(InvalidProtocolFee):
        cfg.set_default(ADMIN, FEE_TO, MAX_PROTOCOL_FEE + 1)
    with pytest.raises(InvalidProtocolFeeRecipient):
        cfg.set_override(ADMIN, POOL_1, None, 5)
    assert cfg.get_protocol_fee(POOL_1) == (FEE_TO, 5)
    assert not cfg.has_override(POOL_1)
