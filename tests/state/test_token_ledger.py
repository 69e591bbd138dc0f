from __future__ import annotations

import pytest

from orbital.state.balances import UNLIMITED, LedgerError, TokenLedger

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
POOL = "0x" + "99" * 20
TOKEN = "0x" + "0a" * 20


def test_mint_and_transfer() -> None:
    ledger = TokenLedger()
    ledger.mint(ALICE, TOKEN, 100)
    ledger.transfer(TOKEN, ALICE, BOB, 40)
    assert ledger.balance_of(ALICE, TOKEN) == 60
    assert ledger.balance_of(BOB, TOKEN) == 40
    ledger.transfer(TOKEN, ALICE, BOB, 0)
    assert ledger.balance_of(ALICE, TOKEN) == 60


def test_transfer_insufficient_balance() -> None:
    ledger = TokenLedger()
    ledger.mint(ALICE, TOKEN, 10)
    with pytest.raises(LedgerError) as exc:
        ledger.transfer(TOKEN, ALICE, BOB, 11)
    assert exc.value.requested == 11
    assert exc.value.available == 10
    assert ledger.balance_of(ALICE, TOKEN) == 10


def test_zero_balances_are_dropped() -> None:
    ledger = TokenLedger()
    ledger.mint(ALICE, TOKEN, 5)
    ledger.transfer(TOKEN, ALICE, BOB, 5)
    assert (ALICE, TOKEN) not in ledger.get_all_balances()


def test_transfer_from_consumes_allowance() -> None:
    ledger = TokenLedger()
    ledger.mint(ALICE, TOKEN, 100)
    ledger.approve(ALICE, POOL, TOKEN, 30)
    ledger.transfer_from(POOL, TOKEN, ALICE, POOL, 20)
    assert ledger.allowance(ALICE, POOL, TOKEN) == 10
    with pytest.raises(LedgerError, match="allowance"):
        ledger.transfer_from(POOL, TOKEN, ALICE, POOL, 11)


def test_unlimited_allowance_is_not_decremented() -> None:
    ledger = TokenLedger()
    ledger.mint(ALICE, TOKEN, 100)
    ledger.approve(ALICE, POOL, TOKEN, UNLIMITED)
    ledger.transfer_from(POOL, TOKEN, ALICE, BOB, 100)
    assert ledger.allowance(ALICE, POOL, TOKEN) == UNLIMITED


def test_snapshot_restore() -> None:
    ledger = TokenLedger()
    ledger.mint(ALICE, TOKEN, 100)
    snap = ledger.snapshot()
    ledger.transfer(TOKEN, ALICE, BOB, 70)
    ledger.approve(ALICE, BOB, TOKEN, 5)
    ledger.restore(snap)
    assert ledger.balance_of(ALICE, TOKEN) == 100
    assert ledger.balance_of(BOB, TOKEN) == 0
    assert ledger.allowance(ALICE, BOB, TOKEN) == 0


def test_negative_amounts_rejected() -> None:
    ledger = TokenLedger()
    with pytest.raises(ValueError):
        ledger.mint(ALICE, TOKEN, -1)
    with pytest.raises(ValueError):
        ledger.transfer(TOKEN, ALICE, BOB, -1)
    with pytest.raises(ValueError):
        ledger.approve(ALICE, BOB, TOKEN, -1)
