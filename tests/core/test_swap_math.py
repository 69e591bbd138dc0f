# [TESTER] v1

from __future__ import annotations

import pytest

from orbital.core import curve
from orbital.core.swap_math import (
    BINARY_SEARCH,
    CLOSED_FORM,
    compute_fee,
    compute_swap,
    min_gross_for_net,
)
from orbital.errors import InsufficientCash, InsufficientReserves, UnsupportedPair
from orbital.kernels.python.fixed_point import WAD
from orbital.state.pools import PoolParams, PoolState

A = "0x" + "0a" * 20
B = "0x" + "0b" * 20
C = "0x" + "0c" * 20
FEE_TO = "0x" + "fe" * 20

C09 = 9 * WAD // 10
E = 10**6
RATE = 3 * 10**15  # 0.3%


def _state(reserves=(E, E, E)) -> PoolState:
    params = PoolParams(
        assets=(A, B, C),
        prices=(WAD, WAD, WAD),
        concentrations=(C09, C09, C09),
        equilibrium_reserves=(E, E, E),
        tick=7,
    )
    return PoolState.initial(params).with_reserves(reserves)


def _bruteforce_min_gross(target_net: int, fee_rate: int) -> int:
    gross = target_net
    while gross - compute_fee(gross, fee_rate) < target_net:
        gross += 1
    return gross


def test_compute_fee_rounds_up() -> None:
    assert compute_fee(0, RATE) == 0
    assert compute_fee(1, RATE) == 1
    assert compute_fee(1000, RATE) == 3
    assert compute_fee(1001, RATE) == 4
    assert compute_fee(10**6, 0) == 0


@pytest.mark.parametrize("fee_rate", [0, 1, RATE, 10**17, 5 * 10**17])
def test_min_gross_for_net_matches_bruteforce(fee_rate: int) -> None:
    for target in range(0, 400):
        gross, net, fee = min_gross_for_net(target, fee_rate)
        assert gross == _bruteforce_min_gross(target, fee_rate)
        assert net == gross - fee >= target
        assert fee == compute_fee(gross, fee_rate)


def test_min_gross_for_net_rejects_full_fee() -> None:
    with pytest.raises(ValueError):
        min_gross_for_net(10, WAD)


def test_exact_in_balanced_pool_uses_closed_form() -> None:
    r = compute_swap(_state(), 0, 1, 100)
    assert r.amount_in == 100
    assert r.amount_out == 99
    assert r.fee_amount == 0
    assert r.reserves_before == (E, E, E)
    assert r.reserves_after == (E + 100, E - 99, E)
    assert r.tick_after == 7
    assert r.strategy == CLOSED_FORM
    assert not r.at_boundary


def test_exact_in_output_is_maximal() -> None:
    st = _state()
    r = compute_swap(st, 0, 1, 100)
    after = list(r.reserves_after)
    after[1] -= 1
    assert not curve.verify_pool(after, st.equilibrium, st.params)


def test_exact_out_inverts_exact_in() -> None:
    r = compute_swap(_state(), 0, 1, 99, exact_in=False)
    assert r.amount_in == 100
    assert r.amount_out == 99


def test_exact_in_too_small_for_any_output() -> None:
    with pytest.raises(ValueError, match="no output"):
        compute_swap(_state(), 0, 1, 1)


def test_fee_goes_to_recipient() -> None:
    r = compute_swap(_state(), 0, 1, 100, fee_rate=RATE, fee_recipient=FEE_TO)
    assert r.fee_amount == 1
    assert r.amount_out == 98
    assert r.fee_recipient == FEE_TO
    assert r.reserves_after == (E + 99, E - 98, E)


def test_fee_without_recipient_stays_in_reserves() -> None:
    r = compute_swap(_state(), 0, 1, 100, fee_rate=RATE)
    assert r.fee_amount == 1
    assert r.amount_out == 98
    assert r.reserves_after == (E + 100, E - 98, E)


def test_exact_out_with_fee() -> None:
    r = compute_swap(_state(), 0, 1, 98, exact_in=False, fee_rate=RATE, fee_recipient=FEE_TO)
    assert (r.amount_in, r.fee_amount, r.amount_out) == (100, 1, 98)


def test_limit_clamps_fill_at_reserve_floor() -> None:
    r = compute_swap(_state(), 0, 1, 100, limit=999_950)
    assert r.at_boundary
    assert r.amount_out == 50
    assert r.amount_in == 51
    assert r.reserves_after[1] == 999_950


def test_limit_above_current_reserve_fills_nothing() -> None:
    r = compute_swap(_state(), 0, 1, 100, limit=E)
    assert r.at_boundary
    assert (r.amount_in, r.amount_out) == (0, 0)
    assert r.reserves_after == r.reserves_before


def test_limit_not_reached_is_ignored() -> None:
    r = compute_swap(_state(), 0, 1, 100, limit=900_000)
    assert not r.at_boundary
    assert r.amount_out == 99


def test_exact_out_limit_clamps_output() -> None:
    r = compute_swap(_state(), 0, 1, 500, exact_in=False, limit=999_950)
    assert r.at_boundary
    assert r.amount_out == 50


def test_off_peg_third_asset_switches_to_bisection() -> None:
    st = _state((E, E, E + 500))
    r = compute_swap(st, 0, 1, 100)
    assert r.strategy == BINARY_SEARCH
    assert r.amount_out > 99
    assert curve.verify_pool(r.reserves_after, st.equilibrium, st.params)
    after = list(r.reserves_after)
    after[1] -= 1
    assert not curve.verify_pool(after, st.equilibrium, st.params)


def test_bisection_exact_out_is_minimal() -> None:
    st = _state((E, E, E + 500))
    r = compute_swap(st, 0, 1, 1000, exact_in=False)
    assert r.strategy == BINARY_SEARCH
    assert r.amount_in > 0
    assert curve.verify_pool(r.reserves_after, st.equilibrium, st.params)
    after = list(r.reserves_after)
    after[0] -= 1
    assert not curve.verify_pool(after, st.equilibrium, st.params)


def test_exact_out_against_slack_still_costs_input() -> None:
    st = _state((E + 500, E, E))
    r = compute_swap(st, 0, 1, 400, exact_in=False)
    assert r.strategy == CLOSED_FORM
    assert (r.amount_in, r.amount_out) == (1, 400)
    assert r.reserves_after == (E + 501, E - 400, E)

    r = compute_swap(st, 0, 1, 400, exact_in=False, fee_rate=RATE, fee_recipient=FEE_TO)
    assert (r.amount_in, r.fee_amount) == (2, 1)
    assert r.reserves_after == (E + 501, E - 400, E)


def test_unsupported_pairs() -> None:
    with pytest.raises(UnsupportedPair):
        compute_swap(_state(), 1, 1, 100)
    with pytest.raises(UnsupportedPair):
        compute_swap(_state(), 0, 3, 100)
    with pytest.raises(UnsupportedPair):
        compute_swap(_state(), -1, 0, 100)


def test_bad_amounts() -> None:
    with pytest.raises(ValueError):
        compute_swap(_state(), 0, 1, 0)
    with pytest.raises(ValueError):
        compute_swap(_state(), 0, 1, 100, limit=-1)
    with pytest.raises(TypeError):
        compute_swap(_state(), 0, 1, True)
    with pytest.raises(ValueError):
        compute_swap(_state(), 0, 1, 100, fee_rate=WAD)


def test_output_beyond_reserve() -> None:
    with pytest.raises(InsufficientReserves):
        compute_swap(_state(), 0, 1, E, exact_in=False)
    with pytest.raises(InsufficientReserves):
        compute_swap(_state((E, 0, E)), 0, 1, 100)


def test_cash_check() -> None:
    with pytest.raises(InsufficientCash) as exc:
        compute_swap(_state(), 0, 1, 100, cash_out=50)
    assert exc.value.requested == 99
    assert exc.value.available == 50


def test_higher_fee_rate_means_less_output() -> None:
    outs = [
        compute_swap(_state(), 0, 1, 100_000, fee_rate=rate, fee_recipient=FEE_TO).amount_out
        for rate in (0, 10**15, RATE, 10**16, 10**17)
    ]
    assert outs == sorted(outs, reverse=True)
    assert len(set(outs)) == len(outs)
