from __future__ import annotations

import pytest

from orbital.core import curve
from orbital.core.binary_search import solve_min_reserve_in, solve_min_reserve_out
from orbital.errors import InsufficientReserves
from orbital.kernels.python.fixed_point import WAD
from orbital.state.pools import PoolParams

A = "0x" + "0a" * 20
B = "0x" + "0b" * 20
C = "0x" + "0c" * 20

C09 = 9 * WAD // 10
E = 10**6


def _params() -> PoolParams:
    return PoolParams(
        assets=(A, B, C),
        prices=(WAD, WAD, WAD),
        concentrations=(C09, C09, C09),
        equilibrium_reserves=(E, E, E),
    )


def test_min_reserve_out_branches() -> None:
    pair = _params().pair(0, 1)
    assert curve.min_reserve_out(E, pair) == E
    # Input side above the peg: the output may fall below it.
    assert curve.min_reserve_out(E + 100, pair) == 999_901
    # Input side below the peg: the output must sit above it.
    assert curve.min_reserve_out(999_901, pair) == E + 100
    with pytest.raises(ValueError):
        curve.min_reserve_out(0, pair)


def test_min_reserve_in_mirrors_min_reserve_out() -> None:
    pair = _params().pair(0, 1)
    assert curve.min_reserve_in(999_901, pair) == E + 100
    assert curve.min_reserve_in(E, pair) == E
    for y in (999_000, 999_901, E + 5, E + 10_000):
        x = curve.min_reserve_in(y, pair)
        assert curve.verify(x, y, pair)
        assert not curve.verify(x - 1, y, pair)


def test_verify_pool_and_others_slack() -> None:
    p = _params()
    eq = p.equilibrium_reserves
    assert curve.verify_pool((E, E, E), eq, p)
    assert not curve.verify_pool((E - 1, E, E), eq, p)
    assert curve.others_slack((E, E, E), eq, p, 0, 1) == 0
    assert curve.others_slack((E, E, E + 7), eq, p, 0, 1) == 7 * WAD


def test_bisection_matches_closed_form_when_others_at_peg() -> None:
    p = _params()
    eq = p.equilibrium_reserves
    assert solve_min_reserve_out((E, E, E), eq, p, 0, 1, E + 100) == 999_901
    assert solve_min_reserve_in((E, E, E), eq, p, 0, 1, 999_901) == E + 100


def test_bisection_uses_slack_of_third_asset() -> None:
    p = _params()
    eq = p.equilibrium_reserves
    y = solve_min_reserve_out((E, E, E + 500), eq, p, 0, 1, E + 100)
    assert y < 999_901
    assert curve.verify_pool((E + 100, y, E + 500), eq, p)
    assert not curve.verify_pool((E + 100, y - 1, E + 500), eq, p)


def test_bisection_rejects_state_off_the_curve() -> None:
    p = _params()
    with pytest.raises(InsufficientReserves):
        solve_min_reserve_out((E - 1000, E, E), p.equilibrium_reserves, p, 0, 1, E - 1000)
