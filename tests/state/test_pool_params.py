from __future__ import annotations

import pytest

from orbital.kernels.python.fixed_point import MAX_RESERVE, WAD
from orbital.state.pools import (
    CurveParams,
    PoolParams,
    PoolState,
    PoolStatus,
    compute_pool_id,
    normalize_address,
)

A = "0x" + "0a" * 20
B = "0x" + "0b" * 20
C = "0x" + "0c" * 20


def _params(**overrides) -> PoolParams:
    kw = dict(
        assets=(A, B, C),
        prices=(WAD, WAD, 2 * WAD),
        concentrations=(WAD // 2, WAD // 2, 0),
        equilibrium_reserves=(100, 200, 300),
    )
    kw.update(overrides)
    return PoolParams(**kw)


def test_normalize_address() -> None:
    assert normalize_address("0x" + "AB" * 20) == "0x" + "ab" * 20
    with pytest.raises(ValueError):
        normalize_address("0x1234")
    with pytest.raises(TypeError):
        normalize_address(1234)  # type: ignore[arg-type]


def test_pool_params_validation() -> None:
    p = _params()
    assert p.num_assets == 3
    assert p.index_of(B.upper().replace("0X", "0x")) == 1
    with pytest.raises(ValueError, match="canonical order"):
        _params(assets=(B, A, C))
    with pytest.raises(ValueError, match="at least 2"):
        _params(assets=(A,), prices=(WAD,), concentrations=(0,), equilibrium_reserves=(1,))
    with pytest.raises(ValueError, match="one entry per asset"):
        _params(prices=(WAD, WAD))
    with pytest.raises(ValueError, match="prices"):
        _params(prices=(WAD - 1, WAD, WAD))
    with pytest.raises(ValueError, match="prices"):
        _params(prices=(10**36 + 1, WAD, WAD))
    with pytest.raises(ValueError, match="concentrations"):
        _params(concentrations=(WAD + 1, 0, 0))
    with pytest.raises(ValueError, match="equilibrium_reserves"):
        _params(equilibrium_reserves=(0, 1, 1))
    with pytest.raises(ValueError, match="equilibrium_reserves"):
        _params(equilibrium_reserves=(MAX_RESERVE + 1, 1, 1))
    with pytest.raises(ValueError, match="not in pool"):
        p.index_of("0x" + "0d" * 20)


def test_pair_projection_and_swap() -> None:
    p = _params()
    pair = p.pair(2, 0)
    assert pair == CurveParams(
        price_x=2 * WAD,
        price_y=WAD,
        concentration_x=0,
        concentration_y=WAD // 2,
        x0=300,
        y0=100,
    )
    assert pair.swapped().swapped() == pair
    assert pair.swapped().x0 == 100
    assert p.pair(0, 1, (7, 8, 9)).x0 == 7


def test_pool_id_is_deterministic_and_salted() -> None:
    p = _params()
    pid = compute_pool_id(p)
    assert pid == compute_pool_id(_params())
    assert pid != compute_pool_id(p, salt=1)
    assert pid != compute_pool_id(_params(tick=5))
    assert normalize_address(pid) == pid


def test_initial_state() -> None:
    p = _params()
    st = PoolState.initial(p)
    assert st.reserves == (0, 0, 0)
    assert st.equilibrium == (100, 200, 300)
    assert st.status == PoolStatus.UNINITIALIZED
    assert st.lp_supply == 0
    st2 = st.with_reserves((1, 2, 3))
    assert st2.get_reserve(C) == 3
    assert st.reserves == (0, 0, 0)
    with pytest.raises(ValueError):
        st.with_reserves((1, 2))
    with pytest.raises(ValueError):
        st.with_reserves((1, -2, 3))
