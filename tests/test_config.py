from __future__ import annotations

import logging

import pytest

from orbital.config import OrbitalConfig, configure_logging, load_config


def test_defaults() -> None:
    cfg = OrbitalConfig()
    assert cfg.min_liquidity == 1000
    assert cfg.max_search_iterations == 256
    assert cfg.log_level == "INFO"


def test_validation() -> None:
    with pytest.raises(ValueError):
        OrbitalConfig(min_liquidity=-1)
    with pytest.raises(ValueError):
        OrbitalConfig(max_search_iterations=64)
    with pytest.raises(ValueError):
        OrbitalConfig(log_level="LOUD")
    with pytest.raises(TypeError):
        OrbitalConfig(min_liquidity="10")  # type: ignore[arg-type]
    assert OrbitalConfig(log_level="debug").log_level == "DEBUG"


def test_env_values_are_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORBITAL_MIN_LIQUIDITY", "-5")
    monkeypatch.setenv("ORBITAL_MAX_SEARCH_ITERATIONS", "999999")
    monkeypatch.setenv("ORBITAL_LOG_LEVEL", " warning ")
    cfg = OrbitalConfig.from_env()
    assert cfg.min_liquidity == 0
    assert cfg.max_search_iterations == 4096
    assert cfg.log_level == "WARNING"


def test_env_garbage_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORBITAL_MIN_LIQUIDITY", "lots")
    monkeypatch.setenv("ORBITAL_LOG_LEVEL", "   ")
    cfg = OrbitalConfig.from_env()
    assert cfg.min_liquidity == 1000
    assert cfg.log_level == "INFO"


def test_yaml_overrides_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORBITAL_MIN_LIQUIDITY", "5")
    monkeypatch.delenv("ORBITAL_MAX_SEARCH_ITERATIONS", raising=False)
    path = tmp_path / "orbital.yaml"
    path.write_text("max_search_iterations: 512\nlog_level: debug\n", encoding="utf-8")
    cfg = load_config(path)
    assert cfg.min_liquidity == 5
    assert cfg.max_search_iterations == 512
    assert cfg.log_level == "DEBUG"


def test_yaml_edge_cases(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ORBITAL_MIN_LIQUIDITY", raising=False)
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert load_config(empty).min_liquidity == 1000

    listy = tmp_path / "list.yaml"
    listy.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_config(listy)

    unknown = tmp_path / "unknown.yaml"
    unknown.write_text("fee: 3\n", encoding="utf-8")
    with pytest.raises(ValueError, match="unknown config keys"):
        load_config(unknown)


def test_configure_logging_sets_level(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    configure_logging(OrbitalConfig(log_level="ERROR"))
    assert calls and calls[0]["level"] == logging.ERROR
