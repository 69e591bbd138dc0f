"""
Runtime configuration for Orbital pools.

Values come from (in order of precedence) an explicit YAML file, environment
variables, or the defaults below. Environment values are clamped into their
allowed range instead of failing, so a bad deployment variable degrades to the
nearest sane bound.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml


DEFAULT_MIN_LIQUIDITY = 1000
DEFAULT_MAX_SEARCH_ITERATIONS = 256

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


@dataclass(frozen=True)
class OrbitalConfig:
    """
    Attributes:
        min_liquidity: shares locked forever on a pool's first mint
        max_search_iterations: upper bound on bisection steps per solve
        log_level: level handed to `configure_logging`
    """

    min_liquidity: int = DEFAULT_MIN_LIQUIDITY
    max_search_iterations: int = DEFAULT_MAX_SEARCH_ITERATIONS
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in ("min_liquidity", "max_search_iterations"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
        if self.min_liquidity < 0:
            raise ValueError(f"min_liquidity must be non-negative: {self.min_liquidity}")
        # 2**112 reserves need at most 113 halvings; leave headroom for the doubling phase.
        if self.max_search_iterations < 128:
            raise ValueError(f"max_search_iterations must be >= 128: {self.max_search_iterations}")
        if not isinstance(self.log_level, str) or self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}: {self.log_level!r}")
        object.__setattr__(self, "log_level", self.log_level.upper())

    @classmethod
    def from_env(cls) -> "OrbitalConfig":
        return cls(
            min_liquidity=_env_int("ORBITAL_MIN_LIQUIDITY", DEFAULT_MIN_LIQUIDITY, lo=0, hi=10**12),
            max_search_iterations=_env_int(
                "ORBITAL_MAX_SEARCH_ITERATIONS", DEFAULT_MAX_SEARCH_ITERATIONS, lo=128, hi=4096
            ),
            log_level=_env_str("ORBITAL_LOG_LEVEL", "INFO"),
        )

    def merged(self, overrides: Mapping[str, Any]) -> "OrbitalConfig":
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {unknown}")
        return replace(self, **dict(overrides))


def load_config(path: Optional[Path] = None) -> OrbitalConfig:
    """
    Load configuration: environment first, then the YAML file (if given) on top.

    The YAML document must be a mapping whose keys are `OrbitalConfig` fields.
    """
    base = OrbitalConfig.from_env()
    if path is None:
        return base
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return base
    if not isinstance(obj, Mapping):
        raise TypeError("config YAML must be a mapping")
    return base.merged(obj)


def configure_logging(config: OrbitalConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
