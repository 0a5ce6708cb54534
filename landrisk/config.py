"""
Configuration (scoring constants and join parameters)
=====================================================

Every number the engine relies on lives here as a frozen dataclass default:

- hazard scale constants (empirical ranges observed in the geographic survey),
- composite score weights,
- the 33/66 risk breakpoints,
- join parameters (match radius, coordinate precision, loss quantiles).

`load_settings()` lets a handful of them be overridden through `LANDRISK_*`
environment variables, so a different survey can be tried without edits.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional
import os


@dataclass(frozen=True)
class Breakpoints:
    """Score breakpoints shared by every 0-100 scoring path."""
    medium: float = 33.0
    high: float = 66.0


@dataclass(frozen=True)
class HazardScales:
    """Divisors that map raw erosion/sediment statistics onto [0, 1]."""
    erosion_mean: float = 0.0035    # |media_erosion| observed ~0-0.0031
    sediment_mean: float = 0.002    # |media_sed| observed ~0-0.0017
    magnitude: float = 120.0        # |sums| observed ~0-106
    variability: float = 0.05       # std devs observed ~0.007-0.036
    # one process dominates when it exceeds the other by this factor
    dominance_ratio: float = 1.1


@dataclass(frozen=True)
class HazardWeights:
    erosion: float = 35.0
    sediment: float = 25.0
    variability: float = 20.0
    magnitude: float = 20.0


@dataclass(frozen=True)
class VulnerabilityWeights:
    """Weights of the household vulnerability composite (higher education subtracts)."""
    income: float = 30.0
    dependents: float = 20.0
    elders: float = 10.0
    chronic: float = 15.0
    no_insurance: float = 15.0
    illiteracy: float = 10.0
    higher_education: float = -5.0
    # income per capita (S/.) at which income deficiency reaches 0
    income_reference: float = 1500.0


@dataclass(frozen=True)
class JoinConfig:
    """Parameters for the socioeconomic <-> geographic coordinate join."""
    match_radius_m: float = 150.0
    coord_decimals: int = 6
    min_samples: int = 4
    low_quantile: float = 0.33
    high_quantile: float = 0.66
    # used when fewer than `min_samples` finite losses exist (S/.)
    fallback_low: float = 200.0
    fallback_mid: float = 500.0


@dataclass(frozen=True)
class Settings:
    """All tunables in one place."""
    breakpoints: Breakpoints = field(default_factory=Breakpoints)
    hazard_scales: HazardScales = field(default_factory=HazardScales)
    hazard_weights: HazardWeights = field(default_factory=HazardWeights)
    vulnerability_weights: VulnerabilityWeights = field(default_factory=VulnerabilityWeights)
    join: JoinConfig = field(default_factory=JoinConfig)
    # trim + casefold zone names before grouping (off = exact string match)
    normalize_zone_names: bool = False


DEFAULT_SETTINGS = Settings()


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from defaults plus `LANDRISK_*` environment overrides.

    Recognised variables:
        LANDRISK_MATCH_RADIUS_M, LANDRISK_LOW_QUANTILE, LANDRISK_HIGH_QUANTILE,
        LANDRISK_FALLBACK_LOW, LANDRISK_FALLBACK_MID, LANDRISK_NORMALIZE_ZONES
    """
    env = os.environ if env is None else env
    base = DEFAULT_SETTINGS.join
    join = replace(
        base,
        match_radius_m=_env_float(env, "LANDRISK_MATCH_RADIUS_M", base.match_radius_m),
        low_quantile=_env_float(env, "LANDRISK_LOW_QUANTILE", base.low_quantile),
        high_quantile=_env_float(env, "LANDRISK_HIGH_QUANTILE", base.high_quantile),
        fallback_low=_env_float(env, "LANDRISK_FALLBACK_LOW", base.fallback_low),
        fallback_mid=_env_float(env, "LANDRISK_FALLBACK_MID", base.fallback_mid),
    )
    if not 0.0 <= join.low_quantile <= join.high_quantile <= 1.0:
        raise ValueError("Loss quantiles must satisfy 0 <= low <= high <= 1")
    if join.match_radius_m < 0:
        raise ValueError("LANDRISK_MATCH_RADIUS_M must be >= 0")
    return replace(
        DEFAULT_SETTINGS,
        join=join,
        normalize_zone_names=_env_bool(env, "LANDRISK_NORMALIZE_ZONES", DEFAULT_SETTINGS.normalize_zone_names),
    )
