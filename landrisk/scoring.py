"""
Scoring primitives
==================

Small numeric helpers shared by every scoring path:

- `safe_number` turns None/NaN/inf into a default (0 unless told otherwise),
- `clamp01` / `clamp` keep sub-scores and composites inside their ranges,
- `score_to_category` is THE breakpoint function (bajo < 33 <= medio < 66 <= alto).
  Hazard, vulnerability and geo-only loss inference all go through it.

The policy is "always produce a plausible number": pathological inputs are
normalized silently instead of raising.
"""

from __future__ import annotations
from typing import Any, Optional
import math

from .config import Breakpoints, DEFAULT_SETTINGS


def safe_number(x: Any, default: float = 0.0) -> float:
    """Return `x` as a finite float, or `default` if missing/invalid."""
    if x is None:
        return default
    try:
        fx = float(x)
    except (TypeError, ValueError):
        return default
    return fx if math.isfinite(fx) else default


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp into [lo, hi]; non-numeric input and NaN map to `lo`, infinities saturate."""
    try:
        fx = float(x)
    except (TypeError, ValueError):
        return lo
    if math.isnan(fx):
        return lo
    return min(hi, max(lo, fx))


def clamp01(x: float) -> float:
    return clamp(x, 0.0, 1.0)


def score_to_category(score: float, breakpoints: Optional[Breakpoints] = None) -> str:
    """Map a 0-100 score onto bajo/medio/alto."""
    bp = breakpoints or DEFAULT_SETTINGS.breakpoints
    s = safe_number(score)
    if s >= bp.high:
        return "alto"
    if s >= bp.medium:
        return "medio"
    return "bajo"


# -----------------------------
# Display formatters (used by column configs)
# -----------------------------

def format_fixed(v: Any, digits: int) -> str:
    try:
        n = float(v)
    except (TypeError, ValueError):
        return "-"
    if not math.isfinite(n):
        return "-"
    return f"{n:.{digits}f}"


def soles(v: Any) -> str:
    """Peruvian soles, no decimals: S/. 1,500"""
    try:
        n = float(v)
    except (TypeError, ValueError):
        return "S/.-"
    if not math.isfinite(n):
        return "S/.-"
    return f"S/. {n:,.0f}"


def percent(v: Any) -> str:
    return f"{round(safe_number(v) * 100)}%"


def yes_no(v: Any) -> str:
    return "Sí" if v else "No"
