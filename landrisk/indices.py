"""
Indices (precomputed lookup tables)
===================================

Two simple indices back the aggregation and join code:

- zone index: zone key -> rows of that zone, in first-seen order
- coordinate index: "lat,lng" rounded key -> rows at that coordinate

Zone keys are the raw zone string by default. A typo or trailing space in a
zone name therefore creates a separate group; `normalize=True` trims and
case-folds names before grouping.
"""

from __future__ import annotations
from typing import Callable, Dict, List, Sequence, TypeVar

T = TypeVar("T")


def zone_key(zone: str, normalize: bool = False) -> str:
    if not normalize:
        return zone
    return " ".join(zone.split()).casefold()


def group_by_zone(
    rows: Sequence[T],
    zone_of: Callable[[T], str] = lambda r: r.zone,
    normalize: bool = False,
) -> Dict[str, List[T]]:
    """Group rows by zone. Dict order is the order zones were first seen."""
    groups: Dict[str, List[T]] = {}
    for r in rows:
        groups.setdefault(zone_key(zone_of(r), normalize), []).append(r)
    return groups


def coord_key(lat: float, lng: float, decimals: int = 6) -> str:
    """Coordinate key; 6 decimals is ~0.1 m, good for exact matches."""
    return f"{lat:.{decimals}f},{lng:.{decimals}f}"


def build_coord_index(rows: Sequence[T], decimals: int = 6) -> Dict[str, List[T]]:
    """Map coordinate key -> rows at that coordinate (input order kept)."""
    idx: Dict[str, List[T]] = {}
    for r in rows:
        idx.setdefault(coord_key(r.lat, r.lng, decimals), []).append(r)
    return idx
