"""
Unified points (socioeconomic <-> geographic join)
=================================================

One map-ready point per physical site:

1) Loss thresholds come from the distribution of estimated housing loss (P38):
   33rd/66th percentiles with linear interpolation, or static (200, 500) when
   fewer than 4 finite values exist.
2) Geographic sites are indexed by coordinates rounded to 6 decimals.
3) Each household takes the site at the exact same key, else the nearest
   site within 150 m (haversine), else stays unmatched.
4) Sites nobody took become geo-only points whose loss risk is inferred from
   their hazard score.

Every household appears once; every site appears once, either attached to a
household or on its own. A site is never attached to two households.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple
import logging
import math

import numpy as np

from .config import DEFAULT_SETTINGS, Breakpoints, JoinConfig
from .geographic import GEOGRAPHIC
from .indices import build_coord_index, coord_key
from .models import GeographicSite, Household, LossThresholds, ImpactDetails, MapImpactPoint, UnifiedPoint
from .scoring import safe_number, score_to_category
from .socioeconomic import SOCIOECONOMIC

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000.0


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lng2 - lng1)
    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def compute_loss_thresholds(values: Iterable[Any], config: Optional[JoinConfig] = None) -> LossThresholds:
    """Data-driven loss thresholds (S/.)."""
    config = config or DEFAULT_SETTINGS.join
    xs: List[float] = []
    for v in values:
        try:
            fv = float(v)
        except (TypeError, ValueError):
            continue
        if math.isfinite(fv):
            xs.append(fv)
    if len(xs) < config.min_samples:
        return LossThresholds(t_low=config.fallback_low, t_mid=config.fallback_mid)
    # numpy's default "linear" method interpolates at sorted index (n - 1) * p
    t_low, t_mid = np.quantile(np.asarray(xs, dtype=float), [config.low_quantile, config.high_quantile])
    return LossThresholds(t_low=float(t_low), t_mid=float(t_mid))


def risk_category_from_loss(loss: float, thresholds: LossThresholds) -> str:
    try:
        fl = float(loss)
    except (TypeError, ValueError):
        return "bajo"
    if not math.isfinite(fl) or fl <= thresholds.t_low:
        return "bajo"
    if fl <= thresholds.t_mid:
        return "medio"
    return "alto"


def infer_loss_risk_for_geo_only(site: GeographicSite, breakpoints: Optional[Breakpoints] = None) -> str:
    """Geo-only points have no P38 figure; fall back to the hazard score."""
    return score_to_category(site.derived.hazard_score, breakpoints)


def _nearest_site(
    lat: float,
    lng: float,
    sites: Sequence[GeographicSite],
    used: Set[str],
    max_m: float,
) -> Optional[Tuple[GeographicSite, float]]:
    best: Optional[GeographicSite] = None
    best_dist = float("inf")
    for s in sites:
        if s.id in used:
            continue
        dist = haversine_m(lat, lng, s.lat, s.lng)
        if dist < best_dist and dist <= max_m:
            best = s
            best_dist = dist
    if best is None:
        return None
    return best, best_dist


def join_points(
    households: Sequence[Household],
    sites: Sequence[GeographicSite],
    config: Optional[JoinConfig] = None,
    breakpoints: Optional[Breakpoints] = None,
) -> Tuple[Tuple[UnifiedPoint, ...], LossThresholds]:
    """Join both datasets. Output order: households in input order, then unused sites."""
    config = config or DEFAULT_SETTINGS.join

    thresholds = compute_loss_thresholds(
        (safe_number(h.record.estimated_loss_housing) for h in households), config
    )
    geo_index = build_coord_index(sites, config.coord_decimals)

    used: Set[str] = set()
    unified: List[UnifiedPoint] = []

    for h in households:
        key = coord_key(h.lat, h.lng, config.coord_decimals)
        match = next((g for g in geo_index.get(key, []) if g.id not in used), None)
        if match is None:
            near = _nearest_site(h.lat, h.lng, sites, used, config.match_radius_m)
            if near is not None:
                match, dist = near
                logger.debug("Matched %s to %s by distance (%.1f m)", h.id, match.id, dist)
        if match is not None:
            used.add(match.id)
        else:
            logger.debug("No geographic site within %.0f m of %s", config.match_radius_m, h.id)

        loss = safe_number(h.record.estimated_loss_housing)
        unified.append(UnifiedPoint(
            id=h.id,
            lat=h.lat,
            lng=h.lng,
            zone=h.zone,
            department=h.department,
            socio=h,
            geo=match,
            loss_housing=loss,
            loss_risk_category=risk_category_from_loss(loss, thresholds),
        ))

    geo_only = 0
    for g in sites:
        if g.id in used:
            continue
        geo_only += 1
        unified.append(UnifiedPoint(
            id=g.id,
            lat=g.lat,
            lng=g.lng,
            zone=g.zone,
            department=g.department,
            socio=None,
            geo=g,
            loss_housing=0.0,
            loss_risk_category=infer_loss_risk_for_geo_only(g, breakpoints),
        ))

    logger.debug(
        "Joined %d households with %d sites: %d matched, %d geo-only (t_low=%.1f, t_mid=%.1f)",
        len(households), len(sites), len(used), geo_only, thresholds.t_low, thresholds.t_mid,
    )
    return tuple(unified), thresholds


def to_map_impact_points(points: Optional[Sequence[UnifiedPoint]] = None) -> List[MapImpactPoint]:
    """Flatten unified points for the map viewer; severity = loss risk category."""
    if points is None:
        points = UNIFIED_POINTS
    return [
        MapImpactPoint(
            id=p.id,
            lat=p.lat,
            lng=p.lng,
            type="riesgo",
            severity=p.loss_risk_category,
            details=ImpactDetails(
                title=f"Riesgo por pérdida de vivienda: {p.loss_risk_category}",
                zone=p.zone,
                department=p.department,
                loss_housing=p.loss_housing,
                loss_risk_category=p.loss_risk_category,
            ),
        )
        for p in points
    ]


def points_to_geojson(points: Sequence[UnifiedPoint]) -> Dict[str, Any]:
    features = []
    for p in points:
        features.append({
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [p.lng, p.lat]},
            "properties": {
                "id": p.id,
                "zone": p.zone,
                "department": p.department,
                "socioId": p.socio.id if p.socio else None,
                "geoId": p.geo.id if p.geo else None,
                "lossHousing": p.loss_housing,
                "lossRiskCategory": p.loss_risk_category,
                "hazardScore": p.geo.derived.hazard_score if p.geo else None,
                "vulnerabilityScore": p.socio.derived.vulnerability_score if p.socio else None,
            },
        })
    return {"type": "FeatureCollection", "features": features}


# computed once for the built-in datasets
UNIFIED_POINTS, LOSS_THRESHOLDS = join_points(SOCIOECONOMIC, GEOGRAPHIC)


def get_unified_points() -> Tuple[UnifiedPoint, ...]:
    return UNIFIED_POINTS


def get_unified_point_by_id(point_id: str) -> Optional[UnifiedPoint]:
    return next((p for p in UNIFIED_POINTS if p.id == point_id), None)


def get_loss_thresholds() -> LossThresholds:
    return LOSS_THRESHOLDS
