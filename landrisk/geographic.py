"""
Geographic metrics (erosion / sedimentation hazard)
===================================================

Input per site: coordinate, zone, department and six raster statistics
(sum, mean and standard deviation of erosion and of sedimentation).

Derived per site:
- magnitudes of both sums and the signed net balance (sediment + erosion),
- which process dominates (10% margin, otherwise "mixto"),
- a 0-1 variability index from the standard deviations,
- a 0-100 hazard score and its bajo/medio/alto category.

Zone aggregates recompute the category from the *averaged* hazard score, so a
zone's category need not match any of its sites.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import DEFAULT_SETTINGS, Breakpoints, HazardScales, HazardWeights, Settings
from .dataset import load_geographic
from .indices import group_by_zone
from .models import (
    ColumnConfig,
    GeographicDerived,
    GeographicRecord,
    GeographicSite,
    GeographicZoneAggregate,
)
from .scoring import clamp, clamp01, format_fixed, safe_number, score_to_category


def _dominance(erosion_magnitude: float, sediment_magnitude: float, ratio: float) -> str:
    if erosion_magnitude > sediment_magnitude * ratio:
        return "erosión"
    if sediment_magnitude > erosion_magnitude * ratio:
        return "sedimentación"
    return "mixto"


def compute_derived(
    r: GeographicRecord,
    scales: Optional[HazardScales] = None,
    weights: Optional[HazardWeights] = None,
    breakpoints: Optional[Breakpoints] = None,
) -> GeographicDerived:
    """Compute hazard indicators for one site. Pure; never raises on bad numbers."""
    scales = scales or DEFAULT_SETTINGS.hazard_scales
    weights = weights or DEFAULT_SETTINGS.hazard_weights

    erosion_sum = safe_number(r.erosion_sum)
    sediment_sum = safe_number(r.sediment_sum)
    erosion_magnitude = abs(erosion_sum)
    sediment_magnitude = abs(sediment_sum)
    net_balance = sediment_sum + erosion_sum

    erosion_intensity = clamp01(abs(safe_number(r.erosion_mean)) / scales.erosion_mean)
    sediment_intensity = clamp01(abs(safe_number(r.sediment_mean)) / scales.sediment_mean)
    magnitude = clamp01((erosion_magnitude + sediment_magnitude) / scales.magnitude)
    variability_index = clamp01(
        (abs(safe_number(r.erosion_std)) + abs(safe_number(r.sediment_std))) / scales.variability
    )

    hazard_score = clamp(
        weights.erosion * erosion_intensity
        + weights.sediment * sediment_intensity
        + weights.variability * variability_index
        + weights.magnitude * magnitude,
        0.0,
        100.0,
    )

    return GeographicDerived(
        erosion_magnitude=erosion_magnitude,
        sediment_magnitude=sediment_magnitude,
        net_balance=net_balance,
        process_dominance=_dominance(erosion_magnitude, sediment_magnitude, scales.dominance_ratio),
        variability_index=variability_index,
        hazard_score=hazard_score,
        risk_category=score_to_category(hazard_score, breakpoints),
    )


def with_derived(r: GeographicRecord, settings: Optional[Settings] = None) -> GeographicSite:
    settings = settings or DEFAULT_SETTINGS
    derived = compute_derived(r, settings.hazard_scales, settings.hazard_weights, settings.breakpoints)
    return GeographicSite(record=r, derived=derived)


def aggregate_by_zone(
    records: Sequence[GeographicRecord],
    settings: Optional[Settings] = None,
) -> List[GeographicZoneAggregate]:
    """One aggregate per zone, in first-seen zone order."""
    settings = settings or DEFAULT_SETTINGS
    groups = group_by_zone(records, normalize=settings.normalize_zone_names)

    out: List[GeographicZoneAggregate] = []
    for members in groups.values():
        n = len(members)
        derived = [
            compute_derived(r, settings.hazard_scales, settings.hazard_weights, settings.breakpoints)
            for r in members
        ]
        total_erosion = sum(safe_number(r.erosion_sum) for r in members)
        total_sediment = sum(safe_number(r.sediment_sum) for r in members)
        avg_hazard = sum(d.hazard_score for d in derived) / n
        out.append(GeographicZoneAggregate(
            zone=members[0].zone,
            department=members[0].department,
            sites=n,
            total_erosion_sum=total_erosion,
            total_sediment_sum=total_sediment,
            net_balance_total=total_erosion + total_sediment,
            avg_erosion_mean=sum(safe_number(r.erosion_mean) for r in members) / n,
            avg_sediment_mean=sum(safe_number(r.sediment_mean) for r in members) / n,
            avg_variability=sum(d.variability_index for d in derived) / n,
            avg_hazard_score=avg_hazard,
            risk_category=score_to_category(avg_hazard, settings.breakpoints),
        ))
    return out


def feature_properties(site: GeographicSite) -> Dict[str, Any]:
    r, d = site.record, site.derived
    return {
        "id": r.id,
        "zone": r.zone,
        "department": r.department,
        "erosionMean": r.erosion_mean,
        "sedimentMean": r.sediment_mean,
        "netBalance": d.net_balance,
        "variability": d.variability_index,
        "hazardScore": d.hazard_score,
        "riskCategory": d.risk_category,
    }


def to_geojson(records: Sequence[GeographicRecord], settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Point FeatureCollection; coordinates are already WGS84 ([lng, lat])."""
    features = []
    for r in records:
        site = with_derived(r, settings)
        features.append({
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [r.lng, r.lat]},
            "properties": feature_properties(site),
        })
    return {"type": "FeatureCollection", "features": features}


# -----------------------------
# Table columns
# -----------------------------

GEOGRAPHIC_COLUMNS: Tuple[ColumnConfig, ...] = (
    ColumnConfig("id", "ID"),
    ColumnConfig("zone", "Zona / Asociación"),
    ColumnConfig("department", "Departamento"),
    ColumnConfig("erosion_mean", "Erosión (media)", "right", lambda v, row: format_fixed(v, 6)),
    ColumnConfig("sediment_mean", "Sedimentación (media)", "right", lambda v, row: format_fixed(v, 6)),
    ColumnConfig("net_balance", "Balance neto", "right", lambda v, row: format_fixed(v, 3)),
    ColumnConfig("variability_index", "Variabilidad", "right", lambda v, row: format_fixed(v, 2)),
    ColumnConfig(
        "hazard_score", "Índice de Peligro", "right",
        lambda v, row: f"{format_fixed(v, 0)} ({row.risk_category})",
    ),
)

GEOGRAPHIC_ZONE_COLUMNS: Tuple[ColumnConfig, ...] = (
    ColumnConfig("zone", "Zona / Asociación"),
    ColumnConfig("department", "Departamento"),
    ColumnConfig("sites", "Sitios", "right"),
    ColumnConfig("total_erosion_sum", "Erosión Total", "right", lambda v, row: format_fixed(v, 3)),
    ColumnConfig("total_sediment_sum", "Sedimentación Total", "right", lambda v, row: format_fixed(v, 3)),
    ColumnConfig("net_balance_total", "Balance Neto Total", "right", lambda v, row: format_fixed(v, 3)),
    ColumnConfig("avg_erosion_mean", "Erosión Media (Prom.)", "right", lambda v, row: format_fixed(v, 6)),
    ColumnConfig("avg_sediment_mean", "Sedimentación Media (Prom.)", "right", lambda v, row: format_fixed(v, 6)),
    ColumnConfig("avg_variability", "Variabilidad (Prom.)", "right", lambda v, row: format_fixed(v, 2)),
    ColumnConfig("avg_hazard_score", "Índice de Peligro (Prom.)", "right", lambda v, row: format_fixed(v, 0)),
    ColumnConfig("risk_category", "Riesgo"),
)


GEOGRAPHIC_RAW: Tuple[GeographicRecord, ...] = tuple(load_geographic())

# enriched once at import; read-only for every consumer
GEOGRAPHIC: Tuple[GeographicSite, ...] = tuple(with_derived(r) for r in GEOGRAPHIC_RAW)
