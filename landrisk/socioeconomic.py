"""
Socioeconomic metrics (household vulnerability)
==============================================

Heuristic vulnerability score (0-100) per household:
- lower income per capita increases vulnerability,
- more dependents (elders 65+ and children under 10) per member increase it,
- elders and chronic conditions increase it,
- having nobody insured increases it,
- illiteracy increases it; higher education slightly reduces it.

All ratios are "count / household size" with the household size floored at 1.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import DEFAULT_SETTINGS, Breakpoints, Settings, VulnerabilityWeights
from .dataset import load_socioeconomic
from .indices import group_by_zone
from .models import (
    ColumnConfig,
    DerivedIndicators,
    Household,
    SocioeconomicRecord,
    SocioeconomicZoneAggregate,
)
from .scoring import clamp, clamp01, format_fixed, percent, safe_number, score_to_category, soles, yes_no


def gender_label(code: int) -> str:
    if code == 0:
        return "Masculino"
    if code == 1:
        return "Femenino"
    return "Otro/NS"


def compute_derived(
    r: SocioeconomicRecord,
    weights: Optional[VulnerabilityWeights] = None,
    breakpoints: Optional[Breakpoints] = None,
) -> DerivedIndicators:
    """Compute vulnerability indicators for one household. Pure."""
    w = weights or DEFAULT_SETTINGS.vulnerability_weights

    elders = safe_number(r.elders_65)
    dependents = max(0.0, elders + safe_number(r.children_under_10))
    employment_total = safe_number(r.formal_jobs) + safe_number(r.informal_jobs)
    has_any_insurance = safe_number(r.health_insurance_count) > 0
    size = max(1.0, safe_number(r.household_size, default=1.0))
    income_per_capita = safe_number(r.monthly_income) / size

    s_income = clamp01(1 - income_per_capita / w.income_reference)
    s_dependents = clamp01(dependents / size)
    s_elders = clamp01(elders / size)
    s_chronic = clamp01(safe_number(r.chronic_condition_count) / size)
    s_no_insurance = 0.0 if has_any_insurance else 1.0
    s_illiteracy = clamp01(safe_number(r.illiterate_count) / size)
    s_higher_edu = clamp01(safe_number(r.higher_education_count) / size)

    score = clamp(
        w.income * s_income
        + w.dependents * s_dependents
        + w.elders * s_elders
        + w.chronic * s_chronic
        + w.no_insurance * s_no_insurance
        + w.illiteracy * s_illiteracy
        + w.higher_education * s_higher_edu,
        0.0,
        100.0,
    )

    return DerivedIndicators(
        dependents=int(dependents),
        employment_total=int(employment_total),
        has_any_insurance=has_any_insurance,
        income_per_capita=income_per_capita,
        vulnerability_score=score,
        risk_category=score_to_category(score, breakpoints),
    )


def with_derived(r: SocioeconomicRecord, settings: Optional[Settings] = None) -> Household:
    settings = settings or DEFAULT_SETTINGS
    return Household(record=r, derived=compute_derived(r, settings.vulnerability_weights, settings.breakpoints))


def aggregate_by_zone(
    records: Sequence[SocioeconomicRecord],
    settings: Optional[Settings] = None,
) -> List[SocioeconomicZoneAggregate]:
    """One aggregate per zone, in first-seen zone order."""
    settings = settings or DEFAULT_SETTINGS
    groups = group_by_zone(records, normalize=settings.normalize_zone_names)

    out: List[SocioeconomicZoneAggregate] = []
    for members in groups.values():
        n = len(members)
        derived = [compute_derived(r, settings.vulnerability_weights, settings.breakpoints) for r in members]
        avg_vuln = sum(d.vulnerability_score for d in derived) / n
        out.append(SocioeconomicZoneAggregate(
            zone=members[0].zone,
            department=members[0].department,
            households=n,
            avg_household_size=sum(safe_number(r.household_size) for r in members) / n,
            avg_income=sum(safe_number(r.monthly_income) for r in members) / n,
            avg_income_per_capita=sum(d.income_per_capita for d in derived) / n,
            share_with_insurance=sum(1 for d in derived if d.has_any_insurance) / n,
            avg_vulnerability=avg_vuln,
            risk_category=score_to_category(avg_vuln, settings.breakpoints),
        ))
    return out


def feature_properties(h: Household) -> Dict[str, Any]:
    r, d = h.record, h.derived
    return {
        "id": r.id,
        "zone": r.zone,
        "department": r.department,
        "gender": gender_label(r.gender_code),
        "householdSize": r.household_size,
        "dependents": d.dependents,
        "income": r.monthly_income,
        "incomePerCapita": d.income_per_capita,
        "employmentTotal": d.employment_total,
        "hasAnyInsurance": d.has_any_insurance,
        "vulnerabilityScore": d.vulnerability_score,
        "riskCategory": d.risk_category,
    }


def to_geojson(records: Sequence[SocioeconomicRecord], settings: Optional[Settings] = None) -> Dict[str, Any]:
    features = []
    for r in records:
        features.append({
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [r.lng, r.lat]},
            "properties": feature_properties(with_derived(r, settings)),
        })
    return {"type": "FeatureCollection", "features": features}


# -----------------------------
# Table columns (raw survey codes are left out on purpose)
# -----------------------------

SOCIOECONOMIC_COLUMNS: Tuple[ColumnConfig, ...] = (
    ColumnConfig("id", "ID"),
    ColumnConfig("zone", "Zona / Asociación"),
    ColumnConfig("department", "Departamento"),
    ColumnConfig("household_size", "Personas Hogar", "right"),
    ColumnConfig("dependents", "Dependientes", "right"),
    ColumnConfig("monthly_income", "Ingreso Mensual (S/.)", "right", lambda v, row: soles(v)),
    ColumnConfig("income_per_capita", "Ingreso p/cápita (S/.)", "right", lambda v, row: soles(v)),
    ColumnConfig("employment_total", "Empleo (Total)", "right"),
    ColumnConfig("has_any_insurance", "Seguro de Salud", "left", lambda v, row: yes_no(v)),
    ColumnConfig(
        "vulnerability_score", "Índice de Vulnerabilidad", "right",
        lambda v, row: f"{format_fixed(v, 0)} ({row.risk_category})",
    ),
)

SOCIOECONOMIC_ZONE_COLUMNS: Tuple[ColumnConfig, ...] = (
    ColumnConfig("zone", "Zona / Asociación"),
    ColumnConfig("department", "Departamento"),
    ColumnConfig("households", "Hogares", "right"),
    ColumnConfig("avg_household_size", "Prom. Personas Hogar", "right", lambda v, row: format_fixed(v, 1)),
    ColumnConfig("avg_income", "Ingreso Prom. (S/.)", "right", lambda v, row: soles(v)),
    ColumnConfig("avg_income_per_capita", "Ingreso p/cápita Prom. (S/.)", "right", lambda v, row: soles(v)),
    ColumnConfig("share_with_insurance", "Seguro (Cobertura)", "right", lambda v, row: percent(v)),
    ColumnConfig(
        "avg_vulnerability", "Índice de Vulnerabilidad", "right",
        lambda v, row: f"{format_fixed(v, 0)} ({row.risk_category})",
    ),
)


SOCIOECONOMIC_RAW: Tuple[SocioeconomicRecord, ...] = tuple(load_socioeconomic())

SOCIOECONOMIC: Tuple[Household, ...] = tuple(with_derived(r) for r in SOCIOECONOMIC_RAW)
