"""
Data model (records, derived indicators, aggregates, map points)
===============================================================

Each survey row becomes a frozen dataclass. Derived indicators are separate
frozen objects computed from a raw record; an "enriched" row simply pairs the
two (`GeographicSite`, `Household`).

Nothing here is ever mutated after construction. Filters and sorts select
record IDs instead of editing data.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional, Tuple

RiskCategory = Literal["bajo", "medio", "alto"]
ProcessDominance = Literal["erosión", "sedimentación", "mixto"]

RISK_CATEGORIES: Tuple[str, ...] = ("bajo", "medio", "alto")


# -----------------------------
# Geographic
# -----------------------------

@dataclass(frozen=True)
class GeographicRecord:
    """Erosion/sediment statistics for one survey site."""
    id: str
    lat: float
    lng: float
    zone: str
    department: str
    erosion_sum: float      # suma_erosion (negative = material lost)
    erosion_mean: float
    erosion_std: float
    sediment_sum: float     # suma_sed
    sediment_mean: float
    sediment_std: float


@dataclass(frozen=True)
class GeographicDerived:
    erosion_magnitude: float
    sediment_magnitude: float
    # positive = deposition dominates
    net_balance: float
    process_dominance: ProcessDominance
    variability_index: float
    hazard_score: float
    risk_category: RiskCategory


@dataclass(frozen=True)
class GeographicZoneAggregate:
    zone: str
    department: str
    sites: int
    total_erosion_sum: float
    total_sediment_sum: float
    net_balance_total: float
    avg_erosion_mean: float
    avg_sediment_mean: float
    avg_variability: float
    avg_hazard_score: float
    risk_category: RiskCategory


# -----------------------------
# Socioeconomic
# -----------------------------

@dataclass(frozen=True)
class SocioeconomicRecord:
    """One household survey answer sheet.

    Several survey questions are numeric codes (P13 wall material, P15
    service dummies). They are kept for completeness but are not shown by
    default.
    """
    id: str
    lat: float
    lng: float
    zone: str
    department: str
    gender_code: int                # P2
    age_code: int                   # P3
    household_size: int             # P4
    elders_65: int                  # P5
    children_under_10: int          # P6
    health_insurance_count: int     # P8
    chronic_condition_count: int    # P9
    higher_education_count: int     # P10
    illiterate_count: int           # P11
    wall_material_code: int         # P13
    services_dummy_1: int           # P15
    services_dummy_2: int           # P15
    monthly_income: float
    formal_jobs: int                # P19
    informal_jobs: int              # P19
    estimated_loss_housing: float   # P38 (S/.)


@dataclass(frozen=True)
class DerivedIndicators:
    dependents: int
    employment_total: int
    has_any_insurance: bool
    income_per_capita: float
    vulnerability_score: float
    risk_category: RiskCategory


@dataclass(frozen=True)
class SocioeconomicZoneAggregate:
    zone: str
    department: str
    households: int
    avg_household_size: float
    avg_income: float
    avg_income_per_capita: float
    share_with_insurance: float
    avg_vulnerability: float
    risk_category: RiskCategory


# -----------------------------
# Enriched rows
# -----------------------------

class _Enriched:
    """Shared accessors for (record, derived) pairs."""
    record: Any
    derived: Any

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def lat(self) -> float:
        return self.record.lat

    @property
    def lng(self) -> float:
        return self.record.lng

    @property
    def zone(self) -> str:
        return self.record.zone

    @property
    def department(self) -> str:
        return self.record.department

    @property
    def risk_category(self) -> str:
        return self.derived.risk_category

    def value(self, key: str) -> Any:
        """Read a raw or derived field by name (derived wins on clashes)."""
        if hasattr(self.derived, key):
            return getattr(self.derived, key)
        if hasattr(self.record, key):
            return getattr(self.record, key)
        raise KeyError(f"Unknown field: {key}")


@dataclass(frozen=True)
class GeographicSite(_Enriched):
    record: GeographicRecord
    derived: GeographicDerived


@dataclass(frozen=True)
class Household(_Enriched):
    record: SocioeconomicRecord
    derived: DerivedIndicators


# -----------------------------
# Join output
# -----------------------------

@dataclass(frozen=True)
class LossThresholds:
    t_low: float
    t_mid: float


@dataclass(frozen=True)
class UnifiedPoint:
    """One physical site after joining both datasets.

    `id` prefers the socioeconomic id; geo-only points carry the geographic id.
    """
    id: str
    lat: float
    lng: float
    zone: str
    department: str
    socio: Optional[Household]
    geo: Optional[GeographicSite]
    loss_housing: float
    loss_risk_category: RiskCategory


@dataclass(frozen=True)
class ImpactDetails:
    title: str
    zone: str
    department: str
    loss_housing: float
    loss_risk_category: RiskCategory


@dataclass(frozen=True)
class MapImpactPoint:
    id: str
    lat: float
    lng: float
    type: str
    severity: RiskCategory
    details: ImpactDetails


# -----------------------------
# Table metadata
# -----------------------------

@dataclass(frozen=True)
class ColumnConfig:
    """How to show one field in a table view."""
    key: str
    header: str
    align: str = "left"
    format: Optional[Callable[[Any, Any], str]] = None
