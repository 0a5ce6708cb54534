"""
Selection engine
================

A tiny offline "analytics engine" over the two enriched datasets:

1) Enriched rows (households, geographic sites) + unified points, read-only
2) A *current selection* of record IDs over the active dataset
3) Search / filters / sorting update the selection only
4) Zone aggregates, tables, map points and GeoJSON are produced from it

Undo/redo keep snapshots of previous selections.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import heapq
import json
import logging

import pandas as pd

from . import geographic, socioeconomic
from .config import DEFAULT_SETTINGS, Settings
from .models import (
    RISK_CATEGORIES,
    ColumnConfig,
    GeographicSite,
    Household,
    LossThresholds,
    MapImpactPoint,
    UnifiedPoint,
)
from .points import join_points, points_to_geojson, to_map_impact_points
from .indices import zone_key
from .tables import to_frame

logger = logging.getLogger(__name__)

DATASETS = ("socio", "geo")

# sortable fields per dataset: CLI name -> row field
SORT_FIELDS: Dict[str, Dict[str, str]] = {
    "socio": {
        "vulnerability": "vulnerability_score",
        "income": "monthly_income",
        "income_pc": "income_per_capita",
        "household": "household_size",
        "dependents": "dependents",
        "loss": "estimated_loss_housing",
    },
    "geo": {
        "hazard": "hazard_score",
        "variability": "variability_index",
        "erosion": "erosion_magnitude",
        "sediment": "sediment_magnitude",
        "balance": "net_balance",
    },
}


@dataclass
class QueryState:
    """Current working set of record IDs (like a view)."""
    active_ids: List[str]
    last_sort: Optional[Tuple[str, bool]] = None


@dataclass
class RiskEngine:
    """Risk engine over households, geographic sites and their join.

    Filters and sorts update `state.active_ids` only; data never changes.
    """
    households: Sequence[Household]
    sites: Sequence[GeographicSite]
    settings: Settings = DEFAULT_SETTINGS
    dataset: str = "socio"
    command_log: List[str] = field(default_factory=list)
    points: Tuple[UnifiedPoint, ...] = field(init=False)
    thresholds: LossThresholds = field(init=False)
    state: QueryState = field(init=False)

    _undo: List[List[str]] = field(default_factory=list, init=False)
    _redo: List[List[str]] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        if self.dataset not in DATASETS:
            raise ValueError(f"dataset must be one of: {', '.join(DATASETS)}")
        # rows are re-scored so categories follow these settings
        self.households = tuple(socioeconomic.with_derived(h.record, self.settings) for h in self.households)
        self.sites = tuple(geographic.with_derived(s.record, self.settings) for s in self.sites)
        self.points, self.thresholds = join_points(
            self.households, self.sites, self.settings.join, self.settings.breakpoints
        )
        self.state = QueryState(active_ids=self._all_ids())

    @classmethod
    def default(cls, settings: Optional[Settings] = None, dataset: str = "socio") -> "RiskEngine":
        """Engine over the built-in survey tables."""
        return cls(
            households=socioeconomic.SOCIOECONOMIC,
            sites=geographic.GEOGRAPHIC,
            settings=settings or DEFAULT_SETTINGS,
            dataset=dataset,
        )

    # ---------------- Rows ----------------
    def _rows(self) -> Sequence[Any]:
        return self.households if self.dataset == "socio" else self.sites

    def _all_ids(self) -> List[str]:
        return [r.id for r in self._rows()]

    def _by_id(self) -> Dict[str, Any]:
        return {r.id: r for r in self._rows()}

    def current_rows(self) -> List[Any]:
        by_id = self._by_id()
        return [by_id[i] for i in self.state.active_ids]

    # ---------------- History (stacks) ----------------
    def _push_history(self) -> None:
        self._undo.append(self.state.active_ids[:])
        self._redo.clear()

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self.state.active_ids[:])
        self.state.active_ids = self._undo.pop()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self.state.active_ids[:])
        self.state.active_ids = self._redo.pop()
        return True

    # ---------------- Selection ----------------
    def use(self, dataset: str) -> None:
        """Switch the active dataset. Clears history (IDs are dataset specific)."""
        if dataset not in DATASETS:
            raise ValueError(f"dataset must be one of: {', '.join(DATASETS)}")
        self.dataset = dataset
        self.state = QueryState(active_ids=self._all_ids())
        self._undo.clear()
        self._redo.clear()

    def reset(self) -> None:
        self._push_history()
        self.state = QueryState(active_ids=self._all_ids())

    def _keep(self, pred: Callable[[Any], bool]) -> None:
        self._push_history()
        self.state.active_ids = [r.id for r in self.current_rows() if pred(r)]

    def search(self, query: str) -> None:
        """Case-insensitive substring match on id, zone or department."""
        q = query.strip().lower()
        if not q:
            return
        self._keep(lambda r: q in r.id.lower() or q in r.zone.lower() or q in r.department.lower())

    def filter_risk(self, category: str) -> None:
        cat = category.strip().lower()
        if cat not in RISK_CATEGORIES:
            raise ValueError(f"risk category must be one of: {', '.join(RISK_CATEGORIES)}")
        self._keep(lambda r: r.risk_category == cat)

    def filter_zone(self, zone: str) -> None:
        norm = self.settings.normalize_zone_names
        key = zone_key(zone, norm)
        self._keep(lambda r: zone_key(r.zone, norm) == key)

    # ---------------- Ordering ----------------
    def resolve_field(self, name: str) -> str:
        fields = SORT_FIELDS[self.dataset]
        f = name.lower().strip()
        if f in fields:
            return fields[f]
        if f in fields.values():
            return f
        raise ValueError(f"field must be one of: {', '.join(fields)}")

    def sort(self, field_name: str, reverse: bool = True) -> List[Any]:
        """Reorder the selection by a numeric field (stable)."""
        key = self.resolve_field(field_name)
        rows = sorted(self.current_rows(), key=lambda r: r.value(key), reverse=reverse)
        self._push_history()
        self.state.active_ids = [r.id for r in rows]
        self.state.last_sort = (key, reverse)
        return rows

    def topk(self, k: int, field_name: str) -> List[Any]:
        """Top-k rows of the selection by a field, highest first."""
        key = self.resolve_field(field_name)
        return heapq.nlargest(k, self.current_rows(), key=lambda r: r.value(key))

    # ---------------- Outputs ----------------
    def zones(self) -> List[Any]:
        """Zone aggregates for the current selection."""
        records = [r.record for r in self.current_rows()]
        if self.dataset == "socio":
            return socioeconomic.aggregate_by_zone(records, self.settings)
        return geographic.aggregate_by_zone(records, self.settings)

    def columns(self, zones: bool = False) -> Sequence[ColumnConfig]:
        if self.dataset == "socio":
            return socioeconomic.SOCIOECONOMIC_ZONE_COLUMNS if zones else socioeconomic.SOCIOECONOMIC_COLUMNS
        return geographic.GEOGRAPHIC_ZONE_COLUMNS if zones else geographic.GEOGRAPHIC_COLUMNS

    def table(self, zones: bool = False, formatted: bool = True) -> pd.DataFrame:
        rows = self.zones() if zones else self.current_rows()
        return to_frame(rows, self.columns(zones), formatted=formatted)

    def selected_points(self) -> List[UnifiedPoint]:
        """Unified points whose household/site is in the current selection."""
        active = set(self.state.active_ids)
        if self.dataset == "socio":
            return [p for p in self.points if p.socio is not None and p.socio.id in active]
        return [p for p in self.points if p.geo is not None and p.geo.id in active]

    def impact_points(self) -> List[MapImpactPoint]:
        return to_map_impact_points(self.selected_points())

    def point(self, point_id: str) -> Optional[UnifiedPoint]:
        return next((p for p in self.points if p.id == point_id), None)

    def geojson(self) -> Dict[str, Any]:
        records = [r.record for r in self.current_rows()]
        if self.dataset == "socio":
            return socioeconomic.to_geojson(records, self.settings)
        return geographic.to_geojson(records, self.settings)

    def export_geojson(self, path: str, points: bool = False) -> int:
        """Write the selection (or its unified points) as GeoJSON. Returns feature count."""
        payload = points_to_geojson(self.selected_points()) if points else self.geojson()
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        logger.info("Wrote %d features to %s", len(payload["features"]), path)
        return len(payload["features"])
