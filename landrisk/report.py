from __future__ import annotations

"""
landrisk report generator
------------------------
Writes a DOCX risk report for the current selection of an engine.

Design goals:
- Keep landrisk usable without report dependencies (lazy imports).
- Report kinds select sections, mirroring the dashboard's report types:
  risk-map (hazard), social-impact (vulnerability), economic-impact
  (income and housing loss), material-impact (wall material and housing loss
  by zone) and comprehensive (everything).
- Charts are built from the same rows as the tables, so they always agree.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
from collections import Counter
from datetime import datetime
import os
import tempfile

from .config import DEFAULT_SETTINGS, Settings
from .indices import group_by_zone
from .models import RISK_CATEGORIES, GeographicSite, Household, LossThresholds, UnifiedPoint
from . import geographic, socioeconomic
from .scoring import format_fixed, soles
from .tables import cell_value


REPORT_KINDS: Dict[str, Tuple[str, ...]] = {
    "risk-map": ("hazard", "points"),
    "social-impact": ("vulnerability", "points"),
    "economic-impact": ("economic", "points"),
    "material-impact": ("material", "points"),
    "comprehensive": ("hazard", "vulnerability", "economic", "material", "points"),
}


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Reporte de Riesgo por Erosión y Deslizamiento"
    subtitle: str = "landrisk (offline)"
    location_label: str = "Todas las ubicaciones"
    kind: str = "comprehensive"
    # rows shown in "top" tables
    top_n: int = 5
    command_log: Optional[List[str]] = None


def _category_counts(categories: Sequence[str]) -> List[int]:
    c = Counter(categories)
    return [c.get(cat, 0) for cat in RISK_CATEGORIES]


def generate_docx_report(
    households: Sequence[Household],
    sites: Sequence[GeographicSite],
    points: Sequence[UnifiedPoint],
    thresholds: LossThresholds,
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
    scope_label: str = "Selección actual",
    settings: Optional[Settings] = None,
) -> str:
    """Generate a DOCX report + charts. Returns `out_path`."""
    config = config or ReportConfig()
    settings = settings or DEFAULT_SETTINGS
    if config.kind not in REPORT_KINDS:
        raise ValueError(f"report kind must be one of: {', '.join(REPORT_KINDS)}")
    sections = REPORT_KINDS[config.kind]

    if not households and not sites:
        raise ValueError("No records to report on (selection is empty).")

    # Lazy imports: only required when a report is requested.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        import numpy as np
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib (and numpy).\n"
            "Install with: python -m pip install matplotlib numpy"
        ) from e

    # -----------------------------
    # 1) Charts
    # -----------------------------
    tmpdir = tempfile.mkdtemp(prefix="landrisk_report_")
    charts: List[Tuple[str, str]] = []

    def _save(filename: str) -> str:
        path = os.path.join(tmpdir, filename)
        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close()
        return path

    def _category_bar(title: str, categories: Sequence[str], filename: str) -> None:
        plt.figure()
        plt.bar(list(RISK_CATEGORIES), _category_counts(categories), color=["#22c55e", "#eab308", "#ef4444"])
        plt.title(title)
        plt.ylabel("Cantidad")
        charts.append((title, _save(filename)))

    def _histogram(title: str, values: Sequence[float], xlabel: str, filename: str) -> None:
        if not values:
            return
        plt.figure()
        plt.hist(np.asarray(values, dtype=float), bins=np.linspace(0, 100, 11), edgecolor="black", linewidth=0.8)
        plt.title(title)
        plt.xlabel(xlabel)
        plt.ylabel("Cantidad")
        charts.append((title, _save(filename)))

    if "points" in sections and points:
        _category_bar(
            f"Riesgo por pérdida de vivienda ({scope_label})",
            [p.loss_risk_category for p in points],
            "loss_risk.png",
        )
    if "hazard" in sections and sites:
        _histogram(
            f"Índice de Peligro ({scope_label})",
            [s.derived.hazard_score for s in sites],
            "Índice de Peligro (0-100)",
            "hazard_hist.png",
        )
    if "vulnerability" in sections and households:
        _histogram(
            f"Índice de Vulnerabilidad ({scope_label})",
            [h.derived.vulnerability_score for h in households],
            "Índice de Vulnerabilidad (0-100)",
            "vulnerability_hist.png",
        )
    loss_by_zone = group_by_zone(households, normalize=settings.normalize_zone_names)
    if "material" in sections and households:
        title = f"Pérdida estimada de vivienda por zona ({scope_label})"
        plt.figure()
        plt.barh(
            [members[0].zone for members in loss_by_zone.values()],
            [sum(h.record.estimated_loss_housing for h in members) for members in loss_by_zone.values()],
        )
        plt.title(title)
        plt.xlabel("Pérdida (S/.)")
        charts.append((title, _save("material_loss_by_zone.png")))
    joined = [p for p in points if p.socio is not None and p.geo is not None]
    if "points" in sections and len(joined) >= 2:
        plt.figure()
        plt.scatter(
            [p.geo.derived.hazard_score for p in joined],
            [p.socio.derived.vulnerability_score for p in joined],
        )
        plt.title("Peligro vs Vulnerabilidad (puntos unidos)")
        plt.xlabel("Índice de Peligro")
        plt.ylabel("Índice de Vulnerabilidad")
        charts.append(("Peligro vs Vulnerabilidad (puntos unidos)", _save("hazard_vs_vulnerability.png")))

    # -----------------------------
    # 2) Document
    # -----------------------------
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    def _table(rows: Sequence[object], columns: Sequence[object]) -> None:
        t = doc.add_table(rows=1, cols=len(columns))
        for cell, c in zip(t.rows[0].cells, columns):
            cell.text = c.header
        for row in rows:
            cells = t.add_row().cells
            for cell, c in zip(cells, columns):
                v = cell_value(row, c.key)
                cell.text = c.format(v, row) if c.format else str(v)

    _center_title(config.title, 20, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Tipo de reporte", config.kind)
    _kv("Ubicación", config.location_label)
    _kv("Alcance", scope_label)
    _kv("Hogares en alcance", str(len(households)))
    _kv("Sitios geográficos en alcance", str(len(sites)))
    _kv("Puntos unificados", str(len(points)))

    doc.add_heading("Resumen ejecutivo", level=1)
    t = doc.add_table(rows=1, cols=4)
    for cell, text in zip(t.rows[0].cells, ("Indicador", "bajo", "medio", "alto")):
        cell.text = text
    summary_rows = []
    if sites:
        summary_rows.append(("Peligro (sitios)", _category_counts([s.risk_category for s in sites])))
    if households:
        summary_rows.append(("Vulnerabilidad (hogares)", _category_counts([h.risk_category for h in households])))
    if points:
        summary_rows.append(("Pérdida de vivienda (puntos)", _category_counts([p.loss_risk_category for p in points])))
    for label, counts in summary_rows:
        cells = t.add_row().cells
        cells[0].text = label
        for cell, n in zip(cells[1:], counts):
            cell.text = str(n)

    if "points" in sections:
        doc.add_heading("Umbrales de pérdida de vivienda", level=1)
        doc.add_paragraph(
            f"bajo ≤ {soles(thresholds.t_low)} < medio ≤ {soles(thresholds.t_mid)} < alto. "
            "Los umbrales son los percentiles 33 y 66 de la pérdida estimada (P38). "
            "Los puntos sin encuesta usan el Índice de Peligro."
        )

    if "hazard" in sections and sites:
        doc.add_heading("Peligro geográfico por zona", level=1)
        _table(geographic.aggregate_by_zone([s.record for s in sites], settings), geographic.GEOGRAPHIC_ZONE_COLUMNS)
        doc.add_paragraph("")
        doc.add_paragraph(f"Top {config.top_n} sitios por Índice de Peligro")
        top_sites = sorted(sites, key=lambda s: s.derived.hazard_score, reverse=True)[:config.top_n]
        _table(top_sites, geographic.GEOGRAPHIC_COLUMNS)

    if "vulnerability" in sections and households:
        doc.add_heading("Vulnerabilidad socioeconómica por zona", level=1)
        _table(
            socioeconomic.aggregate_by_zone([h.record for h in households], settings),
            socioeconomic.SOCIOECONOMIC_ZONE_COLUMNS,
        )
        doc.add_paragraph("")
        doc.add_paragraph(f"Top {config.top_n} hogares por Índice de Vulnerabilidad")
        top_households = sorted(households, key=lambda h: h.derived.vulnerability_score, reverse=True)
        _table(top_households[:config.top_n], socioeconomic.SOCIOECONOMIC_COLUMNS)

    if "economic" in sections and households:
        doc.add_heading("Impacto económico", level=1)
        total_loss = sum(h.record.estimated_loss_housing for h in households)
        avg_income = sum(h.record.monthly_income for h in households) / len(households)
        _kv("Pérdida estimada total (vivienda)", soles(total_loss))
        _kv("Ingreso mensual promedio", soles(avg_income))
        _kv(
            "Hogares con seguro de salud",
            f"{sum(1 for h in households if h.derived.has_any_insurance)} de {len(households)}",
        )
        t = doc.add_table(rows=1, cols=4)
        for cell, text in zip(t.rows[0].cells, ("ID", "Zona", "Pérdida (S/.)", "Ingreso p/cápita")):
            cell.text = text
        for h in sorted(households, key=lambda h: h.record.estimated_loss_housing, reverse=True)[:config.top_n]:
            cells = t.add_row().cells
            cells[0].text = h.id
            cells[1].text = h.zone
            cells[2].text = soles(h.record.estimated_loss_housing)
            cells[3].text = soles(h.derived.income_per_capita)

    if "material" in sections and households:
        doc.add_heading("Impacto material", level=1)
        doc.add_paragraph("Material de pared (código P13) de los hogares en alcance")
        walls = Counter(h.record.wall_material_code for h in households)
        t = doc.add_table(rows=1, cols=3)
        for cell, text in zip(t.rows[0].cells, ("Código de material (P13)", "Hogares", "Pérdida estimada (S/.)")):
            cell.text = text
        for code in sorted(walls):
            cells = t.add_row().cells
            cells[0].text = str(code)
            cells[1].text = str(walls[code])
            cells[2].text = soles(sum(
                h.record.estimated_loss_housing for h in households if h.record.wall_material_code == code
            ))
        doc.add_paragraph("")
        doc.add_paragraph("Pérdida estimada de vivienda por zona")
        t = doc.add_table(rows=1, cols=4)
        for cell, text in zip(t.rows[0].cells, ("Zona", "Hogares", "Pérdida total (S/.)", "Pérdida promedio (S/.)")):
            cell.text = text
        for members in loss_by_zone.values():
            total = sum(h.record.estimated_loss_housing for h in members)
            cells = t.add_row().cells
            cells[0].text = members[0].zone
            cells[1].text = str(len(members))
            cells[2].text = soles(total)
            cells[3].text = soles(total / len(members))

    if "points" in sections and points:
        doc.add_heading("Puntos de impacto", level=1)
        t = doc.add_table(rows=1, cols=5)
        for cell, text in zip(t.rows[0].cells, ("ID", "Zona", "Pérdida (S/.)", "Riesgo", "Peligro")):
            cell.text = text
        for p in points:
            cells = t.add_row().cells
            cells[0].text = p.id
            cells[1].text = p.zone
            cells[2].text = soles(p.loss_housing)
            cells[3].text = p.loss_risk_category
            cells[4].text = format_fixed(p.geo.derived.hazard_score, 0) if p.geo else "-"

    if charts:
        doc.add_heading("Mapas y visualizaciones", level=1)
        for title, path in charts:
            doc.add_paragraph(title)
            doc.add_picture(path, width=Inches(6.0))

    doc.add_heading("Notas", level=1)
    doc.add_paragraph(
        f"Los índices son heurísticos (0-100) con cortes: bajo < {settings.breakpoints.medium:g} "
        f"≤ medio < {settings.breakpoints.high:g} ≤ alto. "
        "Las categorías por zona se recalculan a partir del índice promedio."
    )

    # -----------------------------
    # Reproducibility footer
    # -----------------------------
    from . import __version__

    doc.add_heading("Reproducibilidad", level=1)
    doc.add_paragraph(f"landrisk version: {__version__}")
    doc.add_paragraph(f"Generado: {datetime.now().isoformat(timespec='seconds')}")
    if config.command_log:
        doc.add_paragraph("Comandos usados:")
        for line in config.command_log:
            doc.add_paragraph(line, style="List Bullet")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path


def generate_engine_report(engine, out_path: str, kind: str = "comprehensive", **kwargs) -> str:
    """Report on an engine's current selection.

    The active dataset is narrowed by the selection; the other dataset is
    restricted to the records joined to the selected points.
    """
    pts = engine.selected_points()
    if engine.dataset == "socio":
        households = engine.current_rows()
        sites = [p.geo for p in pts if p.geo is not None]
    else:
        sites = engine.current_rows()
        households = [p.socio for p in pts if p.socio is not None]
    config = ReportConfig(kind=kind, command_log=engine.command_log, **kwargs)
    return generate_docx_report(
        households, sites, pts, engine.thresholds, out_path, config=config, settings=engine.settings,
    )
