"""
landrisk command line interface
===============================

Interactive terminal program:

    python -m landrisk.cli [--dataset socio|geo] [--verbose]

It loads the built-in survey tables once, builds the join, and then maps REPL
commands onto `RiskEngine` methods (search, filters, sorting, zone views,
map points, GeoJSON export, DOCX report).

Environment overrides (`LANDRISK_*`, see `landrisk.config`) are read at startup.
"""

from __future__ import annotations
from typing import Optional, Sequence
import argparse
import logging
import shlex

import pandas as pd

from .config import load_settings
from .engine import DATASETS, RiskEngine
from .scoring import format_fixed, soles

HELP = """
Commands:
  help
  stats
  use socio|geo                    (switch active dataset)
  reset
  undo
  redo

  search "<text>"                  (id, zone or department contains text)
  filter risk bajo|medio|alto
  filter zone "<Zone name>"

  sort <field> [asc|desc]
  topk <k> <field>
  show [n]
  zones

  points [n]                       (unified map points for the selection)
  point <id>
  thresholds

  geojson "<out.json>" [points]
  report "<out.docx>" [risk-map|social-impact|economic-impact|material-impact|comprehensive]
  quit

Fields (socio): vulnerability, income, income_pc, household, dependents, loss
Fields (geo):   hazard, variability, erosion, sediment, balance
"""

# commands that only look at state are not logged for the report
_READ_ONLY = ("help", "show", "stats", "zones", "points", "point", "thresholds", "quit", "exit")


def _strip_quotes(s: str) -> str:
    if len(s) >= 2 and s[0] in ('"', "'") and s[-1] == s[0]:
        return s[1:-1]
    return s


def _print_frame(df: pd.DataFrame) -> None:
    if df.empty:
        print("(no rows)")
        return
    with pd.option_context("display.max_columns", None, "display.width", 200):
        print(df.to_string(index=False))


def _print_points(points) -> None:
    for p in points:
        kind = "socio+geo" if p.socio and p.geo else ("socio" if p.socio else "geo")
        print(f"[{p.id}] {p.zone} | {kind} | loss={soles(p.loss_housing)} | risk={p.loss_risk_category}")


def handle(engine: RiskEngine, line: str) -> None:
    """Handle one CLI command line."""
    parts = shlex.split(line)
    if not parts:
        return
    cmd = parts[0].lower()

    if cmd == "help":
        print(HELP)
        return

    if cmd == "stats":
        print(f"Dataset: {engine.dataset} | Current selection: {len(engine.state.active_ids)}")
        print(
            f"Households: {len(engine.households)} | Sites: {len(engine.sites)} | "
            f"Unified points: {len(engine.points)}"
        )
        return

    if cmd == "use":
        if len(parts) < 2:
            raise ValueError(f"Usage: use {'|'.join(DATASETS)}")
        engine.use(parts[1].lower())
        print(f"Using {engine.dataset}. Size={len(engine.state.active_ids)}")
        return

    if cmd == "reset":
        engine.reset()
        print("State reset.")
        return

    if cmd == "undo":
        print("Undone." if engine.undo() else "Nothing to undo.")
        return

    if cmd == "redo":
        print("Redone." if engine.redo() else "Nothing to redo.")
        return

    if cmd == "search":
        q = " ".join(parts[1:])
        engine.search(q)
        print(f"Search '{q}'. Size={len(engine.state.active_ids)}")
        return

    if cmd == "filter":
        if len(parts) < 3:
            raise ValueError("Usage: filter risk <category> | filter zone \"<zone>\"")
        kind = parts[1].lower()
        value = " ".join(parts[2:])
        if kind == "risk":
            engine.filter_risk(value)
        elif kind == "zone":
            engine.filter_zone(value)
        else:
            raise ValueError("filter kind must be: risk, zone")
        print(f"Filtered {kind}={value}. Size={len(engine.state.active_ids)}")
        return

    if cmd == "sort":
        if len(parts) < 2:
            raise ValueError("Usage: sort <field> [asc|desc]")
        order = parts[2].lower() if len(parts) >= 3 and parts[2].lower() in ("asc", "desc") else "desc"
        rows = engine.sort(parts[1], reverse=(order == "desc"))
        print(f"Sorted {len(rows)} rows by {parts[1]} ({order}).")
        _print_frame(engine.table().head(10))
        return

    if cmd == "topk":
        if len(parts) < 3:
            raise ValueError("Usage: topk <k> <field>")
        k = int(parts[1])
        rows = engine.topk(k, parts[2])
        print(f"Top {len(rows)} by {parts[2]}:")
        for r in rows:
            print(f"[{r.id}] {r.zone} | {parts[2]}={format_fixed(r.value(engine.resolve_field(parts[2])), 2)} | {r.risk_category}")
        return

    if cmd == "show":
        n = int(parts[1]) if len(parts) >= 2 else 10
        _print_frame(engine.table().head(n))
        return

    if cmd == "zones":
        _print_frame(engine.table(zones=True))
        return

    if cmd == "points":
        n = int(parts[1]) if len(parts) >= 2 else None
        pts = engine.selected_points()
        _print_points(pts[:n])
        return

    if cmd == "point":
        if len(parts) < 2:
            raise ValueError("Usage: point <id>")
        p = engine.point(parts[1])
        if p is None:
            print(f"No point with id {parts[1]}.")
            return
        _print_points([p])
        if p.geo:
            d = p.geo.derived
            print(f"  geo {p.geo.id}: hazard={format_fixed(d.hazard_score, 1)} ({d.risk_category}), {d.process_dominance}")
        if p.socio:
            d = p.socio.derived
            print(f"  socio {p.socio.id}: vulnerability={format_fixed(d.vulnerability_score, 1)} ({d.risk_category})")
        return

    if cmd == "thresholds":
        t = engine.thresholds
        print(f"bajo <= {t.t_low:.2f} < medio <= {t.t_mid:.2f} < alto")
        return

    if cmd == "geojson":
        if len(parts) < 2:
            raise ValueError('Usage: geojson "<out.json>" [points]')
        path = _strip_quotes(parts[1])
        as_points = len(parts) >= 3 and parts[2].lower() == "points"
        n = engine.export_geojson(path, points=as_points)
        print(f"Exported {n} features to {path}")
        return

    if cmd == "report":
        from .report import generate_engine_report
        if len(parts) < 2:
            raise ValueError('Usage: report "<out.docx>" [kind]')
        path = _strip_quotes(parts[1])
        kind = parts[2].lower() if len(parts) >= 3 else "comprehensive"
        generate_engine_report(engine, path, kind=kind)
        print(f"Report written to {path}")
        return

    print("Unknown command. Type 'help'.")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="landrisk", description="Offline landslide/erosion risk engine")
    ap.add_argument("--dataset", choices=DATASETS, default="socio", help="Initial active dataset")
    ap.add_argument("--verbose", action="store_true", help="Debug logging")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the landrisk CLI.

    1) Read settings (environment overrides)
    2) Build the engine (enrichment + join)
    3) Start an interactive REPL
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    engine = RiskEngine.default(settings=load_settings(), dataset=args.dataset)
    print(
        f"Loaded {len(engine.households)} households and {len(engine.sites)} sites "
        f"({len(engine.points)} unified points). Type 'help' for commands."
    )
    while True:
        try:
            line = input("landrisk> ")
        except EOFError:
            break
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.lower() in ("quit", "exit"):
            break
        if stripped.split()[0].lower() not in _READ_ONLY:
            engine.command_log.append(stripped)
        try:
            handle(engine, stripped)
        except (ValueError, KeyError, OSError, ImportError) as e:
            print(f"Error: {e}")


if __name__ == "__main__":
    main()
