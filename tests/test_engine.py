import json

import pytest

from landrisk.engine import RiskEngine
from landrisk.config import Breakpoints, HazardWeights, Settings, VulnerabilityWeights
from landrisk.scoring import score_to_category
from landrisk.socioeconomic import SOCIOECONOMIC_COLUMNS, SOCIOECONOMIC_ZONE_COLUMNS


@pytest.fixture
def engine():
    return RiskEngine.default()


def test_default_engine_selects_every_household(engine):
    assert engine.dataset == 'socio'
    assert len(engine.state.active_ids) == 16
    assert len(engine.points) == 18
    assert engine.thresholds.t_mid == pytest.approx(290)


def test_unknown_dataset_is_rejected(engine):
    with pytest.raises(ValueError):
        RiskEngine.default(dataset='weather')
    with pytest.raises(ValueError):
        engine.use('weather')


def test_search_matches_zone_case_insensitively(engine):
    engine.search('grau')
    assert engine.state.active_ids == ['SOC-009', 'SOC-011', 'SOC-012', 'SOC-013', 'SOC-014']


def test_blank_search_keeps_selection_and_history(engine):
    engine.search('   ')
    assert len(engine.state.active_ids) == 16
    assert engine.undo() is False


def test_undo_and_redo(engine):
    engine.search('grau')
    assert engine.undo() is True
    assert len(engine.state.active_ids) == 16
    assert engine.redo() is True
    assert len(engine.state.active_ids) == 5
    assert engine.redo() is False


def test_new_action_clears_redo(engine):
    engine.search('grau')
    engine.undo()
    engine.filter_risk('bajo')
    assert engine.redo() is False


def test_filter_risk(engine):
    engine.filter_risk('MEDIO')
    rows = engine.current_rows()
    assert rows
    assert all(r.risk_category == 'medio' for r in rows)

    with pytest.raises(ValueError):
        engine.filter_risk('severo')


def test_filter_zone(engine):
    engine.filter_zone('Asociación Los Olivos')
    assert engine.state.active_ids == ['SOC-001', 'SOC-002', 'SOC-015', 'SOC-016']


def test_filter_zone_normalized():
    engine = RiskEngine.default(settings=Settings(normalize_zone_names=True))
    engine.filter_zone('  asociación LOS olivos ')
    assert len(engine.state.active_ids) == 4


def test_use_switches_dataset_and_clears_history(engine):
    engine.search('grau')
    engine.use('geo')
    assert len(engine.state.active_ids) == 18
    assert engine.undo() is False


def test_sort_and_topk(engine):
    engine.use('geo')
    rows = engine.sort('hazard')
    scores = [r.derived.hazard_score for r in rows]
    assert scores == sorted(scores, reverse=True)
    assert engine.state.active_ids == [r.id for r in rows]
    assert engine.state.last_sort == ('hazard_score', True)

    top = engine.topk(3, 'hazard')
    assert [r.id for r in top] == [r.id for r in rows[:3]]


def test_sort_ascending(engine):
    rows = engine.sort('income', reverse=False)
    incomes = [r.record.monthly_income for r in rows]
    assert incomes == sorted(incomes)


def test_sort_unknown_field(engine):
    with pytest.raises(ValueError):
        engine.sort('hazard')


def test_zones_follow_selection(engine):
    engine.use('geo')
    engine.filter_zone('Asociación Los Olivos')
    zones = engine.zones()
    assert len(zones) == 1
    assert zones[0].sites == 6


def test_tables(engine):
    df = engine.table()
    assert list(df.columns) == [c.header for c in SOCIOECONOMIC_COLUMNS]
    assert len(df) == 16
    assert df.iloc[0]['Ingreso Mensual (S/.)'] == 'S/. 1,500'

    zones = engine.table(zones=True)
    assert list(zones.columns) == [c.header for c in SOCIOECONOMIC_ZONE_COLUMNS]
    assert len(zones) == 5

    raw = engine.table(formatted=False)
    assert raw.iloc[0]['Ingreso Mensual (S/.)'] == 1500


def test_selected_points_follow_selection(engine):
    engine.search('grau')
    points = engine.selected_points()
    assert [p.id for p in points] == engine.state.active_ids
    assert len(engine.impact_points()) == 5


def test_selected_points_for_geo_include_geo_only(engine):
    engine.use('geo')
    points = engine.selected_points()
    assert len(points) == 18
    assert {p.geo.id for p in points} == set(engine.state.active_ids)


def test_point_lookup(engine):
    assert engine.point('GEOG-017').socio is None
    assert engine.point('nope') is None


def test_export_geojson(engine, tmp_path):
    engine.search('olivos')
    out = tmp_path / 'olivos.geojson'
    n = engine.export_geojson(str(out))
    assert n == 4
    payload = json.loads(out.read_text(encoding='utf-8'))
    assert payload['type'] == 'FeatureCollection'
    assert [f['properties']['id'] for f in payload['features']] == engine.state.active_ids


def test_export_points_geojson(engine, tmp_path):
    engine.use('geo')
    out = tmp_path / 'points.geojson'
    assert engine.export_geojson(str(out), points=True) == 18


def test_engine_categories_follow_custom_breakpoints():
    bp = Breakpoints(medium=10, high=20)
    engine = RiskEngine.default(settings=Settings(breakpoints=bp), dataset='geo')

    for site in engine.sites:
        assert site.risk_category == score_to_category(site.derived.hazard_score, bp)
    for zone in engine.zones():
        assert zone.risk_category == score_to_category(zone.avg_hazard_score, bp)
    for p in engine.points:
        if p.socio is None:
            assert p.loss_risk_category == p.geo.risk_category

    engine.filter_risk('alto')
    assert engine.state.active_ids == [s.id for s in engine.sites if s.derived.hazard_score >= 20]


def test_engine_filters_on_rescored_rows():
    settings = Settings(
        hazard_weights=HazardWeights(0, 0, 0, 0),
        vulnerability_weights=VulnerabilityWeights(0, 0, 0, 0, 0, 0, 0),
    )
    engine = RiskEngine.default(settings=settings, dataset='geo')
    engine.filter_risk('bajo')
    assert len(engine.state.active_ids) == 18
    assert all(z.risk_category == 'bajo' for z in engine.zones())

    engine.use('socio')
    engine.filter_risk('bajo')
    assert len(engine.state.active_ids) == 16
