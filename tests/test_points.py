from dataclasses import replace

import pytest

from landrisk.config import JoinConfig
from landrisk.geographic import GEOGRAPHIC
from landrisk.models import LossThresholds
from landrisk.points import (
    compute_loss_thresholds,
    get_loss_thresholds,
    get_unified_point_by_id,
    get_unified_points,
    haversine_m,
    join_points,
    points_to_geojson,
    risk_category_from_loss,
    to_map_impact_points,
)
from landrisk.scoring import score_to_category
from landrisk.socioeconomic import SOCIOECONOMIC, SOCIOECONOMIC_RAW, with_derived

NAN = float('nan')


def _household_at(lat, lng, household_id='SOC-900'):
    return with_derived(replace(SOCIOECONOMIC_RAW[0], id=household_id, lat=lat, lng=lng))


def test_haversine_zero_for_same_point():
    assert haversine_m(-16.394224, -71.469349, -16.394224, -71.469349) == pytest.approx(0.0)


def test_haversine_thousandth_of_degree_latitude():
    assert haversine_m(-16.394, -71.469, -16.395, -71.469) == pytest.approx(111.19, abs=1.0)


def test_loss_thresholds_interpolate_linearly():
    losses = [200, 200, 200, 200, 300, 300, 600, 600, 600, 600, 600, 0, 0, 0, 0, 0]
    t = compute_loss_thresholds(losses)
    assert t.t_low == pytest.approx(190)
    assert t.t_mid == pytest.approx(300)
    assert risk_category_from_loss(0, t) == 'bajo'
    assert risk_category_from_loss(250, t) == 'medio'
    assert risk_category_from_loss(600, t) == 'alto'


def test_loss_thresholds_fall_back_with_few_finite_values():
    assert compute_loss_thresholds([100, 200, 300]) == LossThresholds(200, 500)
    assert compute_loss_thresholds([1, NAN, 2, float('inf'), 3, None, 'x']) == LossThresholds(200, 500)
    assert compute_loss_thresholds([]) == LossThresholds(200, 500)


def test_loss_thresholds_follow_config():
    config = JoinConfig(min_samples=2, low_quantile=0.5, high_quantile=1.0)
    t = compute_loss_thresholds([0, 100], config)
    assert t.t_low == pytest.approx(50)
    assert t.t_mid == pytest.approx(100)


def test_loss_category_boundaries_are_inclusive():
    t = LossThresholds(t_low=200, t_mid=290)
    assert risk_category_from_loss(200, t) == 'bajo'
    assert risk_category_from_loss(200.01, t) == 'medio'
    assert risk_category_from_loss(290, t) == 'medio'
    assert risk_category_from_loss(290.01, t) == 'alto'
    assert risk_category_from_loss(NAN, t) == 'bajo'


def test_builtin_thresholds():
    t = get_loss_thresholds()
    assert t.t_low == pytest.approx(200)
    assert t.t_mid == pytest.approx(290)


def test_join_covers_every_household_and_site_once():
    points = get_unified_points()
    assert len(points) == 18

    socio_ids = [p.socio.id for p in points if p.socio]
    geo_ids = [p.geo.id for p in points if p.geo]
    assert sorted(socio_ids) == sorted(h.id for h in SOCIOECONOMIC)
    assert sorted(geo_ids) == sorted(s.id for s in GEOGRAPHIC)
    assert len(set(geo_ids)) == len(geo_ids)


def test_join_matches_shared_coordinates():
    for i in range(1, 17):
        p = get_unified_point_by_id(f'SOC-{i:03d}')
        assert p is not None
        assert p.geo is not None
        assert p.geo.id == f'GEOG-{i:03d}'


def test_geo_only_points_infer_risk_from_hazard():
    geo_only = [p for p in get_unified_points() if p.socio is None]
    assert [p.id for p in geo_only] == ['GEOG-017', 'GEOG-018']
    for p in geo_only:
        assert p.loss_housing == 0
        assert p.loss_risk_category == score_to_category(p.geo.derived.hazard_score)


def test_household_loss_categories():
    assert get_unified_point_by_id('SOC-001').loss_risk_category == 'bajo'
    assert get_unified_point_by_id('SOC-008').loss_risk_category == 'bajo'
    assert get_unified_point_by_id('SOC-009').loss_risk_category == 'alto'
    assert get_unified_point_by_id('SOC-011').loss_risk_category == 'alto'
    assert get_unified_point_by_id('SOC-011').loss_housing == 600


def test_unknown_point_id():
    assert get_unified_point_by_id('SOC-999') is None


def test_join_is_deterministic():
    assert join_points(SOCIOECONOMIC, GEOGRAPHIC) == join_points(SOCIOECONOMIC, GEOGRAPHIC)


def test_nearest_site_within_radius_is_matched():
    site = GEOGRAPHIC[0]
    # ~55 m north of the site
    h = _household_at(site.lat + 0.0005, site.lng)
    points, _ = join_points([h], [site])
    assert len(points) == 1
    assert points[0].geo is site


def test_site_beyond_radius_stays_geo_only():
    site = GEOGRAPHIC[0]
    # ~222 m away
    h = _household_at(site.lat + 0.002, site.lng)
    points, _ = join_points([h], [site])
    assert len(points) == 2
    assert points[0].socio is h
    assert points[0].geo is None
    assert points[1].socio is None
    assert points[1].geo is site


def test_match_radius_is_configurable():
    site = GEOGRAPHIC[0]
    h = _household_at(site.lat + 0.0005, site.lng)
    points, _ = join_points([h], [site], JoinConfig(match_radius_m=10))
    assert points[0].geo is None


def test_site_is_attached_to_one_household_only():
    site = GEOGRAPHIC[0]
    first = _household_at(site.lat, site.lng, 'SOC-901')
    second = _household_at(site.lat, site.lng, 'SOC-902')
    points, _ = join_points([first, second], [site])
    assert len(points) == 2
    assert points[0].geo is site
    assert points[1].geo is None


def test_point_id_prefers_household_id():
    p = get_unified_points()[0]
    assert p.id == 'SOC-001'
    assert (p.lat, p.lng) == (p.socio.lat, p.socio.lng)


def test_map_impact_points():
    points = get_unified_points()
    impacts = to_map_impact_points()
    assert len(impacts) == len(points)
    for impact, p in zip(impacts, points):
        assert impact.id == p.id
        assert impact.type == 'riesgo'
        assert impact.severity == p.loss_risk_category
        assert impact.details.title == f'Riesgo por pérdida de vivienda: {p.loss_risk_category}'
        assert impact.details.loss_housing == p.loss_housing


def test_points_to_geojson():
    fc = points_to_geojson(get_unified_points())
    assert len(fc['features']) == 18
    props = fc['features'][-1]['properties']
    assert props['socioId'] is None
    assert props['geoId'] == 'GEOG-018'
    assert props['vulnerabilityScore'] is None
