from dataclasses import replace

import pytest

from landrisk.config import Breakpoints, Settings
from landrisk.scoring import score_to_category
from landrisk.socioeconomic import (
    SOCIOECONOMIC,
    SOCIOECONOMIC_COLUMNS,
    SOCIOECONOMIC_RAW,
    aggregate_by_zone,
    compute_derived,
    gender_label,
    to_geojson,
    with_derived,
)


def _raw(household_id):
    return next(r for r in SOCIOECONOMIC_RAW if r.id == household_id)


def test_dataset_has_sixteen_households():
    assert len(SOCIOECONOMIC) == 16
    assert SOCIOECONOMIC[0].id == 'SOC-001'
    assert SOCIOECONOMIC[-1].id == 'SOC-016'


def test_low_vulnerability_household():
    d = compute_derived(_raw('SOC-001'))
    # income deficiency 1 - 500/1500 and one dependent out of three
    assert d.income_per_capita == pytest.approx(500)
    assert d.dependents == 1
    assert d.employment_total == 1
    assert d.has_any_insurance is True
    assert d.vulnerability_score == pytest.approx(30 * (2 / 3) + 20 * (1 / 3))
    assert d.risk_category == 'bajo'


def test_illiteracy_and_low_income_raise_score():
    d = compute_derived(_raw('SOC-005'))
    assert d.vulnerability_score == pytest.approx(35.0)
    assert d.risk_category == 'medio'


def test_uninsured_large_household():
    d = compute_derived(_raw('SOC-012'))
    expected = 30 * (1 - (3000 / 9) / 1500) + 20 * (7 / 9) + 10 * (1 / 9) + 15 + 10 * (3 / 9)
    assert d.has_any_insurance is False
    assert d.dependents == 7
    assert d.vulnerability_score == pytest.approx(expected)
    assert d.risk_category == 'medio'


def test_higher_education_lowers_score():
    base = replace(_raw('SOC-001'), higher_education_count=0)
    educated = replace(base, higher_education_count=3)
    assert compute_derived(educated).vulnerability_score == pytest.approx(
        compute_derived(base).vulnerability_score - 5
    )


def test_zero_household_size_is_floored_at_one():
    r = replace(_raw('SOC-001'), household_size=0, monthly_income=300)
    d = compute_derived(r)
    assert d.income_per_capita == pytest.approx(300)
    assert 0 <= d.vulnerability_score <= 100


def test_nan_and_negative_inputs_stay_in_range():
    r = replace(
        _raw('SOC-001'),
        monthly_income=float('nan'),
        elders_65=-3,
        children_under_10=0,
        household_size=float('nan'),
    )
    d = compute_derived(r)
    assert d.dependents == 0
    assert d.income_per_capita == 0
    assert 0 <= d.vulnerability_score <= 100
    assert d.risk_category == score_to_category(d.vulnerability_score)


def test_all_households_in_range_and_consistent():
    for h in SOCIOECONOMIC:
        assert 0 <= h.derived.vulnerability_score <= 100
        assert h.risk_category == score_to_category(h.derived.vulnerability_score)


def test_compute_derived_is_pure():
    r = _raw('SOC-009')
    assert compute_derived(r) == compute_derived(r)


def test_gender_label():
    assert gender_label(0) == 'Masculino'
    assert gender_label(1) == 'Femenino'
    assert gender_label(7) == 'Otro/NS'


def test_aggregate_by_zone():
    zones = aggregate_by_zone(SOCIOECONOMIC_RAW)
    by_zone = {z.zone: z for z in zones}

    assert sum(z.households for z in zones) == 16
    assert [z.zone for z in zones][0] == 'Asociación Los Olivos'

    olivos = by_zone['Asociación Los Olivos']
    assert olivos.households == 4
    assert olivos.avg_income == pytest.approx(1362.5)
    assert olivos.share_with_insurance == pytest.approx(1.0)

    cenepa = by_zone['Asociación Héroes del Cenepa']
    assert cenepa.households == 5
    assert cenepa.share_with_insurance == pytest.approx(0.8)

    assert by_zone['Asociación Miguel Grau'].households == 5
    for z in zones:
        assert z.risk_category == score_to_category(z.avg_vulnerability)


def test_to_geojson_properties():
    fc = to_geojson(SOCIOECONOMIC_RAW[:2])
    assert len(fc['features']) == 2
    props = fc['features'][1]['properties']
    assert props['id'] == 'SOC-002'
    assert props['gender'] == 'Femenino'
    assert props['householdSize'] == 4
    assert props['incomePerCapita'] == pytest.approx(500)
    assert fc['features'][1]['geometry']['coordinates'] == [-71.468926, -16.393202]


def test_column_headers():
    assert [c.header for c in SOCIOECONOMIC_COLUMNS][:3] == ['ID', 'Zona / Asociación', 'Departamento']


def test_household_and_single_household_zone_share_breakpoints():
    settings = Settings(breakpoints=Breakpoints(medium=10, high=20))
    for r in SOCIOECONOMIC_RAW:
        household = with_derived(r, settings)
        [zone] = aggregate_by_zone([r], settings)
        assert household.risk_category == zone.risk_category
    assert with_derived(_raw('SOC-001'), settings).risk_category == 'alto'
