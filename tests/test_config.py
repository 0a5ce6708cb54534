import pytest

from landrisk.config import DEFAULT_SETTINGS, load_settings


def test_defaults_without_overrides():
    assert load_settings({}) == DEFAULT_SETTINGS
    assert DEFAULT_SETTINGS.join.match_radius_m == 150
    assert DEFAULT_SETTINGS.breakpoints.medium == 33
    assert DEFAULT_SETTINGS.breakpoints.high == 66


def test_environment_overrides():
    settings = load_settings({
        'LANDRISK_MATCH_RADIUS_M': '50',
        'LANDRISK_LOW_QUANTILE': '0.25',
        'LANDRISK_HIGH_QUANTILE': '0.75',
        'LANDRISK_FALLBACK_LOW': '100',
        'LANDRISK_FALLBACK_MID': '400',
        'LANDRISK_NORMALIZE_ZONES': 'true',
    })
    assert settings.join.match_radius_m == 50
    assert settings.join.low_quantile == pytest.approx(0.25)
    assert settings.join.high_quantile == pytest.approx(0.75)
    assert settings.join.fallback_low == 100
    assert settings.join.fallback_mid == 400
    assert settings.normalize_zone_names is True
    # untouched
    assert settings.join.coord_decimals == 6


def test_blank_values_are_ignored():
    assert load_settings({'LANDRISK_MATCH_RADIUS_M': '  '}) == DEFAULT_SETTINGS


def test_non_numeric_override_is_rejected():
    with pytest.raises(ValueError, match='LANDRISK_MATCH_RADIUS_M'):
        load_settings({'LANDRISK_MATCH_RADIUS_M': 'far'})


def test_quantiles_out_of_order_are_rejected():
    with pytest.raises(ValueError):
        load_settings({'LANDRISK_LOW_QUANTILE': '0.8', 'LANDRISK_HIGH_QUANTILE': '0.2'})


def test_negative_radius_is_rejected():
    with pytest.raises(ValueError):
        load_settings({'LANDRISK_MATCH_RADIUS_M': '-1'})
