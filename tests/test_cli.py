import json

import pytest

from landrisk import cli
from landrisk.engine import RiskEngine


@pytest.fixture
def engine():
    return RiskEngine.default()


def test_stats(engine, capsys):
    cli.handle(engine, 'stats')
    out = capsys.readouterr().out
    assert 'Current selection: 16' in out
    assert 'Unified points: 18' in out


def test_search_then_undo(engine, capsys):
    cli.handle(engine, 'search grau')
    assert 'Size=5' in capsys.readouterr().out
    cli.handle(engine, 'undo')
    assert 'Undone.' in capsys.readouterr().out
    assert len(engine.state.active_ids) == 16


def test_filter_zone_with_quotes(engine, capsys):
    cli.handle(engine, 'filter zone "Asociación Miguel Grau"')
    assert 'Size=5' in capsys.readouterr().out


def test_bad_filter_raises(engine):
    with pytest.raises(ValueError):
        cli.handle(engine, 'filter risk severo')
    with pytest.raises(ValueError):
        cli.handle(engine, 'filter color rojo')


def test_thresholds(engine, capsys):
    cli.handle(engine, 'thresholds')
    out = capsys.readouterr().out
    assert '200.00' in out
    assert '290.00' in out


def test_point_details(engine, capsys):
    cli.handle(engine, 'point SOC-003')
    out = capsys.readouterr().out
    assert '[SOC-003]' in out
    assert 'geo GEOG-003' in out


def test_topk(engine, capsys):
    cli.handle(engine, 'use geo')
    cli.handle(engine, 'topk 2 hazard')
    out = capsys.readouterr().out
    assert 'Top 2 by hazard' in out


def test_geojson_command(engine, tmp_path, capsys):
    out_file = tmp_path / 'sel.json'
    cli.handle(engine, f'geojson "{out_file}"')
    assert 'Exported 16 features' in capsys.readouterr().out
    assert len(json.loads(out_file.read_text(encoding='utf-8'))['features']) == 16


def test_unknown_command(engine, capsys):
    cli.handle(engine, 'launch')
    assert 'Unknown command' in capsys.readouterr().out


def test_main_loop_logs_mutating_commands(monkeypatch, capsys):
    lines = iter(['stats', 'search grau', 'filter risk severo', 'quit'])
    monkeypatch.setattr('builtins.input', lambda prompt='': next(lines))
    created = []
    original = RiskEngine.default

    def default(*args, **kwargs):
        e = original(*args, **kwargs)
        created.append(e)
        return e

    monkeypatch.setattr(RiskEngine, 'default', default)
    cli.main([])

    out = capsys.readouterr().out
    assert 'Loaded 16 households and 18 sites' in out
    assert 'Error: risk category' in out
    assert created[0].command_log == ['search grau', 'filter risk severo']
