import math
from dataclasses import replace

import numpy as np
import pytest

from wellfield.exceptions import InputError
from wellfield.models.hydraulics import derive_state
from wellfield.models.network import evaluate
from wellfield.models.thiem import interference, interference_matrix, thiem_drawdown


def _expected(state, distance):
    q = state.well.flow / 1000.0
    return q / (2 * math.pi * state.transmissivity_m2s) * math.log(state.radius_of_influence / distance)


def test_interference_inside_radius(pumping_well, observation_factory):
    source = derive_state(pumping_well)
    target = derive_state(observation_factory(2, 200.0, 5.1))

    s = interference(target, source)
    assert s == pytest.approx(_expected(source, 200.0))
    assert s == pytest.approx(0.0543, abs=1e-3)


def test_interference_outside_radius(pumping_well, observation_factory):
    source = derive_state(pumping_well)
    for distance in (280.0, 300.0, 1000.0):
        target = derive_state(observation_factory(2, distance, 5.1))
        assert distance > source.radius_of_influence
        assert interference(target, source) == 0.0


def test_observation_wells_are_never_sources(pumping_well, observation_factory):
    obs = derive_state(observation_factory(2, 50.0, 9.0))
    targets = [derive_state(pumping_well), obs, derive_state(observation_factory(3, 10.0, 6.0))]
    for target in targets:
        assert interference(target, obs) == 0.0


def test_self_interference_is_finite(pumping_well):
    state = derive_state(pumping_well)
    s = interference(state, state)
    assert math.isfinite(s)
    assert s == pytest.approx(_expected(state, 0.15))


def test_zero_conductivity_source_contributes_nothing(pumping_well, observation_factory):
    source = derive_state(replace(pumping_well, conductivity=0.0))
    target = derive_state(observation_factory(2, 20.0, 5.5))
    assert interference(target, source) == 0.0


def test_thiem_drawdown_guards():
    assert thiem_drawdown(0.01, 0.0, 100.0, 10.0) == 0.0
    assert thiem_drawdown(0.01, 0.01, 0.0, 10.0) == 0.0
    assert thiem_drawdown(0.01, 0.01, 10.0, 100.0) == 0.0
    assert thiem_drawdown(0.0, 0.01, 100.0, 10.0) == 0.0


def test_matrix_and_superposition(pumping_well):
    second = replace(pumping_well, id=2, name="P-2", easting=200.0)
    evaluation = evaluate([pumping_well, second])
    matrix = evaluation.matrix

    assert matrix.well_ids == (1, 2)
    assert matrix.values.shape == (2, 2)
    np.testing.assert_allclose(matrix.values, matrix.values.T)
    assert matrix.lookup(1, 2) == pytest.approx(0.0543, abs=1e-3)
    np.testing.assert_allclose(matrix.totals, matrix.values.sum(axis=1))

    first = evaluation.results[0]
    assert first.total_drawdown == pytest.approx(matrix.values[0, 0] + matrix.values[0, 1])
    assert first.max_dynamic_level == pytest.approx(95.0 - first.total_drawdown)
    assert first.max_dynamic_level_depth == pytest.approx(5.0 + first.total_drawdown)

    body = matrix.as_dict()
    assert body["well_ids"] == [1, 2]
    assert len(body["totals"]) == 2


def test_matrix_rejects_duplicate_ids(pumping_well):
    states = [derive_state(pumping_well), derive_state(pumping_well)]
    with pytest.raises(InputError):
        interference_matrix(states)


def test_matrix_lookup_unknown_id(pumping_well):
    matrix = evaluate([pumping_well]).matrix
    with pytest.raises(KeyError):
        matrix.lookup(1, 99)


def test_observation_well_receives_drawdown(pumping_well, observation_factory):
    obs = observation_factory(2, 100.0, 5.2)
    evaluation = evaluate([pumping_well, obs])
    result = evaluation.results[1]

    assert evaluation.matrix.lookup(1, 2) == 0.0
    assert result.total_drawdown == pytest.approx(evaluation.matrix.lookup(2, 1))
    assert result.max_dynamic_level_depth == pytest.approx(5.0 + result.total_drawdown)


def test_field_points(pumping_well, observation_factory):
    evaluation = evaluate([pumping_well, observation_factory(2, 100.0, 5.2)])
    points = evaluation.field_points()
    assert [(p.x, p.y) for p in points] == [(0.0, 0.0), (100.0, 0.0)]
    assert points[0].value == pytest.approx(evaluation.results[0].max_dynamic_level)
    assert points[0].radius > 0
    assert points[1].radius == pytest.approx(evaluation.results[1].state.radius_of_influence)
