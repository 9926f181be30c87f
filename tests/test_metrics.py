import numpy as np
import pytest

from wellfield.fitters.metrics import fit_metrics, mse, nrmse, observation_pairs, residual_table, rmse
from wellfield.models.network import evaluate


def test_scalar_metrics():
    assert mse([1.0, 2.0], [1.0, 4.0]) == pytest.approx(2.0)
    assert rmse([1.0, 2.0], [1.0, 4.0]) == pytest.approx(np.sqrt(2.0))
    assert nrmse([1.0, 2.0], [1.0, 4.0]) == pytest.approx(np.sqrt(2.0) / 1.5)


def test_empty_metrics_are_zero():
    assert mse([], []) == 0.0
    assert rmse([], []) == 0.0
    assert nrmse([], []) == 0.0
    assert nrmse([0.0, 0.0], [1.0, 1.0]) == 0.0


def test_unrecorded_observation_wells_are_excluded(pumping_well, observation_factory):
    wells = [pumping_well, observation_factory(2, 100.0, 5.5), observation_factory(3, 150.0, 0.0)]
    results = evaluate(wells).results

    observed, simulated = observation_pairs(results)
    assert observed.tolist() == [5.5]
    assert simulated.shape == (1,)

    metrics = fit_metrics(results)
    assert metrics.count == 1
    assert metrics.mse == pytest.approx((5.5 - results[1].max_dynamic_level_depth) ** 2)
    assert metrics.rmse == pytest.approx(abs(5.5 - results[1].max_dynamic_level_depth))


def test_residual_table(pumping_well, observation_factory):
    wells = [pumping_well, observation_factory(2, 100.0, 5.2), observation_factory(3, 150.0, 0.0)]
    results = evaluate(wells).results
    rows = residual_table(results)

    assert [row.well_id for row in rows] == [2, 3]
    first = rows[0]
    assert first.residual == pytest.approx(first.observed - first.simulated)
    assert first.percent_error == pytest.approx(first.residual / 5.2 * 100)
    assert first.good_fit
    assert first.good_percent
    assert rows[1].percent_error == 0.0
    assert rows[1].as_dict()["id"] == 3
