import math
from dataclasses import replace

import pytest
from pydantic import ValidationError

from wellfield.config import CalibrationSettings
from wellfield.exceptions import CalibrationError
from wellfield.fitters.calibration import (
    CalibrationStatus,
    LeastSquaresCalibrator,
    RelaxationCalibrator,
    calibrate,
    get_strategy,
)
from wellfield.fitters.metrics import fit_metrics
from wellfield.models.network import evaluate


def _matching_depth(distance, k=15.0, q=0.01, h=55.0, drawdown=7.0, static=5.0):
    t_sec = k * h / 86400
    radius = 3000 * drawdown * math.sqrt(k / 86400)
    return static + q / (2 * math.pi * t_sec) * math.log(radius / distance)


def test_converged_set_is_left_untouched(pumping_well, observation_factory):
    wells = [pumping_well, observation_factory(2, 100.0, _matching_depth(100.0))]

    result = calibrate(wells)

    assert result.status is CalibrationStatus.CONVERGED
    assert result.converged
    assert result.iterations == 1
    assert result.nrmse < 1e-9
    assert [w.conductivity for w in result.wells] == [w.conductivity for w in wells]
    assert fit_metrics(evaluate(result.wells).results).rmse < 1e-9


def test_relaxation_lowers_conductivity_when_drawdown_is_underestimated(pumping_well, observation_factory):
    wells = [pumping_well, observation_factory(2, 100.0, 5.5)]
    before = fit_metrics(evaluate(wells).results).nrmse

    result = RelaxationCalibrator().calibrate(wells)

    pumped, observed = result.wells
    assert pumped.conductivity < 15.0
    assert pumped.conductivity >= 15.0 * 0.9**10
    assert observed.conductivity == 15.0
    assert result.nrmse < before
    assert result.iterations == 10
    assert result.status is CalibrationStatus.MAX_ITERATIONS
    assert wells[0].conductivity == 15.0


def test_relaxation_raises_conductivity_when_drawdown_is_overestimated(pumping_well, observation_factory):
    wells = [pumping_well, observation_factory(2, 100.0, 5.05)]
    result = calibrate(wells, target_nrmse=1e-4, max_iterations=3)
    assert result.wells[0].conductivity > 15.0
    assert result.iterations <= 3


def test_cold_started_well_is_reached_within_catch_distance(pumping_well, observation_factory):
    cold = replace(pumping_well, dynamic_level=0.0)
    wells = [cold, observation_factory(2, 100.0, 5.5)]

    result = calibrate(wells, max_iterations=1)

    assert result.iterations == 1
    assert result.wells[0].conductivity < 15.0
    assert result.wells[0].conductivity == pytest.approx(15.0 * (1 - 0.1 * 0.5 / 5.5))


def test_cold_started_well_beyond_catch_distance_is_left_alone(pumping_well, observation_factory):
    cold = replace(pumping_well, dynamic_level=0.0)
    wells = [cold, observation_factory(2, 2500.0, 5.5)]

    result = calibrate(wells)

    assert result.status is CalibrationStatus.STABLE
    assert result.wells[0].conductivity == 15.0


def test_unreachable_observation_stops_on_stability(pumping_well, observation_factory):
    wells = [pumping_well, observation_factory(2, 5000.0, 6.0)]

    result = calibrate(wells)

    assert result.status is CalibrationStatus.STABLE
    assert not result.converged
    assert result.iterations == 1
    assert result.wells[0].conductivity == 15.0
    assert result.nrmse == pytest.approx(1.0 / 6.0)


def test_conductivity_respects_hard_bounds(pumping_well, observation_factory):
    settings = CalibrationSettings(min_conductivity=14.0, max_iterations=20)
    wells = [pumping_well, observation_factory(2, 100.0, 9.0)]

    result = calibrate(wells, settings=settings)

    assert result.wells[0].conductivity == pytest.approx(14.0)


def test_least_squares_matches_observation(pumping_well, observation_factory):
    wells = [pumping_well, observation_factory(2, 100.0, 5.2)]

    result = calibrate(wells, target_nrmse=1e-3, strategy="least_squares")

    assert result.converged
    assert result.status is CalibrationStatus.CONVERGED
    assert result.nrmse < 1e-3
    assert result.wells[0].conductivity < 15.0
    assert result.iterations >= 1


def test_least_squares_without_targets(pumping_well):
    result = LeastSquaresCalibrator().calibrate([pumping_well])
    assert result.status is CalibrationStatus.STABLE
    assert result.wells[0] == pumping_well


def test_unknown_strategy():
    with pytest.raises(CalibrationError):
        get_strategy("simplex")


def test_settings_from_env():
    settings = CalibrationSettings.from_env({"WELLFIELD_GAIN": "0.2", "WELLFIELD_MAX_ITERATIONS": "5", "OTHER": "x"})
    assert settings.gain == pytest.approx(0.2)
    assert settings.max_iterations == 5
    assert settings.target_nrmse == pytest.approx(0.02)


def test_settings_reject_unknown_fields():
    with pytest.raises(ValidationError):
        CalibrationSettings(step=3)
