"""Automatic calibration of pumping-well hydraulic conductivity.

The forward model is a lightweight version of the interference pipeline:
each pumping well's radius of influence is taken from its *recorded*
drawdown rather than the implicit solver, which keeps an iteration to a few
array operations. Observation wells with a recorded dynamic level provide
the targets; only pumping-well conductivities are adjusted.

Two strategies share that forward model:

* :class:`RelaxationCalibrator` - a damped, gradient-free relaxation that
  spreads each observation's relative error over nearby pumping wells with
  inverse-square distance weights.
* :class:`LeastSquaresCalibrator` - bounded ``scipy.optimize.least_squares``
  in log-conductivity space.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence, Tuple, Type, Union

import numpy as np
from scipy.optimize import least_squares
from scipy.spatial.distance import cdist

from wellfield.config import CalibrationSettings
from wellfield.exceptions import CalibrationError
from wellfield.fitters.metrics import nrmse
from wellfield.models.hydraulics import Well
from wellfield.utils.numeric import LITRES_PER_CUBIC_METRE, SECONDS_PER_DAY, SICHARDT_COEFFICIENT, WELL_RADIUS

logger = logging.getLogger(__name__)


class CalibrationStatus(str, Enum):
    CONVERGED = "converged"
    STABLE = "stable"
    MAX_ITERATIONS = "max_iterations"


@dataclass(frozen=True)
class CalibrationResult:
    """Calibrated wells plus the fit reached.

    ``converged`` means the final NRMSE is below target; ``status`` tells
    how the run ended. ``iterations`` counts relaxation passes for
    :class:`RelaxationCalibrator` and forward-model evaluations (``nfev``)
    for :class:`LeastSquaresCalibrator`.
    """

    wells: Tuple[Well, ...]
    nrmse: float
    iterations: int
    converged: bool
    status: CalibrationStatus

    def as_dict(self) -> dict:
        return {
            "wells": [well.as_dict() for well in self.wells],
            "nrmse": self.nrmse,
            "iterations": self.iterations,
            "converged": self.converged,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class _WellArrays:
    """Numeric mirror of a well collection, one entry per well."""

    distances: np.ndarray
    flow_m3s: np.ndarray
    conductivity: np.ndarray
    saturated: np.ndarray
    static_level: np.ndarray
    recorded_drawdown: np.ndarray
    observed: np.ndarray
    pumping: np.ndarray
    targets: np.ndarray

    @classmethod
    def from_wells(cls, wells: Sequence[Well]) -> "_WellArrays":
        xy = np.array([[w.easting, w.northing] for w in wells], dtype=float).reshape(-1, 2)
        depth = np.array([w.depth for w in wells], dtype=float)
        static = np.array([w.static_level for w in wells], dtype=float)
        dynamic = np.array([w.dynamic_level for w in wells], dtype=float)
        observation = np.array([w.is_observation for w in wells], dtype=bool)
        return cls(
            distances=cdist(xy, xy),
            flow_m3s=np.array([w.flow for w in wells], dtype=float) / LITRES_PER_CUBIC_METRE,
            conductivity=np.array([w.conductivity for w in wells], dtype=float),
            saturated=np.maximum(0.0, depth - static),
            static_level=static,
            recorded_drawdown=dynamic - static,
            observed=dynamic,
            pumping=~observation,
            targets=observation & (dynamic > 0),
        )

    def hydraulics(self, conductivity: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Transmissivity (m2/s) and approximate radius of influence (m)."""

        t_sec = conductivity * self.saturated / SECONDS_PER_DAY
        k_sec = conductivity / SECONDS_PER_DAY
        s = self.recorded_drawdown
        with np.errstate(invalid="ignore"):
            radius = np.where((s > 0) & (k_sec > 0), SICHARDT_COEFFICIENT * s * np.sqrt(k_sec), 0.0)
        return t_sec, np.where(np.isfinite(radius), radius, 0.0)

    def observation_depths(self, conductivity: np.ndarray, well_radius: float = WELL_RADIUS) -> Tuple[np.ndarray, np.ndarray]:
        """Observed and simulated depths at the calibration targets."""

        t_sec, radius = self.hydraulics(conductivity)
        r = np.maximum(self.distances[self.targets], well_radius)
        active = self.pumping & (self.flow_m3s > 0) & (t_sec > 0)
        reach = active[None, :] & (r <= radius[None, :])
        with np.errstate(divide="ignore", invalid="ignore"):
            s = (self.flow_m3s / (2.0 * math.pi * t_sec))[None, :] * np.log(radius[None, :] / r)
        s = np.where(reach & np.isfinite(s) & (s > 0), s, 0.0)
        simulated = self.static_level[self.targets] + s.sum(axis=1)
        return self.observed[self.targets], simulated


def _rebuild(wells: Sequence[Well], conductivity: np.ndarray) -> Tuple[Well, ...]:
    return tuple(
        replace(well, conductivity=float(k)) if not well.is_observation else well
        for well, k in zip(wells, conductivity)
    )


class CalibrationStrategy(ABC):
    """Interface shared by all conductivity calibration strategies."""

    def __init__(self, settings: Optional[CalibrationSettings] = None):
        self.settings = settings or CalibrationSettings()

    @abstractmethod
    def calibrate(
        self,
        wells: Iterable[Well],
        target_nrmse: Optional[float] = None,
        max_iterations: Optional[int] = None,
    ) -> CalibrationResult:
        pass


class RelaxationCalibrator(CalibrationStrategy):
    """Damped multiplicative relaxation of pumping-well conductivity.

    Every iteration an observation well's relative error
    ``(observed - simulated) / observed`` is handed to each pumping well
    within its radius of influence (or the catch distance) with weight
    ``1 / (r^2 + 1)``. A pumping well then scales its conductivity by
    ``1 - gain * mean_error``, bounded per step and overall. The loop ends
    when NRMSE drops below target, when no conductivity moves, or when the
    iteration budget runs out.
    """

    def calibrate(self, wells, target_nrmse=None, max_iterations=None):
        cfg = self.settings
        target = cfg.target_nrmse if target_nrmse is None else target_nrmse
        budget = cfg.max_iterations if max_iterations is None else max_iterations
        if budget < 1:
            raise ValueError("max_iterations must be at least 1")

        wells = tuple(wells)
        arrays = _WellArrays.from_wells(wells)
        conductivity = arrays.conductivity.copy()
        target_distances = arrays.distances[arrays.targets]
        status = CalibrationStatus.MAX_ITERATIONS
        iteration = 0

        for iteration in range(1, budget + 1):
            observed, simulated = arrays.observation_depths(conductivity)
            error = nrmse(observed, simulated)
            logger.debug("Calibration iteration %d: NRMSE %.5f over %d wells", iteration, error, observed.size)
            if observed.size and error < target:
                status = CalibrationStatus.CONVERGED
                break

            ratio = (observed - simulated) / np.where(observed == 0, 1.0, observed)
            _, radius = arrays.hydraulics(conductivity)
            d = target_distances
            eligible = arrays.pumping[None, :] & ((d <= radius[None, :]) | (d < cfg.catch_distance))
            weights = np.where(eligible, 1.0 / (d**2 + 1.0), 0.0)
            weighted_error = ratio @ weights
            total_weight = weights.sum(axis=0)

            adjust = arrays.pumping & (total_weight > 0)
            factor = 1.0 - (weighted_error[adjust] / total_weight[adjust]) * cfg.gain
            factor = np.clip(factor, cfg.min_step_factor, cfg.max_step_factor)
            updated = conductivity.copy()
            updated[adjust] = np.clip(conductivity[adjust] * factor, cfg.min_conductivity, cfg.max_conductivity)

            moved = np.abs(updated - conductivity) > cfg.change_tolerance
            conductivity = updated
            if not moved.any():
                status = CalibrationStatus.STABLE
                break

        observed, simulated = arrays.observation_depths(conductivity)
        final_error = nrmse(observed, simulated)
        converged = final_error < target
        logger.info(
            "Calibration finished after %d iterations: %s, NRMSE %.5f",
            iteration,
            status.value,
            final_error,
        )
        return CalibrationResult(_rebuild(wells, conductivity), final_error, iteration, converged, status)


class LeastSquaresCalibrator(CalibrationStrategy):
    """Bounded least-squares fit of pumping-well log-conductivity.

    ``max_iterations`` caps the number of forward evaluations per free
    parameter, so the cost stays comparable to the relaxation strategy.
    """

    def calibrate(self, wells, target_nrmse=None, max_iterations=None):
        cfg = self.settings
        target = cfg.target_nrmse if target_nrmse is None else target_nrmse
        budget = cfg.max_iterations if max_iterations is None else max_iterations
        if budget < 1:
            raise ValueError("max_iterations must be at least 1")

        wells = tuple(wells)
        arrays = _WellArrays.from_wells(wells)
        conductivity = arrays.conductivity.copy()
        free = np.flatnonzero(arrays.pumping)

        if free.size == 0 or not arrays.targets.any():
            observed, simulated = arrays.observation_depths(conductivity)
            error = nrmse(observed, simulated)
            return CalibrationResult(wells, error, 0, error < target, CalibrationStatus.STABLE)

        lower = np.log(cfg.min_conductivity)
        upper = np.log(cfg.max_conductivity)
        x0 = np.clip(np.log(np.clip(conductivity[free], cfg.min_conductivity, None)), lower + 1e-9, upper - 1e-9)

        def trial(log_k: np.ndarray) -> np.ndarray:
            k = conductivity.copy()
            k[free] = np.exp(log_k)
            return k

        def residuals(log_k: np.ndarray) -> np.ndarray:
            observed, simulated = arrays.observation_depths(trial(log_k))
            return simulated - observed

        result = least_squares(
            residuals,
            x0,
            bounds=(np.full(free.size, lower), np.full(free.size, upper)),
            method="trf",
            max_nfev=budget * (free.size + 1),
        )
        conductivity = trial(result.x)
        observed, simulated = arrays.observation_depths(conductivity)
        error = nrmse(observed, simulated)

        if error < target:
            status = CalibrationStatus.CONVERGED
        elif result.success:
            status = CalibrationStatus.STABLE
        else:
            status = CalibrationStatus.MAX_ITERATIONS
        logger.info("Least-squares calibration: %s after %d evaluations, NRMSE %.5f", status.value, result.nfev, error)
        return CalibrationResult(
            _rebuild(wells, conductivity),
            error,
            int(result.nfev),
            error < target,
            status,
        )


STRATEGIES: Dict[str, Type[CalibrationStrategy]] = {
    "relaxation": RelaxationCalibrator,
    "least_squares": LeastSquaresCalibrator,
}


def get_strategy(name: str, settings: Optional[CalibrationSettings] = None) -> CalibrationStrategy:
    try:
        cls = STRATEGIES[name]
    except KeyError as exc:
        raise CalibrationError(f"Unsupported calibration strategy '{name}'.") from exc
    return cls(settings)


def calibrate(
    wells: Iterable[Well],
    target_nrmse: Optional[float] = None,
    max_iterations: Optional[int] = None,
    strategy: Union[str, CalibrationStrategy, None] = None,
    settings: Optional[CalibrationSettings] = None,
) -> CalibrationResult:
    """Calibrate pumping-well conductivity against observation wells.

    Returns a new well collection; the input wells are not modified.
    """

    if strategy is None:
        strategy = RelaxationCalibrator(settings)
    elif isinstance(strategy, str):
        strategy = get_strategy(strategy, settings)
    return strategy.calibrate(wells, target_nrmse, max_iterations)
