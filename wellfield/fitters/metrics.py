"""Fit-quality metrics between observed and simulated water-level depths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np
from numpy.typing import ArrayLike

from wellfield.models.network import WellResult

GOOD_FIT_RESIDUAL = 1.0
GOOD_FIT_PERCENT = 3.0


def mse(observed: ArrayLike, simulated: ArrayLike) -> float:
    observed = np.asarray(observed, dtype=float)
    simulated = np.asarray(simulated, dtype=float)
    if observed.size == 0:
        return 0.0
    return float(np.mean((observed - simulated) ** 2))


def rmse(observed: ArrayLike, simulated: ArrayLike) -> float:
    return float(np.sqrt(mse(observed, simulated)))


def nrmse(observed: ArrayLike, simulated: ArrayLike) -> float:
    """RMSE normalised by the mean observation (0 when that mean is 0)."""

    observed = np.asarray(observed, dtype=float)
    if observed.size == 0:
        return 0.0
    mean_obs = float(np.mean(observed))
    if mean_obs == 0:
        return 0.0
    return rmse(observed, simulated) / mean_obs


def observation_pairs(results: Iterable[WellResult]) -> Tuple[np.ndarray, np.ndarray]:
    """Observed and simulated depths of observation wells with a recorded level.

    Wells whose observed depth is not positive are left out rather than
    counted as a perfect match.
    """

    observed = []
    simulated = []
    for result in results:
        well = result.well
        if well.is_observation and well.dynamic_level > 0:
            observed.append(well.dynamic_level)
            simulated.append(result.max_dynamic_level_depth)
    return np.asarray(observed, dtype=float), np.asarray(simulated, dtype=float)


@dataclass(frozen=True)
class FitMetrics:
    mse: float
    rmse: float
    nrmse: float
    count: int

    def as_dict(self) -> dict:
        return {"mse": self.mse, "rmse": self.rmse, "nrmse": self.nrmse, "count": self.count}


def fit_metrics(results: Iterable[WellResult]) -> FitMetrics:
    observed, simulated = observation_pairs(results)
    return FitMetrics(
        mse=mse(observed, simulated),
        rmse=rmse(observed, simulated),
        nrmse=nrmse(observed, simulated),
        count=int(observed.size),
    )


@dataclass(frozen=True)
class WellResidual:
    well_id: int
    name: str
    observed: float
    simulated: float
    residual: float
    percent_error: float

    @property
    def good_fit(self) -> bool:
        return abs(self.residual) < GOOD_FIT_RESIDUAL

    @property
    def good_percent(self) -> bool:
        return abs(self.percent_error) < GOOD_FIT_PERCENT

    def as_dict(self) -> dict:
        return {
            "id": self.well_id,
            "name": self.name,
            "observed": self.observed,
            "simulated": self.simulated,
            "residual": self.residual,
            "percent_error": self.percent_error,
            "good_fit": self.good_fit,
            "good_percent": self.good_percent,
        }


def residual_table(results: Iterable[WellResult]) -> List[WellResidual]:
    """Observed minus simulated depth for every observation well."""

    rows = []
    for result in results:
        well = result.well
        if not well.is_observation:
            continue
        observed = well.dynamic_level
        simulated = result.max_dynamic_level_depth
        residual = observed - simulated
        percent = residual / observed * 100.0 if observed != 0 else 0.0
        rows.append(WellResidual(well.id, well.name, observed, simulated, residual, percent))
    return rows
