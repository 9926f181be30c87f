"""Steady-state Thiem drawdown and pairwise well interference.

The drawdown induced at distance ``r`` from a well pumping ``Q`` from an
aquifer of transmissivity ``T`` with radius of influence ``R`` is

.. math::
    s(r) = \\frac{Q}{2 \\pi T} \\ln\\left(\\frac{R}{r}\\right),\\qquad r \\le R

and zero beyond ``R``. Contributions of several wells superpose linearly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import numpy as np

from wellfield.exceptions import InputError
from wellfield.models.hydraulics import DerivedState
from wellfield.utils.numeric import WELL_RADIUS, sanitize


def thiem_drawdown(flow_m3s: float, transmissivity_m2s: float, radius: float, distance: float) -> float:
    """Return the Thiem drawdown (metres), clamped to zero when undefined."""

    if flow_m3s <= 0 or transmissivity_m2s <= 0 or radius <= 0 or distance <= 0:
        return 0.0
    s = sanitize((flow_m3s / (2.0 * math.pi * transmissivity_m2s)) * math.log(radius / distance))
    return s if s > 0 else 0.0


def separation(target: DerivedState, source: DerivedState) -> float:
    return math.hypot(target.well.easting - source.well.easting, target.well.northing - source.well.northing)


def interference(target: DerivedState, source: DerivedState, well_radius: float = WELL_RADIUS) -> float:
    """Drawdown (m) that pumping at ``source`` induces at ``target``.

    Observation wells never act as sources. The distance is floored at the
    well-bore radius so self-interference stays finite, and targets outside
    a positive radius of influence receive nothing.
    """

    src = source.well
    if src.is_observation:
        return 0.0
    if src.flow <= 0 or source.transmissivity_m2s <= 0:
        return 0.0

    r = max(well_radius, separation(target, source))
    radius = source.radius_of_influence
    if radius > 0 and r > radius:
        return 0.0
    return thiem_drawdown(src.flow_m3s, source.transmissivity_m2s, radius, r)


@dataclass(frozen=True)
class InterferenceMatrix:
    """Square table of induced drawdowns.

    ``values[i, j]`` is the drawdown that well ``well_ids[j]`` induces at well
    ``well_ids[i]``. Row sums include the self-effect on the diagonal.
    """

    well_ids: Tuple[int, ...]
    values: np.ndarray

    @property
    def totals(self) -> np.ndarray:
        return self.values.sum(axis=1)

    def index_of(self, well_id: int) -> int:
        try:
            return self.well_ids.index(well_id)
        except ValueError as exc:
            raise KeyError(well_id) from exc

    def lookup(self, target_id: int, source_id: int) -> float:
        return float(self.values[self.index_of(target_id), self.index_of(source_id)])

    def as_dict(self) -> Dict[str, list]:
        return {
            "well_ids": list(self.well_ids),
            "values": self.values.tolist(),
            "totals": self.totals.tolist(),
        }


def interference_matrix(states: Sequence[DerivedState], well_radius: float = WELL_RADIUS) -> InterferenceMatrix:
    """Assemble the all-pairs interference matrix for ``states``."""

    ids = tuple(state.well.id for state in states)
    if len(set(ids)) != len(ids):
        raise InputError("Well ids must be unique.", field="id")

    n = len(states)
    values = np.zeros((n, n), dtype=float)
    for i, target in enumerate(states):
        for j, source in enumerate(states):
            values[i, j] = interference(target, source, well_radius)
    return InterferenceMatrix(well_ids=ids, values=values)
