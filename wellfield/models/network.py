"""Evaluation pipeline for a set of wells.

``derive_states(wells) -> interference_matrix(states) -> WellResult`` with no
shared state between passes: every call recomputes from the raw wells.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from wellfield.models.hydraulics import DerivedState, Well, derive_state
from wellfield.models.thiem import InterferenceMatrix, interference_matrix
from wellfield.utils.idw import IdwPoint


@dataclass(frozen=True)
class WellResult:
    """Per-well outcome after superposition."""

    state: DerivedState
    total_drawdown: float
    max_dynamic_level: float
    max_dynamic_level_depth: float

    @property
    def well(self) -> Well:
        return self.state.well

    def as_dict(self) -> dict:
        out = self.state.as_dict()
        out.update(
            name=self.well.name,
            kind=self.well.kind.value,
            total_drawdown=self.total_drawdown,
            max_dynamic_level=self.max_dynamic_level,
            max_dynamic_level_depth=self.max_dynamic_level_depth,
        )
        return out


@dataclass(frozen=True)
class Evaluation:
    results: Tuple[WellResult, ...]
    matrix: InterferenceMatrix

    def field_points(self) -> List[IdwPoint]:
        """Sample points of the maximum dynamic level elevation field."""

        return [
            IdwPoint(r.well.easting, r.well.northing, r.max_dynamic_level, r.state.radius_of_influence)
            for r in self.results
        ]


def derive_states(wells: Iterable[Well], **solver_options) -> Tuple[DerivedState, ...]:
    return tuple(derive_state(well, **solver_options) for well in wells)


def evaluate(wells: Iterable[Well], **solver_options) -> Evaluation:
    """Run the full forward model on ``wells``."""

    states = derive_states(wells, **solver_options)
    matrix = interference_matrix(states)
    results = []
    for state, total in zip(states, matrix.totals):
        total = float(total)
        level = state.static_elevation - total
        results.append(
            WellResult(
                state=state,
                total_drawdown=total,
                max_dynamic_level=level,
                max_dynamic_level_depth=state.well.ground_elevation - level,
            )
        )
    return Evaluation(results=tuple(results), matrix=matrix)
