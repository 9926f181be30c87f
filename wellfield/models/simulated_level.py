"""Implicit drawdown solver for pumping wells without an observed level.

For a pumping well whose dynamic level is missing the drawdown ``s`` and the
Sichardt radius of influence ``R(s)`` depend on each other through the
single-well Thiem equation

.. math::
    s = \\frac{Q}{2 \\pi T} \\ln\\left(\\frac{R(s)}{r_w}\\right),\\qquad
    R(s) = 3000\\, s \\sqrt{K}

which is solved here by bounded fixed-point iteration. Units are SI:
``Q`` in :math:`m^3/s`, ``T`` in :math:`m^2/s`, ``K`` in :math:`m/s`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from wellfield.utils.numeric import SICHARDT_COEFFICIENT, WELL_RADIUS

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 10
TOLERANCE = 0.01
SEED_DRAWDOWN = 1.0
DRAWDOWN_FLOOR = 0.1


class SolverStatus(str, Enum):
    CONVERGED = "converged"
    NO_SOLUTION = "no_solution"
    MAX_ITERATIONS = "max_iterations"


@dataclass(frozen=True)
class SolverResult:
    """Outcome of :func:`solve_simulated_drawdown`."""

    drawdown: float
    iterations: int
    status: SolverStatus

    @property
    def converged(self) -> bool:
        return self.status is SolverStatus.CONVERGED


def solve_simulated_drawdown(
    flow_m3s: float,
    transmissivity_m2s: float,
    conductivity_ms: float,
    *,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
    seed: float = SEED_DRAWDOWN,
    well_radius: float = WELL_RADIUS,
) -> SolverResult:
    """Return the self-consistent drawdown (metres) of a pumping well.

    The iteration stops when two successive iterates differ by less than
    ``tolerance``. When the guessed radius of influence collapses inside the
    well bore the aquifer cannot sustain the rate and the result is a
    ``NO_SOLUTION`` with zero drawdown. Exhausting ``max_iterations`` keeps
    the last iterate and flags it as ``MAX_ITERATIONS``.
    """

    if max_iterations < 1:
        raise ValueError("max_iterations must be at least 1")
    if transmissivity_m2s <= 0 or flow_m3s <= 0:
        return SolverResult(0.0, 0, SolverStatus.NO_SOLUTION)

    factor = flow_m3s / (2.0 * math.pi * transmissivity_m2s)
    sqrt_k = math.sqrt(max(conductivity_ms, 0.0))
    s = seed

    for iteration in range(1, max_iterations + 1):
        if s <= 0:
            s = DRAWDOWN_FLOOR
        r_guess = SICHARDT_COEFFICIENT * s * sqrt_k
        if r_guess <= well_radius:
            return SolverResult(0.0, iteration, SolverStatus.NO_SOLUTION)

        s_next = factor * math.log(r_guess / well_radius)
        if not math.isfinite(s_next):
            return SolverResult(0.0, iteration, SolverStatus.NO_SOLUTION)
        if abs(s_next - s) < tolerance:
            return SolverResult(s_next, iteration, SolverStatus.CONVERGED)
        s = s_next

    logger.debug(
        "Simulated drawdown did not converge within %d iterations (last iterate %.4f m)",
        max_iterations,
        s,
    )
    return SolverResult(max(s, 0.0), max_iterations, SolverStatus.MAX_ITERATIONS)
