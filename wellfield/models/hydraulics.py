"""Single-well hydraulic state.

Units follow field practice at the public interface: conductivity in m/day,
pumping rate in L/s, levels as depths below ground (m) and elevations in
metres above a common datum. Transmissivity is exposed both in
:math:`m^2/day` and :math:`m^2/s`; the Thiem and Sichardt formulas work in
SI units internally.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping, Optional

from wellfield.exceptions import InputError
from wellfield.models.simulated_level import SolverResult, solve_simulated_drawdown
from wellfield.utils.numeric import (
    LITRES_PER_CUBIC_METRE,
    SECONDS_PER_DAY,
    SICHARDT_COEFFICIENT,
    parse_local,
    sanitize,
)


class WellKind(str, Enum):
    PUMPING = "pumping"
    OBSERVATION = "observation"

    @classmethod
    def parse(cls, value: Any) -> "WellKind":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for kind in cls:
            if kind.value == text:
                return kind
        raise InputError(f"Unknown well kind '{value}'.", field="kind")


_NUMERIC_FIELDS = (
    "easting",
    "northing",
    "depth",
    "ground_elevation",
    "bedrock_elevation",
    "conductivity",
    "flow",
    "pumping_hours",
    "static_level",
    "dynamic_level",
)


@dataclass(frozen=True)
class Well:
    """Raw attributes of one well.

    ``pumping_hours`` is recorded for completeness but no formula uses it.
    Observation wells never pump, so their ``flow`` is forced to zero.
    """

    id: int
    name: str = ""
    kind: WellKind = WellKind.PUMPING
    easting: float = 0.0
    northing: float = 0.0
    depth: float = 0.0
    ground_elevation: float = 0.0
    bedrock_elevation: float = 0.0
    conductivity: float = 0.0
    flow: float = 0.0
    pumping_hours: float = 0.0
    static_level: float = 0.0
    dynamic_level: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "kind", WellKind.parse(self.kind))
        for name in _NUMERIC_FIELDS:
            object.__setattr__(self, name, sanitize(getattr(self, name)))
        object.__setattr__(self, "conductivity", max(0.0, self.conductivity))
        flow = 0.0 if self.kind is WellKind.OBSERVATION else max(0.0, self.flow)
        object.__setattr__(self, "flow", flow)

    @property
    def is_observation(self) -> bool:
        return self.kind is WellKind.OBSERVATION

    @property
    def flow_m3s(self) -> float:
        return self.flow / LITRES_PER_CUBIC_METRE

    @property
    def static_elevation(self) -> float:
        return self.ground_elevation - self.static_level

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], decimal_separator: Optional[str] = None) -> "Well":
        """Build a well from a loosely typed mapping (e.g. a parsed table row).

        Numeric values may be locale formatted text. A missing ``id`` or an
        unknown ``kind`` raises :class:`InputError`.
        """

        if "id" not in data or data["id"] is None:
            raise InputError("Well record is missing its 'id'.", field="id")
        try:
            well_id = int(data["id"])
        except (TypeError, ValueError) as exc:
            raise InputError(f"Well id '{data['id']}' is not an integer.", field="id") from exc

        kwargs = {name: parse_local(data.get(name), decimal_separator) for name in _NUMERIC_FIELDS}
        return cls(
            id=well_id,
            name=str(data.get("name") or f"Well-{well_id}"),
            kind=WellKind.parse(data.get("kind") or WellKind.PUMPING),
            **kwargs,
        )

    def as_dict(self) -> dict:
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        out["kind"] = self.kind.value
        return out


@dataclass(frozen=True)
class DerivedState:
    """Hydraulic quantities derived from one :class:`Well`.

    ``dynamic_level`` equals the input level unless ``simulated`` is set, in
    which case it is ``static_level + drawdown`` from the implicit solver.
    """

    well: Well
    saturated_thickness: float
    transmissivity_m2d: float
    transmissivity_m2s: float
    conductivity_ms: float
    drawdown: float
    dynamic_level: float
    radius_of_influence: float
    specific_capacity: float
    static_elevation: float
    rock_depth: float
    simulated: bool = False
    solver: Optional[SolverResult] = None

    @property
    def well_id(self) -> int:
        return self.well.id

    def as_dict(self) -> dict:
        return {
            "id": self.well.id,
            "saturated_thickness": self.saturated_thickness,
            "transmissivity_m2d": self.transmissivity_m2d,
            "transmissivity_m2s": self.transmissivity_m2s,
            "conductivity_ms": self.conductivity_ms,
            "drawdown": self.drawdown,
            "dynamic_level": self.dynamic_level,
            "radius_of_influence": self.radius_of_influence,
            "specific_capacity": self.specific_capacity,
            "static_elevation": self.static_elevation,
            "rock_depth": self.rock_depth,
            "simulated": self.simulated,
            "solver_status": self.solver.status.value if self.solver else None,
            "solver_iterations": self.solver.iterations if self.solver else None,
        }


def sichardt_radius(drawdown: float, conductivity_ms: float) -> float:
    """Sichardt radius of influence (m) for drawdown in m and K in m/s."""

    if drawdown <= 0 or conductivity_ms <= 0:
        return 0.0
    radius = sanitize(SICHARDT_COEFFICIENT * drawdown * math.sqrt(conductivity_ms))
    return max(radius, 0.0)


def derive_state(well: Well, **solver_options) -> DerivedState:
    """Return the :class:`DerivedState` of ``well``.

    Never raises on numeric input: undefined intermediate results collapse
    to zero. ``solver_options`` are forwarded to
    :func:`~wellfield.models.simulated_level.solve_simulated_drawdown`.
    """

    h_static = max(0.0, well.depth - well.static_level)
    t_day = max(0.0, sanitize(well.conductivity * h_static))
    t_sec = t_day / SECONDS_PER_DAY
    k_sec = well.conductivity / SECONDS_PER_DAY
    saturated = max(0.0, sanitize(well.static_elevation - well.bedrock_elevation))

    dynamic_level = well.dynamic_level
    simulated = well.flow > 0 and (dynamic_level == 0 or dynamic_level <= well.static_level)
    solver = None
    if simulated:
        solver = solve_simulated_drawdown(well.flow_m3s, t_sec, k_sec, **solver_options)
        drawdown = solver.drawdown
        dynamic_level = well.static_level + drawdown
    else:
        drawdown = max(0.0, dynamic_level - well.static_level)

    radius = sichardt_radius(drawdown, k_sec)
    if not well.is_observation and drawdown > 0:
        specific_capacity = max(0.0, sanitize(well.flow / drawdown))
    else:
        specific_capacity = 0.0

    return DerivedState(
        well=well,
        saturated_thickness=saturated,
        transmissivity_m2d=t_day,
        transmissivity_m2s=t_sec,
        conductivity_ms=k_sec,
        drawdown=drawdown,
        dynamic_level=dynamic_level,
        radius_of_influence=radius,
        specific_capacity=specific_capacity,
        static_elevation=well.static_elevation,
        rock_depth=well.ground_elevation - well.bedrock_elevation,
        simulated=simulated,
        solver=solver,
    )
