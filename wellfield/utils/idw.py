"""Inverse-distance-weighted interpolation of well values."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Sequence, Tuple

import numpy as np
from scipy.spatial.distance import cdist


class IdwPoint(NamedTuple):
    x: float
    y: float
    value: float
    radius: float = 0.0


def estimate(x: float, y: float, points: Sequence[IdwPoint], power: float = 2.0) -> float:
    """IDW estimate at ``(x, y)``.

    Returns the sample value itself when the query coincides with a sample,
    and 0 for an empty point set.
    """

    if power <= 0:
        raise ValueError("power must be positive")

    numerator = 0.0
    denominator = 0.0
    for p in points:
        d = math.hypot(x - p.x, y - p.y)
        if d == 0:
            return p.value
        w = 1.0 / d**power
        numerator += w * p.value
        denominator += w
    return numerator / denominator if denominator != 0 else 0.0


@dataclass(frozen=True)
class FieldDomain:
    """Padded bounding box of a point set plus its value range."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float
    min_value: float = 0.0
    max_value: float = 0.0

    @property
    def span_x(self) -> float:
        return self.max_x - self.min_x

    @property
    def span_y(self) -> float:
        return self.max_y - self.min_y

    @classmethod
    def from_points(cls, points: Sequence[IdwPoint], padding: float = 0.05, min_pad: float = 50.0) -> "FieldDomain":
        if not points:
            return cls(0.0, 100.0, 0.0, 100.0)
        xs = np.array([p.x for p in points], dtype=float)
        ys = np.array([p.y for p in points], dtype=float)
        vs = np.array([p.value for p in points], dtype=float)
        pad_x = float(xs.max() - xs.min()) * padding or min_pad
        pad_y = float(ys.max() - ys.min()) * padding or min_pad
        return cls(
            min_x=float(xs.min()) - pad_x,
            max_x=float(xs.max()) + pad_x,
            min_y=float(ys.min()) - pad_y,
            max_y=float(ys.max()) + pad_y,
            min_value=float(vs.min()),
            max_value=float(vs.max()),
        )

    def as_dict(self) -> dict:
        return {
            "min_x": self.min_x,
            "max_x": self.max_x,
            "min_y": self.min_y,
            "max_y": self.max_y,
            "min_value": self.min_value,
            "max_value": self.max_value,
        }


def sample_grid(
    domain: FieldDomain,
    points: Sequence[IdwPoint],
    nx: int = 50,
    ny: int = 50,
    power: float = 2.0,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Evaluate the IDW field on a regular ``ny`` x ``nx`` grid.

    Row 0 lies on the northern edge of ``domain`` so the array can be drawn
    top-down. Returns ``(xs, ys, grid)``.
    """

    if nx < 1 or ny < 1:
        raise ValueError("grid dimensions must be at least 1")
    if power <= 0:
        raise ValueError("power must be positive")

    xs = np.linspace(domain.min_x, domain.max_x, nx)
    ys = np.linspace(domain.max_y, domain.min_y, ny)
    if not points:
        return xs, ys, np.zeros((ny, nx))

    gx, gy = np.meshgrid(xs, ys)
    nodes = np.column_stack([gx.ravel(), gy.ravel()])
    samples = np.array([[p.x, p.y] for p in points], dtype=float)
    values = np.array([p.value for p in points], dtype=float)

    d = cdist(nodes, samples)
    exact = d == 0
    hit = exact.any(axis=1)
    w = np.where(exact, 0.0, 1.0 / np.where(exact, 1.0, d) ** power)
    field = (w @ values) / np.where(hit, 1.0, w.sum(axis=1))
    field[hit] = values[exact[hit].argmax(axis=1)]
    return xs, ys, field.reshape(ny, nx)
