"""Configuration for the calibration engine."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENV_PREFIX = "WELLFIELD_"


class CalibrationSettings(BaseModel):
    """Tuning knobs of the conductivity calibration loop."""

    target_nrmse: float = Field(default=0.02, gt=0, description="NRMSE at which calibration stops")
    max_iterations: int = Field(default=10, ge=1, description="Iteration budget")
    gain: float = Field(default=0.1, gt=0, description="Relaxation gain applied to the weighted error")
    min_step_factor: float = Field(default=0.9, gt=0, le=1, description="Lower bound of the per-step factor")
    max_step_factor: float = Field(default=1.1, ge=1, description="Upper bound of the per-step factor")
    min_conductivity: float = Field(default=0.01, gt=0, description="Hard lower bound on K (m/day)")
    max_conductivity: float = Field(default=10000.0, gt=0, description="Hard upper bound on K (m/day)")
    catch_distance: float = Field(default=2000.0, ge=0, description="Fallback reach for error attribution (m)")
    change_tolerance: float = Field(default=1e-4, ge=0, description="Smallest K change counted as movement")

    model_config = {"extra": "forbid"}

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CalibrationSettings":
        """Build settings, overriding defaults from ``WELLFIELD_<FIELD>`` variables."""

        environ = os.environ if environ is None else environ
        overrides = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw.strip():
                overrides[name] = raw.strip()
        if overrides:
            logger.debug("Calibration settings overridden from environment: %s", sorted(overrides))
        return cls(**overrides)
