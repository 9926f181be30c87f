from __future__ import annotations

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from wellfield.config import CalibrationSettings
from wellfield.fitters.calibration import calibrate as run_calibration

from .wells import WellPayload, to_wells

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calibrate", tags=["calibrate"])


class CalibrateRequest(BaseModel):
    wells: List[WellPayload]
    strategy: Literal["relaxation", "least_squares"] = "relaxation"
    target_nrmse: Optional[float] = Field(None, gt=0)
    max_iterations: Optional[int] = Field(None, ge=1, le=1000)


@router.post("")
def calibrate(req: CalibrateRequest):
    if not req.wells:
        raise HTTPException(status_code=400, detail="wells must contain at least one well")

    settings = CalibrationSettings.from_env()
    try:
        result = run_calibration(
            to_wells(req.wells),
            target_nrmse=req.target_nrmse,
            max_iterations=req.max_iterations,
            strategy=req.strategy,
            settings=settings,
        )
    except Exception as exc:  # pragma: no cover - surfaced via HTTP
        logger.exception("Calibration failed")
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    body = result.as_dict()
    body["strategy"] = req.strategy
    return body
