from __future__ import annotations

from typing import List

from fastapi import APIRouter
from pydantic import BaseModel, Field

from wellfield.models.network import evaluate
from wellfield.utils.idw import FieldDomain, estimate, sample_grid

from .wells import WellPayload, to_wells

router = APIRouter(prefix="/field", tags=["field"])


class GridRequest(BaseModel):
    wells: List[WellPayload]
    nx: int = Field(50, ge=1, le=500)
    ny: int = Field(50, ge=1, le=500)
    power: float = Field(2.0, gt=0)


class EstimateRequest(BaseModel):
    wells: List[WellPayload]
    x: float
    y: float
    power: float = Field(2.0, gt=0)


@router.post("/grid")
def grid(req: GridRequest):
    points = evaluate(to_wells(req.wells)).field_points()
    domain = FieldDomain.from_points(points)
    xs, ys, values = sample_grid(domain, points, req.nx, req.ny, req.power)
    return {
        "domain": domain.as_dict(),
        "x": xs.tolist(),
        "y": ys.tolist(),
        "values": values.tolist(),
        "points": [p._asdict() for p in points],
    }


@router.post("/estimate")
def point_estimate(req: EstimateRequest):
    points = evaluate(to_wells(req.wells)).field_points()
    return {"x": req.x, "y": req.y, "value": estimate(req.x, req.y, points, req.power)}
