from __future__ import annotations

from typing import List, Literal

from fastapi import APIRouter
from pydantic import BaseModel, Field

from wellfield.fitters.metrics import fit_metrics, residual_table
from wellfield.models.hydraulics import Well
from wellfield.models.network import evaluate

router = APIRouter(prefix="/wells", tags=["wells"])


class WellPayload(BaseModel):
    id: int
    name: str = ""
    kind: Literal["pumping", "observation"] = "pumping"
    easting: float = Field(0.0, description="X coordinate (m)")
    northing: float = Field(0.0, description="Y coordinate (m)")
    depth: float = Field(0.0, ge=0, description="total well depth (m)")
    ground_elevation: float = Field(0.0, description="ground surface elevation (m)")
    bedrock_elevation: float = Field(0.0, description="aquifer base elevation (m)")
    conductivity: float = Field(0.0, description="hydraulic conductivity (m/day)")
    flow: float = Field(0.0, description="pumping rate (L/s)")
    pumping_hours: float = Field(0.0, description="daily pumping hours")
    static_level: float = Field(0.0, description="static level depth (m)")
    dynamic_level: float = Field(0.0, description="dynamic level depth (m), 0 when unknown")

    def to_well(self) -> Well:
        return Well(**self.model_dump())


class WellsRequest(BaseModel):
    wells: List[WellPayload]


def to_wells(payloads: List[WellPayload]) -> List[Well]:
    return [payload.to_well() for payload in payloads]


@router.post("/evaluate")
def evaluate_wells(req: WellsRequest):
    evaluation = evaluate(to_wells(req.wells))
    return {
        "wells": [result.as_dict() for result in evaluation.results],
        "matrix": evaluation.matrix.as_dict(),
        "metrics": fit_metrics(evaluation.results).as_dict(),
        "residuals": [row.as_dict() for row in residual_table(evaluation.results)],
    }
