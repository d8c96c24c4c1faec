from pydantic import BaseModel, Field
from typing import List

from salarybench.services.inflation import Direction


class InflationRequest(BaseModel):
    salary: float = Field(gt=0)
    direction: Direction = Direction.FORWARD


class BreakdownStepSchema(BaseModel):
    period: str
    rate: float
    value: int


class InflationResponse(BaseModel):
    original: float
    adjusted: int
    difference: int
    percent_change: float
    cumulative_percent: float
    breakdown: List[BreakdownStepSchema]
