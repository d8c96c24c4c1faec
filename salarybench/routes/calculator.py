from dataclasses import asdict

from fastapi import APIRouter, Request

from salarybench.core.config import settings
from salarybench.core.limiter import limiter
from salarybench.schemas.calculator import InflationRequest, InflationResponse
from salarybench.services.inflation import adjust_for_inflation

router = APIRouter()


@router.post("/inflation", response_model=InflationResponse)
@limiter.limit(settings.BURST_RATE_LIMIT)
def inflation_calculator(request: Request, payload: InflationRequest):
    """Compare purchasing power between October 2020 and October 2025"""
    result = adjust_for_inflation(payload.salary, payload.direction)
    return InflationResponse(**asdict(result))
