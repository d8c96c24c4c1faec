from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from salarybench.core.config import settings
from salarybench.core.database import get_db
from salarybench.core.limiter import limiter
from salarybench.models.compensation import CompensationData
from salarybench.schemas.benchmarks import (
    BenchmarksResponse,
    CityAverageSchema,
    DistributionSchema,
    GroupBenchmarkSchema,
    PercentileResponse,
)
from salarybench.services.benchmarks import (
    build_city_benchmarks,
    city_averages,
    percentile_position,
)

router = APIRouter()


@router.get("", response_model=BenchmarksResponse)
@limiter.limit(settings.BURST_RATE_LIMIT)
def get_benchmarks(
    request: Request,
    city: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Salary benchmarks for one city plus the average per city"""
    city = city or settings.DEFAULT_CITY
    records = db.query(CompensationData).all()

    benchmarks = build_city_benchmarks(records, city)
    distribution = benchmarks.distribution

    return BenchmarksResponse(
        city=benchmarks.city,
        total_submissions=benchmarks.total_submissions,
        groups=[GroupBenchmarkSchema(**vars(group)) for group in benchmarks.groups],
        distribution=DistributionSchema(**vars(distribution)) if distribution else None,
        benefits=benchmarks.benefits,
        cities=[
            CityAverageSchema(city=name, avg_salary=avg.average, count=avg.count)
            for name, avg in city_averages(records).items()
        ],
    )


@router.get("/percentile", response_model=PercentileResponse)
@limiter.limit(settings.BURST_RATE_LIMIT)
def get_percentile(
    request: Request,
    salary: float = Query(gt=0),
    city: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Where a gross salary sits among the city's submissions"""
    city = city or settings.DEFAULT_CITY
    records = db.query(CompensationData).filter(CompensationData.city == city).all()
    if not records:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not enough data for this city",
        )

    return PercentileResponse(
        city=city,
        salary=salary,
        percentile_rank=percentile_position(records, salary, city),
        sample_size=len(records),
    )
