from pydantic import BaseModel
from typing import Dict, List, Optional


class GroupBenchmarkSchema(BaseModel):
    experience_level: str
    company_size: str
    avg_gross_salary: int
    avg_net_salary: int
    avg_benefits: int
    count: int


class DistributionSchema(BaseModel):
    min: float
    q1: float
    median: float
    q3: float
    max: float


class CityAverageSchema(BaseModel):
    city: str
    avg_salary: int
    count: int


class BenchmarksResponse(BaseModel):
    city: str
    total_submissions: int
    groups: List[GroupBenchmarkSchema]
    # None when the city has no submissions
    distribution: Optional[DistributionSchema] = None
    benefits: Optional[Dict[str, int]] = None
    cities: List[CityAverageSchema]


class PercentileResponse(BaseModel):
    city: str
    salary: float
    percentile_rank: int
    sample_size: int
