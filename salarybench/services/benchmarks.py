"""
Benchmark views for the dashboard, composed from services.stats.

Everything here works on rows already loaded from ``compensation_data``.
Each request re-scans the whole table; that is fine for a single country's
submissions but is the first thing to cache if volume grows.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from salarybench.models.compensation import CompensationData
from salarybench.services.stats import (
    GroupAverage,
    Quartiles,
    group_average,
    percentage_with_flag,
    percentile_rank,
    quartiles,
)

WORKING_DAYS_PER_MONTH = 22


@dataclass
class GroupBenchmark:
    experience_level: str
    company_size: str
    avg_gross_salary: int
    avg_net_salary: int
    avg_benefits: int
    count: int


@dataclass
class CityBenchmarks:
    city: str
    total_submissions: int
    groups: List[GroupBenchmark]
    distribution: Optional[Quartiles]
    benefits: Optional[Dict[str, int]]


def monthly_benefits_value(record: CompensationData) -> float:
    """Meal vouchers are the only benefit with a money value: per day x 22."""
    if not record.has_meal_vouchers or record.meal_vouchers_value is None:
        return 0.0
    return float(record.meal_vouchers_value) * WORKING_DAYS_PER_MONTH


def _group_key(record: CompensationData):
    return (record.experience_level, record.company_size)


def experience_benchmarks(records: Iterable[CompensationData]) -> List[GroupBenchmark]:
    records = list(records)
    gross = group_average(records, _group_key, lambda r: r.gross_salary)
    net = group_average(records, _group_key, lambda r: r.net_salary)
    benefits = group_average(records, _group_key, monthly_benefits_value)

    return [
        GroupBenchmark(
            experience_level=level,
            company_size=size,
            avg_gross_salary=gross[(level, size)].average,
            avg_net_salary=net[(level, size)].average,
            avg_benefits=benefits[(level, size)].average,
            count=gross[(level, size)].count,
        )
        for level, size in gross
    ]


def benefit_prevalence(records: Iterable[CompensationData]) -> Dict[str, int]:
    """Percentage of submissions reporting each benefit. Raises on no data."""
    records = list(records)
    return {
        "meal_vouchers": percentage_with_flag(records, lambda r: bool(r.has_meal_vouchers)),
        "health_insurance": percentage_with_flag(records, lambda r: bool(r.has_health_insurance)),
        "life_insurance": percentage_with_flag(records, lambda r: bool(r.has_life_insurance)),
    }


def build_city_benchmarks(records: Iterable[CompensationData], city: str) -> CityBenchmarks:
    in_city = [r for r in records if r.city == city]
    if not in_city:
        # No fabricated zeros: an empty city has no distribution and no benefits.
        return CityBenchmarks(
            city=city, total_submissions=0, groups=[], distribution=None, benefits=None
        )

    return CityBenchmarks(
        city=city,
        total_submissions=len(in_city),
        groups=experience_benchmarks(in_city),
        distribution=quartiles(float(r.gross_salary) for r in in_city),
        benefits=benefit_prevalence(in_city),
    )


def city_averages(records: Iterable[CompensationData]) -> Dict[str, GroupAverage]:
    return group_average(records, lambda r: r.city, lambda r: r.gross_salary)


def percentile_position(records: Iterable[CompensationData], salary: float, city: str) -> int:
    """Percentile rank of ``salary`` among gross salaries in ``city``."""
    reference = sorted(float(r.gross_salary) for r in records if r.city == city)
    return percentile_rank(salary, reference)
