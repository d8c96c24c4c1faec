"""
Salary "time machine": move a monthly salary between October 2020 and
October 2025 purchasing power using Romanian annual inflation (INS data,
2024-2025 estimated).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple

from salarybench.services.stats import round_half_away

# (period, annual inflation %) oldest first
ROMANIAN_INFLATION_RATES: Tuple[Tuple[str, float], ...] = (
    ("2020-2021", 3.9),
    ("2021-2022", 13.8),
    ("2022-2023", 10.4),
    ("2023-2024", 5.5),
    ("2024-2025", 4.5),
)


class Direction(str, Enum):
    FORWARD = "forward"  # 2020 salary -> 2025 equivalent
    BACKWARD = "backward"  # 2025 salary -> 2020 equivalent


@dataclass
class BreakdownStep:
    period: str
    rate: float
    value: int


@dataclass
class InflationResult:
    original: float
    adjusted: int
    difference: int
    percent_change: float
    cumulative_percent: float
    breakdown: List[BreakdownStep] = field(default_factory=list)


def adjust_for_inflation(
    salary: float,
    direction: Direction = Direction.FORWARD,
    rates: Sequence[Tuple[str, float]] = ROMANIAN_INFLATION_RATES,
) -> InflationResult:
    if salary <= 0:
        raise ValueError("salary must be greater than 0")

    direction = Direction(direction)
    adjusted = float(salary)
    breakdown: List[BreakdownStep] = []

    if direction is Direction.FORWARD:
        for period, rate in rates:
            adjusted = adjusted * (1 + rate / 100)
            breakdown.append(BreakdownStep(period, rate, round_half_away(adjusted)))
    else:
        for period, rate in reversed(rates):
            adjusted = adjusted / (1 + rate / 100)
            # "2024-2025" is shown as "2025-2024" when walking backwards
            label = "-".join(reversed(period.split("-")))
            breakdown.append(BreakdownStep(label, rate, round_half_away(adjusted)))

    difference = adjusted - salary
    percent_change = difference / salary * 100

    return InflationResult(
        original=salary,
        adjusted=round_half_away(adjusted),
        difference=round_half_away(difference),
        percent_change=round_half_away(percent_change, 1),
        cumulative_percent=cumulative_inflation(rates),
        breakdown=breakdown,
    )


def cumulative_inflation(rates: Sequence[Tuple[str, float]] = ROMANIAN_INFLATION_RATES) -> float:
    """Total inflation over all periods, in percent, rounded to one decimal."""
    factor = 1.0
    for _, rate in rates:
        factor *= 1 + rate / 100
    return round_half_away((factor - 1) * 100, 1)
