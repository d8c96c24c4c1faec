"""
Descriptive statistics behind the benchmark dashboard.

Every function here is pure: it takes an in-memory snapshot of records and
returns plain numbers or mappings. The numeric rules are fixed so that the
dashboard shows the same digits it always has:

* quartiles use the floor-index nearest-rank method (no interpolation),
* percentile rank counts strictly smaller elements and divides by n,
* money and percentages are rounded half away from zero.

These are compatibility rules, not a statistical recommendation. Swapping in
interpolated percentiles would change historical dashboard values.
"""

import math
from bisect import bisect_left
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, Hashable, Iterable, List, Sequence


class StatsError(ValueError):
    """Base class for aggregation errors."""


class EmptyInputError(StatsError):
    """Raised when a statistic is requested over zero values."""


class DivisionByZeroGuard(StatsError, ZeroDivisionError):
    """Raised when a percentage is requested over zero records."""


@dataclass(frozen=True)
class Quartiles:
    min: float
    q1: float
    median: float
    q3: float
    max: float


@dataclass(frozen=True)
class GroupAverage:
    average: int
    count: int


def round_half_away(value: float, ndigits: int = 0):
    """
    Round half away from zero.

    Works on the exact binary value of ``value`` so 2.5 -> 3 and -2.5 -> -3.
    Returns an int when ``ndigits`` is 0, a float otherwise.
    """
    # ROUND_HALF_UP in decimal rounds ties away from zero
    quantum = Decimal(1).scaleb(-ndigits)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    if ndigits == 0:
        return int(rounded)
    return float(rounded)


def _value_at(sorted_values: Sequence[float], fraction: float) -> float:
    n = len(sorted_values)
    index = min(max(math.floor(fraction * n), 0), n - 1)
    return sorted_values[index]


def quartiles(values: Iterable[float]) -> Quartiles:
    """Min, Q1, median, Q3 and max using the floor-index rule.

    ``quartiles([10, 20, 30, 40])`` gives a median of 30, not 25.
    """
    ordered = sorted(values)
    if not ordered:
        raise EmptyInputError("quartiles() requires at least one value")

    return Quartiles(
        min=ordered[0],
        q1=_value_at(ordered, 0.25),
        median=_value_at(ordered, 0.5),
        q3=_value_at(ordered, 0.75),
        max=ordered[-1],
    )


def percentile_rank(value: float, sorted_ascending: Sequence[float]) -> int:
    """
    Percentage of the reference population strictly below ``value``.

    Ties are not averaged: with [10, 50, 50, 50, 90] the rank of 50 is 20.
    A value above every element ranks 100.
    """
    n = len(sorted_ascending)
    if n == 0:
        raise EmptyInputError("percentile_rank() requires a non-empty reference")

    index = bisect_left(sorted_ascending, value)
    if index == n:
        return 100
    return round_half_away(100 * index / n)


def group_average(
    records: Iterable[Any],
    key_fn: Callable[[Any], Hashable],
    value_fn: Callable[[Any], float],
) -> Dict[Hashable, GroupAverage]:
    """Mean of ``value_fn`` per ``key_fn`` partition.

    Keys keep first-seen order. A key with no records is simply absent, which
    callers must read as "not enough data".
    """
    totals: Dict[Hashable, List[float]] = {}
    for record in records:
        key = key_fn(record)
        bucket = totals.setdefault(key, [0.0, 0])
        bucket[0] += float(value_fn(record))
        bucket[1] += 1

    return {
        key: GroupAverage(average=round_half_away(total / count), count=count)
        for key, (total, count) in totals.items()
    }


def percentage_with_flag(records: Iterable[Any], flag_fn: Callable[[Any], bool]) -> int:
    """Share of records for which ``flag_fn`` is true, as a whole percentage."""
    total = 0
    flagged = 0
    for record in records:
        total += 1
        if flag_fn(record):
            flagged += 1

    if total == 0:
        raise DivisionByZeroGuard("percentage_with_flag() requires at least one record")
    return round_half_away(100 * flagged / total)
