import pytest

from salarybench.services.inflation import (
    Direction,
    adjust_for_inflation,
    cumulative_inflation,
)


def test_forward_applies_each_year_in_order():
    result = adjust_for_inflation(1000, Direction.FORWARD)

    assert [step.period for step in result.breakdown] == [
        "2020-2021",
        "2021-2022",
        "2022-2023",
        "2023-2024",
        "2024-2025",
    ]
    assert [step.value for step in result.breakdown] == [1039, 1182, 1305, 1377, 1439]
    assert result.adjusted == 1439
    assert result.difference == 439
    assert result.percent_change == 43.9


def test_backward_removes_inflation_newest_year_first():
    result = adjust_for_inflation(1000, "backward")

    assert result.breakdown[0].period == "2025-2024"
    assert result.breakdown[0].rate == 4.5
    assert result.breakdown[0].value == 957
    assert result.breakdown[-1].period == "2021-2020"
    assert result.adjusted == 695
    assert result.difference == -305
    assert result.percent_change == -30.5


def test_original_is_returned_unchanged():
    assert adjust_for_inflation(4050.5).original == 4050.5


@pytest.mark.parametrize("salary", [0, -100])
def test_non_positive_salary_is_rejected(salary):
    with pytest.raises(ValueError):
        adjust_for_inflation(salary)


def test_unknown_direction_is_rejected():
    with pytest.raises(ValueError):
        adjust_for_inflation(1000, "sideways")


def test_cumulative_inflation():
    assert cumulative_inflation() == 43.9


def test_result_carries_cumulative_inflation_of_the_rates_used():
    assert adjust_for_inflation(1000).cumulative_percent == 43.9
    assert adjust_for_inflation(1000, rates=[("2024-2025", 10.0)]).cumulative_percent == 10.0
