"""
Test cases for dti.py.
"""

import pytest

from loan_estimator.calculator import calculate_conventional_purchase
from loan_estimator.dti import debt_to_income
from loan_estimator.models import ConventionalPurchaseInputs, DtiResult, LenderConfig


def test_front_and_back_end_ratios():
    result = debt_to_income([6_000, 4_000], [400, 250, 350], 2_500)
    assert result.front_end_ratio == 25.0
    assert result.back_end_ratio == 35.0


def test_ratios_rounded_to_two_decimals():
    result = debt_to_income([7_000], [333], 2_222.22)
    assert result.front_end_ratio == 31.75
    assert result.back_end_ratio == 36.5


@pytest.mark.parametrize("incomes", [[], [0, 0], [0.0]])
def test_zero_income_gives_zero_ratios(incomes):
    assert debt_to_income(incomes, [500], 2_000) == DtiResult()


def test_no_other_debts():
    result = debt_to_income([8_000], [], 2_000)
    assert result.front_end_ratio == result.back_end_ratio == 25.0


def test_uses_calculated_monthly_total():
    loan = calculate_conventional_purchase(
        ConventionalPurchaseInputs(sales_price=400_000, down_payment_percent=20, interest_rate=6.5),
        LenderConfig(),
    )
    total = loan.monthly_payment.total
    result = debt_to_income([10_000], [500], total)
    assert result.front_end_ratio == round(total / 10_000 * 100, 2)
    assert result.back_end_ratio == round((500 + total) / 10_000 * 100, 2)
