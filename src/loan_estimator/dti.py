"""Front-end and back-end debt-to-income ratios for a calculated payment."""

from typing import Iterable

from loan_estimator.models import DtiResult


def debt_to_income(
    incomes: Iterable[float],
    debt_payments: Iterable[float],
    housing_payment: float,
) -> DtiResult:
    """
    Ratios against gross monthly income, in percent, rounded to 2 decimals.

    housing_payment is the full monthly payment (PITI plus MI, HOA and flood),
    i.e. result.monthly_payment.total. No income gives 0 for both ratios.
    """
    total_income = sum(incomes)
    if total_income <= 0:
        return DtiResult()

    total_debts = sum(debt_payments)
    return DtiResult(
        front_end_ratio=round(housing_payment / total_income * 100, 2),
        back_end_ratio=round((total_debts + housing_payment) / total_income * 100, 2),
    )
