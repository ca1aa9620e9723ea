"""
Prepaid items collected at closing: per-diem interest and escrow reserves.
"""

from typing import Optional

from loan_estimator.models import (
    LenderConfig,
    LoanInputsBase,
    ManualValue,
    Override,
    PrepaidItems,
)


def prepaid_interest(loan_amount: float, annual_rate_percent: float, days: int) -> float:
    """Per-diem interest from closing to the first payment period, on a 365-day year."""
    if loan_amount <= 0 or days <= 0:
        return 0.0
    return loan_amount * annual_rate_percent / 100 / 365 * days


def tax_reserves(monthly_tax: float, months: int) -> float:
    return max(0.0, monthly_tax) * max(0, months)


def insurance_reserves(monthly_insurance: float, months: int) -> float:
    return max(0.0, monthly_insurance) * max(0, months)


def resolve(override: Override, computed: float) -> float:
    """Return the caller's manual value (zero included), else the computed one."""
    if isinstance(override, ManualValue):
        return override.value
    return computed


def _count(value: Optional[int], default: int) -> int:
    return default if value is None else value


def compute_prepaids(
    inputs: LoanInputsBase,
    config: LenderConfig,
    loan_amount: float,
    interest_rate: float,
    monthly_tax: float,
    monthly_insurance: float,
    refinance: bool = False,
) -> PrepaidItems:
    """
    Build the prepaid lines for a loan.

    Day and month counts come from the inputs; config defaults fill only
    the counts the caller left out. A manual amount replaces the formula
    for its own line and nothing else.
    """
    defaults = config.prepaids
    days = _count(inputs.prepaid_interest_days, defaults.interest_days)
    if refinance:
        tax_months = _count(inputs.prepaid_tax_months, defaults.refinance_tax_months)
        insurance_months = _count(
            inputs.prepaid_insurance_months, defaults.refinance_insurance_months
        )
    else:
        tax_months = _count(inputs.prepaid_tax_months, defaults.purchase_tax_months)
        insurance_months = _count(
            inputs.prepaid_insurance_months, defaults.purchase_insurance_months
        )

    return PrepaidItems(
        prepaid_interest=resolve(
            inputs.prepaid_interest,
            prepaid_interest(loan_amount, interest_rate, days),
        ),
        prepaid_interest_days=days,
        tax_reserves=resolve(inputs.tax_reserves, tax_reserves(monthly_tax, tax_months)),
        prepaid_tax_months=tax_months,
        insurance_reserves=resolve(
            inputs.insurance_reserves,
            insurance_reserves(monthly_insurance, insurance_months),
        ),
        prepaid_insurance_months=insurance_months,
    )
