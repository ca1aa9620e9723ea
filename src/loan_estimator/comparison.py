"""
Scenario comparison: price several purchase scenarios side by side and diff
each against the first (the baseline).
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

from loan_estimator.amortization import round_cents
from loan_estimator.calculator import calculate
from loan_estimator.models import (
    ConventionalPurchaseInputs,
    CreditTierField,
    FhaPurchaseInputs,
    LenderConfig,
    LoanCalculationResult,
    Money,
    Percent,
    Product,
    VaPurchaseInputs,
)

MAX_SCENARIOS = 3


class ComparisonScenario(BaseModel):
    name: str
    product: Product = "conventional"
    sales_price: Money
    down_payment_percent: Percent = 20.0
    interest_rate: Optional[Percent] = None
    term_years: int = 30


class ComparisonInputs(BaseModel):
    scenarios: list[ComparisonScenario] = Field(min_length=1, max_length=MAX_SCENARIOS)
    property_tax_monthly: Optional[Money] = None
    home_insurance_monthly: Optional[Money] = None
    hoa_monthly: Money = 0.0
    credit_score_tier: CreditTierField = "740"


@dataclass
class ScenarioResult:
    name: str
    product: str
    loan_amount: float
    total_loan_amount: float
    down_payment: float
    ltv: float
    monthly_payment: float
    principal_and_interest: float
    mortgage_insurance: float
    cash_to_close: float
    monthly_payment_diff: float    # vs baseline, positive = costs more
    cash_to_close_diff: float      # vs baseline
    is_baseline: bool
    result: LoanCalculationResult


def _scenario_inputs(scenario: ComparisonScenario, shared: ComparisonInputs):
    common = dict(
        sales_price=scenario.sales_price,
        down_payment_percent=scenario.down_payment_percent,
        interest_rate=scenario.interest_rate,
        term_years=scenario.term_years,
        property_tax_monthly=shared.property_tax_monthly,
        home_insurance_monthly=shared.home_insurance_monthly,
        hoa_monthly=shared.hoa_monthly,
    )
    if scenario.product == "fha":
        return FhaPurchaseInputs(**common)
    if scenario.product == "va":
        return VaPurchaseInputs(**common)
    return ConventionalPurchaseInputs(
        **common, credit_score_tier=shared.credit_score_tier, pmi_type="monthly"
    )


def compare_scenarios(inputs: ComparisonInputs, config: LenderConfig) -> list[ScenarioResult]:
    """
    Calculate every scenario with the shared escrow figures.

    Results keep the input order; the first scenario is the baseline and
    every diff is measured against it.
    """
    priced = [
        (scenario, calculate(_scenario_inputs(scenario, inputs), config))
        for scenario in inputs.scenarios
    ]
    baseline = priced[0][1]

    return [
        ScenarioResult(
            name=scenario.name,
            product=scenario.product,
            loan_amount=result.loan_amount,
            total_loan_amount=result.total_loan_amount,
            down_payment=result.down_payment,
            ltv=result.ltv,
            monthly_payment=result.monthly_payment.total,
            principal_and_interest=result.monthly_payment.principal_and_interest,
            mortgage_insurance=result.monthly_payment.mortgage_insurance,
            cash_to_close=result.cash_to_close,
            monthly_payment_diff=round_cents(
                result.monthly_payment.total - baseline.monthly_payment.total
            ),
            cash_to_close_diff=round_cents(result.cash_to_close - baseline.cash_to_close),
            is_baseline=index == 0,
            result=result,
        )
        for index, (scenario, result) in enumerate(priced)
    ]


def compute_breakeven_months(baseline: ScenarioResult, alternative: ScenarioResult) -> float:
    """
    Months for the alternative's lower payment to repay its extra cash to close.

    Extra cash    = alternative cash to close - baseline cash to close
    Monthly saving = baseline payment - alternative payment
    Breakeven     = extra cash / monthly saving

    Returns 0.0 if the alternative needs no extra cash, and float('inf') if it
    does not save anything month to month.
    """
    extra_cash = alternative.cash_to_close - baseline.cash_to_close
    if extra_cash <= 0:
        return 0.0
    monthly_saving = baseline.monthly_payment - alternative.monthly_payment
    if monthly_saving <= 0:
        return float("inf")
    return round(extra_cash / monthly_saving, 1)


def cheapest_monthly(results: list[ScenarioResult]) -> ScenarioResult:
    return min(results, key=lambda r: r.monthly_payment)


def format_comparison_summary(results: list[ScenarioResult]) -> str:
    """One line per scenario: monthly payment and its diff against the baseline."""
    lines = []
    for r in results:
        if r.is_baseline:
            diff = "(Baseline)"
        else:
            sign = "+" if r.monthly_payment_diff >= 0 else "-"
            diff = f"({sign}${abs(r.monthly_payment_diff):,.2f}/mo)"
        lines.append(f"{r.name}: ${r.monthly_payment:,.2f}/mo {diff}")
    return "\n".join(lines)
