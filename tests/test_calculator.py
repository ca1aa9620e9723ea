"""
Scenario tests for calculator.py: purchase and refinance for every product,
dispatch and the input boundary.
"""

import json

import pytest
from pydantic import ValidationError

from loan_estimator.amortization import monthly_payment, round_cents
from loan_estimator.calculator import (
    CASH_OUT_LTV_EXCEEDED,
    CLOSING_COSTS_OVERRIDDEN,
    IRRRL_CASH_OUT_IGNORED,
    LTV_OVER_100,
    ConfigurationError,
    calculate,
    calculate_conventional_purchase,
    calculate_conventional_refinance,
    calculate_fha_purchase,
    calculate_fha_refinance,
    calculate_va_purchase,
    calculate_va_refinance,
    parse_loan_inputs,
)
from loan_estimator.models import (
    ConventionalPurchaseInputs,
    ConventionalRefinanceInputs,
    FhaPurchaseInputs,
    FhaRefinanceInputs,
    LenderConfig,
    LoanCalculationResult,
    VaPurchaseInputs,
    VaRefinanceInputs,
    manual,
)

CONFIG = LenderConfig()


# ── Helpers ───────────────────────────────────────────────────────────────────

def make_conventional(**kwargs) -> ConventionalPurchaseInputs:
    defaults = dict(
        sales_price=400_000,
        down_payment_percent=20,
        interest_rate=6.5,
        term_years=30,
    )
    defaults.update(kwargs)
    return ConventionalPurchaseInputs(**defaults)


def make_fha(**kwargs) -> FhaPurchaseInputs:
    defaults = dict(sales_price=300_000, down_payment_percent=3.5, interest_rate=6.25)
    defaults.update(kwargs)
    return FhaPurchaseInputs(**defaults)


def make_va(**kwargs) -> VaPurchaseInputs:
    defaults = dict(sales_price=350_000, interest_rate=6.0)
    defaults.update(kwargs)
    return VaPurchaseInputs(**defaults)


def assert_monthly_total_exact(result: LoanCalculationResult) -> None:
    mp = result.monthly_payment
    assert mp.total == round(
        mp.principal_and_interest
        + mp.property_tax
        + mp.home_insurance
        + mp.mortgage_insurance
        + mp.hoa_dues
        + mp.flood_insurance,
        2,
    )


def assert_closing_totals_consistent(result: LoanCalculationResult) -> None:
    cc = result.closing_costs
    assert cc.computed_closing_costs == round(
        cc.total_prepaids + cc.total_lender_fees + cc.total_third_party_fees, 2
    )
    assert cc.net_closing_costs == round(
        cc.total_closing_costs - cc.seller_credit - cc.lender_credit, 2
    )


# ── Conventional purchase ─────────────────────────────────────────────────────

def test_conventional_20_percent_down():
    result = calculate_conventional_purchase(make_conventional(), CONFIG)

    assert result.down_payment == 80_000.0
    assert result.loan_amount == 320_000.0
    assert result.total_loan_amount == 320_000.0
    assert result.ltv == pytest.approx(80.0)
    assert result.monthly_payment.mortgage_insurance == 0.0
    assert result.mortgage_insurance.kind == "none"
    assert result.monthly_payment.principal_and_interest == round_cents(
        monthly_payment(320_000, 6.5, 30)
    )
    assert result.monthly_payment.principal_and_interest == 2022.62
    assert result.down_payment + result.loan_amount == 400_000.0
    assert_monthly_total_exact(result)
    assert_closing_totals_consistent(result)


def test_escrow_defaults_from_config_rates():
    result = calculate_conventional_purchase(make_conventional(), CONFIG)
    # 1.25% and 0.35% of the sales price, per month
    assert result.monthly_payment.property_tax == 416.67
    assert result.monthly_payment.home_insurance == 116.67


def test_monthly_escrow_wins_over_annual():
    inputs = make_conventional(
        property_tax_monthly=500,
        property_tax_annual=12_000,
        home_insurance_annual=1_800,
    )
    result = calculate_conventional_purchase(inputs, CONFIG)
    assert result.monthly_payment.property_tax == 500.0
    assert result.monthly_payment.home_insurance == 150.0


def test_down_payment_amount_is_authoritative():
    inputs = make_conventional(down_payment_amount=100_000, down_payment_percent=5)
    result = calculate_conventional_purchase(inputs, CONFIG)
    assert result.down_payment == 100_000.0
    assert result.down_payment_percent == pytest.approx(25.0)
    assert result.loan_amount == 300_000.0


def test_default_down_payment_and_rate_from_config():
    inputs = ConventionalPurchaseInputs(sales_price=400_000)
    result = calculate_conventional_purchase(inputs, CONFIG)
    assert result.down_payment == 80_000.0
    assert result.interest_rate == CONFIG.rates.conventional


def test_monthly_pmi_above_80_ltv():
    result = calculate_conventional_purchase(make_conventional(down_payment_percent=10), CONFIG)
    assert result.ltv == pytest.approx(90.0)
    assert result.mortgage_insurance.annual_rate == 0.19
    assert result.monthly_payment.mortgage_insurance == 57.0
    assert_monthly_total_exact(result)


def test_pmi_rises_as_credit_worsens():
    good = calculate_conventional_purchase(
        make_conventional(down_payment_percent=5, credit_score_tier="760"), CONFIG
    )
    poor = calculate_conventional_purchase(
        make_conventional(down_payment_percent=5, credit_score_tier="620"), CONFIG
    )
    assert poor.monthly_payment.mortgage_insurance > good.monthly_payment.mortgage_insurance


def test_single_financed_pmi_raises_p_and_i():
    monthly = calculate_conventional_purchase(make_conventional(down_payment_percent=10), CONFIG)
    financed = calculate_conventional_purchase(
        make_conventional(down_payment_percent=10, pmi_type="single_financed"), CONFIG
    )
    assert financed.total_loan_amount == round(360_000 + 360_000 * 0.60 / 100, 2)
    assert financed.monthly_payment.principal_and_interest > monthly.monthly_payment.principal_and_interest
    assert financed.monthly_payment.mortgage_insurance == 0.0


def test_single_cash_pmi_paid_at_closing():
    result = calculate_conventional_purchase(
        make_conventional(down_payment_percent=10, pmi_type="single_cash"), CONFIG
    )
    assert result.total_loan_amount == result.loan_amount
    assert result.closing_costs.mortgage_insurance_premium == 2_160.0
    assert result.monthly_payment.mortgage_insurance == 0.0


def test_purchase_cash_to_close():
    inputs = make_conventional(earnest_deposit=10_000, seller_credit=5_000, lender_credit=1_000)
    result = calculate_conventional_purchase(inputs, CONFIG)
    cc = result.closing_costs
    assert cc.seller_credit == 5_000.0
    assert cc.lender_credit == 1_000.0
    assert result.cash_to_close == round(80_000 + cc.net_closing_costs - 10_000, 2)


def test_seller_credit_percent_of_price():
    result = calculate_conventional_purchase(make_conventional(seller_credit_percent=3), CONFIG)
    assert result.closing_costs.seller_credit == 12_000.0


def test_prepaid_interest_uses_caller_days():
    result = calculate_conventional_purchase(
        make_conventional(prepaid_interest_days=10), CONFIG
    )
    assert result.closing_costs.prepaid_interest_days == 10
    assert result.closing_costs.prepaid_interest == round(320_000 * 6.5 / 100 / 365 * 10, 2)


def test_manual_closing_cost_total():
    result = calculate_conventional_purchase(
        make_conventional(closing_costs_total=manual(8_000)), CONFIG
    )
    cc = result.closing_costs
    assert cc.total_closing_costs == 8_000.0
    assert cc.computed_closing_costs != 8_000.0
    assert cc.override_adjustment == round(8_000 - cc.computed_closing_costs, 2)
    assert result.cash_to_close == round(80_000 + cc.net_closing_costs, 2)
    assert CLOSING_COSTS_OVERRIDDEN in result.warnings


def test_apr_not_below_note_rate():
    result = calculate_conventional_purchase(make_conventional(loan_fee_percent=1), CONFIG)
    assert result.apr > result.interest_rate


def test_zero_sales_price_does_not_raise():
    result = calculate_conventional_purchase(make_conventional(sales_price=0), CONFIG)
    assert result.loan_amount == 0.0
    assert result.ltv == 0.0
    assert result.down_payment_percent == 0.0
    assert result.monthly_payment.principal_and_interest == 0.0
    assert result.apr == 0.0


def test_negative_inputs_are_clamped():
    inputs = make_conventional(sales_price=-400_000, hoa_monthly=-50)
    assert inputs.sales_price == 0.0
    assert inputs.hoa_monthly == 0.0
    calculate_conventional_purchase(inputs, CONFIG)


def test_down_payment_larger_than_price():
    result = calculate_conventional_purchase(
        make_conventional(down_payment_amount=500_000), CONFIG
    )
    assert result.loan_amount == 0.0
    assert result.down_payment == 400_000.0


@pytest.mark.parametrize("price", [300_000.01, 300_000.03, 300_000.05, 300_001.99, 412_345.67])
@pytest.mark.parametrize("down_pct", [50, 3.5, 12.5])
def test_down_payment_and_loan_sum_to_price_on_odd_cents(price, down_pct):
    result = calculate_conventional_purchase(
        make_conventional(sales_price=price, down_payment_percent=down_pct), CONFIG
    )
    assert round(result.down_payment + result.loan_amount, 2) == price
    assert result.loan_amount == round(price - result.down_payment, 2)


# ── FHA purchase ──────────────────────────────────────────────────────────────

def test_fha_3_5_percent_down():
    result = calculate_fha_purchase(make_fha(), CONFIG)

    assert result.down_payment == 10_500.0
    assert result.loan_amount == 289_500.0
    assert result.mortgage_insurance.financed_premium == 5_066.25
    assert result.total_loan_amount == 294_566.25
    assert result.monthly_payment.principal_and_interest == round_cents(
        monthly_payment(294_566.25, 6.25, 30)
    )
    assert result.monthly_payment.mortgage_insurance == round(289_500 * 0.55 / 100 / 12, 2)
    assert_monthly_total_exact(result)
    assert_closing_totals_consistent(result)


def test_fha_default_down_payment_is_minimum():
    result = calculate_fha_purchase(FhaPurchaseInputs(sales_price=300_000), CONFIG)
    assert result.down_payment == 10_500.0


def test_fha_prepaid_interest_on_total_loan():
    result = calculate_fha_purchase(make_fha(), CONFIG)
    cc = result.closing_costs
    assert cc.prepaid_interest == round(294_566.25 * 6.25 / 100 / 365 * cc.prepaid_interest_days, 2)


def test_fha_upfront_premium_not_in_cash_to_close():
    result = calculate_fha_purchase(make_fha(), CONFIG)
    assert result.closing_costs.mortgage_insurance_premium == 0.0
    assert result.cash_to_close == round(10_500 + result.closing_costs.net_closing_costs, 2)


def test_fha_manual_annual_mip():
    result = calculate_fha_purchase(make_fha(annual_mip_monthly=manual(0)), CONFIG)
    assert result.monthly_payment.mortgage_insurance == 0.0
    assert result.total_loan_amount == 294_566.25


# ── VA purchase ───────────────────────────────────────────────────────────────

def test_va_zero_down_funding_fee_financed():
    result = calculate_va_purchase(make_va(), CONFIG)
    assert result.down_payment == 0.0
    assert result.loan_amount == 350_000.0
    assert result.mortgage_insurance.upfront_rate == 2.15
    assert result.total_loan_amount == 357_525.0
    assert result.monthly_payment.mortgage_insurance == 0.0


def test_va_disabled_veteran_pays_no_fee():
    result = calculate_va_purchase(make_va(is_disabled_veteran=True), CONFIG)
    assert result.mortgage_insurance.financed_premium == 0.0
    assert result.total_loan_amount == result.loan_amount


def test_va_down_payment_band():
    result = calculate_va_purchase(make_va(down_payment_percent=10, va_usage="subsequent"), CONFIG)
    assert result.mortgage_insurance.upfront_rate == 1.25


# ── Refinance ─────────────────────────────────────────────────────────────────

def make_refi(cls=ConventionalRefinanceInputs, **kwargs):
    defaults = dict(
        property_value=500_000,
        existing_loan_balance=300_000,
        new_loan_amount=300_000,
        interest_rate=6.0,
    )
    defaults.update(kwargs)
    return cls(**defaults)


def test_conventional_rate_term_refinance():
    result = calculate_conventional_refinance(make_refi(), CONFIG)
    cc = result.closing_costs

    assert result.purpose == "refinance"
    assert result.loan_amount == 300_000.0
    assert result.ltv == pytest.approx(60.0)
    assert result.down_payment == 0.0
    assert cc.owner_title_policy == 0.0
    assert cc.pest_inspection_fee == cc.property_inspection_fee == cc.pool_inspection_fee == 0.0
    assert cc.seller_credit == 0.0
    assert result.cash_to_close == cc.net_closing_costs
    assert_monthly_total_exact(result)
    assert_closing_totals_consistent(result)


def test_cash_out_refinance_returns_cash():
    result = calculate_conventional_refinance(
        make_refi(new_loan_amount=400_000, refinance_type="cash_out"), CONFIG
    )
    assert result.cash_to_close == round(
        300_000 + result.closing_costs.net_closing_costs - 400_000, 2
    )
    assert result.cash_to_close < 0
    assert CASH_OUT_LTV_EXCEEDED not in result.warnings


def test_cash_out_over_limit_is_flagged():
    result = calculate_conventional_refinance(
        make_refi(new_loan_amount=425_000, refinance_type="cash_out"), CONFIG
    )
    assert CASH_OUT_LTV_EXCEEDED in result.warnings


def test_refinance_ltv_over_100_is_flagged_not_raised():
    result = calculate_conventional_refinance(make_refi(new_loan_amount=550_000), CONFIG)
    assert result.ltv == pytest.approx(110.0)
    assert LTV_OVER_100 in result.warnings


def test_zero_property_value_refinance():
    result = calculate_conventional_refinance(make_refi(property_value=0), CONFIG)
    assert result.ltv == 0.0
    assert result.mortgage_insurance.kind == "none"


def test_fha_streamline_uses_reduced_schedule():
    full = calculate_fha_refinance(make_refi(FhaRefinanceInputs), CONFIG)
    streamline = calculate_fha_refinance(make_refi(FhaRefinanceInputs, is_streamline=True), CONFIG)

    assert full.mortgage_insurance.upfront_rate == 1.75
    assert streamline.mortgage_insurance.upfront_rate == 0.55
    assert streamline.total_loan_amount == 301_650.0
    assert streamline.closing_costs.appraisal_fee == 0.0
    assert streamline.closing_costs.underwriting_fee == 0.0
    assert full.closing_costs.appraisal_fee > 0
    assert streamline.closing_costs.total_lender_fees < full.closing_costs.total_lender_fees


def test_va_irrrl():
    result = calculate_va_refinance(make_refi(VaRefinanceInputs, is_irrrl=True), CONFIG)
    assert result.mortgage_insurance.upfront_rate == 0.50
    assert result.total_loan_amount == 301_500.0
    assert result.closing_costs.appraisal_fee == 0.0


def test_va_irrrl_ignores_cash_out():
    result = calculate_va_refinance(
        make_refi(VaRefinanceInputs, is_irrrl=True, cash_out_amount=20_000), CONFIG
    )
    assert result.mortgage_insurance.upfront_rate == 0.50
    assert IRRRL_CASH_OUT_IGNORED in result.warnings


def test_va_cash_out_refinance_rate():
    result = calculate_va_refinance(
        make_refi(VaRefinanceInputs, new_loan_amount=400_000, cash_out_amount=100_000),
        CONFIG,
    )
    assert result.mortgage_insurance.upfront_rate == 2.15


@pytest.mark.parametrize("usage, rate", [("first", 2.15), ("subsequent", 3.30)])
def test_va_plain_refinance_priced_as_zero_down(usage, rate):
    """Equity does not lower the fee: a 60% LTV refinance takes the under-5% band."""
    result = calculate_va_refinance(make_refi(VaRefinanceInputs, va_usage=usage), CONFIG)
    assert result.ltv == pytest.approx(60.0)
    assert result.mortgage_insurance.upfront_rate == rate
    assert result.total_loan_amount == round(300_000 * (1 + rate / 100), 2)


def test_va_refinance_disabled_veteran():
    result = calculate_va_refinance(
        make_refi(VaRefinanceInputs, is_irrrl=True, is_disabled_veteran=True), CONFIG
    )
    assert result.total_loan_amount == result.loan_amount


# ── Dispatch & boundary ───────────────────────────────────────────────────────

def test_calculate_dispatches_on_purpose_and_product():
    assert calculate(make_fha(), CONFIG) == calculate_fha_purchase(make_fha(), CONFIG)
    refi = make_refi(VaRefinanceInputs, is_irrrl=True)
    assert calculate(refi, CONFIG) == calculate_va_refinance(refi, CONFIG)


def test_calculate_requires_config():
    with pytest.raises(ConfigurationError):
        calculate(make_conventional(), None)
    assert issubclass(ConfigurationError, ValueError)


def test_calculate_is_deterministic():
    first = calculate(make_conventional(down_payment_percent=5), CONFIG)
    second = calculate(make_conventional(down_payment_percent=5), CONFIG)
    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_parse_raw_mapping():
    inputs = parse_loan_inputs(
        {
            "purpose": "refinance",
            "product": "fha",
            "property_value": 400_000,
            "existing_loan_balance": 250_000,
            "new_loan_amount": 250_000,
            "is_streamline": True,
            "closing_costs_total": None,
        }
    )
    assert isinstance(inputs, FhaRefinanceInputs)
    assert inputs.is_streamline
    assert inputs.closing_costs_total.mode == "auto"


def test_parse_defaults_to_purchase():
    inputs = parse_loan_inputs({"product": "va", "sales_price": 300_000})
    assert isinstance(inputs, VaPurchaseInputs)


def test_parse_coerces_credit_tier_and_override_shorthand():
    inputs = parse_loan_inputs(
        {
            "product": "conventional",
            "sales_price": 400_000,
            "credit_score_tier": 740,
            "closing_costs_total": 0,
        }
    )
    assert inputs.credit_score_tier == "740"
    assert inputs.closing_costs_total.mode == "manual"
    assert inputs.closing_costs_total.value == 0.0


def test_parse_rejects_unknown_product():
    with pytest.raises(ValidationError):
        parse_loan_inputs({"product": "usda", "sales_price": 300_000})


def test_calculate_accepts_raw_mapping():
    result = calculate(
        {"product": "conventional", "sales_price": 400_000, "down_payment_percent": 20, "interest_rate": 6.5},
        CONFIG,
    )
    assert result.loan_amount == 320_000.0


def test_result_round_trips_through_json():
    result = calculate(make_fha(), CONFIG)
    restored = LoanCalculationResult.model_validate(json.loads(result.model_dump_json()))
    assert restored == result
