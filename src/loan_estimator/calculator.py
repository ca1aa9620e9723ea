"""
Loan calculators: purchase and refinance for conventional, FHA and VA.

Key conventions:
- The down payment and base loan are rounded to cents up front so they sum
  to the price. Everything else stays unrounded through the math and is
  rounded once when the result is built. Totals are sums of the rounded
  components.
- Financed premiums (single PMI, UFMIP, VA funding fee) are added to the base
  loan BEFORE P&I and prepaid interest are computed.
- Nothing here raises on odd numbers: zero prices, values or loans give a
  zeroed result. Only a missing config is an error.
"""

import logging
from typing import Any, Callable, Optional, Union

from pydantic import TypeAdapter

from loan_estimator.amortization import (
    annual_percentage_rate,
    loan_to_value,
    monthly_payment,
    percent_of,
    round_cents,
)
from loan_estimator.closing_costs import aggregate_closing_costs
from loan_estimator.insurance import conventional_pmi, fha_mip, va_funding_fee
from loan_estimator.models import (
    ClosingCosts,
    ConventionalPurchaseInputs,
    ConventionalRefinanceInputs,
    FhaPurchaseInputs,
    FhaRefinanceInputs,
    LenderConfig,
    LoanCalculationResult,
    LoanInputs,
    LoanInputsBase,
    ManualValue,
    MonthlyPayment,
    MortgageInsurance,
    Override,
    Product,
    PurchaseInputs,
    RefinanceInputs,
    VaPurchaseInputs,
    VaRefinanceInputs,
)
from loan_estimator.prepaids import compute_prepaids

logger = logging.getLogger(__name__)

LTV_OVER_100 = "LTV_OVER_100"
CLOSING_COSTS_OVERRIDDEN = "CLOSING_COSTS_OVERRIDDEN"
CASH_OUT_LTV_EXCEEDED = "CASH_OUT_LTV_EXCEEDED"
IRRRL_CASH_OUT_IGNORED = "IRRRL_CASH_OUT_IGNORED"

_loan_inputs_adapter = TypeAdapter(LoanInputs)


class ConfigurationError(ValueError):
    """Raised when a calculation is requested without a lender configuration."""


def parse_loan_inputs(data: Any):
    """
    Validate a raw mapping into the matching inputs model.

    The mapping is dispatched on "purpose" (default "purchase") and then on
    "product". Money fields are clamped to zero; an unknown product raises
    pydantic.ValidationError.
    """
    return _loan_inputs_adapter.validate_python(data)


# ── Shared helpers ────────────────────────────────────────────────────────────

def _interest_rate(inputs: LoanInputsBase, config: LenderConfig, product: Product) -> float:
    if inputs.interest_rate is None:
        return config.default_rate(product)
    return inputs.interest_rate


def _monthly_escrow(
    monthly: Optional[float],
    annual: Optional[float],
    default_rate_pct: float,
    basis: float,
) -> float:
    """Monthly amount wins, then annual / 12, then the config rate on the basis."""
    if monthly is not None:
        return monthly
    if annual is not None:
        return annual / 12
    return max(0.0, basis) * default_rate_pct / 100 / 12


def _escrow(inputs: LoanInputsBase, config: LenderConfig, basis: float) -> tuple[float, float]:
    tax = _monthly_escrow(
        inputs.property_tax_monthly,
        inputs.property_tax_annual,
        config.escrow.property_tax_pct,
        basis,
    )
    insurance = _monthly_escrow(
        inputs.home_insurance_monthly,
        inputs.home_insurance_annual,
        config.escrow.home_insurance_pct,
        basis,
    )
    return tax, insurance


def _down_payment(inputs: PurchaseInputs, default_pct: float) -> float:
    """
    Resolve the down payment for a purchase.

    An entered amount is authoritative, then an entered percent, then the
    product default. Never more than the sales price.
    """
    price = inputs.sales_price
    if inputs.down_payment_amount is not None:
        down = inputs.down_payment_amount
    elif inputs.down_payment_percent is not None:
        down = price * inputs.down_payment_percent / 100
    else:
        down = price * default_pct / 100
    return min(down, price)


def _seller_credit(inputs: PurchaseInputs) -> float:
    if inputs.seller_credit_percent is not None:
        return inputs.sales_price * inputs.seller_credit_percent / 100
    return inputs.seller_credit


def _manual_amount(override: Override) -> Optional[float]:
    if isinstance(override, ManualValue):
        return override.value
    return None


def _monthly_breakdown(
    principal_and_interest: float,
    property_tax: float,
    home_insurance: float,
    mortgage_insurance: float,
    hoa_dues: float,
    flood_insurance: float,
) -> MonthlyPayment:
    components = {
        "principal_and_interest": round_cents(principal_and_interest),
        "property_tax": round_cents(property_tax),
        "home_insurance": round_cents(home_insurance),
        "mortgage_insurance": round_cents(mortgage_insurance),
        "hoa_dues": round_cents(hoa_dues),
        "flood_insurance": round_cents(flood_insurance),
    }
    return MonthlyPayment(**components, total=round_cents(sum(components.values())))


def _rounded(mi: MortgageInsurance) -> MortgageInsurance:
    return mi.model_copy(
        update={
            "monthly": round_cents(mi.monthly),
            "financed_premium": round_cents(mi.financed_premium),
            "cash_premium": round_cents(mi.cash_premium),
        }
    )


def _warnings(ltv: float, closing_costs: ClosingCosts, extra: tuple[str, ...] = ()) -> tuple[str, ...]:
    codes = list(extra)
    if ltv > 100:
        logger.warning("LTV %.2f%% exceeds 100%%", ltv)
        codes.append(LTV_OVER_100)
    if closing_costs.is_total_overridden:
        codes.append(CLOSING_COSTS_OVERRIDDEN)
    return tuple(codes)


def _apr(total_loan: float, closing_costs: ClosingCosts, monthly_pi: float, term_years: int) -> float:
    # Lender fees (incl. any cash MI premium) and prepaid interest are finance charges
    finance_charges = closing_costs.total_lender_fees + closing_costs.prepaid_interest
    return annual_percentage_rate(total_loan, finance_charges, monthly_pi, term_years)


# ── Purchase ──────────────────────────────────────────────────────────────────

def _purchase(
    inputs: PurchaseInputs,
    config: LenderConfig,
    default_down_pct: float,
    price_insurance: Callable[[float, float, float], MortgageInsurance],
) -> LoanCalculationResult:
    """
    Shared purchase flow. price_insurance(base_loan, ltv, down_pct) returns
    the product's mortgage insurance.
    """
    product = inputs.product
    rate = _interest_rate(inputs, config, product)
    price = round_cents(inputs.sales_price)

    # The loan is the exact complement of the cent-rounded down payment
    down = round_cents(_down_payment(inputs, default_down_pct))
    base_loan = max(0.0, round_cents(price - down))
    down_pct = percent_of(down, price)
    ltv = loan_to_value(base_loan, price)

    mi = price_insurance(base_loan, ltv, down_pct)
    total_loan = base_loan + mi.financed_premium
    pi = monthly_payment(total_loan, rate, inputs.term_years)
    tax, insurance = _escrow(inputs, config, price)

    prepaids = compute_prepaids(inputs, config, total_loan, rate, tax, insurance)
    closing_costs = aggregate_closing_costs(
        inputs,
        config,
        loan_amount=base_loan,
        prepaids=prepaids,
        mortgage_insurance=mi,
        sales_price=price,
        seller_credit=_seller_credit(inputs),
    )

    cash_to_close = round_cents(
        down + closing_costs.net_closing_costs - round_cents(inputs.earnest_deposit)
    )

    logger.debug(
        "%s purchase: price=%.2f down=%.2f loan=%.2f total_loan=%.2f rate=%.3f",
        product, price, down, base_loan, total_loan, rate,
    )

    return LoanCalculationResult(
        product=product,
        purpose="purchase",
        property_value=price,
        interest_rate=rate,
        term_years=inputs.term_years,
        loan_amount=base_loan,
        total_loan_amount=round_cents(total_loan),
        down_payment=down,
        down_payment_percent=down_pct,
        ltv=ltv,
        monthly_payment=_monthly_breakdown(
            pi, tax, insurance, mi.monthly, inputs.hoa_monthly, inputs.flood_insurance_monthly
        ),
        closing_costs=closing_costs,
        mortgage_insurance=_rounded(mi),
        cash_to_close=cash_to_close,
        apr=_apr(total_loan, closing_costs, pi, inputs.term_years),
        warnings=_warnings(ltv, closing_costs),
    )


def calculate_conventional_purchase(
    inputs: ConventionalPurchaseInputs,
    config: LenderConfig,
) -> LoanCalculationResult:
    """Conventional purchase. PMI applies above 80% LTV, priced per pmi_type."""

    def price_insurance(base_loan: float, ltv: float, down_pct: float) -> MortgageInsurance:
        return conventional_pmi(base_loan, ltv, inputs.credit_score_tier, inputs.pmi_type, config)

    return _purchase(inputs, config, config.conventional.default_down_payment_pct, price_insurance)


def calculate_fha_purchase(
    inputs: FhaPurchaseInputs,
    config: LenderConfig,
) -> LoanCalculationResult:
    """FHA purchase. Upfront MIP is financed; annual MIP runs for the life of the loan."""

    def price_insurance(base_loan: float, ltv: float, down_pct: float) -> MortgageInsurance:
        return fha_mip(
            base_loan,
            inputs.is_203k,
            config,
            manual_monthly=_manual_amount(inputs.annual_mip_monthly),
        )

    return _purchase(inputs, config, config.fha.min_down_payment_pct, price_insurance)


def calculate_va_purchase(
    inputs: VaPurchaseInputs,
    config: LenderConfig,
) -> LoanCalculationResult:
    """VA purchase. The funding fee is financed; no monthly MI."""

    def price_insurance(base_loan: float, ltv: float, down_pct: float) -> MortgageInsurance:
        return va_funding_fee(
            base_loan,
            down_pct,
            inputs.va_usage,
            config,
            is_disabled_veteran=inputs.is_disabled_veteran,
            is_reservist=inputs.is_reservist,
        )

    return _purchase(inputs, config, config.va.default_down_payment_pct, price_insurance)


# ── Refinance ─────────────────────────────────────────────────────────────────

def _refinance(
    inputs: RefinanceInputs,
    config: LenderConfig,
    price_insurance: Callable[[float, float], MortgageInsurance],
    reduced: bool = False,
    extra_warnings: tuple[str, ...] = (),
) -> LoanCalculationResult:
    """
    Shared refinance flow. price_insurance(base_loan, ltv) returns the
    product's mortgage insurance. reduced selects the streamline / IRRRL
    fee schedule.

    Cash to close = existing balance + net closing costs - new loan;
    negative means cash back to the borrower.
    """
    product = inputs.product
    rate = _interest_rate(inputs, config, product)
    value = inputs.property_value
    base_loan = inputs.new_loan_amount
    ltv = loan_to_value(base_loan, value)

    mi = price_insurance(base_loan, ltv)
    total_loan = base_loan + mi.financed_premium
    pi = monthly_payment(total_loan, rate, inputs.term_years)
    tax, insurance = _escrow(inputs, config, value)

    prepaids = compute_prepaids(inputs, config, total_loan, rate, tax, insurance, refinance=True)
    closing_costs = aggregate_closing_costs(
        inputs,
        config,
        loan_amount=base_loan,
        prepaids=prepaids,
        mortgage_insurance=mi,
        sales_price=value,
        refinance=True,
        reduced=reduced,
    )

    base_loan = round_cents(base_loan)
    cash_to_close = round_cents(
        round_cents(inputs.existing_loan_balance) + closing_costs.net_closing_costs - base_loan
    )

    logger.debug(
        "%s refinance: value=%.2f existing=%.2f loan=%.2f total_loan=%.2f rate=%.3f reduced=%s",
        product, value, inputs.existing_loan_balance, base_loan, total_loan, rate, reduced,
    )

    return LoanCalculationResult(
        product=product,
        purpose="refinance",
        property_value=round_cents(value),
        interest_rate=rate,
        term_years=inputs.term_years,
        loan_amount=base_loan,
        total_loan_amount=round_cents(total_loan),
        ltv=ltv,
        monthly_payment=_monthly_breakdown(
            pi, tax, insurance, mi.monthly, inputs.hoa_monthly, inputs.flood_insurance_monthly
        ),
        closing_costs=closing_costs,
        mortgage_insurance=_rounded(mi),
        cash_to_close=cash_to_close,
        apr=_apr(total_loan, closing_costs, pi, inputs.term_years),
        warnings=_warnings(ltv, closing_costs, extra_warnings),
    )


def calculate_conventional_refinance(
    inputs: ConventionalRefinanceInputs,
    config: LenderConfig,
) -> LoanCalculationResult:
    """Conventional rate/term or cash-out refinance with monthly PMI above 80% LTV."""

    def price_insurance(base_loan: float, ltv: float) -> MortgageInsurance:
        return conventional_pmi(base_loan, ltv, inputs.credit_score_tier, "monthly", config)

    extra: tuple[str, ...] = ()
    ltv = loan_to_value(inputs.new_loan_amount, inputs.property_value)
    if inputs.refinance_type == "cash_out" and ltv > config.conventional.cash_out_max_ltv:
        logger.warning(
            "Cash-out LTV %.2f%% above the %.2f%% limit", ltv, config.conventional.cash_out_max_ltv
        )
        extra = (CASH_OUT_LTV_EXCEEDED,)

    return _refinance(inputs, config, price_insurance, extra_warnings=extra)


def calculate_fha_refinance(
    inputs: FhaRefinanceInputs,
    config: LenderConfig,
) -> LoanCalculationResult:
    """FHA refinance. Streamline takes the reduced UFMIP and fee schedule."""

    def price_insurance(base_loan: float, ltv: float) -> MortgageInsurance:
        return fha_mip(
            base_loan,
            False,
            config,
            streamline=inputs.is_streamline,
            refinance=True,
            manual_monthly=_manual_amount(inputs.annual_mip_monthly),
        )

    return _refinance(inputs, config, price_insurance, reduced=inputs.is_streamline)


def calculate_va_refinance(
    inputs: VaRefinanceInputs,
    config: LenderConfig,
) -> LoanCalculationResult:
    """
    VA refinance.

    IRRRL uses the IRRRL funding fee and the reduced fee schedule; any
    cash-out amount entered alongside it is ignored and flagged. Otherwise a
    cash-out amount selects the cash-out funding fee, and a plain refinance
    is priced as a purchase with no down payment (the under-5% band).
    """
    cash_out = inputs.cash_out_amount > 0 and not inputs.is_irrrl

    def price_insurance(base_loan: float, ltv: float) -> MortgageInsurance:
        return va_funding_fee(
            base_loan,
            0.0,
            inputs.va_usage,
            config,
            is_disabled_veteran=inputs.is_disabled_veteran,
            is_reservist=inputs.is_reservist,
            irrrl=inputs.is_irrrl,
            cash_out=cash_out,
        )

    extra: tuple[str, ...] = ()
    if inputs.is_irrrl and inputs.cash_out_amount > 0:
        logger.warning("IRRRL does not allow cash out; ignoring %.2f", inputs.cash_out_amount)
        extra = (IRRRL_CASH_OUT_IGNORED,)

    return _refinance(
        inputs, config, price_insurance, reduced=inputs.is_irrrl, extra_warnings=extra
    )


# ── Dispatch ──────────────────────────────────────────────────────────────────

CALCULATORS: dict[tuple[str, str], Callable[[Any, LenderConfig], LoanCalculationResult]] = {
    ("purchase", "conventional"): calculate_conventional_purchase,
    ("purchase", "fha"): calculate_fha_purchase,
    ("purchase", "va"): calculate_va_purchase,
    ("refinance", "conventional"): calculate_conventional_refinance,
    ("refinance", "fha"): calculate_fha_refinance,
    ("refinance", "va"): calculate_va_refinance,
}


def calculate(
    inputs: Union[LoanInputsBase, dict],
    config: Optional[LenderConfig],
) -> LoanCalculationResult:
    """
    Validate (if given a raw mapping) and dispatch to the matching calculator.

    Raises ConfigurationError when no lender config is supplied.
    """
    if config is None:
        raise ConfigurationError("A LenderConfig is required to run a loan calculation")
    if isinstance(inputs, dict):
        inputs = parse_loan_inputs(inputs)
    return CALCULATORS[(inputs.purpose, inputs.product)](inputs, config)
