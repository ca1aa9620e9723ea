"""
Mortgage insurance: conventional PMI, FHA MIP and the VA funding fee.

Each product returns a MortgageInsurance with unrounded amounts. A financed
premium is added to the total loan amount before P&I is computed; a cash
premium is charged at closing; the monthly amount goes into the housing
payment.
"""

from typing import Optional

from loan_estimator.data.rates import CREDIT_TIERS
from loan_estimator.models import (
    CreditTier,
    LenderConfig,
    MortgageInsurance,
    PmiType,
    VaUsage,
)


def credit_tier_for_score(score: int) -> CreditTier:
    """
    Map a FICO score to the rate-table tier at or below it.

    Scores under the lowest tier are priced at the lowest tier.
    """
    for tier in CREDIT_TIERS:
        if score >= int(tier):
            return tier
    return CREDIT_TIERS[-1]


def ltv_band(ltv: float) -> Optional[str]:
    """
    Return the PMI rate-table band for an LTV percentage.

    Boundaries (inclusive upper bound):
      <= 80 -> None (no PMI)
      <= 85 -> "85"
      <= 90 -> "90"
      <= 95 -> "95"
      >  95 -> "97"
    """
    if ltv <= 80:
        return None
    if ltv <= 85:
        return "85"
    if ltv <= 90:
        return "90"
    if ltv <= 95:
        return "95"
    return "97"


def pmi_annual_rate(
    ltv: float,
    tier: CreditTier,
    loan_amount: float,
    config: LenderConfig,
    single: bool = False,
) -> float:
    """
    Annual (or, with single=True, one-time) PMI rate in percent of the loan.

    Loans above the conforming limit use the high-balance tables.
    """
    settings = config.conventional
    if ltv <= settings.no_mi_max_ltv:
        return 0.0
    band = ltv_band(ltv)
    if band is None:
        return 0.0
    high_balance = loan_amount > settings.conforming_limit
    if single:
        table = settings.pmi_high_balance_single_rates if high_balance else settings.pmi_single_rates
    else:
        table = settings.pmi_high_balance_monthly_rates if high_balance else settings.pmi_monthly_rates
    return table.get(tier, {}).get(band, 0.0)


def conventional_pmi(
    loan_amount: float,
    ltv: float,
    tier: CreditTier,
    pmi_type: PmiType,
    config: LenderConfig,
) -> MortgageInsurance:
    """
    Price conventional PMI for the chosen premium structure.

    monthly         : loan * annual rate / 100 / 12, every month
    single_financed : one-time premium added to the loan
    single_cash     : one-time premium paid at closing
    split           : a fraction of the single premium at closing plus a
                      fraction of the monthly premium
    """
    if loan_amount <= 0 or ltv <= config.conventional.no_mi_max_ltv:
        return MortgageInsurance()

    monthly_rate = pmi_annual_rate(ltv, tier, loan_amount, config)
    single_rate = pmi_annual_rate(ltv, tier, loan_amount, config, single=True)

    if pmi_type == "single_financed":
        return MortgageInsurance(
            kind="pmi",
            upfront_rate=single_rate,
            financed_premium=loan_amount * single_rate / 100,
        )
    if pmi_type == "single_cash":
        return MortgageInsurance(
            kind="pmi",
            upfront_rate=single_rate,
            cash_premium=loan_amount * single_rate / 100,
        )
    if pmi_type == "split":
        upfront_rate = single_rate * config.conventional.split_upfront_fraction
        annual_rate = monthly_rate * config.conventional.split_monthly_fraction
        return MortgageInsurance(
            kind="pmi",
            annual_rate=annual_rate,
            monthly=loan_amount * annual_rate / 100 / 12,
            upfront_rate=upfront_rate,
            cash_premium=loan_amount * upfront_rate / 100,
        )
    return MortgageInsurance(
        kind="pmi",
        annual_rate=monthly_rate,
        monthly=loan_amount * monthly_rate / 100 / 12,
    )


def fha_mip(
    base_loan: float,
    is_203k: bool,
    config: LenderConfig,
    streamline: bool = False,
    refinance: bool = False,
    manual_monthly: Optional[float] = None,
) -> MortgageInsurance:
    """
    Upfront and annual FHA mortgage insurance premium.

    The upfront premium is always financed. Annual MIP is charged for the
    life of the loan; LTV-based cancellation is not modelled.
    """
    if base_loan <= 0:
        return MortgageInsurance(kind="mip")

    rates = config.fha
    if streamline:
        upfront_rate = rates.upfront_streamline
    elif refinance:
        upfront_rate = rates.upfront_refinance
    elif is_203k:
        upfront_rate = rates.upfront_203k
    else:
        upfront_rate = rates.upfront

    if streamline:
        annual_rate = rates.annual_streamline
    elif base_loan > rates.high_balance_threshold:
        annual_rate = rates.annual_high_balance
    else:
        annual_rate = rates.annual

    monthly = base_loan * annual_rate / 100 / 12
    if manual_monthly is not None:
        monthly = manual_monthly

    return MortgageInsurance(
        kind="mip",
        annual_rate=annual_rate,
        monthly=monthly,
        upfront_rate=upfront_rate,
        financed_premium=base_loan * upfront_rate / 100,
    )


def va_down_payment_band(down_payment_percent: float) -> str:
    if down_payment_percent >= 10:
        return "10_plus"
    if down_payment_percent >= 5:
        return "5_to_10"
    return "under_5"


def va_funding_fee_rate(
    down_payment_percent: float,
    usage: VaUsage,
    config: LenderConfig,
    is_disabled_veteran: bool = False,
    is_reservist: bool = False,
    irrrl: bool = False,
    cash_out: bool = False,
) -> float:
    """
    Funding fee rate in percent of the base loan.

    IRRRL takes precedence over cash out. Exempt (disabled) veterans pay 0.
    """
    if is_disabled_veteran:
        return 0.0
    fees = config.va
    if irrrl:
        return fees.irrrl
    if cash_out:
        rate = fees.cash_out.get(usage, 0.0)
    else:
        rate = fees.rates.get(usage, {}).get(va_down_payment_band(down_payment_percent), 0.0)
    if is_reservist:
        rate += fees.reservist_surcharge
    return rate


def va_funding_fee(
    base_loan: float,
    down_payment_percent: float,
    usage: VaUsage,
    config: LenderConfig,
    is_disabled_veteran: bool = False,
    is_reservist: bool = False,
    irrrl: bool = False,
    cash_out: bool = False,
) -> MortgageInsurance:
    """VA funding fee, financed into the loan. VA loans carry no monthly MI."""
    rate = va_funding_fee_rate(
        down_payment_percent,
        usage,
        config,
        is_disabled_veteran=is_disabled_veteran,
        is_reservist=is_reservist,
        irrrl=irrrl,
        cash_out=cash_out,
    )
    if base_loan <= 0:
        rate = 0.0
    return MortgageInsurance(
        kind="funding_fee",
        upfront_rate=rate,
        financed_premium=max(0.0, base_loan) * rate / 100,
    )
