"""
Seller net sheet: estimated proceeds after payoffs, commission, closing
costs and prorations.

Proration sign convention:
  positive -> the seller owes the buyer (debit to the seller)
  negative -> the buyer owes the seller (credit to the seller)
"""

import calendar
from datetime import date
from typing import Optional

from loan_estimator.amortization import round_cents
from loan_estimator.models import SellerNetInputs, SellerNetResult

DAYS_PER_TAX_YEAR = 365


def calculate_commission(sales_price: float, commission_percent: float) -> float:
    return round_cents(sales_price * commission_percent / 100)


def calculate_seller_net(inputs: SellerNetInputs) -> SellerNetResult:
    total_payoffs = inputs.existing_loan_payoff + inputs.second_lien_payoff
    commission = calculate_commission(inputs.sales_price, inputs.commission_percent)

    total_costs = (
        commission
        + inputs.title_insurance
        + inputs.escrow_fee
        + inputs.transfer_tax
        + inputs.recording_fees
        + inputs.repair_credits
        + inputs.hoa_payoff
        + inputs.other_debits
    )

    proration = inputs.property_tax_proration
    total_credits = inputs.other_credits + max(0.0, -proration)
    proration_debit = max(0.0, proration)

    net = inputs.sales_price - total_payoffs - total_costs - proration_debit + total_credits

    return SellerNetResult(
        sales_price=inputs.sales_price,
        first_mortgage_payoff=inputs.existing_loan_payoff,
        second_lien_payoff=inputs.second_lien_payoff,
        total_payoffs=round_cents(total_payoffs),
        real_estate_commission=commission,
        title_insurance=inputs.title_insurance,
        escrow_fee=inputs.escrow_fee,
        transfer_tax=inputs.transfer_tax,
        recording_fees=inputs.recording_fees,
        repair_credits=inputs.repair_credits,
        hoa_payoff=inputs.hoa_payoff,
        other_debits=inputs.other_debits,
        total_costs=round_cents(total_costs),
        property_tax_proration=proration,
        other_credits=inputs.other_credits,
        total_credits=round_cents(total_credits),
        estimated_net_proceeds=round_cents(net),
    )


def calculate_tax_proration(
    annual_tax: float,
    closing_date: date,
    tax_period_start: Optional[date] = None,
    is_prepaid: bool = False,
) -> float:
    """
    Property tax proration at closing.

    Args:
        annual_tax:       Annual property tax bill.
        closing_date:     Closing date.
        tax_period_start: Start of the tax period; defaults to 1 January of
                          the closing year.
        is_prepaid:       True if the seller already paid the full period.

    Returns:
        Paid in arrears: the seller owes the days they held the property
        (positive). Prepaid: the buyer owes the days remaining (negative).
    """
    if tax_period_start is None:
        tax_period_start = date(closing_date.year, 1, 1)
    daily = annual_tax / DAYS_PER_TAX_YEAR
    days_elapsed = (closing_date - tax_period_start).days

    if is_prepaid:
        return round_cents(-(DAYS_PER_TAX_YEAR - days_elapsed) * daily)
    return round_cents(days_elapsed * daily)


def calculate_hoa_proration(monthly_dues: float, closing_date: date) -> float:
    """Seller's share of the month's HOA dues, through the closing day."""
    days_in_month = calendar.monthrange(closing_date.year, closing_date.month)[1]
    return round_cents(closing_date.day * monthly_dues / days_in_month)
