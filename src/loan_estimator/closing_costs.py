"""
Closing-cost aggregation.

Lines are built from the lender's fee schedule, then per-line overrides from
the inputs are applied, then everything is rounded to cents and summed. The
totals are sums of the rounded lines, so they always match what a borrower
sees itemised.

A manual closing-cost total replaces only total_closing_costs. Every line
and computed_closing_costs stay computed so the difference can be shown.
"""

import logging
from typing import Optional

from loan_estimator.amortization import percent_of, round_cents
from loan_estimator.models import (
    ClosingCosts,
    FeeSchedule,
    LenderConfig,
    LoanFeeMode,
    LoanInputsBase,
    ManualValue,
    MortgageInsurance,
    PrepaidItems,
)

logger = logging.getLogger(__name__)


def loan_fee(
    loan_amount: float,
    mode: LoanFeeMode,
    percent: float,
    amount: float,
) -> tuple[float, float]:
    """
    Return (amount, percent) for the origination fee.

    The mode picks which figure the caller entered; the other is derived
    from the loan amount.
    """
    if mode == "amount":
        return amount, percent_of(amount, loan_amount)
    if loan_amount <= 0:
        return 0.0, percent
    return loan_amount * percent / 100, percent


def title_policies(
    schedule: FeeSchedule,
    sales_price: float,
    loan_amount: float,
    refinance: bool = False,
) -> tuple[float, float]:
    """
    Return (owner's policy, lender's policy).

    "flat" mode uses the schedule's dollar amounts; "rate" mode prices the
    owner's policy on the sales price and the lender's policy on the loan.
    A refinance carries no owner's policy.
    """
    if schedule.title_mode == "rate":
        owner = max(0.0, sales_price) * schedule.owner_title_pct / 100
        lender = max(0.0, loan_amount) * schedule.lender_title_pct / 100
    else:
        owner = schedule.owner_title_policy
        lender = schedule.lender_title_policy
    if refinance:
        owner = 0.0
    return owner, lender


def _line(override: Optional[float], default: float) -> float:
    return default if override is None else override


def aggregate_closing_costs(
    inputs: LoanInputsBase,
    config: LenderConfig,
    loan_amount: float,
    prepaids: PrepaidItems,
    mortgage_insurance: MortgageInsurance,
    sales_price: float = 0.0,
    seller_credit: float = 0.0,
    refinance: bool = False,
    reduced: bool = False,
) -> ClosingCosts:
    """
    Build every closing-cost line and the totals.

    reduced selects the streamline / IRRRL fee schedule. When that schedule
    waives the appraisal the line is 0 unless the caller overrides it.
    Inspections and the owner's title policy are purchase-only.
    """
    schedule = config.fee_schedule("refinance" if refinance else "purchase", reduced=reduced)
    fees = inputs.fees

    # ── Lender fees ───────────────────────────────────────────────────────────
    fee_percent = (
        schedule.loan_fee_pct if inputs.loan_fee_percent is None else inputs.loan_fee_percent
    )
    fee_amount, fee_percent = loan_fee(
        loan_amount, inputs.loan_fee_mode, fee_percent, inputs.loan_fee_amount
    )
    appraisal_default = 0.0 if schedule.waive_appraisal else schedule.appraisal

    lender_lines = {
        "loan_fee": round_cents(fee_amount),
        "processing_fee": round_cents(_line(fees.processing, schedule.processing)),
        "underwriting_fee": round_cents(_line(fees.underwriting, schedule.underwriting)),
        "doc_prep_fee": round_cents(_line(fees.doc_prep, schedule.doc_prep)),
        "appraisal_fee": round_cents(_line(fees.appraisal, appraisal_default)),
        "credit_report_fee": round_cents(_line(fees.credit_report, schedule.credit_report)),
        "flood_cert_fee": round_cents(_line(fees.flood_cert, schedule.flood_cert)),
        "tax_service_fee": round_cents(_line(fees.tax_service, schedule.tax_service)),
        "mortgage_insurance_premium": round_cents(mortgage_insurance.cash_premium),
    }
    total_lender_fees = round_cents(sum(lender_lines.values()))

    # ── Third-party fees ──────────────────────────────────────────────────────
    owner_default, lender_default = title_policies(
        schedule, sales_price, loan_amount, refinance=refinance
    )
    owner_title = 0.0 if refinance else _line(fees.owner_title_policy, owner_default)
    if refinance:
        inspections = (0.0, 0.0, 0.0)
    else:
        inspections = (
            _line(fees.pest_inspection, schedule.pest_inspection),
            _line(fees.property_inspection, schedule.property_inspection),
            _line(fees.pool_inspection, schedule.pool_inspection),
        )

    third_party_lines = {
        "owner_title_policy": round_cents(owner_title),
        "lender_title_policy": round_cents(_line(fees.lender_title_policy, lender_default)),
        "escrow_fee": round_cents(_line(fees.escrow, schedule.escrow)),
        "notary_fee": round_cents(_line(fees.notary, schedule.notary)),
        "recording_fee": round_cents(_line(fees.recording, schedule.recording)),
        "pest_inspection_fee": round_cents(inspections[0]),
        "property_inspection_fee": round_cents(inspections[1]),
        "pool_inspection_fee": round_cents(inspections[2]),
        "transfer_tax": round_cents(_line(fees.transfer_tax, schedule.transfer_tax)),
        "mortgage_tax": round_cents(_line(fees.mortgage_tax, schedule.mortgage_tax)),
    }
    total_third_party_fees = round_cents(sum(third_party_lines.values()))

    # ── Prepaids ──────────────────────────────────────────────────────────────
    prepaid_interest = round_cents(prepaids.prepaid_interest)
    tax_reserves = round_cents(prepaids.tax_reserves)
    insurance_reserves = round_cents(prepaids.insurance_reserves)
    total_prepaids = round_cents(prepaid_interest + tax_reserves + insurance_reserves)

    # ── Credits & totals ──────────────────────────────────────────────────────
    seller_credit = round_cents(seller_credit)
    lender_credit = round_cents(inputs.lender_credit)
    total_credits = round_cents(seller_credit + lender_credit)

    computed = round_cents(total_prepaids + total_lender_fees + total_third_party_fees)
    is_overridden = isinstance(inputs.closing_costs_total, ManualValue)
    if is_overridden:
        total = round_cents(inputs.closing_costs_total.value)
        logger.info(
            "Closing costs overridden: manual total %.2f vs computed %.2f", total, computed
        )
    else:
        total = computed

    return ClosingCosts(
        **lender_lines,
        loan_fee_percent=fee_percent,
        total_lender_fees=total_lender_fees,
        **third_party_lines,
        total_third_party_fees=total_third_party_fees,
        prepaid_interest=prepaid_interest,
        prepaid_interest_days=prepaids.prepaid_interest_days,
        tax_reserves=tax_reserves,
        prepaid_tax_months=prepaids.prepaid_tax_months,
        insurance_reserves=insurance_reserves,
        prepaid_insurance_months=prepaids.prepaid_insurance_months,
        total_prepaids=total_prepaids,
        seller_credit=seller_credit,
        lender_credit=lender_credit,
        total_credits=total_credits,
        computed_closing_costs=computed,
        total_closing_costs=total,
        is_total_overridden=is_overridden,
        override_adjustment=round_cents(total - computed),
        net_closing_costs=round_cents(total - total_credits),
    )
