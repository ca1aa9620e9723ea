"""
Build a LenderConfig from lender-maintained settings.

Lenders keep their numbers as flat custom values in a settings service, typed
by hand: "$1,250", "6.5%", " 995 ", 0.065 and blanks all occur. Each value is
cleaned and falls back to the packaged default when missing or unreadable.
"""

import json
import logging
import math
import re
from pathlib import Path
from typing import Any, Mapping, Union

from loan_estimator.data.rates import CREDIT_TIERS, LTV_BANDS
from loan_estimator.models import LenderConfig

logger = logging.getLogger(__name__)

_CURRENCY = re.compile(r"[$€£¥,]")

# custom value key -> fee schedule field, applied to the purchase schedule
FEE_KEYS: dict[str, str] = {
    "calc_fee_processing": "processing",
    "calc_fee_underwriting": "underwriting",
    "calc_fee_doc_prep": "doc_prep",
    "calc_fee_appraisal": "appraisal",
    "calc_fee_credit_report": "credit_report",
    "calc_fee_flood_cert": "flood_cert",
    "calc_fee_tax_service": "tax_service",
    "calc_fee_settlement": "escrow",
    "calc_fee_notary": "notary",
    "calc_fee_recording": "recording",
    "calc_fee_owner_title_policy": "owner_title_policy",
    "calc_fee_lender_title_policy": "lender_title_policy",
    "calc_fee_pest_inspection": "pest_inspection",
    "calc_fee_property_inspection": "property_inspection",
    "calc_fee_pool_inspection": "pool_inspection",
}

COMPANY_KEYS: dict[str, str] = {
    "calc_company_name": "name",
    "calc_nmls_id": "nmls_id",
    "calc_lo_name": "loan_officer_name",
    "calc_lo_email": "loan_officer_email",
    "calc_lo_phone": "loan_officer_phone",
    "calc_lo_address": "address",
}

# VA funding fee keys are named by LTV; the table is keyed by down payment
VA_FEE_KEYS: dict[str, tuple[str, str]] = {
    "calc_va_ff_first_ltv_gt95": ("first", "under_5"),
    "calc_va_ff_first_ltv_90_95": ("first", "5_to_10"),
    "calc_va_ff_first_ltv_le90": ("first", "10_plus"),
    "calc_va_ff_subseq_ltv_gt95": ("subsequent", "under_5"),
    "calc_va_ff_subseq_ltv_90_95": ("subsequent", "5_to_10"),
    "calc_va_ff_subseq_ltv_le90": ("subsequent", "10_plus"),
}


# ── Value sanitizing ──────────────────────────────────────────────────────────

def sanitize_number(value: Any, default: float = 0.0) -> float:
    """
    Parse a hand-typed number.

    Accepts currency symbols, thousands separators, a trailing "%", and
    accounting negatives like "(500)". Returns default for blanks and for
    anything unreadable.
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return default if math.isnan(value) else float(value)
    if not isinstance(value, str):
        return default

    cleaned = value.strip()
    if cleaned.endswith("%"):
        cleaned = cleaned[:-1].strip()
    cleaned = _CURRENCY.sub("", cleaned).strip()
    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = "-" + cleaned[1:-1]
    if not cleaned:
        return default

    try:
        parsed = float(cleaned)
    except ValueError:
        logger.warning("Unreadable number %r, using default %s", value, default)
        return default
    return default if math.isnan(parsed) else parsed


def sanitize_rate(value: Any, default: float = 0.0) -> float:
    """Interest rate: like sanitize_number, but a decimal fraction (0.065) reads as 6.5."""
    num = sanitize_number(value, default)
    if 0 < num < 1:
        return num * 100
    return num


def sanitize_money(value: Any, default: float = 0.0) -> float:
    return max(0.0, sanitize_number(value, default))


def sanitize_string(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip() or default
    return str(value)


# ── Config assembly ───────────────────────────────────────────────────────────

class _CustomValues:
    """Typed reads from a raw custom-value mapping, defaulting per key."""

    def __init__(self, raw: Mapping[str, Any]):
        self.raw = raw

    def money(self, key: str, default: float) -> float:
        return sanitize_money(self.raw.get(key), default)

    def rate(self, key: str, default: float) -> float:
        return sanitize_rate(self.raw.get(key), default)

    def percent(self, key: str, default: float) -> float:
        # Fee, MI and funding-fee percentages are taken as typed
        return max(0.0, sanitize_number(self.raw.get(key), default))

    def count(self, key: str, default: int) -> int:
        return int(max(0.0, sanitize_number(self.raw.get(key), default)))

    def string(self, key: str, default: str) -> str:
        return sanitize_string(self.raw.get(key), default)


def _mi_table(values: _CustomValues, prefix: str, table: dict) -> dict:
    # Keys look like calc_mi_std_mo_95_740: prefix, LTV band, credit tier
    return {
        tier: {
            band: values.percent(f"{prefix}_{band}_{tier}", table[tier][band])
            for band in LTV_BANDS
        }
        for tier in CREDIT_TIERS
    }


def lender_config_from_custom_values(raw: Mapping[str, Any]) -> LenderConfig:
    """
    Map flat calc_* custom values onto a validated LenderConfig.

    Keys that are missing, blank or unreadable keep the packaged default.
    Only interest rates get the decimal-fraction reading of sanitize_rate.
    Fee keys set the purchase fee schedule; the origination points key sets
    the loan fee on every schedule.
    """
    values = _CustomValues(raw)
    data = LenderConfig().model_dump()

    rates = data["rates"]
    rates["conventional"] = values.rate("calc_rate_conv_30", rates["conventional"])
    rates["fha"] = values.rate("calc_rate_fha_30", rates["fha"])
    rates["va"] = values.rate("calc_rate_va_30", rates["va"])

    escrow = data["escrow"]
    escrow["property_tax_pct"] = values.percent(
        "calc_tax_rate_annual", escrow["property_tax_pct"]
    )
    escrow["home_insurance_pct"] = values.percent(
        "calc_ins_rate_annual", escrow["home_insurance_pct"]
    )

    purchase = data["purchase_fees"]
    for key, field in FEE_KEYS.items():
        purchase[field] = values.money(key, purchase[field])
    for schedule in ("purchase_fees", "refinance_fees", "streamline_fees"):
        data[schedule]["loan_fee_pct"] = values.percent(
            "calc_fee_origination_pts", data[schedule]["loan_fee_pct"]
        )

    prepaids = data["prepaids"]
    prepaids["interest_days"] = values.count("calc_days_interest", prepaids["interest_days"])
    prepaids["purchase_tax_months"] = values.count(
        "calc_reserves_tax_mo", prepaids["purchase_tax_months"]
    )
    prepaids["purchase_insurance_months"] = values.count(
        "calc_reserves_ins_mo", prepaids["purchase_insurance_months"]
    )

    conventional = data["conventional"]
    conventional["conforming_limit"] = values.money(
        "calc_limit_conforming", conventional["conforming_limit"]
    )
    for prefix, field in (
        ("calc_mi_std_mo", "pmi_monthly_rates"),
        ("calc_mi_std_sg", "pmi_single_rates"),
        ("calc_mi_hb_mo", "pmi_high_balance_monthly_rates"),
        ("calc_mi_hb_sg", "pmi_high_balance_single_rates"),
    ):
        conventional[field] = _mi_table(values, prefix, conventional[field])

    fha = data["fha"]
    fha["min_down_payment_pct"] = values.percent(
        "calc_fha_min_down_pct", fha["min_down_payment_pct"]
    )
    fha["upfront"] = values.percent("calc_fha_ufmip_rate_purchase", fha["upfront"])
    fha["upfront_refinance"] = values.percent("calc_fha_ufmip_rate_refi", fha["upfront_refinance"])
    fha["upfront_streamline"] = values.percent(
        "calc_fha_ufmip_rate_streamline", fha["upfront_streamline"]
    )
    fha["annual"] = values.percent("calc_fha_mip_30yr_gt95", fha["annual"])

    va = data["va"]
    for key, (usage, band) in VA_FEE_KEYS.items():
        va["rates"][usage][band] = values.percent(key, va["rates"][usage][band])
    va["irrrl"] = values.percent("calc_va_ff_irrrl", va["irrrl"])
    va["cash_out"]["first"] = values.percent("calc_va_ff_cashout_first", va["cash_out"]["first"])
    va["cash_out"]["subsequent"] = values.percent(
        "calc_va_ff_cashout_subseq", va["cash_out"]["subsequent"]
    )

    company = data["company"]
    for key, field in COMPANY_KEYS.items():
        company[field] = values.string(key, company[field])

    return LenderConfig.model_validate(data)


def load_lender_config(path: Union[str, Path]) -> LenderConfig:
    """
    Read a lender config from a JSON file.

    The file holds either a nested LenderConfig document or a flat mapping
    of calc_* custom values.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object, got {type(raw).__name__}")
    if any(key in LenderConfig.model_fields for key in raw):
        return LenderConfig.model_validate(raw)
    return lender_config_from_custom_values(raw)
