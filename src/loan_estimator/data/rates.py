"""
Default lender data used when a lender configuration omits a value.
Every value here can be replaced through LenderConfig; update the defaults
when the published program rates change.
"""

RATES_DATE = "2026-09-01"

CREDIT_TIERS: list[str] = ["760", "740", "720", "700", "680", "660", "640", "620"]
LTV_BANDS: list[str] = ["85", "90", "95", "97"]
PMI_TYPES: list[str] = ["monthly", "single_financed", "single_cash", "split"]
VA_USAGES: list[str] = ["first", "subsequent"]
VA_DOWN_PAYMENT_BANDS: list[str] = ["under_5", "5_to_10", "10_plus"]

# ── Default note rates ───────────────────────────────────────────────────────
# Annual percent, used when the caller leaves interest_rate blank
DEFAULT_RATES: dict[str, float] = {
    "conventional": 7.00,
    "fha": 6.50,
    "va": 6.50,
}

# ── Escrow derivation ────────────────────────────────────────────────────────
# Annual percent of sales price / appraised value
PROPERTY_TAX_RATE = 1.25
HOME_INSURANCE_RATE = 0.35

# ── Conventional PMI ─────────────────────────────────────────────────────────
# Annual percent of the loan amount.
# Structure: credit tier -> LTV band -> rate
# LTV bands: "85" = 80.01-85%, "90" = 85.01-90%, "95" = 90.01-95%, "97" = above 95%
# Rates never decrease as the tier worsens within a band.
PMI_NO_MI_MAX_LTV = 80.0
CONFORMING_LIMIT = 766_550

PMI_MONTHLY_RATES: dict[str, dict[str, float]] = {
    "760": {"85": 0.15, "90": 0.19, "95": 0.38, "97": 0.58},
    "740": {"85": 0.17, "90": 0.25, "95": 0.50, "97": 0.70},
    "720": {"85": 0.21, "90": 0.34, "95": 0.62, "97": 0.87},
    "700": {"85": 0.28, "90": 0.46, "95": 0.78, "97": 1.07},
    "680": {"85": 0.40, "90": 0.65, "95": 0.99, "97": 1.28},
    "660": {"85": 0.55, "90": 0.79, "95": 1.19, "97": 1.55},
    "640": {"85": 0.70, "90": 1.05, "95": 1.45, "97": 1.80},
    "620": {"85": 0.85, "90": 1.25, "95": 1.68, "97": 2.10},
}

# One-time premium, percent of the loan amount
PMI_SINGLE_RATES: dict[str, dict[str, float]] = {
    "760": {"85": 0.47, "90": 0.60, "95": 1.20, "97": 1.85},
    "740": {"85": 0.55, "90": 0.80, "95": 1.55, "97": 2.25},
    "720": {"85": 0.65, "90": 1.08, "95": 1.95, "97": 2.75},
    "700": {"85": 0.90, "90": 1.45, "95": 2.45, "97": 3.40},
    "680": {"85": 1.25, "90": 2.05, "95": 3.15, "97": 4.05},
    "660": {"85": 1.75, "90": 2.50, "95": 3.75, "97": 4.90},
    "640": {"85": 2.20, "90": 3.30, "95": 4.60, "97": 5.70},
    "620": {"85": 2.70, "90": 3.95, "95": 5.30, "97": 6.65},
}

# Loans above CONFORMING_LIMIT price roughly 20% higher
PMI_HIGH_BALANCE_MONTHLY_RATES: dict[str, dict[str, float]] = {
    "760": {"85": 0.18, "90": 0.23, "95": 0.46, "97": 0.70},
    "740": {"85": 0.21, "90": 0.30, "95": 0.61, "97": 0.85},
    "720": {"85": 0.25, "90": 0.41, "95": 0.75, "97": 1.05},
    "700": {"85": 0.34, "90": 0.56, "95": 0.95, "97": 1.30},
    "680": {"85": 0.49, "90": 0.79, "95": 1.20, "97": 1.55},
    "660": {"85": 0.67, "90": 0.96, "95": 1.44, "97": 1.88},
    "640": {"85": 0.85, "90": 1.27, "95": 1.76, "97": 2.18},
    "620": {"85": 1.03, "90": 1.52, "95": 2.04, "97": 2.55},
}

PMI_HIGH_BALANCE_SINGLE_RATES: dict[str, dict[str, float]] = {
    "760": {"85": 0.57, "90": 0.73, "95": 1.45, "97": 2.24},
    "740": {"85": 0.67, "90": 0.97, "95": 1.88, "97": 2.73},
    "720": {"85": 0.79, "90": 1.31, "95": 2.36, "97": 3.33},
    "700": {"85": 1.09, "90": 1.76, "95": 2.97, "97": 4.12},
    "680": {"85": 1.51, "90": 2.48, "95": 3.81, "97": 4.90},
    "660": {"85": 2.12, "90": 3.03, "95": 4.54, "97": 5.93},
    "640": {"85": 2.66, "90": 3.99, "95": 5.57, "97": 6.90},
    "620": {"85": 3.27, "90": 4.78, "95": 6.41, "97": 8.05},
}

# Split premium: share of the single premium paid at closing, and share of
# the monthly premium still charged afterwards
PMI_SPLIT_UPFRONT_FRACTION = 0.50
PMI_SPLIT_MONTHLY_FRACTION = 0.50

CONVENTIONAL_DEFAULT_DOWN_PCT = 20.0
CONVENTIONAL_CASH_OUT_MAX_LTV = 80.0

# ── FHA MIP ──────────────────────────────────────────────────────────────────
# Percent of the base loan amount. Annual MIP is charged for the life of the loan.
FHA_UFMIP_PURCHASE = 1.75
FHA_UFMIP_203K = 1.75
FHA_UFMIP_REFINANCE = 1.75
FHA_UFMIP_STREAMLINE = 0.55
FHA_ANNUAL_MIP = 0.55
FHA_ANNUAL_MIP_STREAMLINE = 0.55
FHA_ANNUAL_MIP_HIGH_BALANCE = 0.75
FHA_HIGH_BALANCE_THRESHOLD = 720_000
FHA_MIN_DOWN_PCT = 3.5

# ── VA funding fee ───────────────────────────────────────────────────────────
# Percent of the base loan amount.
# Structure: usage -> down payment band -> rate
VA_FUNDING_FEE_RATES: dict[str, dict[str, float]] = {
    "first":      {"under_5": 2.15, "5_to_10": 1.50, "10_plus": 1.25},
    "subsequent": {"under_5": 3.30, "5_to_10": 1.50, "10_plus": 1.25},
}
VA_FUNDING_FEE_IRRRL = 0.50
VA_FUNDING_FEE_CASH_OUT: dict[str, float] = {"first": 2.15, "subsequent": 3.30}
VA_RESERVIST_SURCHARGE = 0.0
VA_DEFAULT_DOWN_PCT = 0.0

# ── Closing-cost fee schedules ───────────────────────────────────────────────
# Flat dollar amounts unless the key ends in _pct
PURCHASE_FEES: dict[str, float] = {
    "loan_fee_pct": 0.0,
    "processing": 995.0,
    "underwriting": 1495.0,
    "doc_prep": 295.0,
    "appraisal": 650.0,
    "credit_report": 150.0,
    "flood_cert": 30.0,
    "tax_service": 85.0,
    "escrow": 1115.0,
    "notary": 350.0,
    "recording": 275.0,
    "owner_title_policy": 1730.0,
    "lender_title_policy": 1515.0,
    "owner_title_pct": 0.40,
    "lender_title_pct": 0.35,
    "pest_inspection": 150.0,
    "property_inspection": 450.0,
    "pool_inspection": 100.0,
    "transfer_tax": 0.0,
    "mortgage_tax": 0.0,
}

REFINANCE_FEES: dict[str, float] = {
    **PURCHASE_FEES,
    "processing": 895.0,
    "underwriting": 995.0,
    "doc_prep": 595.0,
    "tax_service": 59.0,
    "escrow": 400.0,
    "owner_title_policy": 0.0,
    "lender_title_policy": 1015.0,
    "pest_inspection": 0.0,
    "property_inspection": 0.0,
    "pool_inspection": 0.0,
}

# FHA streamline / VA IRRRL: no full underwriting, appraisal waived
STREAMLINE_FEES: dict[str, float] = {
    **REFINANCE_FEES,
    "underwriting": 0.0,
    "appraisal": 0.0,
    "credit_report": 65.0,
}

# ── Prepaids & reserves ──────────────────────────────────────────────────────
PREPAID_INTEREST_DAYS = 15
PURCHASE_TAX_MONTHS = 6
PURCHASE_INSURANCE_MONTHS = 15
REFINANCE_TAX_MONTHS = 0
REFINANCE_INSURANCE_MONTHS = 0
