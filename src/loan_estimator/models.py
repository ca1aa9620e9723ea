"""Pydantic v2 models for the loan estimator: lender config, inputs, results."""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
)

from loan_estimator.data.rates import (
    CONFORMING_LIMIT,
    CONVENTIONAL_CASH_OUT_MAX_LTV,
    CONVENTIONAL_DEFAULT_DOWN_PCT,
    DEFAULT_RATES,
    FHA_ANNUAL_MIP,
    FHA_ANNUAL_MIP_HIGH_BALANCE,
    FHA_ANNUAL_MIP_STREAMLINE,
    FHA_HIGH_BALANCE_THRESHOLD,
    FHA_MIN_DOWN_PCT,
    FHA_UFMIP_203K,
    FHA_UFMIP_PURCHASE,
    FHA_UFMIP_REFINANCE,
    FHA_UFMIP_STREAMLINE,
    HOME_INSURANCE_RATE,
    PMI_HIGH_BALANCE_MONTHLY_RATES,
    PMI_HIGH_BALANCE_SINGLE_RATES,
    PMI_MONTHLY_RATES,
    PMI_NO_MI_MAX_LTV,
    PMI_SINGLE_RATES,
    PMI_SPLIT_MONTHLY_FRACTION,
    PMI_SPLIT_UPFRONT_FRACTION,
    PREPAID_INTEREST_DAYS,
    PROPERTY_TAX_RATE,
    PURCHASE_FEES,
    PURCHASE_INSURANCE_MONTHS,
    PURCHASE_TAX_MONTHS,
    REFINANCE_FEES,
    REFINANCE_INSURANCE_MONTHS,
    REFINANCE_TAX_MONTHS,
    STREAMLINE_FEES,
    VA_DEFAULT_DOWN_PCT,
    VA_FUNDING_FEE_CASH_OUT,
    VA_FUNDING_FEE_IRRRL,
    VA_FUNDING_FEE_RATES,
    VA_RESERVIST_SURCHARGE,
)

Product = Literal["conventional", "fha", "va"]
Purpose = Literal["purchase", "refinance"]
CreditTier = Literal["760", "740", "720", "700", "680", "660", "640", "620"]
PmiType = Literal["monthly", "single_financed", "single_cash", "split"]
VaUsage = Literal["first", "subsequent"]
LoanFeeMode = Literal["percent", "amount"]
TitleMode = Literal["flat", "rate"]
RateTable = dict[str, dict[str, float]]


# ── Boundary clamping ─────────────────────────────────────────────────────────
# Form fields can transiently hold negative or NaN values while being edited;
# they are clamped to zero instead of rejected.

def _non_negative(v: float) -> float:
    return v if v > 0 else 0.0


def _non_negative_int(v: int) -> int:
    return v if v > 0 else 0


Money = Annotated[float, AfterValidator(_non_negative)]
Percent = Annotated[float, AfterValidator(_non_negative)]
Count = Annotated[int, AfterValidator(_non_negative_int)]


def _copy_table(table: RateTable) -> RateTable:
    return {k: dict(v) for k, v in table.items()}


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Manual / derived values ───────────────────────────────────────────────────

class AutoValue(FrozenModel):
    """Derive the value from its formula."""
    mode: Literal["auto"] = "auto"


class ManualValue(FrozenModel):
    """Use the caller's value as entered, zero included."""
    mode: Literal["manual"] = "manual"
    value: Money


def _coerce_override(v: Any) -> Any:
    # Shorthand: None -> auto, a bare number -> manual entry
    if v is None:
        return {"mode": "auto"}
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return {"mode": "manual", "value": v}
    return v


Override = Annotated[
    Union[AutoValue, ManualValue],
    Field(discriminator="mode"),
    BeforeValidator(_coerce_override),
]

AUTO = AutoValue()


def manual(value: float) -> ManualValue:
    return ManualValue(value=value)


# ── Lender configuration ──────────────────────────────────────────────────────

class CompanyInfo(FrozenModel):
    name: str = ""
    nmls_id: str = ""
    loan_officer_name: str = ""
    loan_officer_email: str = ""
    loan_officer_phone: str = ""
    address: str = ""


class DefaultRates(FrozenModel):
    conventional: float = DEFAULT_RATES["conventional"]
    fha: float = DEFAULT_RATES["fha"]
    va: float = DEFAULT_RATES["va"]


class EscrowRates(FrozenModel):
    property_tax_pct: float = PROPERTY_TAX_RATE      # annual % of price / value
    home_insurance_pct: float = HOME_INSURANCE_RATE  # annual % of price / value


class ConventionalSettings(FrozenModel):
    pmi_monthly_rates: RateTable = Field(default_factory=lambda: _copy_table(PMI_MONTHLY_RATES))
    pmi_single_rates: RateTable = Field(default_factory=lambda: _copy_table(PMI_SINGLE_RATES))
    pmi_high_balance_monthly_rates: RateTable = Field(
        default_factory=lambda: _copy_table(PMI_HIGH_BALANCE_MONTHLY_RATES)
    )
    pmi_high_balance_single_rates: RateTable = Field(
        default_factory=lambda: _copy_table(PMI_HIGH_BALANCE_SINGLE_RATES)
    )
    conforming_limit: float = CONFORMING_LIMIT
    no_mi_max_ltv: float = PMI_NO_MI_MAX_LTV
    split_upfront_fraction: float = PMI_SPLIT_UPFRONT_FRACTION
    split_monthly_fraction: float = PMI_SPLIT_MONTHLY_FRACTION
    default_down_payment_pct: float = CONVENTIONAL_DEFAULT_DOWN_PCT
    cash_out_max_ltv: float = CONVENTIONAL_CASH_OUT_MAX_LTV

    @field_validator("split_upfront_fraction", "split_monthly_fraction")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"split fractions must be between 0 and 1, got {v!r}")
        return v


class FhaMipRates(FrozenModel):
    upfront: float = FHA_UFMIP_PURCHASE
    upfront_203k: float = FHA_UFMIP_203K
    upfront_refinance: float = FHA_UFMIP_REFINANCE
    upfront_streamline: float = FHA_UFMIP_STREAMLINE
    annual: float = FHA_ANNUAL_MIP
    annual_streamline: float = FHA_ANNUAL_MIP_STREAMLINE
    annual_high_balance: float = FHA_ANNUAL_MIP_HIGH_BALANCE
    high_balance_threshold: float = FHA_HIGH_BALANCE_THRESHOLD
    min_down_payment_pct: float = FHA_MIN_DOWN_PCT


class VaFundingFeeRates(FrozenModel):
    rates: RateTable = Field(default_factory=lambda: _copy_table(VA_FUNDING_FEE_RATES))
    irrrl: float = VA_FUNDING_FEE_IRRRL
    cash_out: dict[str, float] = Field(default_factory=lambda: dict(VA_FUNDING_FEE_CASH_OUT))
    reservist_surcharge: float = VA_RESERVIST_SURCHARGE
    default_down_payment_pct: float = VA_DEFAULT_DOWN_PCT


class FeeSchedule(FrozenModel):
    """Default closing-cost lines. Flat dollars except the *_pct fields."""

    loan_fee_pct: float = PURCHASE_FEES["loan_fee_pct"]
    processing: float = PURCHASE_FEES["processing"]
    underwriting: float = PURCHASE_FEES["underwriting"]
    doc_prep: float = PURCHASE_FEES["doc_prep"]
    appraisal: float = PURCHASE_FEES["appraisal"]
    credit_report: float = PURCHASE_FEES["credit_report"]
    flood_cert: float = PURCHASE_FEES["flood_cert"]
    tax_service: float = PURCHASE_FEES["tax_service"]
    escrow: float = PURCHASE_FEES["escrow"]
    notary: float = PURCHASE_FEES["notary"]
    recording: float = PURCHASE_FEES["recording"]
    title_mode: TitleMode = "flat"
    owner_title_policy: float = PURCHASE_FEES["owner_title_policy"]
    lender_title_policy: float = PURCHASE_FEES["lender_title_policy"]
    owner_title_pct: float = PURCHASE_FEES["owner_title_pct"]    # of sales price
    lender_title_pct: float = PURCHASE_FEES["lender_title_pct"]  # of loan amount
    pest_inspection: float = PURCHASE_FEES["pest_inspection"]
    property_inspection: float = PURCHASE_FEES["property_inspection"]
    pool_inspection: float = PURCHASE_FEES["pool_inspection"]
    transfer_tax: float = PURCHASE_FEES["transfer_tax"]
    mortgage_tax: float = PURCHASE_FEES["mortgage_tax"]
    waive_appraisal: bool = False


class PrepaidDefaults(FrozenModel):
    interest_days: int = PREPAID_INTEREST_DAYS
    purchase_tax_months: int = PURCHASE_TAX_MONTHS
    purchase_insurance_months: int = PURCHASE_INSURANCE_MONTHS
    refinance_tax_months: int = REFINANCE_TAX_MONTHS
    refinance_insurance_months: int = REFINANCE_INSURANCE_MONTHS


class LenderConfig(FrozenModel):
    """Fully resolved lender settings. Read-only for the length of a calculation."""

    company: CompanyInfo = Field(default_factory=CompanyInfo)
    rates: DefaultRates = Field(default_factory=DefaultRates)
    escrow: EscrowRates = Field(default_factory=EscrowRates)
    conventional: ConventionalSettings = Field(default_factory=ConventionalSettings)
    fha: FhaMipRates = Field(default_factory=FhaMipRates)
    va: VaFundingFeeRates = Field(default_factory=VaFundingFeeRates)
    purchase_fees: FeeSchedule = Field(default_factory=lambda: FeeSchedule(**PURCHASE_FEES))
    refinance_fees: FeeSchedule = Field(default_factory=lambda: FeeSchedule(**REFINANCE_FEES))
    streamline_fees: FeeSchedule = Field(
        default_factory=lambda: FeeSchedule(**STREAMLINE_FEES, waive_appraisal=True)
    )
    prepaids: PrepaidDefaults = Field(default_factory=PrepaidDefaults)

    def default_rate(self, product: Product) -> float:
        return getattr(self.rates, product)

    def fee_schedule(self, purpose: Purpose, reduced: bool = False) -> FeeSchedule:
        if purpose == "purchase":
            return self.purchase_fees
        return self.streamline_fees if reduced else self.refinance_fees


# ── Loan inputs ───────────────────────────────────────────────────────────────

class FeeOverrides(FrozenModel):
    """Per-line closing-cost overrides. None means use the fee schedule."""

    processing: Optional[Money] = None
    underwriting: Optional[Money] = None
    doc_prep: Optional[Money] = None
    appraisal: Optional[Money] = None
    credit_report: Optional[Money] = None
    flood_cert: Optional[Money] = None
    tax_service: Optional[Money] = None
    escrow: Optional[Money] = None
    notary: Optional[Money] = None
    recording: Optional[Money] = None
    owner_title_policy: Optional[Money] = None
    lender_title_policy: Optional[Money] = None
    pest_inspection: Optional[Money] = None
    property_inspection: Optional[Money] = None
    pool_inspection: Optional[Money] = None
    transfer_tax: Optional[Money] = None
    mortgage_tax: Optional[Money] = None


def _coerce_credit_tier(v: Any) -> Any:
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(int(v))
    return v


CreditTierField = Annotated[CreditTier, BeforeValidator(_coerce_credit_tier)]


class LoanInputsBase(FrozenModel):
    interest_rate: Optional[Percent] = None          # annual %, None -> config default
    term_years: Count = 30
    property_tax_annual: Optional[Money] = None
    property_tax_monthly: Optional[Money] = None
    home_insurance_annual: Optional[Money] = None
    home_insurance_monthly: Optional[Money] = None
    hoa_monthly: Money = 0.0
    flood_insurance_monthly: Money = 0.0
    lender_credit: Money = 0.0
    prepaid_interest_days: Optional[Count] = None
    prepaid_tax_months: Optional[Count] = None
    prepaid_insurance_months: Optional[Count] = None
    prepaid_interest: Override = AUTO
    tax_reserves: Override = AUTO
    insurance_reserves: Override = AUTO
    loan_fee_mode: LoanFeeMode = "percent"
    loan_fee_percent: Optional[Percent] = None       # None -> schedule loan_fee_pct
    loan_fee_amount: Money = 0.0
    fees: FeeOverrides = Field(default_factory=FeeOverrides)
    closing_costs_total: Override = AUTO


class PurchaseInputs(LoanInputsBase):
    purpose: Literal["purchase"] = "purchase"
    sales_price: Money = 0.0
    down_payment_amount: Optional[Money] = None      # authoritative when present
    down_payment_percent: Optional[Percent] = None
    seller_credit: Money = 0.0
    seller_credit_percent: Optional[Percent] = None  # of sales price, wins over seller_credit
    earnest_deposit: Money = 0.0


class ConventionalPurchaseInputs(PurchaseInputs):
    product: Literal["conventional"] = "conventional"
    credit_score_tier: CreditTierField = "760"
    pmi_type: PmiType = "monthly"



class FhaPurchaseInputs(PurchaseInputs):
    product: Literal["fha"] = "fha"
    is_203k: bool = False
    annual_mip_monthly: Override = AUTO


class VaPurchaseInputs(PurchaseInputs):
    product: Literal["va"] = "va"
    va_usage: VaUsage = "first"
    is_disabled_veteran: bool = False
    is_reservist: bool = False


class RefinanceInputs(LoanInputsBase):
    purpose: Literal["refinance"] = "refinance"
    property_value: Money = 0.0                      # appraised value
    existing_loan_balance: Money = 0.0
    new_loan_amount: Money = 0.0


class ConventionalRefinanceInputs(RefinanceInputs):
    product: Literal["conventional"] = "conventional"
    refinance_type: Literal["rate_term", "cash_out"] = "rate_term"
    credit_score_tier: CreditTierField = "760"



class FhaRefinanceInputs(RefinanceInputs):
    product: Literal["fha"] = "fha"
    is_streamline: bool = False
    annual_mip_monthly: Override = AUTO


class VaRefinanceInputs(RefinanceInputs):
    product: Literal["va"] = "va"
    is_irrrl: bool = False
    va_usage: VaUsage = "first"
    is_disabled_veteran: bool = False
    is_reservist: bool = False
    cash_out_amount: Money = 0.0


def _purpose_tag(v: Any) -> str:
    if isinstance(v, dict):
        return v.get("purpose", "purchase")
    return getattr(v, "purpose", "purchase")


PurchaseLoanInputs = Annotated[
    Union[ConventionalPurchaseInputs, FhaPurchaseInputs, VaPurchaseInputs],
    Field(discriminator="product"),
]
RefinanceLoanInputs = Annotated[
    Union[ConventionalRefinanceInputs, FhaRefinanceInputs, VaRefinanceInputs],
    Field(discriminator="product"),
]
LoanInputs = Annotated[
    Union[
        Annotated[PurchaseLoanInputs, Tag("purchase")],
        Annotated[RefinanceLoanInputs, Tag("refinance")],
    ],
    Discriminator(_purpose_tag),
]


# ── Results ───────────────────────────────────────────────────────────────────

class MonthlyPayment(FrozenModel):
    principal_and_interest: float = 0.0
    property_tax: float = 0.0
    home_insurance: float = 0.0
    mortgage_insurance: float = 0.0
    hoa_dues: float = 0.0
    flood_insurance: float = 0.0
    total: float = 0.0               # exact sum of the six components above


class MortgageInsurance(FrozenModel):
    kind: Literal["none", "pmi", "mip", "funding_fee"] = "none"
    annual_rate: float = 0.0         # % of loan, recurring
    monthly: float = 0.0
    upfront_rate: float = 0.0        # % of loan, one time
    financed_premium: float = 0.0    # added to total loan amount
    cash_premium: float = 0.0        # paid at closing


class PrepaidItems(FrozenModel):
    prepaid_interest: float = 0.0
    prepaid_interest_days: int = 0
    tax_reserves: float = 0.0
    prepaid_tax_months: int = 0
    insurance_reserves: float = 0.0
    prepaid_insurance_months: int = 0

    @property
    def total(self) -> float:
        return self.prepaid_interest + self.tax_reserves + self.insurance_reserves


class ClosingCosts(FrozenModel):
    # Lender fees
    loan_fee: float = 0.0
    loan_fee_percent: float = 0.0
    processing_fee: float = 0.0
    underwriting_fee: float = 0.0
    doc_prep_fee: float = 0.0
    appraisal_fee: float = 0.0
    credit_report_fee: float = 0.0
    flood_cert_fee: float = 0.0
    tax_service_fee: float = 0.0
    mortgage_insurance_premium: float = 0.0   # cash-paid PMI premium
    total_lender_fees: float = 0.0

    # Third-party fees
    owner_title_policy: float = 0.0
    lender_title_policy: float = 0.0
    escrow_fee: float = 0.0
    notary_fee: float = 0.0
    recording_fee: float = 0.0
    pest_inspection_fee: float = 0.0
    property_inspection_fee: float = 0.0
    pool_inspection_fee: float = 0.0
    transfer_tax: float = 0.0
    mortgage_tax: float = 0.0
    total_third_party_fees: float = 0.0

    # Prepaids
    prepaid_interest: float = 0.0
    prepaid_interest_days: int = 0
    tax_reserves: float = 0.0
    prepaid_tax_months: int = 0
    insurance_reserves: float = 0.0
    prepaid_insurance_months: int = 0
    total_prepaids: float = 0.0

    # Credits
    seller_credit: float = 0.0
    lender_credit: float = 0.0
    total_credits: float = 0.0

    # Totals
    computed_closing_costs: float = 0.0       # prepaids + lender + third party
    total_closing_costs: float = 0.0          # computed, or the caller's manual total
    is_total_overridden: bool = False
    override_adjustment: float = 0.0          # total_closing_costs - computed_closing_costs
    net_closing_costs: float = 0.0            # total_closing_costs - credits, may be negative


class LoanCalculationResult(FrozenModel):
    product: Product
    purpose: Purpose
    property_value: float = 0.0      # sales price or appraised value
    interest_rate: float = 0.0
    term_years: int = 0
    loan_amount: float = 0.0         # base loan
    total_loan_amount: float = 0.0   # base loan + financed premium
    down_payment: float = 0.0
    down_payment_percent: float = 0.0
    ltv: float = 0.0
    monthly_payment: MonthlyPayment = Field(default_factory=MonthlyPayment)
    closing_costs: ClosingCosts = Field(default_factory=ClosingCosts)
    mortgage_insurance: MortgageInsurance = Field(default_factory=MortgageInsurance)
    cash_to_close: float = 0.0
    apr: float = 0.0
    warnings: tuple[str, ...] = ()


# ── Seller net sheet ──────────────────────────────────────────────────────────

class SellerNetInputs(FrozenModel):
    sales_price: Money = 0.0
    existing_loan_payoff: Money = 0.0
    second_lien_payoff: Money = 0.0
    commission_percent: Percent = 0.0
    title_insurance: Money = 0.0
    escrow_fee: Money = 0.0
    transfer_tax: Money = 0.0
    recording_fees: Money = 0.0
    repair_credits: Money = 0.0
    hoa_payoff: Money = 0.0
    other_debits: Money = 0.0
    property_tax_proration: float = 0.0   # + seller owes buyer, - buyer owes seller
    other_credits: Money = 0.0


class SellerNetResult(FrozenModel):
    sales_price: float = 0.0

    first_mortgage_payoff: float = 0.0
    second_lien_payoff: float = 0.0
    total_payoffs: float = 0.0

    real_estate_commission: float = 0.0
    title_insurance: float = 0.0
    escrow_fee: float = 0.0
    transfer_tax: float = 0.0
    recording_fees: float = 0.0
    repair_credits: float = 0.0
    hoa_payoff: float = 0.0
    other_debits: float = 0.0
    total_costs: float = 0.0

    property_tax_proration: float = 0.0
    other_credits: float = 0.0
    total_credits: float = 0.0

    estimated_net_proceeds: float = 0.0


# ── Debt-to-income ────────────────────────────────────────────────────────────

class DtiResult(FrozenModel):
    front_end_ratio: float = 0.0     # housing payment / income, %
    back_end_ratio: float = 0.0      # (housing payment + other debts) / income, %
