"""
Interactive Rich CLI for the loan estimator.

Flow:
  1. Banner (lender, rates date + staleness warning)
  2. Loan purpose / product / input prompts
  3. Monthly payment table
  4. Closing costs table + cash to close
  5. Optional debt-to-income ratios
  6. Optional purchase comparison across products
  7. Optional plain-text export
"""

import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt
from rich.table import Table
from rich.text import Text

from loan_estimator.calculator import calculate, parse_loan_inputs
from loan_estimator.comparison import (
    ComparisonInputs,
    ComparisonScenario,
    ScenarioResult,
    compare_scenarios,
    compute_breakeven_months,
)
from loan_estimator.config import load_lender_config
from loan_estimator.data.rates import CREDIT_TIERS, PMI_TYPES, RATES_DATE, VA_USAGES
from loan_estimator.dti import debt_to_income
from loan_estimator.models import LenderConfig, LoanCalculationResult

console = Console()

PRODUCTS = ["conventional", "fha", "va"]
PURPOSES = ["purchase", "refinance"]


def _fmt_usd(amount: float) -> str:
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"


def _fmt_pct(rate: float) -> str:
    return f"{rate:.3f}%"


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# ── Step 1: Banner ────────────────────────────────────────────────────────────

def show_banner(config: LenderConfig) -> None:
    rates_date_obj = datetime.strptime(RATES_DATE, "%Y-%m-%d").date()
    age_days = (date.today() - rates_date_obj).days

    title = Text(config.company.name or "Loan Estimator", style="bold cyan")
    subtitle_parts = [f"Default rate data as of {RATES_DATE}"]
    if config.company.nmls_id:
        subtitle_parts.append(f"NMLS #{config.company.nmls_id}")
    subtitle = Text("  |  ".join(subtitle_parts), style="dim")

    staleness = ""
    if age_days > 90:
        staleness = (
            f"\n[bold red]WARNING:[/bold red] Default rate data is {age_days} days old. "
            "MI and funding-fee tables may have changed; load a current lender config."
        )
    elif age_days > 30:
        staleness = (
            f"\n[yellow]Note:[/yellow] Default rate data is {age_days} days old. "
            "Consider verifying current rates."
        )

    body = f"[bold]{title}[/bold]\n{subtitle}{staleness}"
    console.print(Panel(body, expand=False, border_style="cyan"))
    console.print()


def prompt_config() -> LenderConfig:
    raw = Prompt.ask("  Lender config JSON (blank for defaults)", default="").strip()
    if not raw:
        return LenderConfig()
    try:
        return load_lender_config(raw)
    except (OSError, ValueError) as e:
        # ValidationError and JSONDecodeError are ValueErrors
        console.print(f"[red]Could not load {raw}: {e}[/red]")
        console.print("  Using default lender settings.")
        return LenderConfig()


# ── Step 2: Loan input ────────────────────────────────────────────────────────

def _prompt_optional_float(label: str) -> Optional[float]:
    raw = Prompt.ask(f"  {label} (blank = default)", default="").strip()
    if not raw:
        return None
    try:
        return float(raw.replace(",", "").replace("$", "").rstrip("%"))
    except ValueError:
        console.print("[red]Invalid number, using default.[/red]")
        return None


def _prompt_purchase(data: dict) -> None:
    data["sales_price"] = FloatPrompt.ask("  Sales price ($)", default=400_000.0)

    console.print("  Down payment: enter $ amount OR percent (e.g. '20%'), blank for default")
    raw = Prompt.ask("  Down payment", default="").strip()
    if raw.endswith("%"):
        try:
            data["down_payment_percent"] = float(raw[:-1])
        except ValueError:
            console.print("[red]Invalid percent, using default.[/red]")
    elif raw:
        try:
            data["down_payment_amount"] = float(raw.replace(",", "").replace("$", ""))
        except ValueError:
            console.print("[red]Invalid amount, using default.[/red]")

    data["seller_credit"] = FloatPrompt.ask("  Seller credit ($)", default=0.0)
    data["earnest_deposit"] = FloatPrompt.ask("  Earnest money deposit ($)", default=0.0)


def _prompt_refinance(data: dict) -> None:
    data["property_value"] = FloatPrompt.ask("  Appraised value ($)", default=400_000.0)
    data["existing_loan_balance"] = FloatPrompt.ask("  Existing loan balance ($)", default=250_000.0)
    data["new_loan_amount"] = FloatPrompt.ask("  New loan amount ($)", default=250_000.0)


def _prompt_product_flags(data: dict, purpose: str, product: str) -> None:
    if product == "conventional":
        data["credit_score_tier"] = Prompt.ask(
            "  Credit score tier", choices=CREDIT_TIERS, default="740"
        )
        if purpose == "purchase":
            data["pmi_type"] = Prompt.ask("  PMI type", choices=PMI_TYPES, default="monthly")
        else:
            data["refinance_type"] = Prompt.ask(
                "  Refinance type", choices=["rate_term", "cash_out"], default="rate_term"
            )
    elif product == "fha":
        if purpose == "purchase":
            data["is_203k"] = Confirm.ask("  FHA 203(k) rehab loan?", default=False)
        else:
            data["is_streamline"] = Confirm.ask("  FHA streamline refinance?", default=False)
    else:
        data["va_usage"] = Prompt.ask("  VA entitlement usage", choices=VA_USAGES, default="first")
        data["is_disabled_veteran"] = Confirm.ask(
            "  Exempt from the funding fee (service-connected disability)?", default=False
        )
        data["is_reservist"] = Confirm.ask("  Reserves / National Guard?", default=False)
        if purpose == "refinance":
            data["is_irrrl"] = Confirm.ask("  IRRRL (streamline)?", default=False)
            if not data["is_irrrl"]:
                data["cash_out_amount"] = FloatPrompt.ask("  Cash out ($)", default=0.0)


def prompt_loan_inputs(config: LenderConfig):
    console.print("[bold]Step 1: Loan Details[/bold]\n")

    purpose = Prompt.ask("  Purpose", choices=PURPOSES, default="purchase")
    product = Prompt.ask("  Product", choices=PRODUCTS, default="conventional")
    data: dict = {"purpose": purpose, "product": product}

    if purpose == "purchase":
        _prompt_purchase(data)
    else:
        _prompt_refinance(data)

    default_rate = config.default_rate(product)
    data["interest_rate"] = FloatPrompt.ask("  Interest rate (%)", default=default_rate)
    data["term_years"] = IntPrompt.ask("  Term (years)", default=30)

    data["property_tax_annual"] = _prompt_optional_float("Annual property tax ($)")
    data["home_insurance_annual"] = _prompt_optional_float("Annual home insurance ($)")
    data["hoa_monthly"] = FloatPrompt.ask("  HOA dues, monthly ($)", default=0.0)

    _prompt_product_flags(data, purpose, product)

    data["lender_credit"] = FloatPrompt.ask("  Lender credit ($)", default=0.0)
    data["closing_costs_total"] = _prompt_optional_float("Closing costs total override ($)")

    console.print()
    try:
        return parse_loan_inputs(data)
    except ValidationError as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        console.print("Please re-enter the loan details.\n")
        return prompt_loan_inputs(config)


# ── Step 3: Monthly payment ───────────────────────────────────────────────────

def show_monthly_payment(result: LoanCalculationResult) -> None:
    console.print("[bold]Step 2: Monthly Payment[/bold]\n")

    mp = result.monthly_payment
    table = Table(title="Estimated Monthly Payment", border_style="blue")
    table.add_column("Component", min_width=24)
    table.add_column("Amount", justify="right")

    table.add_row("Principal & interest", _fmt_usd(mp.principal_and_interest))
    table.add_row("Property tax", _fmt_usd(mp.property_tax))
    table.add_row("Home insurance", _fmt_usd(mp.home_insurance))
    mi_label = {"pmi": "PMI", "mip": "FHA MIP"}.get(result.mortgage_insurance.kind, "Mortgage insurance")
    table.add_row(mi_label, _fmt_usd(mp.mortgage_insurance))
    table.add_row("HOA dues", _fmt_usd(mp.hoa_dues))
    table.add_row("Flood insurance", _fmt_usd(mp.flood_insurance))
    table.add_row("[bold]Total[/bold]", f"[bold]{_fmt_usd(mp.total)}[/bold]")
    console.print(table)

    mi = result.mortgage_insurance
    text = (
        f"  Loan amount:        {_fmt_usd(result.loan_amount)}\n"
        f"  Total loan amount:  {_fmt_usd(result.total_loan_amount)}\n"
        f"  LTV:                {result.ltv:.2f}%\n"
        f"  Note rate:          {_fmt_pct(result.interest_rate)}\n"
        f"  APR:                {_fmt_pct(result.apr)}\n"
    )
    if mi.financed_premium > 0:
        text += f"  Financed premium:   {_fmt_usd(mi.financed_premium)} ({mi.upfront_rate:.2f}%)\n"
    console.print(Panel(text, title="Loan Summary", border_style="green"))
    console.print()


# ── Step 4: Closing costs ─────────────────────────────────────────────────────

def show_closing_costs(result: LoanCalculationResult) -> None:
    console.print("[bold]Step 3: Closing Costs[/bold]\n")

    cc = result.closing_costs
    table = Table(title="Closing Costs", border_style="blue", show_lines=False)
    table.add_column("Item", min_width=28)
    table.add_column("Amount", justify="right")

    def section(title: str, rows: list[tuple[str, float]], total: float) -> None:
        table.add_row(f"[bold]{title}[/bold]", "")
        for label, amount in rows:
            if amount:
                table.add_row(f"  {label}", _fmt_usd(amount))
        table.add_row("  [dim]Subtotal[/dim]", f"[dim]{_fmt_usd(total)}[/dim]")

    section(
        "Lender fees",
        [
            (f"Loan fee ({cc.loan_fee_percent:.3f}%)", cc.loan_fee),
            ("Processing", cc.processing_fee),
            ("Underwriting", cc.underwriting_fee),
            ("Doc prep", cc.doc_prep_fee),
            ("Appraisal", cc.appraisal_fee),
            ("Credit report", cc.credit_report_fee),
            ("Flood certification", cc.flood_cert_fee),
            ("Tax service", cc.tax_service_fee),
            ("Mortgage insurance premium", cc.mortgage_insurance_premium),
        ],
        cc.total_lender_fees,
    )
    section(
        "Third-party fees",
        [
            ("Owner's title policy", cc.owner_title_policy),
            ("Lender's title policy", cc.lender_title_policy),
            ("Escrow / settlement", cc.escrow_fee),
            ("Notary", cc.notary_fee),
            ("Recording", cc.recording_fee),
            ("Pest inspection", cc.pest_inspection_fee),
            ("Property inspection", cc.property_inspection_fee),
            ("Pool inspection", cc.pool_inspection_fee),
            ("Transfer tax", cc.transfer_tax),
            ("Mortgage tax", cc.mortgage_tax),
        ],
        cc.total_third_party_fees,
    )
    section(
        "Prepaids",
        [
            (f"Prepaid interest ({cc.prepaid_interest_days} days)", cc.prepaid_interest),
            (f"Tax reserves ({cc.prepaid_tax_months} mo)", cc.tax_reserves),
            (f"Insurance reserves ({cc.prepaid_insurance_months} mo)", cc.insurance_reserves),
        ],
        cc.total_prepaids,
    )
    console.print(table)

    total_line = f"  Total closing costs:  [bold]{_fmt_usd(cc.total_closing_costs)}[/bold]\n"
    if cc.is_total_overridden:
        total_line += (
            f"    [yellow](manual total; itemised {_fmt_usd(cc.computed_closing_costs)}, "
            f"adjustment {_fmt_usd(cc.override_adjustment)})[/yellow]\n"
        )
    text = (
        total_line
        + f"  Seller credit:        [green]-{_fmt_usd(cc.seller_credit)}[/green]\n"
        f"  Lender credit:        [green]-{_fmt_usd(cc.lender_credit)}[/green]\n"
        f"  Net closing costs:    {_fmt_usd(cc.net_closing_costs)}\n"
        f"  ─────────────────────────────────────\n"
    )
    if result.purpose == "purchase":
        text += f"  Down payment:         {_fmt_usd(result.down_payment)}\n"
    label = "Cash to close" if result.cash_to_close >= 0 else "Cash to borrower"
    text += f"  {label + ':':<22}[bold]{_fmt_usd(abs(result.cash_to_close))}[/bold]\n"
    console.print(Panel(text, title="Cash to Close", border_style="red"))

    for code in result.warnings:
        console.print(f"  [yellow]⚠ {code}[/yellow]")
    console.print()


# ── Step 5: Debt-to-income ────────────────────────────────────────────────────

def _prompt_amounts(label: str) -> list[float]:
    amounts: list[float] = []
    while True:
        raw = Prompt.ask(f"  {label} #{len(amounts) + 1} (blank to finish)", default="").strip()
        if not raw:
            return amounts
        try:
            amounts.append(float(raw.replace(",", "").replace("$", "")))
        except ValueError:
            console.print("[red]Invalid amount, skipped.[/red]")


def show_dti(result: LoanCalculationResult) -> None:
    console.print("[bold]Step 4: Debt-to-Income[/bold]\n")
    console.print("  Enter monthly amounts one at a time; leave blank to finish.")
    incomes = _prompt_amounts("Gross monthly income")
    payments = _prompt_amounts("Monthly debt payment")

    dti = debt_to_income(incomes, payments, result.monthly_payment.total)
    text = (
        f"  Housing payment:  {_fmt_usd(result.monthly_payment.total)}\n"
        f"  Front-end DTI:    {dti.front_end_ratio:.2f}%\n"
        f"  Back-end DTI:     {dti.back_end_ratio:.2f}%\n"
    )
    console.print(Panel(text, title="DTI", border_style="magenta"))
    console.print()


# ── Step 6: Product comparison ────────────────────────────────────────────────

def show_comparison(
    result: LoanCalculationResult,
    config: LenderConfig,
    credit_score_tier: str = "740",
) -> list[ScenarioResult]:
    console.print("[bold]Step 5: Product Comparison[/bold]\n")

    scenarios = [
        ComparisonScenario(
            name=result.product.upper(),
            product=result.product,
            sales_price=result.property_value,
            down_payment_percent=result.down_payment_percent,
            interest_rate=result.interest_rate,
            term_years=result.term_years,
        )
    ]
    default_downs = {
        "conventional": config.conventional.default_down_payment_pct,
        "fha": config.fha.min_down_payment_pct,
        "va": config.va.default_down_payment_pct,
    }
    for product in PRODUCTS:
        if product != result.product:
            default_down = default_downs[product]
            scenarios.append(
                ComparisonScenario(
                    name=product.upper(),
                    product=product,
                    sales_price=result.property_value,
                    down_payment_percent=default_down,
                    term_years=result.term_years,
                )
            )

    compared = compare_scenarios(
        ComparisonInputs(
            scenarios=scenarios,
            property_tax_monthly=result.monthly_payment.property_tax,
            home_insurance_monthly=result.monthly_payment.home_insurance,
            hoa_monthly=result.monthly_payment.hoa_dues,
            credit_score_tier=credit_score_tier,
        ),
        config,
    )

    table = Table(title="Same Home, Different Programs", border_style="blue", show_lines=True)
    table.add_column("Scenario", min_width=14)
    table.add_column("Down", justify="right")
    table.add_column("Monthly", justify="right")
    table.add_column("vs Baseline", justify="right")
    table.add_column("Cash to Close", justify="right")
    table.add_column("vs Baseline", justify="right")
    table.add_column("Breakeven (months)", justify="right")

    baseline = compared[0]
    for r in compared:
        bev = compute_breakeven_months(baseline, r)
        bev_str = "—" if r.is_baseline or bev == 0.0 else ("∞" if bev == float("inf") else str(bev))
        table.add_row(
            r.name + (" ★" if r.is_baseline else ""),
            _fmt_usd(r.down_payment),
            _fmt_usd(r.monthly_payment),
            "—" if r.is_baseline else _fmt_usd(r.monthly_payment_diff),
            _fmt_usd(r.cash_to_close),
            "—" if r.is_baseline else _fmt_usd(r.cash_to_close_diff),
            bev_str,
            style="bold cyan" if r.is_baseline else "",
        )
    console.print(table)
    console.print(
        "  [dim]★ = your scenario  |  Breakeven = months of payment savings "
        "to recover extra cash to close[/dim]"
    )
    console.print()
    return compared


# ── Step 7: Export ────────────────────────────────────────────────────────────

def export_report(
    result: LoanCalculationResult,
    config: LenderConfig,
    compared: Optional[list[ScenarioResult]] = None,
) -> None:
    path = Path(Prompt.ask("  Output file path", default="loan_estimate.txt"))

    mp = result.monthly_payment
    cc = result.closing_costs
    company = config.company
    lines = [
        "Loan Estimate",
        f"Generated: {date.today().isoformat()}",
        f"Rate data: {RATES_DATE}",
    ]
    if company.name:
        nmls = f"  NMLS #{company.nmls_id}" if company.nmls_id else ""
        lines.append(company.name + nmls)
    if company.loan_officer_name:
        lines.append(f"{company.loan_officer_name}  {company.loan_officer_phone}".strip())
    lines += [
        "=" * 60,
        "",
        "LOAN",
        f"  Program:           {result.product.upper()} {result.purpose}",
        f"  Property value:    {_fmt_usd(result.property_value)}",
        f"  Loan amount:       {_fmt_usd(result.loan_amount)}",
        f"  Total loan amount: {_fmt_usd(result.total_loan_amount)}",
        f"  LTV:               {result.ltv:.2f}%",
        f"  Rate / APR:        {_fmt_pct(result.interest_rate)} / {_fmt_pct(result.apr)}",
        f"  Term:              {result.term_years} years",
        "",
        "MONTHLY PAYMENT",
        f"  Principal & interest: {_fmt_usd(mp.principal_and_interest)}",
        f"  Property tax:         {_fmt_usd(mp.property_tax)}",
        f"  Home insurance:       {_fmt_usd(mp.home_insurance)}",
        f"  Mortgage insurance:   {_fmt_usd(mp.mortgage_insurance)}",
        f"  HOA dues:             {_fmt_usd(mp.hoa_dues)}",
        f"  Flood insurance:      {_fmt_usd(mp.flood_insurance)}",
        f"  Total:                {_fmt_usd(mp.total)}",
        "",
        "CLOSING COSTS",
        f"  Lender fees:          {_fmt_usd(cc.total_lender_fees)}",
        f"  Third-party fees:     {_fmt_usd(cc.total_third_party_fees)}",
        f"  Prepaids:             {_fmt_usd(cc.total_prepaids)}",
        f"  Total closing costs:  {_fmt_usd(cc.total_closing_costs)}",
        f"  Credits:              {_fmt_usd(cc.total_credits)}",
        f"  Net closing costs:    {_fmt_usd(cc.net_closing_costs)}",
        f"  Cash to close:        {_fmt_usd(result.cash_to_close)}",
    ]

    if compared:
        lines += ["", "PROGRAM COMPARISON"]
        for r in compared:
            lines.append(
                f"  {r.name:<14} Monthly: {_fmt_usd(r.monthly_payment)}  "
                f"Cash to close: {_fmt_usd(r.cash_to_close)}"
            )

    if result.warnings:
        lines += ["", "NOTES"] + [f"  {code}" for code in result.warnings]

    path.write_text("\n".join(lines), encoding="utf-8")
    console.print(f"  [green]Report saved to {path.resolve()}[/green]")


# ── Main entry point ──────────────────────────────────────────────────────────

def main() -> None:
    setup_logging(verbose="-v" in sys.argv[1:])
    try:
        config = prompt_config()

        # Step 1: Banner
        show_banner(config)

        # Step 2: Loan input
        inputs = prompt_loan_inputs(config)
        result = calculate(inputs, config)

        # Step 3-4: Payment and closing costs
        show_monthly_payment(result)
        show_closing_costs(result)

        # Step 5: Debt-to-income
        if Confirm.ask("  Check debt-to-income ratios?", default=False):
            show_dti(result)

        # Step 6: Comparison (purchases only)
        compared = None
        if result.purpose == "purchase" and Confirm.ask(
            "  Compare against the other loan programs?", default=False
        ):
            tier = inputs.credit_score_tier if inputs.product == "conventional" else "740"
            compared = show_comparison(result, config, tier)

        # Step 7: Export
        if Confirm.ask("  Export plain-text report?", default=False):
            export_report(result, config, compared)

        console.print("\n[bold cyan]Done.[/bold cyan]")

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    main()
