"""
Payment math shared by every loan product.

All functions here return unrounded floats; callers round once, with
round_cents, when building a result.
"""


def round_cents(value: float) -> float:
    """Round a dollar amount to cents. The only rounding used for output."""
    return round(value + 0.0, 2)


def monthly_payment(principal: float, annual_rate_percent: float, term_years: int) -> float:
    """
    Standard fully-amortizing principal and interest payment.

        r = annual_rate_percent / 100 / 12
        n = term_years * 12
        payment = P * r * (1 + r)^n / ((1 + r)^n - 1)

    A zero rate pays the principal down in equal installments.
    Returns 0 when the principal or the number of payments is not positive.
    """
    n = term_years * 12
    if principal <= 0 or n <= 0:
        return 0.0
    r = annual_rate_percent / 100 / 12
    if r == 0:
        return principal / n
    growth = (1 + r) ** n
    return principal * r * growth / (growth - 1)


def loan_to_value(loan_amount: float, property_value: float) -> float:
    """LTV in percent. 0 when the property value is not positive."""
    if property_value <= 0:
        return 0.0
    return loan_amount / property_value * 100


def percent_of(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return part / whole * 100


def annual_percentage_rate(
    loan_amount: float,
    finance_charges: float,
    monthly_pi: float,
    term_years: int,
) -> float:
    """
    Compute the APR in percent.

    Uses Newton-Raphson to solve for the monthly rate r such that:
        loan_amount - finance_charges = monthly_pi * (1 - (1 + r)^-n) / r

    Finance charges are treated as an upfront deduction from the loan: the
    borrower receives less than the note amount but repays the full payment
    stream. Returns 0 when the amount financed, the payment or the term is
    not positive, or when the iteration does not converge.
    """
    amount_financed = loan_amount - finance_charges
    n = term_years * 12
    if amount_financed <= 0 or monthly_pi <= 0 or n <= 0:
        return 0.0

    def present_value_gap(rate: float) -> float:
        if rate == 0:
            return monthly_pi * n - amount_financed
        return monthly_pi * (1 - (1 + rate) ** -n) / rate - amount_financed

    def derivative(rate: float) -> float:
        compound = (1 + rate) ** -n
        return monthly_pi * (n * compound / (rate * (1 + rate)) - (1 - compound) / rate ** 2)

    # Initial guess from the simple-interest approximation
    rate = (monthly_pi * n / amount_financed - 1) / n
    if rate <= 0:
        # Payments do not exceed the amount financed
        return 0.0

    for _ in range(100):
        df = derivative(rate)
        if abs(df) < 1e-15:
            return 0.0
        step = present_value_gap(rate) / df
        rate -= step
        if rate <= -1:
            return 0.0
        if abs(step) < 1e-10:
            break
    else:
        return 0.0

    return round(rate * 12 * 100, 3)
