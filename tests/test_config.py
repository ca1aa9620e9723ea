"""
Test cases for config.py: sanitizing hand-typed custom values and loading
lender configs.
"""

import json
import logging

import pytest
from pydantic import ValidationError

from loan_estimator.config import (
    lender_config_from_custom_values,
    load_lender_config,
    sanitize_money,
    sanitize_number,
    sanitize_rate,
    sanitize_string,
)
from loan_estimator.models import LenderConfig


# ── Sanitizing ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "raw, expected",
    [
        ("$1,234.56", 1234.56),
        ("6.5%", 6.5),
        (" 500 ", 500.0),
        ("(500)", -500.0),
        ("€2.000", 2.0),
        (42, 42.0),
        (0.065, 0.065),
    ],
)
def test_sanitize_number(raw, expected):
    assert sanitize_number(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "   ", "%", float("nan"), True, ["1"]])
def test_sanitize_number_falls_back_to_default(raw):
    assert sanitize_number(raw, 7.0) == 7.0


def test_unreadable_number_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="loan_estimator.config"):
        assert sanitize_number("seven", 7.0) == 7.0
    assert "seven" in caplog.text


def test_sanitize_rate_converts_decimal_fraction():
    assert sanitize_rate(0.065) == pytest.approx(6.5)
    assert sanitize_rate("0.0725") == pytest.approx(7.25)
    assert sanitize_rate("6.5%") == 6.5
    assert sanitize_rate(0) == 0.0


def test_sanitize_money_and_string():
    assert sanitize_money("-$50") == 0.0
    assert sanitize_money("$1,250") == 1250.0
    assert sanitize_string("  Acme Lending ") == "Acme Lending"
    assert sanitize_string("   ", "n/a") == "n/a"
    assert sanitize_string(12345) == "12345"


# ── Custom values ─────────────────────────────────────────────────────────────

def test_empty_custom_values_give_defaults():
    assert lender_config_from_custom_values({}) == LenderConfig()


def test_custom_values_mapped():
    config = lender_config_from_custom_values(
        {
            "calc_rate_conv_30": "6.875%",
            "calc_rate_fha_30": 0.0625,
            "calc_fee_processing": "$1,100",
            "calc_fee_origination_pts": "1",
            "calc_days_interest": "10",
            "calc_limit_conforming": "$806,500",
            "calc_fha_ufmip_rate_purchase": "1.75%",
            "calc_va_ff_first_ltv_gt95": "2.30",
            "calc_va_ff_irrrl": ".5",
            "calc_mi_std_mo_95_740": "0.52",
            "calc_company_name": " Acme Lending ",
            "calc_nmls_id": 123456,
        }
    )

    assert config.rates.conventional == 6.875
    assert config.rates.fha == pytest.approx(6.25)
    assert config.purchase_fees.processing == 1100.0
    assert config.refinance_fees.processing == LenderConfig().refinance_fees.processing
    assert config.purchase_fees.loan_fee_pct == 1.0
    assert config.streamline_fees.loan_fee_pct == 1.0
    assert config.prepaids.interest_days == 10
    assert config.conventional.conforming_limit == 806_500
    assert config.va.rates["first"]["under_5"] == 2.30
    assert config.va.irrrl == 0.5
    assert config.conventional.pmi_monthly_rates["740"]["95"] == 0.52
    assert config.conventional.pmi_monthly_rates["760"]["95"] == 0.38
    assert config.company.name == "Acme Lending"
    assert config.company.nmls_id == "123456"


def test_only_interest_rates_read_fractions_as_percent():
    config = lender_config_from_custom_values(
        {
            "calc_rate_va_30": "0.0625",
            "calc_mi_std_mo_90_760": "0.19",
            "calc_ins_rate_annual": "0.35",
            "calc_fha_mip_30yr_gt95": "0.55",
        }
    )
    assert config.rates.va == pytest.approx(6.25)
    assert config.conventional.pmi_monthly_rates["760"]["90"] == 0.19
    assert config.escrow.home_insurance_pct == 0.35
    assert config.fha.annual == 0.55


def test_garbage_values_keep_defaults():
    config = lender_config_from_custom_values(
        {"calc_fee_underwriting": "call me", "calc_rate_va_30": "", "calc_days_interest": None}
    )
    defaults = LenderConfig()
    assert config.purchase_fees.underwriting == defaults.purchase_fees.underwriting
    assert config.rates.va == defaults.rates.va
    assert config.prepaids.interest_days == defaults.prepaids.interest_days


# ── Files ─────────────────────────────────────────────────────────────────────

def test_load_flat_custom_values(tmp_path):
    path = tmp_path / "lender.json"
    path.write_text(json.dumps({"calc_rate_conv_30": "6.75"}), encoding="utf-8")
    assert load_lender_config(path).rates.conventional == 6.75


def test_load_nested_config(tmp_path):
    path = tmp_path / "lender.json"
    path.write_text(
        json.dumps({"rates": {"conventional": 6.9}, "company": {"name": "Acme"}}),
        encoding="utf-8",
    )
    config = load_lender_config(str(path))
    assert config.rates.conventional == 6.9
    assert config.rates.fha == LenderConfig().rates.fha
    assert config.company.name == "Acme"


def test_load_rejects_non_object(tmp_path):
    path = tmp_path / "lender.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_lender_config(path)


def test_load_rejects_invalid_nested_config(tmp_path):
    path = tmp_path / "lender.json"
    path.write_text(json.dumps({"conventional": {"split_upfront_fraction": 3}}), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_lender_config(path)
