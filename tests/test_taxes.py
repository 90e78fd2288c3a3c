"""Unit tests for the SARS tax module.

Values use the 2025/26 tables: income brackets from 18 % to 45 %, rebates of
R17 235 / R9 444 / R3 145 and the retirement lump-sum table with its R550 000
tax-free band.
"""

import math

import pytest

from retirement_engine.calculators import taxes as tax_calc
from retirement_engine.calculators.tax_tables import RebateSchedule, TaxBracket, TaxTables


def test_income_tax_example():
    """Income tax on R500k for a 60 year old (primary rebate only)."""
    tax = tax_calc.compute_income_tax(500000, age=60)
    assert math.isclose(tax, 100271.69, abs_tol=0.01)


def test_income_tax_secondary_rebate():
    """At 70 the secondary rebate is deducted as well."""
    tax = tax_calc.compute_income_tax(500000, age=70)
    assert math.isclose(tax, 90827.69, abs_tol=0.01)


def test_income_tax_tertiary_rebate():
    tax = tax_calc.compute_income_tax(500000, age=80)
    assert math.isclose(tax, 90827.69 - 3145, abs_tol=0.01)


def test_income_below_threshold_is_tax_free():
    assert tax_calc.compute_income_tax(90000, age=40) == 0.0
    assert tax_calc.compute_income_tax(0, age=40) == 0.0
    assert tax_calc.compute_income_tax(-5000, age=40) == 0.0


def test_income_tax_top_bracket():
    tax = tax_calc.compute_income_tax(2000000, age=50)
    expected = 644489 + (2000000 - 1817001) * 0.45 - 17235
    assert math.isclose(tax, expected, abs_tol=0.01)


def test_boundary_belongs_to_lower_bracket():
    # 237 100 closes the 18 % bracket
    assert tax_calc.compute_income_tax(237100, age=40) == pytest.approx(237100 * 0.18 - 17235)
    # fractional amounts in the gap take the next bracket's base tax
    assert tax_calc.compute_income_tax(237100.5, age=40) == pytest.approx(42678 - 17235)


@pytest.mark.parametrize("age", [30, 64, 65, 74, 75, 90])
def test_income_tax_is_monotonic(age):
    amounts = list(range(0, 2500001, 2500)) + [237100, 237100.5, 237101, 370500, 370501, 1817000, 1817001]
    amounts.sort()
    taxes = [tax_calc.compute_income_tax(a, age) for a in amounts]
    assert all(b >= a for a, b in zip(taxes, taxes[1:]))


@pytest.mark.parametrize("income", [100000, 150000, 250000, 500000, 1000000, 3000000])
def test_rebate_ordering_at_65(income):
    under = tax_calc.compute_income_tax(income, age=64)
    over = tax_calc.compute_income_tax(income, age=65)
    assert over <= under
    if over > 0:
        assert math.isclose(under - over, 9444, abs_tol=0.01)


def test_rebate_gap_truncated_by_floor():
    """R120k: R4 365 of tax at 64, nothing at 65, so the gap is smaller than the rebate."""
    under = tax_calc.compute_income_tax(120000, age=64)
    over = tax_calc.compute_income_tax(120000, age=65)
    assert over == 0.0
    assert math.isclose(under, 120000 * 0.18 - 17235, abs_tol=0.01)


def test_rebate_for_age():
    assert tax_calc.rebate_for_age(40) == 17235
    assert tax_calc.rebate_for_age(65) == 17235 + 9444
    assert tax_calc.rebate_for_age(75) == 17235 + 9444 + 3145


def test_lump_sum_tax_example():
    tax = tax_calc.compute_lump_sum_tax(1000000)
    assert math.isclose(tax, 101699.73, abs_tol=0.01)


def test_lump_sum_tax_free_band():
    assert tax_calc.compute_lump_sum_tax(550000) == 0.0
    assert tax_calc.compute_lump_sum_tax(0) == 0.0
    assert math.isclose(tax_calc.compute_lump_sum_tax(600000), (600000 - 550001) * 0.18, abs_tol=0.01)


def test_capital_gains_tax():
    """R200k gain: R40k excluded, 40 % of R160k taxed at 39 %."""
    assert math.isclose(tax_calc.compute_capital_gains_tax(200000, 39), 24960.0, abs_tol=0.01)
    assert tax_calc.compute_capital_gains_tax(30000, 39) == 0.0
    assert tax_calc.compute_capital_gains_tax(-1, 39) == 0.0


def test_dividend_tax_flat_rate():
    assert tax_calc.compute_dividend_tax(50000) == 10000.0
    assert tax_calc.compute_dividend_tax(0) == 0.0


def test_interest_tax_uses_age_exemption():
    assert math.isclose(tax_calc.compute_interest_tax(40000, 60, 39), 6318.0, abs_tol=0.01)
    assert math.isclose(tax_calc.compute_interest_tax(40000, 70, 39), 2145.0, abs_tol=0.01)
    assert tax_calc.compute_interest_tax(20000, 60, 39) == 0.0


def test_withdrawal_tax_dispatch():
    assert tax_calc.compute_withdrawal_tax(500000, 65, lump_sum=True) == tax_calc.compute_lump_sum_tax(500000)
    assert tax_calc.compute_withdrawal_tax(500000, 65) == tax_calc.compute_income_tax(500000, 65)
    assert tax_calc.compute_withdrawal_tax(0, 65) == 0.0


def test_marginal_rate_reflects_rebate_cutoff():
    assert tax_calc.marginal_tax_rate(50000, 40) == 0.0
    assert tax_calc.marginal_tax_rate(150000, 40) == pytest.approx(18.0, abs=0.01)
    assert tax_calc.marginal_tax_rate(500000, 40) == pytest.approx(31.0, abs=0.01)
    assert tax_calc.marginal_tax_rate(0, 40) == 0.0


def test_tax_free_threshold():
    assert tax_calc.tax_free_threshold(40) == pytest.approx(95750.0)
    assert tax_calc.tax_free_threshold(65) == pytest.approx(148216.67, abs=0.01)
    assert tax_calc.tax_free_threshold(75) == pytest.approx(165688.89, abs=0.01)


def test_threshold_income_pays_no_tax():
    for age in (40, 65, 75):
        threshold = tax_calc.tax_free_threshold(age)
        assert tax_calc.compute_income_tax(threshold - 1, age) == 0.0


def _synthetic_tables() -> TaxTables:
    return TaxTables(
        tax_year="test",
        income_brackets=(
            TaxBracket(0, 100000, 0.10, 0),
            TaxBracket(100000, None, 0.20, 10000),
        ),
        rebates=RebateSchedule(primary=1000, secondary=500, tertiary=250),
        lump_sum_brackets=(TaxBracket(0, None, 0.05, 0),),
        cgt_inclusion_rate=0.5,
        cgt_annual_exclusion=0,
        dividend_withholding_rate=0.1,
        interest_exemption_under_65=0,
        interest_exemption_65_plus=1000,
    )


def test_injected_tables_replace_defaults():
    tables = _synthetic_tables()
    assert tax_calc.compute_income_tax(150000, 40, tables) == 10000 + 50000 * 0.20 - 1000
    assert tax_calc.compute_income_tax(150000, 76, tables) == 10000 + 50000 * 0.20 - 1750
    assert tax_calc.compute_lump_sum_tax(200000, tables) == 10000.0
    assert tax_calc.compute_dividend_tax(1000, tables) == 100.0
    assert tax_calc.tax_free_threshold(40, tables) == 10000.0
    # defaults untouched
    assert math.isclose(tax_calc.compute_income_tax(500000, 60), 100271.69, abs_tol=0.01)
