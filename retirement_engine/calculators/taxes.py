"""SARS tax calculation utilities.

This module implements the South African taxes the projection engine needs:
progressive income tax with age-gated rebates, the rebate-free retirement
lump-sum table, capital gains with the annual exclusion and inclusion rate,
the flat dividend withholding tax and interest income above the age-dependent
exemption.  The defaults use the 2025/26 tables shipped in
``data/tax_tables.json``; every function accepts a ``tables`` argument so
another tax year (or a synthetic table in tests) can be injected without
touching module state.

Example
-------

>>> # Income tax on R500 000 for a 60 year old, and for a 70 year old
>>> compute_income_tax(500000, age=60)
100271.69
>>> compute_income_tax(500000, age=70)
90827.69

>>> # A R1m retirement lump sum
>>> compute_lump_sum_tax(1000000)
101699.73

Amounts are Rand and results are rounded to cents.  Marginal rates passed in
or returned are percentages (``39`` means 39 %).
"""

from __future__ import annotations

from typing import Optional, Sequence

from .tax_tables import TaxBracket, TaxTables, get_tax_tables


def _round2(value: float) -> float:
    return round(value, 2)


def _tables(tables: Optional[TaxTables]) -> TaxTables:
    return tables if tables is not None else get_tax_tables()


def find_bracket(amount: float, brackets: Sequence[TaxBracket]) -> TaxBracket:
    """Return the bracket ``amount`` falls in.

    Upper bounds are inclusive, so an amount sitting exactly on a boundary
    belongs to the bracket that boundary closes.  Fractional amounts in the
    one-rand gap between two integer brackets fall into the higher one.
    """
    for bracket in brackets:
        if bracket.contains(amount):
            return bracket
    return brackets[-1]


def _bracket_tax(amount: float, brackets: Sequence[TaxBracket]) -> float:
    bracket = find_bracket(amount, brackets)
    excess = max(0.0, amount - bracket.lower)
    return bracket.base_tax + excess * bracket.rate


def rebate_for_age(age: int, tables: Optional[TaxTables] = None) -> float:
    """Total rebate for ``age``: primary, plus secondary at 65 and tertiary at 75."""
    return _tables(tables).rebates.total_for_age(age)


def compute_income_tax(
    taxable_income: float,
    age: int,
    tables: Optional[TaxTables] = None,
) -> float:
    """Compute income tax on ordinary taxable income.

    The tax is the bracket's base tax plus the marginal rate on the excess
    over the bracket floor, less the rebates for ``age``.  The result never
    drops below zero.
    """
    if taxable_income <= 0:
        return 0.0
    t = _tables(tables)
    before_rebates = _bracket_tax(taxable_income, t.income_brackets)
    return _round2(max(0.0, before_rebates - t.rebates.total_for_age(age)))


def compute_lump_sum_tax(lump_sum: float, tables: Optional[TaxTables] = None) -> float:
    """Compute tax on a retirement-fund lump-sum withdrawal.

    The lump-sum table has a tax-free band at the bottom and no rebates.
    """
    if lump_sum <= 0:
        return 0.0
    t = _tables(tables)
    return _round2(_bracket_tax(lump_sum, t.lump_sum_brackets))


def compute_capital_gains_tax(
    capital_gain: float,
    marginal_rate: float,
    tables: Optional[TaxTables] = None,
) -> float:
    """Compute capital gains tax.

    The annual exclusion is deducted first, then only the inclusion fraction
    of the remaining gain is taxed at ``marginal_rate`` (a percentage).
    """
    if capital_gain <= 0:
        return 0.0
    t = _tables(tables)
    taxable_gain = max(0.0, capital_gain - t.cgt_annual_exclusion)
    included = taxable_gain * t.cgt_inclusion_rate
    return _round2(included * (marginal_rate / 100))


def compute_dividend_tax(dividends: float, tables: Optional[TaxTables] = None) -> float:
    """Dividend withholding tax (flat rate)."""
    if dividends <= 0:
        return 0.0
    return _round2(dividends * _tables(tables).dividend_withholding_rate)


def interest_exemption(age: int, tables: Optional[TaxTables] = None) -> float:
    t = _tables(tables)
    return t.interest_exemption_65_plus if age >= 65 else t.interest_exemption_under_65


def compute_interest_tax(
    interest: float,
    age: int,
    marginal_rate: float,
    tables: Optional[TaxTables] = None,
) -> float:
    """Tax on interest income above the age-dependent exemption."""
    if interest <= 0:
        return 0.0
    taxable = max(0.0, interest - interest_exemption(age, tables))
    return _round2(taxable * (marginal_rate / 100))


def compute_withdrawal_tax(
    amount: float,
    age: int,
    lump_sum: bool = False,
    tables: Optional[TaxTables] = None,
) -> float:
    """Tax on a retirement withdrawal.

    Regular annuity income is taxed as ordinary income; a one-off lump sum
    uses the lump-sum table instead.
    """
    if amount <= 0:
        return 0.0
    if lump_sum:
        return compute_lump_sum_tax(amount, tables)
    return compute_income_tax(amount, age, tables)


def marginal_tax_rate(
    taxable_income: float,
    age: int,
    tables: Optional[TaxTables] = None,
) -> float:
    """Marginal income-tax rate (percent) from the tax on one extra Rand.

    Taking the finite difference rather than reading the bracket rate means
    the rebate cut-off shows up: below the tax-free threshold the rate is 0.
    """
    if taxable_income <= 0:
        return 0.0
    current = compute_income_tax(taxable_income, age, tables)
    extra = compute_income_tax(taxable_income + 1, age, tables)
    return _round2((extra - current) * 100)


def tax_free_threshold(age: int, tables: Optional[TaxTables] = None) -> float:
    """Income at which tax before rebates equals the rebates for ``age``."""
    t = _tables(tables)
    first = t.income_brackets[0]
    rebate = t.rebates.total_for_age(age)
    if first.rate <= 0:
        return _round2(first.upper or 0.0)
    return _round2(first.lower + (rebate - first.base_tax) / first.rate)


__all__ = [
    "find_bracket",
    "rebate_for_age",
    "compute_income_tax",
    "compute_lump_sum_tax",
    "compute_capital_gains_tax",
    "compute_dividend_tax",
    "interest_exemption",
    "compute_interest_tax",
    "compute_withdrawal_tax",
    "marginal_tax_rate",
    "tax_free_threshold",
]
