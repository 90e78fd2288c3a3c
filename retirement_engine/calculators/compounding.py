"""Time-value-of-money helpers.

All rates are percentages (``8`` means 8 % a year) and every result is
rounded to two decimals.  The functions never raise: degenerate inputs such as
zero years, zero rates or negative balances follow documented short-circuit
rules instead.

Example
-------

>>> # R100 000 today plus R3 000 a month for 20 years at 8 %
>>> round(future_value(100000, 3000, 8, 20))
2113526

>>> # The same R2m twenty years from now in today's money at 6 % inflation
>>> round(present_value(2000000, 6, 20))
623609

>>> real_return(10, 6)
3.77
"""

from __future__ import annotations

import math


def _round2(value: float) -> float:
    return round(value, 2)


def growth_factor(rate: float, years: float) -> float:
    """``(1 + rate%)^years``, saturating at ``math.inf`` on very long horizons.

    A loss of 100 % or more leaves nothing to compound, so the factor is 0.
    """
    base = max(0.0, 1 + rate / 100)
    try:
        return base ** years
    except OverflowError:
        return math.inf


def future_value(
    principal: float,
    monthly_contribution: float,
    annual_rate: float,
    years: float,
) -> float:
    """Future value of a starting balance plus level monthly contributions.

    Contributions are annualised (``monthly * 12``) and compounded yearly:

        FV = P(1 + r)^n + 12 * PMT * ((1 + r)^n - 1) / r

    Parameters
    ----------
    principal : float
        Starting balance.  Returned unchanged when ``years <= 0``.
    monthly_contribution : float
        Amount added every month.
    annual_rate : float
        Annual return in percent.  A zero rate falls back to simple linear
        accumulation.
    years : float
        Investment horizon in years.

    Returns
    -------
    float
        The future value.  Negative principals or contributions yield ``0.0``.
    """
    if years <= 0:
        return principal
    if principal < 0 or monthly_contribution < 0:
        return 0.0

    r = annual_rate / 100
    annual_contribution = monthly_contribution * 12

    if r == 0:
        return _round2(principal + annual_contribution * years)

    growth = growth_factor(annual_rate, years)
    # skip zero terms so an infinite growth factor never multiplies into nan
    value = 0.0
    if principal:
        value += principal * growth
    if annual_contribution:
        value += annual_contribution * ((growth - 1) / r)
    return _round2(value)


def present_value(future_amount: float, annual_inflation: float, years: float) -> float:
    """Discount ``future_amount`` by ``(1 + inflation)^years``."""
    if years <= 0:
        return future_amount
    if future_amount <= 0:
        return 0.0
    discount = growth_factor(annual_inflation, years)
    if discount == 0:
        return math.inf
    return _round2(future_amount / discount)


def cagr(initial: float, final: float, years: float) -> float:
    """Compound annual growth rate in percent.

    Returns ``0`` for a non-positive starting value or horizon and ``-100``
    (total loss) when the final value is zero or negative.
    """
    if years <= 0 or initial <= 0:
        return 0.0
    if final <= 0:
        return -100.0
    try:
        ratio = (final / initial) ** (1 / years)
    except OverflowError:
        return math.inf
    return _round2((ratio - 1) * 100)


def real_return(nominal: float, inflation: float) -> float:
    """Convert a nominal return to a real one with the Fisher equation."""
    r = nominal / 100
    i = inflation / 100
    return _round2(((1 + r) / (1 + i) - 1) * 100)


def nominal_return(real: float, inflation: float) -> float:
    """Inverse of :func:`real_return`."""
    r = real / 100
    i = inflation / 100
    return _round2(((1 + r) * (1 + i) - 1) * 100)


def inflation_adjusted_income(current_income: float, inflation: float, years: float) -> float:
    """Income needed ``years`` from now to match ``current_income`` today."""
    if years <= 0:
        return current_income
    if current_income <= 0:
        return 0.0
    return _round2(current_income * growth_factor(inflation, years))


__all__ = [
    "growth_factor",
    "future_value",
    "present_value",
    "cagr",
    "real_return",
    "nominal_return",
    "inflation_adjusted_income",
]
