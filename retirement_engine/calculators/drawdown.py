"""Sustainability check for a level real retirement income.

Living annuities in South Africa must pay out between 2.5 % and 17.5 % of the
fund each year.  :func:`analyse_drawdown_strategy` takes a desired monthly
income, escalates it with inflation every year and runs it against the fund
to see how long the money lasts, flagging drawdown rates outside the
regulated band and suggesting safer rates when the plan runs dry.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from . import compounding
from . import taxes as tax_calc
from .tax_tables import TaxTables

logger = logging.getLogger(__name__)

MIN_LIVING_ANNUITY_RATE = 2.5
MAX_LIVING_ANNUITY_RATE = 17.5

# (drawdown rate %, indicative years it lasts, label)
_ALTERNATIVES = (
    (4.0, 30, 'The "4% rule"'),
    (5.0, 25, "Balanced approach"),
)


def analyse_drawdown_strategy(
    retirement_balance: float,
    desired_monthly_income: float,
    years_to_plan: int,
    inflation_rate: float,
    expected_return: float,
    retirement_age: int = 65,
    tables: Optional[TaxTables] = None,
) -> Dict:
    """Run an inflation-escalated income against ``retirement_balance``.

    Parameters
    ----------
    retirement_balance : float
        Fund value on the first day of retirement.
    desired_monthly_income : float
        Gross income wanted in the first year, per month.
    years_to_plan : int
        Number of retirement years to simulate.
    inflation_rate, expected_return : float
        Percentages.
    retirement_age : int, optional
        Age in the first retirement year, used for the tax estimate.

    Returns
    -------
    dict
        ``recommended_initial_drawdown_rate`` (clamped to the living-annuity
        band), ``sustainable``, ``years_money_lasts``, ``end_balance``,
        ``income_at_horizon``, ``total_tax``, ``warnings`` and
        ``alternative_strategies``.
    """
    annual_income = desired_monthly_income * 12
    if retirement_balance > 0:
        initial_rate = annual_income / retirement_balance * 100
    else:
        initial_rate = float("inf") if annual_income > 0 else 0.0

    balance = retirement_balance
    years = 0
    total_tax = 0.0
    sustainable = True
    warnings: List[str] = []

    while years < years_to_plan:
        if balance <= 0:
            sustainable = False
            break
        withdrawal = annual_income * compounding.growth_factor(inflation_rate, years)
        total_tax += tax_calc.compute_income_tax(withdrawal, retirement_age + years, tables)
        balance -= withdrawal
        balance += balance * (expected_return / 100)
        years += 1
        if balance <= 0:
            sustainable = False
            break

    if not sustainable:
        warnings.append(f"Funds will be depleted after {years} years at this drawdown rate.")

    if initial_rate < MIN_LIVING_ANNUITY_RATE:
        warnings.append(
            f"Drawdown rate of {initial_rate:.1f}% is below the living annuity minimum "
            f"of {MIN_LIVING_ANNUITY_RATE}%."
        )
    elif initial_rate > MAX_LIVING_ANNUITY_RATE:
        warnings.append(
            f"Drawdown rate of {initial_rate:.1f}% exceeds the living annuity maximum "
            f"of {MAX_LIVING_ANNUITY_RATE}%."
        )

    alternatives = []
    if not sustainable:
        for rate, lasts, label in _ALTERNATIVES:
            yearly = retirement_balance * rate / 100
            alternatives.append({
                "drawdown_rate": rate,
                "years_lasts": lasts,
                "monthly_income": round(yearly / 12, 2),
                "description": (
                    f"{label}: withdraw R{yearly / 12:,.0f}/month (R{yearly:,.0f}/year), "
                    f"expected to last {lasts}+ years."
                ),
            })

    logger.debug(
        "drawdown analysis: rate=%.2f%% sustainable=%s years=%d",
        initial_rate,
        sustainable,
        years,
    )
    return {
        "recommended_initial_drawdown_rate": round(
            max(MIN_LIVING_ANNUITY_RATE, min(MAX_LIVING_ANNUITY_RATE, initial_rate)), 2
        ),
        "sustainable": sustainable,
        "years_money_lasts": years,
        "end_balance": round(max(0.0, balance), 2),
        "income_at_horizon": round(annual_income * compounding.growth_factor(inflation_rate, years_to_plan), 2),
        "total_tax": round(total_tax, 2),
        "warnings": warnings,
        "alternative_strategies": alternatives,
    }


__all__ = [
    "MIN_LIVING_ANNUITY_RATE",
    "MAX_LIVING_ANNUITY_RATE",
    "analyse_drawdown_strategy",
]
