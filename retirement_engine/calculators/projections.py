"""Year-by-year projection engine.

A plan is simulated in two phases.  Before the retirement age every year adds
twelve monthly contributions and then earns a full year of return on the
enlarged balance.  From the retirement age on, a percentage of the balance is
withdrawn at the start of the year, income tax is worked out on that
withdrawal, and the remainder earns the annual return.  The tax is reported
for the year but is a claim on the withdrawal, so it never reduces the fund.

Example
-------

>>> plan = PlanInput(current_age=60, retirement_age=62, starting_balance=100000,
...                  monthly_contribution=0, annual_return=0, inflation=0,
...                  drawdown_rate=50)
>>> [(y.age, y.ending_balance) for y in generate_full_projection(plan, base_year=2025)][:3]
[(60, 100000.0), (61, 100000.0), (62, 50000.0)]

All rates are percentages.  Every monetary field of a :class:`YearSnapshot` is
rounded to cents once, and the next year starts from the rounded ending
balance so consecutive years chain exactly.
"""

from __future__ import annotations

import datetime
import logging
from typing import Iterator, List, Optional

from ..models import PlanInput, ProjectionResult, YearSnapshot
from . import compounding
from . import taxes as tax_calc
from .tax_tables import TaxTables

logger = logging.getLogger(__name__)

MAX_AGE = 100  # last age simulated by a full projection
DEPLETION_SCAN_MAX_AGE = 120
DEPLETION_PROBE_YEARS = 50
NEGLIGIBLE_BALANCE = 1.0


def _round2(value: float) -> float:
    return round(value, 2)


def _current_year() -> int:
    return datetime.date.today().year


def project_accumulation_year(
    beginning_balance: float,
    monthly_contribution: float,
    annual_return: float,
    inflation: float,
    age: int,
    year: int,
    base_year: int,
) -> YearSnapshot:
    """Project one year before retirement.

    Contributions are added first and earn the whole year's return.

    Parameters
    ----------
    beginning_balance : float
        Balance at the start of the year.
    monthly_contribution : float
        Monthly contribution, annualised here.
    annual_return, inflation : float
        Percentages.
    age, year : int
        Age and calendar year being projected.
    base_year : int
        Year whose purchasing power the inflation adjusted balance uses.
    """
    contributions = monthly_contribution * 12
    after_contributions = beginning_balance + contributions
    investment_return = after_contributions * (annual_return / 100)
    ending = max(0.0, after_contributions + investment_return)
    investment_return = ending - after_contributions

    return YearSnapshot(
        year=year,
        age=age,
        beginning_balance=_round2(beginning_balance),
        contributions=_round2(contributions),
        investment_return=_round2(investment_return),
        withdrawals=0.0,
        tax_paid=0.0,
        ending_balance=_round2(ending),
        inflation_adjusted_balance=_round2(compounding.present_value(ending, inflation, year - base_year)),
    )


def _withdrawal_snapshot(
    beginning_balance: float,
    withdrawal: float,
    annual_return: float,
    inflation: float,
    age: int,
    year: int,
    base_year: int,
    tables: Optional[TaxTables],
) -> YearSnapshot:
    withdrawal = min(max(0.0, withdrawal), max(0.0, beginning_balance))
    tax = tax_calc.compute_withdrawal_tax(withdrawal, age, tables=tables)
    remaining = max(0.0, beginning_balance - withdrawal)
    investment_return = remaining * (annual_return / 100)
    ending = max(0.0, remaining + investment_return)
    # a large negative return clamps the fund at zero; report the loss actually taken
    investment_return = ending - remaining

    return YearSnapshot(
        year=year,
        age=age,
        beginning_balance=_round2(beginning_balance),
        contributions=0.0,
        investment_return=_round2(investment_return),
        withdrawals=_round2(withdrawal),
        tax_paid=_round2(tax),
        ending_balance=_round2(ending),
        inflation_adjusted_balance=_round2(compounding.present_value(ending, inflation, year - base_year)),
    )


def project_withdrawal_year(
    beginning_balance: float,
    drawdown_rate: float,
    annual_return: float,
    inflation: float,
    age: int,
    year: int,
    base_year: int,
    tables: Optional[TaxTables] = None,
) -> YearSnapshot:
    """Project one retirement year drawing ``drawdown_rate`` % of the balance.

    The withdrawal is capped at the beginning balance, so drawdown rates
    above 100 % empty the fund rather than overdraw it.
    """
    withdrawal = beginning_balance * (drawdown_rate / 100)
    return _withdrawal_snapshot(
        beginning_balance, withdrawal, annual_return, inflation, age, year, base_year, tables
    )


def project_inflation_adjusted_withdrawal_year(
    beginning_balance: float,
    base_withdrawal: float,
    years_into_retirement: int,
    annual_return: float,
    inflation: float,
    age: int,
    year: int,
    base_year: int,
    tables: Optional[TaxTables] = None,
) -> YearSnapshot:
    """Project one retirement year paying a level real income.

    ``base_withdrawal`` is escalated by inflation for ``years_into_retirement``
    years before it is taxed and taken from the fund.
    """
    withdrawal = base_withdrawal * compounding.growth_factor(inflation, max(0, years_into_retirement))
    return _withdrawal_snapshot(
        beginning_balance, withdrawal, annual_return, inflation, age, year, base_year, tables
    )


def generate_full_projection(
    plan: PlanInput,
    base_year: Optional[int] = None,
    max_age: int = MAX_AGE,
    tables: Optional[TaxTables] = None,
) -> ProjectionResult:
    """Simulate ``plan`` from the current age to ``max_age``.

    Accumulation years run up to, but not including, the retirement age.
    Withdrawal years then run until ``max_age`` or until the balance falls
    below one Rand.  The ceiling bounds both phases: reaching it with money
    still in the fund, or before the retirement age at all, marks the result
    ``truncated`` and adds a note.
    """
    if base_year is None:
        base_year = _current_year()

    history: List[YearSnapshot] = []
    balance = plan.starting_balance
    age = plan.current_age
    year = base_year

    while age < plan.retirement_age and age <= max_age:
        snapshot = project_accumulation_year(
            balance,
            plan.monthly_contribution,
            plan.annual_return,
            plan.inflation,
            age,
            year,
            base_year,
        )
        history.append(snapshot)
        balance = snapshot.ending_balance
        age += 1
        year += 1

    while age <= max_age and balance > 0:
        snapshot = project_withdrawal_year(
            balance,
            plan.drawdown_rate,
            plan.annual_return,
            plan.inflation,
            age,
            year,
            base_year,
            tables,
        )
        history.append(snapshot)
        balance = snapshot.ending_balance
        age += 1
        year += 1
        if balance < NEGLIGIBLE_BALANCE:
            break

    notes = ()
    if age > max_age and age <= plan.retirement_age:
        truncated = True
        notes = (
            f"stopped at age {max_age} before the retirement age of {plan.retirement_age} "
            f"with {balance:,.2f} accumulated",
        )
    else:
        truncated = age > max_age and balance >= NEGLIGIBLE_BALANCE
        if truncated:
            notes = (f"stopped at age {max_age} with {balance:,.2f} remaining",)
    logger.debug(
        "projected %d years (ages %s-%s), truncated=%s",
        len(history),
        plan.current_age,
        age - 1,
        truncated,
    )
    return ProjectionResult(years=tuple(history), ceiling_age=max_age, truncated=truncated, notes=notes)


def _depletion_step(balance: float, drawdown_rate: float, annual_return: float) -> float:
    remaining = balance - balance * (drawdown_rate / 100)
    return remaining + remaining * (annual_return / 100)


def fund_depletion_age(
    starting_balance: float,
    drawdown_rate: float,
    annual_return: float,
    start_age: int,
) -> Optional[int]:
    """Age at which the balance first reaches zero, or ``None`` if it never does.

    When the return matches or beats the drawdown rate the balance is first
    probed for fifty years; surviving the probe means the fund never runs out
    and the full scan to age 120 is skipped.
    """
    if starting_balance <= 0:
        return start_age

    if annual_return >= drawdown_rate:
        probe = starting_balance
        for _ in range(DEPLETION_PROBE_YEARS):
            probe = _depletion_step(probe, drawdown_rate, annual_return)
            if probe <= 0:
                break
        else:
            return None

    balance = starting_balance
    age = start_age
    while balance > 0 and age < DEPLETION_SCAN_MAX_AGE:
        balance = _depletion_step(balance, drawdown_rate, annual_return)
        age += 1
        if balance <= 0:
            return age
    return None


def balance_at_age(
    plan: PlanInput,
    target_age: int,
    base_year: Optional[int] = None,
    tables: Optional[TaxTables] = None,
) -> float:
    """Balance held at ``target_age``.

    Pre-retirement ages use the closed-form future value directly; once
    withdrawals start the full projection has to be run and the matching
    year's ending balance is returned (``0.0`` if the fund is gone by then).
    """
    if target_age <= plan.current_age:
        return plan.starting_balance

    if target_age < plan.retirement_age:
        return compounding.future_value(
            plan.starting_balance,
            plan.monthly_contribution,
            plan.annual_return,
            target_age - plan.current_age,
        )

    projection = generate_full_projection(plan, base_year=base_year, tables=tables)
    for snapshot in projection:
        if snapshot.age == target_age:
            return snapshot.ending_balance
    return 0.0


def drawdown_schedule(snapshots) -> Iterator[dict]:
    """Rows for the retirement-phase table: withdrawal, tax and net income by age."""
    for s in snapshots:
        if not s.is_withdrawal_year:
            continue
        yield {
            "age": s.age,
            "year": s.year,
            "beginning_balance": s.beginning_balance,
            "withdrawal": s.withdrawals,
            "tax_paid": s.tax_paid,
            "net_income": s.net_income,
            "ending_balance": s.ending_balance,
        }


__all__ = [
    "MAX_AGE",
    "project_accumulation_year",
    "project_withdrawal_year",
    "project_inflation_adjusted_withdrawal_year",
    "generate_full_projection",
    "fund_depletion_age",
    "balance_at_age",
    "drawdown_schedule",
]
