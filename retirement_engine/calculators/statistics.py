"""Aggregate statistics over a projection.

Every function here is a pure reduction over a sequence of
:class:`~retirement_engine.models.YearSnapshot` objects; the sequence is only
read.  Ratios whose denominator is zero come back as ``0`` and all results are
rounded to two decimals.

Example
-------

>>> wealth_retention_ratio(4420000, 2400000)
184.17
>>> effective_tax_rate(780000, 5200000)
15.0
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..models import PlanInput, Statistics, YearSnapshot
from .projections import generate_full_projection
from .tax_tables import TaxTables

Snapshots = Sequence[YearSnapshot]


def _round2(value: float) -> float:
    return round(float(value), 2)


def _column(projections: Snapshots, name: str) -> np.ndarray:
    return np.array([getattr(p, name) for p in projections], dtype=float)


def total_contributed(projections: Snapshots) -> float:
    """Starting balance plus every contribution made."""
    if len(projections) == 0:
        return 0.0
    starting = projections[0].beginning_balance
    return _round2(starting + _column(projections, "contributions").sum())


def total_withdrawn(projections: Snapshots) -> float:
    return _round2(_column(projections, "withdrawals").sum())


def total_tax_paid(projections: Snapshots) -> float:
    return _round2(_column(projections, "tax_paid").sum())


def total_investment_returns(projections: Snapshots) -> float:
    return _round2(_column(projections, "investment_return").sum())


def net_after_tax_income(total_withdrawn: float, total_tax_paid: float) -> float:
    return _round2(total_withdrawn - total_tax_paid)


def wealth_retention_ratio(net_after_tax: float, total_contributed: float) -> float:
    """Net after-tax income as a percentage of everything put in.

    Above 100 the plan paid out more than it received.
    """
    if total_contributed <= 0:
        return 0.0
    return _round2(net_after_tax / total_contributed * 100)


def effective_tax_rate(total_tax_paid: float, total_withdrawn: float) -> float:
    """Blended tax rate over the whole withdrawal phase, in percent."""
    if total_withdrawn <= 0:
        return 0.0
    return _round2(total_tax_paid / total_withdrawn * 100)


def projected_value_at_retirement(projections: Snapshots, retirement_age: int) -> float:
    for p in projections:
        if p.age == retirement_age:
            return p.ending_balance
    return 0.0


def fund_depletion_age_from_projections(projections: Snapshots) -> Optional[int]:
    """Age of the first year that ends with nothing left, else ``None``."""
    for p in projections:
        if p.ending_balance <= 0:
            return p.age
    return None


def peak_balance(projections: Snapshots) -> Dict[str, float]:
    """Highest ending balance and the age/year it was reached."""
    if len(projections) == 0:
        return {"balance": 0.0, "age": 0, "year": 0}
    # argmax keeps the first occurrence on ties
    peak = projections[int(np.argmax(_column(projections, "ending_balance")))]
    return {"balance": peak.ending_balance, "age": peak.age, "year": peak.year}


def retirement_duration(projections: Snapshots, retirement_age: int) -> int:
    return sum(1 for p in projections if p.age >= retirement_age)


def average_annual_return(projections: Snapshots) -> float:
    """Mean yearly return (percent) on the balance that was invested that year."""
    if len(projections) == 0:
        return 0.0
    invested = _column(projections, "beginning_balance") + _column(projections, "contributions")
    returns = _column(projections, "investment_return")
    pct = np.zeros_like(returns)
    mask = invested > 0
    pct[mask] = returns[mask] / invested[mask] * 100
    return _round2(pct.sum() / len(projections))


def average_monthly_income(total_withdrawn: float, retirement_years: int) -> float:
    if retirement_years <= 0:
        return 0.0
    return _round2(total_withdrawn / retirement_years / 12)


def inflation_adjusted_monthly_income(
    projections: Snapshots,
    retirement_age: int,
    inflation: float = 6.0,
) -> float:
    """Average monthly retirement income expressed in first-year Rand."""
    retired = [p for p in projections if p.age >= retirement_age]
    if not retired:
        return 0.0
    first_year = projections[0].year
    offsets = np.array([p.year - first_year for p in retired], dtype=float)
    withdrawals = _column(retired, "withdrawals")
    real = withdrawals / np.power(1 + inflation / 100, offsets)
    return _round2(real.sum() / len(retired) / 12)


def generate_statistics(
    plan: PlanInput,
    projections: Optional[Snapshots] = None,
    base_year: Optional[int] = None,
    tables: Optional[TaxTables] = None,
) -> Statistics:
    """Compute every headline statistic for ``plan``.

    ``projections`` may be passed when the caller already ran the simulator;
    otherwise a full projection is generated here.
    """
    if projections is None:
        projections = generate_full_projection(plan, base_year=base_year, tables=tables).years

    contributed = total_contributed(projections)
    withdrawn = total_withdrawn(projections)
    tax = total_tax_paid(projections)
    net = net_after_tax_income(withdrawn, tax)

    return Statistics(
        total_contributed=contributed,
        projected_value_at_retirement=projected_value_at_retirement(projections, plan.retirement_age),
        total_withdrawn=withdrawn,
        total_tax_paid=tax,
        net_after_tax_income=net,
        fund_depletion_age=fund_depletion_age_from_projections(projections),
        wealth_retention_ratio=wealth_retention_ratio(net, contributed),
        effective_tax_rate=effective_tax_rate(tax, withdrawn),
    )


def monthly_drawdown(projections: Snapshots, retirement_age: int) -> float:
    """First retirement year's withdrawal expressed per month."""
    for p in projections:
        if p.age >= retirement_age:
            return _round2(p.withdrawals / 12)
    return 0.0


def impact_summary(
    baseline: Union[PlanInput, Snapshots],
    adjusted: Union[PlanInput, Snapshots],
    retirement_age: Optional[int] = None,
    base_year: Optional[int] = None,
    tables: Optional[TaxTables] = None,
) -> Dict[str, float]:
    """Change in retirement nest egg and first monthly drawdown between two plans.

    Either plans or already computed projections can be passed; with
    projections, ``retirement_age`` is required.
    """
    def _resolve(item):
        if isinstance(item, PlanInput):
            years = generate_full_projection(item, base_year=base_year, tables=tables).years
            return years, item.retirement_age
        if retirement_age is None:
            raise ValueError("retirement_age is required when passing projections")
        return item, retirement_age

    base_years, base_age = _resolve(baseline)
    adj_years, adj_age = _resolve(adjusted)
    return {
        "retirement_nest_egg_delta": _round2(
            projected_value_at_retirement(adj_years, adj_age)
            - projected_value_at_retirement(base_years, base_age)
        ),
        "monthly_drawdown_delta": _round2(
            monthly_drawdown(adj_years, adj_age) - monthly_drawdown(base_years, base_age)
        ),
    }


def projections_to_frame(projections: Snapshots) -> pd.DataFrame:
    """Tabulate snapshots, adding the retiree's net income column."""
    columns = list(YearSnapshot.__dataclass_fields__) + ["net_income"]
    rows = [dict(p.to_dict(), net_income=p.net_income) for p in projections]
    return pd.DataFrame(rows, columns=columns)


__all__ = [
    "total_contributed",
    "total_withdrawn",
    "total_tax_paid",
    "total_investment_returns",
    "net_after_tax_income",
    "wealth_retention_ratio",
    "effective_tax_rate",
    "projected_value_at_retirement",
    "fund_depletion_age_from_projections",
    "peak_balance",
    "retirement_duration",
    "average_annual_return",
    "average_monthly_income",
    "inflation_adjusted_monthly_income",
    "monthly_drawdown",
    "generate_statistics",
    "impact_summary",
    "projections_to_frame",
]
