"""Deterministic retirement projections for the South African tax system.

The engine takes a :class:`~retirement_engine.models.PlanInput`, simulates the
balance year by year through accumulation and drawdown, works out SARS tax on
every withdrawal and summarises the run::

    from retirement_engine import PlanInput, generate_full_projection, generate_statistics

    plan = PlanInput(current_age=35, retirement_age=65, starting_balance=250000,
                     monthly_contribution=5000, annual_return=9, inflation=5,
                     drawdown_rate=5)
    years = generate_full_projection(plan)
    stats = generate_statistics(plan, years.years)
"""

from .models import PlanInput, PlanValidationError, ProjectionResult, Statistics, YearSnapshot
from .calculators.projections import generate_full_projection, fund_depletion_age, balance_at_age
from .calculators.statistics import generate_statistics
from .calculators.tax_tables import TaxTableError, TaxTables, get_tax_tables

__version__ = "0.1.0"

__all__ = [
    "PlanInput",
    "PlanValidationError",
    "ProjectionResult",
    "Statistics",
    "YearSnapshot",
    "generate_full_projection",
    "fund_depletion_age",
    "balance_at_age",
    "generate_statistics",
    "TaxTableError",
    "TaxTables",
    "get_tax_tables",
]
