"""Helper package that exposes the core financial calculators.

The `calculators` package contains small, focused modules that each implement
one piece of the retirement projection logic:

* ``compounding`` – future/present value, CAGR and real/nominal return conversion.
* ``tax_tables`` – immutable SARS tax tables per tax year, loaded from ``data/tax_tables.json``.
* ``taxes`` – income, lump-sum, capital gains, dividend and interest tax.
* ``projections`` – year-by-year accumulation and drawdown simulation.
* ``drawdown`` – sustainability check for an inflation-linked retirement income.
* ``statistics`` – summary metrics derived from a projection.

Each module exposes a few public functions with clear parameters and returns.  See
individual docstrings for details.  Rates are percentages throughout.
"""

from . import compounding, tax_tables, taxes, projections, drawdown, statistics  # noqa: F401

__all__ = ["compounding", "tax_tables", "taxes", "projections", "drawdown", "statistics"]
