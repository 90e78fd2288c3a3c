"""SARS tax-year configuration.

The tax calculator is table driven.  Each tax year is described by one
immutable :class:`TaxTables` value holding the income-tax brackets, the
age-gated rebates, the retirement lump-sum brackets and the flat parameters
for capital gains, dividends and interest.  The defaults embed the 2025/26
tables published by SARS and ship as ``data/tax_tables.json`` inside the
package.

Swapping tax years means swapping the table, not changing the calculator:

>>> tables = get_tax_tables("2025/26")
>>> tables.rebates.secondary
9444.0
>>> tables.income_brackets[0].rate
0.18

Custom tables (for a new tax year or for tests) can be built with
:meth:`TaxTables.from_dict` using the same schema as the JSON file.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

DEFAULT_TAX_YEAR = "2025/26"

_DEFAULT_TAX_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "tax_tables.json"


class TaxTableError(KeyError):
    """Raised when a tax year is unknown or its table is malformed."""


@dataclass(frozen=True)
class TaxBracket:
    lower: float
    upper: Optional[float]  # inclusive; None means unbounded
    rate: float
    base_tax: float = 0.0

    def contains(self, amount: float) -> bool:
        return self.upper is None or amount <= self.upper


@dataclass(frozen=True)
class RebateSchedule:
    primary: float
    secondary: float = 0.0  # age 65 and older
    tertiary: float = 0.0  # age 75 and older

    def total_for_age(self, age: int) -> float:
        total = self.primary
        if age >= 65:
            total += self.secondary
        if age >= 75:
            total += self.tertiary
        return total


@dataclass(frozen=True)
class TaxTables:
    tax_year: str
    income_brackets: Tuple[TaxBracket, ...]
    rebates: RebateSchedule
    lump_sum_brackets: Tuple[TaxBracket, ...]
    cgt_inclusion_rate: float
    cgt_annual_exclusion: float
    dividend_withholding_rate: float
    interest_exemption_under_65: float
    interest_exemption_65_plus: float

    @classmethod
    def from_dict(cls, tax_year: str, data: Mapping) -> "TaxTables":
        """Build tables from the JSON schema used in ``data/tax_tables.json``."""
        try:
            income = data["income"]
            rebates = income["rebates"]
            return cls(
                tax_year=tax_year,
                income_brackets=_parse_brackets(income["brackets"]),
                rebates=RebateSchedule(
                    primary=float(rebates["primary"]),
                    secondary=float(rebates.get("secondary", 0.0)),
                    tertiary=float(rebates.get("tertiary", 0.0)),
                ),
                lump_sum_brackets=_parse_brackets(data["lump_sum"]["brackets"]),
                cgt_inclusion_rate=float(data["capital_gains"]["inclusion_rate"]),
                cgt_annual_exclusion=float(data["capital_gains"]["annual_exclusion"]),
                dividend_withholding_rate=float(data["dividends"]["withholding_rate"]),
                interest_exemption_under_65=float(data["interest"]["exemption_under_65"]),
                interest_exemption_65_plus=float(data["interest"]["exemption_65_plus"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise TaxTableError(f"malformed tax table for {tax_year}: {exc}") from exc


def _parse_brackets(raw) -> Tuple[TaxBracket, ...]:
    brackets = tuple(
        TaxBracket(
            lower=float(b["lower"]),
            upper=None if b.get("upper") is None else float(b["upper"]),
            rate=float(b["rate"]),
            base_tax=float(b.get("base_tax", 0.0)),
        )
        for b in raw
    )
    if not brackets:
        raise ValueError("bracket list is empty")
    if brackets[-1].upper is not None:
        raise ValueError("last bracket must be unbounded")
    return brackets


def _load_tax_tables(path: Optional[Path] = None) -> Dict[str, Dict]:
    """Load the raw tax tables from JSON.

    Parameters
    ----------
    path : Path, optional
        Path to a JSON file containing the tax tables.  Defaults to the file
        shipped with the package.

    Returns
    -------
    dict
        The parsed tables keyed by tax year (e.g. ``"2025/26"``).
    """
    p = path or _DEFAULT_TAX_TABLE_PATH
    with open(p, "r", encoding="utf-8") as f:
        tables = json.load(f)
    return tables


@lru_cache(maxsize=None)
def _default_tables() -> Dict[str, TaxTables]:
    raw = _load_tax_tables()
    return {year: TaxTables.from_dict(year, data) for year, data in raw.items()}


def load_tax_tables(path: Optional[Path] = None) -> Dict[str, TaxTables]:
    """Return every tax year found in ``path`` as :class:`TaxTables`."""
    if path is None:
        return dict(_default_tables())
    raw = _load_tax_tables(Path(path))
    return {year: TaxTables.from_dict(year, data) for year, data in raw.items()}


def get_tax_tables(tax_year: str = DEFAULT_TAX_YEAR, path: Optional[Path] = None) -> TaxTables:
    """Return the tables for one tax year."""
    tables = _default_tables() if path is None else load_tax_tables(path)
    try:
        return tables[tax_year]
    except KeyError:
        known = ", ".join(sorted(tables))
        raise TaxTableError(f"no tax table for {tax_year!r} (known: {known})") from None


def available_tax_years(path: Optional[Path] = None) -> Tuple[str, ...]:
    tables = _default_tables() if path is None else load_tax_tables(path)
    return tuple(sorted(tables))


__all__ = [
    "DEFAULT_TAX_YEAR",
    "TaxBracket",
    "RebateSchedule",
    "TaxTables",
    "TaxTableError",
    "load_tax_tables",
    "get_tax_tables",
    "available_tax_years",
]
