"""Value types passed in and out of the projection engine.

``PlanInput`` is the only shape the engine accepts.  Input providers that work
with loosely typed dictionaries convert them with :meth:`PlanInput.from_dict`,
which validates everything up front so that the calculators themselves never
have to.  Rates are percentages throughout (``8`` means 8 %).
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Tuple


class PlanValidationError(ValueError):
    """Raised when a plan is structurally invalid, before any calculation."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


# canonical field -> accepted aliases from the input provider
_PLAN_FIELDS: Dict[str, Tuple[str, ...]] = {
    "current_age": ("currentAge",),
    "retirement_age": ("retirementAge", "retire_age"),
    "starting_balance": ("startingBalance",),
    "monthly_contribution": ("monthlyContribution",),
    "annual_return": ("annualReturn",),
    "inflation": ("inflation_rate", "inflationRate"),
    "drawdown_rate": ("drawdownRate",),
}

_ADJUSTMENT_FIELDS: Dict[str, Tuple[str, ...]] = {
    "monthly_contribution": ("monthlyContribution", "monthly_ra_contribution"),
    "annual_return": ("annualReturn", "investment_return", "investmentReturn"),
    "inflation": ("inflation_rate", "inflationRate"),
}


def _pick(data: Mapping, name: str, aliases: Tuple[str, ...]):
    for key in (name,) + aliases:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _as_number(name: str, value, errors: List[str]) -> Optional[float]:
    if isinstance(value, bool):
        errors.append(f"{name} must be a number")
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        errors.append(f"{name} must be a number")
        return None
    if not math.isfinite(number):
        errors.append(f"{name} must be a finite number")
        return None
    return number


@dataclass(frozen=True)
class PlanInput:
    """A complete, validated simulation request."""

    current_age: int
    retirement_age: int
    starting_balance: float
    monthly_contribution: float
    annual_return: float
    inflation: float
    drawdown_rate: float

    def __post_init__(self):
        errors: List[str] = []
        for name in ("current_age", "retirement_age"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"{name} must be a whole number")
            elif value <= 0:
                errors.append(f"{name} must be positive")
        for name in _PLAN_FIELDS:
            if name in ("current_age", "retirement_age"):
                continue
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                errors.append(f"{name} must be a number")
            elif not math.isfinite(value):
                errors.append(f"{name} must be a finite number")
        if errors:
            raise PlanValidationError(errors)

        if self.retirement_age <= self.current_age:
            errors.append("retirement_age must be greater than current_age")
        if self.starting_balance < 0:
            errors.append("starting_balance cannot be negative")
        if self.monthly_contribution < 0:
            errors.append("monthly_contribution cannot be negative")
        if self.inflation < 0:
            errors.append("inflation cannot be negative")
        if self.drawdown_rate < 0:
            errors.append("drawdown_rate cannot be negative")
        if errors:
            raise PlanValidationError(errors)

    @classmethod
    def from_dict(cls, data: Mapping) -> "PlanInput":
        """Validate and coerce a plan dictionary.

        Both ``snake_case`` keys and the ``camelCase`` keys used by the web
        front end are accepted.  Every problem is collected before raising so
        the caller can report them together.
        """
        if not isinstance(data, Mapping):
            raise PlanValidationError(["plan must be a mapping"])

        errors: List[str] = []
        values = {}
        for name, aliases in _PLAN_FIELDS.items():
            raw = _pick(data, name, aliases)
            if raw is None:
                errors.append(f"missing required field: {name}")
                continue
            number = _as_number(name, raw, errors)
            if number is None:
                continue
            if name in ("current_age", "retirement_age"):
                if not number.is_integer():
                    errors.append(f"{name} must be a whole number")
                    continue
                number = int(number)
            values[name] = number
        if errors:
            raise PlanValidationError(errors)
        return cls(**values)

    def with_adjustments(self, adjustments: Optional[Mapping] = None) -> "PlanInput":
        """Return a copy with contribution, return or inflation overrides applied."""
        if not adjustments:
            return self
        errors: List[str] = []
        changes = {}
        for name, aliases in _ADJUSTMENT_FIELDS.items():
            raw = _pick(adjustments, name, aliases)
            if raw is None:
                continue
            number = _as_number(name, raw, errors)
            if number is not None:
                changes[name] = number
        if errors:
            raise PlanValidationError(errors)
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class YearSnapshot:
    """One simulated year.  Monetary fields are rounded to two decimals."""

    year: int
    age: int
    beginning_balance: float
    contributions: float
    investment_return: float
    withdrawals: float
    tax_paid: float
    ending_balance: float
    inflation_adjusted_balance: float

    @property
    def net_income(self) -> float:
        """Withdrawal left to the retiree after tax."""
        return round(self.withdrawals - self.tax_paid, 2)

    @property
    def is_withdrawal_year(self) -> bool:
        return self.withdrawals > 0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class Statistics:
    total_contributed: float
    projected_value_at_retirement: float
    total_withdrawn: float
    total_tax_paid: float
    net_after_tax_income: float
    fund_depletion_age: Optional[int]
    wealth_retention_ratio: float
    effective_tax_rate: float

    def to_dict(self) -> Dict[str, Optional[float]]:
        return asdict(self)


@dataclass(frozen=True)
class ProjectionResult:
    """Snapshots from a full-horizon run plus loop annotations.

    ``truncated`` is set when the age ceiling stopped the run while money was
    still left in the fund, or before the retirement age was reached.
    """

    years: Tuple[YearSnapshot, ...]
    ceiling_age: int
    truncated: bool = False
    notes: Tuple[str, ...] = field(default_factory=tuple)

    def __iter__(self):
        return iter(self.years)

    def __len__(self) -> int:
        return len(self.years)

    def __getitem__(self, index):
        return self.years[index]


__all__ = [
    "PlanInput",
    "PlanValidationError",
    "YearSnapshot",
    "Statistics",
    "ProjectionResult",
]
