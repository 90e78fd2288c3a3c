"""Tests for plan validation and the value types."""

import math

import pytest

from retirement_engine.models import PlanInput, PlanValidationError, YearSnapshot


def _plan_dict():
    return {
        "current_age": 35,
        "retirement_age": 65,
        "starting_balance": 250000,
        "monthly_contribution": 5000,
        "annual_return": 9,
        "inflation": 5,
        "drawdown_rate": 5,
    }


def test_from_dict_snake_case():
    plan = PlanInput.from_dict(_plan_dict())
    assert plan.current_age == 35
    assert isinstance(plan.retirement_age, int)
    assert plan.starting_balance == 250000.0


def test_from_dict_camel_case():
    plan = PlanInput.from_dict({
        "currentAge": 40,
        "retirementAge": 60,
        "startingBalance": "100000",
        "monthlyContribution": 2000,
        "annualReturn": -2.5,
        "inflation": 6,
        "drawdownRate": 4,
    })
    assert plan.current_age == 40
    assert plan.starting_balance == 100000.0
    assert plan.annual_return == -2.5


def test_missing_fields_are_reported_together():
    data = _plan_dict()
    del data["inflation"]
    del data["drawdown_rate"]
    with pytest.raises(PlanValidationError) as excinfo:
        PlanInput.from_dict(data)
    assert "missing required field: inflation" in excinfo.value.errors
    assert "missing required field: drawdown_rate" in excinfo.value.errors


@pytest.mark.parametrize(
    "field,value",
    [
        ("retirement_age", 30),
        ("retirement_age", 35),
        ("starting_balance", -1),
        ("monthly_contribution", -100),
        ("inflation", -1),
        ("drawdown_rate", -0.5),
        ("annual_return", math.inf),
        ("annual_return", "lots"),
        ("current_age", 35.5),
        ("current_age", True),
    ],
)
def test_invalid_plans_raise(field, value):
    data = _plan_dict()
    data[field] = value
    with pytest.raises(PlanValidationError):
        PlanInput.from_dict(data)


def test_non_mapping_rejected():
    with pytest.raises(PlanValidationError):
        PlanInput.from_dict([1, 2, 3])


def test_direct_construction_validates():
    with pytest.raises(PlanValidationError):
        PlanInput(current_age=65, retirement_age=60, starting_balance=0, monthly_contribution=0,
                  annual_return=8, inflation=5, drawdown_rate=4)
    with pytest.raises(PlanValidationError):
        PlanInput(current_age=30, retirement_age=60, starting_balance="0", monthly_contribution=0,
                  annual_return=8, inflation=5, drawdown_rate=4)


def test_plan_is_immutable():
    plan = PlanInput.from_dict(_plan_dict())
    with pytest.raises(AttributeError):
        plan.current_age = 20


def test_with_adjustments():
    plan = PlanInput.from_dict(_plan_dict())
    adjusted = plan.with_adjustments({"monthly_ra_contribution": 8000, "investment_return": 7.5})
    assert adjusted.monthly_contribution == 8000
    assert adjusted.annual_return == 7.5
    assert adjusted.inflation == plan.inflation
    assert plan.monthly_contribution == 5000
    assert plan.with_adjustments(None) is plan
    with pytest.raises(PlanValidationError):
        plan.with_adjustments({"monthly_contribution": -1})


def test_snapshot_helpers():
    year = YearSnapshot(2030, 66, 1000.0, 0.0, 50.0, 100.0, 12.5, 950.0, 800.0)
    assert year.net_income == 87.5
    assert year.is_withdrawal_year
    assert year.to_dict()["ending_balance"] == 950.0
