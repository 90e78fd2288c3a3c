"""Tests for the inflation-linked drawdown sustainability check."""

import pytest

from retirement_engine.calculators import drawdown
from retirement_engine.calculators import taxes as tax_calc


def test_unsustainable_income_runs_out():
    res = drawdown.analyse_drawdown_strategy(1000000, 5000, 30, inflation_rate=0, expected_return=0)
    assert not res["sustainable"]
    # R60k a year from R1m with no growth: 16 full years, emptied in the 17th
    assert res["years_money_lasts"] == 17
    assert res["end_balance"] == 0.0
    assert res["recommended_initial_drawdown_rate"] == pytest.approx(6.0)
    assert any("depleted after 17 years" in w for w in res["warnings"])
    rates = [alt["drawdown_rate"] for alt in res["alternative_strategies"]]
    assert rates == [4.0, 5.0]
    assert res["alternative_strategies"][0]["monthly_income"] == pytest.approx(3333.33)


def test_sustainable_income_below_minimum_rate():
    res = drawdown.analyse_drawdown_strategy(5000000, 10000, 30, inflation_rate=5, expected_return=10)
    assert res["sustainable"]
    assert res["years_money_lasts"] == 30
    assert res["alternative_strategies"] == []
    assert res["recommended_initial_drawdown_rate"] == drawdown.MIN_LIVING_ANNUITY_RATE
    assert any("below the living annuity minimum" in w for w in res["warnings"])
    assert res["income_at_horizon"] == pytest.approx(120000 * 1.05 ** 30, abs=0.01)


def test_rate_above_maximum_is_flagged():
    res = drawdown.analyse_drawdown_strategy(1000000, 20000, 10, inflation_rate=0, expected_return=0)
    assert res["recommended_initial_drawdown_rate"] == drawdown.MAX_LIVING_ANNUITY_RATE
    assert any("exceeds the living annuity maximum" in w for w in res["warnings"])
    assert res["years_money_lasts"] == 5


def test_tax_estimate_uses_retirement_age():
    res = drawdown.analyse_drawdown_strategy(
        10000000, 30000, 2, inflation_rate=0, expected_return=8, retirement_age=65
    )
    expected = tax_calc.compute_income_tax(360000, 65) + tax_calc.compute_income_tax(360000, 66)
    assert res["total_tax"] == pytest.approx(expected, abs=0.01)
