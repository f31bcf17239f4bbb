from datetime import date

import pytest

from forecast_engine.database import BudgetRecord, GoalRecord
from forecast_engine.simulation import InflationImpactProjector, InflationSimulationInput
from forecast_engine.simulation.inflation import real_gain_rate
from tests.conftest import USER


@pytest.fixture
def projector(repo, clock):
    return InflationImpactProjector(repo, today=clock)


def test_real_gain_without_raise(projector):
    impact = projector.simulate(USER, InflationSimulationInput(inflation_rate=5, salary_adjustment=0))

    assert impact.real_gain_rate == pytest.approx(-4.76)
    assert impact.purchasing_power_lost == pytest.approx(47.62)
    assert len(impact.purchasing_power_projections) == 13
    assert impact.purchasing_power_projections[0].real_value == 1000.0
    assert impact.purchasing_power_projections[-1].real_value == pytest.approx(952.38)
    assert impact.recommendations[0].startswith("Your purchasing power is shrinking")


def test_goals_and_budgets_are_inflated(repo, projector):
    repo.goals[USER].append(GoalRecord("g1", "House", 50000.0, date(2025, 7, 15)))
    repo.budgets[USER].append(BudgetRecord("b1", "food", 1000.0, date(2024, 1, 1), category_name="Food"))

    impact = projector.simulate(USER, InflationSimulationInput(inflation_rate=5, salary_adjustment=0))

    goal = impact.affected_goals[0]
    assert goal.adjusted_target == pytest.approx(52500.0, rel=1e-3)
    assert goal.years_to_target == 1.0
    budget = impact.budget_impacts[0]
    assert budget.projected_amount == pytest.approx(1050.0)
    assert budget.monthly_increase == pytest.approx(50.0)
    assert len(impact.recommendations) == 2


def test_past_and_undated_goals_are_skipped(repo, projector):
    repo.goals[USER].append(GoalRecord("g1", "Trip", 3000.0, date(2024, 1, 1)))
    repo.goals[USER].append(GoalRecord("g2", "Someday", 3000.0))

    impact = projector.simulate(USER, InflationSimulationInput(inflation_rate=5, salary_adjustment=0))

    assert impact.affected_goals == []


def test_raise_above_inflation(projector):
    impact = projector.simulate(USER, InflationSimulationInput(inflation_rate=3, salary_adjustment=5))

    assert impact.real_gain_rate > 1
    assert impact.recommendations == ["You are beating inflation! Consider investing the surplus."]


def test_matching_raise_is_a_low_gain():
    assert real_gain_rate(4.62, 4.62) == pytest.approx(0.0)


def test_low_real_gain_recommendation(projector):
    impact = projector.simulate(USER, InflationSimulationInput(inflation_rate=4.62, salary_adjustment=4.62))
    assert impact.recommendations[0].startswith("Your real gain is low")


def test_presets(projector):
    presets = projector.preset_scenarios()
    assert [p["inflation_rate"] for p in presets] == [3.0, 4.62, 8.0]
