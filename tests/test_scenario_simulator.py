from datetime import date

import pytest

from forecast_engine.simulation import (
    RecommendationType,
    ScenarioInput,
    ScenarioSimulator,
    ScenarioType
)
from forecast_engine.simulation.scenario_simulator import ALL_GOALS_AT_RISK, scenario_deltas
from tests.conftest import TODAY, USER


@pytest.fixture
def simulator(baseline_repo, clock):
    return ScenarioSimulator(baseline_repo, today=clock)


def _types(result):
    return [r.type for r in result.recommendations]


def test_baseline_averages_last_three_closed_months(simulator):
    baseline = simulator.baseline(USER, date(2024, 7, 1))

    assert baseline.avg_income == pytest.approx(3000.0)
    assert baseline.avg_expense == pytest.approx(1000.0)
    assert baseline.monthly_surplus == pytest.approx(2000.0)


def test_small_purchase_is_viable(simulator):
    result = simulator.simulate(USER, ScenarioInput(ScenarioType.BIG_PURCHASE, 500.0, TODAY))

    assert result.is_viable is True
    assert result.projected_balance[0] == pytest.approx(2500.0)
    assert len(result.projected_balance) == 12
    assert result.recommendations == []
    assert result.impacted_goals == []


def test_large_purchase_is_not_viable(simulator):
    result = simulator.simulate(USER, ScenarioInput(ScenarioType.BIG_PURCHASE, 50000.0, TODAY))

    assert result.is_viable is False
    assert result.lowest_balance == pytest.approx(-47000.0)
    assert _types(result) == [RecommendationType.INSTALLMENT, RecommendationType.DELAY]
    assert result.recommendations[0].message == "Consider paying in installments."
    assert result.impacted_goals == [ALL_GOALS_AT_RISK]


def test_installments_spread_the_cost(simulator):
    result = simulator.simulate(
        USER, ScenarioInput(ScenarioType.BIG_PURCHASE, 12000.0, TODAY, installments=4)
    )

    assert result.projected_balance[:5] == pytest.approx([0.0, -1000.0, -2000.0, -3000.0, -1000.0])
    assert result.lowest_balance == pytest.approx(-3000.0)
    assert result.recommendations[0].message.startswith("Increase the number of installments")


def test_small_shortfall_suggests_cuts(simulator):
    result = simulator.simulate(USER, ScenarioInput(ScenarioType.EMERGENCY_EXPENSE, 3500.0, TODAY))

    assert result.lowest_balance == pytest.approx(-500.0)
    assert RecommendationType.CUT in _types(result)


def test_income_loss_never_suggests_installments(simulator):
    result = simulator.simulate(USER, ScenarioInput(ScenarioType.INCOME_LOSS, 2500.0, TODAY))

    assert result.projected_balance[-1] == pytest.approx(-5000.0)
    assert _types(result) == [RecommendationType.DELAY]


def test_future_start_date_shifts_the_event(simulator):
    result = simulator.simulate(
        USER, ScenarioInput(ScenarioType.BIG_PURCHASE, 10000.0, date(2024, 10, 1))
    )

    assert result.projected_balance[2] == pytest.approx(7000.0)
    assert result.projected_balance[3] == pytest.approx(-1000.0)


def test_recurring_cost_stops_at_end_date(simulator):
    result = simulator.simulate(
        USER,
        ScenarioInput(ScenarioType.NEW_RECURRING, 500.0, TODAY, end_date=date(2024, 8, 31))
    )

    assert result.projected_balance[11] == pytest.approx(24000.0)


def test_compare_preserves_order(simulator):
    scenarios = [
        ScenarioInput(ScenarioType.BIG_PURCHASE, 50000.0, TODAY),
        ScenarioInput(ScenarioType.BIG_PURCHASE, 100.0, TODAY)
    ]

    results = simulator.compare(USER, scenarios)

    assert [r.is_viable for r in results] == [False, True]


def test_installments_beyond_horizon_are_dropped():
    scenario = ScenarioInput(ScenarioType.DEBT_PAYMENT, 2400.0, TODAY, installments=24)

    deltas = scenario_deltas(scenario, 12)

    assert deltas.sum() == pytest.approx(1200.0)


def test_monthly_effect_that_already_ended_changes_nothing(simulator):
    result = simulator.simulate(USER, ScenarioInput(
        ScenarioType.INCOME_LOSS, 2500.0, date(2024, 1, 1), end_date=date(2024, 5, 31)
    ))

    assert result.projected_balance == pytest.approx([1000.0 + 2000.0 * k for k in range(1, 13)])
    assert result.is_viable is True


def test_end_before_start_yields_no_deltas():
    scenario = ScenarioInput(ScenarioType.NEW_RECURRING, 300.0, TODAY)

    assert scenario_deltas(scenario, 12, start_offset=0, end_offset=-3).sum() == 0.0
    assert scenario_deltas(scenario, 12, start_offset=4, end_offset=2).sum() == 0.0
