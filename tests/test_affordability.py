from datetime import date

import pytest

from forecast_engine.database import BudgetRecord
from forecast_engine.patterns import (
    AffordabilityRequest,
    AffordabilityScorer,
    AffordabilityStatus
)
from forecast_engine.patterns.affordability import AffordabilityContext
from forecast_engine.simulation import ScenarioSimulator
from tests.conftest import TODAY, USER


def _scorer(repo, today=TODAY, overrides=None):
    clock = lambda: today
    return AffordabilityScorer(
        repo, ScenarioSimulator(repo, today=clock), today=clock, overrides=overrides
    )


@pytest.fixture
def wealthy_repo(baseline_repo):
    baseline_repo.add_account(USER, 9000.0)  # 10000 total
    return baseline_repo


def test_cheap_purchase_scores_full_marks(wealthy_repo):
    result = _scorer(wealthy_repo).check(USER, AffordabilityRequest(500.0, "electronics"))

    assert result.score == 100
    assert result.status == AffordabilityStatus.CAN_AFFORD
    assert result.badge_color == "#10B981"
    assert result.recommendations == ["Go ahead! The impact on your finances is low."]


def test_unaffordable_purchase_lands_in_caution(wealthy_repo):
    result = _scorer(wealthy_repo).check(USER, AffordabilityRequest(50000.0, "electronics"))

    assert result.breakdown == {
        "balance": 0, "budget": 20, "reserve": 0, "goal": 0, "history": 10, "timing": 10
    }
    assert result.score == 40
    assert result.status == AffordabilityStatus.CAUTION
    assert result.recommendations[0] == "Your balance is low for this purchase."


def test_low_score_is_not_recommended(wealthy_repo):
    wealthy_repo.budgets[USER].append(BudgetRecord("b1", "electronics", 100.0, date(2024, 1, 1)))

    result = _scorer(wealthy_repo).check(USER, AffordabilityRequest(50000.0, "electronics"))

    assert result.score == 20
    assert result.status == AffordabilityStatus.NOT_RECOMMENDED
    assert "This purchase puts your goals at risk." in result.recommendations


@pytest.mark.parametrize("spent,amount,expected", [
    (0.0, 500.0, 20),
    (600.0, 500.0, 10),     # remaining 400 covers half
    (950.0, 140.0, 10),     # remaining 50 plus 10% tolerance covers it
    (960.0, 500.0, 0),
])
def test_budget_tiers(wealthy_repo, spent, amount, expected):
    wealthy_repo.budgets[USER].append(BudgetRecord("b1", "food", 1000.0, date(2024, 1, 1)))
    if spent:
        wealthy_repo.add_expense(USER, "food", spent, date(2024, 7, 2))

    result = _scorer(wealthy_repo).check(USER, AffordabilityRequest(amount, "food"))

    assert result.breakdown["budget"] == expected


def test_budget_ignores_last_month_spend(wealthy_repo):
    wealthy_repo.budgets[USER].append(BudgetRecord("b1", "food", 1000.0, date(2024, 1, 1)))
    wealthy_repo.add_expense(USER, "food", 990.0, date(2024, 6, 28))

    result = _scorer(wealthy_repo).check(USER, AffordabilityRequest(500.0, "food"))

    assert result.breakdown["budget"] == 20


@pytest.mark.parametrize("balance,expected", [
    (1600.0, 20),
    (1200.0, 10),
    (1000.0, 0),
    (500.0, 0),
])
def test_reserve_margins(repo, balance, expected):
    context = AffordabilityContext(USER, AffordabilityRequest(500.0, "x"), balance, None, TODAY)
    assert _scorer(repo).reserve_score(context) == expected


def test_late_month_with_low_balance_loses_timing(repo):
    scorer = _scorer(repo, today=date(2024, 7, 25))
    request = AffordabilityRequest(100.0, "x")

    assert scorer.timing_score(AffordabilityContext(USER, request, 300.0, None, date(2024, 7, 25))) == 0
    assert scorer.timing_score(AffordabilityContext(USER, request, 300.0, None, date(2024, 7, 20))) == 10
    assert scorer.timing_score(AffordabilityContext(USER, request, 800.0, None, date(2024, 7, 25))) == 10


def test_history_component_can_be_replaced(wealthy_repo):
    scorer = _scorer(wealthy_repo, overrides={"history": lambda ctx: 0})

    result = scorer.check(USER, AffordabilityRequest(500.0, "electronics"))

    assert result.breakdown["history"] == 0
    assert result.score == 90


def test_unknown_override_is_rejected(repo):
    with pytest.raises(KeyError):
        _scorer(repo, overrides={"karma": lambda ctx: 5})


def test_status_follows_rounded_score(wealthy_repo):
    # 25 + 20 + 15 + 0 + 9.6 + 0 = 69.6, reported as 70
    scorer = _scorer(wealthy_repo, overrides={
        "balance": lambda ctx: 25,
        "reserve": lambda ctx: 15,
        "history": lambda ctx: 9.6,
        "timing": lambda ctx: 0,
    })

    result = scorer.check(USER, AffordabilityRequest(50000.0, "electronics"))

    assert result.breakdown["goal"] == 0
    assert result.score == 70
    assert result.status == AffordabilityStatus.CAN_AFFORD


def test_request_details_are_echoed(wealthy_repo):
    request = AffordabilityRequest(500.0, "electronics", installments=3, payment_method="CREDIT_CARD")

    result = _scorer(wealthy_repo).check(USER, request)

    assert result.to_dict()["request"] == {"installments": 3, "payment_method": "CREDIT_CARD"}
