from datetime import date

from forecast_engine.database import TransactionStatus
from forecast_engine.forecasting.time_series import (
    TimeSeriesAggregator,
    add_months,
    month_end,
    months_between,
    period_key
)
from tests.conftest import USER


def test_add_months_crosses_year_boundaries():
    assert add_months(date(2024, 1, 31), -1) == date(2023, 12, 1)
    assert add_months(date(2024, 11, 3), 3) == date(2025, 2, 1)


def test_month_end_handles_leap_february():
    assert month_end(date(2024, 2, 10)) == date(2024, 2, 29)


def test_months_between_ignores_days():
    assert months_between(date(2024, 7, 1), date(2024, 10, 31)) == 3
    assert months_between(date(2024, 7, 1), date(2023, 7, 1)) == -12


def test_history_covers_closed_months_before_reference(repo):
    repo.add_expense(USER, "food", 50.0, date(2024, 6, 3))
    repo.add_expense(USER, "food", 25.0, date(2024, 6, 28))
    repo.add_expense(USER, "food", 80.0, date(2024, 4, 1))
    repo.add_expense(USER, "food", 999.0, date(2024, 7, 2))  # current month, excluded

    history = TimeSeriesAggregator(repo).monthly_history(USER, "food", 3, date(2024, 7, 15))

    assert [m.period for m in history] == ["2024-04", "2024-05", "2024-06"]
    assert [m.total_amount for m in history] == [80.0, 0.0, 75.0]


def test_history_skips_uncompleted_transactions(repo):
    repo.add_expense(USER, "food", 40.0, date(2024, 6, 3), status=TransactionStatus.PENDING)
    repo.add_expense(USER, "food", 10.0, date(2024, 6, 4))

    values = TimeSeriesAggregator(repo).monthly_values(USER, "food", 1, date(2024, 7, 1))

    assert values == [10.0]


def test_history_is_zero_filled_without_transactions(repo):
    values = TimeSeriesAggregator(repo).monthly_values(USER, "food", 6, date(2024, 7, 1))
    assert values == [0.0] * 6


def test_all_time_totals_only_include_months_with_spend(repo):
    repo.add_expense(USER, "food", 10.0, date(2022, 12, 1))
    repo.add_expense(USER, "food", 15.0, date(2024, 3, 1))
    repo.add_expense(USER, "food", 5.0, date(2024, 3, 20))

    totals = TimeSeriesAggregator(repo).all_time_monthly_totals(USER, "food")

    assert totals == {"2022-12": 10.0, "2024-03": 20.0}
    assert period_key(date(2022, 12, 1)) == "2022-12"
