from collections import defaultdict
from datetime import date

import pytest

from config.settings import TestingConfig
from forecast_engine.database import (
    AccountRecord,
    FinanceRepository,
    TransactionRecord,
    TransactionStatus,
    TransactionType
)

TODAY = date(2024, 7, 15)
USER = "user-1"


class InMemoryFinanceRepository(FinanceRepository):
    """FinanceRepository over plain lists, for engine tests."""

    def __init__(self):
        self.transactions = defaultdict(list)
        self.categories = defaultdict(list)
        self.accounts = defaultdict(list)
        self.budgets = defaultdict(list)
        self.goals = defaultdict(list)
        self.schedules = defaultdict(list)
        self.predictions = {}
        self.save_calls = 0

    # --- seeding helpers ---

    def add_category(self, user_id, category_id, type=TransactionType.EXPENSE):
        self.categories[user_id].append((category_id, type))

    def add_expense(self, user_id, category_id, amount, day, status=TransactionStatus.COMPLETED):
        self.transactions[user_id].append(
            TransactionRecord(amount, day, category_id, TransactionType.EXPENSE, status)
        )

    def add_income(self, user_id, amount, day):
        self.transactions[user_id].append(
            TransactionRecord(amount, day, None, TransactionType.INCOME)
        )

    def add_account(self, user_id, balance):
        self.accounts[user_id].append(AccountRecord(f"acc-{len(self.accounts[user_id])}", balance))

    # --- FinanceRepository ---

    def list_transactions(self, user_id, start=None, end=None, category_id=None,
                          types=(TransactionType.EXPENSE,)):
        types = tuple(types)
        return [
            t for t in self.transactions[user_id]
            if t.status == TransactionStatus.COMPLETED
            and t.type in types
            and (category_id is None or t.category_id == category_id)
            and (start is None or t.date >= start)
            and (end is None or t.date <= end)
        ]

    def list_category_ids(self, user_id, type=TransactionType.EXPENSE):
        return [cid for cid, ctype in self.categories[user_id] if ctype == type]

    def list_active_accounts(self, user_id):
        return list(self.accounts[user_id])

    def find_budget(self, user_id, category_id, period="MONTHLY"):
        matches = [b for b in self.budgets[user_id] if b.category_id == category_id and b.period == period]
        return max(matches, key=lambda b: b.start_date) if matches else None

    def list_budgets(self, user_id, period="MONTHLY"):
        return [b for b in self.budgets[user_id] if b.period == period]

    def list_active_goals(self, user_id):
        return list(self.goals[user_id])

    def list_active_recurring_schedules(self, user_id):
        return [s for s in self.schedules[user_id] if s.is_active]

    def list_user_ids(self):
        return sorted(set(self.accounts) | set(self.transactions) | set(self.categories))

    def save_prediction(self, user_id, prediction):
        self.save_calls += 1
        self.predictions[(user_id, prediction.category_id, prediction.month)] = prediction.to_dict()

    def get_cached_prediction(self, user_id, category_id, month):
        return self.predictions.get((user_id, category_id, month))


def monthly_expenses(repo, category_id, amounts_by_month, user_id=USER):
    """Seed one expense per (year, month) -> amount entry, on the 10th."""
    for (year, month), amount in amounts_by_month.items():
        repo.add_expense(user_id, category_id, amount, date(year, month, 10))


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def repo():
    return InMemoryFinanceRepository()


@pytest.fixture
def baseline_repo(repo):
    """1000 balance; 3000 income and 1000 expense in each of the last three closed months."""
    repo.add_account(USER, 1000.0)
    for month in (4, 5, 6):
        repo.add_income(USER, 3000.0, date(2024, month, 5))
        repo.add_expense(USER, "rent", 1000.0, date(2024, month, 6))
    return repo


@pytest.fixture
def app():
    from web.app import create_app
    from forecast_engine.database import db

    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
