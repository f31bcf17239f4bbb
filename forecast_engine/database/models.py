"""
Database Models for the Forecast Engine

SQLAlchemy models for users, accounts, categories, transactions, budgets,
goals, recurring schedules and the category prediction cache.

The engine only reads these tables. The one table it writes is
`category_predictions`, the cache of point forecasts.
"""

import uuid
from datetime import datetime
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import JSON

db = SQLAlchemy()


def generate_uuid():
    return str(uuid.uuid4())


class User(db.Model):
    """Owner of every other record."""
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(200))
    email = db.Column(db.String(200), unique=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    accounts = db.relationship('Account', backref='user', lazy='dynamic',
                               cascade='all, delete-orphan')
    categories = db.relationship('Category', backref='user', lazy='dynamic',
                                 cascade='all, delete-orphan')


class Account(db.Model):
    """Bank or wallet account. Balances are maintained outside the engine."""
    __tablename__ = 'accounts'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    current_balance = db.Column(db.Float, default=0)
    is_active = db.Column(db.Boolean, default=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'current_balance': self.current_balance,
            'is_active': self.is_active
        }


class Category(db.Model):
    """Transaction category (INCOME or EXPENSE)."""
    __tablename__ = 'categories'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(20), nullable=False, default='EXPENSE')


class Transaction(db.Model):
    """
    Single income or expense movement.

    Only rows with status COMPLETED feed the forecasts.
    """
    __tablename__ = 'transactions'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    account_id = db.Column(db.String(36), db.ForeignKey('accounts.id'))
    category_id = db.Column(db.String(36), db.ForeignKey('categories.id'), index=True)

    type = db.Column(db.String(20), nullable=False)  # INCOME, EXPENSE, TRANSFER
    status = db.Column(db.String(20), default='COMPLETED')  # COMPLETED, PENDING, CANCELLED
    amount = db.Column(db.Float, nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    description = db.Column(db.String(500))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Budget(db.Model):
    """Spending limit for a category over a period."""
    __tablename__ = 'budgets'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    category_id = db.Column(db.String(36), db.ForeignKey('categories.id'), nullable=False)

    amount = db.Column(db.Float, nullable=False)
    period = db.Column(db.String(20), default='MONTHLY')  # MONTHLY, YEARLY
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date)

    category = db.relationship('Category')


class Goal(db.Model):
    """Savings goal."""
    __tablename__ = 'goals'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    target_amount = db.Column(db.Float, nullable=False)
    current_amount = db.Column(db.Float, default=0)
    target_date = db.Column(db.Date)
    status = db.Column(db.String(20), default='ACTIVE')  # ACTIVE, COMPLETED, CANCELLED


class RecurringTransaction(db.Model):
    """
    Recurring schedule (rent, salary, subscriptions).

    These make up the fixed side of a cash-flow projection.
    """
    __tablename__ = 'recurring_transactions'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    category_id = db.Column(db.String(36), db.ForeignKey('categories.id'))

    type = db.Column(db.String(20), nullable=False)  # INCOME, EXPENSE
    amount = db.Column(db.Float, nullable=False)
    frequency = db.Column(db.String(20), nullable=False)  # DAILY, WEEKLY, MONTHLY, YEARLY
    description = db.Column(db.String(500))
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date)
    is_active = db.Column(db.Boolean, default=True)


class CategoryPrediction(db.Model):
    """
    Cached expense prediction.

    Never the source of truth: any row can be regenerated from transactions.
    """
    __tablename__ = 'category_predictions'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'category_id', 'month', name='uq_prediction_user_category_month'),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    category_id = db.Column(db.String(36), db.ForeignKey('categories.id'), nullable=False)
    month = db.Column(db.Date, nullable=False)  # First day of month

    predicted = db.Column(db.Float, nullable=False)
    confidence = db.Column(db.Float)
    lower_bound = db.Column(db.Float)
    upper_bound = db.Column(db.Float)
    factors = db.Column(JSON)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'category_id': self.category_id,
            'month': self.month.isoformat() if self.month else None,
            'predicted': self.predicted,
            'confidence': self.confidence,
            'lower_bound': self.lower_bound,
            'upper_bound': self.upper_bound,
            'factors': self.factors,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
